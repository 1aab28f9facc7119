#!/usr/bin/env python3
from __future__ import annotations

import json
import os
import sys

import httpx


def main() -> int:
    base_url = os.getenv("PDFNOTARY_API_URL", "http://localhost:8000").rstrip("/")
    try:
        health = httpx.get(f"{base_url}/healthz", timeout=5)
        health.raise_for_status()
        print("/healthz:", health.text)
        # Empty-ish metadata still yields a well-formed identifier.
        verify = httpx.post(f"{base_url}/verify/meta", json={"title": "smoke"}, timeout=5)
        verify.raise_for_status()
        print("/verify/meta:", json.dumps(verify.json()))
    except httpx.HTTPError as exc:
        print(f"Smoke check failed: {exc}", file=sys.stderr)
        return 1
    print("Smoke check passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
