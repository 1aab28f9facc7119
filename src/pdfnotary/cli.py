"""Command line entry point for notarizing and verifying documents."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from pdfnotary.config import Settings, get_settings
from pdfnotary.registry import build_registry
from pdfnotary.services.notarization import NotarizationPipeline, build_pipeline
from pdfnotary.services.verification import VerificationService

EXIT_OK = 0
EXIT_NEGATIVE = 1
EXIT_BAD_INPUT = 2


def run_analyze(path: Path, *, settings: Settings, pipeline: NotarizationPipeline | None = None) -> int:
    pipeline = pipeline or build_pipeline(settings)
    outcome = pipeline.notarize(path.read_bytes())
    if not outcome.completed or outcome.result is None:
        reason = outcome.abort_reason.value if outcome.abort_reason else "unknown"
        print(json.dumps({"reason": reason, "detail": outcome.detail}, indent=2))
        return EXIT_NEGATIVE
    report = outcome.result.to_envelope()
    print(json.dumps(report, indent=2, ensure_ascii=False))
    if outcome.result.used_fallback:
        print("Metadata generated by fallback stub", file=sys.stderr)
    return EXIT_OK


def run_verify_file(path: Path, *, verifier: VerificationService) -> int:
    result = verifier.verify_content(path.read_bytes())
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_OK if result.found else EXIT_NEGATIVE


def run_verify_meta(path: Path, *, verifier: VerificationService) -> int:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        print(f"Invalid metadata JSON: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT
    if not isinstance(payload, dict):
        print("Metadata JSON must be an object", file=sys.stderr)
        return EXIT_BAD_INPUT
    result = verifier.verify_metadata(payload)
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_OK if result.found else EXIT_NEGATIVE


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pdfnotary", description="Notarize and verify PDF documents.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Compute content and metadata identifiers for a PDF")
    analyze.add_argument("path", type=Path, help="PDF file to notarize")
    analyze.add_argument("--page-limit", type=int, default=None, help="Override the number of pages read")

    verify_file = subparsers.add_parser("verify-file", help="Look up a PDF by its content identifier")
    verify_file.add_argument("path", type=Path, help="PDF file to verify")

    verify_meta = subparsers.add_parser("verify-meta", help="Look up metadata JSON by its metadata identifier")
    verify_meta.add_argument("path", type=Path, help="JSON file holding the metadata record")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    settings = get_settings()
    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return EXIT_BAD_INPUT

    if args.command == "analyze":
        if args.page_limit is not None:
            if args.page_limit < 1:
                print("--page-limit must be at least 1", file=sys.stderr)
                return EXIT_BAD_INPUT
            settings = settings.model_copy(update={"page_limit": args.page_limit})
        return run_analyze(args.path, settings=settings)

    verifier = VerificationService(build_registry(settings))
    if args.command == "verify-file":
        return run_verify_file(args.path, verifier=verifier)
    return run_verify_meta(args.path, verifier=verifier)


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    sys.exit(main())
