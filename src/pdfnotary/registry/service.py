"""Registry adapters: reverse lookups from identifier to record id."""

from __future__ import annotations

import re
import threading
from typing import Any, Protocol

import httpx

from pdfnotary.config import Settings
from pdfnotary.hashing import function_selector
from pdfnotary.metrics.observability import get_logger

_IDENTIFIER_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


class RegistryUnavailable(RuntimeError):
    """Raised when a lookup could not be performed."""


class Registry(Protocol):
    """Read side of the registry holding notarized identifiers."""

    def lookup_by_content_id(self, identifier: str) -> str | None:
        """Return the record id registered for a content identifier, if any."""

    def lookup_by_metadata_id(self, identifier: str) -> str | None:
        """Return the record id registered for a metadata identifier, if any."""


class InMemoryRegistry:
    """Process-local registry for development and tests."""

    def __init__(self) -> None:
        self._by_content: dict[str, str] = {}
        self._by_metadata: dict[str, str] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def register(self, content_id: str, metadata_id: str) -> str:
        with self._lock:
            record_id = str(self._next_id)
            self._next_id += 1
            self._by_content[content_id.lower()] = record_id
            self._by_metadata[metadata_id.lower()] = record_id
        return record_id

    def lookup_by_content_id(self, identifier: str) -> str | None:
        return self._by_content.get(identifier.lower())

    def lookup_by_metadata_id(self, identifier: str) -> str | None:
        return self._by_metadata.get(identifier.lower())


class ContractRegistry:
    """Read-only registry backed by an EVM contract queried over JSON-RPC.

    The contract maps ``bytes32`` identifiers to ``uint256`` token ids through
    ``getTokenByFileHash`` and ``getTokenByMetaHash``; token id ``0`` means the
    identifier was never registered.
    """

    CONTENT_LOOKUP = "getTokenByFileHash(bytes32)"
    METADATA_LOOKUP = "getTokenByMetaHash(bytes32)"

    def __init__(
        self,
        rpc_url: str,
        contract_address: str,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._contract = contract_address
        self._client = client or httpx.Client(timeout=timeout)
        self._request_id = 0
        self._logger = get_logger("registry")

    def lookup_by_content_id(self, identifier: str) -> str | None:
        return self._call_lookup(self.CONTENT_LOOKUP, identifier)

    def lookup_by_metadata_id(self, identifier: str) -> str | None:
        return self._call_lookup(self.METADATA_LOOKUP, identifier)

    def close(self) -> None:
        self._client.close()

    def _call_lookup(self, signature: str, identifier: str) -> str | None:
        if not _IDENTIFIER_RE.match(identifier):
            raise ValueError(f"Identifier must be a 0x-prefixed 32-byte hex string: {identifier!r}")
        data = "0x" + function_selector(signature) + identifier[2:].lower()
        result = self._eth_call(data)
        try:
            token_id = int(result, 16) if result not in ("0x", "") else 0
        except (TypeError, ValueError) as exc:
            raise RegistryUnavailable(f"Malformed lookup result: {result!r}") from exc
        self._logger.info("registry.lookup", method=signature.split("(")[0], token_id=token_id)
        return str(token_id) if token_id else None

    def _eth_call(self, data: str) -> Any:
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": "eth_call",
            "params": [{"to": self._contract, "data": data}, "latest"],
        }
        try:
            response = self._client.post(self._rpc_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._logger.warning("registry.unavailable", error=type(exc).__name__)
            raise RegistryUnavailable(f"Registry request failed: {type(exc).__name__}") from exc
        if not isinstance(body, dict):
            raise RegistryUnavailable("Registry returned a non-object response")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RegistryUnavailable(f"Registry call reverted: {message}")
        return body.get("result")


def build_registry(settings: Settings) -> ContractRegistry | None:
    """Return the configured registry, or ``None`` when lookups are disabled."""

    if not settings.registry_enabled:
        return None
    return ContractRegistry(
        settings.registry_rpc_url or "",
        settings.registry_contract or "",
        timeout=settings.registry_timeout_seconds,
    )
