"""Verification: recompute identifiers and look them up in the registry."""

from __future__ import annotations

from typing import Any, Callable

from pdfnotary.hashing import HashingService, default_hashing
from pdfnotary.metrics.observability import PipelineMetrics, get_logger
from pdfnotary.models import LookupStatus, VerificationResult
from pdfnotary.registry.service import Registry, RegistryUnavailable
from pdfnotary.schema import canonicalize, normalize_metadata


class VerificationService:
    """Checks submitted bytes or metadata against previously registered identifiers."""

    def __init__(self, registry: Registry | None, *, hashing: HashingService | None = None) -> None:
        self._registry = registry
        self._hashing = hashing or default_hashing()
        self._logger = get_logger("verification")

    def content_identifier(self, content: bytes) -> str:
        return self._hashing.content_identifier(content)

    def metadata_identifier(self, candidate: Any) -> str:
        record = normalize_metadata(candidate)
        return self._hashing.metadata_identifier(canonicalize(record.as_dict()))

    def verify_content(self, content: bytes) -> VerificationResult:
        identifier = self.content_identifier(content)
        lookup = self._registry.lookup_by_content_id if self._registry else None
        return self._lookup("content", identifier, lookup)

    def verify_metadata(self, candidate: Any) -> VerificationResult:
        identifier = self.metadata_identifier(candidate)
        lookup = self._registry.lookup_by_metadata_id if self._registry else None
        return self._lookup("metadata", identifier, lookup)

    def _lookup(
        self,
        kind: str,
        identifier: str,
        lookup: Callable[[str], str | None] | None,
    ) -> VerificationResult:
        if lookup is None:
            result = VerificationResult(
                kind=kind,
                identifier=identifier,
                status=LookupStatus.NOT_PERFORMED,
                detail="registry not configured",
            )
        else:
            try:
                record_id = lookup(identifier)
            except RegistryUnavailable as exc:
                result = VerificationResult(
                    kind=kind,
                    identifier=identifier,
                    status=LookupStatus.NOT_PERFORMED,
                    detail=str(exc),
                )
            else:
                result = VerificationResult(
                    kind=kind,
                    identifier=identifier,
                    status=LookupStatus.FOUND if record_id else LookupStatus.NOT_FOUND,
                    record_id=record_id,
                )
        PipelineMetrics.observe_verification(kind, result.status.value)
        self._logger.info(
            "verification.complete",
            kind=kind,
            identifier=identifier,
            status=result.status.value,
        )
        return result
