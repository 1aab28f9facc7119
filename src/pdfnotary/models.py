"""Shared domain models used across the notarization pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Literal, Mapping, Sequence

SEQUENCE_FIELDS = ("parties", "tags")


@dataclass(frozen=True)
class MetadataRecord:
    """Normalized metadata record; the canonical unit of truth for a document."""

    title: str = ""
    summary: str = ""
    doc_type: str = ""
    date_iso: str = ""
    parties: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    model: str = ""
    model_hash: str = ""
    prompt_hash: str = ""
    agent_version: str = ""
    extract_confidence: str = ""
    pdf_text_sha256: str = ""
    pages_processed: str = ""

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            payload[item.name] = list(value) if item.name in SEQUENCE_FIELDS else value
        return payload


METADATA_FIELDS: tuple[str, ...] = tuple(item.name for item in fields(MetadataRecord))


@dataclass(frozen=True)
class ExtractionResult:
    """Text pulled out of a document by the extraction collaborator."""

    text: str
    pages_processed: int


@dataclass(frozen=True)
class StampedCandidate:
    """Candidate metadata carrying reproducibility fields."""

    candidate: Mapping[str, Any]
    used_fallback: bool


class PipelineState(str, Enum):
    RECEIVED = "received"
    TEXT_EXTRACTED = "text_extracted"
    METADATA_GENERATED = "metadata_generated"
    STAMPED = "stamped"
    NORMALIZED = "normalized"
    CANONICALIZED = "canonicalized"
    HASHED = "hashed"
    COMPLETED = "completed"
    ABORTED = "aborted"


class AbortReason(str, Enum):
    NO_EXTRACTABLE_TEXT = "NoExtractableText"
    EXTRACTION_FAILED = "ExtractionFailed"
    UNSUPPORTED_TYPE = "UnsupportedType"


@dataclass(frozen=True)
class NotarizationResult:
    """Identifiers and record produced by a completed notarization."""

    content_identifier: str
    metadata_identifier: str
    metadata: MetadataRecord
    canonical: str
    used_fallback: bool = False

    def to_envelope(self) -> dict[str, Any]:
        envelope = self.metadata.as_dict()
        envelope["content_identifier"] = self.content_identifier
        envelope["metadata_identifier"] = self.metadata_identifier
        return envelope


@dataclass(frozen=True)
class NotarizationOutcome:
    """Terminal state of a pipeline run."""

    state: PipelineState
    transitions: Sequence[PipelineState] = field(default_factory=tuple)
    result: NotarizationResult | None = None
    abort_reason: AbortReason | None = None
    detail: str | None = None

    @property
    def completed(self) -> bool:
        return self.state is PipelineState.COMPLETED


class LookupStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_PERFORMED = "lookup_not_performed"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of recomputing an identifier and asking the registry about it."""

    kind: Literal["content", "metadata"]
    identifier: str
    status: LookupStatus
    record_id: str | None = None
    detail: str | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "identifier": self.identifier,
            "status": self.status.value,
            "found": self.found,
            "record_id": self.record_id,
            "detail": self.detail,
        }
