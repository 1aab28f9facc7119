"""Tests for the notarization pipeline state machine."""

from __future__ import annotations

from typing import Any, Mapping

from pdfnotary.hashing import keccak256_hex, sha256_hex
from pdfnotary.ingestion import ExtractionError
from pdfnotary.models import METADATA_FIELDS, AbortReason, ExtractionResult, PipelineState
from pdfnotary.schema import canonicalize
from pdfnotary.services.generation import StaticMetadataGenerator
from pdfnotary.services.notarization import NotarizationPipeline
from pdfnotary.services.stamping import ReproducibilityStamper

DOCUMENT = b"%PDF-1.4 stub document bytes"


class StubExtractor:
    def __init__(self, text: str, pages: int = 2) -> None:
        self.text = text
        self.pages = pages
        self.calls: list[int] = []

    def extract(self, content: bytes, page_limit: int = 30) -> ExtractionResult:
        self.calls.append(page_limit)
        return ExtractionResult(text=self.text, pages_processed=min(self.pages, page_limit))


class BrokenExtractor:
    def extract(self, content: bytes, page_limit: int = 30) -> ExtractionResult:
        raise ExtractionError("Failed to read PDF: EOF marker not found")


class TimingOutExtractor:
    def extract(self, content: bytes, page_limit: int = 30) -> ExtractionResult:
        raise TimeoutError("extract timed out")


class ExplodingGenerator:
    def generate(self, text: str) -> Mapping[str, Any]:
        raise TimeoutError("generation timed out")


class CountingHashing:
    """Hashing double that records whether any identifier was computed."""

    def __init__(self) -> None:
        self.calls = 0

    def content_identifier(self, content: bytes) -> str:
        self.calls += 1
        return keccak256_hex(content)

    def metadata_identifier(self, canonical: str) -> str:
        self.calls += 1
        return keccak256_hex(canonical.encode("utf-8"))

    def fingerprint(self, text: str) -> str:
        return sha256_hex(text)


def make_pipeline(extractor, generator=None, **kwargs) -> NotarizationPipeline:
    generator = generator or StaticMetadataGenerator(
        {"title": "Lease", "parties": ["A", "B"], "tags": ["housing"], "extract_confidence": 0.8},
    )
    stamper = ReproducibilityStamper(generator, model="test-model", agent_version="v1")
    return NotarizationPipeline(extractor, stamper, **kwargs)


def test_pipeline_completes_with_both_identifiers():
    outcome = make_pipeline(StubExtractor("Lease between A and B")).notarize(DOCUMENT)

    assert outcome.completed
    assert outcome.transitions == (
        PipelineState.RECEIVED,
        PipelineState.TEXT_EXTRACTED,
        PipelineState.METADATA_GENERATED,
        PipelineState.STAMPED,
        PipelineState.NORMALIZED,
        PipelineState.CANONICALIZED,
        PipelineState.HASHED,
        PipelineState.COMPLETED,
    )
    result = outcome.result
    assert result is not None
    assert result.content_identifier == keccak256_hex(DOCUMENT)
    assert result.canonical == canonicalize(result.metadata.as_dict())
    assert result.metadata_identifier == keccak256_hex(result.canonical.encode("utf-8"))
    assert result.metadata.pdf_text_sha256 == sha256_hex("Lease between A and B")
    assert result.metadata.pages_processed == "2"
    assert result.metadata.extract_confidence == "0.800"
    assert result.used_fallback is False


def test_envelope_has_exactly_record_fields_and_identifiers():
    outcome = make_pipeline(StubExtractor("text")).notarize(DOCUMENT)
    envelope = outcome.result.to_envelope()
    assert set(envelope) == set(METADATA_FIELDS) | {"content_identifier", "metadata_identifier"}
    assert envelope["parties"] == ["A", "B"]


def test_notarization_is_idempotent():
    pipeline = make_pipeline(StubExtractor("same text"))
    first = pipeline.notarize(DOCUMENT).result
    second = pipeline.notarize(DOCUMENT).result
    assert first.content_identifier == second.content_identifier
    assert first.metadata_identifier == second.metadata_identifier
    assert first.canonical == second.canonical


def test_empty_text_aborts_without_hashing():
    hashing = CountingHashing()
    outcome = make_pipeline(StubExtractor("   \n "), hashing=hashing).notarize(DOCUMENT)

    assert outcome.state is PipelineState.ABORTED
    assert outcome.abort_reason is AbortReason.NO_EXTRACTABLE_TEXT
    assert outcome.transitions == (PipelineState.RECEIVED, PipelineState.ABORTED)
    assert outcome.result is None
    assert hashing.calls == 0


def test_extraction_error_aborts():
    outcome = make_pipeline(BrokenExtractor()).notarize(b"garbage")
    assert outcome.state is PipelineState.ABORTED
    assert outcome.abort_reason is AbortReason.EXTRACTION_FAILED
    assert "EOF marker" in (outcome.detail or "")


def test_unexpected_extractor_failure_aborts_without_hashing():
    hashing = CountingHashing()
    outcome = make_pipeline(TimingOutExtractor(), hashing=hashing).notarize(DOCUMENT)
    assert outcome.state is PipelineState.ABORTED
    assert outcome.abort_reason is AbortReason.EXTRACTION_FAILED
    assert outcome.detail == "TimeoutError"
    assert outcome.transitions == (PipelineState.RECEIVED, PipelineState.ABORTED)
    assert hashing.calls == 0


def test_generation_failure_still_completes_with_fallback():
    outcome = make_pipeline(StubExtractor("Deed of sale"), generator=ExplodingGenerator()).notarize(DOCUMENT)
    assert outcome.completed
    assert outcome.result.used_fallback is True
    assert outcome.result.metadata.extract_confidence == "0.500"
    assert outcome.result.metadata.title == "Untitled"
    assert outcome.result.metadata.summary == "Deed of sale"


def test_page_limit_is_forwarded_to_extractor():
    extractor = StubExtractor("text", pages=50)
    outcome = make_pipeline(extractor, page_limit=5).notarize(DOCUMENT)
    assert extractor.calls == [5]
    assert outcome.result.metadata.pages_processed == "5"


def test_content_identifier_is_independent_of_metadata():
    first = make_pipeline(StubExtractor("text one")).notarize(DOCUMENT).result
    second = make_pipeline(StubExtractor("text two")).notarize(DOCUMENT).result
    assert first.content_identifier == second.content_identifier
    assert first.metadata_identifier != second.metadata_identifier
