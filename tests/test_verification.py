"""Tests for the verification protocol."""

from __future__ import annotations

from pdfnotary.models import ExtractionResult, LookupStatus
from pdfnotary.registry import InMemoryRegistry, RegistryUnavailable
from pdfnotary.services.generation import StaticMetadataGenerator
from pdfnotary.services.notarization import NotarizationPipeline
from pdfnotary.services.stamping import ReproducibilityStamper
from pdfnotary.services.verification import VerificationService

DOCUMENT = b"%PDF-1.4 verification fixture"


class StubExtractor:
    def extract(self, content: bytes, page_limit: int = 30) -> ExtractionResult:
        return ExtractionResult(text="Lease between A and B", pages_processed=1)


class DownRegistry:
    def lookup_by_content_id(self, identifier: str) -> str | None:
        raise RegistryUnavailable("Registry request failed: ConnectTimeout")

    def lookup_by_metadata_id(self, identifier: str) -> str | None:
        raise RegistryUnavailable("Registry request failed: ConnectTimeout")


def notarize_and_register(registry: InMemoryRegistry):
    stamper = ReproducibilityStamper(
        StaticMetadataGenerator({"title": "Lease", "parties": ["A", "B"], "tags": ["housing", "rent"]}),
        model="test-model",
        agent_version="v1",
    )
    result = NotarizationPipeline(StubExtractor(), stamper).notarize(DOCUMENT).result
    assert result is not None
    record_id = registry.register(result.content_identifier, result.metadata_identifier)
    return result, record_id


def test_round_trip_by_content():
    registry = InMemoryRegistry()
    result, record_id = notarize_and_register(registry)

    verification = VerificationService(registry).verify_content(DOCUMENT)
    assert verification.found
    assert verification.record_id == record_id
    assert verification.identifier == result.content_identifier
    assert verification.kind == "content"


def test_round_trip_by_metadata():
    registry = InMemoryRegistry()
    result, record_id = notarize_and_register(registry)

    verification = VerificationService(registry).verify_metadata(result.to_envelope())
    assert verification.status is LookupStatus.FOUND
    assert verification.record_id == record_id
    assert verification.identifier == result.metadata_identifier


def test_reordered_parties_do_not_match():
    registry = InMemoryRegistry()
    result, _ = notarize_and_register(registry)

    tampered = result.to_envelope()
    tampered["parties"] = list(reversed(tampered["parties"]))
    verification = VerificationService(registry).verify_metadata(tampered)
    assert verification.found is False
    assert verification.status is LookupStatus.NOT_FOUND
    assert verification.record_id is None


def test_modified_bytes_do_not_match():
    registry = InMemoryRegistry()
    notarize_and_register(registry)
    verification = VerificationService(registry).verify_content(DOCUMENT + b" ")
    assert verification.status is LookupStatus.NOT_FOUND


def test_partial_metadata_is_accepted():
    verification = VerificationService(InMemoryRegistry()).verify_metadata({"title": "Lease"})
    assert verification.status is LookupStatus.NOT_FOUND
    assert verification.identifier.startswith("0x")


def test_missing_registry_reports_lookup_not_performed():
    service = VerificationService(None)
    verification = service.verify_content(DOCUMENT)
    assert verification.status is LookupStatus.NOT_PERFORMED
    assert verification.identifier == service.content_identifier(DOCUMENT)
    assert verification.detail == "registry not configured"


def test_unavailable_registry_is_distinct_from_not_found():
    verification = VerificationService(DownRegistry()).verify_metadata({"title": "Lease"})
    assert verification.status is LookupStatus.NOT_PERFORMED
    assert verification.found is False
    assert "ConnectTimeout" in (verification.detail or "")
    assert verification.to_dict()["status"] == "lookup_not_performed"


def test_lone_surrogate_metadata_is_hashed_as_replacement_character():
    service = VerificationService(InMemoryRegistry())
    verification = service.verify_metadata({"title": "\ud800"})
    assert verification.status is LookupStatus.NOT_FOUND
    assert verification.identifier == service.metadata_identifier({"title": "\ufffd"})
