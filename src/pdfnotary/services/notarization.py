"""Notarization pipeline: document bytes to content and metadata identifiers."""

from __future__ import annotations

from typing import List

from pdfnotary.config import Settings
from pdfnotary.hashing import HashingService, default_hashing
from pdfnotary.ingestion.service import DEFAULT_PAGE_LIMIT, ExtractionError, PdfTextExtractor, TextExtractor
from pdfnotary.metrics.observability import PipelineMetrics, TimedSection, get_logger
from pdfnotary.models import (
    AbortReason,
    NotarizationOutcome,
    NotarizationResult,
    PipelineState,
)
from pdfnotary.schema import UnsupportedType, canonicalize, normalize_metadata
from pdfnotary.services.generation import GenerationConfig, QwenMetadataGenerator
from pdfnotary.services.stamping import ReproducibilityStamper


class NotarizationPipeline:
    """Runs extraction, generation, stamping, normalization, canonicalization and hashing.

    Every run ends in ``COMPLETED`` or ``ABORTED``; stage failures are reported
    through the outcome rather than raised. The pipeline never writes to a
    registry.
    """

    def __init__(
        self,
        extractor: TextExtractor,
        stamper: ReproducibilityStamper,
        *,
        hashing: HashingService | None = None,
        page_limit: int = DEFAULT_PAGE_LIMIT,
    ) -> None:
        self._extractor = extractor
        self._stamper = stamper
        self._hashing = hashing or default_hashing()
        self._page_limit = page_limit
        self._logger = get_logger("notarization")

    def notarize(self, content: bytes) -> NotarizationOutcome:
        with TimedSection(PipelineMetrics.observe_notarization):
            outcome = self._run(content)
        if outcome.completed and outcome.result is not None:
            self._logger.info(
                "notarization.complete",
                content_identifier=outcome.result.content_identifier,
                metadata_identifier=outcome.result.metadata_identifier,
                used_fallback=outcome.result.used_fallback,
            )
        return outcome

    def _run(self, content: bytes) -> NotarizationOutcome:
        transitions: List[PipelineState] = [PipelineState.RECEIVED]

        try:
            extraction = self._extractor.extract(content, page_limit=self._page_limit)
        except ExtractionError as exc:
            return self._abort(transitions, AbortReason.EXTRACTION_FAILED, str(exc))
        except Exception as exc:
            self._logger.error("notarization.extractor_error", error=type(exc).__name__)
            return self._abort(transitions, AbortReason.EXTRACTION_FAILED, type(exc).__name__)
        if not extraction.text.strip():
            return self._abort(
                transitions,
                AbortReason.NO_EXTRACTABLE_TEXT,
                "No text found in document (OCR is not supported)",
            )
        transitions.append(PipelineState.TEXT_EXTRACTED)

        stamped = self._stamper.stamp(extraction.text)
        transitions.extend((PipelineState.METADATA_GENERATED, PipelineState.STAMPED))

        candidate = dict(stamped.candidate)
        candidate["pdf_text_sha256"] = self._hashing.fingerprint(extraction.text)
        candidate["pages_processed"] = str(extraction.pages_processed)
        record = normalize_metadata(candidate)
        transitions.append(PipelineState.NORMALIZED)

        try:
            canonical = canonicalize(record.as_dict())
        except UnsupportedType as exc:
            self._logger.error("notarization.unsupported_type", detail=str(exc))
            return self._abort(transitions, AbortReason.UNSUPPORTED_TYPE, "Metadata could not be canonicalized")
        transitions.append(PipelineState.CANONICALIZED)

        result = NotarizationResult(
            content_identifier=self._hashing.content_identifier(content),
            metadata_identifier=self._hashing.metadata_identifier(canonical),
            metadata=record,
            canonical=canonical,
            used_fallback=stamped.used_fallback,
        )
        transitions.extend((PipelineState.HASHED, PipelineState.COMPLETED))
        return NotarizationOutcome(
            state=PipelineState.COMPLETED,
            transitions=tuple(transitions),
            result=result,
        )

    def _abort(
        self,
        transitions: List[PipelineState],
        reason: AbortReason,
        detail: str,
    ) -> NotarizationOutcome:
        transitions.append(PipelineState.ABORTED)
        PipelineMetrics.observe_abort(reason.value)
        self._logger.warning("notarization.aborted", reason=reason.value, detail=detail)
        return NotarizationOutcome(
            state=PipelineState.ABORTED,
            transitions=tuple(transitions),
            abort_reason=reason,
            detail=detail,
        )


def build_pipeline(settings: Settings) -> NotarizationPipeline:
    """Wire the default extraction and generation collaborators from settings."""

    generator = QwenMetadataGenerator(
        GenerationConfig(
            model=settings.generator_model,
            max_new_tokens=settings.generator_max_new_tokens,
            temperature=settings.generator_temperature,
            use_model=settings.use_model_generator,
            device=settings.generator_device,
            max_input_chars=settings.generator_max_input_chars,
        ),
    )
    stamper = ReproducibilityStamper(
        generator,
        model=settings.generator_model,
        agent_version=settings.agent_version,
        use_generation=settings.use_model_generator,
        summary_chars=settings.fallback_summary_chars,
    )
    return NotarizationPipeline(PdfTextExtractor(), stamper, page_limit=settings.page_limit)
