"""Attach reproducibility fields to generated metadata."""

from __future__ import annotations

import math
import time
from typing import Any, Mapping

from pdfnotary.hashing import HashingService, default_hashing
from pdfnotary.metrics.observability import PipelineMetrics, get_logger
from pdfnotary.models import StampedCandidate
from pdfnotary.services.generation import METADATA_PROMPT, MetadataGenerator

DEFAULT_CONFIDENCE = "0.500"


def format_confidence(value: Any) -> str:
    """Render a confidence as a 3-decimal string in ``[0, 1]``.

    Only real numbers are accepted; numeric-looking strings, booleans and
    non-finite values fall back to ``"0.500"``.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except OverflowError:
        # Integers beyond float range still clamp by sign.
        number = 1.0 if value > 0 else 0.0
    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE
    return f"{min(max(number, 0.0), 1.0):.3f}"


def fallback_candidate(text: str, *, summary_chars: int = 500) -> dict[str, Any]:
    """Placeholder metadata built only from the document text."""

    return {
        "title": "Untitled",
        "summary": text[:summary_chars],
        "doc_type": "document",
        "date_iso": "",
        "parties": [],
        "tags": [],
        "extract_confidence": 0.5,
    }


class ReproducibilityStamper:
    """Produces metadata candidates stamped with model and prompt provenance."""

    def __init__(
        self,
        generator: MetadataGenerator | None,
        *,
        model: str,
        agent_version: str,
        prompt: str = METADATA_PROMPT,
        use_generation: bool = True,
        summary_chars: int = 500,
        hashing: HashingService | None = None,
    ) -> None:
        self._generator = generator
        self._model = model
        self._agent_version = agent_version
        self._prompt = prompt
        self._use_generation = use_generation and generator is not None
        self._summary_chars = summary_chars
        self._hashing = hashing or default_hashing()
        self._logger = get_logger("stamping")

    @property
    def model_hash(self) -> str:
        return self._hashing.fingerprint(self._model)

    @property
    def prompt_hash(self) -> str:
        return self._hashing.fingerprint(self._prompt)

    def stamp(self, text: str) -> StampedCandidate:
        start = time.perf_counter()
        base, used_fallback = self._generate(text)
        PipelineMetrics.observe_generation(time.perf_counter() - start, used_fallback=used_fallback)

        candidate = dict(base)
        candidate.update(
            extract_confidence=format_confidence(base.get("extract_confidence")),
            model=self._model,
            model_hash=self.model_hash,
            prompt_hash=self.prompt_hash,
            agent_version=self._agent_version,
        )
        return StampedCandidate(candidate=candidate, used_fallback=used_fallback)

    def _generate(self, text: str) -> tuple[Mapping[str, Any], bool]:
        stub = fallback_candidate(text, summary_chars=self._summary_chars)
        if not self._use_generation:
            return stub, True
        try:
            generated = self._generator.generate(text)  # type: ignore[union-attr]
        except Exception as exc:
            self._logger.warning("generation.fallback", model=self._model, error=type(exc).__name__)
            return stub, True
        if not isinstance(generated, Mapping):
            self._logger.warning("generation.fallback", model=self._model, error="non_mapping_output")
            return stub, True
        return generated, False
