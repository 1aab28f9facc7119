"""Service layer orchestrations for pdfnotary."""

from .generation import (
    METADATA_PROMPT,
    GenerationConfig,
    GenerationUnavailable,
    MetadataGenerator,
    QwenMetadataGenerator,
    StaticMetadataGenerator,
)
from .notarization import NotarizationPipeline, build_pipeline
from .stamping import ReproducibilityStamper, fallback_candidate, format_confidence
from .verification import VerificationService

__all__ = [
    "METADATA_PROMPT",
    "GenerationConfig",
    "GenerationUnavailable",
    "MetadataGenerator",
    "NotarizationPipeline",
    "QwenMetadataGenerator",
    "ReproducibilityStamper",
    "StaticMetadataGenerator",
    "VerificationService",
    "build_pipeline",
    "fallback_candidate",
    "format_confidence",
]
