"""Observability helpers for pdfnotary."""

from __future__ import annotations

import logging
import time
from contextvars import ContextVar

import structlog
from prometheus_client import Counter, Histogram

_logger_configured = False
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="-")


def configure_logging(level: int = logging.INFO) -> None:
    global _logger_configured  # noqa: PLW0603 - module-level guard
    if _logger_configured:
        return
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _logger_configured = True


def bind_correlation_id(correlation_id: str) -> None:
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    structlog.contextvars.clear_contextvars()
    _correlation_id_var.set("-")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


def get_logger(name: str = "pdfnotary") -> structlog.BoundLogger:
    configure_logging()
    return structlog.get_logger(name)


class PipelineMetrics:
    """Prometheus metrics for pipeline stages."""

    extraction_latency = Histogram(
        "pdfnotary_extraction_duration_seconds",
        "Time spent extracting document text.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
    )
    extracted_pages = Histogram(
        "pdfnotary_extracted_page_count",
        "Pages processed per extraction.",
        buckets=(0, 1, 2, 5, 10, 20, 30),
    )
    generation_latency = Histogram(
        "pdfnotary_generation_duration_seconds",
        "Time spent generating candidate metadata.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0),
    )
    generation_fallbacks = Counter(
        "pdfnotary_generation_fallback_total",
        "Notarizations that used the deterministic fallback metadata.",
    )
    notarization_latency = Histogram(
        "pdfnotary_notarization_duration_seconds",
        "End-to-end notarization time.",
        buckets=(0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
    )
    notarization_aborts = Counter(
        "pdfnotary_notarization_aborted_total",
        "Notarizations that ended in the aborted state.",
        ["reason"],
    )
    verification_lookups = Counter(
        "pdfnotary_verification_total",
        "Verification requests by identifier kind and lookup status.",
        ["kind", "status"],
    )

    @classmethod
    def observe_extraction(cls, duration_seconds: float, page_count: int) -> None:
        cls.extraction_latency.observe(duration_seconds)
        cls.extracted_pages.observe(page_count)

    @classmethod
    def observe_generation(cls, duration_seconds: float, *, used_fallback: bool) -> None:
        cls.generation_latency.observe(duration_seconds)
        if used_fallback:
            cls.generation_fallbacks.inc()

    @classmethod
    def observe_notarization(cls, duration_seconds: float) -> None:
        cls.notarization_latency.observe(duration_seconds)

    @classmethod
    def observe_abort(cls, reason: str) -> None:
        cls.notarization_aborts.labels(reason=reason).inc()

    @classmethod
    def observe_verification(cls, kind: str, status: str) -> None:
        cls.verification_lookups.labels(kind=kind, status=status).inc()


class TimedSection:
    """Context manager capturing elapsed time for metrics."""

    def __init__(self, callback) -> None:
        self._callback = callback
        self._start = 0.0

    def __enter__(self) -> "TimedSection":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        duration = time.perf_counter() - self._start
        self._callback(duration)


__all__ = [
    "PipelineMetrics",
    "TimedSection",
    "bind_correlation_id",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
]
