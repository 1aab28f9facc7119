"""PDF text extraction for pdfnotary."""

from __future__ import annotations

import re
import tempfile
import time
import unicodedata
from itertools import islice
from pathlib import Path
from typing import List, Protocol

from langchain_community.document_loaders import PyPDFLoader

from pdfnotary.hashing import utf8_bytes
from pdfnotary.metrics.observability import PipelineMetrics, get_logger
from pdfnotary.models import ExtractionResult

DEFAULT_PAGE_LIMIT = 30


class ExtractionError(RuntimeError):
    """Raised when a document cannot be parsed."""


class TextExtractor(Protocol):
    """Protocol for extraction implementations."""

    def extract(self, content: bytes, page_limit: int = DEFAULT_PAGE_LIMIT) -> ExtractionResult:
        """Return the text of at most ``page_limit`` pages of ``content``."""


def _normalize_text(raw: str) -> str:
    normalized = unicodedata.normalize("NFKC", utf8_bytes(raw).decode("utf-8"))
    normalized = normalized.replace("\u00a0", " ")
    normalized = re.sub(r"\s+", " ", normalized)
    return normalized.strip()


class PdfTextExtractor:
    """Extract page text through LangChain's PyPDF loader."""

    _logger = get_logger("ingestion")

    def __init__(self, password: str | None = None) -> None:
        self._password = password

    def extract(self, content: bytes, page_limit: int = DEFAULT_PAGE_LIMIT) -> ExtractionResult:
        if page_limit < 1:
            raise ValueError("page_limit must be at least 1")

        start = time.perf_counter()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "document.pdf"
            path.write_bytes(content)
            try:
                loader = PyPDFLoader(str(path), password=self._password)
                pages = [document.page_content for document in islice(loader.lazy_load(), page_limit)]
            except Exception as exc:
                raise ExtractionError(f"Failed to read PDF: {exc}") from exc

        page_texts: List[str] = [_normalize_text(page) for page in pages]
        text = "\n".join(page_texts).strip()

        duration = time.perf_counter() - start
        PipelineMetrics.observe_extraction(duration, len(pages))
        self._logger.info(
            "extraction.complete",
            page_count=len(pages),
            text_chars=len(text),
            duration_seconds=duration,
        )
        return ExtractionResult(text=text, pages_processed=len(pages))


def extract_path(path: Path, *, page_limit: int = DEFAULT_PAGE_LIMIT) -> ExtractionResult:
    """Convenience helper for tests and ad-hoc extraction."""

    return PdfTextExtractor().extract(Path(path).read_bytes(), page_limit=page_limit)
