"""Document text extraction."""

from .service import (
    DEFAULT_PAGE_LIMIT,
    ExtractionError,
    PdfTextExtractor,
    TextExtractor,
    extract_path,
)

__all__ = [
    "DEFAULT_PAGE_LIMIT",
    "ExtractionError",
    "PdfTextExtractor",
    "TextExtractor",
    "extract_path",
]
