"""Metadata schema: normalization and canonical serialization."""

from .canonical import UnsupportedType, canonical_bytes, canonicalize
from .metadata import normalize_metadata

__all__ = [
    "UnsupportedType",
    "canonical_bytes",
    "canonicalize",
    "normalize_metadata",
]
