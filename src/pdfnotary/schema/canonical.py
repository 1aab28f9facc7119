"""Deterministic serialization of normalized metadata.

The output is a whitespace-free JSON text with object keys sorted by code
point (which is the same order as comparing their UTF-8 bytes) and sequences
kept in their given order. Only strings, ``None`` (rendered as ``""``),
lists/tuples and string-keyed mappings are accepted. Numbers and booleans must
already have been stringified by the normalizer.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from pdfnotary.hashing import utf8_bytes


class UnsupportedType(TypeError):
    """Raised when a value outside the canonical schema reaches the serializer."""


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def canonicalize(value: Any) -> str:
    """Return the canonical text form of a normalized value."""

    if value is None:
        return '""'
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, Mapping):
        keys = list(value)
        for key in keys:
            if not isinstance(key, str):
                raise UnsupportedType(f"Mapping keys must be strings, got {type(key).__name__}")
        parts = [f"{_quote(key)}:{canonicalize(value[key])}" for key in sorted(keys)]
        return "{" + ",".join(parts) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonicalize(item) for item in value) + "]"
    raise UnsupportedType(f"Cannot canonicalize value of type {type(value).__name__}")


def canonical_bytes(value: Any) -> bytes:
    """UTF-8 encoding of :func:`canonicalize`, the input to the metadata hash."""

    return utf8_bytes(canonicalize(value))


__all__ = ["UnsupportedType", "canonical_bytes", "canonicalize"]
