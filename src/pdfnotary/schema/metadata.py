"""Normalization of arbitrary candidate metadata into :class:`MetadataRecord`."""

from __future__ import annotations

import json
from typing import Any, Mapping

from pdfnotary.models import METADATA_FIELDS, SEQUENCE_FIELDS, MetadataRecord


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return ""


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return _safe_str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
        except Exception:
            # Mixed key types, circular containers or unprintable members.
            return _safe_str(value)
    return _safe_str(value)


def _coerce_sequence(value: Any) -> tuple[str, ...]:
    # Scalars are not wrapped: a lone string for "tags" normalizes to no tags.
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(_coerce_text(item) for item in value)


def normalize_metadata(candidate: Any) -> MetadataRecord:
    """Map an arbitrary candidate onto the fixed metadata schema.

    Total over its input: missing keys, ``None`` and wrong types degrade to
    empty values instead of raising. Keys outside the schema are ignored.
    """

    source: Mapping[str, Any] = candidate if isinstance(candidate, Mapping) else {}
    values: dict[str, Any] = {}
    for name in METADATA_FIELDS:
        raw = source.get(name)
        if name in SEQUENCE_FIELDS:
            values[name] = _coerce_sequence(raw)
        else:
            values[name] = _coerce_text(raw).strip()
    return MetadataRecord(**values)


__all__ = ["normalize_metadata"]
