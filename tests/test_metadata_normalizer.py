"""Tests for metadata normalization."""

from __future__ import annotations

import pytest

from pdfnotary.models import METADATA_FIELDS, MetadataRecord
from pdfnotary.schema import canonicalize, normalize_metadata


class Unprintable:
    def __str__(self) -> str:
        raise RuntimeError("no text form")


def test_missing_fields_become_empty():
    record = normalize_metadata({"title": "Lease", "parties": ["A", "B"], "tags": []})
    assert record.title == "Lease"
    assert record.parties == ("A", "B")
    assert record.tags == ()
    assert record.summary == ""
    assert record.pages_processed == ""


def test_scalars_are_trimmed_and_stringified():
    record = normalize_metadata(
        {
            "title": "  Master Services Agreement \n",
            "pages_processed": 4,
            "extract_confidence": 0.25,
            "doc_type": True,
            "summary": 3.0,
            "date_iso": None,
        },
    )
    assert record.title == "Master Services Agreement"
    assert record.pages_processed == "4"
    assert record.extract_confidence == "0.25"
    assert record.doc_type == "true"
    assert record.summary == "3"
    assert record.date_iso == ""


def test_sequence_fields_do_not_wrap_scalars():
    record = normalize_metadata({"parties": "Acme", "tags": {"a": 1}})
    assert record.parties == ()
    assert record.tags == ()


def test_sequence_elements_are_coerced_in_order():
    record = normalize_metadata({"parties": ["Beta", 2, None, " Acme "], "tags": ("x", "x")})
    assert record.parties == ("Beta", "2", "", " Acme ")
    assert record.tags == ("x", "x")


@pytest.mark.parametrize(
    "candidate",
    [
        None,
        [],
        "title",
        42,
        {"title": object()},
        {"parties": [[1, 2], {"k": "v"}]},
        {"summary": {1: "a", "b": 2}},
        {"summary": [Unprintable()]},
        {"pages_processed": 10**5000},
        {"title": Unprintable()},
        {"summary": {1: Unprintable(), "b": 2}},
        {"tags": [Unprintable()]},
    ],
)
def test_normalization_is_total(candidate):
    record = normalize_metadata(candidate)
    assert isinstance(record, MetadataRecord)
    assert set(record.as_dict()) == set(METADATA_FIELDS)
    canonicalize(record.as_dict())


def test_extraneous_keys_and_order_are_ignored():
    first = normalize_metadata({"title": "Deed", "tags": ["land"], "unexpected": "x"})
    second = normalize_metadata({"tags": ["land"], "title": "Deed"})
    assert first == second


def test_normalizing_a_record_is_idempotent():
    record = normalize_metadata({"title": " Deed ", "parties": ["A"], "pages_processed": 2})
    assert normalize_metadata(record.as_dict()) == record


def test_reversed_candidate_keys_produce_same_canonical_form():
    forward = {"title": 1, "summary": 2}
    reverse = {"summary": 2, "title": 1}
    assert canonicalize(normalize_metadata(forward).as_dict()) == canonicalize(normalize_metadata(reverse).as_dict())


def test_record_is_frozen():
    record = normalize_metadata({"title": "Lease"})
    with pytest.raises(AttributeError):
        record.title = "Other"  # type: ignore[misc]
