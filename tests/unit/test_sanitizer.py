"""Unit tests for the record sanitizer."""

from __future__ import annotations

import json

from bulk_ingest.sanitizer import STRIPPED_FIELDS, sanitize


def test_sanitize_removes_score_from_index_action() -> None:
    """A relevance score should be dropped from the index action."""
    record = json.loads('{"index":{"_score":1,"other":2}}')

    assert sanitize(record) == {"index": {"other": 2}}


def test_sanitize_removes_all_stripped_fields() -> None:
    """All four search-time fields should go; everything else should stay."""
    action = {field: "x" for field in STRIPPED_FIELDS}
    action.update({"_index": "searches", "_id": "42"})

    cleaned = sanitize({"index": action})

    assert cleaned == {"index": {"_index": "searches", "_id": "42"}}


def test_sanitize_leaves_records_without_index_unchanged() -> None:
    """Document lines and other actions should pass through byte-identical."""
    record = {"_score": 3, "search.searchTerm.raw": "shoes", "create": {"_id": "1"}}
    before = json.dumps(record, sort_keys=True)

    assert json.dumps(sanitize(record), sort_keys=True) == before


def test_sanitize_ignores_non_mapping_index_value() -> None:
    """An index key holding a scalar is not an action and should be left alone."""
    assert sanitize({"index": "products"}) == {"index": "products"}
    assert sanitize([1, 2]) == [1, 2]


def test_sanitize_is_idempotent() -> None:
    """Sanitizing twice should equal sanitizing once."""
    record = {"index": {"_score": 0.5, "search.refinements.refinement.name.raw": "c"}, "a": 1}

    once = sanitize(record)

    assert sanitize(once) == once


def test_sanitize_does_not_mutate_input() -> None:
    """The caller's record should keep its fields."""
    record = {"index": {"_score": 1, "_id": "7"}}

    sanitize(record)

    assert record == {"index": {"_score": 1, "_id": "7"}}
