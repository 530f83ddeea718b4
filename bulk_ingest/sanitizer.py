"""Strip search-time fields from bulk action lines before they are resubmitted."""
from typing import Any

ACTION_KEY = "index"
# Present in exported hits but rejected by the store as action metadata
STRIPPED_FIELDS = (
    "_score",
    "search.searchTerm.raw",
    "search.refinements.refinement.value.raw",
    "search.refinements.refinement.name.raw",
)


def sanitize(record: Any) -> Any:
    """Return record with STRIPPED_FIELDS removed from its "index" object, if it has one.

    Missing fields are ignored and records of any other shape pass through unchanged.
    The input is not modified.
    """
    if not isinstance(record, dict):
        return record
    action = record.get(ACTION_KEY)
    if not isinstance(action, dict):
        return record
    cleaned = {k: v for k, v in action.items() if k not in STRIPPED_FIELDS}
    return {**record, ACTION_KEY: cleaned}
