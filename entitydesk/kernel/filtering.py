"""
EntityDesk Kernel -- Filter Engine

Pure functions deciding whether a record stays in the list view.

Order per record:
  1. search term (configured search keys, or every key when none)
  2. every configured filter, conjunctively

Evaluation stops at the first failing criterion. Empty filter values are
inert. Date-range filters read two companion values, `<key>From` and
`<key>To`, both inclusive at day granularity in local time.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import tzinfo
from typing import Any

from entitydesk.kernel.coercion import (
    day_end,
    day_start,
    normalize_boolean,
    parse_datetime,
    to_number,
    to_text,
)
from entitydesk.kernel.types import FilterConfig, Record, is_blank

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def apply_filters(
    records: Iterable[Record],
    search_term: str = "",
    search_keys: Sequence[str] = (),
    filters: Sequence[FilterConfig] = (),
    values: dict[str, Any] | None = None,
    tz: tzinfo | None = None,
) -> list[Record]:
    """Keep the records that pass search and every filter. Input order is kept."""
    values = values or {}
    return [
        record
        for record in records
        if record_matches(record, search_term, search_keys, filters, values, tz)
    ]


def record_matches(
    record: Record,
    search_term: str,
    search_keys: Sequence[str],
    filters: Sequence[FilterConfig],
    values: dict[str, Any],
    tz: tzinfo | None = None,
) -> bool:
    if search_term and not matches_search(record, search_term, search_keys):
        return False
    for filter_config in filters:
        if not matches_filter(record, filter_config, values, tz):
            return False
    return True


def matches_search(record: Record, search_term: str, search_keys: Sequence[str] = ()) -> bool:
    """Case-insensitive substring match over the search keys."""
    query = search_term.lower()
    keys = search_keys or list(record.keys())
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if query in _search_text(value).lower():
            return True
    return False


def _search_text(value: Any) -> str:
    """Embedded objects and lists are searched by their values only, never key names."""
    if isinstance(value, dict):
        return " ".join(_search_text(v) for v in value.values() if v is not None)
    if isinstance(value, list):
        return " ".join(_search_text(v) for v in value if v is not None)
    return to_text(value)


def matches_filter(
    record: Record,
    filter_config: FilterConfig,
    values: dict[str, Any],
    tz: tzinfo | None = None,
) -> bool:
    """Evaluate one filter against one record."""
    record_value = record.get(filter_config.key)

    if filter_config.type == "date-range":
        return _matches_date_range(
            record_value,
            values.get(filter_config.from_key),
            values.get(filter_config.to_key),
            tz,
        )

    value = values.get(filter_config.key)
    if is_blank(value):
        return True

    matcher = _MATCHERS.get(filter_config.type, _matches_exact)
    return matcher(record_value, value)


# ---------------------------------------------------------------------------
# Per-type matchers
# ---------------------------------------------------------------------------


def _matches_exact(record_value: Any, value: Any) -> bool:
    return to_text(record_value) == to_text(value)


def _matches_text(record_value: Any, value: Any) -> bool:
    return to_text(value).lower() in to_text(record_value).lower()


def _matches_number(record_value: Any, value: Any) -> bool:
    left = to_number(record_value)
    right = to_number(value)
    if left is None or right is None:
        return False
    return left == right


def _matches_boolean(record_value: Any, value: Any) -> bool:
    record_flag = normalize_boolean(record_value)
    filter_flag = normalize_boolean(value)
    if record_flag is None or filter_flag is None:
        return to_text(record_value) == to_text(value)
    return record_flag == filter_flag


def _matches_date_range(record_value: Any, from_value: Any, to_value: Any, tz: tzinfo | None) -> bool:
    if is_blank(from_value) and is_blank(to_value):
        return True
    record_date = parse_datetime(record_value, tz)
    if record_date is None:
        return False
    lower = day_start(from_value, tz)
    upper = day_end(to_value, tz)
    if lower is not None and record_date < lower:
        return False
    if upper is not None and record_date > upper:
        return False
    return True


_MATCHERS = {
    "exact-match": _matches_exact,
    "dependent-choice": _matches_exact,
    "text": _matches_text,
    "number": _matches_number,
    "boolean": _matches_boolean,
}
