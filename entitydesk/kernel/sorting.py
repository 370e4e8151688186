"""
EntityDesk Kernel -- Sort Engine

Orders the filtered records by one key. Comparison, tried in order:
numeric when both values parse as numbers, by timestamp when both parse
as dates, otherwise case-sensitive string order. Missing values always
go last, whatever the direction. The sort is stable in both directions.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import tzinfo
from functools import cmp_to_key
from typing import Any

from entitydesk.kernel.coercion import parse_datetime, to_number, to_text
from entitydesk.kernel.types import Record


def compare_values(a: Any, b: Any, tz: tzinfo | None = None) -> int:
    """Three-way compare of two present values (ascending)."""
    a_num = to_number(a)
    b_num = to_number(b)
    if a_num is not None and b_num is not None:
        return (a_num > b_num) - (a_num < b_num)

    a_date = parse_datetime(a, tz)
    b_date = parse_datetime(b, tz)
    if a_date is not None and b_date is not None:
        return (a_date > b_date) - (a_date < b_date)

    a_text = to_text(a)
    b_text = to_text(b)
    return (a_text > b_text) - (a_text < b_text)


def apply_sort(
    records: Iterable[Record],
    key: str = "id",
    order: str = "desc",
    tz: tzinfo | None = None,
) -> list[Record]:
    """Return a new, sorted list. Records with equal keys keep their order."""
    present: list[Record] = []
    missing: list[Record] = []
    for record in records:
        if record.get(key) is None:
            missing.append(record)
        else:
            present.append(record)

    direction = -1 if order == "desc" else 1

    def _cmp(left: Record, right: Record) -> int:
        return compare_values(left[key], right[key], tz) * direction

    present.sort(key=cmp_to_key(_cmp))
    return present + missing
