"""
EntityDesk Kernel -- Value Coercion

Pure functions converting between the wire representation (what the
collection endpoint sends and accepts) and the edit representation (what
the form holds while a value is being edited).

Coercion is lenient on purpose. A value that cannot be parsed is dropped
(or read as "no value") rather than raised: an unparsable number never
reaches the outgoing payload, an unparsable date never matches a date
filter. Callers that depend on numeric fields must validate upstream.

Naive timestamps are read in local time. Every function that touches
local time accepts an optional `tz` so tests can pin the zone.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import UTC, date, datetime, time, tzinfo
from typing import Any

from entitydesk.kernel.types import FieldConfig, is_blank

logger = logging.getLogger(__name__)

EDIT_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no"}


class _Omit:
    """Sentinel: the key must not appear in the outgoing payload."""

    def __repr__(self) -> str:
        return "OMIT"

    def __bool__(self) -> bool:
        return False


OMIT = _Omit()


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _localize(dt: datetime, tz: tzinfo | None) -> datetime:
    if dt.tzinfo is not None:
        return dt
    if tz is not None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone()


def parse_datetime(value: Any, tz: tzinfo | None = None) -> datetime | None:
    """
    Parse a wire value into an aware datetime.
    Returns None for missing, non-string or unparsable input.
    """
    if isinstance(value, datetime):
        return _localize(value, tz)
    if isinstance(value, date):
        return _localize(datetime.combine(value, time.min), tz)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return _localize(parsed, tz)


def _parse_day(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if is_blank(value):
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def day_start(value: Any, tz: tzinfo | None = None) -> datetime | None:
    """Local midnight of a "YYYY-MM-DD" bound, or None."""
    day = _parse_day(value)
    if day is None:
        return None
    return _localize(datetime.combine(day, time.min), tz)


def day_end(value: Any, tz: tzinfo | None = None) -> datetime | None:
    """Local 23:59:59.999 of a "YYYY-MM-DD" bound, or None."""
    day = _parse_day(value)
    if day is None:
        return None
    return _localize(datetime.combine(day, time(23, 59, 59, 999000)), tz)


def to_edit_datetime(value: Any, tz: tzinfo | None = None) -> str:
    """
    Wire -> edit: ISO-8601 timestamp to a local "YYYY-MM-DDTHH:MM" string.
    Invalid or missing input yields "".
    """
    parsed = parse_datetime(value, tz)
    if parsed is None:
        return ""
    return parsed.astimezone(tz).strftime(EDIT_DATETIME_FORMAT)


def from_edit_datetime(value: Any, tz: tzinfo | None = None) -> str | None:
    """
    Edit -> wire: local date-time string to a UTC ISO string
    ("2024-03-10T08:30:00.000Z"). Empty or unparsable input yields None.
    """
    if is_blank(value):
        return None
    parsed = parse_datetime(str(value), tz)
    if parsed is None:
        return None
    utc = parsed.astimezone(UTC)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


# ---------------------------------------------------------------------------
# Booleans, numbers, text
# ---------------------------------------------------------------------------


def normalize_boolean(value: Any) -> bool | None:
    """
    Ternary boolean read. True/False for the recognised spellings
    (True, False, 1, 0, "true", "false", "1", "0", "yes", "no"; strings are
    trimmed and case-insensitive). Anything else is None (unknown).
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in _TRUE_STRINGS:
            return True
        if normalized in _FALSE_STRINGS:
            return False
    return None


def _tidy_number(number: float) -> int | float:
    if number.is_integer():
        return int(number)
    return number


def to_number(value: Any) -> int | float | None:
    """
    Numeric read. Booleans count as 1/0, strings are trimmed.
    Missing, empty, non-finite or unparsable input yields None.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _tidy_number(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return _tidy_number(number) if math.isfinite(number) else None
    return None


def to_text(value: Any) -> str:
    """Textual form of a record value, used for search and string compares."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


# ---------------------------------------------------------------------------
# Edit -> wire, per field
# ---------------------------------------------------------------------------


def to_wire(field: FieldConfig, value: Any, tz: tzinfo | None = None) -> Any:
    """
    Convert one form value for the outgoing payload.

    Returns OMIT when the key must be left out: an empty value on a field
    that is not configured to send null, or a value that failed to coerce.
    An empty value on a `send_null_when_empty` field becomes None.
    """
    if field.type == "datetime":
        value = from_edit_datetime(value, tz)
    elif field.type == "number" and not is_blank(value):
        number = to_number(value)
        if number is None:
            logger.debug("coercion: dropping unparsable number for %s: %r", field.key, value)
            return OMIT
        value = number
    elif field.type == "boolean" and not is_blank(value):
        flag = normalize_boolean(value)
        if flag is None:
            logger.debug("coercion: dropping unrecognised boolean for %s: %r", field.key, value)
            return OMIT
        value = flag
    elif field.type == "dependent-choice" and isinstance(value, str):
        number = to_number(value)
        if number is not None:
            value = number

    if is_blank(value):
        return None if field.send_null_when_empty else OMIT
    return value


def to_edit(field: FieldConfig, value: Any, tz: tzinfo | None = None) -> Any:
    """Wire -> edit for one field. Only datetimes change shape."""
    if field.type == "datetime":
        return to_edit_datetime(value, tz)
    return value
