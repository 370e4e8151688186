"""
EntityDesk Kernel -- Cell Formatting

Turns record values into display text for the list view and the exports.

Columns reference renderers by name so schemas stay plain data:

    ColumnConfig("status", "Status", render="status")

Register more with `register_renderer(name, fn)` where fn(record, key, tz)
returns the display value. `tz` is the display timezone (None = local).
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import tzinfo
from typing import Any

from entitydesk.kernel.coercion import normalize_boolean, parse_datetime
from entitydesk.kernel.types import ColumnConfig, Record

EMPTY_CELL = "-"
DISPLAY_DATETIME_FORMAT = "%d/%m/%Y %H:%M"
LIST_TEXT_LIMIT = 32

# Keys tried, in order, to name an embedded related object.
EMBEDDED_LABEL_KEYS = ("name", "title", "email", "phone", "id")

_ISO_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}T")

STATUS_LABELS: dict[str, str] = {
    "scheduled": "Scheduled",
    "completed": "Completed",
    "cancelled": "Cancelled",
    "pending": "Pending",
    "paid": "Paid",
    "refunded": "Refunded",
}

STATUS_TONES: dict[str, str] = {
    "scheduled": "warning",
    "completed": "success",
    "cancelled": "error",
    "pending": "warning",
    "paid": "success",
    "refunded": "error",
}


def format_datetime(value: Any, tz: tzinfo | None = None) -> str:
    if value is None or value == "":
        return EMPTY_CELL
    parsed = parse_datetime(value, tz)
    if parsed is None:
        return str(value)
    return parsed.astimezone(tz).strftime(DISPLAY_DATETIME_FORMAT)


def embedded_label(value: dict[str, Any]) -> str:
    """Name an embedded object by its first present label key, else dump it."""
    for key in EMBEDDED_LABEL_KEYS:
        candidate = value.get(key)
        if candidate is not None and candidate != "":
            return str(candidate)
    return json.dumps(value, ensure_ascii=False, sort_keys=True, default=str)


def format_value(value: Any, limit: int | None = None, tz: tzinfo | None = None) -> str:
    """
    Generic display text for a raw value. `limit` truncates long text
    (list view); exports pass no limit.
    """
    if value is None:
        return EMPTY_CELL
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, dict):
        return embedded_label(value)
    if isinstance(value, list):
        return ", ".join(format_value(item, tz=tz) for item in value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value)
    if _ISO_PREFIX.match(text):
        return format_datetime(text, tz)
    if limit is not None and len(text) > limit:
        return f"{text[:limit]}..."
    return text


# ---------------------------------------------------------------------------
# Named renderers
# ---------------------------------------------------------------------------

CellRenderer = Callable[[Record, str, tzinfo | None], Any]


def _render_status(record: Record, key: str, tz: tzinfo | None = None) -> str:
    value = str(record.get(key) or "")
    return STATUS_LABELS.get(value, value) or EMPTY_CELL


def _render_active(record: Record, key: str, tz: tzinfo | None = None) -> str:
    flag = normalize_boolean(record.get(key))
    if flag is None:
        return format_value(record.get(key))
    return "Active" if flag else "Inactive"


def _render_relation(record: Record, key: str, tz: tzinfo | None = None) -> str:
    """`branchId` column showing the embedded branch's name when present."""
    base = key[:-2] if key.endswith("Id") else key
    embedded = record.get(base)
    if isinstance(embedded, dict):
        return embedded_label(embedded)
    return format_value(record.get(key))


def _render_money(record: Record, key: str, tz: tzinfo | None = None) -> str:
    value = record.get(key)
    try:
        return f"{float(value):,.2f}"
    except (TypeError, ValueError):
        return format_value(value)


_RENDERERS: dict[str, CellRenderer] = {
    "status": _render_status,
    "active": _render_active,
    "relation": _render_relation,
    "money": _render_money,
    "datetime": lambda record, key, tz=None: format_datetime(record.get(key), tz),
}


def register_renderer(name: str, fn: CellRenderer) -> None:
    _RENDERERS[name] = fn


def get_renderer(name: str) -> CellRenderer | None:
    return _RENDERERS.get(name)


def render_cell(
    column: ColumnConfig,
    record: Record,
    limit: int | None = None,
    tz: tzinfo | None = None,
) -> Any:
    """
    Display value for one column of one record, with timestamps shown in
    `tz`. Falls back to the generic formatter when the column has no
    renderer or names an unknown one.
    """
    render = column.render
    if callable(render):
        return render(record)
    if isinstance(render, str):
        renderer = _RENDERERS.get(render)
        if renderer is not None:
            return renderer(record, column.key, tz)
    return format_value(record.get(column.key), limit=limit)
