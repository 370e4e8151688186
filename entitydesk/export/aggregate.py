"""
Aggregation helpers shared by the export templates.

Every helper is per-aggregate lenient: a record whose amount or date does
not parse is left out of the aggregate that needed it, and of nothing
else. The row table always lists every record.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Any

from entitydesk.kernel.cells import embedded_label
from entitydesk.kernel.coercion import parse_datetime, to_number
from entitydesk.kernel.types import Record, is_blank

UNASSIGNED = "Unassigned"

PERIOD_FORMATS = {
    "day": "%Y-%m-%d",
    "month": "%Y-%m",
    "year": "%Y",
}


def first_present(record: Record, keys: Sequence[str]) -> Any:
    for key in keys:
        value = record.get(key)
        if not is_blank(value):
            return value
    return None


def has_any(records: Iterable[Record], keys: Sequence[str]) -> bool:
    return any(first_present(record, keys) is not None for record in records)


def number_of(record: Record, keys: Sequence[str]) -> int | float | None:
    return to_number(first_present(record, keys))


def date_of(record: Record, keys: Sequence[str], tz: tzinfo | None = None) -> datetime | None:
    return parse_datetime(first_present(record, keys), tz)


def period_key(moment: datetime, period: str, tz: tzinfo | None = None) -> str:
    return moment.astimezone(tz).strftime(PERIOD_FORMATS[period])


def relation_label(record: Record, key: str) -> str:
    """
    Label of a related entity: the embedded object's name when the record
    carries one, else "#<id>", else "Unassigned".
    """
    base = key[:-2] if key.endswith("Id") else key
    for candidate in (base, base[:1].upper() + base[1:]):
        embedded = record.get(candidate)
        if isinstance(embedded, dict):
            return embedded_label(embedded)
    related_id = record.get(f"{base}Id")
    if not is_blank(related_id):
        return f"#{related_id}"
    value = record.get(key)
    if is_blank(value) or isinstance(value, dict):
        return UNASSIGNED
    return str(value)


def group_by(records: Iterable[Record], key_fn: Callable[[Record], str]) -> dict[str, list[Record]]:
    """Group in first-seen order."""
    groups: dict[str, list[Record]] = {}
    for record in records:
        groups.setdefault(key_fn(record), []).append(record)
    return groups


def rate(part: int | float, total: int | float) -> str:
    if not total:
        return "-"
    return f"{part / total * 100:.1f}%"


def money(value: int | float) -> str:
    return f"{value:,.2f}"


# ---------------------------------------------------------------------------
# Income / expense
# ---------------------------------------------------------------------------


@dataclass
class Ledger:
    """Running income/expense totals for one bucket."""

    income: float = 0.0
    expense: float = 0.0
    count: int = 0

    @property
    def net(self) -> float:
        return self.income - self.expense

    def add(self, kind: str, amount: float) -> None:
        if kind == "income":
            self.income += amount
        else:
            self.expense += amount
        self.count += 1

    def as_row(self, label: str) -> list[str]:
        return [label, money(self.income), money(self.expense), money(self.net), str(self.count)]


LEDGER_HEADERS = ["Income", "Expense", "Net", "Records"]


def ledger_entry(record: Record, amount_keys: Sequence[str], type_key: str) -> tuple[str, float] | None:
    """(kind, amount) for an income/expense record, or None if it cannot count."""
    kind = str(record.get(type_key) or "").strip().lower()
    if kind not in ("income", "expense"):
        return None
    amount = number_of(record, amount_keys)
    if amount is None:
        return None
    return kind, float(amount)


def ledger_total(records: Iterable[Record], amount_keys: Sequence[str], type_key: str) -> Ledger:
    total = Ledger()
    for record in records:
        entry = ledger_entry(record, amount_keys, type_key)
        if entry is not None:
            total.add(*entry)
    return total


def ledger_by_period(
    records: Iterable[Record],
    period: str,
    amount_keys: Sequence[str],
    type_key: str,
    date_keys: Sequence[str],
    tz: tzinfo | None = None,
) -> dict[str, Ledger]:
    """Income/expense per day, month or year, newest bucket first."""
    buckets: dict[str, Ledger] = {}
    for record in records:
        entry = ledger_entry(record, amount_keys, type_key)
        if entry is None:
            continue
        moment = date_of(record, date_keys, tz)
        if moment is None:
            continue
        buckets.setdefault(period_key(moment, period, tz), Ledger()).add(*entry)
    return dict(sorted(buckets.items(), reverse=True))


def ledger_by(
    records: Iterable[Record],
    key_fn: Callable[[Record], str],
    amount_keys: Sequence[str],
    type_key: str,
) -> dict[str, Ledger]:
    buckets: dict[str, Ledger] = {}
    for record in records:
        entry = ledger_entry(record, amount_keys, type_key)
        if entry is None:
            continue
        buckets.setdefault(key_fn(record), Ledger()).add(*entry)
    return buckets
