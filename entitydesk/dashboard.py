"""
EntityDesk dashboard -- the at-a-glance summary across every collection.

  counts         one page per collection the role may see, "N+" when the
                 page came back full
  month to date  income, expense and net of transactions since the 1st
  net by day     the last NET_DAYS local days, oldest first
  appointments   count per status

Collections are fetched concurrently. A collection that fails shows "-"
and its error is listed; the rest of the dashboard still renders.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta, tzinfo

from entitydesk.api.errors import ApiError, AuthenticationError
from entitydesk.config import settings
from entitydesk.entities import APPOINTMENTS, SCHEMAS, TRANSACTIONS
from entitydesk.export.aggregate import Ledger, date_of, ledger_entry, period_key
from entitydesk.kernel.coercion import to_number
from entitydesk.kernel.reveal import count_label
from entitydesk.kernel.types import EntitySchema, Record

logger = logging.getLogger(__name__)

NET_DAYS = 14
UNAVAILABLE = "-"

AMOUNT_KEYS = ("amount",)
DATE_KEYS = ("occurredAt",)
TYPE_KEY = "type"


@dataclass
class Dashboard:
    counts: dict[str, str] = field(default_factory=dict)
    month: Ledger = field(default_factory=Ledger)
    month_start: datetime | None = None
    transaction_count: int = 0
    appointment_count: int = 0
    net_by_day: list[tuple[str, float]] = field(default_factory=list)
    appointment_status: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    auth_failed: bool = False


def visible_schemas(role: str | None) -> list[EntitySchema]:
    """Collections shown to `role`; role-gated ones need an exact match."""
    return [s for s in SCHEMAS.values() if s.required_role is None or s.required_role == role]


def month_start_of(now: datetime, tz: tzinfo | None = None) -> datetime:
    local = now.astimezone(tz)
    return local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def month_to_date(
    transactions: list[Record],
    now: datetime,
    tz: tzinfo | None = None,
) -> tuple[Ledger, int]:
    """
    Income/expense between the local 1st of the month and `now`, plus the
    number of transactions with a usable amount and date overall.
    """
    start = month_start_of(now, tz)
    ledger = Ledger()
    usable = 0
    for record in transactions:
        if to_number(record.get("amount")) is None:
            continue
        moment = date_of(record, DATE_KEYS, tz)
        if moment is None:
            continue
        usable += 1
        entry = ledger_entry(record, AMOUNT_KEYS, TYPE_KEY)
        if entry is not None and start <= moment <= now:
            ledger.add(*entry)
    return ledger, usable


def net_by_day(
    transactions: list[Record],
    now: datetime,
    tz: tzinfo | None = None,
    days: int = NET_DAYS,
) -> list[tuple[str, float]]:
    today = now.astimezone(tz)
    keys = [period_key(today - timedelta(days=offset), "day", tz) for offset in range(days - 1, -1, -1)]
    buckets = {key: Ledger() for key in keys}
    for record in transactions:
        entry = ledger_entry(record, AMOUNT_KEYS, TYPE_KEY)
        moment = date_of(record, DATE_KEYS, tz)
        if entry is None or moment is None:
            continue
        bucket = buckets.get(period_key(moment, "day", tz))
        if bucket is not None:
            bucket.add(*entry)
    return [(key, buckets[key].net) for key in keys]


def status_breakdown(appointments: list[Record]) -> dict[str, int]:
    return dict(Counter(str(record.get("status") or "unknown") for record in appointments))


async def load_dashboard(
    client,
    role: str | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
    page_size: int | None = None,
    kpi_limit: int | None = None,
) -> Dashboard:
    """
    Fetch every collection `role` may see plus the KPI pages and build the
    summary. `client` is anything with an async `list(endpoint, limit=)`.
    Only ApiError is absorbed; anything else propagates.
    """
    page_size = page_size or settings.PAGE_SIZE
    kpi_limit = kpi_limit or settings.KPI_PAGE_SIZE
    now = now or datetime.now(UTC)
    schemas = visible_schemas(role)

    results = await asyncio.gather(
        *(client.list(schema.endpoint, limit=page_size) for schema in schemas),
        client.list(TRANSACTIONS.endpoint, limit=kpi_limit),
        client.list(APPOINTMENTS.endpoint, limit=kpi_limit),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, ApiError):
            raise result

    dashboard = Dashboard(month_start=month_start_of(now, tz))
    dashboard.auth_failed = any(isinstance(result, AuthenticationError) for result in results)

    for schema, result in zip(schemas, results):
        if isinstance(result, ApiError):
            logger.warning("dashboard: counting %s failed: %s", schema.endpoint, result)
            dashboard.counts[schema.endpoint] = UNAVAILABLE
            dashboard.errors.append(f"{schema.title}: {result.message}")
        else:
            dashboard.counts[schema.endpoint] = count_label(len(result), page_size)

    transactions, appointments = results[len(schemas):]
    if isinstance(transactions, ApiError):
        logger.warning("dashboard: loading transactions failed: %s", transactions)
        dashboard.errors.append(f"{TRANSACTIONS.title} summary: {transactions.message}")
    else:
        dashboard.month, dashboard.transaction_count = month_to_date(transactions, now, tz)
        dashboard.net_by_day = net_by_day(transactions, now, tz)
    if isinstance(appointments, ApiError):
        logger.warning("dashboard: loading appointments failed: %s", appointments)
        dashboard.errors.append(f"{APPOINTMENTS.title} summary: {appointments.message}")
    else:
        dashboard.appointment_count = len(appointments)
        dashboard.appointment_status = status_breakdown(appointments)

    logger.debug("dashboard: %d collections, %d errors", len(schemas), len(dashboard.errors))
    return dashboard
