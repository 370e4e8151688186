"""
Generic export template: the row table plus income/expense summaries by
day, month and year, and by payment channel and branch when the records
carry those dimensions. Sections with nothing to summarise are left out.
"""

from __future__ import annotations

from entitydesk.export.aggregate import (
    LEDGER_HEADERS,
    has_any,
    ledger_by,
    ledger_by_period,
    ledger_entry,
    ledger_total,
    money,
    relation_label,
)
from entitydesk.export.document import ExportContext, ExportTemplate, Metric, Section
from entitydesk.kernel.coercion import to_text

AMOUNT_KEYS = ("amount", "total", "price")
DATE_KEYS = ("occurredAt", "paidAt", "createdAt", "startAt", "date")
CHANNEL_KEYS = ("paymentMethod", "paymentChannel", "channel", "method")
BRANCH_KEYS = ("branch", "branchId", "Branch", "BranchId")
TYPE_KEY = "type"

PERIOD_TITLES = {
    "day": "Daily summary",
    "month": "Monthly summary",
    "year": "Yearly summary",
}


def channel_label(record) -> str:
    for key in CHANNEL_KEYS:
        value = record.get(key)
        if value is not None and value != "":
            return to_text(value)
    return "Unspecified"


class GenericTemplate(ExportTemplate):
    name = "generic"

    amount_keys = AMOUNT_KEYS
    date_keys = DATE_KEYS
    type_key = TYPE_KEY

    def _ledger_records(self, ctx: ExportContext):
        return [r for r in ctx.records if ledger_entry(r, self.amount_keys, self.type_key) is not None]

    def metrics(self, ctx: ExportContext) -> list[Metric]:
        total = ledger_total(ctx.records, self.amount_keys, self.type_key)
        if not total.count:
            return []
        return [
            Metric("Income", money(total.income), "success"),
            Metric("Expense", money(total.expense), "error"),
            Metric("Net", money(total.net), "success" if total.net >= 0 else "error"),
            Metric("Counted records", str(total.count)),
        ]

    def period_sections(self, ctx: ExportContext) -> list[Section]:
        sections = []
        for period, title in PERIOD_TITLES.items():
            buckets = ledger_by_period(
                ctx.records, period, self.amount_keys, self.type_key, self.date_keys, ctx.tz
            )
            if not buckets:
                continue
            sections.append(
                Section(
                    title=title,
                    headers=[period.capitalize(), *LEDGER_HEADERS],
                    rows=[ledger.as_row(label) for label, ledger in buckets.items()],
                )
            )
        return sections

    def dimension_sections(self, ctx: ExportContext) -> list[Section]:
        sections = []
        ledger_records = self._ledger_records(ctx)
        if has_any(ledger_records, CHANNEL_KEYS):
            buckets = ledger_by(ledger_records, channel_label, self.amount_keys, self.type_key)
            if buckets:
                sections.append(
                    Section(
                        title="By payment channel",
                        headers=["Channel", *LEDGER_HEADERS],
                        rows=[ledger.as_row(label) for label, ledger in buckets.items()],
                    )
                )
        if has_any(ledger_records, BRANCH_KEYS):
            buckets = ledger_by(
                ledger_records,
                lambda record: relation_label(record, "branchId"),
                self.amount_keys,
                self.type_key,
            )
            if buckets:
                sections.append(
                    Section(
                        title="By branch",
                        headers=["Branch", *LEDGER_HEADERS],
                        rows=[ledger.as_row(label) for label, ledger in buckets.items()],
                    )
                )
        return sections

    def sections(self, ctx: ExportContext) -> list[Section]:
        return self.period_sections(ctx) + self.dimension_sections(ctx)
