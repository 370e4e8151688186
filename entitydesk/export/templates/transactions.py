"""Income/expense ledger report."""

from __future__ import annotations

from collections import Counter

from entitydesk.export.aggregate import LEDGER_HEADERS, ledger_by, money, number_of
from entitydesk.export.document import ExportContext, Section
from entitydesk.export.templates.generic import GenericTemplate
from entitydesk.kernel.cells import STATUS_LABELS


def _category(record) -> str:
    value = record.get("category")
    return str(value) if value not in (None, "") else "Uncategorised"


class TransactionsTemplate(GenericTemplate):
    name = "transactions"

    def status_section(self, ctx: ExportContext) -> Section | None:
        counts: Counter[str] = Counter()
        amounts: dict[str, float] = {}
        for record in ctx.records:
            status = str(record.get("status") or "unknown")
            counts[status] += 1
            amount = number_of(record, self.amount_keys)
            if amount is not None:
                amounts[status] = amounts.get(status, 0.0) + float(amount)
        if not counts:
            return None
        return Section(
            title="By status",
            headers=["Status", "Records", "Amount"],
            rows=[
                [STATUS_LABELS.get(status, status), str(count), money(amounts.get(status, 0.0))]
                for status, count in counts.most_common()
            ],
            note="Amount totals skip records whose amount is not a number.",
        )

    def category_section(self, ctx: ExportContext) -> Section | None:
        buckets = ledger_by(self._ledger_records(ctx), _category, self.amount_keys, self.type_key)
        if not buckets:
            return None
        return Section(
            title="By category",
            headers=["Category", *LEDGER_HEADERS],
            rows=[ledger.as_row(label) for label, ledger in buckets.items()],
        )

    def sections(self, ctx: ExportContext) -> list[Section]:
        sections = self.period_sections(ctx)
        for extra in (self.category_section(ctx), self.status_section(ctx)):
            if extra is not None:
                sections.append(extra)
        return sections + self.dimension_sections(ctx)
