"""Stock report: value per branch and the low-stock list."""

from __future__ import annotations

from entitydesk.export.aggregate import group_by, money, number_of, relation_label
from entitydesk.export.document import ExportContext, ExportTemplate, Metric, Section

DEFAULT_LOW_STOCK = 5


def stock_value(record) -> float | None:
    quantity = number_of(record, ("quantity",))
    cost = number_of(record, ("cost",))
    if quantity is None or cost is None:
        return None
    return float(quantity) * float(cost)


class InventoryTemplate(ExportTemplate):
    name = "inventory"

    def threshold(self, ctx: ExportContext) -> float:
        return float(ctx.options.get("low_stock_threshold", DEFAULT_LOW_STOCK))

    def metrics(self, ctx: ExportContext) -> list[Metric]:
        quantities = [q for q in (number_of(r, ("quantity",)) for r in ctx.records) if q is not None]
        values = [v for v in (stock_value(r) for r in ctx.records) if v is not None]
        low = [q for q in quantities if q <= self.threshold(ctx)]
        return [
            Metric("Items", str(len(ctx.records))),
            Metric("Total quantity", f"{sum(quantities):,.0f}"),
            Metric("Stock value", money(sum(values)), "success"),
            Metric("Low stock", str(len(low)), "warning" if low else "default"),
        ]

    def branch_section(self, ctx: ExportContext) -> Section:
        rows = []
        for label, records in group_by(ctx.records, lambda r: relation_label(r, "branchId")).items():
            quantities = [q for q in (number_of(r, ("quantity",)) for r in records) if q is not None]
            values = [v for v in (stock_value(r) for r in records) if v is not None]
            rows.append([label, len(records), f"{sum(quantities):,.0f}", money(sum(values))])
        return Section(
            title="By branch",
            headers=["Branch", "Items", "Quantity", "Stock value"],
            rows=rows,
            note="Stock value counts items whose quantity and cost are both numbers.",
        )

    def low_stock_section(self, ctx: ExportContext) -> Section:
        threshold = self.threshold(ctx)
        flagged = []
        for record in ctx.records:
            quantity = number_of(record, ("quantity",))
            if quantity is not None and quantity <= threshold:
                flagged.append((quantity, record))
        flagged.sort(key=lambda pair: pair[0])
        rows = [
            [
                record.get("sku") or "-",
                record.get("name") or "-",
                relation_label(record, "branchId"),
                f"{quantity:g}",
                record.get("unit") or "",
            ]
            for quantity, record in flagged
        ]
        return Section(
            title="Low stock",
            headers=["SKU", "Item", "Branch", "Quantity", "Unit"],
            rows=rows,
            note=f"Quantity at or below {threshold:g}.",
        )

    def sections(self, ctx: ExportContext) -> list[Section]:
        return [self.branch_section(ctx), self.low_stock_section(ctx)]
