"""Branch directory report."""

from __future__ import annotations

from entitydesk.export.document import ExportContext, ExportTemplate, Metric, Section
from entitydesk.kernel.coercion import normalize_boolean


def _active_split(records) -> tuple[int, int, int]:
    active = inactive = unknown = 0
    for record in records:
        flag = normalize_boolean(record.get("isActive"))
        if flag is True:
            active += 1
        elif flag is False:
            inactive += 1
        else:
            unknown += 1
    return active, inactive, unknown


class BranchesTemplate(ExportTemplate):
    name = "branches"

    def metrics(self, ctx: ExportContext) -> list[Metric]:
        active, inactive, _unknown = _active_split(ctx.records)
        return [
            Metric("Branches", str(len(ctx.records))),
            Metric("Active", str(active), "success"),
            Metric("Inactive", str(inactive), "error" if inactive else "default"),
        ]

    def sections(self, ctx: ExportContext) -> list[Section]:
        active, inactive, unknown = _active_split(ctx.records)
        status_rows = [["Active", active], ["Inactive", inactive]]
        if unknown:
            status_rows.append(["Unknown", unknown])

        incomplete = []
        for record in ctx.records:
            missing = [label for key, label in (("address", "address"), ("phone", "phone")) if not record.get(key)]
            if missing:
                incomplete.append([record.get("name") or f"#{record.get('id')}", ", ".join(missing)])

        return [
            Section(title="Status", headers=["Status", "Branches"], rows=status_rows),
            Section(title="Missing contact details", headers=["Branch", "Missing"], rows=incomplete),
        ]
