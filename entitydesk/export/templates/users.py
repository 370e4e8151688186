"""User roster report: role mix and active split."""

from __future__ import annotations

from entitydesk.export.aggregate import group_by
from entitydesk.export.document import ExportContext, ExportTemplate, Metric, Section
from entitydesk.kernel.coercion import normalize_boolean

ROLE_LABELS = {
    "member": "Member",
    "employee": "Staff",
    "admin": "Admin",
}


def _role(record) -> str:
    role = str(record.get("role") or "").strip().lower()
    return ROLE_LABELS.get(role, role or "Unassigned")


class UsersTemplate(ExportTemplate):
    name = "users"

    def metrics(self, ctx: ExportContext) -> list[Metric]:
        flags = [normalize_boolean(r.get("isActive")) for r in ctx.records]
        return [
            Metric("Users", str(len(ctx.records))),
            Metric("Active", str(flags.count(True)), "success"),
            Metric("Inactive", str(flags.count(False)), "error" if False in flags else "default"),
        ]

    def sections(self, ctx: ExportContext) -> list[Section]:
        rows = []
        for role, records in group_by(ctx.records, _role).items():
            flags = [normalize_boolean(r.get("isActive")) for r in records]
            rows.append([role, len(records), flags.count(True), flags.count(False)])
        return [
            Section(title="By role", headers=["Role", "Users", "Active", "Inactive"], rows=rows),
        ]
