"""
Appointments report: outcome rates per branch, staff load, and daily
volume. Booked hours only count appointments whose start and end both
parse and end after they start.
"""

from __future__ import annotations

from dataclasses import dataclass

from entitydesk.export.aggregate import date_of, group_by, period_key, rate, relation_label
from entitydesk.export.document import ExportContext, ExportTemplate, Metric, Section


@dataclass
class Outcomes:
    total: int = 0
    completed: int = 0
    cancelled: int = 0
    scheduled: int = 0

    def add(self, status: str) -> None:
        self.total += 1
        if status == "completed":
            self.completed += 1
        elif status == "cancelled":
            self.cancelled += 1
        elif status == "scheduled":
            self.scheduled += 1


def _status(record) -> str:
    return str(record.get("status") or "").strip().lower()


def _outcomes(records) -> Outcomes:
    outcomes = Outcomes()
    for record in records:
        outcomes.add(_status(record))
    return outcomes


def booked_hours(record, tz=None) -> float | None:
    start = date_of(record, ("startAt",), tz)
    end = date_of(record, ("endAt",), tz)
    if start is None or end is None or end <= start:
        return None
    return (end - start).total_seconds() / 3600


class AppointmentsTemplate(ExportTemplate):
    name = "appointments"

    def metrics(self, ctx: ExportContext) -> list[Metric]:
        outcomes = _outcomes(ctx.records)
        return [
            Metric("Appointments", str(outcomes.total)),
            Metric("Completed", str(outcomes.completed), "success"),
            Metric("Scheduled", str(outcomes.scheduled), "warning"),
            Metric("Cancelled", str(outcomes.cancelled), "error"),
            Metric("Completion rate", rate(outcomes.completed, outcomes.total), "success"),
            Metric("Cancellation rate", rate(outcomes.cancelled, outcomes.total), "error"),
        ]

    def branch_section(self, ctx: ExportContext) -> Section:
        groups = group_by(ctx.records, lambda record: relation_label(record, "branchId"))
        rows = []
        for label, records in groups.items():
            outcomes = _outcomes(records)
            rows.append(
                [
                    label,
                    outcomes.total,
                    outcomes.completed,
                    outcomes.scheduled,
                    outcomes.cancelled,
                    rate(outcomes.completed, outcomes.total),
                    rate(outcomes.cancelled, outcomes.total),
                ]
            )
        return Section(
            title="By branch",
            headers=["Branch", "Total", "Completed", "Scheduled", "Cancelled", "Completion", "Cancellation"],
            rows=rows,
        )

    def staff_section(self, ctx: ExportContext) -> Section:
        groups = group_by(ctx.records, lambda record: relation_label(record, "employeeId"))
        rows = []
        for label, records in groups.items():
            outcomes = _outcomes(records)
            hours = 0.0
            for record in records:
                if _status(record) == "cancelled":
                    continue
                booked = booked_hours(record, ctx.tz)
                if booked is not None:
                    hours += booked
            rows.append(
                [
                    label,
                    outcomes.total,
                    outcomes.completed,
                    f"{hours:.1f}",
                    rate(outcomes.completed, outcomes.total - outcomes.cancelled),
                ]
            )
        return Section(
            title="By staff",
            headers=["Staff", "Appointments", "Completed", "Booked hours", "Utilisation"],
            rows=rows,
            note="Utilisation is completed over non-cancelled appointments.",
        )

    def daily_section(self, ctx: ExportContext) -> Section:
        days: dict[str, Outcomes] = {}
        for record in ctx.records:
            start = date_of(record, ("startAt",), ctx.tz)
            if start is None:
                continue
            days.setdefault(period_key(start, "day", ctx.tz), Outcomes()).add(_status(record))
        rows = [
            [day, o.total, o.completed, o.cancelled, rate(o.cancelled, o.total)]
            for day, o in sorted(days.items(), reverse=True)
        ]
        return Section(
            title="By day",
            headers=["Day", "Appointments", "Completed", "Cancelled", "Cancellation"],
            rows=rows,
        )

    def sections(self, ctx: ExportContext) -> list[Section]:
        return [self.branch_section(ctx), self.staff_section(ctx), self.daily_section(ctx)]
