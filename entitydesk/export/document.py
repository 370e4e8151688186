"""
EntityDesk Export -- Document Templates

Pure function of (context, template) -> self-contained HTML string sized
for printing. No IO.

A template derives its own groupings and summary tables from the filtered
record set it is handed. Templates are looked up by endpoint in a
TemplateRegistry; endpoints with no specialised template get the fallback.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any

import chevron

from entitydesk.kernel.cells import render_cell
from entitydesk.kernel.types import ColumnConfig, Record

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class TableData:
    """Header row plus body rows, ready for a sheet or an HTML table."""

    headers: list[str]
    rows: list[list[Any]]


@dataclass
class Metric:
    label: str
    value: str
    tone: str = "default"  # "default", "success", "warning", "error"


@dataclass
class Section:
    """One titled summary table in the document."""

    title: str
    headers: list[str]
    rows: list[list[Any]]
    note: str | None = None


@dataclass
class ExportContext:
    """Everything a template may read. `records` is already filtered and sorted."""

    title: str
    endpoint: str
    columns: Sequence[ColumnConfig]
    records: list[Record]
    generated_at: datetime
    criteria: list[tuple[str, str]] = field(default_factory=list)
    total_label: str = ""
    tz: tzinfo | None = None
    options: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

PRINT_CSS = """
*, *::before, *::after { box-sizing: border-box; margin: 0; padding: 0; }
@page { size: A4 landscape; margin: 12mm; }
body {
  font-family: "IBM Plex Sans", "Noto Sans Thai", Arial, sans-serif;
  color: #1a1a1a;
  background: #ffffff;
  font-size: 11px;
  line-height: 1.45;
}
.report { max-width: 1100px; margin: 0 auto; padding: 24px; }
.report-header { border-bottom: 2px solid #2d3748; padding-bottom: 8px; margin-bottom: 16px; }
.report-header h1 { font-size: 20px; font-weight: 600; }
.report-meta { color: #666; font-size: 10px; margin-top: 4px; }
.report-criteria { margin-top: 6px; font-size: 10px; }
.report-criteria span { display: inline-block; margin-right: 12px; }
.metrics { display: flex; flex-wrap: wrap; gap: 8px; margin-bottom: 16px; }
.metric { border: 1px solid rgba(0,0,0,0.12); border-radius: 6px; padding: 8px 12px; min-width: 120px; }
.metric-label { display: block; font-size: 10px; color: #666; }
.metric-value { display: block; font-size: 16px; font-weight: 600; }
.metric-success .metric-value { color: #1e8449; }
.metric-warning .metric-value { color: #b7950b; }
.metric-error .metric-value { color: #c0392b; }
section { margin-bottom: 18px; page-break-inside: avoid; }
section h2 { font-size: 13px; font-weight: 600; margin-bottom: 6px; }
.section-note { color: #666; font-size: 10px; margin-bottom: 4px; }
table { width: 100%; border-collapse: collapse; }
th, td { border: 1px solid rgba(0,0,0,0.15); padding: 4px 6px; text-align: left; vertical-align: top; }
th { background: #f0f0f0; font-weight: 600; }
tr:nth-child(even) td { background: #fafafa; }
.empty { color: #888; font-style: italic; }
@media print {
  .report { padding: 0; max-width: none; }
  thead { display: table-header-group; }
}
"""

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{{title}}</title>
  <style>{{{css}}}</style>
</head>
<body>
  <main class="report">
    <header class="report-header">
      <h1>{{title}}</h1>
      <p class="report-meta">Generated {{generated_at}} &middot; {{record_count}} records{{#total_label}} (fetched {{total_label}}){{/total_label}}</p>
      {{#has_criteria}}
      <p class="report-criteria">{{#criteria}}<span><strong>{{label}}:</strong> {{value}}</span>{{/criteria}}</p>
      {{/has_criteria}}
    </header>
    {{#has_metrics}}
    <div class="metrics">
      {{#metrics}}
      <div class="metric metric-{{tone}}"><span class="metric-label">{{label}}</span><span class="metric-value">{{value}}</span></div>
      {{/metrics}}
    </div>
    {{/has_metrics}}
    {{#sections}}
    <section>
      <h2>{{title}}</h2>
      {{#note}}<p class="section-note">{{note}}</p>{{/note}}
      {{#has_rows}}
      <table>
        <thead><tr>{{#headers}}<th>{{.}}</th>{{/headers}}</tr></thead>
        <tbody>
          {{#rows}}
          <tr>{{#cells}}<td>{{.}}</td>{{/cells}}</tr>
          {{/rows}}
        </tbody>
      </table>
      {{/has_rows}}
      {{^has_rows}}<p class="empty">No data</p>{{/has_rows}}
    </section>
    {{/sections}}
  </main>
</body>
</html>
"""


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _section_view(section: Section) -> dict[str, Any]:
    return {
        "title": section.title,
        "note": section.note,
        "headers": [str(h) for h in section.headers],
        "rows": [{"cells": [_cell_text(v) for v in row]} for row in section.rows],
        "has_rows": bool(section.rows),
    }


def render_document(ctx: ExportContext, metrics: list[Metric], sections: list[Section]) -> str:
    """Render the shared print layout. Values are HTML-escaped by chevron."""
    criteria = [{"label": label, "value": value} for label, value in ctx.criteria]
    view = {
        "title": ctx.title,
        "css": PRINT_CSS,
        "generated_at": ctx.generated_at.astimezone(ctx.tz).strftime("%d/%m/%Y %H:%M"),
        "record_count": len(ctx.records),
        "total_label": ctx.total_label,
        "criteria": criteria,
        "has_criteria": bool(criteria),
        "metrics": [{"label": m.label, "value": m.value, "tone": m.tone} for m in metrics],
        "has_metrics": bool(metrics),
        "sections": [_section_view(s) for s in sections],
    }
    return chevron.render(DOCUMENT_TEMPLATE, view)


# ---------------------------------------------------------------------------
# Template interface
# ---------------------------------------------------------------------------


class ExportTemplate:
    """
    Shared interface of every export template.

    build_table     -- column/row table for the workbook (and the document)
    build_document  -- printable HTML

    Subclasses override `metrics` and `sections`.
    """

    name = "base"
    include_rows = True

    def build_table(
        self,
        columns: Sequence[ColumnConfig],
        records: list[Record],
        tz: tzinfo | None = None,
    ) -> TableData:
        headers = [column.label for column in columns]
        rows = [[render_cell(column, record, tz=tz) for column in columns] for record in records]
        return TableData(headers=headers, rows=rows)

    def metrics(self, ctx: ExportContext) -> list[Metric]:
        return []

    def sections(self, ctx: ExportContext) -> list[Section]:
        return []

    def build_document(self, ctx: ExportContext) -> str:
        sections = self.sections(ctx)
        if self.include_rows:
            table = self.build_table(ctx.columns, ctx.records, ctx.tz)
            sections.append(Section(title="Records", headers=table.headers, rows=table.rows))
        return render_document(ctx, self.metrics(ctx), sections)


class TemplateRegistry:
    """Endpoint name -> ExportTemplate, with a fallback for everything else."""

    def __init__(self, fallback: ExportTemplate):
        self.fallback = fallback
        self._templates: dict[str, ExportTemplate] = {}

    def register(self, endpoint: str, template: ExportTemplate) -> None:
        self._templates[endpoint] = template

    def get(self, endpoint: str) -> ExportTemplate:
        return self._templates.get(endpoint, self.fallback)

    def __contains__(self, endpoint: str) -> bool:
        return endpoint in self._templates

    def endpoints(self) -> list[str]:
        return sorted(self._templates)
