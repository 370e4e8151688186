"""
EntityDesk Export -- materialises the filtered, sorted record set.

  workbook  -- .xlsx bytes (openpyxl)
  document  -- printable HTML from a per-endpoint template (chevron)
"""

from entitydesk.export.document import (
    ExportContext,
    ExportTemplate,
    Metric,
    Section,
    TableData,
    TemplateRegistry,
    render_document,
)
from entitydesk.export.templates import default_registry
from entitydesk.export.workbook import workbook_filename, write_workbook

__all__ = [
    "ExportContext",
    "ExportTemplate",
    "Metric",
    "Section",
    "TableData",
    "TemplateRegistry",
    "default_registry",
    "render_document",
    "workbook_filename",
    "write_workbook",
]
