"""
Spreadsheet export: one sheet, header row of column labels, one row per
record. Returns the .xlsx bytes; the caller decides where they go.
"""

from __future__ import annotations

import io
import re
from typing import Any

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from entitydesk.export.document import TableData

MAX_COLUMN_WIDTH = 60
_SHEET_TITLE_INVALID = re.compile(r"[\[\]:*?/\\]")


def workbook_filename(endpoint: str) -> str:
    return f"{endpoint}-export.xlsx"


def sheet_title(title: str) -> str:
    """Excel sheet names: no []:*?/\\ and at most 31 characters."""
    cleaned = _SHEET_TITLE_INVALID.sub(" ", title).strip()
    return (cleaned or "Export")[:31]


def _cell_value(value: Any) -> Any:
    """Control characters Excel cannot store are stripped from text."""
    if value is None or isinstance(value, (int, float, bool)):
        return value
    return ILLEGAL_CHARACTERS_RE.sub("", str(value))


def _write_row(ws, row: int, values: list[Any]) -> None:
    for col, value in enumerate(values, start=1):
        cell = ws.cell(row=row, column=col, value=_cell_value(value))
        # Text is text: "=..." from a record must not become a live formula.
        if isinstance(cell.value, str) and cell.data_type == "f":
            cell.data_type = "s"


def write_workbook(table: TableData, title: str = "Export") -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_title(title)

    _write_row(ws, 1, list(table.headers))
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for row_idx, row in enumerate(table.rows, start=2):
        _write_row(ws, row_idx, list(row))

    for idx, header in enumerate(table.headers, start=1):
        widest = max(
            [len(str(header))] + [len(str(row[idx - 1])) for row in table.rows if len(row) >= idx],
        )
        ws.column_dimensions[get_column_letter(idx)].width = min(widest + 2, MAX_COLUMN_WIDTH)

    ws.freeze_panes = "A2"

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
