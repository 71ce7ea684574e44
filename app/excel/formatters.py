"""
Cell-level formatting for the dashboard workbook.
"""
from __future__ import annotations

import unicodedata

from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from app.excel.styles import (
    CENTER, LEFT, RIGHT,
    DATA_FONT, HEADER_BORDER, HEADER_FILL, HEADER_FONT,
    HIGHLIGHT_FILLS, KPI_LABEL_FONT, KPI_VALUE_FONT,
    THIN_BORDER, ZEBRA_FILL,
)

# Column type → Excel number format. Anything else is written as text.
NUMBER_FORMATS = {
    "yen": '"¥"#,##0',
    "man": '#,##0.0"万円"',
    "man_int": '#,##0"万円"',
    "km": '#,##0"km"',
    "number": "#,##0",
    "percent": '0.0"%"',
    "decimal": "0.0",
}


def display_width(value) -> int:
    """Approximate column width of a value; wide (CJK) characters count 2."""
    if value is None:
        return 0
    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in str(value))


def format_header_row(ws: Worksheet, row_num: int, num_cols: int) -> None:
    for col in range(1, num_cols + 1):
        cell = ws.cell(row=row_num, column=col)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = CENTER
        cell.border = HEADER_BORDER


def format_data_cell(
    ws: Worksheet,
    row_num: int,
    col_num: int,
    value,
    col_type: str = "text",
    highlight: str | None = None,
) -> None:
    """Write one table cell. Numeric types are right-aligned with a number format;
    rows alternate a zebra fill unless highlighted."""
    cell = ws.cell(row=row_num, column=col_num)
    cell.value = value
    cell.font = DATA_FONT
    cell.border = THIN_BORDER
    number_format = NUMBER_FORMATS.get(col_type)
    if number_format:
        cell.number_format = number_format
        cell.alignment = RIGHT
    else:
        cell.alignment = LEFT

    if highlight in HIGHLIGHT_FILLS:
        cell.fill = HIGHLIGHT_FILLS[highlight]
    elif row_num % 2 == 0:
        cell.fill = ZEBRA_FILL


def auto_column_width(ws: Worksheet, min_width: int = 8, max_width: int = 60) -> None:
    """Fit each column to its widest value, counting wide characters double."""
    widths: dict[int, int] = {}
    for row in ws.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            # multi-line labels ("ZX\n(3台)") size to their longest line
            longest = max(display_width(part) for part in str(cell.value).split("\n"))
            widths[cell.column] = max(widths.get(cell.column, 0), longest)
    for col, width in widths.items():
        ws.column_dimensions[get_column_letter(col)].width = min(max(width + 2, min_width), max_width)


def add_kpi_card(ws: Worksheet, row: int, col: int, value, label: str, format_type: str = "man") -> None:
    """Large headline value with a small caption underneath."""
    value_cell = ws.cell(row=row, column=col, value=value)
    value_cell.font = KPI_VALUE_FONT
    value_cell.alignment = CENTER
    if format_type in NUMBER_FORMATS:
        value_cell.number_format = NUMBER_FORMATS[format_type]

    label_cell = ws.cell(row=row + 1, column=col, value=label)
    label_cell.font = KPI_LABEL_FONT
    label_cell.alignment = CENTER
