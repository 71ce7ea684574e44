"""
ExcelWriter — builds the styled dashboard workbook: title block, KPI cards,
data tables and native Excel charts over those tables.
"""
from __future__ import annotations

from pathlib import Path

import pandas as pd
from openpyxl import Workbook
from openpyxl.chart import BarChart, LineChart, Reference, ScatterChart, Series
from openpyxl.chart.marker import Marker
from openpyxl.chart.shapes import GraphicalProperties
from openpyxl.drawing.line import LineProperties
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from app.excel.styles import (
    DATA_FONT, LABEL_FILL, LABEL_FONT, SECTION_FONT, SUBTITLE_FONT, TITLE_FONT,
    THIN_BORDER, WRAP,
)
from app.excel.formatters import (
    add_kpi_card,
    auto_column_width,
    format_data_cell,
    format_header_row,
)


ColSpec = tuple[str, str, str]  # (key, col_type, header label)

CHART_WIDTH_CM = 18
CHART_HEIGHT_CM = 9
_PT = 12700  # EMU per point


def _blank(val) -> bool:
    return val is None or (not isinstance(val, str) and pd.isna(val))


class ExcelWriter:
    """Fluent builder for the dashboard workbook."""

    def __init__(self) -> None:
        self.wb = Workbook()
        self._first_sheet = True

    def add_sheet(self, title: str) -> Worksheet:
        """New worksheet; the workbook's default sheet is renamed on first use."""
        if self._first_sheet:
            ws = self.wb.active
            ws.title = title
            self._first_sheet = False
            return ws
        return self.wb.create_sheet(title=title)

    # ------------------------------------------------------------------
    # Summary sheet blocks
    # ------------------------------------------------------------------

    def write_title(self, ws: Worksheet, title: str, subtitle: str, merge_cols: int = 8) -> int:
        """Title and subtitle across the first two rows. Returns next free row."""
        for row, text, font in ((1, title, TITLE_FONT), (2, subtitle, SUBTITLE_FONT)):
            cell = ws.cell(row=row, column=1, value=text)
            cell.font = font
            ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=merge_cols)
        for col in range(1, merge_cols + 1):
            ws.column_dimensions[get_column_letter(col)].width = 16
        return 4

    def write_section(self, ws: Worksheet, row: int, title: str) -> int:
        ws.cell(row=row, column=1, value=title).font = SECTION_FONT
        return row + 2

    def write_kpi_row(
        self,
        ws: Worksheet,
        row: int,
        kpis: list[tuple],  # [(value, label, format_type), ...]
        start_col: int = 1,
        col_spacing: int = 2,
    ) -> int:
        """Row of KPI cards. Returns the row after the cards."""
        for i, (value, label, fmt) in enumerate(kpis):
            add_kpi_card(ws, row, start_col + i * col_spacing, value, label, fmt)
        return row + 3

    def write_key_values(self, ws: Worksheet, start_row: int, items: list[tuple[str, str]]) -> int:
        """Label/value pairs, value merged across columns B:F. Returns next row."""
        row = start_row
        for key, value in items:
            label = ws.cell(row=row, column=1, value=key)
            label.font = LABEL_FONT
            label.fill = LABEL_FILL
            label.border = THIN_BORDER

            cell = ws.cell(row=row, column=2, value=value)
            cell.font = DATA_FONT
            cell.border = THIN_BORDER
            cell.alignment = WRAP
            ws.merge_cells(start_row=row, start_column=2, end_row=row, end_column=6)
            row += 1
        return row + 1

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def write_table(
        self,
        ws: Worksheet,
        start_row: int,
        columns: list[ColSpec],
        data: list[dict] | pd.DataFrame,
        highlight_fn=None,
        freeze: bool = True,
    ) -> int:
        """Header row plus one row per record.

        highlight_fn(row_idx, row_data) -> str|None picks a row fill ("repair").
        Missing values are written as blank cells. Returns the row after the
        last data row.
        """
        for col_num, (_, _, label) in enumerate(columns, 1):
            ws.cell(row=start_row, column=col_num, value=label)
        format_header_row(ws, start_row, len(columns))

        rows = data.to_dict("records") if isinstance(data, pd.DataFrame) else data
        row = start_row + 1
        for idx, record in enumerate(rows):
            hl = highlight_fn(idx, record) if highlight_fn else None
            for col_num, (key, col_type, _) in enumerate(columns, 1):
                val = record.get(key)
                format_data_cell(ws, row, col_num, "" if _blank(val) else val, col_type, highlight=hl)
            row += 1

        auto_column_width(ws)
        if freeze:
            ws.freeze_panes = f"A{start_row + 1}"
        return row

    # ------------------------------------------------------------------
    # Charts (over a table written with write_table)
    # ------------------------------------------------------------------

    @staticmethod
    def _place(ws: Worksheet, chart, anchor: str, title: str) -> None:
        chart.title = title
        chart.width = CHART_WIDTH_CM
        chart.height = CHART_HEIGHT_CM
        ws.add_chart(chart, anchor)

    def add_column_chart(
        self,
        ws: Worksheet,
        anchor: str,
        header_row: int,
        last_row: int,
        *,
        category_col: int,
        value_col: int,
        title: str,
        x_title: str,
        y_title: str,
        color: str,
    ) -> None:
        """Single-series column chart, categories from one column, bars from another."""
        if last_row <= header_row:
            return
        chart = BarChart()
        chart.type = "col"
        chart.legend = None
        chart.x_axis.title = x_title
        chart.y_axis.title = y_title
        chart.add_data(
            Reference(ws, min_col=value_col, min_row=header_row, max_row=last_row),
            titles_from_data=True,
        )
        chart.set_categories(Reference(ws, min_col=category_col, min_row=header_row + 1, max_row=last_row))
        chart.series[0].graphicalProperties = GraphicalProperties(solidFill=color)
        self._place(ws, chart, anchor, title)

    def add_line_chart(
        self,
        ws: Worksheet,
        anchor: str,
        header_row: int,
        last_row: int,
        *,
        category_col: int,
        lines: list[tuple[int, str, float]],  # [(column, color, width_pt), ...]
        title: str,
        y_title: str,
    ) -> None:
        """One line per value column, sharing the category axis."""
        if last_row <= header_row or not lines:
            return
        chart = LineChart()
        chart.y_axis.title = y_title
        for col, color, width in lines:
            chart.add_data(Reference(ws, min_col=col, min_row=header_row, max_row=last_row),
                           titles_from_data=True)
            series = chart.series[-1]
            series.smooth = False
            series.graphicalProperties = GraphicalProperties(ln=LineProperties(solidFill=color, w=int(width * _PT)))
            series.marker = Marker(symbol="circle", size=5)
        chart.set_categories(Reference(ws, min_col=category_col, min_row=header_row + 1, max_row=last_row))
        self._place(ws, chart, anchor, title)

    def add_scatter_chart(
        self,
        ws: Worksheet,
        anchor: str,
        header_row: int,
        last_row: int,
        *,
        x_col: int,
        y_col: int,
        title: str,
        x_title: str,
        y_title: str,
        color: str,
    ) -> None:
        """Markers only, no connecting line."""
        if last_row <= header_row:
            return
        chart = ScatterChart()
        chart.legend = None
        chart.x_axis.title = x_title
        chart.y_axis.title = y_title
        series = Series(
            Reference(ws, min_col=y_col, min_row=header_row, max_row=last_row),
            Reference(ws, min_col=x_col, min_row=header_row + 1, max_row=last_row),
            title_from_data=True,
        )
        series.marker = Marker(symbol="circle", size=5)
        series.marker.graphicalProperties = GraphicalProperties(solidFill=color)
        series.graphicalProperties = GraphicalProperties(ln=LineProperties(noFill=True))
        chart.series.append(series)
        self._place(ws, chart, anchor, title)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(path)
        return path
