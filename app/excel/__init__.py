"""Styled openpyxl workbook helpers used by the dashboard report."""
from .formatters import NUMBER_FORMATS, add_kpi_card, auto_column_width, display_width
from .writer import ExcelWriter
