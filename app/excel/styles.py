"""
Workbook palette: fonts, fills, borders and chart colors for the dashboard report.
"""
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side

# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------
FONT_NAME = "Yu Gothic"
NAVY = "1F3A68"
LIGHT_BLUE = "E8EEF9"
ZEBRA = "F5F5F5"
WHITE = "FFFFFF"
BLACK = "000000"
MUTED = "666666"
GRID = "CCCCCC"
REPAIR_ROW = "FFEBEE"

# Dashboard series colors
CORNFLOWER = "6495ED"
SEA_GREEN = "3CB371"
CHART_COLORS = {
    "year_distribution": CORNFLOWER,
    "price_distribution": SEA_GREEN,
    "grade_analysis": SEA_GREEN,
    "mileage_vs_price": CORNFLOWER,
}
TREND_LINE_COLORS = {
    "average": "0000FF",
    "median": "008000",
    "min": "FF0000",
    "max": "800080",
}

# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------
TITLE_FONT = Font(name=FONT_NAME, size=18, bold=True, color=NAVY)
SUBTITLE_FONT = Font(name=FONT_NAME, size=10, italic=True, color=MUTED)
SECTION_FONT = Font(name=FONT_NAME, size=12, bold=True, color=NAVY)
HEADER_FONT = Font(name=FONT_NAME, size=10, bold=True, color=WHITE)
DATA_FONT = Font(name=FONT_NAME, size=10, color=BLACK)
LABEL_FONT = Font(name=FONT_NAME, size=10, bold=True)
KPI_VALUE_FONT = Font(name=FONT_NAME, size=22, bold=True, color=NAVY)
KPI_LABEL_FONT = Font(name=FONT_NAME, size=9, color=MUTED)

# ---------------------------------------------------------------------------
# Fills, borders, alignments
# ---------------------------------------------------------------------------
def _solid(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


HEADER_FILL = _solid(NAVY)
LABEL_FILL = _solid(LIGHT_BLUE)
ZEBRA_FILL = _solid(ZEBRA)
REPAIR_FILL = _solid(REPAIR_ROW)

_thin = Side(style="thin", color=GRID)
THIN_BORDER = Border(left=_thin, right=_thin, top=_thin, bottom=_thin)
HEADER_BORDER = Border(
    left=Side(style="thin", color=NAVY),
    right=Side(style="thin", color=NAVY),
    top=Side(style="thin", color=NAVY),
    bottom=Side(style="medium", color=NAVY),
)

CENTER = Alignment(horizontal="center", vertical="center")
LEFT = Alignment(horizontal="left", vertical="center")
RIGHT = Alignment(horizontal="right", vertical="center")
WRAP = Alignment(horizontal="left", vertical="center", wrap_text=True)

# Row highlight name → fill (see write_table highlight_fn)
HIGHLIGHT_FILLS = {
    "repair": REPAIR_FILL,
}
