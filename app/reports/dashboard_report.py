"""
Dashboard Report — summary cards, chart sheets and the filtered listing.
"""
from __future__ import annotations

from pathlib import Path

import pandas as pd
from openpyxl.utils import get_column_letter

from app.analytics.common import sanitize_for_json
from app.analytics.dashboard import dashboard_summary
from app.config import OPEN_MAX
from app.data.schemas import FilterSpec
from app.data.store import DataStore
from app.excel.styles import CHART_COLORS, TREND_LINE_COLORS
from app.excel.writer import ExcelWriter


YEAR_COLS = [
    ("label", "text", "年式"),
    ("count", "number", "台数"),
]

PRICE_DIST_COLS = [
    ("label", "text", "価格帯（万円）"),
    ("count", "number", "台数"),
]

TREND_COLS = [
    ("label", "text", "日付"),
    ("count", "number", "台数"),
    ("average", "man", "平均価格"),
    ("median", "man", "中央価格"),
    ("min", "man", "最低価格"),
    ("max", "man_int", "最高価格"),
]

GRADE_COLS = [
    ("grade", "text", "グレード"),
    ("count", "number", "台数"),
    ("average", "man", "平均価格"),
]

SCATTER_COLS = [
    ("x", "decimal", "走行距離（万km）"),
    ("y", "decimal", "価格（万円）"),
]

VEHICLE_COLS = [
    ("name", "text", "車種名"),
    ("grade", "text", "グレード"),
    ("price", "yen", "支払総額"),
    ("year", "number", "年式"),
    ("mileage", "km", "走行距離"),
    ("transmission", "text", "ミッション"),
    ("repair", "text", "修復歴"),
    ("batch_date", "text", "データ日付"),
    ("detail_url", "text", "車両URL"),
]


def _bound(value: int) -> str:
    return "" if value >= OPEN_MAX else f"{value:,}"


def filter_settings(spec: FilterSpec) -> list[tuple[str, str]]:
    """Human-readable filter rows for the report header."""
    grades = "、".join(sorted(spec.selected_grades)) if spec.selected_grades else "すべて"
    return [
        ("グレード", grades),
        ("年式", f"{spec.min_year or ''} 〜 {_bound(spec.max_year)}"),
        ("価格（円）", f"{spec.min_price:,} 〜 {_bound(spec.max_price)}"),
        ("走行距離（km）", f"{spec.min_mileage:,} 〜 {_bound(spec.max_mileage)}"),
        ("ミッション", spec.transmission),
        ("修復歴", spec.repair_history.value),
        ("除外キーワード", "、".join(spec.exclude_keywords) or "なし"),
    ]


def _vehicle_rows(subset: pd.DataFrame) -> list[dict]:
    rows = subset.to_dict("records")
    for r in rows:
        r["repair"] = "あり" if r["has_repair_history"] else "なし"
        batch = r.get("batch_date")
        r["batch_date"] = batch.isoformat() if hasattr(batch, "isoformat") else ""
    return rows


_TREND_LINES = [("average", 2), ("median", 2), ("min", 1), ("max", 1)]


def _col(cols: list, key: str) -> int:
    return [c[0] for c in cols].index(key) + 1


def _add_chart(ew: ExcelWriter, ws, key: str, cols: list, last_row: int) -> None:
    """Chart matching the dashboard view, anchored to the right of its table."""
    anchor = f"{get_column_letter(len(cols) + 2)}2"
    if key == "price_trend":
        ew.add_line_chart(
            ws, anchor, 1, last_row,
            category_col=_col(cols, "label"),
            lines=[(_col(cols, m), TREND_LINE_COLORS[m], w) for m, w in _TREND_LINES],
            title="価格推移", y_title="万円",
        )
    elif key == "mileage_vs_price":
        ew.add_scatter_chart(
            ws, anchor, 1, last_row,
            x_col=_col(cols, "x"), y_col=_col(cols, "y"),
            title="走行距離と価格", x_title="走行距離（万km）", y_title="価格（万円）",
            color=CHART_COLORS[key],
        )
    else:
        category, value, title, x_title, y_title = {
            "year_distribution": ("label", "count", "年式分布", "年式", "台数"),
            "price_distribution": ("label", "count", "価格分布", "価格帯（万円）", "台数"),
            "grade_analysis": ("grade", "average", "グレード別平均価格", "グレード", "万円"),
        }[key]
        ew.add_column_chart(
            ws, anchor, 1, last_row,
            category_col=_col(cols, category), value_col=_col(cols, value),
            title=title, x_title=x_title, y_title=y_title, color=CHART_COLORS[key],
        )


def generate_json(store: DataStore, spec: FilterSpec | None = None) -> dict:
    spec = spec or FilterSpec()
    subset = store.filter(spec)
    dash = dashboard_summary(subset)
    return sanitize_for_json({
        "model": store.model,
        "filter_label": spec.label,
        "filter": filter_settings(spec),
        "dataset_count": store.row_count(),
        "filtered_count": len(subset),
        "diagnostics": store.diagnostic_summary(),
        "summary": dash["summary"],
        "charts": dash["charts"],
    })


def generate_excel(
    store: DataStore,
    output_path: str | Path,
    spec: FilterSpec | None = None,
) -> Path:
    spec = spec or FilterSpec()
    data = generate_json(store, spec)
    s = data["summary"]
    charts = data["charts"]
    ew = ExcelWriter()

    # Summary
    ws = ew.add_sheet("概要")
    ew.write_title(ws, f"中古車相場ダッシュボード  {data['model'] or ''}".strip(),
                   f"{data['filter_label']}  |  {data['filtered_count']:,} / {data['dataset_count']:,} 台"
                   f"  |  作成 {pd.Timestamp.now():%Y-%m-%d %H:%M}")

    row = ew.write_section(ws, 5, "価格")
    row = ew.write_kpi_row(ws, row, [
        (s["average_price"], "平均価格", "man"),
        (s["median_price"], "中央価格", "man"),
        (s["min_price"], "最低価格", "man"),
        (s["max_price"], "最高価格", "man_int"),
    ])

    row = ew.write_section(ws, row, "在庫")
    row = ew.write_kpi_row(ws, row, [
        (s["total_count"], "総台数", "number"),
        (s["unique_grade_count"], "グレード数", "number"),
        (s["repair_pct"], "修復歴あり", "percent"),
    ])

    row = ew.write_section(ws, row, "フィルター条件")
    ew.write_key_values(ws, row, data["filter"])

    # Chart sheets: table on the left, native chart beside it
    for sheet_name, key, cols in [
        ("年式分布", "year_distribution", YEAR_COLS),
        ("価格分布", "price_distribution", PRICE_DIST_COLS),
        ("価格推移", "price_trend", TREND_COLS),
        ("グレード分析", "grade_analysis", GRADE_COLS),
        ("走行距離vs価格", "mileage_vs_price", SCATTER_COLS),
    ]:
        ws_c = ew.add_sheet(sheet_name)
        end = ew.write_table(ws_c, 1, cols, charts[key])
        _add_chart(ew, ws_c, key, cols, end - 1)

    # Listing
    ws_v = ew.add_sheet("車両一覧")
    ew.write_table(
        ws_v, 1, VEHICLE_COLS, _vehicle_rows(store.filter(spec)),
        highlight_fn=lambda _i, r: "repair" if r["has_repair_history"] else None,
    )

    return ew.save(output_path)
