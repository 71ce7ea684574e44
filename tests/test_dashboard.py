import datetime as dt
import json

import numpy as np
import pandas as pd
import pytest

from app.analytics.common import median, pct_of_total, sanitize_for_json
from app.analytics.dashboard import (
    chart_series,
    dashboard_summary,
    grade_analysis,
    mileage_vs_price,
    parse_acquisition_date,
    price_distribution,
    price_trend,
    summary_statistics,
    year_distribution,
)
from tests.conftest import frame, vehicle


def test_empty_subset_gives_zeros():
    s = summary_statistics(frame())
    assert s == {
        "average_price": 0.0,
        "median_price": 0.0,
        "min_price": 0.0,
        "max_price": 0,
        "total_count": 0,
        "unique_grade_count": 0,
        "repair_pct": 0.0,
    }
    charts = dashboard_summary(frame())["charts"]
    assert all(series == [] for series in charts.values())


def test_median_is_float_and_averages_middle_pair():
    assert median([1_000_000, 2_000_000, 3_000_000, 4_000_000]) == 2_500_000.0
    df = frame(*[vehicle(price=p) for p in (1_000_000, 2_000_000, 3_000_000, 4_000_000)])
    assert summary_statistics(df)["median_price"] == 250.0


def test_summary_statistics(sample_df):
    s = summary_statistics(sample_df)
    assert s["average_price"] == 604.0
    assert s["median_price"] == 550.0
    assert s["min_price"] == 300.0
    assert s["max_price"] == 950
    assert s["total_count"] == 6
    assert s["unique_grade_count"] == 5
    assert s["repair_pct"] == 16.7


def test_summary_rounding():
    df = frame(vehicle(price=1_234_567), vehicle(price=1_000_000))
    s = summary_statistics(df)
    assert s["average_price"] == 111.7
    assert s["min_price"] == 100.0
    assert s["max_price"] == 123


def test_unique_grades_counted_after_cleaning():
    df = frame(vehicle(grade="ZX"), vehicle(grade="ZX 1489.5万円"), vehicle(grade="VX"))
    assert summary_statistics(df)["unique_grade_count"] == 2


def test_price_bins_last_bin_closed():
    df = frame(*[vehicle(price=p) for p in (5_000, 100_000, 250_000, 300_000)])
    bins = price_distribution(df)
    assert [(b["start"], b["end"], b["count"]) for b in bins] == [(0, 25, 2), (25, 30, 2)]
    assert bins[0]["label"] == "0-25"


def test_price_bins_single_value():
    bins = price_distribution(frame(vehicle(price=1_000_000), vehicle(price=1_000_000)))
    assert bins == [{"start": 100, "end": 100, "label": "100-100", "count": 2}]


def test_price_bins_ignore_unknown_price(sample_df):
    bins = price_distribution(sample_df)
    assert bins[0]["start"] == 300
    assert bins[-1]["end"] == 950
    assert sum(b["count"] for b in bins) == 5
    assert price_distribution(frame(vehicle(price=0))) == []


def test_year_distribution(sample_df):
    assert [(r["year"], r["count"]) for r in year_distribution(sample_df)] == [
        (2015, 1), (2018, 1), (2021, 1), (2022, 1), (2023, 1),
    ]
    assert year_distribution(sample_df)[0]["label"] == "2015"


def test_parse_acquisition_date():
    assert str(parse_acquisition_date("2025/8/6")) == "2025-08-06"
    assert str(parse_acquisition_date("2025-08-06 10:15:00")) == "2025-08-06"
    assert parse_acquisition_date("") is None
    assert parse_acquisition_date("sometime") is None


def test_price_trend_orders_dates_and_puts_unknown_last(sample_df):
    rows = price_trend(sample_df)
    assert [r["label"] for r in rows] == ["08/01", "08/02", "08/03", "不明"]
    assert [r["count"] for r in rows] == [2, 2, 1, 1]
    assert rows[0]["date"] == "2025-08-01"
    assert rows[-1]["date"] is None
    assert rows[0]["average"] == 875.0
    assert rows[0]["median"] == 875.0
    assert rows[0]["min"] == 800.0
    assert rows[0]["max"] == 950
    # 8/2 holds one priced listing and one with an unknown price
    assert rows[1]["average"] == 420.0


def test_price_trend_zero_price_group_reports_zeros():
    df = frame(vehicle(price=0, batch_date=dt.date(2025, 8, 1)))
    (row,) = price_trend(df)
    assert row["count"] == 1
    assert (row["average"], row["median"], row["min"], row["max"]) == (0.0, 0.0, 0.0, 0)


def test_price_trend_metric_selection(sample_df):
    rows = price_trend(sample_df, ["median"])
    assert set(rows[0]) == {"date", "label", "count", "median"}


def test_grade_analysis_sorted_by_average(sample_df):
    rows = grade_analysis(sample_df)
    assert [r["grade"] for r in rows] == ["GR SPORT", "ZX", "VX", "AX"]
    zx = rows[1]
    assert zx["count"] == 2
    assert zx["average"] == 800.0
    assert zx["label"] == "ZX\n(2台)"
    assert [r["grade"] for r in grade_analysis(sample_df, top_n=2)] == ["GR SPORT", "ZX"]


def test_grade_analysis_ties_keep_first_appearance():
    df = frame(vehicle(grade="B", price=100_000), vehicle(grade="A", price=100_000))
    assert [r["grade"] for r in grade_analysis(df)] == ["B", "A"]


def test_grade_analysis_merges_cleaned_grades():
    df = frame(vehicle(grade="ZX 売#12台", price=1_000_000), vehicle(grade="ZX", price=2_000_000))
    (row,) = grade_analysis(df)
    assert row["grade"] == "ZX"
    assert row["average"] == 150.0


def test_mileage_vs_price(sample_df):
    points = mileage_vs_price(sample_df)
    assert points == [
        {"x": 1.2, "y": 800.0},
        {"x": 0.5, "y": 950.0},
        {"x": 9.8, "y": 420.0},
        {"x": 6.0, "y": 550.0},
    ]


def test_chart_series_by_view_label(sample_df):
    assert chart_series(sample_df, "概要") == year_distribution(sample_df)
    assert chart_series(sample_df, "グレード分析") == grade_analysis(sample_df)
    assert chart_series(sample_df, "price_distribution") == price_distribution(sample_df)
    with pytest.raises(ValueError):
        chart_series(sample_df, "bogus")


def test_dashboard_summary_is_json_safe(sample_df):
    data = dashboard_summary(sample_df)
    json.dumps(data, ensure_ascii=False)
    assert set(data["charts"]) == {
        "year_distribution", "price_distribution", "price_trend",
        "grade_analysis", "mileage_vs_price",
    }
    assert data["summary"]["total_count"] == 6


def test_sanitize_for_json():
    raw = {
        "count": np.int64(3),
        "avg": np.float64("nan"),
        "flag": np.bool_(True),
        "day": dt.date(2025, 8, 1),
        "missing": pd.NaT,
        "grades": frozenset({"ZX"}),
        None: "dropped",
        2015: [np.float32(1.5)],
    }
    assert sanitize_for_json(raw) == {
        "count": 3,
        "avg": 0.0,
        "flag": True,
        "day": "2025-08-01",
        "missing": None,
        "grades": ["ZX"],
        "2015": [1.5],
    }
    assert pct_of_total(1, 0) == 0.0
    assert pct_of_total(1, 4) == 25.0
