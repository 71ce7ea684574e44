"""
Dashboard analytics — summary statistics and chart series for a filtered subset.

Every function takes a dataset frame (usually the output of apply_filters)
and is total: an empty frame gives zeros and empty series.
Prices are reported in 万円.
"""
from __future__ import annotations

import datetime as dt
import math
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from app.config import (
    PRICE_BIN_SIZE,
    TOP_GRADES,
    TREND_METRICS,
    UNKNOWN_DATE_LABEL,
    VIEW_MODES,
)
from app.analytics.common import median, pct_of_total, sanitize_for_json, to_man, to_man_floor
from app.data.normalize import clean_grade


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_DATE_FORMATS = ["%Y-%m-%d", "%Y/%m/%d", "%Y年%m月%d日", "%Y.%m.%d", "%Y%m%d"]


def _priced(df: pd.DataFrame) -> pd.Series:
    return df.loc[df["price"] > 0, "price"]


def parse_acquisition_date(text) -> Optional[dt.date]:
    """Parse an acquisition-date string ("2025-08-06", "2025/8/6", ...)."""
    if not isinstance(text, str) or not text.strip():
        return None
    value = text.strip().split(" ")[0].split("T")[0]
    for fmt in _DATE_FORMATS:
        try:
            return dt.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def effective_dates(df: pd.DataFrame) -> pd.Series:
    """Batch date when known, else the parsed acquisition date, else None."""
    def pick(row) -> Optional[dt.date]:
        batch = row["batch_date"]
        if isinstance(batch, dt.date):
            return batch
        return parse_acquisition_date(row["acquisition_date"])

    if df.empty:
        return pd.Series([], index=df.index, dtype=object)
    return df[["batch_date", "acquisition_date"]].apply(pick, axis=1).astype(object)


def _price_stats(prices: pd.Series) -> dict:
    """Average / median / min in 万円, max in whole 万円. Zeros when empty."""
    if prices.empty:
        return {"average": 0.0, "median": 0.0, "min": 0.0, "max": 0}
    return {
        "average": to_man(float(prices.mean())),
        "median": to_man(median(prices)),
        "min": to_man(float(prices.min())),
        "max": to_man_floor(int(prices.max())),
    }


# ---------------------------------------------------------------------------
# Summary scalars
# ---------------------------------------------------------------------------

def summary_statistics(df: pd.DataFrame) -> dict:
    """Headline numbers for the dashboard cards.

    Price figures use only listings with a known price; total_count and
    repair_pct use every listing in the subset.
    """
    empty = {
        "average_price": 0.0,
        "median_price": 0.0,
        "min_price": 0.0,
        "max_price": 0,
        "total_count": 0,
        "unique_grade_count": 0,
        "repair_pct": 0.0,
    }
    if df.empty:
        return empty

    stats = _price_stats(_priced(df))
    total = len(df)
    repaired = int(df["has_repair_history"].sum())
    return {
        "average_price": round(stats["average"], 1),
        "median_price": round(stats["median"], 1),
        "min_price": round(stats["min"], 1),
        "max_price": stats["max"],
        "total_count": total,
        "unique_grade_count": int(df["grade"].map(clean_grade).nunique()),
        "repair_pct": round(pct_of_total(repaired, total), 1),
    }


# ---------------------------------------------------------------------------
# Chart series
# ---------------------------------------------------------------------------

def year_distribution(df: pd.DataFrame) -> list[dict]:
    """Listing count per model year, ascending. Unknown years are left out."""
    if df.empty:
        return []
    counts = df.loc[df["year"] > 0, "year"].value_counts().sort_index()
    return [
        {"year": int(y), "label": str(int(y)), "count": int(c)}
        for y, c in counts.items()
    ]


def price_distribution(df: pd.DataFrame, bin_size: int = PRICE_BIN_SIZE) -> list[dict]:
    """Histogram of known prices in 万円.

    Bins start at floor(min) and are [start, start + bin_size) except the
    last, which is closed and ends at ceil(max).
    """
    prices = _priced(df)
    if prices.empty:
        return []

    values = prices.to_numpy(dtype="float64") / 10_000
    lo = math.floor(values.min())
    hi = math.ceil(values.max())
    n_bins = max(1, math.ceil((hi - lo) / bin_size))

    rows = []
    for i in range(n_bins):
        start = lo + i * bin_size
        last = i == n_bins - 1
        end = hi if last else start + bin_size
        if last:
            count = int(np.count_nonzero((values >= start) & (values <= end)))
        else:
            count = int(np.count_nonzero((values >= start) & (values < end)))
        rows.append({
            "start": start,
            "end": end,
            "label": f"{start:,}-{end:,}",
            "count": count,
        })
    return rows


def price_trend(df: pd.DataFrame, metrics: Iterable[str] = TREND_METRICS) -> list[dict]:
    """Per-date price statistics, ascending by date.

    Listings with no usable date are grouped under an "unknown" bucket
    placed after every dated row. A date whose listings all lack a price
    reports zeros.
    """
    if df.empty:
        return []
    wanted = [m for m in TREND_METRICS if m in set(metrics)]

    dates = effective_dates(df)
    known = dates.notna()
    groups: list[tuple[Optional[dt.date], pd.DataFrame]] = []
    if known.any():
        keyed = df[known].assign(_date=dates[known])
        groups.extend(keyed.groupby("_date", sort=True))
    if not known.all():
        groups.append((None, df[~known]))

    rows = []
    for day, group in groups:
        stats = _price_stats(_priced(group))
        row = {
            "date": day.isoformat() if day else None,
            "label": f"{day:%m/%d}" if day else UNKNOWN_DATE_LABEL,
            "count": len(group),
        }
        row.update({m: stats[m] for m in wanted})
        rows.append(row)
    return rows


def grade_analysis(df: pd.DataFrame, top_n: int = TOP_GRADES) -> list[dict]:
    """Average price per cleaned grade, highest first, top N groups."""
    if df.empty:
        return []
    graded = df[df["grade"].str.strip() != ""]
    if graded.empty:
        return []

    keyed = graded.assign(_grade=graded["grade"].map(clean_grade))
    rows = []
    for grade, group in keyed.groupby("_grade", sort=False):
        prices = _priced(group)
        avg = to_man(float(prices.mean())) if not prices.empty else 0.0
        rows.append({
            "grade": grade,
            "label": f"{grade}\n({len(group)}台)",
            "average": avg,
            "count": len(group),
        })
    rows.sort(key=lambda r: r["average"], reverse=True)
    return rows[:top_n]


def mileage_vs_price(df: pd.DataFrame) -> list[dict]:
    """Scatter points (万km, 万円) for listings with known price and mileage."""
    if df.empty:
        return []
    both = df[(df["price"] > 0) & (df["mileage"] > 0)]
    return [
        {"x": to_man(float(m)), "y": to_man(float(p))}
        for m, p in zip(both["mileage"], both["price"])
    ]


_CHARTS = {
    "year_distribution": year_distribution,
    "price_distribution": price_distribution,
    "price_trend": price_trend,
    "grade_analysis": grade_analysis,
    "mileage_vs_price": mileage_vs_price,
}


def resolve_view(view: str) -> str:
    """Map a view label (概要, 価格分布, ...) or chart key to the chart key."""
    key = VIEW_MODES.get(view, view)
    if key not in _CHARTS:
        raise ValueError(f"Unknown chart view: {view!r}")
    return key


def chart_series(df: pd.DataFrame, view: str, metrics: Iterable[str] = TREND_METRICS) -> list[dict]:
    """One chart's series, selected by view label or key."""
    key = resolve_view(view)
    if key == "price_trend":
        return price_trend(df, metrics)
    return _CHARTS[key](df)


# ---------------------------------------------------------------------------
# Full dashboard
# ---------------------------------------------------------------------------

def dashboard_summary(df: pd.DataFrame, metrics: Iterable[str] = TREND_METRICS) -> dict:
    """Summary scalars plus every chart series, JSON-safe."""
    metrics = tuple(metrics)
    charts = {key: chart_series(df, key, metrics) for key in _CHARTS}
    return sanitize_for_json({
        "summary": summary_statistics(df),
        "charts": charts,
    })
