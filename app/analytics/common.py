"""
Unit conversion, median and JSON helpers shared by the dashboard and reports.
"""
from __future__ import annotations

import datetime as dt
import math

import numpy as np
import pandas as pd

from app.config import MAN


def pct_of_total(part: float, total: float) -> float:
    """part / total as a percentage; 0.0 when total is 0 or NaN."""
    if not total or pd.isna(total):
        return 0.0
    return part / total * 100


def to_man(yen: float) -> float:
    """Yen → 万円."""
    return yen / MAN


def to_man_floor(yen: float) -> int:
    """Yen → whole 万円, truncated."""
    return int(math.floor(yen / MAN))


def median(values) -> float:
    """Median in floating point; even counts average the two middle values."""
    arr = np.sort(np.asarray(values, dtype="float64"))
    n = len(arr)
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2:
        return float(arr[mid])
    return float((arr[mid - 1] + arr[mid]) / 2)


def _skip_key(key) -> bool:
    return key is None or (isinstance(key, (float, np.floating)) and not math.isfinite(key))


def sanitize_for_json(obj):
    """Recursively convert numpy, pandas and date values to plain JSON types.

    NaN and infinite floats become 0.0, missing values (None, NaT, pd.NA)
    become None and dates become ISO strings. Dict keys are stringified;
    None and NaN keys are dropped.
    """
    if isinstance(obj, dict):
        return {
            k if isinstance(k, str) else str(k): sanitize_for_json(v)
            for k, v in obj.items()
            if not _skip_key(k)
        }
    if isinstance(obj, (list, tuple, set, frozenset, np.ndarray)):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    if isinstance(obj, (int, np.integer)):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        value = float(obj)
        return value if math.isfinite(value) else 0.0
    if obj is None or (pd.api.types.is_scalar(obj) and pd.isna(obj)):
        return None
    if isinstance(obj, dt.date):
        return obj.isoformat()
    return obj
