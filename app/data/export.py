"""
CSV export of vehicle records (UTF-8 with BOM so Excel opens it correctly).
"""
from __future__ import annotations

import datetime as dt
import io
from pathlib import Path
from typing import Optional

import pandas as pd

from app.config import EXPORT_HEADERS, REPAIR_PRESENT
from app.data.schemas import VEHICLE_COLUMNS

EXPORT_ENCODING = "utf-8-sig"


def export_filename(now: Optional[dt.datetime] = None) -> str:
    now = now or dt.datetime.now()
    return f"CarData_Export_{now:%Y%m%d_%H%M%S}.csv"


def export_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Canonical columns with Japanese headers, ready to write.

    Repair history is written as あり/なし and an unknown year as a blank
    cell so the file can be loaded again.
    """
    out = df.reindex(columns=VEHICLE_COLUMNS).copy()
    out["year"] = out["year"].map(lambda y: str(int(y)) if y else "")
    out["has_repair_history"] = out["has_repair_history"].map(
        lambda v: REPAIR_PRESENT if bool(v) else "なし"
    )
    out["batch_date"] = out["batch_date"].map(
        lambda d: d.isoformat() if isinstance(d, dt.date) else ""
    )
    return out.rename(columns=EXPORT_HEADERS)


def export_csv(df: pd.DataFrame) -> bytes:
    """Serialise records to CSV bytes, one row per record, header row first."""
    buf = io.StringIO()
    export_frame(df).to_csv(buf, index=False)
    return buf.getvalue().encode(EXPORT_ENCODING)


def write_csv(df: pd.DataFrame, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(export_csv(df))
    print(f"  Exported {len(df):,} rows → {path}")
    return path
