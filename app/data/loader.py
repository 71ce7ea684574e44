"""
Model-folder CSV discovery, loading, and deduplication.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from app.config import CSV_ENCODINGS, DATA_FOLDER
from app.data.normalize import normalize_frame, records_to_frame
from app.data.schemas import ParseDiagnostic


# ---------------------------------------------------------------------------
# Batch date from filenames
# ---------------------------------------------------------------------------

def parse_batch_date(filepath: Path) -> dt.date | None:
    """Extract the capture date from a filename like "2025_08_06_carsensor.csv"."""
    parts = filepath.stem.split("_")[:3]
    if len(parts) < 3:
        return None
    try:
        return dt.date(int(parts[0]), int(parts[1]), int(parts[2]))
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

def discover_models(data_dir: Path = DATA_FOLDER) -> list[str]:
    """Model folders directly under the data directory, sorted by name."""
    if not data_dir.exists():
        return []
    return sorted(p.name for p in data_dir.iterdir() if p.is_dir())


def discover_csvs(data_dir: Path, model: str) -> list[Path]:
    """CSVs for one model: <model>/<date folder>/*.csv plus <model>/*.csv.

    Sorted by path so date folders load oldest first.
    """
    model_dir = data_dir / model
    if not model_dir.is_dir():
        return []
    matches = list(model_dir.glob("*/*.csv")) + list(model_dir.glob("*.csv"))
    return sorted(matches)


# ---------------------------------------------------------------------------
# Loading & dedup
# ---------------------------------------------------------------------------

def read_raw_csv(filepath: Path) -> pd.DataFrame:
    """Read a listing CSV as text columns, trying each configured encoding."""
    last_error: Exception | None = None
    for encoding in CSV_ENCODINGS:
        try:
            return pd.read_csv(filepath, dtype=str, keep_default_na=False, encoding=encoding)
        except UnicodeDecodeError as exc:
            last_error = exc
    raise ValueError(f"could not decode {filepath.name} with {CSV_ENCODINGS}") from last_error


def load_single_csv(filepath: Path, source_group: str = "") -> tuple[pd.DataFrame, list[ParseDiagnostic]]:
    """Load one CSV and normalise its rows."""
    raw = read_raw_csv(filepath)
    return normalize_frame(
        raw,
        batch_date=parse_batch_date(filepath),
        source_group=source_group or filepath.parent.name,
    )


_DEDUP_COLS = ["name", "grade", "price", "year", "mileage"]


def dedupe_vehicles(df: pd.DataFrame) -> pd.DataFrame:
    """Drop listings repeating (name, grade, price, year, mileage); first one wins."""
    if df.empty:
        return df.copy()
    return df.drop_duplicates(subset=_DEDUP_COLS, keep="first").reset_index(drop=True)


@dataclass
class LoadResult:
    df: pd.DataFrame
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)
    files: list[Path] = field(default_factory=list)
    raw_rows: int = 0


def load_csv_files(files: list[Path], source_group: str = "") -> LoadResult:
    """Load, normalise and deduplicate a list of CSV files in order."""
    frames: list[pd.DataFrame] = []
    diagnostics: list[ParseDiagnostic] = []
    loaded: list[Path] = []
    total_rows = 0

    for i, f in enumerate(files, 1):
        try:
            chunk, notes = load_single_csv(f, source_group)
        except Exception as exc:
            print(f"  Warning: skipping {f.name}: {exc}")
            continue
        frames.append(chunk)
        diagnostics.extend(notes)
        loaded.append(f)
        total_rows += len(chunk)

        zero_price = int((chunk["price"] == 0).sum())
        suffix = f", {zero_price:,} without price" if zero_price else ""
        print(f"  [{i}/{len(files)}] {f.name}: {len(chunk):,} rows{suffix}")

    if not frames:
        return LoadResult(df=records_to_frame([]), diagnostics=diagnostics, files=loaded)

    df = pd.concat(frames, ignore_index=True)
    df = dedupe_vehicles(df)
    print(f"  Total: {total_rows:,} raw rows from {len(loaded)} files → {len(df):,} unique rows")
    if diagnostics:
        print(f"  {len(diagnostics):,} fields could not be parsed and were set to 0")
    return LoadResult(df=df, diagnostics=diagnostics, files=loaded, raw_rows=total_rows)


def load_model_csvs(model: str, data_dir: Path = DATA_FOLDER) -> LoadResult:
    """Discover and load every CSV for a model folder."""
    files = discover_csvs(data_dir, model)
    if not files:
        print(f"  No CSV files found for {model} in {data_dir / model}")
        return LoadResult(df=records_to_frame([]))
    return load_csv_files(files, source_group=model)


# ---------------------------------------------------------------------------
# Exclude keywords
# ---------------------------------------------------------------------------

def load_exclude_keywords(filepath: Path) -> list[str]:
    """One keyword per line; blank lines are skipped."""
    if not filepath.exists():
        return []
    lines = filepath.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip()]
