"""
DataStore — In-memory vehicle dataset backed by pandas.

Loaded once at startup (and on explicit reload), queried on every request.
The canonical frame is only replaced after a load has fully finished.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from app.config import DATA_FOLDER, EXCLUDE_KEYWORDS_FILENAME
from app.data.filtering import apply_filters, default_filter, filter_options
from app.data.loader import discover_models, load_exclude_keywords, load_model_csvs
from app.data.normalize import diagnostics_to_frame, records_to_frame
from app.data.schemas import FilterSpec


class DataStore:
    """One model's deduplicated listings with filter-aware accessors."""

    def __init__(self, data_dir: Path = DATA_FOLDER) -> None:
        self.data_dir = data_dir
        self.model: Optional[str] = None
        self.df: pd.DataFrame = records_to_frame([])
        self.diagnostics: pd.DataFrame = diagnostics_to_frame([])
        self.exclude_keywords: tuple[str, ...] = ()
        self.files: list[Path] = []
        self._loaded = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, model: Optional[str] = None, data_dir: Optional[Path] = None) -> "DataStore":
        """Load every CSV for a model folder. Defaults to the first model found."""
        data_dir = data_dir or self.data_dir
        if model is None:
            models = discover_models(data_dir)
            model = models[0] if models else None

        if model is None:
            print(f"No model folders under {data_dir} — starting with empty dataset")
            self.set_data(records_to_frame([]), model=None, data_dir=data_dir)
            return self

        print(f"Loading listings for {model}...")
        result = load_model_csvs(model, data_dir)
        keywords = load_exclude_keywords(data_dir / EXCLUDE_KEYWORDS_FILENAME)
        if keywords:
            print(f"  {len(keywords)} exclude keywords")

        self.set_data(
            result.df,
            model=model,
            data_dir=data_dir,
            diagnostics=diagnostics_to_frame(result.diagnostics),
            exclude_keywords=tuple(keywords),
            files=result.files,
        )
        return self

    def set_data(
        self,
        df: pd.DataFrame,
        *,
        model: Optional[str] = None,
        data_dir: Optional[Path] = None,
        diagnostics: Optional[pd.DataFrame] = None,
        exclude_keywords: tuple[str, ...] = (),
        files: Optional[list[Path]] = None,
    ) -> "DataStore":
        """Swap in a fully built dataset."""
        self.df = df
        self.diagnostics = diagnostics if diagnostics is not None else diagnostics_to_frame([])
        self.model = model
        self.data_dir = data_dir or self.data_dir
        self.exclude_keywords = exclude_keywords
        self.files = files or []
        self._loaded = True
        return self

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filter(self, spec: FilterSpec | None = None) -> pd.DataFrame:
        """Filtered copy of the dataset. No spec → everything."""
        df = self.df
        if spec is None:
            return df.copy()
        return apply_filters(df, spec)

    def default_filter(self) -> FilterSpec:
        return default_filter(self.df, self.exclude_keywords)

    def filter_options(self) -> dict:
        return filter_options(self.df)

    # ------------------------------------------------------------------
    # Metadata queries
    # ------------------------------------------------------------------

    def models(self) -> list[str]:
        return discover_models(self.data_dir)

    def grades(self) -> list[str]:
        return self.filter_options()["grades"]

    def transmissions(self) -> list[str]:
        if self.df.empty:
            return []
        return sorted(t for t in self.df["transmission"].unique().tolist() if t)

    def batch_dates(self) -> list[str]:
        if self.df.empty:
            return []
        dates = self.df["batch_date"].dropna().unique().tolist()
        return [d.isoformat() for d in sorted(dates)]

    def row_count(self) -> int:
        return len(self.df)

    def diagnostic_summary(self) -> dict:
        """Count of unparseable fields, total and by field name."""
        if self.diagnostics.empty:
            return {"total": 0, "by_field": {}}
        counts = self.diagnostics["field"].value_counts()
        return {
            "total": int(len(self.diagnostics)),
            "by_field": {str(k): int(v) for k, v in counts.items()},
        }
