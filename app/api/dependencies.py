"""
FastAPI dependencies — DataStore singleton, filter parsing.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Query

from app.config import ALL_OPTION
from app.data.filtering import man_to_yen, parse_mileage_option, parse_year_option
from app.data.store import DataStore
from app.data.schemas import FilterSpec, RepairFilter


# ---------------------------------------------------------------------------
# Global store singleton (set during startup)
# ---------------------------------------------------------------------------
_store: DataStore | None = None


def set_store(store: DataStore) -> None:
    global _store
    _store = store


def get_store() -> DataStore:
    if _store is None or not _store.is_loaded:
        raise HTTPException(503, "Data not loaded yet")
    return _store


def get_store_or_empty() -> DataStore:
    """Return the store even if it has no data (for health/reload endpoints)."""
    if _store is None:
        raise HTTPException(503, "Server not initialized yet")
    return _store


# ---------------------------------------------------------------------------
# Filter parsing from query params
# ---------------------------------------------------------------------------

def parse_filter(
    store: DataStore = Depends(get_store_or_empty),
    grades: Optional[list[str]] = Query(None, description="Exact grade; repeat for several"),
    min_year: Optional[str] = Query(None, description="Year or 下限なし"),
    max_year: Optional[str] = Query(None, description="Year or 上限なし"),
    min_price: Optional[float] = Query(None, ge=0, description="万円"),
    max_price: Optional[float] = Query(None, ge=0, description="万円"),
    min_mileage: Optional[str] = Query(None, description="km, \"10,000km\" or 下限なし"),
    max_mileage: Optional[str] = Query(None, description="km, \"10,000km\" or 上限なし"),
    transmission: str = Query(ALL_OPTION),
    repair_history: str = Query(RepairFilter.ALL.value, description="すべて|あり|なし"),
    exclude: Optional[list[str]] = Query(None, description="Exclude keyword; repeat for several"),
    use_exclude_file: bool = Query(True, description="Also apply the data folder's exclude list"),
    reset: bool = Query(False, description="Start from the dataset's own ranges"),
) -> FilterSpec:
    """Build a FilterSpec from query parameters.

    Missing bounds are open. Year and mileage accept the dropdown values
    ("10,000km", 下限なし, 上限なし) as well as plain numbers.
    """
    try:
        repair = RepairFilter(repair_history)
    except ValueError:
        raise HTTPException(400, f"Invalid repair_history: {repair_history}")

    base = store.default_filter() if reset else FilterSpec()
    keywords = list(exclude or [])
    if use_exclude_file:
        keywords += [k for k in store.exclude_keywords if k not in keywords]

    return FilterSpec(
        selected_grades=frozenset(grades or []),
        min_year=parse_year_option(min_year, base.min_year),
        max_year=parse_year_option(max_year, base.max_year),
        min_price=man_to_yen(min_price, base.min_price),
        max_price=man_to_yen(max_price, base.max_price),
        min_mileage=parse_mileage_option(min_mileage, base.min_mileage),
        max_mileage=parse_mileage_option(max_mileage, base.max_mileage),
        transmission=transmission or ALL_OPTION,
        repair_history=repair,
        exclude_keywords=tuple(keywords),
    )
