"""
Filter engine — applies a FilterSpec to the vehicle dataset.

Also derives the filter-panel options (grade list, ranges, dropdown values)
from whatever dataset is loaded.
"""
from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal

import pandas as pd

from app.config import (
    ALL_OPTION,
    MAN,
    MILEAGE_OPTION_STEP,
    NO_LOWER_BOUND,
    NO_UPPER_BOUND,
    TRANSMISSION_TYPES,
)
from app.data.schemas import FilterSpec, RepairFilter


_KEYWORD_COLUMNS = ["name", "grade", "comments"]


def apply_filters(df: pd.DataFrame, spec: FilterSpec) -> pd.DataFrame:
    """Return the rows of df passing every predicate in spec, in original order.

    Always returns a new frame; df is never modified.
    """
    if df.empty:
        return df.copy()

    mask = pd.Series(True, index=df.index)

    if spec.selected_grades:
        mask &= df["grade"].isin(spec.selected_grades)

    mask &= df["year"].between(spec.min_year, spec.max_year)
    mask &= df["price"].between(spec.min_price, spec.max_price)
    mask &= df["mileage"].between(spec.min_mileage, spec.max_mileage)

    if spec.transmission != ALL_OPTION:
        mask &= df["transmission"] == spec.transmission

    if spec.repair_history == RepairFilter.HAS:
        mask &= df["has_repair_history"]
    elif spec.repair_history == RepairFilter.NONE:
        mask &= ~df["has_repair_history"]

    for keyword in spec.exclude_keywords:
        if not keyword:
            continue
        hit = pd.Series(False, index=df.index)
        for col in _KEYWORD_COLUMNS:
            hit |= df[col].str.contains(keyword, regex=False)
        mask &= ~hit

    return df[mask].copy()


# ---------------------------------------------------------------------------
# Filter-panel options
# ---------------------------------------------------------------------------

def _known(df: pd.DataFrame, col: str) -> pd.Series:
    return df.loc[df[col] > 0, col]


def mileage_option_label(km: int) -> str:
    return f"{km:,}km"


def filter_options(df: pd.DataFrame) -> dict:
    """Everything a filter panel needs to render for this dataset.

    Prices are in 万円: floor of the lowest and ceiling of the highest
    known price. Years and mileage ignore unknown (0) values.
    """
    transmissions = list(TRANSMISSION_TYPES)
    options = {
        "grades": [],
        "transmissions": transmissions,
        "repair_history": [r.value for r in RepairFilter],
        "year_range": None,
        "price_range": None,
        "mileage_range": None,
        "year_min_options": [NO_LOWER_BOUND],
        "year_max_options": [NO_UPPER_BOUND],
        "mileage_min_options": [NO_LOWER_BOUND],
        "mileage_max_options": [NO_UPPER_BOUND],
    }
    if df.empty:
        return options

    grades = df.loc[df["grade"].str.strip() != "", "grade"]
    options["grades"] = sorted(grades.unique().tolist())

    seen = sorted(t for t in df["transmission"].unique().tolist() if t.strip())
    options["transmissions"] = transmissions + [t for t in seen if t not in transmissions]

    years = _known(df, "year")
    if not years.empty:
        distinct = sorted(int(y) for y in years.unique())
        options["year_range"] = {"min": distinct[0], "max": distinct[-1]}
        options["year_min_options"] += [str(y) for y in distinct]
        options["year_max_options"] += [str(y) for y in distinct]

    prices = _known(df, "price")
    if not prices.empty:
        options["price_range"] = {
            "min": math.floor(int(prices.min()) / MAN),
            "max": math.ceil(int(prices.max()) / MAN),
        }

    mileages = _known(df, "mileage")
    if not mileages.empty:
        lo, hi = int(mileages.min()), int(mileages.max())
        options["mileage_range"] = {"min": lo, "max": hi}
        steps = [mileage_option_label(km) for km in range(0, hi + 1, MILEAGE_OPTION_STEP)]
        options["mileage_min_options"] += steps
        options["mileage_max_options"] += steps

    return options


def default_filter(df: pd.DataFrame, exclude_keywords: tuple[str, ...] = ()) -> FilterSpec:
    """The "reset" filter: bounds set to the dataset's own ranges, everything else open.

    Like the reset button, this hides records whose year, price or mileage
    is unknown whenever the dataset has known values for that field.
    """
    opts = filter_options(df)
    kwargs: dict = {"exclude_keywords": tuple(exclude_keywords)}
    if opts["year_range"]:
        kwargs["min_year"] = opts["year_range"]["min"]
        kwargs["max_year"] = opts["year_range"]["max"]
    if opts["price_range"]:
        kwargs["min_price"] = opts["price_range"]["min"] * MAN
        kwargs["max_price"] = opts["price_range"]["max"] * MAN
    if opts["mileage_range"]:
        kwargs["min_mileage"] = opts["mileage_range"]["min"]
        kwargs["max_mileage"] = opts["mileage_range"]["max"]
    return FilterSpec(**kwargs)


# ---------------------------------------------------------------------------
# Dropdown value parsing
# ---------------------------------------------------------------------------

def _parse_option(text: str | None, default: int, strip: tuple[str, ...] = ()) -> int:
    if text is None:
        return default
    value = text.strip()
    if value in (NO_LOWER_BOUND, NO_UPPER_BOUND, ""):
        return default
    for token in strip:
        value = value.replace(token, "")
    try:
        return int(value)
    except ValueError:
        return default


def parse_year_option(text: str | None, default: int) -> int:
    """Parse a year choice: "2019" → 2019; 下限なし/上限なし or junk → default."""
    return _parse_option(text, default)


def parse_mileage_option(text: str | None, default: int) -> int:
    """Parse a mileage choice: "10,000km" → 10000; 下限なし/上限なし or junk → default."""
    return _parse_option(text, default, strip=(",", "km"))


def man_to_yen(value: float | None, default: int) -> int:
    """A 万円 amount as entered in a filter → integer yen (half-even)."""
    if value is None:
        return default
    yen = Decimal(str(value)) * MAN
    return int(yen.to_integral_value(rounding=ROUND_HALF_EVEN))
