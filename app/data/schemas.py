"""
Vehicle record, parse diagnostic and filter schemas.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

from app.config import ALL_OPTION, OPEN_MAX


class RepairFilter(str, Enum):
    ALL = ALL_OPTION
    NONE = "なし"
    HAS = "あり"


@dataclass(frozen=True)
class VehicleRecord:
    """One normalized listing. price/year/mileage use 0 for "unknown"."""
    id: str
    name: str = ""
    model: str = ""
    grade: str = ""
    transmission: str = ""
    engine_capacity: str = ""
    comments: str = ""
    price: int = 0                       # yen
    year: int = 0
    mileage: int = 0                     # km
    has_repair_history: bool = False
    acquisition_datetime: str = ""
    acquisition_date: str = ""
    acquisition_time: str = ""
    source_url: str = ""
    detail_url: str = ""
    batch_date: Optional[dt.date] = None  # date encoded in the CSV file name
    source_group: str = ""               # model folder the CSV came from


VEHICLE_COLUMNS = [f.name for f in fields(VehicleRecord)]
NUMERIC_COLUMNS = ["price", "year", "mileage"]


@dataclass(frozen=True)
class ParseDiagnostic:
    """A field that could not be parsed and fell back to its sentinel."""
    field: str
    original_text: str
    reason: str
    record_id: str = ""


@dataclass(frozen=True)
class FilterSpec:
    """Declarative filter over the vehicle dataset.

    The default instance passes every record. Prices are in yen.
    """
    selected_grades: frozenset[str] = field(default_factory=frozenset)  # empty = all
    min_year: int = 0
    max_year: int = OPEN_MAX
    min_price: int = 0
    max_price: int = OPEN_MAX
    min_mileage: int = 0
    max_mileage: int = OPEN_MAX
    transmission: str = ALL_OPTION
    repair_history: RepairFilter = RepairFilter.ALL
    exclude_keywords: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        """Short human-readable description of the active predicates."""
        parts = []
        if self.selected_grades:
            parts.append(f"{len(self.selected_grades)} grades")
        if self.min_year > 0 or self.max_year < OPEN_MAX:
            hi = self.max_year if self.max_year < OPEN_MAX else ""
            parts.append(f"year {self.min_year or ''}-{hi}")
        if self.min_price > 0 or self.max_price < OPEN_MAX:
            hi = f"{self.max_price / 10_000:g}" if self.max_price < OPEN_MAX else ""
            parts.append(f"price {self.min_price / 10_000:g}-{hi}万円")
        if self.min_mileage > 0 or self.max_mileage < OPEN_MAX:
            hi = f"{self.max_mileage:,}" if self.max_mileage < OPEN_MAX else ""
            parts.append(f"mileage {self.min_mileage:,}-{hi}km")
        if self.transmission != ALL_OPTION:
            parts.append(self.transmission)
        if self.repair_history != RepairFilter.ALL:
            parts.append(f"修復歴{self.repair_history.value}")
        if self.exclude_keywords:
            parts.append("excluding " + ", ".join(self.exclude_keywords))
        return " | ".join(parts) if parts else "All Vehicles"
