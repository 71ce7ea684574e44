"""
Pydantic response schemas for the API.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    loaded: bool
    model: Optional[str] = None
    rows: int
    files: int
    grades: int
    parse_failures: int


class ModelsResponse(BaseModel):
    models: list[str]
    current: Optional[str] = None


class Range(BaseModel):
    min: int
    max: int


class FilterOptionsResponse(BaseModel):
    grades: list[str]
    transmissions: list[str]
    repair_history: list[str]
    year_range: Optional[Range] = None
    price_range: Optional[Range] = None   # 万円
    mileage_range: Optional[Range] = None
    year_min_options: list[str]
    year_max_options: list[str]
    mileage_min_options: list[str]
    mileage_max_options: list[str]


class ReloadResponse(BaseModel):
    status: str
    message: str
