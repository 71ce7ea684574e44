"""Listing loading, normalization, filtering, and the in-memory dataset."""
from .loader import discover_csvs, discover_models, dedupe_vehicles, load_model_csvs
from .store import DataStore
from .schemas import FilterSpec, RepairFilter, VehicleRecord
from .normalize import normalize_record, parse_price, parse_year, parse_mileage, clean_grade
from .filtering import apply_filters
