"""
Field parsing for raw listing rows: price, year, mileage, repair history, grade text.

Every parser is total. Malformed text falls back to the field's sentinel
(0, "" or False) and, when a diagnostics list is passed, records why.
"""
from __future__ import annotations

import datetime as dt
import re
import uuid
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Iterable, Mapping, Optional

import pandas as pd

from app.config import (
    COLUMN_MAP,
    ERA_LETTERS,
    ERA_YEAR_OFFSET,
    FULLWIDTH_DIGITS,
    GRADE_CLEAN_PATTERNS,
    GRADE_ELLIPSIS,
    GRADE_MAX_LENGTH,
    MAN,
    MAN_MARKER,
    MILEAGE_STRIP_TOKENS,
    OPEN_MAX,
    PRICE_STRIP_TOKENS,
    REPAIR_PRESENT,
    TWO_DIGIT_YEAR_PIVOT,
)
from app.data.schemas import VEHICLE_COLUMNS, ParseDiagnostic, VehicleRecord


_NON_NUMERIC_RE = re.compile(r"[^\d.]")
_DIGITS_RE = re.compile(r"[0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")
_GRADE_RULES = [re.compile(p) for p in GRADE_CLEAN_PATTERNS]


def _text(value) -> str:
    """Coerce a raw cell (str, None, NaN) to text."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value)


def _note(diagnostics: list | None, field_name: str, original: str, reason: str) -> None:
    if diagnostics is not None:
        diagnostics.append(ParseDiagnostic(field=field_name, original_text=original, reason=reason))


def _bounded(value: int, diagnostics: list | None, field_name: str, text: str) -> int:
    if value > OPEN_MAX:
        _note(diagnostics, field_name, text, "out of range")
        return 0
    return value


def _parse_amount(text: str, strip_tokens: list[str]) -> tuple[Decimal | None, bool]:
    """Strip unit/whitespace tokens and return (number, had_man_marker)."""
    had_man = MAN_MARKER in text
    value = text
    for token in strip_tokens:
        value = value.replace(token, "")
    value = value.translate(FULLWIDTH_DIGITS).strip()
    value = _NON_NUMERIC_RE.sub("", value)
    try:
        return Decimal(value), had_man
    except InvalidOperation:
        return None, had_man


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

def parse_price(raw, diagnostics: list | None = None) -> int:
    """Parse a total-price cell into integer yen.

    "1,234.5万円" → 12345000, "￥２９８，０００" → 298000. Blank → 0.
    """
    text = _text(raw)
    if not text.strip():
        return 0
    amount, had_man = _parse_amount(text, PRICE_STRIP_TOKENS)
    if amount is None:
        _note(diagnostics, "price", text, "price could not be converted to a number")
        return 0
    if had_man:
        amount *= MAN
    return _bounded(int(amount.to_integral_value(rounding=ROUND_HALF_EVEN)), diagnostics, "price", text)


# ---------------------------------------------------------------------------
# Year
# ---------------------------------------------------------------------------

def parse_year(raw, diagnostics: list | None = None) -> int:
    """Parse a model-year cell into a 4-digit year.

    "2025(R07)" → 2025, "05" → 2005, "95" → 1995, "2019/10" → 2019.
    Era letters are dropped before the two-digit rule, and three-digit
    values are treated as era offsets.
    """
    text = _text(raw)
    if not text.strip():
        return 0

    value = text.split("(")[0] if "(" in text else text
    for token in ["年", "(", ")", *ERA_LETTERS]:
        value = value.replace(token, "")
    value = value.strip()
    if "/" in value:
        value = value.split("/")[0]
    value = value.translate(FULLWIDTH_DIGITS).strip()

    if not _DIGITS_RE.fullmatch(value):
        _note(diagnostics, "year", text, "year is not an integer")
        return 0

    year = int(value)
    if year < 100:
        year += 2000 if year <= TWO_DIGIT_YEAR_PIVOT else 1900
    elif year < 1000:
        year += ERA_YEAR_OFFSET
    return _bounded(year, diagnostics, "year", text)


# ---------------------------------------------------------------------------
# Mileage
# ---------------------------------------------------------------------------

def parse_mileage(raw, diagnostics: list | None = None) -> int:
    """Parse a mileage cell into integer km. "3.4万km" → 34000, truncated."""
    text = _text(raw)
    if not text.strip():
        return 0
    amount, had_man = _parse_amount(text, MILEAGE_STRIP_TOKENS)
    if amount is None:
        _note(diagnostics, "mileage", text, "mileage could not be converted to a number")
        return 0
    if had_man:
        amount *= MAN
    return _bounded(int(amount), diagnostics, "mileage", text)


# ---------------------------------------------------------------------------
# Repair history / grade text
# ---------------------------------------------------------------------------

def parse_repair_history(raw) -> bool:
    return REPAIR_PRESENT in _text(raw)


def clean_grade(raw) -> str:
    """Strip price, dealer and engine annotations from a grade for grouping.

    The rules run in a fixed order. Cleaning a cleaned grade is usually a
    no-op, but removing a dealer marker can expose a price pattern that a
    second pass strips ("1売#2台円" → "1円" → "").
    """
    grade = _text(raw)
    if not grade.strip():
        return ""
    for rule in _GRADE_RULES:
        grade = rule.sub("", grade).strip()
    grade = _WHITESPACE_RE.sub(" ", grade).strip()
    if len(grade) > GRADE_MAX_LENGTH:
        grade = grade[:GRADE_MAX_LENGTH - len(GRADE_ELLIPSIS)] + GRADE_ELLIPSIS
    return grade


# ---------------------------------------------------------------------------
# Record normalisation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NormalizedRecord:
    record: VehicleRecord
    diagnostics: list[ParseDiagnostic] = field(default_factory=list)


def _map_columns(raw: Mapping) -> dict[str, str]:
    """Pick known source columns; the first non-empty alias wins."""
    mapped: dict[str, str] = {}
    for source, target in COLUMN_MAP.items():
        if source in raw and not mapped.get(target):
            mapped[target] = _text(raw[source])
    return mapped


def normalize_record(
    raw: Mapping,
    *,
    batch_date: Optional[dt.date] = None,
    source_group: str = "",
) -> NormalizedRecord:
    """Convert one raw CSV row (Japanese headers) into a VehicleRecord.

    Never raises. Each call issues a fresh id, so the same row normalised
    twice yields two distinct records.
    """
    cols = _map_columns(raw)
    notes: list[ParseDiagnostic] = []
    record_id = uuid.uuid4().hex

    record = VehicleRecord(
        id=record_id,
        name=cols.get("name", ""),
        model=cols.get("model", ""),
        grade=cols.get("grade", ""),
        transmission=cols.get("transmission", ""),
        engine_capacity=cols.get("engine_capacity", ""),
        comments=cols.get("comments", ""),
        price=parse_price(cols.get("price"), notes),
        year=parse_year(cols.get("year"), notes),
        mileage=parse_mileage(cols.get("mileage"), notes),
        has_repair_history=parse_repair_history(cols.get("repair_history")),
        acquisition_datetime=cols.get("acquisition_datetime", ""),
        acquisition_date=cols.get("acquisition_date", ""),
        acquisition_time=cols.get("acquisition_time", ""),
        source_url=cols.get("source_url", ""),
        detail_url=cols.get("detail_url", ""),
        batch_date=batch_date,
        source_group=source_group,
    )
    notes = [
        ParseDiagnostic(n.field, n.original_text, n.reason, record_id=record_id)
        for n in notes
    ]
    return NormalizedRecord(record=record, diagnostics=notes)


# ---------------------------------------------------------------------------
# DataFrame helpers
# ---------------------------------------------------------------------------

def records_to_frame(records: Iterable[VehicleRecord]) -> pd.DataFrame:
    """Build a dataset DataFrame (one row per record, VEHICLE_COLUMNS order)."""
    df = pd.DataFrame([asdict(r) for r in records], columns=VEHICLE_COLUMNS)
    for col in ["price", "year", "mileage"]:
        df[col] = df[col].astype("int64")
    df["has_repair_history"] = df["has_repair_history"].astype(bool)
    df["batch_date"] = df["batch_date"].astype(object)
    return df


def frame_to_records(df: pd.DataFrame) -> list[VehicleRecord]:
    rows = df[VEHICLE_COLUMNS].to_dict("records")
    out = []
    for row in rows:
        batch = row["batch_date"]
        row["batch_date"] = None if batch is None or pd.isna(batch) else batch
        for col in ["price", "year", "mileage"]:
            row[col] = int(row[col])
        row["has_repair_history"] = bool(row["has_repair_history"])
        out.append(VehicleRecord(**row))
    return out


def diagnostics_to_frame(diagnostics: Iterable[ParseDiagnostic]) -> pd.DataFrame:
    return pd.DataFrame(
        [asdict(d) for d in diagnostics],
        columns=["field", "original_text", "reason", "record_id"],
    )


def normalize_frame(
    raw_df: pd.DataFrame,
    *,
    batch_date: Optional[dt.date] = None,
    source_group: str = "",
) -> tuple[pd.DataFrame, list[ParseDiagnostic]]:
    """Normalise every row of a raw CSV frame. Returns (dataset, diagnostics)."""
    records: list[VehicleRecord] = []
    diagnostics: list[ParseDiagnostic] = []
    for raw in raw_df.to_dict("records"):
        result = normalize_record(raw, batch_date=batch_date, source_group=source_group)
        records.append(result.record)
        diagnostics.extend(result.diagnostics)
    return records_to_frame(records), diagnostics
