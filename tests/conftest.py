import datetime as dt
import itertools

import pandas as pd
import pytest

from app.data.normalize import records_to_frame
from app.data.schemas import VehicleRecord

_ids = itertools.count(1)


def vehicle(**kwargs) -> VehicleRecord:
    kwargs.setdefault("id", f"v{next(_ids)}")
    return VehicleRecord(**kwargs)


def frame(*records: VehicleRecord) -> pd.DataFrame:
    return records_to_frame(records)


HEADER = "車種名,グレード,支払総額,年式,走行距離,ミッション,修復歴,取得日,備考\n"


def write_csv(path, rows: list[str], encoding: str = "utf-8-sig"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(HEADER + "\n".join(rows) + "\n", encoding=encoding)
    return path


@pytest.fixture
def sample_df() -> pd.DataFrame:
    """Six listings covering unknown values, repair history and two batch dates."""
    d1 = dt.date(2025, 8, 1)
    d2 = dt.date(2025, 8, 2)
    return frame(
        vehicle(id="a", name="ランドクルーザー", grade="ZX", price=8_000_000, year=2022,
                mileage=12_000, transmission="AT", batch_date=d1),
        vehicle(id="b", name="ランドクルーザー", grade="GR SPORT", price=9_500_000, year=2023,
                mileage=5_000, transmission="AT", batch_date=d1),
        vehicle(id="c", name="ランドクルーザー", grade="VX", price=4_200_000, year=2015,
                mileage=98_000, transmission="MT", has_repair_history=True, batch_date=d2),
        vehicle(id="d", name="ランドクルーザー", grade="ZX", price=0, year=2021,
                mileage=30_000, transmission="AT", batch_date=d2),
        vehicle(id="e", name="ランドクルーザー 事故車", grade="AX", price=3_000_000, year=0,
                mileage=0, transmission="AT", comments="現状販売"),
        vehicle(id="f", name="ランドクルーザー", grade="", price=5_500_000, year=2018,
                mileage=60_000, transmission="CVT", acquisition_date="2025-08-03"),
    )
