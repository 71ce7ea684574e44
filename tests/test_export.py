import datetime as dt
import io

import pandas as pd

from app.config import EXPORT_HEADERS
from app.data.export import export_csv, export_filename, write_csv
from app.data.loader import read_raw_csv
from app.data.normalize import normalize_frame
from app.data.schemas import VEHICLE_COLUMNS


def _read(data: bytes) -> pd.DataFrame:
    return pd.read_csv(io.BytesIO(data), encoding="utf-8-sig", dtype=str, keep_default_na=False)


def test_export_starts_with_bom_and_japanese_headers(sample_df):
    data = export_csv(sample_df)
    assert data.startswith(b"\xef\xbb\xbf")
    header = data.decode("utf-8-sig").splitlines()[0].split(",")
    assert header == [EXPORT_HEADERS[c] for c in VEHICLE_COLUMNS]


def test_export_rows_in_order(sample_df):
    out = _read(export_csv(sample_df))
    assert out["ID"].tolist() == ["a", "b", "c", "d", "e", "f"]
    assert out["支払総額"].tolist()[:2] == ["8000000", "9500000"]
    assert out["修復歴"].tolist() == ["なし", "なし", "あり", "なし", "なし", "なし"]
    assert out["データ日付"].tolist() == ["2025-08-01", "2025-08-01", "2025-08-02", "2025-08-02", "", ""]


def test_exported_file_loads_again(sample_df, tmp_path):
    path = write_csv(sample_df, tmp_path / "out" / "export.csv")
    df, notes = normalize_frame(read_raw_csv(path))
    assert df["price"].tolist() == sample_df["price"].tolist()
    assert df["year"].tolist() == sample_df["year"].tolist()
    assert df["mileage"].tolist() == sample_df["mileage"].tolist()
    assert df["has_repair_history"].tolist() == sample_df["has_repair_history"].tolist()
    assert df["comments"].tolist() == sample_df["comments"].tolist()


def test_export_empty_frame_has_header_only(sample_df):
    text = export_csv(sample_df.iloc[0:0]).decode("utf-8-sig")
    assert text.strip().splitlines() == [",".join(EXPORT_HEADERS[c] for c in VEHICLE_COLUMNS)]


def test_export_filename():
    assert export_filename(dt.datetime(2025, 8, 6, 14, 3, 9)) == "CarData_Export_20250806_140309.csv"


def test_unknown_year_exported_blank(sample_df):
    out = _read(export_csv(sample_df))
    assert out["年式"].tolist() == ["2022", "2023", "2015", "2021", "", "2018"]
