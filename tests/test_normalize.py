import datetime as dt

import pandas as pd

from app.data.normalize import (
    clean_grade,
    normalize_frame,
    normalize_record,
    parse_mileage,
    parse_price,
    parse_repair_history,
    parse_year,
)
from app.data.schemas import VEHICLE_COLUMNS


def test_price_with_man_unit_is_scaled():
    assert parse_price("1,234.5万円") == 12_345_000
    assert parse_price("398万円") == 3_980_000
    assert parse_price("12.5万") == 125_000


def test_price_plain_yen_and_fullwidth():
    assert parse_price("298,000円") == 298_000
    assert parse_price("￥２９８，０００") == 298_000
    assert parse_price(" 1 500 000 ") == 1_500_000


def test_price_rounds_half_to_even():
    assert parse_price("0.00005万円") == 0
    assert parse_price("0.00015万円") == 2


def test_price_blank_is_zero_without_diagnostic():
    notes = []
    assert parse_price("", notes) == 0
    assert parse_price(None, notes) == 0
    assert parse_price(float("nan"), notes) == 0
    assert notes == []


def test_price_unparseable_is_zero_with_diagnostic():
    notes = []
    assert parse_price("応談", notes) == 0
    assert parse_price("1.2.3万円", notes) == 0
    assert [n.field for n in notes] == ["price", "price"]
    assert notes[0].original_text == "応談"


def test_year_drops_era_suffix():
    assert parse_year("2025(R07)") == 2025
    assert parse_year("2019(H31)") == 2019


def test_year_two_digit_window():
    assert parse_year("05") == 2005
    assert parse_year("95") == 1995
    assert parse_year("30") == 2030
    assert parse_year("31") == 1931


def test_year_other_forms():
    assert parse_year("2019/10") == 2019
    assert parse_year("２０２０年") == 2020
    assert parse_year("H30") == 2030
    assert parse_year("123") == 2111
    assert parse_year("1998") == 1998


def test_year_unparseable():
    notes = []
    assert parse_year("", notes) == 0
    assert notes == []
    assert parse_year("不明", notes) == 0
    assert len(notes) == 1 and notes[0].field == "year"


def test_mileage_units():
    assert parse_mileage("3.4万km") == 34_000
    assert parse_mileage("12,345km") == 12_345
    assert parse_mileage("0.5万km") == 5_000
    assert parse_mileage("５万km") == 50_000


def test_mileage_truncates():
    assert parse_mileage("1.23456万km") == 12_345


def test_mileage_unparseable():
    notes = []
    assert parse_mileage("", notes) == 0
    assert parse_mileage("不明", notes) == 0
    assert [n.field for n in notes] == ["mileage"]


def test_repair_history():
    assert parse_repair_history("あり") is True
    assert parse_repair_history("修復歴あり") is True
    assert parse_repair_history("なし") is False
    assert parse_repair_history(None) is False


def test_clean_grade_rules():
    assert clean_grade("ZX 1489.5万円 売#200台") == "ZX"
    assert clean_grade("GR SPORT 8-SPEED") == "GR SPORT"
    assert clean_grade("V8 自然吸気  エンジン最終搭載 ") == "V8"
    assert clean_grade("AX   Lパッケージ") == "AX Lパッケージ"
    assert clean_grade("") == ""
    assert clean_grade(None) == ""


def test_clean_grade_truncates_and_recleans_stably():
    long = "A" * 60
    once = clean_grade(long)
    assert len(once) == 50 and once.endswith("...")
    assert clean_grade(once) == once
    for g in ["ZX 1489.5万円 売#200台", "GR SPORT 8-SPEED", "VX"]:
        assert clean_grade(clean_grade(g)) == clean_grade(g)


def test_clean_grade_second_pass_can_strip_exposed_price():
    once = clean_grade("1売#2台円")
    assert once == "1円"
    assert clean_grade(once) == ""


def test_normalize_record_maps_columns():
    raw = {
        "車種名": "ランドクルーザー",
        "グレード": "ZX",
        "支払総額": "850万円",
        "年式": "2022(R04)",
        "走行距離": "1.2万km",
        "ミッション": "AT",
        "修復歴": "なし",
        "備考": "ワンオーナー",
        "販売店": "ignored",
    }
    result = normalize_record(raw, batch_date=dt.date(2025, 8, 6), source_group="ランドクルーザー")
    rec = result.record
    assert rec.price == 8_500_000
    assert rec.year == 2022
    assert rec.mileage == 12_000
    assert rec.has_repair_history is False
    assert rec.comments == "ワンオーナー"
    assert rec.batch_date == dt.date(2025, 8, 6)
    assert rec.source_group == "ランドクルーザー"
    assert rec.detail_url == ""
    assert result.diagnostics == []


def test_normalize_record_fresh_ids_and_diagnostics():
    raw = {"車種名": "X", "支払総額": "応談", "年式": "??"}
    first = normalize_record(raw)
    second = normalize_record(raw)
    assert first.record.id != second.record.id
    assert {d.field for d in first.diagnostics} == {"price", "year"}
    assert all(d.record_id == first.record.id for d in first.diagnostics)


def test_normalize_frame_dtypes():
    raw = pd.DataFrame([
        {"車種名": "A", "支払総額": "100万円", "年式": "2020", "走行距離": "1万km"},
        {"車種名": "B", "支払総額": "", "年式": "", "走行距離": ""},
    ])
    df, notes = normalize_frame(raw, source_group="A")
    assert list(df.columns) == VEHICLE_COLUMNS
    assert df["price"].tolist() == [1_000_000, 0]
    assert str(df["price"].dtype) == "int64"
    assert df["has_repair_history"].dtype == bool
    assert notes == []


def test_oversized_numbers_fall_back_to_zero():
    notes = []
    assert parse_price("1" * 25 + "円", notes) == 0
    assert parse_year("20212021202120212021", notes) == 0
    assert parse_mileage("9" * 19 + "万km", notes) == 0
    assert [(n.field, n.reason) for n in notes] == [
        ("price", "out of range"),
        ("year", "out of range"),
        ("mileage", "out of range"),
    ]
    assert parse_price("4611686018427387905円") == 0
    assert parse_price("4611686018427387904円") == 2**62


def test_normalize_frame_survives_oversized_year():
    raw = pd.DataFrame({"車種名": ["M"], "グレード": ["GX"], "支払総額": ["300万円"],
                        "年式": ["20212021202120212021"]})
    df, notes = normalize_frame(raw)
    assert df.loc[0, "year"] == 0
    assert df.loc[0, "price"] == 3_000_000
    assert [n.reason for n in notes] == ["out of range"]
