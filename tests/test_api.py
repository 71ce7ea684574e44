import pytest
from fastapi.testclient import TestClient

from app.analytics.dashboard import dashboard_summary
from app.api import dependencies
from app.api.dependencies import set_store
from app.data.store import DataStore
from app.main import create_app


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def store(sample_df, tmp_path):
    (tmp_path / "ランドクルーザー").mkdir()
    (tmp_path / "ハリアー").mkdir()
    s = DataStore(tmp_path).set_data(sample_df, model="ランドクルーザー", data_dir=tmp_path)
    set_store(s)
    yield s
    dependencies._store = None


def ids(resp):
    return [r["id"] for r in resp.json()["rows"]]


def test_health(client, store):
    body = client.get("/api/health").json()
    assert body["status"] == "ok"
    assert body["loaded"] is True
    assert body["model"] == "ランドクルーザー"
    assert body["rows"] == 6
    assert body["grades"] == 4
    assert body["parse_failures"] == 0


def test_models(client, store):
    body = client.get("/api/models").json()
    assert body == {"models": ["ハリアー", "ランドクルーザー"], "current": "ランドクルーザー"}


def test_filter_options(client, store):
    body = client.get("/api/filter-options").json()
    assert body["price_range"] == {"min": 300, "max": 950}
    assert body["grades"] == ["AX", "GR SPORT", "VX", "ZX"]
    assert body["mileage_min_options"][0] == "下限なし"


def test_dashboard_matches_aggregator(client, store, sample_df):
    body = client.get("/api/dashboard").json()
    expected = dashboard_summary(sample_df)
    assert body["summary"] == expected["summary"]
    assert body["charts"] == expected["charts"]
    assert body["dataset_count"] == 6
    assert body["filter_label"] == "All Vehicles"


def test_dashboard_metric_selection(client, store):
    body = client.get("/api/dashboard", params={"metrics": ["median"]}).json()
    assert set(body["charts"]["price_trend"][0]) == {"date", "label", "count", "median"}
    assert client.get("/api/dashboard", params={"metrics": "mode"}).status_code == 400


def test_price_params_are_man_yen(client, store):
    resp = client.get("/api/vehicles", params={"min_price": 420, "max_price": 800})
    assert ids(resp) == ["a", "c", "f"]


def test_dropdown_params(client, store):
    resp = client.get("/api/vehicles", params={"min_mileage": "10,000km", "max_year": "上限なし"})
    assert ids(resp) == ["a", "c", "d", "f"]
    resp = client.get("/api/vehicles", params={"min_year": "2020", "transmission": "AT"})
    assert ids(resp) == ["a", "b", "d"]


def test_grade_and_repair_params(client, store):
    assert ids(client.get("/api/vehicles", params={"grades": ["ZX", "VX"]})) == ["a", "c", "d"]
    assert ids(client.get("/api/vehicles", params={"repair_history": "あり"})) == ["c"]
    assert client.get("/api/vehicles", params={"repair_history": "maybe"}).status_code == 400


def test_reset_uses_data_ranges(client, store):
    assert ids(client.get("/api/vehicles", params={"reset": "true"})) == ["a", "b", "c", "f"]


def test_exclude_keywords(client, store):
    assert ids(client.get("/api/vehicles", params={"exclude": "事故車"})) == ["a", "b", "c", "d", "f"]

    store.exclude_keywords = ("GR",)
    assert ids(client.get("/api/vehicles")) == ["a", "c", "d", "e", "f"]
    assert len(ids(client.get("/api/vehicles", params={"use_exclude_file": "false"}))) == 6


def test_vehicles_pagination(client, store):
    body = client.get("/api/vehicles", params={"limit": 2, "offset": 1}).json()
    assert body["total"] == 6
    assert [r["id"] for r in body["rows"]] == ["b", "c"]
    assert body["rows"][0]["batch_date"] == "2025-08-01"


def test_chart_by_view_label(client, store):
    body = client.get("/api/charts/価格分布").json()
    assert body["view"] == "price_distribution"
    assert sum(b["count"] for b in body["series"]) == 5
    assert client.get("/api/charts/grade_analysis").json()["series"][0]["grade"] == "GR SPORT"


def test_unknown_chart_is_404(client, store):
    assert client.get("/api/charts/pie").status_code == 404


def test_csv_export(client, store):
    resp = client.get("/api/export/csv", params={"transmission": "MT"})
    assert resp.status_code == 200
    assert resp.content.startswith(b"\xef\xbb\xbf")
    assert "CarData_Export_" in resp.headers["content-disposition"]
    lines = resp.content.decode("utf-8-sig").strip().splitlines()
    assert len(lines) == 2


def test_excel_export(client, store, tmp_path, monkeypatch):
    import app.api.router_export as router_export
    monkeypatch.setattr(router_export, "EXPORT_FOLDER", tmp_path / "exports")
    resp = client.get("/api/export/excel")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith(router_export.XLSX_MEDIA_TYPE)
    assert list((tmp_path / "exports").glob("Dashboard_*.xlsx"))


def test_reload_unknown_model_is_404(client, store):
    assert client.post("/api/reload", params={"model": "カローラ"}).status_code == 404


def test_not_loaded_is_503(client):
    set_store(DataStore())
    try:
        assert client.get("/api/dashboard").status_code == 503
        assert client.get("/api/health").json()["loaded"] is False
    finally:
        dependencies._store = None
    assert client.get("/api/health").status_code == 503


def test_index_lists_endpoints(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Car Market Analytics API"
    assert {"/api/dashboard", "/api/export/csv", "/api/charts/{view}"} <= set(body["endpoints"])
