from __future__ import annotations

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from _helpers import ACME, BOLT
import api.main as api_main
from api.main import app, get_dashboard
from webforms.config import DashboardConfig
from webforms.dashboard import WebformDashboard
from webforms.sorting import SortState


@pytest.fixture()
def dashboard(catalog, config, mock_client):
    dashboard = WebformDashboard(catalog, config)

    async def _load():
        async with mock_client({"A.json": ACME, "B.json": BOLT}) as client:
            await dashboard.reload(client=client)

    asyncio.run(_load())
    return dashboard


@pytest.fixture()
def client(dashboard):
    app.dependency_overrides[get_dashboard] = lambda: dashboard
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_meta_endpoints(client):
    resources = client.get("/meta/resources").json()["resources"]
    assert [r["identifier"] for r in resources] == ["A.json", "B.json", "C.json"]

    summary = client.get("/meta/summary").json()
    assert summary == {"total": 3, "loaded": 2, "failed": ["C.json"], "ready": True}


def test_webforms_sort_is_per_request(client, dashboard):
    body = client.get("/webforms").json()
    assert body["sort"] == {"key": "identifier", "direction": "asc"}
    assert [r["identifier"] for r in body["rows"]] == ["A.json", "B.json", "C.json"]
    assert body["rows"][2]["CustomerName"] is None
    assert body["next"]["identifier"] == "desc"
    assert body["next"]["NumberOfCards"] == "asc"

    for _ in range(2):
        body = client.get("/webforms", params={"key": "NumberOfCards"}).json()
        assert body["sort"] == {"key": "NumberOfCards", "direction": "asc"}
        assert [r["identifier"] for r in body["rows"]] == ["B.json", "C.json", "A.json"]
    assert body["next"]["NumberOfCards"] == "desc"

    body = client.get("/webforms", params={"key": "NumberOfCards", "direction": "desc"}).json()
    assert [r["identifier"] for r in body["rows"]] == ["A.json", "B.json", "C.json"]

    body = client.get("/webforms", params={"key": "identifier", "direction": "desc"}).json()
    assert [r["identifier"] for r in body["rows"]] == ["C.json", "B.json", "A.json"]
    assert dashboard.sort_state == SortState()


def test_webforms_rejects_unknown_key(client):
    resp = client.get("/webforms", params={"key": "bogus"})
    assert resp.status_code == 400
    assert resp.json()["type"] == "ValueError"


def test_reports_payload(client):
    body = client.get("/reports").json()
    assert body["empty"] is False
    assert [p["label"] for p in body["points"]] == ["acme"]
    assert body["points"][0]["width_a"] == 100.0
    assert body["max_a"] == 10 and body["max_b"] == 5
    assert body["chart"]["encoding"]["x"]["field"] == "width"


def test_export_csv(client):
    resp = client.get("/export/webforms")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.text.splitlines()[0].startswith("identifier,location,loaded")


def test_reload_and_no_data_state(tmp_path):
    (tmp_path / "empty.json").write_text(json.dumps({"RepoNumberOfCommits": 0}), encoding="utf-8")
    dashboard = WebformDashboard.from_config(DashboardConfig(data_dir=tmp_path))
    app.dependency_overrides[get_dashboard] = lambda: dashboard
    try:
        client = TestClient(app)
        summary = client.post("/reload").json()
        assert summary["loaded"] == 1 and summary["ready"] is True

        reports = client.get("/reports").json()
        assert reports["empty"] is True
        assert reports["chart"] is None
        assert reports["points"] == []
    finally:
        app.dependency_overrides.clear()


def test_export_csv_honours_sort_params(client):
    resp = client.get("/export/webforms", params={"key": "NumberOfCards", "direction": "desc"})
    rows = resp.text.splitlines()[1:]
    assert [line.split(",")[0] for line in rows] == ["A.json", "B.json", "C.json"]
    assert client.get("/export/webforms", params={"key": "bogus"}).status_code == 400


@pytest.mark.asyncio
async def test_concurrent_cold_start_loads_once(monkeypatch):
    dashboard = WebformDashboard([], DashboardConfig())
    calls = 0

    async def fake_reload(*, client=None):
        nonlocal calls
        calls += 1
        await asyncio.sleep(0.01)
        dashboard.loaded = True
        return dashboard.snapshot

    monkeypatch.setattr(dashboard, "reload", fake_reload)
    monkeypatch.setattr(api_main, "_dashboard", dashboard)
    monkeypatch.setattr(api_main, "_dashboard_lock", asyncio.Lock())

    first, second = await asyncio.gather(get_dashboard(), get_dashboard())
    assert first is second is dashboard
    assert calls == 1
