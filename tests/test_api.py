from __future__ import annotations

from fastapi.testclient import TestClient

from hotspotmap.api.app import app
from hotspotmap.core.errors import DataError

RECORDS = [
    {"Id": 1, "NOME-WIFI": "Padaria", "NOME-CLIENTE": "Padaria Ltda", "SENHA-WIFI-2G": "pao", "LATITUDE": "-20,30000", "LONGITUDE": "-40,30000"},
    {"Id": 2, "NOME-WIFI": "Clinica", "LATITUDE": "-20.30010", "LONGITUDE": "-40.30015"},
    {"Id": 3, "NOME-WIFI": "Praia", "LATITUDE": -20.0, "LONGITUDE": -40.0},
    {"Id": 4, "NOME-WIFI": "Quebrado", "LATITUDE": "n/a", "LONGITUDE": "n/a"},
]


class _Source:
    def __init__(self, records=None, error: DataError | None = None):
        self.records = records or []
        self.error = error

    def list_records(self):
        if self.error is not None:
            raise self.error
        return list(self.records)


def _client(monkeypatch, source) -> TestClient:
    monkeypatch.setattr("hotspotmap.api.routes._source", lambda: source)
    return TestClient(app)


def test_hotspots_lists_normalized_points(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    resp = client.get("/api/hotspots")

    assert resp.status_code == 200
    data = resp.json()
    assert data["count"] == 3
    assert data["dropped"] == 1
    assert [h["id"] for h in data["hotspots"]] == ["1", "2", "3"]
    assert data["hotspots"][0]["lat"] == -20.3


def test_nearest_returns_proximity_card(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    resp = client.get("/api/nearest", params={"lat": -20.0001, "lng": -40.0001})

    assert resp.status_code == 200
    card = resp.json()
    assert card["point_id"] == "3"
    assert card["name"] == "Praia"
    assert card["within"] is True
    assert card["threshold_m"] == 350


def test_nearest_honours_threshold_override(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    resp = client.get("/api/nearest", params={"lat": -20.01, "lng": -40.01, "threshold_m": 100})

    card = resp.json()
    assert card["point_id"] == "3"
    assert card["within"] is False
    assert card["distance_label"].endswith("km")


def test_nearest_validates_input(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    resp = client.get("/api/nearest", params={"lat": 95, "lng": 0})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"

    resp = client.get("/api/nearest", params={"lat": 0, "lng": 0, "threshold_m": 0})
    assert resp.status_code == 400


def test_nearest_with_empty_catalog_returns_empty_card(monkeypatch):
    client = _client(monkeypatch, _Source([]))

    card = client.get("/api/nearest", params={"lat": 0, "lng": 0}).json()

    assert card["point_id"] is None
    assert card["message"].startswith("No hotspot within")


def test_clusters_partition(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    data = client.get("/api/clusters", params={"zoom": 13}).json()

    assert data["zoom"] == 13
    assert [c["child_ids"] for c in data["clusters"]] == [["1", "2"]]
    assert data["clusters"][0]["cluster_id"] == "13:1"
    assert [s["id"] for s in data["singletons"]] == ["3"]

    data = client.get("/api/clusters", params={"zoom": 19}).json()
    assert data["clusters"] == []
    assert len(data["singletons"]) == 3


def test_clusters_rejects_out_of_range_zoom(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    for zoom in (30, -1):
        resp = client.get("/api/clusters", params={"zoom": zoom})
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"


def test_unparseable_query_values_are_validation_errors(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    resp = client.get("/api/clusters", params={"zoom": "close"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "VALIDATION_ERROR"
    assert "zoom" in resp.json()["detail"]["message"]

    resp = client.get("/api/nearest", params={"lng": 0})
    assert resp.status_code == 400
    assert "lat" in resp.json()["detail"]["message"]


def test_data_error_maps_to_502(monkeypatch):
    client = _client(monkeypatch, _Source(error=DataError("Record store 503: down", status_code=503)))

    resp = client.get("/api/hotspots")

    assert resp.status_code == 502
    assert resp.json()["detail"] == {"code": "DATA_ERROR", "message": "Record store 503: down"}


def test_settings_endpoint_hides_secrets(monkeypatch):
    client = _client(monkeypatch, _Source(RECORDS))

    data = client.get("/api/settings").json()

    assert data["map"]["cluster_max_zoom"] == 18
    assert data["proximity"]["threshold_meters"] == 350
    assert "token" not in str(data)
    assert isinstance(data["records"]["remote"], bool)
