from __future__ import annotations

import json

import httpx
import pytest

from hotspotmap.config.settings import CatalogSettings, RecordsSettings, Settings
from hotspotmap.core.errors import DataError
from hotspotmap.ingestion.records import (
    FatalError,
    LocalRecordSource,
    RecordsClient,
    RetryableError,
    UpdateOk,
    build_record_source,
)


def _settings() -> Settings:
    return Settings(records=RecordsSettings(base_url="https://rows.example/", table_id="tbl1", token="tok", page_limit=50))


def _client(handler) -> RecordsClient:
    return RecordsClient(_settings(), transport=httpx.MockTransport(handler))


def test_list_records_sends_token_and_unwraps_envelope():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"list": [{"Id": 1}, {"Id": 2}], "pageInfo": {"totalRows": 2}})

    rows = _client(handler).list_records()

    assert rows == [{"Id": 1}, {"Id": 2}]
    req = seen[0]
    assert req.method == "GET"
    assert str(req.url) == "https://rows.example/api/v2/tables/tbl1/records?limit=50"
    assert req.headers["xc-token"] == "tok"
    assert req.headers["User-Agent"].startswith("hotspotmap/")


def test_list_records_maps_http_errors_to_data_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"msg": "ignored", "message": "Invalid token"})

    with pytest.raises(DataError, match="Invalid token") as exc:
        _client(handler).list_records()
    assert exc.value.status_code == 401


def test_list_records_maps_transport_errors_to_data_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DataError, match="unreachable"):
        _client(handler).list_records()


def test_list_records_rejects_invalid_json():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(DataError, match="invalid JSON"):
        _client(handler).list_records()


def test_update_record_returns_ok_with_primary_key_in_body():
    bodies = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"Id": 7})

    outcome = _client(handler).update_record(7, {"SENHA-WIFI-2G": "new", "SENHA-WIFI-5G": None})

    assert outcome == UpdateOk(record={"Id": 7})
    assert bodies == [{"SENHA-WIFI-2G": "new", "Id": 7}]


@pytest.mark.parametrize(("status", "kind"), [(429, RetryableError), (503, RetryableError), (400, FatalError), (404, FatalError)])
def test_update_record_classifies_failures(status, kind):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"error": {"message": "nope"}})

    outcome = _client(handler).update_record(7, {"NOME-WIFI": "x"})

    assert isinstance(outcome, kind)
    assert outcome.status_code == status
    assert outcome.message == "nope"


def test_update_record_network_failure_is_retryable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    outcome = _client(handler).update_record(7, {"NOME-WIFI": "x"})
    assert isinstance(outcome, RetryableError)
    assert outcome.status_code is None


def test_update_record_rejects_empty_row_id_without_calling_out():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    outcome = _client(handler).update_record("  ", {"NOME-WIFI": "x"})
    assert isinstance(outcome, FatalError)
    assert calls == []


def test_create_and_delete_record():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, json.loads(request.content)))
        if request.method == "POST":
            return httpx.Response(200, json={"Id": 11})
        return httpx.Response(200, json=1)

    client = _client(handler)
    assert client.create_record({"NOME-WIFI": "Nova"}) == {"Id": 11}
    client.delete_record(11)

    assert seen == [("POST", {"NOME-WIFI": "Nova"}), ("DELETE", {"Id": 11})]


def test_client_requires_base_url():
    with pytest.raises(ValueError):
        RecordsClient(Settings())


def test_local_source_wraps_read_errors(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")

    with pytest.raises(DataError):
        LocalRecordSource(broken).list_records()
    with pytest.raises(DataError):
        LocalRecordSource(tmp_path / "missing.json").list_records()


def test_local_source_reads_export(tmp_path):
    path = tmp_path / "hotspots.json"
    path.write_text(json.dumps({"list": [{"Id": 1, "LATITUDE": "-20,3", "LONGITUDE": "-40,3"}]}), encoding="utf-8")

    assert LocalRecordSource(path).list_records() == [{"Id": 1, "LATITUDE": "-20,3", "LONGITUDE": "-40,3"}]


def test_build_record_source_prefers_remote_store():
    assert isinstance(build_record_source(_settings()), RecordsClient)
    local = build_record_source(Settings(catalog=CatalogSettings(path="data/hotspots.json")))
    assert isinstance(local, LocalRecordSource)
