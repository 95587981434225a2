from __future__ import annotations

import pytest

from hotspotmap.catalog.loader import load_records, unwrap_records
from hotspotmap.catalog.normalize import coerce_point, normalize, normalize_report, parse_coordinate
from hotspotmap.core import env
from hotspotmap.core.errors import MalformedRecordError


def test_normalize_keeps_only_usable_records():
    records = [
        {"LATITUDE": "-20.3", "LONGITUDE": "-40.3"},
        {"LATITUDE": "abc", "LONGITUDE": "-40.3"},
        {"LATITUDE": "", "LONGITUDE": ""},
        {"LATITUDE": "-20,31", "LONGITUDE": "-40,29"},
    ]

    points = normalize(records)

    assert [(p.lat, p.lng) for p in points] == [(-20.3, -40.3), (-20.31, -40.29)]


def test_normalize_report_counts_dropped_records():
    report = normalize_report(
        [
            {"Id": 1, "LATITUDE": -20.3, "LONGITUDE": -40.3},
            {"Id": 2, "LATITUDE": 91, "LONGITUDE": 0},
            {"Id": 3, "LATITUDE": None, "LONGITUDE": -40.3},
            {"Id": 4},
            "not a record",
        ]
    )
    assert [p.id for p in report.points] == ["1"]
    assert report.dropped == 4


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "abc", "1,2,3", "nan", "inf", float("nan"), float("inf"), True, [1.0]],
)
def test_parse_coordinate_rejects_garbage(value):
    with pytest.raises(MalformedRecordError):
        parse_coordinate(value)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(-20.5, -20.5), (7, 7.0), ("-20,5", -20.5), (" 40.25 ", 40.25), ("+1.5", 1.5), ("-.5", -0.5)],
)
def test_parse_coordinate_accepts_numbers_and_locale_strings(value, expected):
    assert parse_coordinate(value) == expected


def test_out_of_range_record_is_never_defaulted_to_zero():
    points = normalize([{"LATITUDE": "-120", "LONGITUDE": "10"}, {"LATITUDE": "10", "LONGITUDE": "181"}])
    assert points == []


def test_identity_prefers_primary_key_then_coordinates():
    with_pk = coerce_point({"Id": 42, "LATITUDE": "-20.3", "LONGITUDE": "-40.3"})
    without_pk = coerce_point({"LATITUDE": "-20.3", "LONGITUDE": "-40.3"})
    blank_pk = coerce_point({"Id": "  ", "LATITUDE": "-20.3", "LONGITUDE": "-40.3"})

    assert with_pk.id == "42"
    assert without_pk.id == "-20.3,-40.3"
    assert blank_pk.id == without_pk.id


def test_keyless_records_at_same_position_share_an_identifier():
    points = normalize(
        [
            {"NOME-WIFI": "A", "LATITUDE": "-20.3", "LONGITUDE": "-40.3"},
            {"NOME-WIFI": "B", "LATITUDE": "-20,3", "LONGITUDE": "-40,3"},
        ]
    )
    assert len(points) == 2
    assert points[0].id == points[1].id


def test_normalize_is_idempotent():
    records = [
        {"Id": 1, "NOME-WIFI": "Padaria", "LATITUDE": "-20,31942", "LONGITUDE": "-40,33815"},
        {"NOME-WIFI": "Sem id", "LATITUDE": -20.2, "LONGITUDE": -40.1},
        {"Id": 3, "LATITUDE": "x", "LONGITUDE": "y"},
    ]
    once = normalize(records)

    # Feeding points back in (or their JSON dumps) must not change them.
    assert normalize(once) == once
    assert normalize([p.model_dump() for p in once]) == once


def test_payload_keeps_the_source_record():
    record = {"Id": 9, "NOME-WIFI": "Clinica", "SENHA-WIFI-2G": "abc", "LATITUDE": "-20.3", "LONGITUDE": "-40.3"}
    point = coerce_point(record)
    assert point.payload == record


def test_unwrap_records_handles_row_store_envelopes():
    rows = [{"Id": 1}, {"Id": 2}]
    assert unwrap_records(rows) == rows
    assert unwrap_records({"list": rows, "pageInfo": {}}) == rows
    assert unwrap_records({"records": rows}) == rows
    assert unwrap_records({"Id": 7}) == [{"Id": 7}]
    assert unwrap_records(None) == []
    assert unwrap_records([{"Id": 1}, "junk", 3]) == [{"Id": 1}]


def test_bundled_catalog_loads_and_drops_the_record_without_coordinates():
    report = normalize_report(load_records("data/hotspots.json"))

    assert [p.id for p in report.points] == ["1", "2", "3", "4"]
    assert report.dropped == 1
    assert report.points[0].lat == pytest.approx(-20.31942)


def test_relative_catalog_path_resolves_from_project_root(monkeypatch, tmp_path):
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "hotspots.json").write_text('[{"Id": 1, "LATITUDE": 1.5, "LONGITUDE": 2.5}]', encoding="utf-8")
    monkeypatch.setenv("HOTSPOTMAP_PROJECT_ROOT", str(tmp_path))
    env.get_project_root.cache_clear()
    try:
        assert load_records("data/hotspots.json") == [{"Id": 1, "LATITUDE": 1.5, "LONGITUDE": 2.5}]
    finally:
        monkeypatch.delenv("HOTSPOTMAP_PROJECT_ROOT")
        env.get_project_root.cache_clear()
