"""
GeoPoint normalizer.

Raw hotspot records come from a generic row store, so coordinates arrive as
numbers or strings, sometimes with a comma as decimal separator ("-20,3").
`normalize` turns them into validated `GeoPoint`s and silently drops every
record whose coordinates do not parse to finite, in-range numbers. A bad row is
never defaulted to 0/0.

Identity:
- the record's primary key (`ID`, `Id`, `id`, first non-empty wins), else
- a canonical "lat,lng" string built from the parsed floats.

Two keyless records at the same coordinates therefore share one id. That
collision is accepted: later consumers (e.g. the marker registry) keep the
last one mounted.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from hotspotmap.core.errors import MalformedRecordError
from hotspotmap.core.geo import is_valid_coordinate
from hotspotmap.domain.models import GeoPoint

logger = logging.getLogger(__name__)

LAT_KEYS = ("LATITUDE", "latitude", "lat")
LNG_KEYS = ("LONGITUDE", "longitude", "lng", "lon")
ID_KEYS = ("ID", "Id", "id")

_DECIMAL_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


@dataclass(frozen=True)
class NormalizeReport:
    points: list[GeoPoint]
    dropped: int


def parse_coordinate(value: Any) -> float:
    """Parse one coordinate value (number or locale-formatted string).

    Raises:
        MalformedRecordError: If the value is missing, non-numeric or not finite.
    """
    if value is None or isinstance(value, bool):
        raise MalformedRecordError(f"not a coordinate: {value!r}")
    if isinstance(value, (int, float)):
        out = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not _DECIMAL_RE.match(text):
            raise MalformedRecordError(f"not a coordinate: {value!r}")
        out = float(text)
    else:
        raise MalformedRecordError(f"unsupported coordinate type: {type(value).__name__}")
    if not math.isfinite(out):
        raise MalformedRecordError(f"coordinate is not finite: {value!r}")
    return out


def _first_present(record: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def point_id(record: Mapping[str, Any], lat: float, lng: float) -> str:
    """Derive a stable Identifier for a record."""
    pk = _first_present(record, ID_KEYS)
    if pk is not None and str(pk).strip():
        return str(pk).strip()
    return f"{lat!r},{lng!r}"


def coerce_point(record: Mapping[str, Any] | GeoPoint) -> GeoPoint:
    """Convert one raw record into a GeoPoint.

    Raises:
        MalformedRecordError: If the record has no valid coordinate pair.
    """
    if isinstance(record, GeoPoint):
        return record
    if not isinstance(record, Mapping):
        raise MalformedRecordError(f"record is not a mapping: {type(record).__name__}")

    lat = parse_coordinate(_first_present(record, LAT_KEYS))
    lng = parse_coordinate(_first_present(record, LNG_KEYS))
    if not is_valid_coordinate(lat, lng):
        raise MalformedRecordError(f"coordinate out of range: {lat},{lng}")

    # A dumped GeoPoint carries its source record under `payload`; keep it as-is.
    payload = record.get("payload")
    if not isinstance(payload, Mapping):
        payload = record

    return GeoPoint(id=point_id(record, lat, lng), lat=lat, lng=lng, payload=dict(payload))


def normalize_report(records: Iterable[Mapping[str, Any] | GeoPoint]) -> NormalizeReport:
    points: list[GeoPoint] = []
    dropped = 0
    for record in records:
        try:
            points.append(coerce_point(record))
        except MalformedRecordError:
            dropped += 1
    if dropped:
        logger.debug("Dropped %d hotspot records with unusable coordinates.", dropped)
    return NormalizeReport(points=points, dropped=dropped)


def normalize(records: Iterable[Mapping[str, Any] | GeoPoint]) -> list[GeoPoint]:
    """Normalize raw records into GeoPoints, dropping malformed ones."""
    return normalize_report(records).points
