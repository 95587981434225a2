"""
Geospatial helpers.

We keep a tiny geometry layer here (haversine distance, a lat/lng box and the
Web-Mercator pixel projection used by the map) so the engine does not pull in
heavier GIS dependencies.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from math import asin, cos, radians, sin, sqrt
from typing import Iterable, Protocol

EARTH_RADIUS_M = 6_371_000.0
TILE_SIZE_PX = 256
MAX_MERCATOR_LAT = 85.0511287798


class HasLatLng(Protocol):
    lat: float
    lng: float


@dataclass(frozen=True)
class LatLng:
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


def haversine_m(a: HasLatLng, b: HasLatLng) -> float:
    """Compute great-circle distance in meters between two points."""
    lat1 = radians(a.lat)
    lat2 = radians(b.lat)

    dlat = radians(b.lat - a.lat)
    dlng = radians(b.lng - a.lng)

    h = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    # Rounding can push h a hair past 1.0 for antipodal pairs.
    return 2 * EARTH_RADIUS_M * asin(sqrt(min(1.0, h)))


def is_valid_coordinate(lat: float, lng: float) -> bool:
    """Return True when both values are finite and inside their ranges."""
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


@dataclass(frozen=True)
class Bounds:
    """An axis-aligned lat/lng box (no antimeridian wrapping)."""

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_points(cls, points: Iterable[HasLatLng]) -> Bounds | None:
        out: Bounds | None = None
        for p in points:
            out = Bounds(p.lat, p.lng, p.lat, p.lng) if out is None else out.extend(p)
        return out

    def extend(self, p: HasLatLng) -> Bounds:
        return Bounds(
            south=min(self.south, p.lat),
            west=min(self.west, p.lng),
            north=max(self.north, p.lat),
            east=max(self.east, p.lng),
        )

    @property
    def center(self) -> LatLng:
        return LatLng(lat=(self.south + self.north) / 2, lng=(self.west + self.east) / 2)


def project(lat: float, lng: float, zoom: float) -> tuple[float, float]:
    """Project lat/lng to Web-Mercator pixel coordinates at `zoom`."""
    scale = TILE_SIZE_PX * (2.0**zoom)
    lat_c = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, lat))
    phi = radians(lat_c)
    x = (lng + 180.0) / 360.0 * scale
    y = (1.0 - math.log(math.tan(phi) + 1.0 / math.cos(phi)) / math.pi) / 2.0 * scale
    return x, y


def bounds_zoom(
    bounds: Bounds,
    *,
    width_px: int,
    height_px: int,
    padding_px: int = 0,
    max_zoom: int = 18,
) -> int:
    """Return the largest integer zoom at which `bounds` fits the padded viewport.

    A degenerate box (a single point) fits at every zoom, so `max_zoom` is returned.
    """
    avail_w = max(1, width_px - 2 * padding_px)
    avail_h = max(1, height_px - 2 * padding_px)

    x0, y0 = project(bounds.north, bounds.west, 0)
    x1, y1 = project(bounds.south, bounds.east, 0)
    span_x = abs(x1 - x0)
    span_y = abs(y1 - y0)
    if span_x == 0 and span_y == 0:
        return int(max_zoom)

    candidates = []
    if span_x > 0:
        candidates.append(math.log2(avail_w / span_x))
    if span_y > 0:
        candidates.append(math.log2(avail_h / span_y))
    zoom = int(math.floor(min(candidates)))
    return max(0, min(int(max_zoom), zoom))
