"""
Extract coordinates from a pasted map URL.

Administrators usually copy a hotspot's location from a web map instead of
typing numbers. Shared links encode the position in a handful of shapes; we try
the specific ones first and only then fall back to "any two decimals".
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from hotspotmap.core.geo import LatLng, is_valid_coordinate

_NUM = r"(-?\d+\.\d+)"

_PATTERNS: list[re.Pattern[str]] = [
    re.compile(rf"@{_NUM},{_NUM}"),
    re.compile(rf"!3d{_NUM}!4d{_NUM}"),
    re.compile(rf"[?&]q={_NUM},{_NUM}"),
    re.compile(rf"[?&]ll={_NUM},{_NUM}"),
]
_FALLBACK = re.compile(rf"{_NUM}[^\d\-]+{_NUM}")


def parse_map_url(url: str) -> LatLng | None:
    """Return the coordinates encoded in `url`, or None if none are found."""
    if not url or not url.strip():
        return None
    decoded = unquote(url.strip())

    for pattern in _PATTERNS:
        m = pattern.search(decoded)
        if m:
            lat, lng = float(m.group(1)), float(m.group(2))
            return LatLng(lat=lat, lng=lng) if is_valid_coordinate(lat, lng) else None

    m = _FALLBACK.search(decoded)
    if m:
        lat, lng = float(m.group(1)), float(m.group(2))
        if is_valid_coordinate(lat, lng):
            return LatLng(lat=lat, lng=lng)
    return None
