"""
Proximity card: what the "nearest hotspot" panel shows.

The card is derived from a `ProximityResult` and the configured threshold.
`within` drives the pulsing highlight; an empty card tells the user nothing is
close enough.
"""

from __future__ import annotations

from pydantic import BaseModel

from hotspotmap.domain.models import Hotspot, ProximityResult
from hotspotmap.proximity.nearest import within_threshold


class ProximityCard(BaseModel):
    point_id: str | None = None
    name: str | None = None
    client: str | None = None
    lat: float | None = None
    lng: float | None = None
    distance_m: float | None = None
    distance_label: str | None = None
    within: bool = False
    threshold_m: float
    password_2g: str | None = None
    password_5g: str | None = None
    message: str = ""


def format_distance(meters: float) -> str:
    """Human-friendly distance: whole meters below 1 km, one decimal above."""
    if meters < 1000:
        return f"{int(round(meters))} m"
    return f"{meters / 1000:.1f} km"


def build_card(result: ProximityResult | None, threshold_m: float) -> ProximityCard:
    if result is None:
        return ProximityCard(
            threshold_m=threshold_m,
            message=f"No hotspot within {format_distance(threshold_m)}.",
        )

    hotspot = Hotspot.from_point(result.point)
    within = within_threshold(result, threshold_m)
    return ProximityCard(
        point_id=result.point.id,
        name=hotspot.name,
        client=hotspot.client,
        lat=result.point.lat,
        lng=result.point.lng,
        distance_m=result.distance_m,
        distance_label=format_distance(result.distance_m),
        within=within,
        threshold_m=threshold_m,
        password_2g=hotspot.password_2g,
        password_5g=hotspot.password_5g,
        message="Nearest hotspot" if within else "Nearest hotspot (out of range)",
    )
