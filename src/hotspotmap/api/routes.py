"""
API routes.

Endpoints:
- GET `/api/hotspots`: normalized hotspot points (+ how many records were dropped).
- GET `/api/nearest`: proximity card for a position.
- GET `/api/clusters`: cluster partition at a zoom level.
- GET `/api/settings`: public map/proximity settings (record-store token redacted).
"""

from __future__ import annotations

from datetime import datetime, timezone
from functools import lru_cache

from fastapi import APIRouter, HTTPException

from hotspotmap.catalog.normalize import NormalizeReport, normalize_report
from hotspotmap.config.settings import get_settings
from hotspotmap.core.errors import DataError
from hotspotmap.core.geo import is_valid_coordinate
from hotspotmap.domain.models import PositionSample
from hotspotmap.ingestion.records import RecordSource, build_record_source
from hotspotmap.map.clustering import cluster_points
from hotspotmap.proximity.card import ProximityCard, build_card
from hotspotmap.proximity.nearest import nearest

router = APIRouter()

MAX_ZOOM = 22


@lru_cache
def _source() -> RecordSource:
    return build_record_source(get_settings())


def _load() -> NormalizeReport:
    try:
        return normalize_report(_source().list_records())
    except DataError as e:
        raise HTTPException(
            status_code=502,
            detail={"code": "DATA_ERROR", "message": str(e)},
        ) from e


@router.get("/api/hotspots")
def get_hotspots() -> dict:
    """Return every hotspot with a usable coordinate pair."""
    report = _load()
    return {
        "count": len(report.points),
        "dropped": report.dropped,
        "hotspots": [p.model_dump(mode="json") for p in report.points],
    }


@router.get("/api/nearest", response_model=ProximityCard)
def get_nearest(lat: float, lng: float, threshold_m: float | None = None) -> ProximityCard:
    """Return the nearest hotspot to (lat, lng) as a proximity card."""
    if not is_valid_coordinate(lat, lng):
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": "lat/lng out of range"},
        )
    if threshold_m is not None and threshold_m <= 0:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": "threshold_m must be > 0"},
        )

    settings = get_settings()
    threshold = threshold_m if threshold_m is not None else settings.proximity.threshold_meters
    position = PositionSample(lat=lat, lng=lng, timestamp=datetime.now(timezone.utc))
    return build_card(nearest(position, _load().points), threshold)


@router.get("/api/clusters")
def get_clusters(zoom: int) -> dict:
    """Return the cluster partition the map would render at `zoom`."""
    if not 0 <= zoom <= MAX_ZOOM:
        raise HTTPException(
            status_code=400,
            detail={"code": "VALIDATION_ERROR", "message": f"zoom must be between 0 and {MAX_ZOOM}"},
        )
    cfg = get_settings().map
    partition = cluster_points(
        _load().points, zoom, radius_px=cfg.cluster_radius_px, max_zoom=cfg.cluster_max_zoom
    )
    return {
        "zoom": partition.zoom,
        "clusters": [
            {
                "cluster_id": c.cluster_id,
                "lat": c.center.lat,
                "lng": c.center.lng,
                "count": c.count,
                "child_ids": list(c.child_ids),
            }
            for c in partition.clusters
        ],
        "singletons": [{"id": p.id, "lat": p.lat, "lng": p.lng} for p in partition.singletons],
    }


@router.get("/api/settings")
def get_public_settings() -> dict:
    """Return settings the map client needs (no secrets)."""
    settings = get_settings()
    return {
        "map": settings.map.model_dump(mode="json"),
        "proximity": settings.proximity.model_dump(mode="json"),
        "position": settings.position.model_dump(mode="json"),
        "records": {"remote": bool(settings.records.base_url)},
    }
