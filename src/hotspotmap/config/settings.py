# src/hotspotmap/config/settings.py
"""
Application settings (Pydantic).

Settings are loaded from `src/hotspotmap/config/defaults.yaml`, then optionally overridden by:
- environment variables (e.g., `HOTSPOTMAP_RECORDS_URL`, `HOTSPOTMAP_RECORDS_TOKEN`)
- an external YAML file via `HOTSPOTMAP_CONFIG_PATH`

Design rule:
- Map and proximity knobs live in YAML, not hard-coded in the engine.
"""

from __future__ import annotations

import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from hotspotmap.core.env import load_dotenv_if_present


def _read_package_yaml(filename: str) -> dict[str, Any]:
    """Read a YAML file packaged inside `hotspotmap.config`."""
    text = resources.files("hotspotmap.config").joinpath(filename).read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {filename}; expected a mapping.")
    return data


def _read_yaml_file(path: str | Path) -> dict[str, Any]:
    """Read a YAML file from disk and return its mapping root."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid YAML root object for {path}; expected a mapping.")
    return data


class AppSettings(BaseModel):
    name: str = "HotspotMap"
    log_level: str = "INFO"


class CatalogSettings(BaseModel):
    path: str = "data/hotspots.json"


class RecordsSettings(BaseModel):
    """Remote row store holding the hotspot catalog (optional)."""

    base_url: str | None = None
    table_id: str = ""
    token: str | None = None
    page_limit: int = Field(1000, ge=1)
    timeout_seconds: float = 15


class LatLngSettings(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class MapSettings(BaseModel):
    cluster_max_zoom: int = Field(18, ge=0, le=22)
    cluster_radius_px: float = Field(80, gt=0)
    min_fit_zoom: int = Field(3, ge=0, le=22)
    max_fit_zoom: int = Field(18, ge=0, le=22)
    fit_padding_px: int = Field(40, ge=0)
    focus_min_zoom: int = Field(19, ge=0, le=22)
    focus_ttl_ms: int = Field(4000, gt=0)
    default_center: LatLngSettings = Field(default_factory=lambda: LatLngSettings(lat=-15.78, lng=-47.93))
    default_zoom: int = Field(13, ge=0, le=22)

    @model_validator(mode="after")
    def _validate_zoom_ranges(self) -> "MapSettings":
        if self.max_fit_zoom < self.min_fit_zoom:
            raise ValueError("map.max_fit_zoom must be >= map.min_fit_zoom")
        # A focused marker must stand alone at the zoom the camera flies to.
        if self.focus_min_zoom <= self.cluster_max_zoom:
            raise ValueError("map.focus_min_zoom must be > map.cluster_max_zoom")
        return self


class ProximitySettings(BaseModel):
    threshold_meters: float = Field(350, gt=0)


class PositionSettings(BaseModel):
    maximum_age_ms: int = Field(10_000, ge=0)
    timeout_ms: int = Field(20_000, gt=0)
    high_accuracy: bool = True


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)
    records: RecordsSettings = Field(default_factory=RecordsSettings)
    map: MapSettings = Field(default_factory=MapSettings)
    proximity: ProximitySettings = Field(default_factory=ProximitySettings)
    position: PositionSettings = Field(default_factory=PositionSettings)


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay selected environment variables onto raw settings payload.

    Note: We intentionally keep this whitelist small.
    """
    load_dotenv_if_present()
    data = dict(data)

    log_level = os.getenv("HOTSPOTMAP_LOG_LEVEL")
    if log_level:
        data.setdefault("app", {})["log_level"] = log_level

    catalog_path = os.getenv("HOTSPOTMAP_CATALOG_PATH")
    if catalog_path:
        data.setdefault("catalog", {})["path"] = catalog_path

    records_url = os.getenv("HOTSPOTMAP_RECORDS_URL")
    records_token = os.getenv("HOTSPOTMAP_RECORDS_TOKEN")
    if records_url:
        data.setdefault("records", {})["base_url"] = records_url
    if records_token:
        data.setdefault("records", {})["token"] = records_token

    return data


@lru_cache
def get_settings() -> Settings:
    """Load and validate settings (cached)."""
    load_dotenv_if_present()
    config_path = os.getenv("HOTSPOTMAP_CONFIG_PATH")
    raw = _read_yaml_file(config_path) if config_path else _read_package_yaml("defaults.yaml")
    raw = _apply_env_overrides(raw)
    return Settings.model_validate(raw)


@lru_cache
def get_logging_config() -> dict[str, Any]:
    """Load logging configuration (cached)."""
    return _read_package_yaml("logging.yaml")
