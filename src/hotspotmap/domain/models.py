"""
Domain models (Pydantic).

These types represent the stable "contract" between layers:
- normalized map points (`GeoPoint`) and their typed hotspot view (`Hotspot`)
- live position input (`PositionSample`)
- derived proximity output (`ProximityResult`)

Keeping these models in one place helps:
- validation (a GeoPoint can never hold an out-of-range or non-finite coordinate),
- consistent JSON output across CLI/API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeoPoint(BaseModel):
    """A validated hotspot position plus its identity and source record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    payload: dict[str, Any] = Field(default_factory=dict)


class Hotspot(BaseModel):
    """Typed view over a hotspot record as stored in the row store."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field("", alias="NOME-WIFI")
    client: str | None = Field(None, alias="NOME-CLIENTE")
    password_2g: str | None = Field(None, alias="SENHA-WIFI-2G")
    password_5g: str | None = Field(None, alias="SENHA-WIFI-5G")

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("client", "password_2g", "password_5g", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v)
        return text if text.strip() else None

    @classmethod
    def from_point(cls, point: GeoPoint) -> "Hotspot":
        return cls.model_validate(point.payload)


class PositionSample(BaseModel):
    """One reading of the live location feed."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(..., ge=-180, le=180, allow_inf_nan=False)
    accuracy: float | None = Field(default=None, ge=0)
    timestamp: datetime


class ProximityResult(BaseModel):
    """The closest valid point to the current position."""

    model_config = ConfigDict(frozen=True)

    point: GeoPoint
    distance_m: float = Field(..., ge=0)
