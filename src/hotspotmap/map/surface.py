"""
Rendering collaborators.

The engine never talks to a tile library directly. It drives a `MapSurface`
(camera + marker mounting + cluster bubbles) and the `MarkerHandle`s the surface
hands back. A browser bridge, a test double or a headless renderer can sit
behind these protocols.
"""

from __future__ import annotations

from typing import Callable, Protocol, Sequence

from pydantic import BaseModel

from hotspotmap.core.geo import LatLng
from hotspotmap.domain.models import GeoPoint, Hotspot


class PopupContent(BaseModel):
    point_id: str
    name: str
    coordinates: str
    password_2g: str | None = None
    password_5g: str | None = None
    editable: bool = False

    @classmethod
    def for_point(cls, point: GeoPoint, *, editable: bool = False) -> "PopupContent":
        hotspot = Hotspot.from_point(point)
        return cls(
            point_id=point.id,
            name=hotspot.name,
            coordinates=f"{point.lat:.6f}, {point.lng:.6f}",
            password_2g=hotspot.password_2g,
            password_5g=hotspot.password_5g,
            editable=editable,
        )


class MarkerHandle(Protocol):
    @property
    def point_id(self) -> str: ...

    def set_highlighted(self, on: bool) -> None: ...

    def open_popup(self, content: PopupContent) -> None: ...

    def close_popup(self) -> None: ...


class ClusterBubble(Protocol):
    cluster_id: str
    center: LatLng

    @property
    def count(self) -> int: ...


class MapSurface(Protocol):
    @property
    def zoom(self) -> float: ...

    @property
    def viewport_size(self) -> tuple[int, int]:
        """(width_px, height_px)"""
        ...

    def set_view(self, center: LatLng, zoom: int) -> None: ...

    def fly_to(self, center: LatLng, zoom: float, on_complete: Callable[[], None]) -> None:
        """Animate the camera; `on_complete` runs once the move has finished."""
        ...

    def mount_marker(self, point: GeoPoint) -> MarkerHandle: ...

    def unmount_marker(self, handle: MarkerHandle) -> None: ...

    def render_clusters(self, clusters: Sequence[ClusterBubble]) -> None: ...
