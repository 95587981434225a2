"""
Clustering view-model.

Owns three things and is the only code that mutates them:
- the current point set and its partition at the current zoom,
- the marker registry (Identifier -> mounted `MarkerHandle`),
- the "fit the camera once per point-set size" bookkeeping.

Everything else reads through accessors (`marker()`, `point()`, `members()`...),
never through the registry dict itself. A marker is in the registry exactly
while the surface has it mounted, so callers must treat `marker()` returning
None as normal (the point may be inside a cluster or gone after a refresh).
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Iterable

from hotspotmap.config.settings import MapSettings
from hotspotmap.core.geo import Bounds, LatLng, bounds_zoom
from hotspotmap.domain.models import GeoPoint
from hotspotmap.map.clustering import Cluster, ClusterPartition, cluster_points
from hotspotmap.map.surface import MapSurface, MarkerHandle

logger = logging.getLogger(__name__)


class ClusteringViewModel:
    def __init__(
        self,
        surface: MapSurface,
        *,
        cluster_max_zoom: int = 18,
        radius_px: float = 80.0,
        min_fit_zoom: int = 3,
        max_fit_zoom: int = 18,
        fit_padding_px: int = 40,
    ):
        self._surface = surface
        self._cluster_max_zoom = int(cluster_max_zoom)
        self._radius_px = float(radius_px)
        self._min_fit_zoom = int(min_fit_zoom)
        self._max_fit_zoom = int(max_fit_zoom)
        self._fit_padding_px = int(fit_padding_px)

        self._points: tuple[GeoPoint, ...] = ()
        self._by_id: dict[str, GeoPoint] = {}
        self._user: LatLng | None = None
        self._cache: dict[int, ClusterPartition] = {}
        self._partition = ClusterPartition(zoom=self._current_zoom(), clusters=(), singletons=())

        self._markers: dict[str, MarkerHandle] = {}
        self._mounted_points: dict[str, GeoPoint] = {}
        self._unmount_listeners: list[Callable[[str], None]] = []
        self._fitted_count: int | None = None

    @classmethod
    def from_settings(cls, surface: MapSurface, settings: MapSettings) -> "ClusteringViewModel":
        return cls(
            surface,
            cluster_max_zoom=settings.cluster_max_zoom,
            radius_px=settings.cluster_radius_px,
            min_fit_zoom=settings.min_fit_zoom,
            max_fit_zoom=settings.max_fit_zoom,
            fit_padding_px=settings.fit_padding_px,
        )

    # ---- read accessors ----

    @property
    def points(self) -> tuple[GeoPoint, ...]:
        return self._points

    @property
    def partition(self) -> ClusterPartition:
        return self._partition

    @property
    def cluster_max_zoom(self) -> int:
        return self._cluster_max_zoom

    @property
    def mounted_ids(self) -> frozenset[str]:
        return frozenset(self._markers)

    def point(self, point_id: str) -> GeoPoint | None:
        return self._by_id.get(point_id)

    def marker(self, point_id: str) -> MarkerHandle | None:
        return self._markers.get(point_id)

    def cluster(self, cluster_id: str) -> Cluster | None:
        for c in self._partition.clusters:
            if c.cluster_id == cluster_id:
                return c
        return None

    def members(self, cluster_id: str) -> list[GeoPoint]:
        """Members of a currently rendered cluster, in clustering order."""
        c = self.cluster(cluster_id)
        return list(c.members) if c is not None else []

    def cluster_of(self, point_id: str) -> Cluster | None:
        return self._partition.cluster_for(point_id)

    def is_clustered(self, point_id: str) -> bool:
        return self.cluster_of(point_id) is not None

    def partition_at(self, zoom: int) -> ClusterPartition:
        z = int(zoom)
        cached = self._cache.get(z)
        if cached is None:
            cached = cluster_points(
                self._points, z, radius_px=self._radius_px, max_zoom=self._cluster_max_zoom
            )
            self._cache[z] = cached
        return cached

    def expansion_zoom(self, point_id: str) -> int | None:
        """Smallest zoom (>= current) at which `point_id` renders on its own."""
        if point_id not in self._by_id:
            return None
        z = self._partition.zoom
        while z <= self._cluster_max_zoom:
            if self.partition_at(z).cluster_for(point_id) is None:
                return z
            z += 1
        return self._cluster_max_zoom + 1

    # ---- inputs ----

    def set_points(self, points: Iterable[GeoPoint]) -> None:
        """Replace the point set; membership is recomputed from scratch."""
        self._points = tuple(points)
        self._by_id = {p.id: p for p in self._points}
        self._cache.clear()
        self._refresh(self._current_zoom())
        self._maybe_fit()

    def set_user_position(self, position: LatLng | None) -> None:
        self._user = position
        self._maybe_fit()

    def zoom_changed(self, zoom: float) -> None:
        z = int(math.floor(zoom))
        if z == self._partition.zoom:
            return
        self._refresh(z)

    def add_unmount_listener(self, listener: Callable[[str], None]) -> None:
        self._unmount_listeners.append(listener)

    def reveal(self, point_id: str, on_revealed: Callable[[], None]) -> bool:
        """Move the camera until `point_id` is individually visible, then call back.

        Returns False when the point is unknown (nothing is scheduled).
        """
        p = self._by_id.get(point_id)
        if p is None:
            return False
        if not self.is_clustered(point_id):
            on_revealed()
            return True

        target_zoom = self.expansion_zoom(point_id) or (self._cluster_max_zoom + 1)

        def _done() -> None:
            self.zoom_changed(self._surface.zoom)
            on_revealed()

        logger.debug("Revealing %s at zoom %s.", point_id, target_zoom)
        self._surface.fly_to(LatLng(lat=p.lat, lng=p.lng), target_zoom, _done)
        return True

    # ---- internals ----

    def _current_zoom(self) -> int:
        return int(math.floor(self._surface.zoom))

    def _refresh(self, zoom: int) -> None:
        self._partition = self.partition_at(zoom)
        self._sync_markers()
        self._surface.render_clusters(self._partition.clusters)

    def _sync_markers(self) -> None:
        wanted = {p.id: p for p in self._partition.singletons}

        for point_id in list(self._markers):
            target = wanted.get(point_id)
            if target is None or target != self._mounted_points.get(point_id):
                self._unmount(point_id)

        for point_id, p in wanted.items():
            if point_id not in self._markers:
                self._markers[point_id] = self._surface.mount_marker(p)
                self._mounted_points[point_id] = p

    def _unmount(self, point_id: str) -> None:
        handle = self._markers.pop(point_id, None)
        self._mounted_points.pop(point_id, None)
        if handle is None:
            return
        self._surface.unmount_marker(handle)
        for listener in list(self._unmount_listeners):
            listener(point_id)

    def _maybe_fit(self) -> None:
        if not self._points or self._fitted_count == len(self._points):
            return

        bounds = Bounds.from_points(self._points)
        if bounds is None:
            return
        if self._user is not None:
            bounds = bounds.extend(self._user)

        width, height = self._surface.viewport_size
        natural = bounds_zoom(
            bounds,
            width_px=width,
            height_px=height,
            padding_px=self._fit_padding_px,
            max_zoom=self._max_fit_zoom,
        )
        zoom = max(self._min_fit_zoom, min(self._max_fit_zoom, natural))
        self._surface.set_view(bounds.center, zoom)
        self._fitted_count = len(self._points)
        logger.info("Fitted map to %d hotspots at zoom %d.", len(self._points), zoom)
        self.zoom_changed(zoom)
