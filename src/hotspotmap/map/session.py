"""
Map session: wires the engine together for one map on screen.

Data flows one way:

    records -> normalize -> points -> {NearestTracker, ClusteringViewModel}
            -> {proximity card, DisambiguationFlow} -> FocusController -> surface

The surface reports user input through the `on_*` methods; nothing here is
re-entrant or threaded, every call runs to completion on the event loop.
"""

from __future__ import annotations

import logging
from typing import Callable, Literal

from hotspotmap.catalog.normalize import normalize_report
from hotspotmap.config.settings import Settings
from hotspotmap.core.errors import DataError
from hotspotmap.core.geo import LatLng
from hotspotmap.core.scheduler import Scheduler
from hotspotmap.domain.models import GeoPoint, ProximityResult
from hotspotmap.ingestion.records import RecordSource
from hotspotmap.map.disambiguation import DisambiguationFlow, DisambiguationState
from hotspotmap.map.focus import FocusController, FocusState, ViewerContext
from hotspotmap.map.surface import MapSurface
from hotspotmap.map.viewmodel import ClusteringViewModel
from hotspotmap.proximity.card import ProximityCard, build_card
from hotspotmap.proximity.feed import PositionFeed
from hotspotmap.proximity.nearest import NearestTracker

logger = logging.getLogger(__name__)

LoadState = Literal["idle", "loading", "ready", "failed"]


class MapSession:
    def __init__(
        self,
        surface: MapSurface,
        scheduler: Scheduler,
        settings: Settings,
        *,
        viewer: ViewerContext,
        on_proximity: Callable[[ProximityCard], None] | None = None,
        on_focus: Callable[[FocusState], None] | None = None,
        on_disambiguation: Callable[[DisambiguationState], None] | None = None,
    ):
        self._settings = settings
        self._on_proximity = on_proximity
        self._load_state: LoadState = "idle"
        self._dropped = 0

        # Starting view until the first fit; the partition is computed at this zoom.
        center = settings.map.default_center
        surface.set_view(LatLng(lat=center.lat, lng=center.lng), settings.map.default_zoom)

        self.view_model = ClusteringViewModel.from_settings(surface, settings.map)
        self.focus = FocusController.from_settings(
            self.view_model, surface, scheduler, settings.map, viewer=viewer, on_change=on_focus
        )
        self.disambiguation = DisambiguationFlow(
            self.view_model, self.focus, on_change=on_disambiguation
        )
        self.tracker = NearestTracker(
            threshold_m=settings.proximity.threshold_meters, on_change=self._proximity_changed
        )

    @property
    def load_state(self) -> LoadState:
        return self._load_state

    @property
    def dropped_records(self) -> int:
        return self._dropped

    @property
    def proximity(self) -> ProximityCard:
        return build_card(self.tracker.result, self.tracker.threshold_m)

    # ---- data ----

    def load(self, source: RecordSource) -> LoadState:
        """Fetch the hotspot list; a failure leaves the engine with no points."""
        self._load_state = "loading"
        try:
            records = source.list_records()
        except DataError as e:
            self._load_state = "failed"
            self.view_model.set_points(())
            self.tracker.points_failed(e)
            return self._load_state

        report = normalize_report(records)
        self._dropped = report.dropped
        self.set_points(report.points)
        self._load_state = "ready"
        logger.info("Loaded %d hotspots (%d dropped).", len(report.points), report.dropped)
        return self._load_state

    def set_points(self, points: list[GeoPoint]) -> None:
        self.view_model.set_points(points)
        self.tracker.set_points(points)

    # ---- position ----

    def attach_position(self, feed: PositionFeed) -> None:
        self.tracker.attach(feed)

    def detach_position(self) -> None:
        self.tracker.detach()

    def _proximity_changed(self, result: ProximityResult | None) -> None:
        position = self.tracker.position
        self.view_model.set_user_position(
            LatLng(lat=position.lat, lng=position.lng) if position is not None else None
        )
        if self._on_proximity is not None:
            self._on_proximity(build_card(result, self.tracker.threshold_m))

    # ---- surface events ----

    def on_zoom_end(self, zoom: float) -> None:
        self.view_model.zoom_changed(zoom)

    def on_marker_click(self, point_id: str) -> None:
        self.focus.focus(point_id, source="marker")

    def on_cluster_click(self, cluster_id: str) -> None:
        self.disambiguation.activate(cluster_id)

    def on_background_click(self) -> None:
        self.focus.background_click()

    def on_escape(self) -> None:
        self.disambiguation.cancel()

    def focus_nearest(self) -> FocusState | None:
        """Focus the hotspot shown on the proximity card, if any."""
        result = self.tracker.result
        if result is None:
            return None
        return self.focus.focus(result.point.id, source="proximity")
