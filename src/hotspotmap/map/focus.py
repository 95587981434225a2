"""
Focus controller.

A selection (from the cluster list, the proximity card or a marker click)
moves the camera to a hotspot, highlights its marker and opens its popup. The
highlight decays after a fixed TTL.

    Idle ----focus(id)----------------> Focusing(id)
    Focusing(id) --camera arrived-----> Focused(id, expires_at)
    Focused(id) --TTL / background----> Idle
    Focused(id) --focus(id)-----------> Focused(id, new expires_at)
    any --focus(other)----------------> Focusing(other)      (preempts, no queue)

Ordering and identity rules:
- the popup opens only from the camera-move completion callback;
- every request carries a generation number, so a completion callback from a
  preempted request is ignored;
- every decay timer carries a token, so a stale timer can never clear a newer
  focus even if its cancellation raced with its firing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Union

from hotspotmap.config.settings import MapSettings
from hotspotmap.core.errors import FocusTargetMissing
from hotspotmap.core.geo import LatLng
from hotspotmap.core.scheduler import Scheduler, TimerHandle
from hotspotmap.map.surface import MapSurface, PopupContent
from hotspotmap.map.viewmodel import ClusteringViewModel

logger = logging.getLogger(__name__)

FocusSource = Literal["list", "proximity", "marker"]


@dataclass(frozen=True)
class ViewerContext:
    """Who is looking at the map. Injected by the caller, never read from ambient state."""

    user_id: str | None = None
    display_name: str = ""
    is_admin: bool = False


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Focusing:
    target_id: str
    source: FocusSource = "marker"


@dataclass(frozen=True)
class Focused:
    target_id: str
    expires_at: float


FocusState = Union[Idle, Focusing, Focused]


class FocusController:
    def __init__(
        self,
        view_model: ClusteringViewModel,
        surface: MapSurface,
        scheduler: Scheduler,
        *,
        viewer: ViewerContext,
        min_zoom: int = 19,
        ttl_ms: int = 4000,
        on_change: Callable[[FocusState], None] | None = None,
    ):
        self._view_model = view_model
        self._surface = surface
        self._scheduler = scheduler
        self._viewer = viewer
        self._min_zoom = int(min_zoom)
        self._ttl_s = ttl_ms / 1000.0
        self._on_change = on_change

        self._state: FocusState = Idle()
        self._generation = 0
        self._timer: TimerHandle | None = None
        self._timer_token = 0
        self._highlighted_id: str | None = None
        # Outlives the highlight: the popup stays open after the TTL decays.
        self._popup_id: str | None = None

        view_model.add_unmount_listener(self.marker_unmounted)

    @classmethod
    def from_settings(
        cls,
        view_model: ClusteringViewModel,
        surface: MapSurface,
        scheduler: Scheduler,
        settings: MapSettings,
        *,
        viewer: ViewerContext,
        on_change: Callable[[FocusState], None] | None = None,
    ) -> "FocusController":
        return cls(
            view_model,
            surface,
            scheduler,
            viewer=viewer,
            min_zoom=settings.focus_min_zoom,
            ttl_ms=settings.focus_ttl_ms,
            on_change=on_change,
        )

    @property
    def state(self) -> FocusState:
        return self._state

    @property
    def target_id(self) -> str | None:
        state = self._state
        return None if isinstance(state, Idle) else state.target_id

    @property
    def viewer(self) -> ViewerContext:
        return self._viewer

    # ---- transitions ----

    def focus(self, point_id: str, *, source: FocusSource = "marker") -> FocusState:
        state = self._state
        if isinstance(state, Focused) and state.target_id == point_id:
            self._arm_timer(point_id)
            return self._state

        self._preempt()
        point = self._view_model.point(point_id)
        if point is None:
            return self._drop(FocusTargetMissing(point_id))

        generation = self._generation
        self._set(Focusing(target_id=point_id, source=source))

        if self._view_model.is_clustered(point_id):
            self._view_model.reveal(point_id, lambda: self._fly(generation, point_id))
        else:
            self._fly(generation, point_id)
        return self._state

    def background_click(self) -> None:
        """A click/tap on the map itself (not on a marker) ends any focus."""
        if isinstance(self._state, Idle) and self._popup_id is None:
            return
        self._preempt(close_popup=True)
        self._set(Idle())

    def marker_unmounted(self, point_id: str) -> None:
        # The handle is already gone; do not touch it.
        if self._popup_id == point_id:
            self._popup_id = None
        if self.target_id != point_id:
            return
        self._highlighted_id = None
        self._preempt()
        self._set(Idle())

    # ---- internals ----

    def _fly(self, generation: int, point_id: str) -> None:
        if generation != self._generation:
            return
        point = self._view_model.point(point_id)
        if point is None:
            self._drop(FocusTargetMissing(point_id))
            return
        zoom = max(self._surface.zoom, self._min_zoom)
        self._surface.fly_to(
            LatLng(lat=point.lat, lng=point.lng),
            zoom,
            lambda: self._arrived(generation, point_id),
        )

    def _arrived(self, generation: int, point_id: str) -> None:
        if generation != self._generation:
            return
        point = self._view_model.point(point_id)
        marker = self._view_model.marker(point_id)
        if point is None or marker is None:
            self._drop(FocusTargetMissing(point_id))
            return

        marker.set_highlighted(True)
        marker.open_popup(PopupContent.for_point(point, editable=self._viewer.is_admin))
        self._highlighted_id = point_id
        self._popup_id = point_id
        self._arm_timer(point_id)

    def _arm_timer(self, point_id: str) -> None:
        self._cancel_timer()
        self._timer_token += 1
        token = self._timer_token
        self._timer = self._scheduler.call_later(self._ttl_s, lambda: self._expire(token))
        self._set(Focused(target_id=point_id, expires_at=self._scheduler.now() + self._ttl_s))

    def _expire(self, token: int) -> None:
        if token != self._timer_token:
            return
        self._timer = None
        # The popup stays open so credentials can still be copied; only the highlight decays.
        self._release(close_popup=False)
        self._set(Idle())

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._timer_token += 1

    def _preempt(self, *, close_popup: bool = True) -> None:
        self._generation += 1
        self._cancel_timer()
        self._release(close_popup=close_popup)

    def _release(self, *, close_popup: bool) -> None:
        highlighted_id = self._highlighted_id
        self._highlighted_id = None
        if highlighted_id is not None:
            marker = self._view_model.marker(highlighted_id)
            if marker is not None:
                marker.set_highlighted(False)

        if not close_popup or self._popup_id is None:
            return
        popup_id = self._popup_id
        self._popup_id = None
        marker = self._view_model.marker(popup_id)
        if marker is not None:
            marker.close_popup()

    def _drop(self, error: FocusTargetMissing) -> FocusState:
        logger.warning("%s; returning to idle.", error)
        self._generation += 1
        self._set(Idle())
        return self._state

    def _set(self, state: FocusState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.debug("Focus -> %s", state)
        if self._on_change is not None:
            self._on_change(state)
