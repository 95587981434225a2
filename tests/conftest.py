from __future__ import annotations

from typing import Any, Callable

import pytest

from hotspotmap.core.geo import LatLng
from hotspotmap.domain.models import GeoPoint


class FakeTimer:
    def __init__(self, when: float, callback: Callable[[], None]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock: timers only fire inside `advance()`."""

    def __init__(self) -> None:
        self._now = 0.0
        self._timers: list[FakeTimer] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(self._now + delay_s, callback)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self._now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.when <= target]
            if not due:
                break
            timer = min(due, key=lambda t: t.when)
            self._timers.remove(timer)
            self._now = timer.when
            timer.callback()
        self._now = target


class FakeMarker:
    def __init__(self, point: GeoPoint):
        self.point = point
        self.highlighted = False
        self.popup: Any = None
        self.unmounted = False
        self.events: list[tuple[str, Any]] = []

    @property
    def point_id(self) -> str:
        return self.point.id

    def set_highlighted(self, on: bool) -> None:
        self.highlighted = on
        self.events.append(("highlight", on))

    def open_popup(self, content: Any) -> None:
        self.popup = content
        self.events.append(("open_popup", content.point_id))

    def close_popup(self) -> None:
        self.popup = None
        self.events.append(("close_popup", None))


class FakeSurface:
    """Records camera calls; camera moves complete only when `complete_moves()` runs."""

    def __init__(self, zoom: float = 13, size: tuple[int, int] = (1024, 768)):
        self.zoom = zoom
        self.viewport_size = size
        self.center: LatLng | None = None
        self.calls: list[tuple] = []
        self.pending_moves: list[tuple[LatLng, float, Callable[[], None]]] = []
        self.mounted: dict[str, FakeMarker] = {}
        self.clusters: tuple = ()

    def set_view(self, center: LatLng, zoom: int) -> None:
        self.calls.append(("set_view", center, zoom))
        self.center = center
        self.zoom = zoom

    def fly_to(self, center: LatLng, zoom: float, on_complete: Callable[[], None]) -> None:
        self.calls.append(("fly_to", center, zoom))
        self.pending_moves.append((center, zoom, on_complete))

    def complete_moves(self) -> None:
        while self.pending_moves:
            center, zoom, on_complete = self.pending_moves.pop(0)
            self.center = center
            self.zoom = zoom
            on_complete()

    def mount_marker(self, point: GeoPoint) -> FakeMarker:
        marker = FakeMarker(point)
        self.mounted[point.id] = marker
        return marker

    def unmount_marker(self, handle: FakeMarker) -> None:
        handle.unmounted = True
        if self.mounted.get(handle.point_id) is handle:
            del self.mounted[handle.point_id]

    def render_clusters(self, clusters) -> None:
        self.clusters = tuple(clusters)

    def camera_calls(self, kind: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == kind]


def make_point(point_id: str, lat: float, lng: float, name: str | None = None, **extra: Any) -> GeoPoint:
    payload = {"Id": point_id, "NOME-WIFI": name or f"Hotspot {point_id}", "LATITUDE": lat, "LONGITUDE": lng}
    payload.update(extra)
    return GeoPoint(id=point_id, lat=lat, lng=lng, payload=payload)


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()
