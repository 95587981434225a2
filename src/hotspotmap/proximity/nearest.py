"""
Nearest-hotspot tracking.

`nearest()` is a plain linear scan; at the expected catalog size (hundreds of
hotspots) a full rescan on every position or data update is cheap, and it keeps
the result a pure function of (position, points).

Tie-break: with a strict `<` comparison the first point in input order wins
when two distances are exactly equal. That order is whatever the record source
returned, so the choice is stable for a given list but otherwise arbitrary.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from hotspotmap.core.errors import DataError, PositionError
from hotspotmap.core.geo import haversine_m
from hotspotmap.domain.models import GeoPoint, PositionSample, ProximityResult
from hotspotmap.proximity.feed import PositionFeed, Subscription

logger = logging.getLogger(__name__)


def nearest(position: PositionSample | None, points: Iterable[GeoPoint]) -> ProximityResult | None:
    """Return the closest point to `position`, or None when there is nothing to compare."""
    if position is None:
        return None
    best: GeoPoint | None = None
    best_d = 0.0
    for p in points:
        d = haversine_m(position, p)
        if best is None or d < best_d:
            best, best_d = p, d
    if best is None:
        return None
    return ProximityResult(point=best, distance_m=best_d)


def within_threshold(result: ProximityResult | None, threshold_m: float) -> bool:
    return result is not None and result.distance_m <= threshold_m


class NearestTracker:
    """Keeps the nearest point in sync with the latest position and point set."""

    def __init__(
        self,
        *,
        threshold_m: float = 350.0,
        on_change: Callable[[ProximityResult | None], None] | None = None,
    ):
        self._threshold_m = float(threshold_m)
        self._on_change = on_change
        self._points: tuple[GeoPoint, ...] = ()
        self._position: PositionSample | None = None
        self._result: ProximityResult | None = None
        self._position_error: PositionError | None = None
        self._data_error: DataError | None = None
        self._subscription: Subscription | None = None
        self._feed_token: object | None = None
        self._detached = False

    @property
    def threshold_m(self) -> float:
        return self._threshold_m

    @property
    def position(self) -> PositionSample | None:
        return self._position

    @property
    def points(self) -> Sequence[GeoPoint]:
        return self._points

    @property
    def result(self) -> ProximityResult | None:
        return self._result

    @property
    def within(self) -> bool:
        return within_threshold(self._result, self._threshold_m)

    @property
    def position_error(self) -> PositionError | None:
        return self._position_error

    @property
    def data_error(self) -> DataError | None:
        return self._data_error

    @property
    def attached(self) -> bool:
        return self._subscription is not None

    def set_points(self, points: Iterable[GeoPoint]) -> ProximityResult | None:
        self._points = tuple(points)
        self._data_error = None
        return self._recompute()

    def points_failed(self, error: DataError) -> ProximityResult | None:
        """A failed fetch leaves the tracker with an empty point set."""
        logger.warning("Hotspot list unavailable: %s", error)
        self._points = ()
        self._data_error = error
        return self._recompute()

    def update_position(self, sample: PositionSample) -> ProximityResult | None:
        self._position = sample
        self._position_error = None
        return self._recompute()

    def position_failed(self, error: PositionError) -> ProximityResult | None:
        """No position is available until the next sample arrives."""
        logger.warning("Position unavailable (%s).", error.reason)
        self._position = None
        self._position_error = error
        return self._recompute()

    def attach(self, feed: PositionFeed) -> None:
        """Subscribe to `feed`, replacing any previous subscription."""
        self.detach()
        token = object()
        self._feed_token = token

        def _on_sample(sample: PositionSample) -> None:
            if self._feed_token is token:
                self.update_position(sample)

        def _on_error(error: PositionError) -> None:
            if self._feed_token is token:
                self.position_failed(error)

        self._detached = False
        self._subscription = feed.subscribe(_on_sample, _on_error)

    def detach(self) -> None:
        """Stop listening to the feed; nothing is recomputed until the next `attach`."""
        self._feed_token = None
        self._detached = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _recompute(self) -> ProximityResult | None:
        if self._detached:
            return self._result
        self._result = nearest(self._position, self._points)
        if self._on_change is not None:
            self._on_change(self._result)
        return self._result
