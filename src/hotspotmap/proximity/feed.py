"""
Live position feed.

The feed is push-based: subscribers hand in callbacks and get a `Subscription`
back. Nothing is delivered after `unsubscribe()`.

`PositionStream` is the in-process implementation. Whatever reads the device
(a browser bridge, a GPS daemon, a test) calls `publish()` / `fail()`; the stream
applies the watch options:
- samples older than `maximum_age_s` are dropped,
- if no sample arrives within `timeout_s` a `PositionError("timeout")` is reported.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from hotspotmap.config.settings import PositionSettings
from hotspotmap.core.errors import PositionError, PositionErrorReason
from hotspotmap.core.scheduler import Scheduler, TimerHandle
from hotspotmap.core.time import ensure_tz, utc_now
from hotspotmap.domain.models import PositionSample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[PositionSample], None]
ErrorCallback = Callable[[PositionError], None]


class Subscription(Protocol):
    def unsubscribe(self) -> None: ...


class PositionFeed(Protocol):
    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback | None = None) -> Subscription: ...


@dataclass(frozen=True)
class WatchOptions:
    maximum_age_s: float = 10.0
    timeout_s: float = 20.0
    high_accuracy: bool = True

    @classmethod
    def from_settings(cls, settings: PositionSettings) -> "WatchOptions":
        return cls(
            maximum_age_s=settings.maximum_age_ms / 1000.0,
            timeout_s=settings.timeout_ms / 1000.0,
            high_accuracy=settings.high_accuracy,
        )


class _StreamSubscription:
    def __init__(self, stream: "PositionStream", on_sample: SampleCallback, on_error: ErrorCallback | None):
        self._stream = stream
        self.on_sample = on_sample
        self.on_error = on_error
        self.active = True
        self.timer: TimerHandle | None = None

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
        self._stream._remove(self)


class PositionStream:
    """Push-based position feed with maximum-age and timeout handling."""

    def __init__(
        self,
        scheduler: Scheduler,
        options: WatchOptions | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._scheduler = scheduler
        self._options = options or WatchOptions()
        self._clock = clock
        self._subs: list[_StreamSubscription] = []

    @property
    def options(self) -> WatchOptions:
        return self._options

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    def subscribe(self, on_sample: SampleCallback, on_error: ErrorCallback | None = None) -> Subscription:
        sub = _StreamSubscription(self, on_sample, on_error)
        self._subs.append(sub)
        self._arm_timeout(sub)
        return sub

    def publish(self, sample: PositionSample) -> bool:
        """Deliver `sample` to all subscribers; returns False if it was too old."""
        age_s = (self._clock() - ensure_tz(sample.timestamp)).total_seconds()
        if age_s > self._options.maximum_age_s:
            logger.debug("Dropping position sample %.1fs old.", age_s)
            return False
        for sub in list(self._subs):
            if not sub.active:
                continue
            self._arm_timeout(sub)
            sub.on_sample(sample)
        return True

    def fail(self, reason: PositionErrorReason, message: str = "") -> None:
        """Report a position failure (permission denied, unsupported, timeout)."""
        error = PositionError(reason, message)
        for sub in list(self._subs):
            if sub.active and sub.on_error is not None:
                sub.on_error(error)

    def _remove(self, sub: _StreamSubscription) -> None:
        if sub in self._subs:
            self._subs.remove(sub)

    def _arm_timeout(self, sub: _StreamSubscription) -> None:
        if sub.timer is not None:
            sub.timer.cancel()
        timer_ref: list[TimerHandle] = []

        def _expired() -> None:
            # A re-armed or cancelled timer must not report.
            if not sub.active or sub.timer is not timer_ref[0]:
                return
            sub.timer = None
            if sub.on_error is not None:
                sub.on_error(PositionError("timeout", "no position sample before timeout"))

        handle = self._scheduler.call_later(self._options.timeout_s, _expired)
        timer_ref.append(handle)
        sub.timer = handle
