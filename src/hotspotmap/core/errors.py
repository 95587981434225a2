"""
Error taxonomy.

None of these are fatal: each one is absorbed by the component that owns it and
turned into an observable state (an empty point set, a `None` proximity result,
an idle focus). The API layer maps `DataError` to a 502 response.
"""

from __future__ import annotations

from typing import Literal

PositionErrorReason = Literal["permission_denied", "timeout", "unsupported"]


class HotspotMapError(Exception):
    """Base class for HotspotMap errors."""


class DataError(HotspotMapError):
    """The hotspot list could not be fetched or decoded."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PositionError(HotspotMapError):
    """The live position source could not deliver a sample."""

    def __init__(self, reason: PositionErrorReason, message: str = ""):
        super().__init__(message or reason)
        self.reason: PositionErrorReason = reason


class MalformedRecordError(HotspotMapError, ValueError):
    """A raw record has no usable coordinate pair."""


class FocusTargetMissing(HotspotMapError, LookupError):
    """A selection names an Identifier that has no point or live marker."""

    def __init__(self, point_id: str):
        super().__init__(f"No live marker for point '{point_id}'")
        self.point_id = point_id
