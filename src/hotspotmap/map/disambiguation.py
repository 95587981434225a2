"""
Cluster disambiguation list.

Activating a cluster bubble opens a list of its hotspots; picking one closes the
list and focuses that hotspot on the map. Two states only:

    Closed  --activate(cluster)-->  Open(items)
    Open    --activate(other)--->   Open(other items)     (no Closed in between)
    Open    --dismiss/cancel---->   Closed
    Open    --select(id)-------->   Closed, then focus(id)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Protocol, Union

from hotspotmap.domain.models import GeoPoint
from hotspotmap.map.viewmodel import ClusteringViewModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Closed:
    pass


@dataclass(frozen=True)
class Open:
    cluster_id: str
    items: tuple[GeoPoint, ...]

    @property
    def item_ids(self) -> tuple[str, ...]:
        return tuple(p.id for p in self.items)


DisambiguationState = Union[Closed, Open]


class FocusSink(Protocol):
    def focus(self, point_id: str, *, source: str = "marker") -> object: ...


class DisambiguationFlow:
    def __init__(
        self,
        view_model: ClusteringViewModel,
        focus: FocusSink,
        *,
        on_change: Callable[[DisambiguationState], None] | None = None,
    ):
        self._view_model = view_model
        self._focus = focus
        self._on_change = on_change
        self._state: DisambiguationState = Closed()

    @property
    def state(self) -> DisambiguationState:
        return self._state

    @property
    def is_open(self) -> bool:
        return isinstance(self._state, Open)

    def activate(self, cluster_id: str) -> DisambiguationState:
        """Open (or replace) the list with the members of `cluster_id`."""
        items = self._view_model.members(cluster_id)
        if not items:
            logger.debug("Ignoring activation of unknown cluster %s.", cluster_id)
            return self._state
        self._set(Open(cluster_id=cluster_id, items=tuple(items)))
        return self._state

    def dismiss(self) -> None:
        if self.is_open:
            self._set(Closed())

    def cancel(self) -> None:
        """Escape key / back gesture."""
        self.dismiss()

    def select(self, point_id: str) -> bool:
        """Close the list and hand `point_id` to the focus controller."""
        state = self._state
        if not isinstance(state, Open) or point_id not in state.item_ids:
            logger.warning("Selection %s is not in the open cluster list; ignoring.", point_id)
            return False
        self._set(Closed())
        self._focus.focus(point_id, source="list")
        return True

    def _set(self, state: DisambiguationState) -> None:
        self._state = state
        logger.debug("Disambiguation -> %s", type(state).__name__)
        if self._on_change is not None:
            self._on_change(state)
