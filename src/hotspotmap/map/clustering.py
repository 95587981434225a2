"""
Zoom-dependent marker clustering.

Greedy distance clustering in Web-Mercator pixel space, the way map marker
cluster plugins do it:
- points are visited in input order,
- a point joins the nearest existing cluster whose anchor (the projected
  position of its first member) is within `radius_px`,
- otherwise it starts a new cluster.

A bucket grid with `radius_px` cells keeps the candidate search to the 3x3
neighbourhood, so a pass is roughly linear in the number of points.

Every point ends up in exactly one group; one-member groups are reported as
singletons. Above `max_zoom` clustering is off and everything is a singleton.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable

from hotspotmap.core.geo import LatLng, project
from hotspotmap.domain.models import GeoPoint


@dataclass(frozen=True)
class Cluster:
    cluster_id: str
    center: LatLng
    members: tuple[GeoPoint, ...]
    zoom: int

    @property
    def child_ids(self) -> tuple[str, ...]:
        return tuple(m.id for m in self.members)

    @property
    def count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class ClusterPartition:
    zoom: int
    clusters: tuple[Cluster, ...]
    singletons: tuple[GeoPoint, ...]

    def all_ids(self) -> list[str]:
        out = [cid for c in self.clusters for cid in c.child_ids]
        out.extend(p.id for p in self.singletons)
        return out

    def cluster_for(self, point_id: str) -> Cluster | None:
        for c in self.clusters:
            if point_id in c.child_ids:
                return c
        return None


@dataclass
class _Group:
    index: int
    x: float
    y: float
    members: list[GeoPoint] = field(default_factory=list)


def cluster_points(
    points: Iterable[GeoPoint],
    zoom: float,
    *,
    radius_px: float = 80.0,
    max_zoom: int = 18,
) -> ClusterPartition:
    """Partition `points` into clusters and singletons at `zoom`."""
    z = int(math.floor(zoom))
    pts = list(points)
    if z > max_zoom or radius_px <= 0:
        return ClusterPartition(zoom=z, clusters=(), singletons=tuple(pts))

    cells: dict[tuple[int, int], list[_Group]] = {}
    groups: list[_Group] = []
    r2 = float(radius_px) ** 2

    for p in pts:
        x, y = project(p.lat, p.lng, z)
        cx = int(math.floor(x / radius_px))
        cy = int(math.floor(y / radius_px))

        best: _Group | None = None
        best_key: tuple[float, int] | None = None
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                for g in cells.get((cx + dx, cy + dy), ()):
                    d2 = (g.x - x) ** 2 + (g.y - y) ** 2
                    if d2 > r2:
                        continue
                    # Equal distances go to the older cluster.
                    key = (d2, g.index)
                    if best_key is None or key < best_key:
                        best, best_key = g, key

        if best is None:
            g = _Group(index=len(groups), x=x, y=y, members=[p])
            groups.append(g)
            cells.setdefault((cx, cy), []).append(g)
        else:
            best.members.append(p)

    clusters: list[Cluster] = []
    singletons: list[GeoPoint] = []
    for g in groups:
        if len(g.members) == 1:
            singletons.append(g.members[0])
            continue
        n = len(g.members)
        clusters.append(
            Cluster(
                cluster_id=f"{z}:{g.members[0].id}",
                center=LatLng(
                    lat=sum(m.lat for m in g.members) / n,
                    lng=sum(m.lng for m in g.members) / n,
                ),
                members=tuple(g.members),
                zoom=z,
            )
        )
    return ClusterPartition(zoom=z, clusters=tuple(clusters), singletons=tuple(singletons))
