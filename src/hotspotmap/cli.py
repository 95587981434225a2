"""
HotspotMap CLI entrypoint.

This CLI is intended for quick checks without the map frontend: which hotspot is
closest to a position, how the catalog clusters at a zoom level, and what
coordinates a pasted map link points at.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from hotspotmap.catalog.normalize import normalize_report
from hotspotmap.config.settings import get_settings
from hotspotmap.core.errors import DataError
from hotspotmap.core.logging import configure_logging
from hotspotmap.core.time import utc_now
from hotspotmap.core.url_coords import parse_map_url
from hotspotmap.domain.models import Hotspot, PositionSample
from hotspotmap.ingestion.records import RecordsClient, RetryableError, UpdateOk, build_record_source
from hotspotmap.map.clustering import cluster_points
from hotspotmap.proximity.card import build_card
from hotspotmap.proximity.nearest import nearest


def _load_points():
    settings = get_settings()
    return normalize_report(build_record_source(settings).list_records())


def _cmd_nearest(args: argparse.Namespace) -> int:
    """Handle the `nearest` subcommand."""
    settings = get_settings()
    threshold = float(args.threshold_m) if args.threshold_m is not None else settings.proximity.threshold_meters
    report = _load_points()

    position = PositionSample(lat=float(args.lat), lng=float(args.lng), timestamp=utc_now())
    card = build_card(nearest(position, report.points), threshold)

    if args.json:
        print(json.dumps(card.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    if card.point_id is None:
        print(card.message)
        return 0
    marker = "*" if card.within else " "
    print(f"{marker} {card.name} ({card.distance_label})  id={card.point_id}")
    if card.client:
        print(f"    client: {card.client}")
    print(f"    2G: {card.password_2g or '-'}")
    print(f"    5G: {card.password_5g or '-'}")
    return 0


def _cmd_clusters(args: argparse.Namespace) -> int:
    """Handle the `clusters` subcommand."""
    cfg = get_settings().map
    report = _load_points()
    partition = cluster_points(
        report.points, int(args.zoom), radius_px=cfg.cluster_radius_px, max_zoom=cfg.cluster_max_zoom
    )

    if args.json:
        payload = {
            "zoom": partition.zoom,
            "dropped": report.dropped,
            "clusters": [
                {"cluster_id": c.cluster_id, "count": c.count, "child_ids": list(c.child_ids)}
                for c in partition.clusters
            ],
            "singletons": [p.id for p in partition.singletons],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0

    print(f"Zoom {partition.zoom}: {len(partition.clusters)} clusters, {len(partition.singletons)} single hotspots")
    for c in partition.clusters:
        names = ", ".join(Hotspot.from_point(m).name or m.id for m in c.members[:3])
        more = f" (+{c.count - 3})" if c.count > 3 else ""
        print(f"  [{c.count:>3}] {c.center.lat:.5f},{c.center.lng:.5f}  {names}{more}")
    if report.dropped:
        print(f"({report.dropped} records dropped: unusable coordinates)")
    return 0


def _cmd_parse_url(args: argparse.Namespace) -> int:
    coords = parse_map_url(args.url)
    if coords is None:
        print("No coordinates found (paste the full map URL, e.g. .../@-20.123456,-40.123456,17z).")
        return 1
    print(f"{coords.lat:.6f}, {coords.lng:.6f}")
    return 0


def _cmd_set_location(args: argparse.Namespace) -> int:
    """Handle the `set-location` subcommand (admin: move a hotspot to a pasted map link)."""
    coords = parse_map_url(args.url)
    if coords is None:
        print("No coordinates found in the URL; nothing updated.", file=sys.stderr)
        return 1

    settings = get_settings()
    if not settings.records.base_url:
        print("No record store configured (set HOTSPOTMAP_RECORDS_URL).", file=sys.stderr)
        return 2

    outcome = RecordsClient(settings).update_record(
        args.row_id,
        {"LATITUDE": f"{coords.lat:.6f}", "LONGITUDE": f"{coords.lng:.6f}"},
    )
    if isinstance(outcome, UpdateOk):
        print(f"Updated {args.row_id}: {coords.lat:.6f}, {coords.lng:.6f}")
        return 0

    # Exit 3 tells wrappers a retry may succeed.
    retryable = isinstance(outcome, RetryableError)
    print(f"Update failed ({'temporary' if retryable else 'permanent'}): {outcome.message}", file=sys.stderr)
    return 3 if retryable else 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the HotspotMap CLI."""
    parser = argparse.ArgumentParser(prog="hotspotmap")
    sub = parser.add_subparsers(dest="command", required=True)

    near = sub.add_parser("nearest", help="Show the hotspot closest to a position.")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lng", required=True, type=float)
    near.add_argument("--threshold-m", dest="threshold_m", type=float, default=None)
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearest)

    clu = sub.add_parser("clusters", help="Show how the catalog clusters at a zoom level.")
    clu.add_argument("--zoom", required=True, type=int)
    clu.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    clu.set_defaults(func=_cmd_clusters)

    url = sub.add_parser("parse-url", help="Extract coordinates from a pasted map URL.")
    url.add_argument("url")
    url.set_defaults(func=_cmd_parse_url)

    loc = sub.add_parser("set-location", help="Set a hotspot's coordinates from a pasted map URL.")
    loc.add_argument("row_id")
    loc.add_argument("url")
    loc.set_defaults(func=_cmd_set_location)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m hotspotmap.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    try:
        return int(func(args))
    except DataError as e:
        print(f"Failed to load hotspots: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
