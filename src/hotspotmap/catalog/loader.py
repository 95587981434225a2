"""
Hotspot catalog loader.

The catalog is either a local JSON export of the hotspot table (default:
`data/hotspots.json`) or the live row store. Both deliver the same raw record
shape; envelopes like `{"list": [...]}` are unwrapped here so the normalizer only
ever sees a flat list of mappings.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from hotspotmap.core.env import resolve_project_path


def unwrap_records(payload: Any) -> list[dict[str, Any]]:
    """Return the list of record mappings inside a row-store response."""
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        for key in ("list", "records", "data"):
            if isinstance(payload.get(key), list):
                items = payload[key]
                break
        else:
            # A single record object.
            items = [payload]
    else:
        return []
    return [dict(it) for it in items if isinstance(it, dict)]


def load_records(path: str | Path) -> list[dict[str, Any]]:
    """Load raw hotspot records from a JSON file."""
    resolved = resolve_project_path(path)
    payload = json.loads(resolved.read_text(encoding="utf-8"))
    return unwrap_records(payload)
