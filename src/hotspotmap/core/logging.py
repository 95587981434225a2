"""
Logging setup for the CLI and the API server.

The handler layout lives in the packaged `logging.yaml`; the level comes from
`app.log_level` (or `HOTSPOTMAP_LOG_LEVEL`). Library modules only ever call
`logging.getLogger(__name__)`.
"""

from __future__ import annotations

import copy
import logging.config

from hotspotmap.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> str:
    """Apply the packaged dictConfig at `level` (default: settings) and return the level used."""
    level = (level or get_settings().app.log_level).upper()

    # The packaged config is cached; never mutate the shared copy.
    config = copy.deepcopy(get_logging_config())
    config.setdefault("root", {})["level"] = level
    config.setdefault("loggers", {}).setdefault("hotspotmap", {})["level"] = level
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict):
            handler["level"] = level

    logging.config.dictConfig(config)
    return level
