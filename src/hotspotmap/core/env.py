"""
Project root and `.env` handling.

The record-store token normally sits in a `.env` next to the checkout, and the
default catalog path (`data/hotspots.json`) is relative. Both have to work no
matter where the CLI or the API server is started from, so relative paths are
anchored at the project root instead of the working directory.

Root lookup order:
1. `HOTSPOTMAP_PROJECT_ROOT`
2. the directory holding `HOTSPOTMAP_ENV_FILE`
3. the first parent of the working directory, then of this package, that looks
   like a checkout (`.env`, `.git`, `pyproject.toml` or a `data/` folder beside `src/`)
4. the working directory
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ROOT_ENV = "HOTSPOTMAP_PROJECT_ROOT"
ENV_FILE_ENV = "HOTSPOTMAP_ENV_FILE"

_ROOT_MARKERS = (".env", ".git", "pyproject.toml")


def _is_checkout(path: Path) -> bool:
    if any((path / marker).exists() for marker in _ROOT_MARKERS):
        return True
    return (path / "src").is_dir() and (path / "data").is_dir()


def _find_checkout(start: Path) -> Path | None:
    start = start.resolve()
    for candidate in (start, *start.parents):
        if _is_checkout(candidate):
            return candidate
    return None


def _explicit_env_file() -> Path | None:
    value = os.getenv(ENV_FILE_ENV)
    return Path(value).expanduser().resolve() if value else None


@lru_cache
def get_project_root() -> Path:
    """Return the directory relative paths are resolved against (cached)."""
    override = os.getenv(ROOT_ENV)
    if override:
        return Path(override).expanduser().resolve()

    env_file = _explicit_env_file()
    if env_file is not None:
        return env_file.parent

    found = _find_checkout(Path.cwd()) or _find_checkout(Path(__file__).parent)
    return found or Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load the project's `.env` once; variables already in the environment win."""
    env_path = _explicit_env_file() or get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    """Anchor a relative path at the project root; absolute paths pass through."""
    p = Path(path).expanduser()
    return p if p.is_absolute() else (get_project_root() / p).resolve()
