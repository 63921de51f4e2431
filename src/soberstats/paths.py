"""Where the journal file lives, and the guard that keeps it out of git repos."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR = "soberstats"
DATA_ENV = "SOBERSTATS_DATA"


def config_home() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else Path.home() / ".config"


def default_data_path(profile: str | None = None) -> Path:
    # one file per profile so separate journals never share keys
    return config_home() / APP_DIR / (f"{profile}.json" if profile else "data.json")


def resolve_data_path(data_arg: str | None, profile: str | None) -> Path:
    """--data, then $SOBERSTATS_DATA, then the (profile) default."""
    chosen = data_arg or os.environ.get(DATA_ENV)
    path = Path(chosen) if chosen else default_data_path(profile)
    return path.expanduser().resolve()


def find_git_root(start: Path) -> Path | None:
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return None


def assert_safe_data_path(data_path: Path, allow_repo_data_path: bool) -> None:
    git_root = find_git_root(data_path.parent)
    if git_root is None:
        return
    if allow_repo_data_path:
        logger.warning("Using journal file inside git repo %s (override active)", git_root)
        return
    print("🚫 Refusing to keep a health journal inside a git repo.", file=sys.stderr)
    print(f"   journal:   {data_path}", file=sys.stderr)
    print(f"   repo root: {git_root}", file=sys.stderr)
    print(f"   Fix: move it under {config_home() / APP_DIR} or pass --allow-repo-data-path", file=sys.stderr)
    raise SystemExit(2)
