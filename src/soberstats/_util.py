"""Shared low-level helpers used across the package."""

from __future__ import annotations

from datetime import datetime


def _now_local() -> datetime:
    return datetime.now().astimezone()


def _today_key() -> str:
    """Current local calendar date as YYYY-MM-DD."""
    return _now_local().date().isoformat()
