from __future__ import annotations

import pytest

from soberstats.models import DailyLog, TakenMedication
from soberstats.repository import LogRepository
from soberstats.storage import MemoryStore


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def repo(store) -> LogRepository:
    return LogRepository(store)


def make_log(
    day: str,
    *,
    id: str | None = None,
    alcohol: bool = False,
    units: float = 0,
    meds: list[tuple[str, float]] | None = None,
    mood: int | None = None,
    notes: str | None = None,
) -> DailyLog:
    return DailyLog.create(
        day,
        id=id or f"id-{day}",
        alcohol_consumed=alcohol,
        alcohol_units=units,
        medications=[TakenMedication(sid, amt) for sid, amt in (meds or [])],
        mood=mood,
        notes=notes,
    )
