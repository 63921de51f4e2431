"""
Log repository: the canonical journal collection plus user settings.

Reads are defensive: a corrupt or unparseable stored value degrades to an
empty collection / default settings and is logged, never raised. Writes go
straight to the injected store and any I/O error propagates.
"""

from __future__ import annotations

import json
import logging
import random
from datetime import timedelta
from typing import Any, Protocol

from ._util import _now_local
from .models import DailyLog, TakenMedication, UserSettings, date_timestamp_ms, new_log_id

logger = logging.getLogger(__name__)

LOGS_KEY = "soberstats_logs"
SETTINGS_KEY = "soberstats_settings"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


def sort_newest_first(logs: list[DailyLog]) -> list[DailyLog]:
    # sorted() with reverse=True is stable, so equal dates keep their order
    return sorted(logs, key=lambda log: log.date, reverse=True)


class LogRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    # -------------------------
    # Logs
    # -------------------------

    def _read_logs(self) -> list[DailyLog]:
        raw = self.store.get(LOGS_KEY)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Stored logs under %r are not valid JSON; treating as empty", LOGS_KEY)
            return []
        if not isinstance(items, list):
            logger.warning("Stored logs under %r are not a list; treating as empty", LOGS_KEY)
            return []

        logs: list[DailyLog] = []
        dropped = 0
        for item in items:
            try:
                logs.append(DailyLog.from_dict(item))
            except (ValueError, TypeError, OverflowError):
                dropped += 1
        if dropped:
            logger.warning("Dropped %d malformed log entries", dropped)
        return logs

    def _write_logs(self, logs: list[DailyLog]) -> None:
        self.store.set(LOGS_KEY, json.dumps([log.to_dict() for log in logs], ensure_ascii=False))

    def list(self) -> list[DailyLog]:
        return sort_newest_first(self._read_logs())

    def get(self, log_id: str) -> DailyLog | None:
        for log in self._read_logs():
            if log.id == log_id:
                return log
        return None

    def find_by_date(self, day: str) -> DailyLog | None:
        for log in self.list():
            if log.date == day:
                return log
        return None

    def upsert(self, entry: DailyLog) -> list[DailyLog]:
        """Replace the entry with the same id (or append), re-sort, persist."""
        logs = self._read_logs()
        for i, log in enumerate(logs):
            if log.id == entry.id:
                logs[i] = entry
                break
        else:
            logs.append(entry)

        logs = sort_newest_first(logs)
        self._write_logs(logs)
        logger.info("Saved log %s for %s (%d total)", entry.id, entry.date, len(logs))
        return logs

    def remove(self, log_id: str) -> list[DailyLog]:
        logs = sort_newest_first([log for log in self._read_logs() if log.id != log_id])
        self._write_logs(logs)
        return logs

    def clear(self) -> None:
        self.store.delete(LOGS_KEY)
        logger.info("Cleared all logs")

    # -------------------------
    # Settings
    # -------------------------

    def get_settings(self) -> UserSettings:
        raw = self.store.get(SETTINGS_KEY)
        if not raw:
            return UserSettings()
        try:
            return UserSettings.from_dict(json.loads(raw))
        except (json.JSONDecodeError, ValueError):
            logger.warning("Stored settings under %r are unreadable; using defaults", SETTINGS_KEY)
            return UserSettings()

    def save_settings(self, settings: UserSettings) -> UserSettings:
        self.store.set(SETTINGS_KEY, json.dumps(settings.to_dict(), ensure_ascii=False))
        return settings

    def update_settings(self, **changes: Any) -> UserSettings:
        return self.save_settings(self.get_settings().merged(**changes))

    # -------------------------
    # Demo data
    # -------------------------

    def seed_demo(self, days: int = 30, rng: random.Random | None = None) -> list[DailyLog]:
        """
        Populate an empty journal with a demo history: sober for the last
        ten days, a slow diazepam taper, random mood. No-op if any logs exist.
        """
        existing = self._read_logs()
        if existing:
            return sort_newest_first(existing)

        rng = rng or random.Random()
        today = _now_local().date()
        logs: list[DailyLog] = []
        for i in range(days):
            day = (today - timedelta(days=i)).isoformat()
            drank = i > 10
            logs.append(
                DailyLog(
                    id=new_log_id(),
                    date=day,
                    alcohol_consumed=drank,
                    alcohol_units=rng.randint(2, 6) if drank else 0,
                    medications=[TakenMedication("diazepam", 10 + (5 if i > 20 else 0))],
                    notes="Feeling okay today." if i == 0 else None,
                    mood=rng.randint(3, 8),
                    timestamp=date_timestamp_ms(day),
                )
            )
        self._write_logs(logs)
        logger.info("Seeded %d demo log entries", len(logs))
        return logs
