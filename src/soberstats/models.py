"""
Journal records and their persisted JSON shape.

Persisted keys are camelCase (the format the journal has always been stored
in); attributes are snake_case. Unknown keys are ignored on load so files
written by newer versions stay readable.
"""

from __future__ import annotations

import math
import random
import string
from dataclasses import dataclass, field, replace
from datetime import date as Date, datetime, timezone
from typing import Any

from .catalog import OTHER_ID

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_log_id() -> str:
    """Short random base-36 id, e.g. 'k3j9x0q2a'."""
    return "".join(random.choices(_ID_ALPHABET, k=9))


def date_timestamp_ms(day: str) -> int:
    """Milliseconds since epoch at UTC midnight of a YYYY-MM-DD date."""
    d = Date.fromisoformat(day)
    return int(datetime(d.year, d.month, d.day, tzinfo=timezone.utc).timestamp() * 1000)


def _as_number(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        return 0.0


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    return s if s.strip() else None


def _str_or(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def _as_timestamp(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    try:
        return int(value) if math.isfinite(value) else 0
    except OverflowError:
        return 0


@dataclass
class TakenMedication:
    substance_id: str
    amount: float
    custom_name: str | None = None
    reason: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "TakenMedication":
        if not isinstance(raw, dict) or not raw.get("medicationId"):
            raise ValueError(f"not a medication entry: {raw!r}")
        substance_id = str(raw["medicationId"])
        return cls(
            substance_id=substance_id,
            amount=_as_number(raw.get("amount", 0)),
            custom_name=_optional_str(raw.get("customName")) if substance_id == OTHER_ID else None,
            reason=_optional_str(raw.get("reason")),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"medicationId": self.substance_id, "amount": self.amount}
        if self.custom_name is not None:
            out["customName"] = self.custom_name
        if self.reason is not None:
            out["reason"] = self.reason
        return out


@dataclass
class DailyLog:
    id: str
    date: str  # YYYY-MM-DD
    alcohol_consumed: bool = False
    alcohol_units: float = 0
    medications: list[TakenMedication] = field(default_factory=list)
    notes: str | None = None
    mood: int | None = None
    timestamp: int = 0

    @classmethod
    def create(
        cls,
        date: str,
        *,
        id: str | None = None,
        alcohol_consumed: bool = False,
        alcohol_units: float = 0,
        medications: list[TakenMedication] | None = None,
        notes: str | None = None,
        mood: int | None = None,
    ) -> "DailyLog":
        """
        Build an entry the way the tracking form does on submit: reuse `id`
        when editing, otherwise mint one; units are forced to 0 when no
        alcohol was consumed; timestamp derives from the date.
        """
        return cls(
            id=id or new_log_id(),
            date=date,
            alcohol_consumed=bool(alcohol_consumed),
            alcohol_units=alcohol_units if alcohol_consumed else 0,
            medications=list(medications or []),
            notes=notes,
            mood=mood,
            timestamp=date_timestamp_ms(date),
        )

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "DailyLog":
        if not isinstance(raw, dict):
            raise ValueError(f"not a log entry: {raw!r}")
        log_id = raw.get("id")
        day = raw.get("date")
        if not log_id or not isinstance(day, str) or not day:
            raise ValueError(f"log entry missing id/date: {raw!r}")

        meds_raw = raw.get("medications") or []
        if not isinstance(meds_raw, list):
            meds_raw = []
        meds = [TakenMedication.from_dict(m) for m in meds_raw if isinstance(m, dict) and m.get("medicationId")]

        consumed = bool(raw.get("alcoholConsumed", False))
        mood = raw.get("mood")

        return cls(
            id=str(log_id),
            date=day,
            alcohol_consumed=consumed,
            alcohol_units=_as_number(raw.get("alcoholUnits", 0)) if consumed else 0,
            medications=meds,
            notes=_optional_str(raw.get("notes")),
            mood=mood if isinstance(mood, int) and not isinstance(mood, bool) else None,
            timestamp=_as_timestamp(raw.get("timestamp", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "alcoholConsumed": self.alcohol_consumed,
            "alcoholUnits": self.alcohol_units if self.alcohol_consumed else 0,
            "medications": [m.to_dict() for m in self.medications],
            "timestamp": self.timestamp,
        }
        if self.notes is not None:
            out["notes"] = self.notes
        if self.mood is not None:
            out["mood"] = self.mood
        return out


@dataclass
class UserSettings:
    name: str = "User"
    family_mode: bool = False  # read-only tracking
    password: str | None = None
    theme: str = "crimson"

    @property
    def locked(self) -> bool:
        return bool(self.password)

    def check_password(self, candidate: str) -> bool:
        return not self.password or candidate == self.password

    def merged(self, **changes: Any) -> "UserSettings":
        """Copy with `changes` applied on top of the current fields."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "UserSettings":
        if not isinstance(raw, dict):
            raise ValueError(f"not a settings object: {raw!r}")
        defaults = cls()
        family = raw.get("familyMode")
        return cls(
            name=_str_or(raw.get("name"), defaults.name),
            family_mode=family if isinstance(family, bool) else defaults.family_mode,
            password=_optional_str(raw.get("password")),
            theme=_str_or(raw.get("theme"), defaults.theme),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "familyMode": self.family_mode, "theme": self.theme}
        if self.password:
            out["password"] = self.password
        return out
