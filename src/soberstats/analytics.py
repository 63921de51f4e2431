"""
Derived views over a journal history.

Every function takes the collection newest-first (as LogRepository returns
it) and treats windows positionally: "the last 7" means the first seven
entries of the list, regardless of gaps between their dates. Nothing here
mutates its input.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Sequence

from ._util import _today_key
from .catalog import BENZO_DATA, FALLBACK_COLOR, SubstanceReference, get_substance, label_for, unit_for
from .models import DailyLog

WINDOW_SIZE = 7
TREND_THRESHOLD = 0.05


# -------------------------
# Number helpers
# -------------------------

def _countable(amount: object) -> bool:
    """Dose amounts that may enter a sum: finite, positive, numeric."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        return False
    try:
        return math.isfinite(amount) and amount > 0
    except OverflowError:
        return False


def round_half_up(value: float, places: int) -> Decimal:
    return Decimal(repr(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_amount(value: float, places: int) -> str:
    return f"{round_half_up(value, places):.{places}f}"


def _sparkline(values: list[float], vmin: float = 1.0, vmax: float = 10.0) -> str:
    if not values:
        return ""
    blocks = "▁▂▃▄▅▆▇█"
    span = max(1e-9, vmax - vmin)
    out = []
    for v in values:
        x = (v - vmin) / span
        idx = int(round(x * (len(blocks) - 1)))
        idx = max(0, min(len(blocks) - 1, idx))
        out.append(blocks[idx])
    return "".join(out)


# -------------------------
# Streaks / status
# -------------------------

def sober_streak(logs: Sequence[DailyLog]) -> int:
    """Consecutive alcohol-free entries counted from the most recent one."""
    streak = 0
    for log in logs:
        if log.alcohol_consumed:
            break
        streak += 1
    return streak


def logged_today(logs: Sequence[DailyLog], today: str | None = None) -> bool:
    today = today or _today_key()
    return any(log.date == today for log in logs)


# -------------------------
# Substance load
# -------------------------

def window(logs: Sequence[DailyLog], start: int = 0, size: int = WINDOW_SIZE) -> list[DailyLog]:
    return list(logs[start : start + size])


def substance_totals(logs: Sequence[DailyLog]) -> dict[str, float]:
    """Summed dose per substance id, in order of first appearance."""
    totals: dict[str, float] = {}
    for log in logs:
        for med in log.medications:
            if not _countable(med.amount):
                continue
            totals[med.substance_id] = totals.get(med.substance_id, 0) + med.amount
    return totals


def average_per_entry(logs: Sequence[DailyLog], substance_id: str) -> float:
    """Mean daily dose of one substance over a window; 0 for an empty window."""
    if not logs:
        return 0.0
    total = 0.0
    for log in logs:
        for med in log.medications:
            if med.substance_id == substance_id and _countable(med.amount):
                total += med.amount
    return total / len(logs)


@dataclass(frozen=True)
class SubstanceLoad:
    substance_id: str
    label: str
    unit: str
    color: str
    total: float
    average: float

    @property
    def display_average(self) -> str:
        return format_amount(self.average, 1)


def rolling_load(logs: Sequence[DailyLog], size: int = WINDOW_SIZE) -> list[SubstanceLoad]:
    """
    Average dose per entry for every substance seen in the most recent
    `size` entries, heaviest first. The divisor is the window's actual
    length, so a short history is not diluted.
    """
    recent = window(logs, 0, size)
    if not recent:
        return []

    loads = []
    for substance_id, total in substance_totals(recent).items():
        ref = get_substance(substance_id)
        loads.append(
            SubstanceLoad(
                substance_id=substance_id,
                label=label_for(substance_id),
                unit=unit_for(substance_id),
                color=ref.color if ref else FALLBACK_COLOR,
                total=total,
                average=total / len(recent),
            )
        )
    return sorted(loads, key=lambda x: -x.average)


def primary_load(logs: Sequence[DailyLog], size: int = WINDOW_SIZE) -> SubstanceLoad | None:
    loads = rolling_load(logs, size)
    return loads[0] if loads else None


# -------------------------
# Trends
# -------------------------

class Trend(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    FLAT = "FLAT"

    @property
    def arrow(self) -> str:
        return {"UP": "↑", "DOWN": "↓", "FLAT": "→"}[self.value]


def classify_trend(current: float, previous: float, threshold: float = TREND_THRESHOLD) -> Trend:
    delta = current - previous
    if delta > threshold:
        return Trend.UP
    if delta < -threshold:
        return Trend.DOWN
    return Trend.FLAT


@dataclass(frozen=True)
class SubstanceTrend:
    substance: SubstanceReference
    current_avg: float
    previous_avg: float
    direction: Trend

    @property
    def display_current(self) -> str:
        return format_amount(self.current_avg, 2)

    @property
    def display_previous(self) -> str:
        return format_amount(self.previous_avg, 2)


def trends(logs: Sequence[DailyLog], size: int = WINDOW_SIZE) -> list[SubstanceTrend]:
    """
    Compare this period (entries 0..size-1) with the previous one
    (entries size..2*size-1) for every catalog substance. Substances absent
    from both periods are left out.
    """
    current = window(logs, 0, size)
    previous = window(logs, size, size)

    out: list[SubstanceTrend] = []
    for ref in BENZO_DATA:
        cur = average_per_entry(current, ref.id)
        prev = average_per_entry(previous, ref.id)
        if cur <= 0 and prev <= 0:
            continue
        out.append(SubstanceTrend(ref, cur, prev, classify_trend(cur, prev)))
    return out


# -------------------------
# Mood
# -------------------------

@dataclass(frozen=True)
class MoodSummary:
    entries: int
    average: float
    low: int
    high: int
    sparkline: str


def mood_summary(logs: Sequence[DailyLog], size: int = WINDOW_SIZE) -> MoodSummary | None:
    scores = [log.mood for log in logs if isinstance(log.mood, int) and 1 <= log.mood <= 10][:size]
    if not scores:
        return None
    oldest_first = list(reversed(scores))
    return MoodSummary(
        entries=len(scores),
        average=sum(scores) / len(scores),
        low=min(scores),
        high=max(scores),
        sparkline=_sparkline([float(s) for s in oldest_first]),
    )


# -------------------------
# Dashboard
# -------------------------

@dataclass(frozen=True)
class DashboardSummary:
    logged_today: bool
    sober_streak: int
    loads: list[SubstanceLoad]
    trends: list[SubstanceTrend]
    mood: MoodSummary | None
    total_entries: int

    @property
    def primary_load(self) -> SubstanceLoad | None:
        return self.loads[0] if self.loads else None

    @property
    def primary_load_average(self) -> float:
        return self.primary_load.average if self.primary_load else 0.0

    @property
    def status(self) -> str:
        return "COMPLETE" if self.logged_today else "PENDING"


def dashboard(logs: Sequence[DailyLog], today: str | None = None) -> DashboardSummary:
    return DashboardSummary(
        logged_today=logged_today(logs, today),
        sober_streak=sober_streak(logs),
        loads=rolling_load(logs),
        trends=trends(logs),
        mood=mood_summary(logs),
        total_entries=len(logs),
    )
