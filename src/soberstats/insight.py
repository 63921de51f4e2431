"""
Narrative insight from the journal history via the Anthropic Messages API.

The generator never raises: any failure (no API key, network error, empty
reply) is logged and comes back as None. InsightSession adds the
one-fetch-per-session policy on top.
"""

from __future__ import annotations

import logging
import os
from typing import Awaitable, Callable, Sequence

from anthropic import AsyncAnthropic

from .catalog import label_for, unit_for
from .models import DailyLog

logger = logging.getLogger(__name__)

PLACEHOLDER = "INSUFFICIENT DATA FOR ANALYSIS. CONTINUE LOGGING."

DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
MODEL_ENV = "SOBERSTATS_INSIGHT_MODEL"
PROMPT_ENTRIES = 14

SYSTEM_PROMPT = (
    "You are a supportive recovery coach reviewing a personal journal of "
    "benzodiazepine doses, alcohol use and mood. Reply with two or three "
    "short sentences: one observation about the trend, one encouragement. "
    "Do not give dosing advice."
)

InsightGenerator = Callable[[Sequence[DailyLog]], Awaitable["str | None"]]


def build_prompt(history: Sequence[DailyLog], limit: int = PROMPT_ENTRIES) -> str:
    """One line per entry, most recent first, as given."""
    lines = ["Recent journal entries (most recent first):"]
    for log in history[:limit]:
        meds = ", ".join(
            f"{label_for(m.substance_id, m.custom_name)} {m.amount}{unit_for(m.substance_id)}"
            for m in log.medications
        ) or "none"
        alcohol = f"{log.alcohol_units} units" if log.alcohol_consumed else "none"
        line = f"- {log.date}: meds={meds}; alcohol={alcohol}"
        if log.mood is not None:
            line += f"; mood={log.mood}/10"
        if log.notes:
            line += f"; notes={log.notes.strip()}"
        lines.append(line)
    return "\n".join(lines)


async def generate_health_insight(history: Sequence[DailyLog]) -> str | None:
    if not history:
        return None
    try:
        async with AsyncAnthropic() as client:
            response = await client.messages.create(
                model=os.environ.get(MODEL_ENV, DEFAULT_MODEL),
                max_tokens=300,
                timeout=30.0,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": build_prompt(history)}],
            )
        text = "".join(getattr(block, "text", None) or "" for block in response.content or []).strip()
    except Exception as e:
        logger.warning("Insight request failed: %s", e)
        return None

    if not text:
        logger.warning("Insight response contained no text")
        return None
    return text


class InsightSession:
    """
    Session-scoped cache for the single insight request.

    `fetch` runs at most once per session, and only for a non-empty history;
    later history changes do not trigger a refetch. After `detach()` a
    result that is still in flight is dropped instead of stored.
    """

    def __init__(self, generator: InsightGenerator = generate_health_insight):
        self.generator = generator
        self.has_fetched = False
        self.result: str | None = None
        self.attached = True

    async def fetch(self, history: Sequence[DailyLog]) -> str | None:
        if self.has_fetched or not history:
            return self.result
        self.has_fetched = True
        try:
            result = await self.generator(history)
        except Exception as e:
            logger.warning("Insight generator raised: %s", e)
            result = None

        if not self.attached:
            logger.info("Insight arrived after detach; discarding")
            return None
        self.result = result or None
        return self.result

    def detach(self) -> None:
        self.attached = False

    @property
    def text(self) -> str:
        return self.result or PLACEHOLDER
