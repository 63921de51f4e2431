from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from ._util import _now_local


def parse_day(value: str | None) -> str:
    """
    Parse a flexible user date into YYYY-MM-DD (local calendar).
    Accepts:
      - None / blank / "today" -> today
      - "yesterday", "tomorrow"
      - ISO date "2026-02-25" or ISO datetime (date part is used, local tz)
      - "2026/02/25", "02/25/2026"
      - relative: "3 days ago", "1 day ago", "2 weeks ago"
    """
    today = _now_local().date()
    if not value or not value.strip():
        return today.isoformat()

    s = value.strip().lower()

    # --- 1) keywords ---
    if s == "today":
        return today.isoformat()
    if s == "yesterday":
        return (today - timedelta(days=1)).isoformat()
    if s == "tomorrow":
        return (today + timedelta(days=1)).isoformat()

    # --- 2) ISO date / datetime ---
    try:
        return date.fromisoformat(value.strip()).isoformat()
    except ValueError:
        pass
    try:
        dt = datetime.fromisoformat(value.strip())
        if dt.tzinfo is not None:
            dt = dt.astimezone()
        return dt.date().isoformat()
    except ValueError:
        pass

    # --- 3) Relative like "3 days ago", "2 weeks ago" ---
    m = re.fullmatch(r"(\d+)\s*(day|days|week|weeks)\s*ago", s)
    if m:
        n = int(m.group(1))
        days = n * 7 if "week" in m.group(2) else n
        return (today - timedelta(days=days)).isoformat()

    # --- 4) Other common layouts ---
    for fmt in ("%Y/%m/%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(value.strip(), fmt).date().isoformat()
        except ValueError:
            continue

    raise ValueError(
        f"Could not parse date {value!r}. Try '2026-02-25', 'yesterday' or '3 days ago'."
    )
