from __future__ import annotations

import csv
import io
from datetime import date
from pathlib import Path
from typing import Any, Sequence

from .catalog import OTHER_ID
from .models import DailyLog, TakenMedication

APP_NAME = "soberstats"

CSV_FIELDS = [
    "Date",
    "Alcohol",
    "AlcoholUnits",
    "Medications",
    "Mood",
    "Notes",
]


def export_filename(today: date | None = None) -> str:
    day = (today or date.today()).isoformat()
    return f"{APP_NAME}-export-{day}.csv"


def _fmt_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _med_pair(med: TakenMedication) -> str:
    key = med.substance_id
    if med.substance_id == OTHER_ID and med.custom_name:
        key = f"{OTHER_ID} ({med.custom_name})"
    return f"{key}:{_fmt_number(med.amount)}"


def log_to_row(log: DailyLog) -> dict[str, Any]:
    return {
        "Date": log.date,
        "Alcohol": "Yes" if log.alcohol_consumed else "No",
        "AlcoholUnits": _fmt_number(log.alcohol_units if log.alcohol_consumed else 0),
        "Medications": "; ".join(_med_pair(m) for m in log.medications),
        "Mood": "" if log.mood is None else log.mood,
        "Notes": log.notes or "",
    }


def _write_rows(f, logs: Sequence[DailyLog]) -> None:
    w = csv.DictWriter(f, fieldnames=CSV_FIELDS, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    w.writeheader()
    w.writerows(log_to_row(log) for log in logs)


def encode_csv(logs: Sequence[DailyLog]) -> str:
    """Header plus one row per entry, in collection order."""
    buf = io.StringIO()
    _write_rows(buf, logs)
    return buf.getvalue()


def write_csv(out_path: Path, logs: Sequence[DailyLog]) -> Path:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as f:
        _write_rows(f, logs)
    return out_path
