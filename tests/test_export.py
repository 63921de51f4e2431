"""Tests for the CSV export encoder."""

from __future__ import annotations

import csv
import io
from datetime import date

from conftest import make_log

from soberstats.export import CSV_FIELDS, encode_csv, export_filename, log_to_row, write_csv
from soberstats.models import DailyLog, TakenMedication


def _parse(text: str) -> list[dict[str, str]]:
    return list(csv.DictReader(io.StringIO(text)))


def test_header_row():
    text = encode_csv([])
    assert text.splitlines() == ["Date,Alcohol,AlcoholUnits,Medications,Mood,Notes"]
    assert CSV_FIELDS == ["Date", "Alcohol", "AlcoholUnits", "Medications", "Mood", "Notes"]


def test_note_with_comma_and_quote_is_escaped_and_roundtrips():
    note = 'Rough day, "bad".'
    text = encode_csv([make_log("2026-03-01", notes=note)])
    assert '"Rough day, ""bad""."' in text
    assert _parse(text)[0]["Notes"] == note


def test_note_with_newline_roundtrips():
    note = "line one\nline two"
    rows = _parse(encode_csv([make_log("2026-03-01", notes=note)]))
    assert rows[0]["Notes"] == note


def test_rows_follow_collection_order():
    logs = [make_log("2026-03-03"), make_log("2026-03-01"), make_log("2026-03-02")]
    assert [r["Date"] for r in _parse(encode_csv(logs))] == ["2026-03-03", "2026-03-01", "2026-03-02"]


def test_row_values():
    log = make_log("2026-03-01", alcohol=True, units=3, meds=[("diazepam", 10), ("alprazolam", 0.25)], mood=6)
    row = _parse(encode_csv([log]))[0]
    assert row == {
        "Date": "2026-03-01",
        "Alcohol": "Yes",
        "AlcoholUnits": "3",
        "Medications": "diazepam:10; alprazolam:0.25",
        "Mood": "6",
        "Notes": "",
    }


def test_sober_day_units_are_zero():
    row = log_to_row(make_log("2026-03-01"))
    assert row["Alcohol"] == "No"
    assert row["AlcoholUnits"] == "0"
    assert row["Mood"] == ""
    assert row["Medications"] == ""


def test_other_substance_keeps_custom_name():
    log = DailyLog.create(
        "2026-03-01", id="x", medications=[TakenMedication("other", 300.0, custom_name="Gabapentin")]
    )
    assert log_to_row(log)["Medications"] == "other (Gabapentin):300"


def test_export_filename():
    assert export_filename(date(2026, 3, 1)) == "soberstats-export-2026-03-01.csv"


def test_write_csv_creates_parents(tmp_path):
    out = tmp_path / "exports" / "journal.csv"
    write_csv(out, [make_log("2026-03-01", notes="ok")])
    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["Notes"] == "ok"
