"""Tests for CLI parsing helpers and end-to-end commands on a temp data file."""

from __future__ import annotations

import csv

import pytest

from soberstats.cli import _parse_amount, _parse_med, _parse_switch, main
from soberstats.repository import LogRepository
from soberstats.storage import JsonFileStore


@pytest.fixture()
def data(tmp_path):
    return tmp_path / "journal.json"


def run(data, *argv):
    main(["--data", str(data), *argv])


def repo_for(data) -> LogRepository:
    return LogRepository(JsonFileStore(data))


# ---- _parse_med ----


def test_parse_med_catalog_id():
    med = _parse_med("diazepam:10")
    assert (med.substance_id, med.amount, med.custom_name) == ("diazepam", 10, None)


def test_parse_med_case_insensitive_with_reason():
    med = _parse_med("Alprazolam:0.25:panic at work")
    assert (med.substance_id, med.amount, med.reason) == ("alprazolam", 0.25, "panic at work")


def test_parse_med_unknown_becomes_other():
    med = _parse_med("Gabapentin:300")
    assert (med.substance_id, med.custom_name) == ("other", "Gabapentin")


def test_parse_med_bad_shape_raises():
    with pytest.raises(SystemExit):
        _parse_med("diazepam")


def test_parse_med_non_numeric_raises():
    with pytest.raises(SystemExit):
        _parse_med("diazepam:lots")


# ---- _parse_amount / _parse_switch ----


def test_parse_amount_rejects_zero_and_nan():
    for bad in ("0", "-1", "nan", "inf"):
        with pytest.raises(SystemExit):
            _parse_amount(bad, "x")


def test_parse_amount_int_when_whole():
    assert _parse_amount("10.0", "x") == 10
    assert isinstance(_parse_amount("10.0", "x"), int)


def test_parse_switch():
    assert _parse_switch("on") is True
    assert _parse_switch("OFF") is False
    with pytest.raises(SystemExit):
        _parse_switch("maybe")


# ---- log / list / delete ----


def test_log_creates_entry(data, capsys):
    run(data, "log", "--date", "2026-03-01", "--med", "diazepam:10", "--mood", "6", "--notes", "ok")
    logs = repo_for(data).list()
    assert len(logs) == 1
    assert logs[0].medications[0].substance_id == "diazepam"
    assert logs[0].mood == 6
    assert "Logged" in capsys.readouterr().out


def test_log_same_date_updates_in_place(data):
    run(data, "log", "--date", "2026-03-01", "--med", "diazepam:10")
    first_id = repo_for(data).list()[0].id
    run(data, "log", "--date", "2026-03-01", "--med", "diazepam:5", "--alcohol", "2")
    logs = repo_for(data).list()
    assert len(logs) == 1
    assert logs[0].id == first_id
    assert [m.amount for m in logs[0].medications] == [10, 5]
    assert logs[0].alcohol_consumed and logs[0].alcohol_units == 2


def test_log_replace_drops_previous_fields(data):
    run(data, "log", "--date", "2026-03-01", "--med", "diazepam:10", "--mood", "3")
    run(data, "log", "--date", "2026-03-01", "--replace", "--med", "lorazepam:1")
    (log,) = repo_for(data).list()
    assert [m.substance_id for m in log.medications] == ["lorazepam"]
    assert log.mood is None


def test_log_rejects_bad_mood(data):
    with pytest.raises(SystemExit):
        run(data, "log", "--mood", "11")


def test_list_newest_first(data, capsys):
    run(data, "log", "--date", "2026-03-01")
    run(data, "log", "--date", "2026-03-03")
    capsys.readouterr()
    run(data, "list")
    out = capsys.readouterr().out
    assert out.index("2026-03-03") < out.index("2026-03-01")


def test_delete_by_date(data):
    run(data, "log", "--date", "2026-03-01")
    run(data, "log", "--date", "2026-03-02")
    run(data, "delete", "--date", "2026-03-01")
    assert [log.date for log in repo_for(data).list()] == ["2026-03-02"]


def test_reset_requires_yes(data):
    run(data, "log", "--date", "2026-03-01")
    with pytest.raises(SystemExit):
        run(data, "reset")
    run(data, "reset", "--yes")
    assert repo_for(data).list() == []


# ---- family mode ----


def test_family_mode_blocks_writes(data):
    run(data, "settings", "--family-mode", "on")
    with pytest.raises(SystemExit) as exc:
        run(data, "log", "--date", "2026-03-01")
    assert exc.value.code == 2
    assert repo_for(data).list() == []


def test_settings_merge(data, capsys):
    run(data, "settings", "--name", "Sam")
    run(data, "settings", "--theme", "ice", "--set-password", "pw")
    s = repo_for(data).get_settings()
    assert (s.name, s.theme, s.password) == ("Sam", "ice", "pw")
    run(data, "settings", "--remove-password", "--password", "pw")
    assert repo_for(data).get_settings().password is None
    assert "password: not set" in capsys.readouterr().out


def test_settings_locked_without_password(data, capsys):
    run(data, "settings", "--name", "Sam", "--set-password", "pw")
    with pytest.raises(SystemExit) as exc:
        run(data, "settings", "--name", "Alex", "--password", "wrong")
    assert exc.value.code == 2
    with pytest.raises(SystemExit):
        run(data, "settings", "--remove-password")
    s = repo_for(data).get_settings()
    assert (s.name, s.password) == ("Sam", "pw")
    assert "password protected" in capsys.readouterr().out


def test_settings_show_does_not_need_password(data, capsys):
    run(data, "settings", "--set-password", "pw")
    run(data, "settings")
    assert "password: set" in capsys.readouterr().out


# ---- summary / trends / export ----


def test_summary_without_insight(data, capsys):
    run(data, "log", "--date", "2026-03-02", "--med", "diazepam:10")
    run(data, "log", "--date", "2026-03-01", "--alcohol", "3")
    capsys.readouterr()
    run(data, "summary")
    out = capsys.readouterr().out
    assert "sober streak: 1 days" in out
    assert "Diazepam 5.0mg/day" in out


def test_trends_empty(data, capsys):
    run(data, "trends")
    assert "Not enough data" in capsys.readouterr().out


def test_export_csv(data, tmp_path):
    run(data, "log", "--date", "2026-03-01", "--notes", 'Rough day, "bad".')
    out = tmp_path / "out.csv"
    run(data, "export", "--csv", str(out))
    with out.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert rows[0]["Notes"] == 'Rough day, "bad".'


def test_seed_then_summary(data, capsys):
    run(data, "seed", "--days", "20")
    assert len(repo_for(data).list()) == 20
    capsys.readouterr()
    run(data, "summary")
    out = capsys.readouterr().out
    assert "sober streak: 11 days" in out
    assert "daily log: COMPLETE" in out
