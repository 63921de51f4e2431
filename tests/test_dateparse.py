"""Tests for dateparse.parse_day."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from soberstats.dateparse import parse_day


def _today() -> date:
    return date.today()


# ---- None / blank / keywords ----


def test_none_is_today():
    assert parse_day(None) == _today().isoformat()


def test_blank_is_today():
    assert parse_day("   ") == _today().isoformat()


def test_today_keyword():
    assert parse_day("Today") == _today().isoformat()


def test_yesterday():
    assert parse_day("yesterday") == (_today() - timedelta(days=1)).isoformat()


def test_tomorrow():
    assert parse_day("tomorrow") == (_today() + timedelta(days=1)).isoformat()


# ---- ISO ----


def test_iso_date():
    assert parse_day("2026-02-25") == "2026-02-25"


def test_iso_datetime_naive_uses_date_part():
    assert parse_day("2026-02-25T07:34:00") == "2026-02-25"


def test_slash_layouts():
    assert parse_day("2026/02/25") == "2026-02-25"
    assert parse_day("02/25/2026") == "2026-02-25"


# ---- relative ----


def test_days_ago():
    assert parse_day("3 days ago") == (_today() - timedelta(days=3)).isoformat()


def test_one_day_ago():
    assert parse_day("1 day ago") == (_today() - timedelta(days=1)).isoformat()


def test_weeks_ago():
    assert parse_day("2 weeks ago") == (_today() - timedelta(days=14)).isoformat()


# ---- errors ----


def test_garbage_raises():
    with pytest.raises(ValueError):
        parse_day("next blue moon")


def test_invalid_calendar_date_raises():
    with pytest.raises(ValueError):
        parse_day("2026-02-30")
