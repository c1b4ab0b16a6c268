import os
import uuid
from datetime import datetime, timedelta

import pytest

from timecard.utils import clean_non_digits, date_equal, get_env, is_clock


def test_date_equal_same_day_and_next_day():
    today = datetime(2021, 10, 5, 12, 0, 0)
    assert date_equal(today, today + timedelta(seconds=1)) is True
    assert date_equal(today, today + timedelta(days=1)) is False


def test_date_equal_ignores_time_of_day():
    morning = datetime(2021, 10, 5, 0, 0, 1)
    night = datetime(2021, 10, 5, 23, 59, 59)
    assert date_equal(morning, night) is True


def test_get_env_default_then_value(monkeypatch):
    key = f"TIMECARD_TEST_{uuid.uuid4().hex}"
    default_val = "lorem"
    monkeypatch.delenv(key, raising=False)

    assert get_env(key, default_val) == default_val

    other_val = "ipsum"
    monkeypatch.setenv(key, other_val)
    assert get_env(key, default_val) == other_val
    assert os.environ[key] == other_val


def test_get_env_empty_value_is_returned(monkeypatch):
    key = f"TIMECARD_TEST_{uuid.uuid4().hex}"
    monkeypatch.setenv(key, "")
    assert get_env(key, "fallback") == ""


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("08:00", "0800"),
        ("a1b2c3", "123"),
        ("no digits", ""),
        ("", ""),
    ],
)
def test_clean_non_digits(raw, expected):
    assert clean_non_digits(raw) == expected


def test_clean_non_digits_result_is_all_digits():
    cleaned = clean_non_digits("12:34:56 - x")
    assert cleaned.isdecimal()
    assert cleaned == "123456"


@pytest.mark.parametrize(
    "text",
    ["08:00", "0800", "8:00", "23:59", "00:00", "12:30:45", "123045", "9:05:07"],
)
def test_is_clock_accepts(text):
    assert is_clock(text) is True


@pytest.mark.parametrize(
    "text",
    ["24:00", "12:60", "", "ab:cd", "12:30:60", "08:00\n", "1"],
)
def test_is_clock_rejects(text):
    assert is_clock(text) is False