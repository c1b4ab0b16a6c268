"""Small helpers shared across the timecard service."""

from __future__ import annotations

import os
import re
from datetime import date

_CLOCK_PATTERN = re.compile(r"([0-1]?[0-9]|[2][0-3]):?([0-5][0-9])(:?[0-5][0-9])?")


def date_equal(date1: date, date2: date) -> bool:
    """Return True when both values fall on the same calendar day."""
    return (date1.year, date1.month, date1.day) == (date2.year, date2.month, date2.day)


def get_env(key: str, default_val: str) -> str:
    """Return the environment variable ``key``, or ``default_val`` when unset."""
    return os.environ.get(key, default_val)


def clean_non_digits(text: str) -> str:
    """Return ``text`` with every character that is not a decimal digit removed."""
    return "".join(ch for ch in text if ch.isdecimal())


def is_clock(text: str) -> bool:
    """Return True when ``text`` looks like a time of day such as ``08:00`` or ``0800``."""
    return _CLOCK_PATTERN.fullmatch(text) is not None