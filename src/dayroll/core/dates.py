# src/dayroll/core/dates.py

"""
Canonical calendar dates.

Tasks carry a date without a time component, stored as a "YYYY-MM-DD" string.
Everything that crosses a store boundary goes through parse_day() so the stores never
see timestamps, timezone suffixes or alternative ISO spellings ("20240101", "2024-W01-1").
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date, datetime, timedelta

from .errors import ValidationError

Clock = Callable[[], date]

_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def system_today() -> date:
    """Local wall-clock date."""
    return date.today()


def parse_day(value: str | date) -> date:
    if isinstance(value, datetime):
        # datetime is a date subclass; refuse it so a time component never sneaks in.
        raise ValidationError(f"expected a calendar date, got datetime {value!r}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"date must be a YYYY-MM-DD string, got {type(value).__name__}")

    raw = value.strip()
    if not _DAY_RE.match(raw):
        raise ValidationError(f"date must match YYYY-MM-DD, got {value!r}")
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValidationError(f"invalid calendar date {value!r}") from exc


def canonical_day(value: str | date) -> str:
    """Validate and normalize to 'YYYY-MM-DD'."""
    return parse_day(value).isoformat()


def shift_day(value: str | date, days: int) -> str:
    return (parse_day(value) + timedelta(days=int(days))).isoformat()


def previous_day(value: str | date) -> str:
    return shift_day(value, -1)


def days_between(start: str | date, end: str | date) -> list[str]:
    """Canonical days in [start, end], ascending. Empty if start > end."""
    first = parse_day(start)
    last = parse_day(end)
    out: list[str] = []
    cur = first
    while cur <= last:
        out.append(cur.isoformat())
        cur += timedelta(days=1)
    return out
