"""Scheduling helper utilities."""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import List

MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

# Placeholder offer: fixed days of every month, plus tomorrow.
OFFERED_DAYS = frozenset({10, 15, 20, 24, 28})


def _today() -> date:
    return date.today()


def parse_month(name: str) -> int:
    """Return the 1-based month number for an English month name."""
    try:
        return MONTH_NAMES.index(name.strip().lower()) + 1
    except ValueError:
        raise ValueError(f"Invalid month name: {name!r}") from None


def available_dates(year: int, month: int, *, today: date | None = None) -> List[date]:
    """Return the offered dates of a month that are not in the past."""
    if not 1 <= month <= 12:
        raise ValueError("month must be in 1..12")
    if not date.min.year <= year <= date.max.year:
        raise ValueError(f"year out of range: {year}")

    today = today or _today()
    tomorrow = today + timedelta(days=1)
    _, days_in_month = calendar.monthrange(year, month)

    offered = []
    for day in range(1, days_in_month + 1):
        candidate = date(year, month, day)
        if candidate < today:
            continue
        if day in OFFERED_DAYS or candidate == tomorrow:
            offered.append(candidate)
    return offered
