"""
Weeks -- ISO-week identifiers.

Week ids have the form ``YYYY-Www`` (ISO year, zero-padded ISO week).  The
zero padding makes lexical order equal chronological order, which the
ledger relies on when sorting weeks.
"""

from __future__ import annotations

import re
from datetime import date, timedelta

from timebank_kernel.exceptions import InvalidWeekIdError

_WEEK_ID_RE = re.compile(r"^(\d{4})-W(\d{2})$")


def week_id_for(day: date) -> str:
    """Return the ISO week id containing ``day``."""
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def parse_week_id(week_id: str) -> tuple[int, int]:
    """
    Split a week id into (iso_year, iso_week).

    Raises:
        InvalidWeekIdError: If the id is malformed or names a week the ISO
            year does not have.
    """
    match = _WEEK_ID_RE.match(week_id or "")
    if match is None:
        raise InvalidWeekIdError(week_id)
    year, week = int(match.group(1)), int(match.group(2))
    try:
        date.fromisocalendar(year, week, 1)
    except ValueError as e:
        raise InvalidWeekIdError(week_id) from e
    return year, week


def week_start(week_id: str) -> date:
    """Monday of the given ISO week."""
    year, week = parse_week_id(week_id)
    return date.fromisocalendar(year, week, 1)


def week_dates(week_id: str) -> tuple[date, ...]:
    """The seven dates (Monday..Sunday) of the given ISO week."""
    monday = week_start(week_id)
    return tuple(monday + timedelta(days=i) for i in range(7))


def is_sunday(day: date) -> bool:
    return day.isoweekday() == 7


def days_in_year(year: int) -> int:
    return (date(year + 1, 1, 1) - date(year, 1, 1)).days


def iter_year(year: int):
    """Yield every date of the calendar year."""
    day = date(year, 1, 1)
    end = date(year, 12, 31)
    while day <= end:
        yield day
        day += timedelta(days=1)
