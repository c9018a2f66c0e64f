"""
Input-boundary validation for attendance data.

Calculators assume well-formed hours.  Everything entered by a user or read
from an external source passes through these checks first; a failure raises
``InvalidHoursError`` and nothing is computed.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date
from decimal import Decimal

from timebank_kernel.domain.records import DailyRecord, WeeklyRecord
from timebank_kernel.exceptions import InvalidHoursError

_DAILY_FIELDS = ("theoretical_hours", "worked_hours", "absence_hours", "leave_hours")


def validate_hours(field_name: str, value: Decimal | None, day: date | None = None) -> None:
    """Reject NaN, infinite and negative hour values."""
    if value is None:
        return
    if not value.is_finite() or value < 0:
        raise InvalidHoursError(field_name, value, day.isoformat() if day else None)


def validate_daily_record(day: date, record: DailyRecord) -> None:
    for name in _DAILY_FIELDS:
        validate_hours(name, getattr(record, name), day)


def validate_days(days: Mapping[date, DailyRecord]) -> None:
    for day, record in days.items():
        validate_daily_record(day, record)


def validate_weekly_record(record: WeeklyRecord) -> None:
    """
    Validate every hour value of a weekly record.

    Raises:
        InvalidHoursError: On the first offending value.
    """
    validate_days(record.days)
    validate_hours("weekly_hours_override", record.weekly_hours_override)
    validate_hours("complementary_hours", record.complementary_hours)
