"""
Records -- daily and weekly attendance records.

Responsibility:
    Immutable value records for one employee's day (``DailyRecord``) and
    week (``WeeklyRecord``), the holiday calendar entry (``Holiday``), and
    the legacy expected impact triple consumed by audit reconciliation.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - All hour fields are Decimal (coerced at construction).
    - ``WeeklyRecord.days`` is a read-only mapping keyed by ``date`` and
      iterated in ascending date order.
    - A WeeklyRecord is never mutated; confirm/correct produce new records
      via ``dataclasses.replace``.

Non-goals:
    - Range validation of hour values.  Negative or non-finite hours are
      rejected at the input boundary (``timebank_kernel.domain.validation``).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from timebank_kernel.domain.values import ZERO, BagBalances, BagImpact, to_hours

NO_ABSENCE = "none"


class HolidayCategory(str, Enum):
    NATIONAL = "national"
    REGIONAL = "regional"
    LOCAL = "local"
    OPENING = "opening"


@dataclass(frozen=True)
class Holiday:
    """One entry of the holiday calendar."""

    holiday_date: date
    name: str
    category: HolidayCategory = HolidayCategory.NATIONAL


@dataclass(frozen=True)
class DailyRecord:
    """
    One employee-day of attendance data.

    ``absence_hours + worked_hours`` need not equal ``theoretical_hours``.
    """

    theoretical_hours: Decimal = ZERO
    worked_hours: Decimal = ZERO
    absence_code: str = NO_ABSENCE
    absence_hours: Decimal = ZERO
    leave_hours: Decimal = ZERO
    double_pay: bool = False
    is_holiday: bool = False
    holiday_category: HolidayCategory | None = None

    def __post_init__(self) -> None:
        for name in ("theoretical_hours", "worked_hours", "absence_hours", "leave_hours"):
            object.__setattr__(self, name, to_hours(getattr(self, name)))
        if not self.absence_code:
            object.__setattr__(self, "absence_code", NO_ABSENCE)
        if self.holiday_category is not None and not isinstance(
            self.holiday_category, HolidayCategory
        ):
            object.__setattr__(
                self, "holiday_category", HolidayCategory(self.holiday_category)
            )

    @property
    def has_absence(self) -> bool:
        return self.absence_code != NO_ABSENCE

    @property
    def is_opening_holiday(self) -> bool:
        return self.is_holiday and self.holiday_category is HolidayCategory.OPENING


def _coerce_day_key(key: date | str) -> date:
    if isinstance(key, date):
        return key
    return date.fromisoformat(key)


@dataclass(frozen=True)
class WeeklyRecord:
    """
    One employee-week of daily records plus its ledger metadata.

    Contract:
        ``previous_balances`` is the bag snapshot in force before this week
        was applied; it is written when the week is confirmed and is the
        value restored when a correction is enabled.  ``impact`` is the
        impact recorded at confirmation.
    """

    employee_id: str
    week_id: str
    days: Mapping[date, DailyRecord] = field(default_factory=dict)
    weekly_hours_override: Decimal | None = None
    complementary_hours: Decimal = ZERO
    confirmed: bool = False
    comment: str = ""
    is_difference: bool = False
    previous_balances: BagBalances | None = None
    impact: BagImpact | None = None

    def __post_init__(self) -> None:
        ordered = {
            _coerce_day_key(key): value
            for key, value in sorted(
                self.days.items(), key=lambda item: _coerce_day_key(item[0])
            )
        }
        object.__setattr__(self, "days", MappingProxyType(ordered))
        if self.weekly_hours_override is not None:
            object.__setattr__(
                self, "weekly_hours_override", to_hours(self.weekly_hours_override)
            )
        object.__setattr__(self, "complementary_hours", to_hours(self.complementary_hours))
        if self.comment is None:
            object.__setattr__(self, "comment", "")


@dataclass(frozen=True)
class ExpectedImpact:
    """Impact triple recorded by the legacy spreadsheet system for one week."""

    ordinary: Decimal = ZERO
    holiday: Decimal = ZERO
    leave: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("ordinary", "holiday", "leave"):
            object.__setattr__(self, name, to_hours(getattr(self, name)))

    def as_impact(self) -> BagImpact:
        return BagImpact(ordinary=self.ordinary, holiday=self.holiday, leave=self.leave)
