"""
Employment -- employees, employment periods and their histories.

Responsibility:
    Immutable records of an employee's contracts over time: each
    ``EmploymentPeriod`` carries its contract type, opening bag balances,
    weekly-hours history, rotating schedule history, scheduled absences and
    the vacation bookkeeping fields entered at hire time.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.

Invariants enforced:
    - Histories are sorted by effective date at construction, so
      ``effective_as_of`` lookups are valid without caller care.
    - ``end_date`` is the inclusive last day of the period; None means the
      period is open-ended.
    - Periods of an employee are sorted by start date.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from types import MappingProxyType

from timebank_kernel.domain.history import effective_as_of
from timebank_kernel.domain.values import ZERO, BagBalances, to_hours

TURN_IDS = ("turn1", "turn2", "turn3", "turn4")


@dataclass(frozen=True)
class WorkHoursChange:
    """Weekly contracted hours effective from a date."""

    effective_date: date
    weekly_hours: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "weekly_hours", to_hours(self.weekly_hours))


@dataclass(frozen=True)
class DaySchedule:
    hours: Decimal = ZERO
    is_work_day: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "hours", to_hours(self.hours))


@dataclass(frozen=True)
class WeeklySchedule:
    """
    Four rotating weekly turns effective from a date.

    ``turns`` maps a turn id (``turn1``..``turn4``) to a mapping of ISO
    weekday (1 = Monday .. 7 = Sunday) to ``DaySchedule``.
    """

    effective_date: date
    turns: Mapping[str, Mapping[int, DaySchedule]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "turns",
            MappingProxyType(
                {turn: MappingProxyType(dict(days)) for turn, days in self.turns.items()}
            ),
        )

    def day(self, turn_id: str, iso_weekday: int) -> DaySchedule | None:
        days = self.turns.get(turn_id)
        if days is None:
            return None
        return days.get(iso_weekday)


@dataclass(frozen=True)
class ScheduledAbsence:
    """A planned absence over a date range (``end_date`` None = open-ended)."""

    absence_type_code: str
    start_date: date
    end_date: date | None = None

    def covers(self, day: date) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    def days_within(self, first: date, last: date):
        """Yield the covered days clamped to [first, last]."""
        start = max(self.start_date, first)
        end = last if self.end_date is None else min(self.end_date, last)
        day = start
        while day <= end:
            yield day
            day += timedelta(days=1)


@dataclass(frozen=True)
class EmploymentPeriod:
    """
    One contract of an employee.

    Contract:
        Active on D when ``start_date <= D`` and (open-ended or
        ``D <= end_date``).

    Guarantees:
        - ``work_hours_history``, ``schedule_history`` and
          ``scheduled_absences`` are tuples sorted by date.
    """

    period_id: str
    contract_type: str
    start_date: date
    end_date: date | None = None
    initial_balances: BagBalances = field(default_factory=BagBalances.zero)
    work_hours_history: tuple[WorkHoursChange, ...] = ()
    schedule_history: tuple[WeeklySchedule, ...] = ()
    scheduled_absences: tuple[ScheduledAbsence, ...] = ()
    is_transfer: bool = False
    vacation_days_used_elsewhere: Decimal = ZERO
    prior_year_pending_days: Decimal = ZERO
    annual_computed_hours: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "work_hours_history",
            tuple(sorted(self.work_hours_history, key=lambda c: c.effective_date)),
        )
        object.__setattr__(
            self,
            "schedule_history",
            tuple(sorted(self.schedule_history, key=lambda s: s.effective_date)),
        )
        object.__setattr__(
            self,
            "scheduled_absences",
            tuple(sorted(self.scheduled_absences, key=lambda a: a.start_date)),
        )
        for name in (
            "vacation_days_used_elsewhere",
            "prior_year_pending_days",
            "annual_computed_hours",
        ):
            object.__setattr__(self, name, to_hours(getattr(self, name)))

    def is_active_on(self, day: date) -> bool:
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    def weekly_hours_on(self, day: date) -> Decimal:
        """Weekly contracted hours effective on ``day`` (0 if none yet)."""
        change = effective_as_of(self.work_hours_history, day)
        return change.weekly_hours if change is not None else ZERO

    def schedule_on(self, day: date) -> WeeklySchedule | None:
        return effective_as_of(self.schedule_history, day)

    def overlaps(self, first: date, last: date) -> bool:
        if self.start_date > last:
            return False
        return self.end_date is None or self.end_date >= first


@dataclass(frozen=True)
class Employee:
    """An employee and the chronologically ordered periods they worked."""

    employee_id: str
    name: str
    employment_periods: tuple[EmploymentPeriod, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "employment_periods",
            tuple(sorted(self.employment_periods, key=lambda p: p.start_date)),
        )

    @property
    def earliest_period(self) -> EmploymentPeriod | None:
        return self.employment_periods[0] if self.employment_periods else None

    def active_period_on(self, day: date) -> EmploymentPeriod | None:
        """The period active on ``day``; the latest-starting one wins on overlap."""
        candidates = [p for p in self.employment_periods if p.is_active_on(day)]
        return candidates[-1] if candidates else None

    def weekly_hours_on(self, day: date) -> Decimal:
        """Contracted weekly hours on ``day``; 0 when no period is active."""
        period = self.active_period_on(day)
        return period.weekly_hours_on(day) if period is not None else ZERO

    def periods_overlapping(self, first: date, last: date) -> tuple[EmploymentPeriod, ...]:
        return tuple(p for p in self.employment_periods if p.overlaps(first, last))
