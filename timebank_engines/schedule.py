"""
timebank_engines.schedule -- Theoretical weekly hours and week prefill.

Responsibility:
    Resolve each day's theoretical hours from the employee's rotating
    four-turn schedule, build the draft ``WeeklyRecord`` an administrator
    opens for data entry, and apply the day-entry rules that keep worked
    and absence hours consistent when an absence is selected or edited.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The turn of a week is ``(anchor_turn_index + weeks since anchor) mod 4``.
    - A confirmed week is returned untouched; a saved draft's days override
      the prefilled ones.
    - Non-working schedule days have 0 theoretical hours.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from timebank_kernel.domain.employment import Employee, EmploymentPeriod
from timebank_kernel.domain.policies import RotationPolicy
from timebank_kernel.domain.records import NO_ABSENCE, DailyRecord, Holiday, WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.values import ZERO, round_quarter, to_hours
from timebank_kernel.domain.weeks import is_sunday, week_dates
from timebank_kernel.logging_config import get_logger

logger = get_logger("engines.schedule")

_LEAVE_DAYS_PER_WEEK = Decimal("5")


@dataclass(frozen=True)
class TheoreticalWeek:
    turn_id: str | None
    hours_by_date: Mapping[date, Decimal]

    @property
    def total_hours(self) -> Decimal:
        return sum(self.hours_by_date.values(), ZERO)


def theoretical_week(
    period: EmploymentPeriod,
    week_id: str,
    rotation: RotationPolicy | None = None,
) -> TheoreticalWeek:
    """Theoretical hours of each day of ``week_id`` under ``period``'s schedule."""
    rotation = rotation or RotationPolicy()
    dates = week_dates(week_id)
    monday = dates[0]
    schedule = period.schedule_on(monday)
    if schedule is None:
        return TheoreticalWeek(turn_id=None, hours_by_date={d: ZERO for d in dates})

    turn_id = rotation.turn_for(monday)
    hours: dict[date, Decimal] = {}
    for day in dates:
        entry = schedule.day(turn_id, day.isoweekday())
        hours[day] = entry.hours if entry is not None and entry.is_work_day else ZERO
    return TheoreticalWeek(turn_id=turn_id, hours_by_date=hours)


def select_absence(day: DailyRecord, absence_code: str, rules: RuleTables) -> DailyRecord:
    """
    Set the absence code of a day and adjust its hours.

    A full-day type takes the whole theoretical day.  A splittable type starts
    at 0 absence hours.  Clearing a full-day absence restores worked hours.
    """
    absence = rules.absence_type(absence_code)
    if absence is not None:
        if absence.computes_full_day:
            return dataclasses.replace(
                day,
                absence_code=absence.code,
                absence_hours=day.theoretical_hours,
                worked_hours=ZERO,
            )
        if absence.is_splittable:
            return dataclasses.replace(day, absence_code=absence.code, absence_hours=ZERO)
        return dataclasses.replace(day, absence_code=absence.code)

    if absence_code in (NO_ABSENCE, "", None):
        previous = rules.absence_type(day.absence_code)
        worked = (
            day.theoretical_hours
            if previous is not None and previous.computes_full_day
            else day.worked_hours
        )
        return dataclasses.replace(
            day, absence_code=NO_ABSENCE, absence_hours=ZERO, worked_hours=worked
        )

    logger.warning("unmapped_absence_type", extra={"absence_code": absence_code})
    return dataclasses.replace(day, absence_code=absence_code)


def set_absence_hours(day: DailyRecord, hours: Decimal, rules: RuleTables) -> DailyRecord:
    """
    Set the absence hours of a day.

    For splittable or hour-deducting types, worked hours become the
    theoretical hours not covered by the absence.
    """
    hours = to_hours(hours)
    updated = dataclasses.replace(day, absence_hours=hours)
    absence = rules.absence_type(day.absence_code)
    if absence is not None and (absence.is_splittable or absence.deducts_hours):
        remaining = day.theoretical_hours - hours
        updated = dataclasses.replace(updated, worked_hours=max(ZERO, remaining))
    return updated


def prefill_week(
    employee: Employee,
    week_id: str,
    rules: RuleTables,
    holidays: Mapping[date, Holiday] | None = None,
    rotation: RotationPolicy | None = None,
    existing: WeeklyRecord | None = None,
) -> WeeklyRecord | None:
    """
    Build the draft record for ``week_id``.

    Returns:
        None when no employment period is active on the Monday; the
        ``existing`` record unchanged when it is confirmed; otherwise a
        draft whose days are prefilled from the schedule and overridden by
        any days already saved in ``existing``.
    """
    holidays = holidays or {}
    dates = week_dates(week_id)
    period = employee.active_period_on(dates[0])
    if period is None:
        return None
    if existing is not None and existing.confirmed:
        return existing

    week = theoretical_week(period, week_id, rotation)
    weekly_hours = period.weekly_hours_on(dates[0])
    contract = rules.contract_type(period.contract_type)
    computes_leave = contract.computes_leave_bag if contract is not None else True

    days: dict[date, DailyRecord] = {}
    for day in dates:
        theoretical = week.hours_by_date[day]
        holiday = holidays.get(day)
        record = DailyRecord(
            theoretical_hours=theoretical,
            worked_hours=theoretical,
            is_holiday=holiday is not None,
            holiday_category=holiday.category if holiday is not None else None,
        )
        if record.is_opening_holiday and not is_sunday(day):
            record = dataclasses.replace(record, worked_hours=ZERO)

        scheduled = next((a for a in period.scheduled_absences if a.covers(day)), None)
        if scheduled is not None:
            record = select_absence(record, scheduled.absence_type_code, rules)

        if (
            holiday is not None
            and not is_sunday(day)
            and theoretical == ZERO
            and computes_leave
            and not record.has_absence
        ):
            record = dataclasses.replace(
                record, leave_hours=round_quarter(weekly_hours / _LEAVE_DAYS_PER_WEEK)
            )
        days[day] = record

    if existing is not None:
        days.update(existing.days)
        return dataclasses.replace(existing, days=days)

    return WeeklyRecord(employee_id=employee.employee_id, week_id=week_id, days=days)
