"""
timebank_engines.annual_hours -- Theoretical and computed annual work hours.

Responsibility:
    ``theoretical_annual_hours`` computes the employee's required hours for a
    calendar year: the annual maximum scaled by contracted weekly hours,
    perturbed by every weekly-hours change, contract start/end and
    contract-suspending absence during the year.  ``annual_computed_hours``
    sums the hours actually accrued toward that target from confirmed weeks.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - The effective weekly hours of every day of the year are resolved
      once; a change event is any day whose hours differ from the previous
      day's.  Contract starts and ends are changes from and to 0.
    - base + sum(change impacts) equals the day-by-day pro-rated sum, so
      suspensions are the only other adjustment.
    - A day suspended by both a scheduled absence and a daily record counts
      once.  Suspended days outside any active period contribute nothing.
    - Only the final total is rounded to the quarter hour; detail lines are
      rounded to cents for display.

Failure modes:
    - No ``AnnualConfiguration`` for the year: zero result, warning logged.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from timebank_engines.tracer import traced_engine
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.policies import AnnualConfiguration
from timebank_kernel.domain.records import WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.values import ZERO, round_cents, round_quarter
from timebank_kernel.domain.weeks import is_sunday, iter_year, week_start
from timebank_kernel.logging_config import get_logger

logger = get_logger("engines.annual_hours")

REASON_CONTRACT_START = "contract_start"
REASON_CONTRACT_END = "contract_end"
REASON_WEEKLY_HOURS = "weekly_hours_change"


@dataclass(frozen=True)
class SuspensionDetail:
    """A run of consecutive suspended days at the same weekly hours."""

    start_date: date
    end_date: date
    days: int
    weekly_hours: Decimal
    hours_impact: Decimal


@dataclass(frozen=True)
class WorkHoursChangeDetail:
    effective_date: date
    previous_weekly_hours: Decimal
    weekly_hours: Decimal
    hours_impact: Decimal
    reason: str


@dataclass(frozen=True)
class AnnualHoursResult:
    year: int
    theoretical_hours: Decimal
    base_theoretical_hours: Decimal
    suspension_details: tuple[SuspensionDetail, ...] = ()
    work_hours_change_details: tuple[WorkHoursChangeDetail, ...] = ()

    @classmethod
    def empty(cls, year: int) -> AnnualHoursResult:
        return cls(year=year, theoretical_hours=round_quarter(ZERO), base_theoretical_hours=round_cents(ZERO))


def suspended_days(
    employee: Employee,
    year: int,
    rules: RuleTables,
    weekly_records: Iterable[WeeklyRecord] = (),
) -> set[date]:
    """
    Every day of ``year`` on which the contract was suspended.

    Sources are scheduled absences of suspending types and confirmed daily
    records carrying a suspending code.

    An open-ended scheduled absence runs to Dec 31.  The legacy system
    skipped scheduled absences without an end date, so its targets for such
    years are higher than the ones computed here.
    """
    codes = rules.suspending_codes()
    first, last = date(year, 1, 1), date(year, 12, 31)
    days: set[date] = set()
    if not codes:
        return days

    for period in employee.periods_overlapping(first, last):
        for absence in period.scheduled_absences:
            if absence.absence_type_code in codes:
                days.update(absence.days_within(first, last))

    for record in weekly_records:
        if not record.confirmed:
            continue
        for day, daily in record.days.items():
            if first <= day <= last and daily.absence_code in codes:
                days.add(day)
    return days


def _change_reason(employee: Employee, day: date, previous: Decimal, current: Decimal) -> str:
    previous_period = employee.active_period_on(day - timedelta(days=1))
    current_period = employee.active_period_on(day)
    if previous_period is None and current_period is not None:
        return REASON_CONTRACT_START
    if previous_period is not None and current_period is None:
        return REASON_CONTRACT_END
    if previous == ZERO and current > ZERO and previous_period is not current_period:
        return REASON_CONTRACT_START
    return REASON_WEEKLY_HOURS


@traced_engine("annual_hours", "1.0", fingerprint_fields=("year",))
def theoretical_annual_hours(
    *,
    employee: Employee,
    year: int,
    annual_config: AnnualConfiguration | None,
    rules: RuleTables,
    weekly_records: Iterable[WeeklyRecord] = (),
) -> AnnualHoursResult:
    """
    Compute the theoretical annual hours for ``employee`` in ``year``.

    Postconditions:
        - ``theoretical_hours`` is a multiple of 0.25.
        - A full-year contract at the reference weekly hours with no events
          yields exactly ``max_annual_hours``.
    """
    if annual_config is None:
        logger.warning(
            "annual_configuration_missing",
            extra={"employee_id": employee.employee_id, "year": year},
        )
        return AnnualHoursResult.empty(year)

    max_hours = annual_config.max_annual_hours
    reference = annual_config.reference_weekly_hours
    calendar = list(iter_year(year))
    n_days = Decimal(len(calendar))
    hours = [employee.weekly_hours_on(day) for day in calendar]

    base = max_hours * hours[0] / reference
    total = base

    changes: list[WorkHoursChangeDetail] = []
    for index in range(1, len(calendar)):
        previous, current = hours[index - 1], hours[index]
        if previous == current:
            continue
        remaining = Decimal(len(calendar) - index)
        impact = max_hours * (current - previous) / reference * remaining / n_days
        total += impact
        changes.append(
            WorkHoursChangeDetail(
                effective_date=calendar[index],
                previous_weekly_hours=previous,
                weekly_hours=current,
                hours_impact=round_cents(impact),
                reason=_change_reason(employee, calendar[index], previous, current),
            )
        )

    suspensions: list[SuspensionDetail] = []
    day_index = {day: i for i, day in enumerate(calendar)}
    run: list[date] = []

    def close_run() -> None:
        nonlocal total
        if not run:
            return
        weekly = hours[day_index[run[0]]]
        impact = -(max_hours * weekly / reference * Decimal(len(run)) / n_days)
        total += impact
        suspensions.append(
            SuspensionDetail(
                start_date=run[0],
                end_date=run[-1],
                days=len(run),
                weekly_hours=weekly,
                hours_impact=round_cents(impact),
            )
        )
        run.clear()

    for day in sorted(suspended_days(employee, year, rules, weekly_records)):
        weekly = hours[day_index[day]]
        if weekly == ZERO:
            close_run()
            continue
        if run and (
            day - run[-1] != timedelta(days=1) or hours[day_index[run[-1]]] != weekly
        ):
            close_run()
        run.append(day)
    close_run()

    result = AnnualHoursResult(
        year=year,
        theoretical_hours=round_quarter(total),
        base_theoretical_hours=round_cents(base),
        suspension_details=tuple(suspensions),
        work_hours_change_details=tuple(changes),
    )
    logger.info(
        "theoretical_annual_hours_computed",
        extra={
            "employee_id": employee.employee_id,
            "year": year,
            "theoretical_hours": result.theoretical_hours,
            "change_events": len(changes),
            "suspension_runs": len(suspensions),
        },
    )
    return result


@traced_engine("annual_computed_hours", "1.0", fingerprint_fields=("year",))
def annual_computed_hours(
    *,
    employee: Employee,
    year: int,
    rules: RuleTables,
    weekly_records: Iterable[WeeklyRecord],
) -> Decimal:
    """
    Hours accrued toward the annual target from confirmed weeks.

    Days of ``year`` that are neither holidays nor Sundays contribute their
    worked hours; absence hours contribute when the absence type computes
    to annual hours.  Each confirmed week starting in ``year`` subtracts its
    complementary hours.  Hours carried in by the period active on Jan 1
    are added.
    """
    total = ZERO
    for record in weekly_records:
        if not record.confirmed:
            continue
        for day, daily in record.days.items():
            if day.year != year:
                continue
            if not daily.is_holiday and not is_sunday(day):
                total += daily.worked_hours
            if daily.has_absence:
                absence = rules.absence_type(daily.absence_code)
                if absence is not None and absence.computes_to_annual_hours:
                    total += daily.absence_hours
        if week_start(record.week_id).year == year:
            total -= record.complementary_hours

    period = employee.active_period_on(date(year, 1, 1))
    if period is not None:
        total += period.annual_computed_hours
    return round_quarter(total)
