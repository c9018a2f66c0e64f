"""
timebank_engines.vacation -- Vacation days available in a calendar year.

Responsibility:
    Compute the vacation entitlement for one employee-year: the base
    allowance pro-rated by contract days, reduced pro rata by contract
    suspension, plus days carried over from the previous year (or legacy
    pending days in the first computed year), and the days already taken.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Day classification: each date is vacation ('V') or suspension ('S');
      when both apply to the same date, 'S' wins.
    - Transfers are never pro-rated and count the days used at the previous
      centre as taken.
    - ``vacation_days_available`` is rounded up to a whole day once, after
      all adjustments.
    - Carry-over for year Y is the previous year's available minus taken,
      computed by the same rules; legacy pending days apply only in the
      first computed year.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, Decimal

from timebank_engines.tracer import traced_engine
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.policies import VacationPolicy
from timebank_kernel.domain.records import WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.values import ZERO, round_cents
from timebank_kernel.domain.weeks import days_in_year
from timebank_kernel.logging_config import get_logger

logger = get_logger("engines.vacation")

VACATION_MARK = "V"
SUSPENSION_MARK = "S"


@dataclass(frozen=True)
class VacationEntitlement:
    year: int
    base_days: Decimal
    contract_days: int
    prorated_days: Decimal
    suspension_days: int
    suspension_deduction: Decimal
    carry_over_days: Decimal
    legacy_days: Decimal
    vacation_days_taken: Decimal
    vacation_days_available: Decimal

    @property
    def vacation_days_remaining(self) -> Decimal:
        return self.vacation_days_available - self.vacation_days_taken


def contract_days_in_year(employee: Employee, year: int) -> int:
    """Distinct days of ``year`` covered by at least one employment period."""
    first, last = date(year, 1, 1), date(year, 12, 31)
    covered: set[date] = set()
    for period in employee.periods_overlapping(first, last):
        start = max(period.start_date, first)
        end = last if period.end_date is None else min(period.end_date, last)
        covered.update(date.fromordinal(o) for o in range(start.toordinal(), end.toordinal() + 1))
    return len(covered)


def _mark(day_map: dict[date, str], day: date, mark: str) -> None:
    if mark == SUSPENSION_MARK or day not in day_map:
        day_map[day] = mark


def vacation_day_map(
    employee: Employee,
    year: int,
    rules: RuleTables,
    weekly_records: Iterable[WeeklyRecord],
    policy: VacationPolicy,
) -> dict[date, str]:
    """Classify each vacation or suspension day of ``year``."""
    first, last = date(year, 1, 1), date(year, 12, 31)
    suspending = rules.suspending_codes()

    def classify(code: str) -> str | None:
        if code in suspending:
            return SUSPENSION_MARK
        if code == policy.vacation_code:
            return VACATION_MARK
        return None

    day_map: dict[date, str] = {}
    for period in employee.periods_overlapping(first, last):
        for absence in period.scheduled_absences:
            mark = classify(absence.absence_type_code)
            if mark is None:
                continue
            for day in absence.days_within(first, last):
                _mark(day_map, day, mark)

    for record in weekly_records:
        if not record.confirmed:
            continue
        for day, daily in record.days.items():
            if not first <= day <= last:
                continue
            mark = classify(daily.absence_code)
            if mark is not None:
                _mark(day_map, day, mark)
    return day_map


def _first_computed_year(employee: Employee, policy: VacationPolicy) -> int:
    earliest = employee.earliest_period
    if earliest is None:
        return policy.carry_over_start_year
    return max(policy.carry_over_start_year, earliest.start_date.year)


def _compute(
    employee: Employee,
    year: int,
    rules: RuleTables,
    weekly_records: tuple[WeeklyRecord, ...],
    policy: VacationPolicy,
) -> VacationEntitlement:
    first, last = date(year, 1, 1), date(year, 12, 31)
    periods = employee.periods_overlapping(first, last)
    earliest = periods[0] if periods else None
    contract_days = contract_days_in_year(employee, year)

    base = policy.base_days
    if earliest is not None and earliest.is_transfer:
        prorated = base
    else:
        prorated = base * Decimal(contract_days) / Decimal(days_in_year(year))

    day_map = vacation_day_map(employee, year, rules, weekly_records, policy)
    vacation_count = sum(1 for mark in day_map.values() if mark == VACATION_MARK)
    suspension_count = sum(1 for mark in day_map.values() if mark == SUSPENSION_MARK)

    taken = Decimal(vacation_count)
    if earliest is not None and earliest.is_transfer:
        taken += earliest.vacation_days_used_elsewhere

    deduction = (
        Decimal(suspension_count)
        / policy.suspension_block_days
        * policy.days_per_suspension_block
    )

    first_year = _first_computed_year(employee, policy)
    legacy = ZERO
    if year == first_year and earliest is not None:
        legacy = earliest.prior_year_pending_days

    carry_over = ZERO
    if year > first_year and contract_days_in_year(employee, year - 1) > 0:
        previous = _compute(employee, year - 1, rules, weekly_records, policy)
        carry_over = previous.vacation_days_remaining

    available = (prorated - deduction + carry_over + legacy).to_integral_value(
        rounding=ROUND_CEILING
    )

    return VacationEntitlement(
        year=year,
        base_days=base,
        contract_days=contract_days,
        prorated_days=round_cents(prorated),
        suspension_days=suspension_count,
        suspension_deduction=round_cents(deduction),
        carry_over_days=carry_over,
        legacy_days=legacy,
        vacation_days_taken=taken,
        vacation_days_available=available,
    )


@traced_engine("vacation", "1.0", fingerprint_fields=("year",))
def vacation_entitlement(
    *,
    employee: Employee,
    year: int,
    rules: RuleTables,
    weekly_records: Iterable[WeeklyRecord],
    policy: VacationPolicy | None = None,
) -> VacationEntitlement:
    """
    Compute the vacation entitlement of ``employee`` for ``year``.

    Preconditions:
        - ``weekly_records`` are the employee's records; only confirmed
          ones are read.

    Postconditions:
        - ``vacation_days_available`` is a whole number (may be negative
          when carried-over overuse exceeds the allowance).
    """
    policy = policy or VacationPolicy()
    result = _compute(employee, year, rules, tuple(weekly_records), policy)
    logger.info(
        "vacation_entitlement_computed",
        extra={
            "employee_id": employee.employee_id,
            "year": year,
            "available": result.vacation_days_available,
            "taken": result.vacation_days_taken,
            "suspension_days": result.suspension_days,
        },
    )
    return result
