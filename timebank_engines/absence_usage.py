"""
timebank_engines.absence_usage -- Yearly absence totals against their allowances.

Whole-day absence types (not splittable) are counted in days, splittable
types in hours.  Each type's ``annual_hour_limit`` is the allowance; the
vacation type's allowance is the base allowance minus the suspension
deduction for the year.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from timebank_engines.tracer import traced_engine
from timebank_engines.vacation import SUSPENSION_MARK, vacation_day_map
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.policies import VacationPolicy
from timebank_kernel.domain.records import WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.values import ZERO, round_cents

UNIT_DAYS = "days"
UNIT_HOURS = "hours"


@dataclass(frozen=True)
class AbsenceUsage:
    code: str
    name: str
    unit: str
    used: Decimal
    limit: Decimal | None
    suspends_contract: bool = False

    @property
    def excess(self) -> Decimal:
        if self.limit is None or self.used <= self.limit:
            return ZERO
        return self.used - self.limit


@traced_engine("absence_usage", "1.0", fingerprint_fields=("year",))
def absence_usage_summary(
    *,
    employee: Employee,
    year: int,
    rules: RuleTables,
    weekly_records: Iterable[WeeklyRecord],
    policy: VacationPolicy | None = None,
) -> tuple[AbsenceUsage, ...]:
    """Usage per absence type with any usage in ``year``, ordered by code."""
    policy = policy or VacationPolicy()
    records = tuple(r for r in weekly_records if r.confirmed)

    used: dict[str, Decimal] = {}
    for record in records:
        for day, daily in record.days.items():
            if day.year != year or not daily.has_absence:
                continue
            absence = rules.absence_type(daily.absence_code)
            if absence is None:
                continue
            amount = daily.absence_hours if absence.is_splittable else Decimal("1")
            used[absence.code] = used.get(absence.code, ZERO) + amount

    day_map = vacation_day_map(employee, year, rules, records, policy)
    suspension_days = sum(1 for mark in day_map.values() if mark == SUSPENSION_MARK)
    vacation_limit = policy.base_days - (
        Decimal(suspension_days)
        / policy.suspension_block_days
        * policy.days_per_suspension_block
    )

    summary: list[AbsenceUsage] = []
    for code in sorted(used):
        absence = rules.absence_type(code)
        limit = absence.annual_hour_limit
        if code == policy.vacation_code:
            limit = round_cents(vacation_limit)
        summary.append(
            AbsenceUsage(
                code=code,
                name=absence.name,
                unit=UNIT_HOURS if absence.is_splittable else UNIT_DAYS,
                used=used[code],
                limit=limit,
                suspends_contract=absence.suspends_contract,
            )
        )
    return tuple(summary)
