"""
timebank_engines.weekly_balance -- Fold one week of daily records into bag impacts.

Responsibility:
    Compute how one employee-week moves the ordinary, holiday and leave bags,
    given the week's daily records, the starting balances, the rule tables
    and the employee's employment history.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Called by the ledger
    walker for every confirmed week, by audit reconciliation with zeroed
    starting balances, and by the service for previews of unsaved edits.

Invariants enforced:
    - Each delta is rounded to the quarter hour exactly once, after the
      weekly settlement, and only then added to the starting balances.
    - A contract type that does not compute a bag leaves that delta at 0.
    - Sundays never count toward the weekly computable total.
    - Determinism: identical inputs always produce identical impacts.

Failure modes:
    - No active employment period on the first day: zero impact, resulting
      balances equal starting balances (warning logged).
    - Unmapped contract type: all bags computed (warning logged).
    - Unmapped absence code: treated as carrying no rule (warning logged).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from timebank_engines.tracer import traced_engine
from timebank_kernel.domain.employment import Employee, EmploymentPeriod
from timebank_kernel.domain.records import DailyRecord, WeeklyRecord
from timebank_kernel.domain.rules import (
    DEFAULT_CONTRACT_TYPE,
    AbsenceType,
    AffectedBag,
    ContractType,
    RuleTables,
)
from timebank_kernel.domain.values import ZERO, BagBalances, BagImpact, to_hours
from timebank_kernel.domain.weeks import is_sunday
from timebank_kernel.logging_config import get_logger

logger = get_logger("engines.weekly_balance")


@dataclass(frozen=True)
class WeeklyImpact:
    """
    Result of folding one week.

    Attributes:
        impact: Rounded deltas for the three bags.
        resulting: ``starting_balances`` plus ``impact``.
        weekly_computable_hours: Hours counted toward the weekly total.
        weekly_target_hours: Nominal weekly hours the total is settled against.
        active_period_found: False when no employment period covered the week.
    """

    impact: BagImpact
    resulting: BagBalances
    weekly_computable_hours: Decimal = ZERO
    weekly_target_hours: Decimal = ZERO
    active_period_found: bool = True


def resolve_contract_type(rules: RuleTables, period: EmploymentPeriod) -> ContractType:
    """Contract rule for a period; unmapped names compute every bag."""
    contract = rules.contract_type(period.contract_type)
    if contract is None:
        logger.warning(
            "unmapped_contract_type",
            extra={"contract_type": period.contract_type, "period_id": period.period_id},
        )
        return DEFAULT_CONTRACT_TYPE
    return contract


def resolve_absence_type(rules: RuleTables, record: DailyRecord, day: date) -> AbsenceType | None:
    if not record.has_absence:
        return None
    absence = rules.absence_type(record.absence_code)
    if absence is None:
        logger.warning(
            "unmapped_absence_type",
            extra={"absence_code": record.absence_code, "day": day.isoformat()},
        )
    return absence


def _no_change(starting: BagBalances, found: bool, target: Decimal = ZERO) -> WeeklyImpact:
    return WeeklyImpact(
        impact=BagImpact.zero(),
        resulting=starting,
        weekly_target_hours=target,
        active_period_found=found,
    )


@traced_engine(
    "weekly_balance",
    "1.0",
    fingerprint_fields=("days", "weekly_hours_override", "complementary_hours"),
)
def compute_weekly_impact(
    *,
    days: Mapping[date, DailyRecord],
    starting_balances: BagBalances,
    rules: RuleTables,
    employee: Employee,
    weekly_hours_override: Decimal | None = None,
    complementary_hours: Decimal | None = None,
) -> WeeklyImpact:
    """
    Compute the bag impact of one week.

    Preconditions:
        - Hour values were validated at the input boundary.
        - ``days`` belong to a single ISO week.

    Postconditions:
        - ``result.resulting == starting_balances.apply(result.impact)``.
        - Every component of ``result.impact`` is a multiple of 0.25.
    """
    if not days:
        return _no_change(starting_balances, found=True)

    ordered = sorted(days.items())
    first_day = ordered[0][0]
    period = employee.active_period_on(first_day)
    if period is None:
        logger.warning(
            "no_active_period",
            extra={"employee_id": employee.employee_id, "day": first_day.isoformat()},
        )
        return _no_change(starting_balances, found=False)

    if weekly_hours_override is not None:
        target = to_hours(weekly_hours_override)
    else:
        target = period.weekly_hours_on(first_day)
    complementary = to_hours(complementary_hours)
    contract = resolve_contract_type(rules, period)

    weekly_total = ZERO
    deltas = {AffectedBag.ORDINARY: ZERO, AffectedBag.HOLIDAY: ZERO, AffectedBag.LEAVE: ZERO}

    for day, record in ordered:
        absence = resolve_absence_type(rules, record, day)
        sunday = is_sunday(day)
        worked = record.worked_hours > ZERO

        if record.is_opening_holiday and not sunday and worked:
            weekly_total += record.theoretical_hours
            if not record.double_pay:
                deltas[AffectedBag.HOLIDAY] += record.worked_hours
        elif not sunday:
            weekly_total += record.worked_hours
            if absence is not None and (
                absence.computes_to_weekly_hours or absence.computes_full_day
            ):
                weekly_total += record.absence_hours
        elif (
            record.is_holiday
            and not record.is_opening_holiday
            and worked
            and not record.double_pay
        ):
            deltas[AffectedBag.HOLIDAY] += record.worked_hours

        if record.is_holiday and not record.has_absence and record.leave_hours > ZERO:
            deltas[AffectedBag.LEAVE] += record.leave_hours

        if absence is not None and absence.affected_bag is not AffectedBag.NONE:
            deltas[absence.affected_bag] -= record.absence_hours

    deltas[AffectedBag.ORDINARY] += weekly_total - target - complementary

    raw = BagImpact(
        ordinary=deltas[AffectedBag.ORDINARY] if contract.computes_ordinary_bag else ZERO,
        holiday=deltas[AffectedBag.HOLIDAY] if contract.computes_holiday_bag else ZERO,
        leave=deltas[AffectedBag.LEAVE] if contract.computes_leave_bag else ZERO,
    )
    impact = raw.rounded()

    logger.debug(
        "weekly_impact_computed",
        extra={
            "employee_id": employee.employee_id,
            "week_start": first_day.isoformat(),
            "weekly_total": weekly_total,
            "target": target,
            "ordinary": impact.ordinary,
            "holiday": impact.holiday,
            "leave": impact.leave,
        },
    )

    return WeeklyImpact(
        impact=impact,
        resulting=starting_balances.apply(impact),
        weekly_computable_hours=weekly_total,
        weekly_target_hours=target,
        active_period_found=True,
    )


def preview_weekly_impact(
    record: WeeklyRecord,
    starting_balances: BagBalances,
    rules: RuleTables,
    employee: Employee,
) -> WeeklyImpact:
    """
    Preview the impact of an unsaved (possibly partial) weekly record.

    Same computation as ``compute_weekly_impact``; nothing is persisted.
    """
    return compute_weekly_impact(
        days=record.days,
        starting_balances=starting_balances,
        rules=rules,
        employee=employee,
        weekly_hours_override=record.weekly_hours_override,
        complementary_hours=record.complementary_hours,
    )
