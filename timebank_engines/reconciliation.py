"""
timebank_engines.reconciliation -- Retroactive audit against the legacy system.

Responsibility:
    For weeks imported from the legacy spreadsheet system, recompute each
    week's impact and compare it with the impact the legacy system
    recorded.  Discrepancies are written into the week's comment as a single
    diagnostic line and flagged with ``is_difference``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The service persists the
    resulting ``AuditUpdate``s.

Invariants enforced:
    - The recomputation uses zeroed starting balances; only the impact
      matters.
    - A missing expected triple counts as zeros.
    - A bag is a finding when |computed - expected| > tolerance (0.01).
    - Previous diagnostic lines (current and legacy prefixes) are stripped
      before the new one is appended, so repeated runs are idempotent.
    - Weeks starting on or after the audit cutoff are never touched.

Failure modes:
    - None raised.  Weeks that cannot be audited (after cutoff, not
      confirmed, no active period) come back with ``skipped=True``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal

from timebank_engines.tracer import traced_engine
from timebank_engines.weekly_balance import compute_weekly_impact
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.policies import AuditPolicy
from timebank_kernel.domain.records import ExpectedImpact, WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.values import BagBalances, BagImpact
from timebank_kernel.domain.weeks import week_start
from timebank_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation")

_BAG_LABELS = (
    ("ordinary", "Ordinary"),
    ("holiday", "Holiday"),
    ("leave", "Leave"),
)


@dataclass(frozen=True)
class ReconciliationFinding:
    bag: str
    computed: Decimal
    expected: Decimal

    @property
    def difference(self) -> Decimal:
        return self.computed - self.expected


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Outcome of auditing one week.

    ``comment`` and ``has_difference`` are the values the record should
    carry after the audit; ``changed`` tells whether they differ from what
    it carries now.
    """

    employee_id: str
    week_id: str
    has_difference: bool
    comment: str
    findings: tuple[ReconciliationFinding, ...] = ()
    skipped: bool = False
    changed: bool = False

    def apply_to(self, record: WeeklyRecord) -> WeeklyRecord:
        if self.skipped or not self.changed:
            return record
        return dataclasses.replace(
            record, comment=self.comment, is_difference=self.has_difference
        )


@dataclass(frozen=True)
class AuditUpdate:
    employee_id: str
    week_id: str
    comment: str
    is_difference: bool


def strip_audit_lines(comment: str, policy: AuditPolicy) -> str:
    """Remove every diagnostic line written by previous audit runs."""
    prefixes = (policy.comment_prefix, *policy.legacy_prefixes)
    kept = [
        line for line in (comment or "").split("\n")
        if not line.strip().startswith(prefixes)
    ]
    return "\n".join(kept).strip()


def format_findings(findings: Iterable[ReconciliationFinding], policy: AuditPolicy) -> str:
    labels = dict(_BAG_LABELS)
    parts = [f"{labels[f.bag]} (diff: {f.difference:.2f}h)" for f in findings]
    return f"{policy.comment_prefix} {', '.join(parts)}."


def _skip(record: WeeklyRecord, reason: str) -> ReconciliationResult:
    logger.debug(
        "audit_week_skipped",
        extra={"employee_id": record.employee_id, "week_id": record.week_id, "reason": reason},
    )
    return ReconciliationResult(
        employee_id=record.employee_id,
        week_id=record.week_id,
        has_difference=record.is_difference,
        comment=record.comment,
        skipped=True,
    )


@traced_engine("reconciliation", "1.0", fingerprint_fields=("expected",))
def reconcile_week(
    *,
    record: WeeklyRecord,
    expected: ExpectedImpact | None,
    employee: Employee,
    rules: RuleTables,
    policy: AuditPolicy | None = None,
) -> ReconciliationResult:
    """
    Audit one week against its legacy expected impact.

    Postconditions:
        - Running the audit again on the returned comment/flag yields
          ``changed=False``.
    """
    policy = policy or AuditPolicy()

    if week_start(record.week_id) >= policy.cutoff_date:
        return _skip(record, "after_cutoff")
    if not record.confirmed:
        return _skip(record, "not_confirmed")

    result = compute_weekly_impact(
        days=record.days,
        starting_balances=BagBalances.zero(),
        rules=rules,
        employee=employee,
        weekly_hours_override=record.weekly_hours_override,
        complementary_hours=record.complementary_hours,
    )
    if not result.active_period_found:
        return _skip(record, "no_active_period")

    computed: BagImpact = result.impact
    reference = (expected or ExpectedImpact()).as_impact()

    findings = tuple(
        ReconciliationFinding(
            bag=bag,
            computed=getattr(computed, bag),
            expected=getattr(reference, bag),
        )
        for bag, _ in _BAG_LABELS
        if abs(getattr(computed, bag) - getattr(reference, bag)) > policy.tolerance
    )

    cleaned = strip_audit_lines(record.comment, policy)
    if findings:
        message = format_findings(findings, policy)
        comment = f"{cleaned}\n{message}" if cleaned else message
    else:
        comment = cleaned
    has_difference = bool(findings)
    changed = comment != record.comment or has_difference != record.is_difference

    if findings:
        logger.info(
            "audit_difference_found",
            extra={
                "employee_id": record.employee_id,
                "week_id": record.week_id,
                "bags": [f.bag for f in findings],
            },
        )

    return ReconciliationResult(
        employee_id=record.employee_id,
        week_id=record.week_id,
        has_difference=has_difference,
        comment=comment,
        findings=findings,
        changed=changed,
    )


def run_retroactive_audit(
    employees: Iterable[Employee],
    records_for: Callable[[str], Iterable[WeeklyRecord]],
    expected_for: Callable[[str, str], ExpectedImpact | None],
    rules: RuleTables,
    policy: AuditPolicy | None = None,
) -> list[AuditUpdate]:
    """
    Audit every week of every employee and return only the real changes.

    Args:
        employees: Employees to audit.
        records_for: employee_id -> that employee's weekly records.
        expected_for: (week_id, employee display name) -> expected impact.
        rules: Rule tables in force.
        policy: Audit parameters.
    """
    policy = policy or AuditPolicy()
    updates: list[AuditUpdate] = []
    audited = 0
    for employee in employees:
        for record in records_for(employee.employee_id):
            result = reconcile_week(
                record=record,
                expected=expected_for(record.week_id, employee.name),
                employee=employee,
                rules=rules,
                policy=policy,
            )
            if result.skipped:
                continue
            audited += 1
            if result.changed:
                updates.append(
                    AuditUpdate(
                        employee_id=record.employee_id,
                        week_id=record.week_id,
                        comment=result.comment,
                        is_difference=result.has_difference,
                    )
                )
    logger.info(
        "retroactive_audit_completed",
        extra={"weeks_audited": audited, "updates": len(updates)},
    )
    return updates
