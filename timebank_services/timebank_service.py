"""
TimebankService -- imperative shell around the time-bank engines.

Responsibility:
    Fetches employees, rule tables and weekly records through providers,
    calls the pure engines, and persists the two ledger transitions
    (confirm and correct) through the weekly record provider.

Architecture position:
    Services -- the only layer that touches providers.  Engines receive
    plain values; configuration arrives as an already-validated
    ``TimebankConfiguration``.

Invariants enforced:
    - Hour values are validated before any calculation or write.
    - One ``BalanceLedger`` is memoized per employee and discarded whenever
      that employee's weeks are written through this service.
    - Confirmation snapshots the ledger balances at the start of the week;
      correction restores that snapshot and never re-derives it.

Failure modes:
    - EmployeeNotFoundError: unknown employee id.
    - WeekNotFoundError: confirm/correct of a week never saved.
    - InvalidHoursError / InvalidWeekIdError: rejected input.
    - Ledger transition errors propagate unchanged.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from timebank_config.schema import TimebankConfiguration
from timebank_engines.absence_usage import AbsenceUsage, absence_usage_summary
from timebank_engines.annual_hours import (
    AnnualHoursResult,
    annual_computed_hours,
    theoretical_annual_hours,
)
from timebank_engines.ledger import (
    BalanceLedger,
    CorrectionResult,
    LedgerEntry,
    confirm_week,
    enable_correction,
)
from timebank_engines.reconciliation import (
    AuditUpdate,
    ReconciliationResult,
    reconcile_week,
    run_retroactive_audit,
)
from timebank_engines.schedule import prefill_week
from timebank_engines.vacation import VacationEntitlement, vacation_entitlement
from timebank_engines.weekly_balance import WeeklyImpact, compute_weekly_impact
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.policies import AuditPolicy, RotationPolicy, VacationPolicy
from timebank_kernel.domain.records import Holiday, WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.validation import validate_weekly_record
from timebank_kernel.domain.values import BagBalances
from timebank_kernel.domain.weeks import parse_week_id
from timebank_kernel.exceptions import EmployeeNotFoundError, WeekNotFoundError
from timebank_kernel.logging_config import LogContext, get_logger
from timebank_services.providers import (
    EmploymentHistoryProvider,
    ExpectedImpactProvider,
    RuleTableProvider,
    WeeklyRecordProvider,
)

logger = get_logger("services.timebank")


@dataclass(frozen=True)
class AnnualReport:
    """Bag movements of one calendar year next to its hour targets."""

    year: int
    opening_balances: BagBalances
    closing_balances: BagBalances
    entries: tuple[LedgerEntry, ...]
    computed_hours: Decimal
    theoretical: AnnualHoursResult

    @property
    def hours_difference(self) -> Decimal:
        return self.computed_hours - self.theoretical.theoretical_hours


class TimebankService:
    """
    Facade used by the UI and batch tools.

    Contract:
        All collaborators are injected.  ``config`` supplies the annual
        parameters and the vacation, audit and rotation policies; without
        it the policy defaults apply and theoretical hours are empty.
    """

    def __init__(
        self,
        rule_provider: RuleTableProvider,
        employee_provider: EmploymentHistoryProvider,
        week_provider: WeeklyRecordProvider,
        expected_provider: ExpectedImpactProvider | None = None,
        config: TimebankConfiguration | None = None,
    ):
        self._rule_provider = rule_provider
        self._employee_provider = employee_provider
        self._week_provider = week_provider
        self._expected_provider = expected_provider
        self._config = config
        self._ledgers: dict[str, BalanceLedger] = {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def vacation_policy(self) -> VacationPolicy:
        return self._config.vacation if self._config else VacationPolicy()

    @property
    def audit_policy(self) -> AuditPolicy:
        return self._config.audit if self._config else AuditPolicy()

    @property
    def rotation_policy(self) -> RotationPolicy:
        return self._config.rotation if self._config else RotationPolicy()

    def _rules(self) -> RuleTables:
        return self._rule_provider.get_rule_tables()

    def _employee(self, employee_id: str) -> Employee:
        employee = self._employee_provider.get_employee(employee_id)
        if employee is None:
            raise EmployeeNotFoundError(employee_id)
        return employee

    def _records(self, employee_id: str) -> tuple[WeeklyRecord, ...]:
        return tuple(self._week_provider.list_weekly_records(employee_id))

    def _stored_week(self, employee_id: str, week_id: str) -> WeeklyRecord:
        record = self._week_provider.get_weekly_record(employee_id, week_id)
        if record is None:
            raise WeekNotFoundError(employee_id, week_id)
        return record

    def ledger(self, employee_id: str) -> BalanceLedger:
        """Memoized replay of the employee's confirmed weeks."""
        ledger = self._ledgers.get(employee_id)
        if ledger is None:
            ledger = BalanceLedger(
                self._employee(employee_id), self._records(employee_id), self._rules()
            )
            self._ledgers[employee_id] = ledger
        return ledger

    def invalidate(self, employee_id: str | None = None) -> None:
        """Drop memoized ledgers after writes made outside this service."""
        if employee_id is None:
            self._ledgers.clear()
        else:
            self._ledgers.pop(employee_id, None)

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def balances_as_of(self, employee_id: str, week_id: str) -> BagBalances:
        parse_week_id(week_id)
        return self.ledger(employee_id).balances_as_of(week_id)

    def final_balances(self, employee_id: str) -> BagBalances:
        return self.ledger(employee_id).final_balances()

    def preview_week(self, record: WeeklyRecord) -> WeeklyImpact:
        """Impact of an unsaved week on the balances in force before it."""
        parse_week_id(record.week_id)
        validate_weekly_record(record)
        return compute_weekly_impact(
            days=record.days,
            starting_balances=self.balances_as_of(record.employee_id, record.week_id),
            rules=self._rules(),
            employee=self._employee(record.employee_id),
            weekly_hours_override=record.weekly_hours_override,
            complementary_hours=record.complementary_hours,
        )

    # ------------------------------------------------------------------
    # Week lifecycle
    # ------------------------------------------------------------------

    def save_draft(self, record: WeeklyRecord) -> WeeklyRecord:
        parse_week_id(record.week_id)
        validate_weekly_record(record)
        self._employee(record.employee_id)
        saved = self._week_provider.save_weekly_record(record)
        self.invalidate(record.employee_id)
        return saved

    def confirm_week(self, employee_id: str, week_id: str) -> WeeklyRecord:
        """
        Confirm a saved week.

        Postconditions:
            - The stored record is confirmed with the ledger balances at
              the start of the week as its snapshot.
        """
        with LogContext.bind(employee_id=employee_id, week_id=week_id):
            record = self._stored_week(employee_id, week_id)
            validate_weekly_record(record)
            starting = self.balances_as_of(employee_id, week_id)
            result = compute_weekly_impact(
                days=record.days,
                starting_balances=starting,
                rules=self._rules(),
                employee=self._employee(employee_id),
                weekly_hours_override=record.weekly_hours_override,
                complementary_hours=record.complementary_hours,
            )
            confirmed = confirm_week(record, starting, result.impact)
            self._week_provider.replace_weekly_record(confirmed)
            self.invalidate(employee_id)
            logger.info(
                "week_confirmed",
                extra={
                    "ordinary": result.impact.ordinary,
                    "holiday": result.impact.holiday,
                    "leave": result.impact.leave,
                },
            )
            return confirmed

    def enable_correction(self, employee_id: str, week_id: str) -> CorrectionResult:
        with LogContext.bind(employee_id=employee_id, week_id=week_id):
            record = self._stored_week(employee_id, week_id)
            result = enable_correction(record)
            self._week_provider.replace_weekly_record(result.record)
            self.invalidate(employee_id)
            logger.info(
                "week_correction_enabled",
                extra={"restored_balances": result.restored_balances.as_dict()},
            )
            return result

    def prefill_week(
        self,
        employee_id: str,
        week_id: str,
        holidays: Mapping[date, Holiday] | None = None,
    ) -> WeeklyRecord | None:
        """Schedule-derived draft for a week, merged over any stored draft."""
        parse_week_id(week_id)
        return prefill_week(
            self._employee(employee_id),
            week_id,
            self._rules(),
            holidays=holidays,
            rotation=self.rotation_policy,
            existing=self._week_provider.get_weekly_record(employee_id, week_id),
        )

    # ------------------------------------------------------------------
    # Yearly figures
    # ------------------------------------------------------------------

    def theoretical_annual_hours(self, employee_id: str, year: int) -> AnnualHoursResult:
        return theoretical_annual_hours(
            employee=self._employee(employee_id),
            year=year,
            annual_config=self._config.annual_config(year) if self._config else None,
            rules=self._rules(),
            weekly_records=self._records(employee_id),
        )

    def annual_computed_hours(self, employee_id: str, year: int) -> Decimal:
        return annual_computed_hours(
            employee=self._employee(employee_id),
            year=year,
            rules=self._rules(),
            weekly_records=self._records(employee_id),
        )

    def vacation_entitlement(self, employee_id: str, year: int) -> VacationEntitlement:
        return vacation_entitlement(
            employee=self._employee(employee_id),
            year=year,
            rules=self._rules(),
            weekly_records=self._records(employee_id),
            policy=self.vacation_policy,
        )

    def absence_usage(self, employee_id: str, year: int) -> tuple[AbsenceUsage, ...]:
        return absence_usage_summary(
            employee=self._employee(employee_id),
            year=year,
            rules=self._rules(),
            weekly_records=self._records(employee_id),
            policy=self.vacation_policy,
        )

    def annual_report(self, employee_id: str, year: int) -> AnnualReport:
        ledger = self.ledger(employee_id)
        first_week = f"{year}-W01"
        entries = tuple(e for e in ledger.entries() if e.week_id.startswith(f"{year}-W"))
        opening = ledger.balances_as_of(first_week)
        closing = entries[-1].closing if entries else opening
        return AnnualReport(
            year=year,
            opening_balances=opening,
            closing_balances=closing,
            entries=entries,
            computed_hours=self.annual_computed_hours(employee_id, year),
            theoretical=self.theoretical_annual_hours(employee_id, year),
        )

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def _expected_for(self, week_id: str, employee_name: str):
        if self._expected_provider is None:
            return None
        return self._expected_provider.get_expected_impact(week_id, employee_name)

    def reconcile_week(self, employee_id: str, week_id: str) -> ReconciliationResult:
        """Audit one stored week and persist the annotation when it changed."""
        employee = self._employee(employee_id)
        record = self._stored_week(employee_id, week_id)
        result = reconcile_week(
            record=record,
            expected=self._expected_for(week_id, employee.name),
            employee=employee,
            rules=self._rules(),
            policy=self.audit_policy,
        )
        if result.changed:
            self._week_provider.replace_weekly_record(result.apply_to(record))
        return result

    def run_retroactive_audit(self) -> list[AuditUpdate]:
        """Audit every employee's weeks before the cutoff and store the changes."""
        updates = run_retroactive_audit(
            self._employee_provider.list_employees(),
            self._records,
            self._expected_for,
            self._rules(),
            self.audit_policy,
        )
        for update in updates:
            record = self._stored_week(update.employee_id, update.week_id)
            self._week_provider.replace_weekly_record(
                dataclasses.replace(
                    record, comment=update.comment, is_difference=update.is_difference
                )
            )
        return updates
