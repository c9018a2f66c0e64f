"""
timebank_engines.ledger -- Derive bag balances by replaying confirmed weeks.

Responsibility:
    Balances are never stored as a running total.  The ledger walker starts
    from the opening balances of the employee's earliest employment period
    and folds every *confirmed* week, in ascending week-id order, through
    the weekly balance calculator.  It also owns the two ledger-integrity
    transitions: confirming a week and enabling its correction.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``TimebankService``
    memoizes one ``BalanceLedger`` per employee and discards it when that
    employee's weeks change.

Invariants enforced:
    - Unconfirmed weeks are invisible to the walk.
    - Week ids sort lexically in chronological order (zero-padded ISO weeks).
    - The replay is computed once per ledger instance; point queries bisect
      into it.
    - Enabling a correction restores the persisted ``previous_balances``
      snapshot; the snapshot is never re-derived from the ledger.

Failure modes:
    - ``WeekAlreadyConfirmedError`` when confirming a confirmed week.
    - ``WeekNotConfirmedError`` when correcting an open week.
    - ``MissingBalanceSnapshotError`` when a confirmed week has no snapshot.
"""

from __future__ import annotations

import dataclasses
from bisect import bisect_left
from collections.abc import Iterable
from dataclasses import dataclass

from timebank_engines.tracer import traced_engine
from timebank_engines.weekly_balance import compute_weekly_impact
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.records import WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.values import BagBalances, BagImpact
from timebank_kernel.exceptions import (
    MissingBalanceSnapshotError,
    WeekAlreadyConfirmedError,
    WeekNotConfirmedError,
)
from timebank_kernel.logging_config import get_logger

logger = get_logger("engines.ledger")


@dataclass(frozen=True)
class LedgerEntry:
    """One confirmed week in the replay."""

    week_id: str
    opening: BagBalances
    impact: BagImpact
    closing: BagBalances


@dataclass(frozen=True)
class CorrectionResult:
    """A reopened week and the balances restored from its snapshot."""

    record: WeeklyRecord
    restored_balances: BagBalances


class BalanceLedger:
    """
    Replay of one employee's confirmed weeks.

    Contract:
        Built from an immutable snapshot of the employee, their weekly
        records and the rule tables.  Inputs never change for the lifetime
        of the instance, so the replay is memoized.

    Guarantees:
        - ``balances_as_of(w)`` folds exactly the confirmed weeks with id < w.
        - ``final_balances()`` folds every confirmed week; with none it
          equals ``opening_balances``.

    Non-goals:
        - Persisting or caching anything beyond this instance.
    """

    def __init__(
        self,
        employee: Employee,
        weekly_records: Iterable[WeeklyRecord],
        rules: RuleTables,
    ):
        self._employee = employee
        self._rules = rules
        self._records = tuple(
            sorted((r for r in weekly_records if r.confirmed), key=lambda r: r.week_id)
        )
        self._entries: tuple[LedgerEntry, ...] | None = None
        self._week_ids: list[str] = [r.week_id for r in self._records]

    @property
    def employee(self) -> Employee:
        return self._employee

    @property
    def opening_balances(self) -> BagBalances:
        earliest = self._employee.earliest_period
        return earliest.initial_balances if earliest is not None else BagBalances.zero()

    def entries(self) -> tuple[LedgerEntry, ...]:
        if self._entries is None:
            self._entries = self._replay()
        return self._entries

    def _replay(self) -> tuple[LedgerEntry, ...]:
        balances = self.opening_balances
        entries: list[LedgerEntry] = []
        for record in self._records:
            result = compute_weekly_impact(
                days=record.days,
                starting_balances=balances,
                rules=self._rules,
                employee=self._employee,
                weekly_hours_override=record.weekly_hours_override,
                complementary_hours=record.complementary_hours,
            )
            entries.append(
                LedgerEntry(
                    week_id=record.week_id,
                    opening=balances,
                    impact=result.impact,
                    closing=result.resulting,
                )
            )
            balances = result.resulting
        logger.debug(
            "ledger_replayed",
            extra={
                "employee_id": self._employee.employee_id,
                "confirmed_weeks": len(entries),
            },
        )
        return tuple(entries)

    def balances_as_of(self, week_id: str) -> BagBalances:
        """Balances in force at the start of ``week_id``."""
        entries = self.entries()
        index = bisect_left(self._week_ids, week_id)
        if index == 0:
            return self.opening_balances
        return entries[index - 1].closing

    def final_balances(self) -> BagBalances:
        entries = self.entries()
        if not entries:
            return self.opening_balances
        return entries[-1].closing


@traced_engine("ledger", "1.0", fingerprint_fields=("week_id",))
def balances_as_of(
    *,
    employee: Employee,
    weekly_records: Iterable[WeeklyRecord],
    rules: RuleTables,
    week_id: str,
) -> BagBalances:
    """One-shot ``BalanceLedger(...).balances_as_of(week_id)``."""
    return BalanceLedger(employee, weekly_records, rules).balances_as_of(week_id)


@traced_engine("ledger", "1.0")
def final_balances(
    *,
    employee: Employee,
    weekly_records: Iterable[WeeklyRecord],
    rules: RuleTables,
) -> BagBalances:
    """One-shot ``BalanceLedger(...).final_balances()``."""
    return BalanceLedger(employee, weekly_records, rules).final_balances()


def confirm_week(
    record: WeeklyRecord,
    starting_balances: BagBalances,
    impact: BagImpact,
) -> WeeklyRecord:
    """
    Produce the confirmed version of ``record``.

    Postconditions:
        - ``confirmed`` is True.
        - ``previous_balances`` holds ``starting_balances`` so the week can
          later be reverted without re-deriving anything.

    Raises:
        WeekAlreadyConfirmedError: If the record is already confirmed.
    """
    if record.confirmed:
        raise WeekAlreadyConfirmedError(record.employee_id, record.week_id)
    return dataclasses.replace(
        record,
        confirmed=True,
        previous_balances=starting_balances,
        impact=impact,
    )


def enable_correction(record: WeeklyRecord) -> CorrectionResult:
    """
    Reopen a confirmed week for editing.

    Postconditions:
        - The returned record is unconfirmed with its snapshot and impact
          cleared.
        - ``restored_balances`` is the persisted snapshot, unchanged.

    Raises:
        WeekNotConfirmedError: If the record is not confirmed.
        MissingBalanceSnapshotError: If the snapshot is absent.
    """
    if not record.confirmed:
        raise WeekNotConfirmedError(record.employee_id, record.week_id)
    if record.previous_balances is None:
        raise MissingBalanceSnapshotError(record.employee_id, record.week_id)
    reopened = dataclasses.replace(
        record,
        confirmed=False,
        previous_balances=None,
        impact=None,
    )
    return CorrectionResult(record=reopened, restored_balances=record.previous_balances)
