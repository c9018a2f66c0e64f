"""
Tests for the balance ledger walker and the confirm/correct transitions.
"""

from decimal import Decimal

import pytest

from timebank_engines.ledger import (
    BalanceLedger,
    balances_as_of,
    confirm_week,
    enable_correction,
    final_balances,
)
from timebank_kernel.domain.values import BagBalances, BagImpact
from timebank_kernel.exceptions import (
    MissingBalanceSnapshotError,
    WeekAlreadyConfirmedError,
    WeekNotConfirmedError,
)


@pytest.fixture
def weeks(week_factory):
    """W02 +2 ordinary, W03 -4 ordinary, W04 +8 ordinary but unconfirmed."""
    return [
        week_factory("2025-W02", worked=(9, 9, 8, 8, 8, 0, 0), confirmed=True),
        week_factory("2025-W03", worked=(8, 8, 8, 8, 4, 0, 0), confirmed=True),
        week_factory("2025-W04", worked=(16, 8, 8, 8, 8, 0, 0)),
    ]


class TestBalanceLedger:

    def test_opening_balances_from_earliest_period(self, employee, rules):
        ledger = BalanceLedger(employee, [], rules)

        assert ledger.opening_balances == BagBalances(ordinary=Decimal("10"))
        assert ledger.final_balances() == ledger.opening_balances
        assert ledger.entries() == ()

    def test_final_balances_fold_confirmed_weeks_only(self, employee, rules, weeks):
        ledger = BalanceLedger(employee, weeks, rules)

        assert ledger.final_balances() == BagBalances(ordinary=Decimal("8"))
        assert [e.week_id for e in ledger.entries()] == ["2025-W02", "2025-W03"]

    def test_balances_as_of_excludes_the_week_itself(self, employee, rules, weeks):
        ledger = BalanceLedger(employee, weeks, rules)

        assert ledger.balances_as_of("2025-W02").ordinary == Decimal("10")
        assert ledger.balances_as_of("2025-W03").ordinary == Decimal("12")
        assert ledger.balances_as_of("2025-W04").ordinary == Decimal("8")
        assert ledger.balances_as_of("2026-W10").ordinary == Decimal("8")

    def test_balances_before_first_week_are_opening(self, employee, rules, weeks):
        ledger = BalanceLedger(employee, weeks, rules)

        assert ledger.balances_as_of("2024-W30") == ledger.opening_balances

    def test_record_order_does_not_matter(self, employee, rules, weeks):
        forward = BalanceLedger(employee, weeks, rules)
        backward = BalanceLedger(employee, list(reversed(weeks)), rules)

        assert forward.entries() == backward.entries()

    def test_entries_chain(self, employee, rules, weeks):
        entries = BalanceLedger(employee, weeks, rules).entries()

        assert entries[0].closing == entries[1].opening
        for entry in entries:
            assert entry.closing == entry.opening.apply(entry.impact)

    def test_no_periods_starts_from_zero(self, rules, week_factory):
        from timebank_kernel.domain.employment import Employee

        employee = Employee(employee_id="E9", name="Nobody")
        ledger = BalanceLedger(employee, [week_factory(confirmed=True)], rules)

        assert ledger.final_balances() == BagBalances.zero()

    def test_module_functions_match_ledger(self, employee, rules, weeks):
        assert balances_as_of(
            employee=employee, weekly_records=weeks, rules=rules, week_id="2025-W03"
        ) == BagBalances(ordinary=Decimal("12"))
        assert final_balances(
            employee=employee, weekly_records=weeks, rules=rules
        ) == BagBalances(ordinary=Decimal("8"))


class TestConfirmWeek:

    def test_confirm_stores_snapshot_and_impact(self, week_factory):
        week = week_factory()
        starting = BagBalances(ordinary=Decimal("4"))
        impact = BagImpact(ordinary=Decimal("1"))

        confirmed = confirm_week(week, starting, impact)

        assert confirmed.confirmed
        assert confirmed.previous_balances == starting
        assert confirmed.impact == impact
        assert not week.confirmed

    def test_confirm_twice_rejected(self, week_factory):
        week = week_factory(confirmed=True)

        with pytest.raises(WeekAlreadyConfirmedError):
            confirm_week(week, BagBalances.zero(), BagImpact.zero())


class TestEnableCorrection:

    def test_restores_snapshot(self, week_factory):
        snapshot = BagBalances(ordinary=Decimal("7.25"), leave=Decimal("8"))
        week = week_factory(
            confirmed=True, previous_balances=snapshot, impact=BagImpact(ordinary=Decimal("2"))
        )

        result = enable_correction(week)

        assert result.restored_balances == snapshot
        assert not result.record.confirmed
        assert result.record.previous_balances is None
        assert result.record.impact is None
        assert result.record.days == week.days

    def test_open_week_rejected(self, week_factory):
        with pytest.raises(WeekNotConfirmedError):
            enable_correction(week_factory())

    def test_missing_snapshot_rejected(self, week_factory):
        with pytest.raises(MissingBalanceSnapshotError):
            enable_correction(week_factory(confirmed=True))

    def test_confirm_then_correct_roundtrip(self, week_factory):
        starting = BagBalances(holiday=Decimal("3"))
        confirmed = confirm_week(week_factory(), starting, BagImpact.zero())

        assert enable_correction(confirmed).restored_balances == starting
