"""
Tests for the SQLAlchemy weekly record store (in-memory SQLite).
"""

import dataclasses
from datetime import date
from decimal import Decimal

import pytest

from timebank_kernel.domain.records import HolidayCategory
from timebank_kernel.domain.values import BagBalances, BagImpact
from timebank_kernel.exceptions import (
    InvalidWeekIdError,
    WeekAlreadyConfirmedError,
    WeekNotConfirmedError,
    WeekNotFoundError,
)
from timebank_services.providers import WeeklyRecordProvider
from timebank_services.week_store import SqlWeeklyRecordStore

pytestmark = pytest.mark.database


@pytest.fixture
def store(session_factory):
    return SqlWeeklyRecordStore(session_factory)


class TestDrafts:

    def test_is_a_weekly_record_provider(self, store):
        assert isinstance(store, WeeklyRecordProvider)

    def test_save_and_load(self, store, week_factory):
        week = week_factory(
            worked=(8, 8, 8, 8, Decimal("7.5"), 0, 4),
            overrides={
                6: {"is_holiday": True, "holiday_category": HolidayCategory.REGIONAL},
                1: {"absence_code": "HM", "absence_hours": Decimal("1.25")},
            },
            weekly_hours_override=Decimal("38.5"),
            complementary_hours=Decimal("2"),
            comment="draft",
        )

        store.save_weekly_record(week)
        loaded = store.get_weekly_record("E1", "2025-W02")

        assert loaded == week

    def test_missing_week(self, store):
        assert store.get_weekly_record("E1", "2025-W02") is None

    def test_update_existing_draft(self, store, week_factory):
        store.save_weekly_record(week_factory())
        store.save_weekly_record(week_factory(worked=(9, 9, 9, 9, 9, 0, 0)))

        loaded = store.get_weekly_record("E1", "2025-W02")
        assert loaded.days[date(2025, 1, 6)].worked_hours == Decimal("9")
        assert len(store.list_weekly_records("E1")) == 1

    def test_list_is_ordered_by_week(self, store, week_factory):
        for week_id in ("2025-W10", "2024-W52", "2025-W02"):
            store.save_weekly_record(week_factory(week_id))
        store.save_weekly_record(week_factory("2025-W02", employee_id="E2"))

        assert [r.week_id for r in store.list_weekly_records("E1")] == [
            "2024-W52",
            "2025-W02",
            "2025-W10",
        ]

    def test_confirmed_record_rejected_as_draft(self, store, week_factory):
        with pytest.raises(WeekAlreadyConfirmedError):
            store.save_weekly_record(week_factory(confirmed=True))

    def test_draft_cannot_overwrite_confirmed_week(self, store, week_factory):
        store.replace_weekly_record(week_factory(confirmed=True))

        with pytest.raises(WeekAlreadyConfirmedError):
            store.save_weekly_record(week_factory())

        assert store.get_weekly_record("E1", "2025-W02").confirmed

    def test_invalid_week_id_rejected(self, store, week_factory):
        week = dataclasses.replace(week_factory(), week_id="2025-02")

        with pytest.raises(InvalidWeekIdError):
            store.save_weekly_record(week)


class TestLedgerTransitions:

    def test_confirm_persists_snapshot_and_impact(self, store, week_factory):
        store.save_weekly_record(week_factory())
        starting = BagBalances(ordinary=Decimal("10"), leave=Decimal("8"))
        impact = BagImpact(ordinary=Decimal("1.25"))

        store.confirm("E1", "2025-W02", starting, impact)
        loaded = store.get_weekly_record("E1", "2025-W02")

        assert loaded.confirmed
        assert loaded.previous_balances == starting
        assert loaded.impact == impact

    def test_confirm_unknown_week(self, store):
        with pytest.raises(WeekNotFoundError):
            store.confirm("E1", "2025-W02", BagBalances.zero(), BagImpact.zero())

    def test_confirm_twice_leaves_first_snapshot(self, store, week_factory):
        store.save_weekly_record(week_factory())
        first = BagBalances(ordinary=Decimal("3"))
        store.confirm("E1", "2025-W02", first, BagImpact.zero())

        with pytest.raises(WeekAlreadyConfirmedError):
            store.confirm("E1", "2025-W02", BagBalances(ordinary=Decimal("99")), BagImpact.zero())

        assert store.get_weekly_record("E1", "2025-W02").previous_balances == first

    def test_enable_correction_restores_snapshot(self, store, week_factory):
        store.save_weekly_record(week_factory())
        snapshot = BagBalances(ordinary=Decimal("4.75"), holiday=Decimal("2"))
        store.confirm("E1", "2025-W02", snapshot, BagImpact(ordinary=Decimal("1")))

        result = store.enable_correction("E1", "2025-W02")
        loaded = store.get_weekly_record("E1", "2025-W02")

        assert result.restored_balances == snapshot
        assert not loaded.confirmed
        assert loaded.previous_balances is None
        assert loaded.impact is None

    def test_enable_correction_on_open_week(self, store, week_factory):
        store.save_weekly_record(week_factory())

        with pytest.raises(WeekNotConfirmedError):
            store.enable_correction("E1", "2025-W02")

    def test_enable_correction_on_unknown_week(self, store):
        with pytest.raises(WeekNotFoundError):
            store.enable_correction("E1", "2025-W02")

    def test_corrected_week_is_editable_again(self, store, week_factory):
        store.save_weekly_record(week_factory())
        store.confirm("E1", "2025-W02", BagBalances.zero(), BagImpact.zero())
        store.enable_correction("E1", "2025-W02")

        store.save_weekly_record(week_factory(worked=(10, 8, 8, 8, 8, 0, 0)))

        loaded = store.get_weekly_record("E1", "2025-W02")
        assert loaded.days[date(2025, 1, 6)].worked_hours == Decimal("10")
