"""
Tests for the annual entitlement calculator.

Covers:
- Full-year baseline
- Contract start, contract end and weekly-hours changes (pro rata)
- Contract suspensions from scheduled absences and confirmed weeks
- Annual computed hours from confirmed weeks
"""

from datetime import date
from decimal import Decimal

import pytest

from timebank_engines.annual_hours import (
    annual_computed_hours,
    suspended_days,
    theoretical_annual_hours,
)
from timebank_kernel.domain.employment import ScheduledAbsence, WorkHoursChange


def _theoretical(employee, rules, config, records=()):
    return theoretical_annual_hours(
        employee=employee,
        year=2025,
        annual_config=config,
        rules=rules,
        weekly_records=records,
    )


class TestTheoreticalAnnualHours:

    def test_full_year_at_reference_hours(self, employee, rules, annual_config_2025):
        result = _theoretical(employee, rules, annual_config_2025)

        assert result.theoretical_hours == Decimal("1792.00")
        assert result.base_theoretical_hours == Decimal("1792.00")
        assert result.suspension_details == ()
        assert result.work_hours_change_details == ()

    def test_part_time_full_year(self, employee_factory, period_factory, rules, annual_config_2025):
        employee = employee_factory(period_factory(weekly_hours="20"))

        result = _theoretical(employee, rules, annual_config_2025)

        assert result.theoretical_hours == Decimal("896.00")

    def test_missing_configuration_is_empty(self, employee, rules):
        result = _theoretical(employee, rules, None)

        assert result.year == 2025
        assert result.theoretical_hours == Decimal("0")

    def test_contract_start_mid_year(self, employee_factory, period_factory, rules, annual_config_2025):
        employee = employee_factory(period_factory(start=date(2025, 7, 1)))

        result = _theoretical(employee, rules, annual_config_2025)

        assert result.base_theoretical_hours == Decimal("0.00")
        assert result.theoretical_hours == Decimal("903.25")
        (change,) = result.work_hours_change_details
        assert change.effective_date == date(2025, 7, 1)
        assert change.reason == "contract_start"
        assert change.hours_impact == Decimal("903.36")

    def test_contract_end_mid_year(self, employee_factory, period_factory, rules, annual_config_2025):
        employee = employee_factory(period_factory(end=date(2025, 6, 30)))

        result = _theoretical(employee, rules, annual_config_2025)

        assert result.theoretical_hours == Decimal("888.75")
        (change,) = result.work_hours_change_details
        assert change.reason == "contract_end"
        assert change.previous_weekly_hours == Decimal("40")
        assert change.weekly_hours == Decimal("0")

    def test_weekly_hours_change(self, employee_factory, period_factory, rules, annual_config_2025):
        employee = employee_factory(
            period_factory(
                work_hours_history=(
                    WorkHoursChange(date(2024, 1, 1), Decimal("40")),
                    WorkHoursChange(date(2025, 7, 1), Decimal("20")),
                )
            )
        )

        result = _theoretical(employee, rules, annual_config_2025)

        assert result.theoretical_hours == Decimal("1340.25")
        (change,) = result.work_hours_change_details
        assert change.reason == "weekly_hours_change"
        assert change.hours_impact == Decimal("-451.68")

    def test_scheduled_suspension(self, employee_factory, period_factory, rules, annual_config_2025):
        employee = employee_factory(
            period_factory(
                scheduled_absences=(
                    ScheduledAbsence("B", date(2025, 3, 1), date(2025, 3, 10)),
                )
            )
        )

        result = _theoretical(employee, rules, annual_config_2025)

        assert result.theoretical_hours == Decimal("1743.00")
        (suspension,) = result.suspension_details
        assert suspension.start_date == date(2025, 3, 1)
        assert suspension.end_date == date(2025, 3, 10)
        assert suspension.days == 10
        assert suspension.hours_impact == Decimal("-49.10")

    def test_non_suspending_absence_is_ignored(
        self, employee_factory, period_factory, rules, annual_config_2025
    ):
        employee = employee_factory(
            period_factory(
                scheduled_absences=(ScheduledAbsence("V", date(2025, 8, 1), date(2025, 8, 15)),)
            )
        )

        result = _theoretical(employee, rules, annual_config_2025)

        assert result.theoretical_hours == Decimal("1792.00")

    def test_confirmed_week_suspension_counted_once(
        self, employee_factory, period_factory, rules, annual_config_2025, week_factory
    ):
        sick = {"absence_code": "B", "absence_hours": Decimal("8"), "worked_hours": Decimal("0")}
        employee = employee_factory(
            period_factory(
                scheduled_absences=(ScheduledAbsence("B", date(2025, 1, 6), date(2025, 1, 10)),)
            )
        )
        week = week_factory(
            "2025-W02", overrides={i: sick for i in range(5)}, confirmed=True
        )

        result = _theoretical(employee, rules, annual_config_2025, [week])

        assert result.theoretical_hours == Decimal("1767.50")
        assert result.suspension_details[0].days == 5

    def test_unconfirmed_week_suspension_ignored(
        self, employee, rules, annual_config_2025, week_factory
    ):
        sick = {"absence_code": "B", "absence_hours": Decimal("8"), "worked_hours": Decimal("0")}
        week = week_factory("2025-W02", overrides={i: sick for i in range(5)})

        result = _theoretical(employee, rules, annual_config_2025, [week])

        assert result.theoretical_hours == Decimal("1792.00")

    def test_open_ended_suspension_runs_to_year_end(self, employee_factory, period_factory, rules):
        employee = employee_factory(
            period_factory(scheduled_absences=(ScheduledAbsence("B", date(2025, 12, 1)),))
        )

        days = suspended_days(employee, 2025, rules)

        assert len(days) == 31
        assert max(days) == date(2025, 12, 31)
        assert len(suspended_days(employee, 2026, rules)) == 365


class TestAnnualComputedHours:

    def test_confirmed_weeks_accumulate(self, employee, rules, week_factory):
        records = [
            week_factory(
                "2025-W02", worked=(9, 9, 8, 8, 8, 0, 3),
                complementary_hours=Decimal("2"), confirmed=True,
            ),
            week_factory(
                "2025-W03", worked=(8, 0, 8, 8, 8, 0, 0),
                overrides={1: {"absence_code": "V", "absence_hours": Decimal("8")}},
                confirmed=True,
            ),
            week_factory(
                "2025-W04", overrides={0: {"is_holiday": True}}, confirmed=True,
            ),
            week_factory("2025-W05"),
        ]

        total = annual_computed_hours(
            employee=employee, year=2025, rules=rules, weekly_records=records
        )

        assert total == Decimal("112")

    def test_absence_not_counting_annual_hours(self, employee, rules, week_factory):
        week = week_factory(
            "2025-W03", worked=(8, 0, 8, 8, 8, 0, 0),
            overrides={1: {"absence_code": "AP", "absence_hours": Decimal("8")}},
            confirmed=True,
        )

        total = annual_computed_hours(
            employee=employee, year=2025, rules=rules, weekly_records=[week]
        )

        assert total == Decimal("32")

    def test_week_straddling_year_boundary(self, employee, rules, week_factory):
        week = week_factory("2025-W01", complementary_hours=Decimal("1"), confirmed=True)

        assert annual_computed_hours(
            employee=employee, year=2025, rules=rules, weekly_records=[week]
        ) == Decimal("24")
        assert annual_computed_hours(
            employee=employee, year=2024, rules=rules, weekly_records=[week]
        ) == Decimal("15")

    @pytest.mark.parametrize("carried", ["0", "120.5"])
    def test_carried_hours_added(self, employee_factory, period_factory, rules, carried):
        employee = employee_factory(period_factory(annual_computed_hours=Decimal(carried)))

        total = annual_computed_hours(
            employee=employee, year=2025, rules=rules, weekly_records=[]
        )

        assert total == Decimal(carried)
