"""
Hypothesis-based property tests for the balance engines.

Properties checked:
- Quarter-hour rounding lands on a quarter within 0.125h of the input
- Every weekly impact is a multiple of 0.25 and ``resulting`` is the sum
- The weekly calculation is deterministic and leaves its inputs untouched
- Contract gating keeps disabled bags at exactly zero
- The ledger replay equals a plain left fold of the weekly impacts
"""

from datetime import date
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from timebank_engines.ledger import BalanceLedger
from timebank_engines.weekly_balance import compute_weekly_impact, preview_weekly_impact
from timebank_kernel.domain.records import DailyRecord, WeeklyRecord
from timebank_kernel.domain.values import BagBalances, round_quarter
from timebank_kernel.domain.weeks import week_dates

QUARTER = Decimal("0.25")

fixture_settings = settings(
    max_examples=60,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)

hours = st.decimals(min_value=0, max_value=12, places=2, allow_nan=False, allow_infinity=False)


@composite
def daily_records(draw):
    code = draw(st.sampled_from(["none", "none", "V", "HM", "DF", "DL", "B", "ZZ"]))
    return DailyRecord(
        theoretical_hours=draw(hours),
        worked_hours=draw(hours),
        absence_code=code,
        absence_hours=draw(hours) if code != "none" else Decimal("0"),
        is_holiday=draw(st.booleans()),
        double_pay=draw(st.booleans()),
        leave_hours=draw(st.sampled_from([Decimal("0"), Decimal("8")])),
    )


@composite
def weekly_records(draw, week_id: str = "2025-W02", confirmed: bool = False):
    days = {day: draw(daily_records()) for day in week_dates(week_id)}
    return WeeklyRecord(
        employee_id="E1",
        week_id=week_id,
        days=days,
        complementary_hours=draw(st.sampled_from([Decimal("0"), Decimal("1.5")])),
        confirmed=confirmed,
    )


@composite
def confirmed_histories(draw):
    numbers = draw(st.lists(st.integers(min_value=2, max_value=30), max_size=8, unique=True))
    return [draw(weekly_records(f"2025-W{n:02d}", confirmed=True)) for n in sorted(numbers)]


def _is_quarter(value: Decimal) -> bool:
    return value % QUARTER == 0


@given(
    value=st.decimals(
        min_value=-1000, max_value=1000, places=4, allow_nan=False, allow_infinity=False
    )
)
def test_round_quarter_lands_on_nearest_quarter(value):
    rounded = round_quarter(value)

    assert _is_quarter(rounded)
    assert abs(rounded - value) <= Decimal("0.125")


@fixture_settings
@given(week=weekly_records())
def test_impact_is_quartered_and_additive(week, rules, employee):
    starting = BagBalances(ordinary=Decimal("10"), holiday=Decimal("1.5"))

    result = compute_weekly_impact(
        days=week.days,
        starting_balances=starting,
        rules=rules,
        employee=employee,
        complementary_hours=week.complementary_hours,
    )

    assert all(_is_quarter(v) for v in (result.impact.ordinary, result.impact.holiday, result.impact.leave))
    assert result.resulting == starting.apply(result.impact)
    assert preview_weekly_impact(week, starting, rules, employee) == result


@fixture_settings
@given(week=weekly_records())
def test_weekly_impact_is_deterministic_and_leaves_inputs_alone(week, rules, employee):
    starting = BagBalances(ordinary=Decimal("-3.25"), leave=Decimal("8"))
    days = dict(week.days)
    days_before = dict(days)

    first = compute_weekly_impact(
        days=days, starting_balances=starting, rules=rules, employee=employee
    )
    second = compute_weekly_impact(
        days=days, starting_balances=starting, rules=rules, employee=employee
    )

    assert first == second
    assert days == days_before
    assert starting == BagBalances(ordinary=Decimal("-3.25"), leave=Decimal("8"))


@fixture_settings
@given(week=weekly_records())
def test_hourly_contract_never_moves_a_bag(week, rules, employee_factory, period_factory):
    hourly = employee_factory(period_factory(contract_type="hourly"))

    result = compute_weekly_impact(
        days=week.days,
        starting_balances=BagBalances.zero(),
        rules=rules,
        employee=hourly,
    )

    assert result.impact.is_zero
    assert result.resulting == BagBalances.zero()


@fixture_settings
@given(week=weekly_records())
def test_weekend_only_contract_keeps_leave_at_zero(week, rules, employee_factory, period_factory):
    weekend = employee_factory(period_factory(contract_type="weekend_only"))

    result = compute_weekly_impact(
        days=week.days,
        starting_balances=BagBalances.zero(),
        rules=rules,
        employee=weekend,
    )

    assert result.impact.leave == Decimal("0")


@fixture_settings
@given(history=confirmed_histories())
def test_ledger_equals_left_fold(history, rules, employee):
    ledger = BalanceLedger(employee, history, rules)

    balances = ledger.opening_balances
    for record in history:
        assert ledger.balances_as_of(record.week_id) == balances
        result = compute_weekly_impact(
            days=record.days,
            starting_balances=balances,
            rules=rules,
            employee=employee,
            complementary_hours=record.complementary_hours,
        )
        balances = result.resulting

    assert ledger.final_balances() == balances
    assert ledger.balances_as_of("2026-W01") == balances


@fixture_settings
@given(history=confirmed_histories(), draft=weekly_records("2025-W40"))
def test_unconfirmed_weeks_do_not_move_the_ledger(history, draft, rules, employee):
    with_draft = BalanceLedger(employee, [*history, draft], rules)
    without = BalanceLedger(employee, history, rules)

    assert with_draft.final_balances() == without.final_balances()


def test_opening_balances_without_history(rules, employee):
    assert BalanceLedger(employee, [], rules).final_balances() == BagBalances(
        ordinary=Decimal("10")
    )
    assert employee.earliest_period.start_date == date(2024, 1, 1)
