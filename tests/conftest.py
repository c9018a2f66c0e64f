"""
Pytest fixtures for the time-bank test suite.

Provides:
- Rule tables, employees and weekly-record builders for the pure engines
- An in-memory SQLite engine for the persistence tests
- The default YAML configuration set
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from timebank_config import get_active_config
from timebank_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from timebank_kernel.domain.employment import Employee, EmploymentPeriod, WorkHoursChange
from timebank_kernel.domain.policies import AnnualConfiguration
from timebank_kernel.domain.records import DailyRecord, WeeklyRecord
from timebank_kernel.domain.rules import AbsenceType, AffectedBag, ContractType, RuleTables
from timebank_kernel.domain.values import BagBalances
from timebank_kernel.domain.weeks import week_dates
from timebank_kernel.logging_config import LogContext, reset_logging


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "database: mark test as using the SQLite session fixtures"
    )


@pytest.fixture(autouse=True)
def _clean_log_context():
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------

ABSENCE_TYPES = (
    AbsenceType(
        code="V",
        name="Vacation",
        computes_to_weekly_hours=True,
        computes_to_annual_hours=True,
        computes_full_day=True,
    ),
    AbsenceType(
        code="B",
        name="Sick leave",
        computes_to_weekly_hours=True,
        suspends_contract=True,
        computes_full_day=True,
    ),
    AbsenceType(code="AP", name="Personal day", annual_hour_limit=Decimal("1")),
    AbsenceType(
        code="HM",
        name="Medical appointment",
        computes_to_weekly_hours=True,
        computes_to_annual_hours=True,
        deducts_hours=True,
        is_splittable=True,
        annual_hour_limit=Decimal("16"),
    ),
    AbsenceType(
        code="DF",
        name="Holiday bag time off",
        computes_to_weekly_hours=True,
        affected_bag=AffectedBag.HOLIDAY,
        is_splittable=True,
    ),
    AbsenceType(
        code="DL",
        name="Day-off bag time off",
        computes_to_weekly_hours=True,
        affected_bag=AffectedBag.LEAVE,
        is_splittable=True,
    ),
)

CONTRACT_TYPES = (
    ContractType(name="permanent"),
    ContractType(name="weekend_only", computes_leave_bag=False),
    ContractType(
        name="hourly",
        computes_ordinary_bag=False,
        computes_holiday_bag=False,
        computes_leave_bag=False,
    ),
)


@pytest.fixture
def rules() -> RuleTables:
    return RuleTables.build(ABSENCE_TYPES, CONTRACT_TYPES)


@pytest.fixture
def annual_config_2025() -> AnnualConfiguration:
    return AnnualConfiguration(
        year=2025, max_annual_hours=Decimal("1792"), reference_weekly_hours=Decimal("40")
    )


@pytest.fixture
def default_config():
    return get_active_config()


# ---------------------------------------------------------------------------
# Employees
# ---------------------------------------------------------------------------


def make_period(
    start: date = date(2024, 1, 1),
    end: date | None = None,
    weekly_hours: str = "40",
    contract_type: str = "permanent",
    period_id: str = "P1",
    **kwargs,
) -> EmploymentPeriod:
    history = kwargs.pop(
        "work_hours_history", (WorkHoursChange(start, Decimal(weekly_hours)),)
    )
    return EmploymentPeriod(
        period_id=period_id,
        contract_type=contract_type,
        start_date=start,
        end_date=end,
        work_hours_history=history,
        **kwargs,
    )


def make_employee(*periods: EmploymentPeriod, employee_id: str = "E1", name: str = "Ana Garcia") -> Employee:
    return Employee(
        employee_id=employee_id,
        name=name,
        employment_periods=periods or (make_period(),),
    )


@pytest.fixture
def period_factory():
    return make_period


@pytest.fixture
def employee_factory():
    return make_employee


@pytest.fixture
def employee() -> Employee:
    """Permanent 40h employee since 2024-01-01, opening ordinary balance 10h."""
    return make_employee(
        make_period(initial_balances=BagBalances(ordinary=Decimal("10")))
    )


# ---------------------------------------------------------------------------
# Weekly records
# ---------------------------------------------------------------------------


def make_week(
    week_id: str = "2025-W02",
    worked: tuple = (8, 8, 8, 8, 8, 0, 0),
    employee_id: str = "E1",
    overrides: dict | None = None,
    **kwargs,
) -> WeeklyRecord:
    """
    Build a week whose theoretical hours equal the worked hours.

    ``overrides`` maps a weekday index (0 = Monday) to DailyRecord fields.
    """
    overrides = overrides or {}
    days = {}
    for index, day in enumerate(week_dates(week_id)):
        fields = {
            "theoretical_hours": Decimal(str(worked[index])),
            "worked_hours": Decimal(str(worked[index])),
        }
        fields.update(overrides.get(index, {}))
        days[day] = DailyRecord(**fields)
    return WeeklyRecord(employee_id=employee_id, week_id=week_id, days=days, **kwargs)


@pytest.fixture
def week_factory():
    return make_week


def daterange(first: date, last: date):
    day = first
    while day <= last:
        yield day
        day += timedelta(days=1)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite schema per test."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()
