"""
timebank_services -- imperative shell over the time-bank engines.

Providers supply rule tables, employment history, weekly records and the
legacy expected impacts; ``TimebankService`` wires them to the engines.
"""

from timebank_services.expected_impacts import (
    load_expected_impacts_json,
    load_expected_impacts_xlsx,
    normalize_week_key,
)
from timebank_services.providers import (
    ConfigRuleTableProvider,
    EmploymentHistoryProvider,
    ExpectedImpactProvider,
    InMemoryEmploymentHistoryProvider,
    InMemoryExpectedImpactProvider,
    InMemoryRuleTableProvider,
    InMemoryWeeklyRecordStore,
    RuleTableProvider,
    WeeklyRecordProvider,
    normalize_employee_name,
)
from timebank_services.timebank_service import AnnualReport, TimebankService
from timebank_services.week_store import SqlWeeklyRecordStore

__all__ = [
    "AnnualReport",
    "ConfigRuleTableProvider",
    "EmploymentHistoryProvider",
    "ExpectedImpactProvider",
    "InMemoryEmploymentHistoryProvider",
    "InMemoryExpectedImpactProvider",
    "InMemoryRuleTableProvider",
    "InMemoryWeeklyRecordStore",
    "RuleTableProvider",
    "SqlWeeklyRecordStore",
    "TimebankService",
    "WeeklyRecordProvider",
    "load_expected_impacts_json",
    "load_expected_impacts_xlsx",
    "normalize_employee_name",
    "normalize_week_key",
]
