"""
Provider protocols and in-memory implementations.

Contract:
    Providers are the only way the service reaches rule tables, employment
    history, weekly records and the legacy expected-impact dataset.  The
    engines never see a provider; they receive the plain values these
    return.

Architecture: timebank_services.  The in-memory implementations back the
test suite and single-process tools; ``week_store.SqlWeeklyRecordStore``
is the persistent weekly record provider.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol, runtime_checkable

from timebank_config.schema import TimebankConfiguration
from timebank_kernel.domain.employment import Employee
from timebank_kernel.domain.records import ExpectedImpact, WeeklyRecord
from timebank_kernel.domain.rules import RuleTables
from timebank_kernel.domain.weeks import parse_week_id
from timebank_kernel.exceptions import WeekAlreadyConfirmedError


@runtime_checkable
class RuleTableProvider(Protocol):
    def get_rule_tables(self) -> RuleTables:
        ...


@runtime_checkable
class EmploymentHistoryProvider(Protocol):
    def get_employee(self, employee_id: str) -> Employee | None:
        ...

    def list_employees(self) -> Sequence[Employee]:
        ...


@runtime_checkable
class WeeklyRecordProvider(Protocol):
    def list_weekly_records(self, employee_id: str) -> Sequence[WeeklyRecord]:
        ...

    def get_weekly_record(self, employee_id: str, week_id: str) -> WeeklyRecord | None:
        ...

    def save_weekly_record(self, record: WeeklyRecord) -> WeeklyRecord:
        """Persist a draft (unconfirmed) record."""
        ...

    def replace_weekly_record(self, record: WeeklyRecord) -> WeeklyRecord:
        """Persist a record as given, confirmed or not, in one atomic write."""
        ...


@runtime_checkable
class ExpectedImpactProvider(Protocol):
    def get_expected_impact(self, week_id: str, employee_name: str) -> ExpectedImpact | None:
        ...


def normalize_employee_name(name: str) -> str:
    """Case- and surrounding-whitespace-insensitive key for employee names."""
    return " ".join((name or "").split()).lower()


class ConfigRuleTableProvider:
    """Rule tables taken from an assembled configuration."""

    def __init__(self, config: TimebankConfiguration):
        self._rules = config.rule_tables()

    def get_rule_tables(self) -> RuleTables:
        return self._rules


class InMemoryRuleTableProvider:
    def __init__(self, rules: RuleTables):
        self._rules = rules

    def get_rule_tables(self) -> RuleTables:
        return self._rules


class InMemoryEmploymentHistoryProvider:
    def __init__(self, employees: Iterable[Employee] = ()):
        self._employees = {e.employee_id: e for e in employees}

    def add(self, employee: Employee) -> None:
        self._employees[employee.employee_id] = employee

    def get_employee(self, employee_id: str) -> Employee | None:
        return self._employees.get(employee_id)

    def list_employees(self) -> Sequence[Employee]:
        return tuple(self._employees.values())


class InMemoryWeeklyRecordStore:
    """Dictionary-backed weekly records keyed by (employee_id, week_id)."""

    def __init__(self, records: Iterable[WeeklyRecord] = ()):
        self._records: dict[tuple[str, str], WeeklyRecord] = {}
        for record in records:
            self.replace_weekly_record(record)

    def list_weekly_records(self, employee_id: str) -> Sequence[WeeklyRecord]:
        return tuple(
            record
            for (emp, _), record in sorted(self._records.items())
            if emp == employee_id
        )

    def get_weekly_record(self, employee_id: str, week_id: str) -> WeeklyRecord | None:
        return self._records.get((employee_id, week_id))

    def save_weekly_record(self, record: WeeklyRecord) -> WeeklyRecord:
        current = self.get_weekly_record(record.employee_id, record.week_id)
        if record.confirmed or (current is not None and current.confirmed):
            raise WeekAlreadyConfirmedError(record.employee_id, record.week_id)
        return self.replace_weekly_record(record)

    def replace_weekly_record(self, record: WeeklyRecord) -> WeeklyRecord:
        parse_week_id(record.week_id)
        self._records[(record.employee_id, record.week_id)] = record
        return record


class InMemoryExpectedImpactProvider:
    """
    Legacy expected impacts keyed by week id and employee display name.

    Names are matched case- and whitespace-insensitively.
    """

    def __init__(self, impacts: Mapping[str, Mapping[str, ExpectedImpact]] | None = None):
        self._impacts: dict[str, dict[str, ExpectedImpact]] = {}
        for week_id, by_name in (impacts or {}).items():
            for name, impact in by_name.items():
                self.add(week_id, name, impact)

    def add(self, week_id: str, employee_name: str, impact: ExpectedImpact) -> None:
        self._impacts.setdefault(week_id, {})[normalize_employee_name(employee_name)] = impact

    def get_expected_impact(self, week_id: str, employee_name: str) -> ExpectedImpact | None:
        return self._impacts.get(week_id, {}).get(normalize_employee_name(employee_name))

    def __len__(self) -> int:
        return sum(len(by_name) for by_name in self._impacts.values())
