"""
Typed Exception Hierarchy for the Time-Bank Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from TimebankError:

    TimebankError (base)
    |
    +-- InputError
    |   +-- InvalidHoursError
    |   +-- InvalidWeekIdError
    |
    +-- WeekError
    |   +-- WeekNotFoundError
    |   +-- WeekAlreadyConfirmedError
    |   +-- WeekNotConfirmedError
    |   +-- MissingBalanceSnapshotError
    |
    +-- EmployeeError
    |   +-- EmployeeNotFoundError
    |
    +-- ConfigError
        +-- ConfigValidationError
        +-- AssemblyError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category  | Code                       | When Raised
----------|----------------------------|-------------------------------------------
Input     | INVALID_NUMERIC            | Non-finite or negative hour value entered
          | INVALID_WEEK_ID            | Week id is not a valid YYYY-Www ISO week
----------|----------------------------|-------------------------------------------
Week      | WEEK_NOT_FOUND             | No weekly record for employee/week
          | WEEK_ALREADY_CONFIRMED     | Confirming or editing a confirmed week
          | WEEK_NOT_CONFIRMED         | Enabling correction on an open week
          | MISSING_BALANCE_SNAPSHOT   | Confirmed week has no previous balances
----------|----------------------------|-------------------------------------------
Employee  | EMPLOYEE_NOT_FOUND         | Unknown employee id
----------|----------------------------|-------------------------------------------
Config    | CONFIG_VALIDATION_FAILED   | Configuration set failed validation
          | ASSEMBLY_FAILED            | Fragment directory missing or malformed

Calculators never raise for missing active periods or unmapped rule codes;
those produce neutral results and a warning log line.
"""


class TimebankError(Exception):
    """
    Base exception for all time-bank errors.

    All subclasses have a `code` class attribute for machine-readable error
    identification.
    """

    code: str = "TIMEBANK_ERROR"


# Input boundary


class InputError(TimebankError):
    """Base exception for rejected input values."""

    code: str = "INPUT_ERROR"


class InvalidHoursError(InputError):
    """An hour value is negative, NaN or infinite."""

    code: str = "INVALID_NUMERIC"

    def __init__(self, field_name: str, value: object, day: str | None = None):
        self.field_name = field_name
        self.value = value
        self.day = day
        where = f" on {day}" if day else ""
        super().__init__(f"Invalid hour value for {field_name}{where}: {value!r}")


class InvalidWeekIdError(InputError):
    """Week id is not a valid ISO week identifier."""

    code: str = "INVALID_WEEK_ID"

    def __init__(self, week_id: object):
        self.week_id = week_id
        super().__init__(f"Invalid ISO week id: {week_id!r}")


# Week ledger


class WeekError(TimebankError):
    """Base exception for weekly ledger errors."""

    code: str = "WEEK_ERROR"


class WeekNotFoundError(WeekError):
    code: str = "WEEK_NOT_FOUND"

    def __init__(self, employee_id: str, week_id: str):
        self.employee_id = employee_id
        self.week_id = week_id
        super().__init__(f"No weekly record for employee {employee_id} in {week_id}")


class WeekAlreadyConfirmedError(WeekError):
    """Confirmed weeks are immutable until a correction is enabled."""

    code: str = "WEEK_ALREADY_CONFIRMED"

    def __init__(self, employee_id: str, week_id: str):
        self.employee_id = employee_id
        self.week_id = week_id
        super().__init__(f"Week {week_id} of employee {employee_id} is already confirmed")


class WeekNotConfirmedError(WeekError):
    code: str = "WEEK_NOT_CONFIRMED"

    def __init__(self, employee_id: str, week_id: str):
        self.employee_id = employee_id
        self.week_id = week_id
        super().__init__(f"Week {week_id} of employee {employee_id} is not confirmed")


class MissingBalanceSnapshotError(WeekError):
    """
    A confirmed week lacks its previous-balances snapshot.

    The snapshot is the only value a correction may restore; re-deriving it
    from the ledger is not allowed.
    """

    code: str = "MISSING_BALANCE_SNAPSHOT"

    def __init__(self, employee_id: str, week_id: str):
        self.employee_id = employee_id
        self.week_id = week_id
        super().__init__(
            f"Confirmed week {week_id} of employee {employee_id} "
            f"has no previous balances snapshot"
        )


# Employees


class EmployeeError(TimebankError):
    code: str = "EMPLOYEE_ERROR"


class EmployeeNotFoundError(EmployeeError):
    code: str = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: str):
        self.employee_id = employee_id
        super().__init__(f"Employee not found: {employee_id}")


# Configuration


class ConfigError(TimebankError):
    code: str = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """Configuration set failed validation; carries every error found."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in self.errors)
        )


class AssemblyError(ConfigError):
    """Fragment directory is missing, or a required fragment cannot be parsed."""

    code: str = "ASSEMBLY_FAILED"
