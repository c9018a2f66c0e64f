"""
Configuration Validator (``timebank_config.validator``).

Responsibility
--------------
Validates an assembled ``TimebankConfiguration`` before it is handed to the
services.

Invariants enforced
-------------------
* Absence type codes, contract type names and annual years are unique.
* Annual parameters are positive (the reference weekly hours is a divisor).
* Absence allowances are non-negative.
* Vacation and audit policy values are usable.

Failure modes
-------------
* Errors  -> configuration MUST NOT be used.
* Warnings  -> configuration may be used but should be reviewed.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from timebank_config.schema import TimebankConfiguration


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def _duplicates(values) -> list:
    return sorted(v for v, n in Counter(values).items() if n > 1)


def validate_configuration(config: TimebankConfiguration) -> ConfigValidationResult:
    """Validate a configuration set and collect every problem found."""
    result = ConfigValidationResult()

    for code in _duplicates(a.code for a in config.absence_types):
        result.add_error(f"Duplicate absence type code: {code}")
    for name in _duplicates(c.name for c in config.contract_types):
        result.add_error(f"Duplicate contract type name: {name}")
    for year in _duplicates(a.year for a in config.annual_configurations):
        result.add_error(f"Duplicate annual configuration for year {year}")

    for annual in config.annual_configurations:
        if annual.reference_weekly_hours <= 0:
            result.add_error(
                f"Annual configuration {annual.year}: reference_weekly_hours must be positive"
            )
        if annual.max_annual_hours <= 0:
            result.add_error(
                f"Annual configuration {annual.year}: max_annual_hours must be positive"
            )

    for absence in config.absence_types:
        if absence.annual_hour_limit is not None and absence.annual_hour_limit < 0:
            result.add_error(f"Absence type {absence.code}: annual_hour_limit is negative")
        if absence.suspends_contract and absence.is_splittable:
            result.add_warning(
                f"Absence type {absence.code}: suspending absences are counted "
                f"per day, is_splittable has no effect on suspension"
            )

    vacation = config.vacation
    if vacation.suspension_block_days <= 0:
        result.add_error("Vacation policy: suspension_block_days must be positive")
    if vacation.base_days < 0:
        result.add_error("Vacation policy: base_days is negative")
    if config.absence_types and vacation.vacation_code not in {
        a.code for a in config.absence_types
    }:
        result.add_warning(
            f"Vacation policy: vacation_code {vacation.vacation_code!r} "
            f"is not a configured absence type"
        )

    if config.audit.tolerance < 0:
        result.add_error("Audit policy: tolerance is negative")

    rotation = config.rotation
    if not rotation.turn_ids:
        result.add_error("Rotation policy: turn_ids is empty")
    elif not 0 <= rotation.anchor_turn_index < len(rotation.turn_ids):
        result.add_error("Rotation policy: anchor_turn_index out of range")
    if rotation.anchor_monday.isoweekday() != 1:
        result.add_error("Rotation policy: anchor_monday is not a Monday")

    return result
