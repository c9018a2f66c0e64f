"""
Configuration Loader (``timebank_config.loader``).

Responsibility
--------------
Loads individual YAML fragment files and parses them into the typed rule
and policy records.  The single public entry point for runtime config is
``timebank_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Hour and day quantities are parsed through ``str`` into ``Decimal``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid date, decimal or bag name  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from timebank_kernel.domain.policies import (
    AnnualConfiguration,
    AuditPolicy,
    RotationPolicy,
    VacationPolicy,
)
from timebank_kernel.domain.rules import AbsenceType, AffectedBag, ContractType


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse decimal from {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Cannot parse decimal from {value!r}") from e


def parse_absence_type(data: dict[str, Any]) -> AbsenceType:
    limit = data.get("annual_hour_limit")
    return AbsenceType(
        code=str(data["code"]),
        name=data["name"],
        computes_to_weekly_hours=bool(data.get("computes_to_weekly_hours", False)),
        computes_to_annual_hours=bool(data.get("computes_to_annual_hours", False)),
        suspends_contract=bool(data.get("suspends_contract", False)),
        annual_hour_limit=parse_decimal(limit) if limit is not None else None,
        deducts_hours=bool(data.get("deducts_hours", False)),
        computes_full_day=bool(data.get("computes_full_day", False)),
        affected_bag=AffectedBag(data.get("affected_bag", "none")),
        is_splittable=bool(data.get("is_splittable", False)),
    )


def parse_contract_type(data: dict[str, Any]) -> ContractType:
    return ContractType(
        name=data["name"],
        computes_ordinary_bag=bool(data.get("computes_ordinary_bag", True)),
        computes_holiday_bag=bool(data.get("computes_holiday_bag", True)),
        computes_leave_bag=bool(data.get("computes_leave_bag", True)),
    )


def parse_annual_configuration(data: dict[str, Any]) -> AnnualConfiguration:
    return AnnualConfiguration(
        year=int(data["year"]),
        max_annual_hours=parse_decimal(data["max_annual_hours"]),
        reference_weekly_hours=parse_decimal(data.get("reference_weekly_hours", 40)),
    )


def parse_vacation_policy(data: dict[str, Any]) -> VacationPolicy:
    defaults = VacationPolicy()
    return VacationPolicy(
        vacation_code=str(data.get("vacation_code", defaults.vacation_code)),
        base_days=parse_decimal(data.get("base_days", defaults.base_days)),
        suspension_block_days=parse_decimal(
            data.get("suspension_block_days", defaults.suspension_block_days)
        ),
        days_per_suspension_block=parse_decimal(
            data.get("days_per_suspension_block", defaults.days_per_suspension_block)
        ),
        carry_over_start_year=int(
            data.get("carry_over_start_year", defaults.carry_over_start_year)
        ),
    )


def parse_audit_policy(data: dict[str, Any]) -> AuditPolicy:
    defaults = AuditPolicy()
    return AuditPolicy(
        cutoff_date=parse_date(data.get("cutoff_date", defaults.cutoff_date)),
        tolerance=parse_decimal(data.get("tolerance", defaults.tolerance)),
        comment_prefix=data.get("comment_prefix", defaults.comment_prefix),
        legacy_prefixes=tuple(data.get("legacy_prefixes", defaults.legacy_prefixes)),
    )


def parse_rotation_policy(data: dict[str, Any]) -> RotationPolicy:
    defaults = RotationPolicy()
    return RotationPolicy(
        anchor_monday=parse_date(data.get("anchor_monday", defaults.anchor_monday)),
        anchor_turn_index=int(data.get("anchor_turn_index", defaults.anchor_turn_index)),
        turn_ids=tuple(data.get("turn_ids", defaults.turn_ids)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
