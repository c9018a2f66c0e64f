"""
Policies -- yearly and organisation-wide calculation parameters.

Plain frozen records handed to the engines.  ``timebank_config`` builds them
from YAML; tests construct them directly.  The defaults are the values the
organisation has always used.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from timebank_kernel.domain.employment import TURN_IDS


@dataclass(frozen=True)
class AnnualConfiguration:
    """Annual hour target parameters for one calendar year."""

    year: int
    max_annual_hours: Decimal
    reference_weekly_hours: Decimal = Decimal("40")

    def __post_init__(self) -> None:
        for name in ("max_annual_hours", "reference_weekly_hours"):
            value = getattr(self, name)
            if not isinstance(value, Decimal):
                object.__setattr__(self, name, Decimal(str(value)))


@dataclass(frozen=True)
class VacationPolicy:
    """
    Vacation entitlement parameters.

    ``days_per_suspension_block`` vacation days are lost for every
    ``suspension_block_days`` days of contract suspension (pro rata).
    Legacy carried days apply in the first computed year, which is never
    earlier than ``carry_over_start_year``.
    """

    vacation_code: str = "V"
    base_days: Decimal = Decimal("31")
    suspension_block_days: Decimal = Decimal("30")
    days_per_suspension_block: Decimal = Decimal("2.5")
    carry_over_start_year: int = 2025


@dataclass(frozen=True)
class AuditPolicy:
    """Retroactive audit parameters."""

    cutoff_date: date = date(2025, 9, 8)
    tolerance: Decimal = Decimal("0.01")
    comment_prefix: str = "AUDIT:"
    legacy_prefixes: tuple[str, ...] = ("EXCEL DIFFERENCE:",)


@dataclass(frozen=True)
class RotationPolicy:
    """Anchor of the four-turn schedule rotation."""

    anchor_monday: date = date(2024, 12, 30)
    anchor_turn_index: int = 2
    turn_ids: tuple[str, ...] = TURN_IDS

    def turn_for(self, monday: date) -> str:
        weeks = (monday - self.anchor_monday).days // 7
        return self.turn_ids[(self.anchor_turn_index + weeks) % len(self.turn_ids)]
