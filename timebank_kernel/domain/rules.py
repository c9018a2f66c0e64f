"""
Rules -- Absence-type and contract-type rule tables.

Responsibility:
    Flat, flag-based records describing how each kind of absence and each
    kind of contract participates in the bag calculations, plus the
    immutable ``RuleTables`` lookup the engines consume.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.  Built either directly (tests,
    in-memory providers) or from YAML by ``timebank_config``.

Invariants enforced:
    - Rule records carry independent boolean flags only; there is no
      behaviour hierarchy.  Calculators branch on flags.
    - Lookups never raise: an unmapped code or name returns None and the
      caller decides the neutral behaviour.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType


class AffectedBag(str, Enum):
    """Bag debited by an absence type."""

    ORDINARY = "ordinary"
    HOLIDAY = "holiday"
    LEAVE = "leave"
    NONE = "none"


@dataclass(frozen=True)
class AbsenceType:
    """
    Flag record for one kind of absence.

    Flags:
        computes_to_weekly_hours: absence hours count toward the weekly total.
        computes_to_annual_hours: absence hours count toward annual computed hours.
        suspends_contract: days with this absence suspend the contract.
        annual_hour_limit: yearly allowance for this absence (days or hours).
        deducts_hours: absence hours are taken out of the worked hours.
        computes_full_day: the absence covers the whole theoretical day.
        affected_bag: bag debited by the absence hours.
        is_splittable: may be recorded in partial hours rather than whole days.
    """

    code: str
    name: str
    computes_to_weekly_hours: bool = False
    computes_to_annual_hours: bool = False
    suspends_contract: bool = False
    annual_hour_limit: Decimal | None = None
    deducts_hours: bool = False
    computes_full_day: bool = False
    affected_bag: AffectedBag = AffectedBag.NONE
    is_splittable: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.affected_bag, str) and not isinstance(
            self.affected_bag, AffectedBag
        ):
            object.__setattr__(self, "affected_bag", AffectedBag(self.affected_bag))
        if self.annual_hour_limit is not None and not isinstance(
            self.annual_hour_limit, Decimal
        ):
            object.__setattr__(
                self, "annual_hour_limit", Decimal(str(self.annual_hour_limit))
            )


@dataclass(frozen=True)
class ContractType:
    """Which bags a contract type participates in."""

    name: str
    computes_ordinary_bag: bool = True
    computes_holiday_bag: bool = True
    computes_leave_bag: bool = True

    def computes(self, bag: AffectedBag) -> bool:
        if bag is AffectedBag.ORDINARY:
            return self.computes_ordinary_bag
        if bag is AffectedBag.HOLIDAY:
            return self.computes_holiday_bag
        if bag is AffectedBag.LEAVE:
            return self.computes_leave_bag
        return False


# Applied when an employment period names a contract type the tables lack.
DEFAULT_CONTRACT_TYPE = ContractType(name="__default__")


@dataclass(frozen=True)
class RuleTables:
    """
    Immutable collection of absence and contract rules.

    Contract:
        Read-only for the duration of a calculation.  Absence types are keyed
        by code, contract types by name.

    Guarantees:
        - ``absence_type`` and ``contract_type`` return None when unmapped.
        - The backing mappings are read-only views.
    """

    absence_types: Mapping[str, AbsenceType] = field(default_factory=dict)
    contract_types: Mapping[str, ContractType] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "absence_types", MappingProxyType(dict(self.absence_types))
        )
        object.__setattr__(
            self, "contract_types", MappingProxyType(dict(self.contract_types))
        )

    @classmethod
    def build(
        cls,
        absence_types: Iterable[AbsenceType] = (),
        contract_types: Iterable[ContractType] = (),
    ) -> RuleTables:
        return cls(
            absence_types={a.code: a for a in absence_types},
            contract_types={c.name: c for c in contract_types},
        )

    def absence_type(self, code: str | None) -> AbsenceType | None:
        if not code:
            return None
        return self.absence_types.get(code)

    def contract_type(self, name: str | None) -> ContractType | None:
        if not name:
            return None
        return self.contract_types.get(name)

    def suspending_codes(self) -> frozenset[str]:
        return frozenset(
            code for code, rule in self.absence_types.items() if rule.suspends_contract
        )
