"""
TimebankConfiguration schema.

The assembled, validated configuration: rule tables, per-year annual hour
parameters and the vacation, audit and rotation policies.  YAML fragments are
parsed into these types by the loader and composed by the assembler.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from timebank_kernel.domain.policies import (
    AnnualConfiguration,
    AuditPolicy,
    RotationPolicy,
    VacationPolicy,
)
from timebank_kernel.domain.rules import AbsenceType, ContractType, RuleTables


@dataclass(frozen=True)
class TimebankConfiguration:
    """
    Complete configuration set.

    Contract:
        Immutable once assembled.  ``checksum`` is the SHA-256 of the
        canonical JSON of the source fragments.
    """

    config_id: str
    version: int
    absence_types: tuple[AbsenceType, ...] = ()
    contract_types: tuple[ContractType, ...] = ()
    annual_configurations: tuple[AnnualConfiguration, ...] = ()
    vacation: VacationPolicy = field(default_factory=VacationPolicy)
    audit: AuditPolicy = field(default_factory=AuditPolicy)
    rotation: RotationPolicy = field(default_factory=RotationPolicy)
    description: str = ""
    checksum: str = ""

    def rule_tables(self) -> RuleTables:
        return RuleTables.build(self.absence_types, self.contract_types)

    def annual_config(self, year: int) -> AnnualConfiguration | None:
        for config in self.annual_configurations:
            if config.year == year:
                return config
        return None
