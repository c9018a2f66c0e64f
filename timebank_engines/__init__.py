"""
Module: timebank_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``timebank_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import ``timebank_kernel`` (domain, exceptions, logging) and
    sibling engine modules.  MUST NOT import ``timebank_services`` or
    ``timebank_config``.

Invariants enforced:
    - Purity: engines never call ``date.today()``; years, weeks and cutoff
      dates are explicit parameters.
    - Decimal-only arithmetic; floats are never used for hours.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every public engine entrypoint is wrapped by ``@traced_engine``
    (see ``timebank_engines.tracer``), emitting TIMEBANK_ENGINE_TRACE
    records with engine name, version, input fingerprint and duration.
"""

from timebank_engines.absence_usage import AbsenceUsage, absence_usage_summary
from timebank_engines.annual_hours import (
    AnnualHoursResult,
    SuspensionDetail,
    WorkHoursChangeDetail,
    annual_computed_hours,
    theoretical_annual_hours,
)
from timebank_engines.ledger import (
    BalanceLedger,
    CorrectionResult,
    LedgerEntry,
    balances_as_of,
    confirm_week,
    enable_correction,
    final_balances,
)
from timebank_engines.reconciliation import (
    AuditUpdate,
    ReconciliationFinding,
    ReconciliationResult,
    reconcile_week,
    run_retroactive_audit,
)
from timebank_engines.schedule import (
    TheoreticalWeek,
    prefill_week,
    select_absence,
    set_absence_hours,
    theoretical_week,
)
from timebank_engines.tracer import traced_engine
from timebank_engines.vacation import VacationEntitlement, vacation_entitlement
from timebank_engines.weekly_balance import (
    WeeklyImpact,
    compute_weekly_impact,
    preview_weekly_impact,
)

__all__ = [
    # Weekly balance
    "WeeklyImpact",
    "compute_weekly_impact",
    "preview_weekly_impact",
    # Ledger
    "BalanceLedger",
    "CorrectionResult",
    "LedgerEntry",
    "balances_as_of",
    "confirm_week",
    "enable_correction",
    "final_balances",
    # Annual hours
    "AnnualHoursResult",
    "SuspensionDetail",
    "WorkHoursChangeDetail",
    "annual_computed_hours",
    "theoretical_annual_hours",
    # Vacation
    "VacationEntitlement",
    "vacation_entitlement",
    # Reconciliation
    "AuditUpdate",
    "ReconciliationFinding",
    "ReconciliationResult",
    "reconcile_week",
    "run_retroactive_audit",
    # Schedule
    "TheoreticalWeek",
    "prefill_week",
    "select_absence",
    "set_absence_hours",
    "theoretical_week",
    # Absence usage
    "AbsenceUsage",
    "absence_usage_summary",
    # Tracing
    "traced_engine",
]
