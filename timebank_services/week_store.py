"""
timebank_services.week_store -- SQLAlchemy-backed weekly record store.

Responsibility:
    Persist weekly records and perform the two ledger-integrity transitions
    -- confirming a week and enabling its correction -- as single
    transactions.

Architecture position:
    Services -- imperative shell over ``timebank_kernel.models``.  Every
    public write opens its own ``session_scope``; a failure anywhere rolls
    back the whole write, so a week is never left confirmed without its
    previous-balances snapshot (or the reverse).

Invariants enforced:
    - Drafts cannot overwrite a confirmed week (WeekAlreadyConfirmedError).
    - ``confirm`` writes the confirmed flag, the snapshot and the impact in
      one transaction, re-checking the stored row under that transaction.
    - ``enable_correction`` restores the stored snapshot and never derives it.

Failure modes:
    - WeekNotFoundError for confirm/correct of a week that was never saved.
    - WeekAlreadyConfirmedError / WeekNotConfirmedError /
      MissingBalanceSnapshotError from the ledger transitions.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from timebank_engines.ledger import CorrectionResult, confirm_week, enable_correction
from timebank_kernel.db.engine import session_scope
from timebank_kernel.domain.records import WeeklyRecord
from timebank_kernel.domain.values import BagBalances, BagImpact
from timebank_kernel.domain.weeks import parse_week_id
from timebank_kernel.exceptions import WeekAlreadyConfirmedError, WeekNotFoundError
from timebank_kernel.logging_config import get_logger
from timebank_kernel.models.weekly_record import WeeklyRecordModel

logger = get_logger("services.week_store")


class SqlWeeklyRecordStore:
    """
    Weekly record provider persisted through SQLAlchemy.

    Contract:
        Constructed with a session factory; each call is its own unit of
        work.

    Non-goals:
        - Cross-week transactions.  Each week is confirmed independently.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    @staticmethod
    def _find(session: Session, employee_id: str, week_id: str) -> WeeklyRecordModel | None:
        stmt = select(WeeklyRecordModel).where(
            WeeklyRecordModel.employee_id == employee_id,
            WeeklyRecordModel.week_id == week_id,
        )
        return session.execute(stmt).scalar_one_or_none()

    def list_weekly_records(self, employee_id: str) -> Sequence[WeeklyRecord]:
        with session_scope(self._session_factory) as session:
            stmt = (
                select(WeeklyRecordModel)
                .where(WeeklyRecordModel.employee_id == employee_id)
                .order_by(WeeklyRecordModel.week_id)
            )
            return tuple(m.to_domain() for m in session.execute(stmt).scalars())

    def get_weekly_record(self, employee_id: str, week_id: str) -> WeeklyRecord | None:
        with session_scope(self._session_factory) as session:
            model = self._find(session, employee_id, week_id)
            return model.to_domain() if model is not None else None

    def save_weekly_record(self, record: WeeklyRecord) -> WeeklyRecord:
        """
        Insert or update a draft.

        Raises:
            WeekAlreadyConfirmedError: If the record or the stored row is
                confirmed.
        """
        parse_week_id(record.week_id)
        if record.confirmed:
            raise WeekAlreadyConfirmedError(record.employee_id, record.week_id)
        with session_scope(self._session_factory) as session:
            model = self._find(session, record.employee_id, record.week_id)
            if model is None:
                session.add(WeeklyRecordModel.from_domain(record))
            elif model.confirmed:
                raise WeekAlreadyConfirmedError(record.employee_id, record.week_id)
            else:
                model.update_from_domain(record)
        logger.info(
            "weekly_record_saved",
            extra={"employee_id": record.employee_id, "week_id": record.week_id},
        )
        return record

    def replace_weekly_record(self, record: WeeklyRecord) -> WeeklyRecord:
        """Write the record exactly as given (used for audit annotations)."""
        parse_week_id(record.week_id)
        with session_scope(self._session_factory) as session:
            model = self._find(session, record.employee_id, record.week_id)
            if model is None:
                session.add(WeeklyRecordModel.from_domain(record))
            else:
                model.update_from_domain(record)
        return record

    def confirm(
        self,
        employee_id: str,
        week_id: str,
        starting_balances: BagBalances,
        impact: BagImpact,
    ) -> WeeklyRecord:
        """
        Confirm a saved week in one transaction.

        Postconditions:
            - The stored row is confirmed and carries ``starting_balances``
              as its previous-balances snapshot, or nothing changed.
        """
        with session_scope(self._session_factory) as session:
            model = self._find(session, employee_id, week_id)
            if model is None:
                raise WeekNotFoundError(employee_id, week_id)
            confirmed = confirm_week(model.to_domain(), starting_balances, impact)
            model.update_from_domain(confirmed)
        logger.info(
            "week_confirmed",
            extra={
                "employee_id": employee_id,
                "week_id": week_id,
                "ordinary": impact.ordinary,
                "holiday": impact.holiday,
                "leave": impact.leave,
            },
        )
        return confirmed

    def enable_correction(self, employee_id: str, week_id: str) -> CorrectionResult:
        """Reopen a confirmed week in one transaction."""
        with session_scope(self._session_factory) as session:
            model = self._find(session, employee_id, week_id)
            if model is None:
                raise WeekNotFoundError(employee_id, week_id)
            result = enable_correction(model.to_domain())
            model.update_from_domain(result.record)
        logger.info(
            "week_correction_enabled",
            extra={"employee_id": employee_id, "week_id": week_id},
        )
        return result
