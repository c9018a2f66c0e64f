"""
Module: timebank_kernel.models.weekly_record
Responsibility: ORM persistence for one employee-week of attendance data and
    its ledger metadata (confirmation flag, previous-balances snapshot,
    confirmed impact, audit annotations).
Architecture position: Kernel > Models.  May import from db/base.py and the
    pure domain records it converts to and from.

Invariants enforced:
    - One row per (employee_id, week_id) (uq_weekly_record_employee_week).
    - Daily records are stored as JSON with hour values as decimal strings,
      so no value ever round-trips through float.
    - The previous-balances snapshot columns are either all set or all NULL.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, Boolean, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from timebank_kernel.db.base import Base, UpdatedAtMixin
from timebank_kernel.domain.records import DailyRecord, HolidayCategory, WeeklyRecord
from timebank_kernel.domain.values import BagBalances, BagImpact


def _day_to_json(record: DailyRecord) -> dict[str, Any]:
    return {
        "theoretical_hours": str(record.theoretical_hours),
        "worked_hours": str(record.worked_hours),
        "absence_code": record.absence_code,
        "absence_hours": str(record.absence_hours),
        "leave_hours": str(record.leave_hours),
        "double_pay": record.double_pay,
        "is_holiday": record.is_holiday,
        "holiday_category": (
            record.holiday_category.value if record.holiday_category else None
        ),
    }


def _day_from_json(data: dict[str, Any]) -> DailyRecord:
    category = data.get("holiday_category")
    return DailyRecord(
        theoretical_hours=Decimal(data.get("theoretical_hours", "0")),
        worked_hours=Decimal(data.get("worked_hours", "0")),
        absence_code=data.get("absence_code") or "none",
        absence_hours=Decimal(data.get("absence_hours", "0")),
        leave_hours=Decimal(data.get("leave_hours", "0")),
        double_pay=bool(data.get("double_pay", False)),
        is_holiday=bool(data.get("is_holiday", False)),
        holiday_category=HolidayCategory(category) if category else None,
    )


class WeeklyRecordModel(UpdatedAtMixin, Base):
    """
    Persisted weekly record.

    Contract:
        ``to_domain`` and ``update_from_domain`` are the only conversion
        points between the row and ``WeeklyRecord``.

    Non-goals:
        - Enforcing the confirmed-week immutability rule; that belongs to
          ``timebank_services.week_store``.
    """

    __tablename__ = "weekly_records"

    __table_args__ = (
        UniqueConstraint("employee_id", "week_id", name="uq_weekly_record_employee_week"),
    )

    employee_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    week_id: Mapped[str] = mapped_column(String(8), nullable=False)

    days: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    weekly_hours_override: Mapped[Decimal | None] = mapped_column(nullable=True)
    complementary_hours: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    is_difference: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Snapshot of the bags before this week was applied (set on confirm)
    previous_ordinary: Mapped[Decimal | None] = mapped_column(nullable=True)
    previous_holiday: Mapped[Decimal | None] = mapped_column(nullable=True)
    previous_leave: Mapped[Decimal | None] = mapped_column(nullable=True)

    impact_ordinary: Mapped[Decimal | None] = mapped_column(nullable=True)
    impact_holiday: Mapped[Decimal | None] = mapped_column(nullable=True)
    impact_leave: Mapped[Decimal | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        state = "confirmed" if self.confirmed else "open"
        return f"<WeeklyRecord {self.employee_id} {self.week_id}: {state}>"

    def update_from_domain(self, record: WeeklyRecord) -> None:
        self.employee_id = record.employee_id
        self.week_id = record.week_id
        self.days = {day.isoformat(): _day_to_json(rec) for day, rec in record.days.items()}
        self.weekly_hours_override = record.weekly_hours_override
        self.complementary_hours = record.complementary_hours
        self.confirmed = record.confirmed
        self.comment = record.comment
        self.is_difference = record.is_difference

        snapshot = record.previous_balances
        self.previous_ordinary = snapshot.ordinary if snapshot else None
        self.previous_holiday = snapshot.holiday if snapshot else None
        self.previous_leave = snapshot.leave if snapshot else None

        impact = record.impact
        self.impact_ordinary = impact.ordinary if impact else None
        self.impact_holiday = impact.holiday if impact else None
        self.impact_leave = impact.leave if impact else None

    @classmethod
    def from_domain(cls, record: WeeklyRecord) -> WeeklyRecordModel:
        model = cls()
        model.update_from_domain(record)
        return model

    def to_domain(self) -> WeeklyRecord:
        snapshot = None
        if self.previous_ordinary is not None:
            snapshot = BagBalances(
                ordinary=self.previous_ordinary,
                holiday=self.previous_holiday,
                leave=self.previous_leave,
            )
        impact = None
        if self.impact_ordinary is not None:
            impact = BagImpact(
                ordinary=self.impact_ordinary,
                holiday=self.impact_holiday,
                leave=self.impact_leave,
            )
        return WeeklyRecord(
            employee_id=self.employee_id,
            week_id=self.week_id,
            days={
                date.fromisoformat(key): _day_from_json(value)
                for key, value in (self.days or {}).items()
            },
            weekly_hours_override=self.weekly_hours_override,
            complementary_hours=self.complementary_hours or Decimal("0"),
            confirmed=self.confirmed,
            comment=self.comment or "",
            is_difference=self.is_difference,
            previous_balances=snapshot,
            impact=impact,
        )
