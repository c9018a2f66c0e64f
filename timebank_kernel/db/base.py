"""
Module: timebank_kernel.db.base
Responsibility: Declarative base for the ORM models and the column types they
    share.
Architecture position: Kernel > DB.  Imported by models/ and db/engine.py;
    imports nothing from the kernel.

Invariants enforced:
    - Hour quantities are stored as decimal strings (``DecimalHours``) and read
      back as ``Decimal``.  SQLite has no exact decimal type, so this is the
      only representation that never passes through float.
    - Every table has an integer surrogate key; natural keys are expressed as
      unique constraints on the model.
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class DecimalHours(TypeDecorator):
    """Decimal hours persisted as their exact string form."""

    impl = String(24)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        try:
            return str(Decimal(value))
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"Not an hour quantity: {value!r}") from exc

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)


class Base(DeclarativeBase):
    """
    Declarative base for all time-bank models.

    Guarantees:
        - ``Mapped[Decimal]`` columns use ``DecimalHours``.
        - ``Mapped[datetime]`` columns are timezone-aware.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalHours(),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)


class UpdatedAtMixin:
    """Server-maintained last-write timestamp."""

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
