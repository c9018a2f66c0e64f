"""ORM models for the time-bank kernel."""

from timebank_kernel.models.weekly_record import WeeklyRecordModel

__all__ = ["WeeklyRecordModel"]
