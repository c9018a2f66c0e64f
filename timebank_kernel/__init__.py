"""
Time-Bank Kernel

Shared foundation for the time-bank engine:
- Decimal hour values with quarter-hour rounding
- Immutable weekly/daily records and employment history
- Flag-based absence and contract rule tables
- Typed exceptions and structured logging
- SQLAlchemy persistence for the weekly ledger
"""

__version__ = "0.1.0"
