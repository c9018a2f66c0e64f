"""
History -- effective-date lookup over sorted histories.

Responsibility:
    One reusable "effective as of" primitive used for weekly-hours changes,
    weekly schedules, and employment periods.  Entries must already be
    sorted ascending by their effective date.

Invariants enforced:
    - Returns the latest entry whose effective date is <= the query date.
    - Ties on the same effective date resolve to the last entry.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Callable, Sequence
from datetime import date
from typing import TypeVar

T = TypeVar("T")


def effective_as_of(
    entries: Sequence[T],
    as_of: date,
    key: Callable[[T], date] = lambda entry: entry.effective_date,  # type: ignore[attr-defined]
) -> T | None:
    """
    Return the entry in effect on ``as_of``, or None if none started yet.

    Preconditions:
        - ``entries`` is sorted ascending by ``key``.
    """
    if not entries:
        return None
    keys = [key(entry) for entry in entries]
    index = bisect_right(keys, as_of)
    if index == 0:
        return None
    return entries[index - 1]
