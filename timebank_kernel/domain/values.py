"""
Values -- Immutable hour quantities and the three-bag triples.

Responsibility:
    Provides the foundational value types for every time-bank computation:
    Decimal hour coercion, quarter-hour rounding, and the ``BagImpact`` /
    ``BagBalances`` triples (ordinary, holiday, leave).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every other domain module and by all engines.

Invariants enforced:
    - Hours are always ``Decimal`` (never float); floats and ints are coerced
      through ``str`` so that 7.5 becomes Decimal("7.5") exactly.
    - Quarter-hour rounding is ``floor(x * 4 + 0.5) / 4``: ties go toward
      +infinity, so -8.125 rounds to -8.00 like the legacy data.  It is applied
      only where callers ask for it (once per computed value).

Failure modes:
    - ValueError on construction with values that cannot become a Decimal.

Audit relevance:
    Bag balances are the employee-facing result of the whole system.  Keeping
    them in exact decimal arithmetic makes every replay bit-for-bit
    reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
_QUARTERS_PER_HOUR = Decimal("4")
_HALF = Decimal("0.5")
_CENTS = Decimal("0.01")


def to_hours(value: Any) -> Decimal:
    """
    Coerce a numeric value into a Decimal hour quantity.

    Preconditions:
        - ``value`` is a Decimal, int, float, numeric string, or None.

    Postconditions:
        - Returns a Decimal; None becomes ZERO.

    Raises:
        ValueError: If the value cannot be represented as a Decimal.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid hour value: {value!r}") from e


def round_quarter(value: Decimal | int | str) -> Decimal:
    """Round an hour quantity to the nearest quarter hour, ties toward +infinity."""
    quarters = (to_hours(value) * _QUARTERS_PER_HOUR + _HALF).quantize(
        Decimal("1"), rounding=ROUND_FLOOR
    )
    return (quarters / _QUARTERS_PER_HOUR).quantize(_CENTS)


def round_cents(value: Decimal) -> Decimal:
    """Round to two decimal places for reporting detail lines."""
    return to_hours(value).quantize(_CENTS, rounding=ROUND_HALF_UP)


def _coerce_fields(obj: Any, names: tuple[str, ...]) -> None:
    for name in names:
        object.__setattr__(obj, name, to_hours(getattr(obj, name)))


@dataclass(frozen=True, slots=True)
class BagImpact:
    """
    Signed change to the three bags produced by one week.

    Contract:
        A plain triple of Decimal deltas.  Positive values credit the bag,
        negative values debit it.

    Guarantees:
        - Immutable; fields are always Decimal.
    """

    ordinary: Decimal = ZERO
    holiday: Decimal = ZERO
    leave: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_fields(self, ("ordinary", "holiday", "leave"))

    @classmethod
    def zero(cls) -> BagImpact:
        return cls()

    @property
    def is_zero(self) -> bool:
        return self.ordinary == ZERO and self.holiday == ZERO and self.leave == ZERO

    def rounded(self) -> BagImpact:
        """Return a copy with every delta rounded to the quarter hour."""
        return BagImpact(
            ordinary=round_quarter(self.ordinary),
            holiday=round_quarter(self.holiday),
            leave=round_quarter(self.leave),
        )

    def __add__(self, other: BagImpact) -> BagImpact:
        if not isinstance(other, BagImpact):
            return NotImplemented
        return BagImpact(
            ordinary=self.ordinary + other.ordinary,
            holiday=self.holiday + other.holiday,
            leave=self.leave + other.leave,
        )


@dataclass(frozen=True, slots=True)
class BagBalances:
    """
    Running balances of the three bags at a point in the ledger.

    Contract:
        Opening balances come from the earliest employment period; every
        confirmed week moves them by its ``BagImpact``.

    Guarantees:
        - Immutable; ``apply`` returns a new instance.
        - ``total`` is the plain sum of the three bags.
    """

    ordinary: Decimal = ZERO
    holiday: Decimal = ZERO
    leave: Decimal = ZERO

    def __post_init__(self) -> None:
        _coerce_fields(self, ("ordinary", "holiday", "leave"))

    @classmethod
    def zero(cls) -> BagBalances:
        return cls()

    @property
    def total(self) -> Decimal:
        return self.ordinary + self.holiday + self.leave

    def apply(self, impact: BagImpact) -> BagBalances:
        """Return the balances after adding ``impact``."""
        return BagBalances(
            ordinary=self.ordinary + impact.ordinary,
            holiday=self.holiday + impact.holiday,
            leave=self.leave + impact.leave,
        )

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "ordinary": self.ordinary,
            "holiday": self.holiday,
            "leave": self.leave,
        }
