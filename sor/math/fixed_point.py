"""18-decimal fixed point with explicit rounding direction.

Pool math never rounds implicitly: every product and quotient says whether it
rounds toward the pool (down for amounts paid out, up for amounts charged).
Values are plain ints scaled by 10**18, so 1.5 is 1_500_000_000_000_000_000.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from functools import total_ordering
from typing import ClassVar

from sor.safe_int import S

__all__ = [
    "Bfp",
    "ONE_18",
]

ONE_18 = 10**18


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


@total_ordering
class Bfp:
    """Fixed-point amount, balance, fee or rate.

    Attributes:
        value: Raw integer scaled by 10**18
    """

    ONE: ClassVar[int] = ONE_18

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]

    def __init__(self, value: int) -> None:
        self.value = value

    @classmethod
    def from_wei(cls, wei: int) -> Bfp:
        return cls(wei)

    @classmethod
    def from_int(cls, i: int) -> Bfp:
        """Whole units: from_int(3) is 3.0."""
        return cls(i * cls.ONE)

    @classmethod
    def from_decimal(cls, d: Decimal) -> Bfp:
        """Scale a human-readable Decimal, rounding the 19th digit half up.

        Raises:
            ValueError: If d is negative
        """
        if d < 0:
            raise ValueError(f"Bfp.from_decimal requires non-negative input, got {d}")
        return cls(int((d * cls.ONE).quantize(Decimal(1), rounding=ROUND_HALF_UP)))

    @classmethod
    def one(cls) -> Bfp:
        return cls(cls.ONE)

    @classmethod
    def zero(cls) -> Bfp:
        return cls(0)

    def to_decimal(self) -> Decimal:
        return Decimal(self.value) / Decimal(self.ONE)

    def add(self, other: Bfp) -> Bfp:
        return Bfp(self.value + other.value)

    def sub(self, other: Bfp) -> Bfp:
        """Saturating subtraction: never below zero.

        Only for values where a drained balance means "nothing left"; quotes
        use sub_checked.
        """
        return Bfp(max(self.value - other.value, 0))

    def sub_checked(self, other: Bfp) -> Bfp:
        """Subtraction that fails instead of going negative.

        Raises:
            Underflow: If other > self
        """
        return Bfp((S(self.value) - S(other.value)).value)

    def mul_down(self, other: Bfp) -> Bfp:
        return Bfp(self.value * other.value // self.ONE)

    def mul_up(self, other: Bfp) -> Bfp:
        return Bfp(_ceil_div(self.value * other.value, self.ONE))

    def div_down(self, other: Bfp) -> Bfp:
        """Quotient rounded down.

        Raises:
            ZeroDivisionError: If other is zero
        """
        if other.value == 0:
            raise ZeroDivisionError("Bfp division by zero")
        return Bfp(self.value * self.ONE // other.value)

    def div_up(self, other: Bfp) -> Bfp:
        """Quotient rounded up.

        Raises:
            ZeroDivisionError: If other is zero
        """
        if other.value == 0:
            raise ZeroDivisionError("Bfp division by zero")
        return Bfp(_ceil_div(self.value * self.ONE, other.value))

    def complement(self) -> Bfp:
        """1 - self, floored at zero (the fee complement 1 - fee)."""
        return Bfp(max(self.ONE - self.value, 0))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value < other.value

    def __repr__(self) -> str:
        return f"Bfp({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())
