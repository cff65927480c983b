"""Checked unsigned integers for the StableSwap solver.

The solver repeats contract arithmetic where a subtraction below zero, a
division by zero or an intermediate product past uint256 reverts the call.
SafeInt raises at the same points, so a quote that would revert on chain
fails here with an ArithmeticError instead of returning a wrong number:

    d_p = (S(d) * S(d)).to_uint256() // (S(n_coins) * S(balance))
"""

from __future__ import annotations

from functools import total_ordering

UINT256_MAX = 2**256 - 1


class SafeIntError(ArithmeticError):
    """Checked arithmetic failed."""

    pass


class DivisionByZero(SafeIntError):
    pass


class Underflow(SafeIntError):
    """Subtraction result would be negative."""

    pass


class Uint256Overflow(SafeIntError):
    """Value does not fit in a uint256."""

    pass


def _raw(x: SafeInt | int) -> int:
    return x._value if isinstance(x, SafeInt) else x


@total_ordering
class SafeInt:
    """Integer whose subtraction and division revert like Solidity's.

    Addition and multiplication are unbounded; call to_uint256() where the
    contract would overflow.
    """

    __slots__ = ("_value",)

    def __init__(self, value: int | SafeInt) -> None:
        if isinstance(value, SafeInt):
            value = value._value
        elif not isinstance(value, int):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def __add__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value + _raw(other))

    __radd__ = __add__

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        return SafeInt(self._value * _raw(other))

    __rmul__ = __mul__

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Raises Underflow if other > self."""
        subtrahend = _raw(other)
        if subtrahend > self._value:
            raise Underflow(f"{self._value} - {subtrahend} is negative")
        return SafeInt(self._value - subtrahend)

    def __rsub__(self, other: int) -> SafeInt:
        return SafeInt(other) - self

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Raises DivisionByZero if other is zero."""
        divisor = _raw(other)
        if divisor == 0:
            raise DivisionByZero(f"{self._value} // 0")
        return SafeInt(self._value // divisor)

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Division rounded up; raises DivisionByZero if other is zero."""
        divisor = _raw(other)
        if divisor == 0:
            raise DivisionByZero(f"ceil({self._value} / 0)")
        return SafeInt(-(-self._value // divisor))

    def to_uint256(self) -> SafeInt:
        """Return self if it fits in a uint256.

        Raises:
            Uint256Overflow: If the value is negative or above 2**256 - 1
        """
        if not 0 <= self._value <= UINT256_MAX:
            raise Uint256Overflow(f"{self._value} is outside the uint256 range")
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, (SafeInt, int)):
            return NotImplemented
        return self._value == _raw(other)

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _raw(other)

    def __hash__(self) -> int:
        return hash(self._value)

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        return self._value != 0

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"


S = SafeInt
