"""Tests for the checked integers behind the StableSwap solver."""

import pytest

from sor.safe_int import (
    UINT256_MAX,
    DivisionByZero,
    S,
    SafeInt,
    SafeIntError,
    Uint256Overflow,
    Underflow,
)


class TestReverts:
    """Operations that revert on chain raise here."""

    @pytest.mark.parametrize(
        "operation",
        [
            lambda: S(5) - S(10),
            lambda: S(5) - 10,
            lambda: 5 - S(10),
        ],
    )
    def test_negative_subtraction(self, operation):
        with pytest.raises(Underflow, match="5 - 10"):
            operation()

    @pytest.mark.parametrize("operation", [lambda: S(10) // 0, lambda: S(10).ceiling_div(S(0))])
    def test_division_by_zero(self, operation):
        with pytest.raises(DivisionByZero):
            operation()

    @pytest.mark.parametrize("value", [UINT256_MAX + 1, -1])
    def test_outside_uint256(self, value):
        with pytest.raises(Uint256Overflow):
            S(value).to_uint256()

    def test_product_overflow_is_caught_at_checkpoint(self):
        """Multiplication itself is unbounded; to_uint256 is the checkpoint."""
        product = S(2**200) * S(2**60)
        assert product.value == 2**260
        with pytest.raises(Uint256Overflow):
            product.to_uint256()

    @pytest.mark.parametrize("error", [DivisionByZero, Underflow, Uint256Overflow])
    def test_errors_are_arithmetic_errors(self, error):
        """Pool wrappers catch solver failures as ArithmeticError."""
        assert issubclass(error, SafeIntError)
        assert issubclass(error, ArithmeticError)


class TestArithmetic:
    """Results of operations that succeed."""

    def test_mixed_operands(self):
        assert (S(10) + 5).value == (5 + S(10)).value == 15
        assert (S(6) * 7).value == (6 * S(7)).value == 42
        assert (10 - S(3)).value == 7
        assert (S(5) - S(5)).value == 0

    def test_floor_and_ceiling_division(self):
        assert (S(10) // S(3)).value == 3
        assert S(10).ceiling_div(3).value == 4
        assert S(9).ceiling_div(3).value == 3
        assert S(0).ceiling_div(3).value == 0

    def test_to_uint256_chains(self):
        """to_uint256 returns the same object so expressions can continue."""
        value = S(UINT256_MAX)
        assert value.to_uint256() is value


class TestConversions:
    """Construction, comparison and conversion."""

    def test_construction(self):
        assert S is SafeInt
        assert SafeInt(SafeInt(42)).value == 42

    @pytest.mark.parametrize("value", ["42", 3.14])
    def test_rejects_non_integers(self, value):
        with pytest.raises(TypeError):
            SafeInt(value)  # type: ignore[arg-type]

    def test_compares_with_ints(self):
        assert S(5) == 5
        assert S(5) != S(6)
        assert S(5) < 6
        assert S(6) >= S(6)
        assert S(7) > S(6)

    def test_int_and_bool(self):
        assert int(S(7)) == 7
        assert not S(0)
        assert S(1)
