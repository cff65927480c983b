"""Tests for the StableSwap solver.

Reference vectors come from the on-chain StableMath of a DAI/USDC/USDT pool
(A=5000, fee 0.01%) and an agEUR/EURe pool (A=100, fee 0.01%).
"""

from decimal import Decimal

import pytest

from sor.config import AMP_PRECISION
from sor.math.fixed_point import ONE_18, Bfp
from sor.pools.base import SwapType
from sor.pools.errors import PoolError, SameTokenError, TokenIndexError, ZeroBalanceError
from sor.pools.scaling import scale_down_down, scale_down_up, scale_up
from sor.pools.stable.math import (
    calc_in_given_out,
    calc_out_given_in,
    calculate_invariant,
    derivative_spot_price_after_swap,
    get_token_balance_given_invariant_and_all_other_balances,
    spot_price_after_swap,
    stable_calc_in_given_out,
    stable_calc_out_given_in,
)
from sor.safe_int import Uint256Overflow

FEE = Bfp.from_decimal(Decimal("0.0001"))

# DAI (18), USDC (6), USDT (6)
DAI_BALANCE = 505781036390938593206504
USDC_BALANCE = 554894862074
USDT_BALANCE = 1585576741011


def _dai_usdc_usdt_balances() -> list[Bfp]:
    return [
        scale_up(DAI_BALANCE, 1),
        scale_up(USDC_BALANCE, 10**12),
        scale_up(USDT_BALANCE, 10**12),
    ]


class TestCalculateInvariant:
    """Tests for stable pool invariant calculation."""

    def test_two_token_equal_balances(self) -> None:
        """With equal balances D is the sum."""
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(100 * ONE_18), Bfp.from_wei(100 * ONE_18)]

        d = calculate_invariant(amp, balances)

        assert 199 * ONE_18 < d.value < 201 * ONE_18

    def test_three_token_pool(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000_000 * ONE_18)] * 3

        d = calculate_invariant(amp, balances)

        assert 2_999_000 * ONE_18 < d.value < 3_001_000 * ONE_18

    def test_asymmetric_balances(self) -> None:
        """Unequal balances with a low A still converge below the sum."""
        amp = 200 * AMP_PRECISION
        balances = [Bfp.from_wei(100 * ONE_18), Bfp.from_wei(200 * ONE_18)]

        d = calculate_invariant(amp, balances)

        assert 100 * ONE_18 < d.value < 300 * ONE_18

    def test_zero_balance_raises(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(100 * ONE_18), Bfp.from_wei(0)]

        with pytest.raises(ZeroBalanceError):
            calculate_invariant(amp, balances)

    def test_empty_balances_returns_zero(self) -> None:
        assert calculate_invariant(5000 * AMP_PRECISION, []).value == 0

    def test_overflow_raises(self) -> None:
        """Balances near the uint256 limit overflow like the contract would."""
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(2**130), Bfp.from_wei(2**130)]

        with pytest.raises(Uint256Overflow):
            calculate_invariant(amp, balances)


class TestGetTokenBalance:
    """Tests for get_token_balance_given_invariant_and_all_other_balances."""

    def test_recovers_original_balance(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(100 * ONE_18), Bfp.from_wei(100 * ONE_18)]
        d = calculate_invariant(amp, balances)

        recovered = get_token_balance_given_invariant_and_all_other_balances(
            amp, balances, d, token_index=0
        )

        assert abs(recovered.value - balances[0].value) <= 2

    def test_three_token_recovers_balance(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000 * ONE_18)] * 3
        d = calculate_invariant(amp, balances)

        recovered = get_token_balance_given_invariant_and_all_other_balances(
            amp, balances, d, token_index=1
        )

        assert abs(recovered.value - balances[1].value) <= 2

    def test_index_out_of_range_raises(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(100 * ONE_18)]

        with pytest.raises(IndexError):
            get_token_balance_given_invariant_and_all_other_balances(
                amp, balances, Bfp.from_wei(100 * ONE_18), token_index=5
            )


class TestStableCalcOutGivenIn:
    """Tests for stable_calc_out_given_in (fee already removed)."""

    def test_small_swap_nearly_1_to_1(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000_000 * ONE_18)] * 2

        result = stable_calc_out_given_in(amp, balances, 0, 1, Bfp.from_wei(1000 * ONE_18))

        assert 999 * ONE_18 < result.value < 1001 * ONE_18

    def test_larger_swap_has_slippage(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(100_000 * ONE_18)] * 2

        result = stable_calc_out_given_in(amp, balances, 0, 1, Bfp.from_wei(10_000 * ONE_18))

        assert 9_900 * ONE_18 < result.value < 10_000 * ONE_18

    def test_zero_input_returns_zero(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000_000 * ONE_18)] * 2

        assert stable_calc_out_given_in(amp, balances, 0, 1, Bfp.from_wei(0)).value == 0

    def test_same_token_raises(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000_000 * ONE_18)] * 2

        with pytest.raises(ValueError, match="Cannot swap token with itself"):
            stable_calc_out_given_in(amp, balances, 0, 0, Bfp.from_wei(ONE_18))

    def test_invalid_index_raises(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000_000 * ONE_18)] * 2

        with pytest.raises(IndexError):
            stable_calc_out_given_in(amp, balances, 0, 5, Bfp.from_wei(ONE_18))
        with pytest.raises(IndexError):
            stable_calc_out_given_in(amp, balances, -1, 1, Bfp.from_wei(ONE_18))


class TestStableCalcInGivenOut:
    """Tests for stable_calc_in_given_out (fee not yet added)."""

    def test_small_swap_nearly_1_to_1(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000_000 * ONE_18)] * 2

        result = stable_calc_in_given_out(amp, balances, 0, 1, Bfp.from_wei(1000 * ONE_18))

        assert 999 * ONE_18 < result.value < 1002 * ONE_18

    def test_amount_out_exceeds_balance_raises(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = [Bfp.from_wei(1_000 * ONE_18)] * 2

        with pytest.raises(ZeroBalanceError):
            stable_calc_in_given_out(amp, balances, 0, 1, Bfp.from_wei(1_001 * ONE_18))


class TestFeeWrappedSolver:
    """Tests for calc_out_given_in / calc_in_given_out, the solver interface."""

    def test_sell_dai_for_usdc(self) -> None:
        """Sell 10 DAI: about 9.999475 USDC."""
        amp = 5000 * AMP_PRECISION

        amount_out = calc_out_given_in(
            amp, _dai_usdc_usdt_balances(), 0, 1, Bfp.from_wei(10 * ONE_18), FEE
        )

        assert abs(scale_down_down(amount_out, 10**12) - 9_999_475) <= 100

    def test_buy_usdc_with_dai(self) -> None:
        """Buy 10 USDC: about 10.000524 DAI."""
        amp = 5000 * AMP_PRECISION

        amount_in = calc_in_given_out(
            amp, _dai_usdc_usdt_balances(), 0, 1, scale_up(10_000_000, 10**12), FEE
        )

        expected = 10_000_524_328_839_166_557
        assert abs(scale_down_up(amount_in, 1) - expected) <= 10**13

    def test_ageur_to_eure(self) -> None:
        """Selling the token the pool is short of returns slightly more than sent."""
        amp = 100 * AMP_PRECISION
        balances = [Bfp.from_wei(126041615528606990697699), Bfp.from_wei(170162457652825667152980)]

        amount_out = calc_out_given_in(amp, balances, 0, 1, Bfp.from_wei(10 * ONE_18), FEE)

        assert abs(amount_out.value - 10_029_862_202_766_050_434) <= 10**13

    def test_fee_reduces_output(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = _dai_usdc_usdt_balances()
        amount = Bfp.from_wei(10 * ONE_18)

        with_fee = calc_out_given_in(amp, balances, 0, 1, amount, FEE)
        without_fee = calc_out_given_in(amp, balances, 0, 1, amount, Bfp(0))

        assert with_fee < without_fee

    def test_fee_increases_input(self) -> None:
        amp = 5000 * AMP_PRECISION
        balances = _dai_usdc_usdt_balances()
        amount = scale_up(10_000_000, 10**12)

        with_fee = calc_in_given_out(amp, balances, 0, 1, amount, FEE)
        without_fee = calc_in_given_out(amp, balances, 0, 1, amount, Bfp(0))

        assert with_fee > without_fee


class TestSpotPriceAfterSwap:
    """Analytic spot prices on the stable curve."""

    BALANCED = [Bfp(1_000_000 * ONE_18), Bfp(1_000_000 * ONE_18)]
    AMP = 200 * AMP_PRECISION

    def test_balanced_pool_is_at_par(self) -> None:
        price = spot_price_after_swap(self.AMP, self.BALANCED, 0, 1, Bfp(0), Bfp(0), SwapType.EXACT_IN)
        assert price == 1

    def test_fee_is_included(self) -> None:
        fee = Bfp.from_decimal(Decimal("0.01"))
        price = spot_price_after_swap(self.AMP, self.BALANCED, 0, 1, Bfp(0), fee, SwapType.EXACT_OUT)
        assert abs(price - 1 / Decimal("0.99")) < Decimal("1e-20")

    def test_derivatives_agree_at_par(self) -> None:
        """With no fee and no trade both derivatives measure the same slope."""
        exact_in = derivative_spot_price_after_swap(
            self.AMP, self.BALANCED, 0, 1, Bfp(0), Bfp(0), SwapType.EXACT_IN
        )
        exact_out = derivative_spot_price_after_swap(
            self.AMP, self.BALANCED, 0, 1, Bfp(0), Bfp(0), SwapType.EXACT_OUT
        )
        assert exact_in == exact_out
        assert exact_in > 0

    @pytest.mark.parametrize("swap_type", [SwapType.EXACT_IN, SwapType.EXACT_OUT])
    def test_price_rises_with_amount(self, swap_type: SwapType) -> None:
        balances = _dai_usdc_usdt_balances()
        amp = 5000 * AMP_PRECISION
        prices = [
            spot_price_after_swap(amp, balances, 0, 1, Bfp(amount * ONE_18), FEE, swap_type)
            for amount in (1, 10_000, 100_000)
        ]
        assert prices[0] < prices[1] < prices[2]

    def test_same_token_raises(self) -> None:
        with pytest.raises(SameTokenError):
            spot_price_after_swap(self.AMP, self.BALANCED, 1, 1, Bfp(0), Bfp(0), SwapType.EXACT_IN)

    @pytest.mark.parametrize("error", [SameTokenError, TokenIndexError])
    def test_index_errors_are_pool_errors(self, error: type) -> None:
        """StablePool reports these as a zero quote."""
        assert issubclass(error, PoolError)
