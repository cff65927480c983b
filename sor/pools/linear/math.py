"""Balancer linear pool math.

Core math for boosted linear pools, matching LinearMath.sol. A linear pool
holds a main token, a yield-bearing wrapped version of it and its own BPT.
Trades are priced on a piecewise-linear bonding curve: inside the target band
[lower_target, upper_target] main tokens are valued 1:1, outside it a fee is
charged on the distance to the band. The fee-adjusted main balance is the
"nominal" balance, and the pool invariant is

    invariant = nominal(main_balance) + wrapped_balance * rate

Rounding: every function returning an amount the trader receives rounds each
step down, every function returning an amount the trader pays rounds each step
up. The comment at the top of each quote states which case it is.

All amounts, balances and parameters are 18-decimal Bfp values.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sor.math.fixed_point import Bfp

from ..errors import (
    InvalidFeeError,
    InvalidRateError,
    InvalidTargetsError,
    NegativeNominalBalanceError,
    UnsupportedOperationError,
)

__all__ = [
    "LinearParams",
    "Approach",
    "to_nominal",
    "from_nominal",
    "derivative_to_nominal",
    "derivative_from_nominal",
    "invariant_up",
    "invariant_down",
    "bpt_out_per_main_in",
    "bpt_in_per_main_out",
    "bpt_in_per_wrapped_out",
    "wrapped_out_per_main_in",
    "wrapped_in_per_main_out",
    "main_in_per_bpt_out",
    "main_out_per_bpt_in",
    "main_out_per_wrapped_in",
    "main_in_per_wrapped_out",
    "bpt_out_per_wrapped_in",
    "wrapped_in_per_bpt_out",
    "wrapped_out_per_bpt_in",
    "tokens_out_given_exact_bpt_in",
    "spot_price_after_swap_bpt_out_per_main_in",
    "spot_price_after_swap_main_in_per_bpt_out",
    "spot_price_after_swap_main_out_per_bpt_in",
    "spot_price_after_swap_bpt_in_per_main_out",
    "derivative_spot_price_after_swap_bpt_out_per_main_in",
    "derivative_spot_price_after_swap_main_in_per_bpt_out",
    "derivative_spot_price_after_swap_main_out_per_bpt_in",
    "derivative_spot_price_after_swap_bpt_in_per_main_out",
    "spot_price_after_swap_exact_token_in_for_token_out",
    "spot_price_after_swap_token_in_for_exact_token_out",
    "derivative_spot_price_after_swap_exact_token_in_for_token_out",
    "derivative_spot_price_after_swap_token_in_for_exact_token_out",
]


@dataclass(frozen=True)
class LinearParams:
    """Per-quote snapshot of linear pool parameters.

    Attributes:
        fee: Swap fee charged outside the target band, in [0, 1)
        rate: Wrapped -> main exchange rate, must be positive
        lower_target: Main balance below which the fee applies
        upper_target: Main balance above which the fee applies
    """

    fee: Bfp
    rate: Bfp
    lower_target: Bfp
    upper_target: Bfp

    def __post_init__(self) -> None:
        if self.fee.value < 0 or self.fee.value >= Bfp.ONE:
            raise InvalidFeeError(f"Swap fee must be in range [0, 1), got {self.fee}")
        if self.rate.value <= 0:
            raise InvalidRateError(f"Rate must be positive, got {self.rate}")
        if self.lower_target > self.upper_target:
            raise InvalidTargetsError(
                f"lower_target {self.lower_target} exceeds upper_target {self.upper_target}"
            )


class Approach(Enum):
    """Side from which a breakpoint of the nominal transform is approached.

    FROM_BELOW is the left derivative: a breakpoint belongs to the lower
    segment. FROM_ABOVE is the right derivative: a breakpoint belongs to the
    upper segment. Use FROM_BELOW for a balance reached by decreasing and
    FROM_ABOVE for a balance reached by increasing.
    """

    FROM_BELOW = "from_below"
    FROM_ABOVE = "from_above"


_BELOW_BAND = 0
_IN_BAND = 1
_ABOVE_BAND = 2


# =============================================================================
# Nominal transform
# =============================================================================


def to_nominal(real: Bfp, params: LinearParams) -> Bfp:
    """Convert a real main balance into its fee-adjusted nominal balance.

    Fees are always rounded down: either direction would be consistent, and
    the directional rounding of each quote is applied by its caller.

    Raises:
        NegativeNominalBalanceError: If the fee below lower_target exceeds
            the balance itself
    """
    if real < params.lower_target:
        fees = Bfp(params.lower_target.value - real.value).mul_down(params.fee)
        return _deduct_fees(real, fees)
    if real <= params.upper_target:
        return real
    fees = Bfp(real.value - params.upper_target.value).mul_down(params.fee)
    return _deduct_fees(real, fees)


def _deduct_fees(real: Bfp, fees: Bfp) -> Bfp:
    if fees > real:
        raise NegativeNominalBalanceError(
            f"Fees {fees.value} exceed real main balance {real.value}"
        )
    return Bfp(real.value - fees.value)


def from_nominal(nominal: Bfp, params: LinearParams) -> Bfp:
    """Convert a nominal balance back into the real main balance.

    Since real = nominal + fees, rounding the fees down rounds real down.
    """
    one = Bfp.one()
    if nominal < params.lower_target:
        return nominal.add(params.fee.mul_down(params.lower_target)).div_down(one.add(params.fee))
    if nominal <= params.upper_target:
        return nominal
    return nominal.sub_checked(params.fee.mul_down(params.upper_target)).div_down(
        params.fee.complement()
    )


def _segment(amount: Bfp, params: LinearParams, approach: Approach) -> int:
    if approach is Approach.FROM_BELOW:
        if amount <= params.lower_target:
            return _BELOW_BAND
        if amount <= params.upper_target:
            return _IN_BAND
        return _ABOVE_BAND
    if amount < params.lower_target:
        return _BELOW_BAND
    if amount < params.upper_target:
        return _IN_BAND
    return _ABOVE_BAND


def derivative_to_nominal(amount: Bfp, params: LinearParams, approach: Approach) -> Bfp:
    """One-sided slope of to_nominal at a real balance: 1+fee, 1 or 1-fee."""
    segment = _segment(amount, params, approach)
    if segment == _BELOW_BAND:
        return Bfp.one().add(params.fee)
    if segment == _IN_BAND:
        return Bfp.one()
    return params.fee.complement()


def derivative_from_nominal(amount: Bfp, params: LinearParams, approach: Approach) -> Bfp:
    """One-sided slope of from_nominal at a nominal balance, rounded up."""
    one = Bfp.one()
    segment = _segment(amount, params, approach)
    if segment == _BELOW_BAND:
        return one.div_up(one.add(params.fee))
    if segment == _IN_BAND:
        return one
    return one.div_up(params.fee.complement())


# =============================================================================
# Invariant
# =============================================================================


def invariant_up(nominal_main_balance: Bfp, wrapped_balance: Bfp, params: LinearParams) -> Bfp:
    return nominal_main_balance.add(wrapped_balance.mul_up(params.rate))


def invariant_down(nominal_main_balance: Bfp, wrapped_balance: Bfp, params: LinearParams) -> Bfp:
    return nominal_main_balance.add(wrapped_balance.mul_down(params.rate))


# =============================================================================
# Swap quotes
# =============================================================================


def bpt_out_per_main_in(
    main_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """BPT minted for an exact main token input.

    Formula:
        bpt_out = supply * (nominal(main + main_in) - nominal(main)) / invariant

    With zero supply the first depositor receives the nominal amount directly.
    """
    # Amount out, so we round down overall.
    if bpt_supply.value == 0:
        return to_nominal(main_in, params)

    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.add(main_in), params)
    delta_nominal_main = after_nominal_main.sub_checked(previous_nominal_main)
    invariant = invariant_up(previous_nominal_main, wrapped_balance, params)
    return bpt_supply.mul_down(delta_nominal_main).div_down(invariant)


def bpt_in_per_main_out(
    main_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """BPT burned for an exact main token output."""
    # Amount in, so we round up overall.
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.sub_checked(main_out), params)
    delta_nominal_main = previous_nominal_main.sub_checked(after_nominal_main)
    invariant = invariant_down(previous_nominal_main, wrapped_balance, params)
    return bpt_supply.mul_up(delta_nominal_main).div_up(invariant)


def bpt_in_per_wrapped_out(
    wrapped_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """BPT burned for an exact wrapped token output."""
    # Amount in, so we round up overall.
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = invariant_up(nominal_main, wrapped_balance, params)
    new_wrapped_balance = wrapped_balance.sub_checked(wrapped_out)
    new_invariant = invariant_down(nominal_main, new_wrapped_balance, params)
    new_bpt_balance = bpt_supply.mul_down(new_invariant).div_down(previous_invariant)
    return bpt_supply.sub_checked(new_bpt_balance)


def wrapped_out_per_main_in(main_in: Bfp, main_balance: Bfp, params: LinearParams) -> Bfp:
    # Amount out, so we round down overall.
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.add(main_in), params)
    delta_nominal_main = after_nominal_main.sub_checked(previous_nominal_main)
    return delta_nominal_main.div_down(params.rate)


def wrapped_in_per_main_out(main_out: Bfp, main_balance: Bfp, params: LinearParams) -> Bfp:
    # Amount in, so we round up overall.
    previous_nominal_main = to_nominal(main_balance, params)
    after_nominal_main = to_nominal(main_balance.sub_checked(main_out), params)
    delta_nominal_main = previous_nominal_main.sub_checked(after_nominal_main)
    return delta_nominal_main.div_up(params.rate)


def main_in_per_bpt_out(
    bpt_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """Main token required to mint an exact BPT amount.

    Inverts the invariant ratio: the nominal main balance must grow by
    invariant * bpt_out / supply, and the real amount is recovered with
    from_nominal.
    """
    # Amount in, so we round up overall.
    if bpt_supply.value == 0:
        return from_nominal(bpt_out, params)

    previous_nominal_main = to_nominal(main_balance, params)
    invariant = invariant_up(previous_nominal_main, wrapped_balance, params)
    delta_nominal_main = invariant.mul_up(bpt_out).div_up(bpt_supply)
    after_nominal_main = previous_nominal_main.add(delta_nominal_main)
    new_main_balance = from_nominal(after_nominal_main, params)
    return new_main_balance.sub_checked(main_balance)


def main_out_per_bpt_in(
    bpt_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """Main token paid out for burning an exact BPT amount."""
    # Amount out, so we round down overall.
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = invariant_down(previous_nominal_main, wrapped_balance, params)
    delta_nominal_main = invariant.mul_down(bpt_in).div_down(bpt_supply)
    after_nominal_main = previous_nominal_main.sub_checked(delta_nominal_main)
    new_main_balance = from_nominal(after_nominal_main, params)
    return main_balance.sub_checked(new_main_balance)


def main_out_per_wrapped_in(wrapped_in: Bfp, main_balance: Bfp, params: LinearParams) -> Bfp:
    # Amount out, so we round down overall.
    previous_nominal_main = to_nominal(main_balance, params)
    delta_nominal_main = wrapped_in.mul_down(params.rate)
    after_nominal_main = previous_nominal_main.sub_checked(delta_nominal_main)
    new_main_balance = from_nominal(after_nominal_main, params)
    return main_balance.sub_checked(new_main_balance)


def main_in_per_wrapped_out(wrapped_out: Bfp, main_balance: Bfp, params: LinearParams) -> Bfp:
    # Amount in, so we round up overall.
    previous_nominal_main = to_nominal(main_balance, params)
    delta_nominal_main = wrapped_out.mul_up(params.rate)
    after_nominal_main = previous_nominal_main.add(delta_nominal_main)
    new_main_balance = from_nominal(after_nominal_main, params)
    return new_main_balance.sub_checked(main_balance)


def bpt_out_per_wrapped_in(
    wrapped_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """BPT minted for an exact wrapped token input."""
    # Amount out, so we round down overall.
    if bpt_supply.value == 0:
        # First deposit: BPT equals the nominal main value of the wrapped tokens
        return wrapped_in.mul_down(params.rate)

    nominal_main = to_nominal(main_balance, params)
    previous_invariant = invariant_up(nominal_main, wrapped_balance, params)
    new_wrapped_balance = wrapped_balance.add(wrapped_in)
    new_invariant = invariant_down(nominal_main, new_wrapped_balance, params)
    new_bpt_balance = bpt_supply.mul_down(new_invariant).div_down(previous_invariant)
    return new_bpt_balance.sub_checked(bpt_supply)


def wrapped_in_per_bpt_out(
    bpt_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """Wrapped token required to mint an exact BPT amount."""
    # Amount in, so we round up overall.
    if bpt_supply.value == 0:
        return bpt_out.div_up(params.rate)

    nominal_main = to_nominal(main_balance, params)
    previous_invariant = invariant_up(nominal_main, wrapped_balance, params)
    new_bpt_balance = bpt_supply.add(bpt_out)
    new_wrapped_balance = (
        new_bpt_balance.div_up(bpt_supply)
        .mul_up(previous_invariant)
        .sub_checked(nominal_main)
        .div_up(params.rate)
    )
    return new_wrapped_balance.sub_checked(wrapped_balance)


def wrapped_out_per_bpt_in(
    bpt_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """Wrapped token paid out for burning an exact BPT amount."""
    # Amount out, so we round down overall.
    nominal_main = to_nominal(main_balance, params)
    previous_invariant = invariant_up(nominal_main, wrapped_balance, params)
    new_bpt_balance = bpt_supply.sub_checked(bpt_in)
    new_wrapped_balance = (
        new_bpt_balance.div_up(bpt_supply)
        .mul_up(previous_invariant)
        .sub_checked(nominal_main)
        .div_up(params.rate)
    )
    return wrapped_balance.sub_checked(new_wrapped_balance)


def tokens_out_given_exact_bpt_in(
    balances: list[Bfp],
    bpt_amount_in: Bfp,
    bpt_total_supply: Bfp,
    bpt_index: int,
) -> list[Bfp | None]:
    """Proportional exit: every token balance scaled by bpt_in / supply.

    The BPT entry is None: those tokens are the preminted, undistributed
    supply, not liquidity.
    """
    # Amount out, so we round down overall.
    bpt_ratio = bpt_amount_in.div_down(bpt_total_supply)
    return [
        None if i == bpt_index else balance.mul_down(bpt_ratio)
        for i, balance in enumerate(balances)
    ]


# =============================================================================
# Spot price after swap
# =============================================================================


def _pool_factor_up(invariant: Bfp, bpt_supply: Bfp) -> Bfp:
    if bpt_supply.value == 0:
        return Bfp.one()
    return invariant.div_up(bpt_supply)


def spot_price_after_swap_bpt_out_per_main_in(
    main_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """Main-per-BPT price after selling an exact main amount for BPT."""
    final_main_balance = main_balance.add(main_in)
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = invariant_down(previous_nominal_main, wrapped_balance, params)
    pool_factor = _pool_factor_up(invariant, bpt_supply)
    return pool_factor.div_up(
        derivative_to_nominal(final_main_balance, params, Approach.FROM_ABOVE)
    )


def spot_price_after_swap_main_in_per_bpt_out(
    bpt_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """Main-per-BPT price after buying an exact BPT amount with main."""
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = invariant_down(previous_nominal_main, wrapped_balance, params)
    pool_factor = _pool_factor_up(invariant, bpt_supply)
    delta_nominal_main = bpt_out.mul_up(pool_factor)
    after_nominal_main = previous_nominal_main.add(delta_nominal_main)
    return pool_factor.mul_up(
        derivative_from_nominal(after_nominal_main, params, Approach.FROM_ABOVE)
    )


def spot_price_after_swap_main_out_per_bpt_in(
    bpt_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """BPT-per-main price after selling an exact BPT amount for main.

    The post-trade nominal balance floors at zero so that the router can try
    amounts past the pool's depth without faulting.
    """
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = invariant_down(previous_nominal_main, wrapped_balance, params)
    pool_factor = invariant.div_down(bpt_supply)
    delta_nominal_main = bpt_in.mul_down(pool_factor)
    after_nominal_main = previous_nominal_main.sub(delta_nominal_main)
    one = Bfp.one()
    return one.div_up(
        pool_factor.mul_up(
            derivative_from_nominal(after_nominal_main, params, Approach.FROM_BELOW)
        )
    )


def spot_price_after_swap_bpt_in_per_main_out(
    main_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    """BPT-per-main price after buying an exact main amount with BPT."""
    final_main_balance = main_balance.sub_checked(main_out)
    previous_nominal_main = to_nominal(main_balance, params)
    invariant = invariant_down(previous_nominal_main, wrapped_balance, params)
    pool_factor = invariant.div_up(bpt_supply)
    return derivative_to_nominal(final_main_balance, params, Approach.FROM_BELOW).div_up(
        pool_factor
    )


# Derivative of the spot price is zero everywhere except at the two targets,
# where it is unbounded. The pathology is ignored: these return zero and the
# amount optimizer is expected to behave well around the breakpoints.


def derivative_spot_price_after_swap_bpt_out_per_main_in(
    main_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    return Bfp.zero()


def derivative_spot_price_after_swap_main_in_per_bpt_out(
    bpt_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    return Bfp.zero()


def derivative_spot_price_after_swap_main_out_per_bpt_in(
    bpt_in: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    return Bfp.zero()


def derivative_spot_price_after_swap_bpt_in_per_main_out(
    main_out: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    return Bfp.zero()


# A main <-> wrapped price needs the BPT leg, which belongs to the router.


def spot_price_after_swap_exact_token_in_for_token_out(
    amount: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    raise UnsupportedOperationError("Token -> token spot price is not available for linear pools")


def spot_price_after_swap_token_in_for_exact_token_out(
    amount: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    raise UnsupportedOperationError("Token -> token spot price is not available for linear pools")


def derivative_spot_price_after_swap_exact_token_in_for_token_out(
    amount: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    raise UnsupportedOperationError(
        "Token -> token spot price derivative is not available for linear pools"
    )


def derivative_spot_price_after_swap_token_in_for_exact_token_out(
    amount: Bfp,
    main_balance: Bfp,
    wrapped_balance: Bfp,
    bpt_supply: Bfp,
    params: LinearParams,
) -> Bfp:
    raise UnsupportedOperationError(
        "Token -> token spot price derivative is not available for linear pools"
    )
