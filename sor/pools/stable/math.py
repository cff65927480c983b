"""StableSwap invariant solver.

Default StableSwapSolver for StablePool: calc_out_given_in and
calc_in_given_out at module level satisfy the protocol, so the module itself
is passed as the solver. Balances are 18-decimal Bfp values and amp carries
AMP_PRECISION.

The invariant D and the unknown balance are both found by Newton-Raphson,
following StableMath.sol step for step. Products the contract computes in
uint256 are checked with SafeInt, so a pool that would revert on chain raises
Uint256Overflow here.
"""

from decimal import Decimal, localcontext

from sor.config import AMP_PRECISION
from sor.math.fixed_point import Bfp
from sor.safe_int import S, SafeInt

from ..base import SwapType
from ..errors import (
    SameTokenError,
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    TokenIndexError,
    ZeroBalanceError,
)
from ..scaling import add_swap_fee_amount, subtract_swap_fee_amount

_MAX_NEWTON_STEPS = 255

# Working precision for spot prices; balances reach 2**112 wei
_SPOT_PRICE_PRECISION = 60


def _within_one(a: SafeInt, b: SafeInt) -> bool:
    return abs(a.value - b.value) <= 1


def _check_index(name: str, index: int, n_coins: int) -> None:
    if not 0 <= index < n_coins:
        raise TokenIndexError(f"{name} {index} out of range for {n_coins} tokens")


def calculate_invariant(amp: int, balances: list[Bfp]) -> Bfp:
    """Invariant D of a stable pool.

    Balancer's form iterates with A*n rather than A*n^n; the n^n factor enters
    through d_p, which is built up one balance at a time.

    Raises:
        ZeroBalanceError: If any balance is zero
        StableInvariantDidNotConverge: If D moves by more than 1 wei after
            the last step
        Uint256Overflow: If an intermediate product leaves uint256 range
    """
    n = len(balances)
    if n == 0:
        return Bfp(0)
    for i, balance in enumerate(balances):
        if balance.value <= 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")

    total = S(sum(balance.value for balance in balances))
    amp_n = S(amp) * n
    invariant = total

    for _ in range(_MAX_NEWTON_STEPS):
        # d_p = D^(n+1) / (n^n * prod(balances))
        d_p = invariant
        for balance in balances:
            d_p = (d_p * invariant).to_uint256() // (S(n) * balance.value)

        numerator = ((amp_n * total // AMP_PRECISION + d_p * n) * invariant).to_uint256()
        denominator = (amp_n - AMP_PRECISION) * invariant // AMP_PRECISION + S(n + 1) * d_p

        previous = invariant
        invariant = numerator // denominator
        if _within_one(invariant, previous):
            return Bfp(invariant.value)

    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {_MAX_NEWTON_STEPS} iterations"
    )


def get_token_balance_given_invariant_and_all_other_balances(
    amp: int,
    balances: list[Bfp],
    invariant: Bfp,
    token_index: int,
) -> Bfp:
    """Balance of token_index that keeps the invariant at D.

    The current value at token_index only enters the c term, matching the
    contract.

    Raises:
        StableGetBalanceDidNotConverge: If the iteration diverges or stalls
        TokenIndexError: If token_index is out of range
    """
    n = len(balances)
    _check_index("token_index", token_index, n)

    d = S(invariant.value)
    amp_total = S(amp) * n

    total = S(balances[0].value)
    p_d = S(balances[0].value) * n
    for balance in balances[1:]:
        p_d = p_d * balance.value * n // d
        total = total + balance.value
    own_balance = balances[token_index].value
    others = total - own_balance

    d_squared = (d * d).to_uint256()
    amp_p_d = amp_total * p_d
    if amp_p_d == 0:
        raise StableGetBalanceDidNotConverge("amp_times_p_d is zero")
    c = d_squared.ceiling_div(amp_p_d) * AMP_PRECISION * own_balance
    b = others + d // amp_total * AMP_PRECISION

    y = (d_squared + c).ceiling_div(d + b)
    for _ in range(_MAX_NEWTON_STEPS):
        # y = (y^2 + c) / (2y + b - D)
        denominator = 2 * y.value + b.value - d.value
        if denominator <= 0:
            raise StableGetBalanceDidNotConverge("Denominator became non-positive")

        previous = y
        y = (y * y + c).to_uint256().ceiling_div(denominator)
        if _within_one(y, previous):
            return Bfp(y.value)

    raise StableGetBalanceDidNotConverge(
        f"Stable get_balance did not converge after {_MAX_NEWTON_STEPS} iterations"
    )


def _check_pair(n_coins: int, token_index_in: int, token_index_out: int) -> None:
    _check_index("token_index_in", token_index_in, n_coins)
    _check_index("token_index_out", token_index_out, n_coins)
    if token_index_in == token_index_out:
        raise SameTokenError("Cannot swap token with itself")


def _with_balance(balances: list[Bfp], index: int, value: int) -> list[Bfp]:
    updated = list(balances)
    updated[index] = Bfp(value)
    return updated


def stable_calc_out_given_in(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount_in: Bfp,
) -> Bfp:
    """Output for an input that has already had the fee taken off.

    One wei is held back from the result so rounding in the solver can never
    favour the trader. A trade too small to move the output balance yields 0.
    """
    _check_pair(len(balances), token_index_in, token_index_out)

    invariant = calculate_invariant(amp, balances)
    balance_in = balances[token_index_in].value
    balance_out = balances[token_index_out].value

    new_balance_out = get_token_balance_given_invariant_and_all_other_balances(
        amp,
        _with_balance(balances, token_index_in, balance_in + amount_in.value),
        invariant,
        token_index_out,
    )
    if new_balance_out.value >= balance_out:
        return Bfp(0)
    return Bfp(balance_out - new_balance_out.value - 1)


def stable_calc_in_given_out(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount_out: Bfp,
) -> Bfp:
    """Input, before fees, needed for an exact output; one wei is added.

    Raises:
        ZeroBalanceError: If amount_out would empty the output balance
    """
    _check_pair(len(balances), token_index_in, token_index_out)

    balance_out = balances[token_index_out].value
    if amount_out.value >= balance_out:
        raise ZeroBalanceError("amount_out must be less than balance_out")

    invariant = calculate_invariant(amp, balances)
    new_balance_in = get_token_balance_given_invariant_and_all_other_balances(
        amp,
        _with_balance(balances, token_index_out, balance_out - amount_out.value),
        invariant,
        token_index_in,
    )
    return Bfp(new_balance_in.value - balances[token_index_in].value + 1)


def calc_out_given_in(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount_in: Bfp,
    fee: Bfp,
) -> Bfp:
    """Exact-in swap: the fee (rounded up) is taken from amount_in first."""
    return stable_calc_out_given_in(
        amp, balances, token_index_in, token_index_out, subtract_swap_fee_amount(amount_in, fee)
    )


def calc_in_given_out(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount_out: Bfp,
    fee: Bfp,
) -> Bfp:
    """Exact-out swap: the raw input is grossed up by 1 / (1 - fee), rounded up."""
    amount_in = stable_calc_in_given_out(amp, balances, token_index_in, token_index_out, amount_out)
    return add_swap_fee_amount(amount_in, fee)


# =============================================================================
# Spot price after swap
# =============================================================================


def _balances_after_swap(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount: Bfp,
    fee: Bfp,
    swap_type: SwapType,
) -> list[Bfp]:
    _check_pair(len(balances), token_index_in, token_index_out)
    if amount.value == 0:
        return list(balances)

    balance_in = balances[token_index_in].value
    balance_out = balances[token_index_out].value
    if swap_type is SwapType.EXACT_IN:
        # The fee stays in the pool but does not move the curve
        amount_in = subtract_swap_fee_amount(amount, fee)
        amount_out = stable_calc_out_given_in(amp, balances, token_index_in, token_index_out, amount_in)
    else:
        amount_out = amount
        amount_in = stable_calc_in_given_out(amp, balances, token_index_in, token_index_out, amount_out)

    after = _with_balance(balances, token_index_in, balance_in + amount_in.value)
    return _with_balance(after, token_index_out, balance_out - amount_out.value)


def _price_and_partials(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
) -> tuple[Decimal, Decimal, Decimal]:
    """Marginal price p = -dx/dy along the curve and its partials in x and y.

    With F = A*n*S + D - A*n*D - K and K = D^(n+1) / (n^n * prod(balances)),
    dF/dx_i = A*n + K / x_i, so p = (A*n + K/y) / (A*n + K/x), where x is
    the input balance and y the output balance. Must run inside a context
    with _SPOT_PRICE_PRECISION.
    """
    n = len(balances)
    invariant = calculate_invariant(amp, balances).to_decimal()
    human = [balance.to_decimal() for balance in balances]

    product = Decimal(1)
    for balance in human:
        product *= balance
    k = invariant ** (n + 1) / (Decimal(n) ** n * product)
    amp_n = Decimal(amp) * n / AMP_PRECISION

    x = human[token_index_in]
    y = human[token_index_out]
    g_x = amp_n + k / x
    g_y = amp_n + k / y
    # K falls as either balance grows, hence the factor 2 on the diagonal
    dg_x_dx = -2 * k / (x * x)
    dg_y_dy = -2 * k / (y * y)
    cross = -k / (x * y)

    price = g_y / g_x
    dp_dx = (cross * g_x - g_y * dg_x_dx) / (g_x * g_x)
    dp_dy = (dg_y_dy * g_x - g_y * cross) / (g_x * g_x)
    return price, dp_dx, dp_dy


def spot_price_after_swap(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount: Bfp,
    fee: Bfp,
    swap_type: SwapType,
) -> Decimal:
    """Price in token_in per token_out, fee included, once amount has traded.

    amount is the input for EXACT_IN and the output for EXACT_OUT.
    """
    after = _balances_after_swap(amp, balances, token_index_in, token_index_out, amount, fee, swap_type)
    with localcontext() as ctx:
        ctx.prec = _SPOT_PRICE_PRECISION
        price, _, _ = _price_and_partials(amp, after, token_index_in, token_index_out)
        return price / fee.complement().to_decimal()


def derivative_spot_price_after_swap(
    amp: int,
    balances: list[Bfp],
    token_index_in: int,
    token_index_out: int,
    amount: Bfp,
    fee: Bfp,
    swap_type: SwapType,
) -> Decimal:
    """Rate of change of spot_price_after_swap with respect to amount."""
    after = _balances_after_swap(amp, balances, token_index_in, token_index_out, amount, fee, swap_type)
    with localcontext() as ctx:
        ctx.prec = _SPOT_PRICE_PRECISION
        price, dp_dx, dp_dy = _price_and_partials(amp, after, token_index_in, token_index_out)
        if swap_type is SwapType.EXACT_IN:
            # x grows by (1 - fee) per unit sold, which cancels the fee divisor
            return dp_dx - dp_dy / price
        return (price * dp_dx - dp_dy) / fee.complement().to_decimal()
