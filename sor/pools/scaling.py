"""Scaling and fee helpers.

Functions for scaling token amounts between native decimals and 18-decimal
fixed-point, and for applying swap fees.
"""

from sor.math.fixed_point import Bfp

from .errors import InvalidFeeError, InvalidScalingFactorError


def scaling_factor_for(decimals: int) -> int:
    """Factor that lifts a token with the given decimals to 18 decimals.

    Raises:
        InvalidScalingFactorError: If decimals is outside [0, 18]
    """
    if not 0 <= decimals <= 18:
        raise InvalidScalingFactorError(f"Token decimals must be in [0, 18], got {decimals}")
    return 10 ** (18 - decimals)


def scale_up(amount: int, scaling_factor: int) -> Bfp:
    """Scale token amount to 18 decimals for internal math.

    Args:
        amount: Amount in token's native decimals
        scaling_factor: Factor to scale by (e.g., 10^12 for 6-decimal tokens)

    Returns:
        Amount as Bfp (18-decimal fixed-point)

    Raises:
        InvalidScalingFactorError: If scaling_factor <= 0
    """
    if scaling_factor <= 0:
        raise InvalidScalingFactorError(f"Scaling factor must be positive, got {scaling_factor}")
    return Bfp.from_wei(amount * scaling_factor)


def scale_down_down(bfp: Bfp, scaling_factor: int) -> int:
    """Scale 18-decimal result back to token decimals, rounding down.

    Raises:
        InvalidScalingFactorError: If scaling_factor <= 0
    """
    if scaling_factor <= 0:
        raise InvalidScalingFactorError(f"Scaling factor must be positive, got {scaling_factor}")
    return bfp.value // scaling_factor


def scale_down_up(bfp: Bfp, scaling_factor: int) -> int:
    """Scale 18-decimal result back to token decimals, rounding up.

    Raises:
        InvalidScalingFactorError: If scaling_factor <= 0
    """
    if scaling_factor <= 0:
        raise InvalidScalingFactorError(f"Scaling factor must be positive, got {scaling_factor}")
    if bfp.value == 0:
        return 0
    return (bfp.value - 1) // scaling_factor + 1


def subtract_swap_fee_amount(amount: Bfp, swap_fee: Bfp) -> Bfp:
    """Subtract swap fee from an exact input amount.

    The fee is rounded up, so the amount that reaches the pool rounds down.

    Raises:
        InvalidFeeError: If swap_fee is not in range [0, 1)
    """
    _validate_fee(swap_fee)
    fee_amount = amount.mul_up(swap_fee)
    return amount.sub(fee_amount)


def add_swap_fee_amount(amount: Bfp, swap_fee: Bfp) -> Bfp:
    """Add swap fee to a calculated input amount.

    Formula: amount_with_fee = amount / (1 - fee), rounded up

    Raises:
        InvalidFeeError: If swap_fee is not in range [0, 1)
    """
    _validate_fee(swap_fee)
    return amount.div_up(swap_fee.complement())


def _validate_fee(swap_fee: Bfp) -> None:
    if swap_fee.value < 0 or swap_fee.value >= Bfp.ONE:
        raise InvalidFeeError(f"Swap fee must be in range [0, 1), got {swap_fee}")
