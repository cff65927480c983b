"""Test helpers module for shared test utilities.

- constants: Token addresses of the mock pools
- factories: Fixed-point and linear parameter factory functions
"""

from tests.helpers.constants import (
    AUSDT,
    BPT_AUSDT,
    DAI,
    STABLE_DAI_USDC_USDT,
    USDC,
    USDT,
    WETH,
)
from tests.helpers.factories import bfp, make_params

__all__ = [
    # Constants
    "AUSDT",
    "BPT_AUSDT",
    "DAI",
    "STABLE_DAI_USDC_USDT",
    "USDC",
    "USDT",
    "WETH",
    # Factories
    "bfp",
    "make_params",
]
