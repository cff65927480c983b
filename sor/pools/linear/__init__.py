"""Boosted linear pools: piecewise nominal-balance math and the pool wrapper."""

from .math import Approach, LinearParams
from .pool import LinearPool, LinearPoolPairData

__all__ = ["Approach", "LinearParams", "LinearPool", "LinearPoolPairData"]
