"""Stable pools: StableSwap solver and the pool wrapper."""

from .pool import StablePool, StablePoolPairData

__all__ = ["StablePool", "StablePoolPairData"]
