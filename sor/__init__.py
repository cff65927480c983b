"""Balancer pool pricing for smart order routing."""

from sor.pools import LinearPool, StablePool

__version__ = "0.1.0"
__all__ = ["LinearPool", "StablePool", "__version__"]
