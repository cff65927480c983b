"""Pool wrappers and the shared pricing types.

Pool types supported:
- Linear pools (boosted main / wrapped / BPT)
- Stable pools (StableSwap / Curve-style)
"""

from .base import (
    PairType,
    PoolPairData,
    PoolToken,
    PoolType,
    StableSwapSolver,
    SwapType,
)

# Errors
from .errors import (
    InvalidFeeError,
    InvalidPoolStateError,
    InvalidRateError,
    InvalidScalingFactorError,
    InvalidTargetsError,
    MissingAmpError,
    NegativeNominalBalanceError,
    PoolError,
    SameTokenError,
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    TokenIndexError,
    TokenNotInPoolError,
    UnsupportedOperationError,
    ZeroBalanceError,
)
from .limits import LimitAmountCache, LimitCacheKey
from .linear import LinearParams, LinearPool, LinearPoolPairData
from .stable import StablePool, StablePoolPairData

__all__ = [
    # Shared types
    "PairType",
    "PoolPairData",
    "PoolToken",
    "PoolType",
    "StableSwapSolver",
    "SwapType",
    # Limits
    "LimitAmountCache",
    "LimitCacheKey",
    # Pools
    "LinearParams",
    "LinearPool",
    "LinearPoolPairData",
    "StablePool",
    "StablePoolPairData",
    # Errors
    "PoolError",
    "SameTokenError",
    "TokenIndexError",
    "TokenNotInPoolError",
    "UnsupportedOperationError",
    "InvalidFeeError",
    "InvalidRateError",
    "InvalidTargetsError",
    "InvalidScalingFactorError",
    "NegativeNominalBalanceError",
    "InvalidPoolStateError",
    "MissingAmpError",
    "ZeroBalanceError",
    "StableInvariantDidNotConverge",
    "StableGetBalanceDidNotConverge",
]
