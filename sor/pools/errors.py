"""Pool pricing error classes.

Linear pool errors are fatal for the call that raised them. The stable pool
wrapper is the only place that recovers from solver errors locally.
"""


class PoolError(Exception):
    """Base error for pool pricing operations."""

    pass


class TokenNotInPoolError(PoolError):
    """Requested token is not part of the pool."""

    pass


class UnsupportedOperationError(PoolError):
    """The pool cannot answer this query from its own state."""

    pass


class InvalidFeeError(PoolError):
    """Swap fee must be in range [0, 1)."""

    pass


class InvalidRateError(PoolError):
    """Wrapped token rate must be positive."""

    pass


class InvalidTargetsError(PoolError):
    """Lower target must not exceed upper target."""

    pass


class InvalidScalingFactorError(PoolError):
    """Scaling factor must be positive."""

    pass


class NegativeNominalBalanceError(PoolError):
    """Fees on the real balance exceed the balance itself.

    Indicates caller-supplied balances that violate the pool's invariants.
    """

    pass


class InvalidPoolStateError(PoolError):
    """Pool state lacks a field its pool type requires."""

    pass


class MissingAmpError(InvalidPoolStateError):
    """Stable pool state has no amplification parameter."""

    pass


class ZeroBalanceError(PoolError):
    """Token balance must be positive for swaps."""

    pass


class StableInvariantDidNotConverge(PoolError):
    """Newton-Raphson iteration for stable invariant D did not converge."""

    pass


class StableGetBalanceDidNotConverge(PoolError):
    """Newton-Raphson iteration for stable balance Y did not converge."""

    pass


class SameTokenError(PoolError, ValueError):
    """token_in and token_out are the same token."""

    pass


class TokenIndexError(PoolError, IndexError):
    """Token index is outside the pool's token list."""

    pass
