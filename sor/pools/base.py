"""Shared pool types.

Enumerations and the pair-data base shared by the pool wrappers, plus the
interface of the StableSwap solver the stable pool delegates to.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable

from sor.math.fixed_point import Bfp
from sor.models.pool import SubgraphPool
from sor.models.types import normalize_address, parse_fixed


class SwapType(str, Enum):
    """Which leg of the trade the caller fixes."""

    EXACT_IN = "swapExactIn"
    EXACT_OUT = "swapExactOut"


class PoolType(str, Enum):
    STABLE = "Stable"
    LINEAR = "Linear"


class PairType(Enum):
    """Direction of a trade through a linear pool."""

    MAIN_TO_BPT = "main_to_bpt"
    BPT_TO_MAIN = "bpt_to_main"
    WRAPPED_TO_BPT = "wrapped_to_bpt"
    BPT_TO_WRAPPED = "bpt_to_wrapped"
    MAIN_TO_WRAPPED = "main_to_wrapped"
    WRAPPED_TO_MAIN = "wrapped_to_main"


@dataclass(frozen=True)
class PoolPairData:
    """Snapshot of a pool restricted to one (token_in, token_out) pair.

    Attributes:
        id: Pool id
        address: Pool address (also the BPT address)
        pool_type: Kind of pool the data was parsed from
        token_in: Normalized input token address
        token_out: Normalized output token address
        balance_in: Input token balance in native decimals
        balance_out: Output token balance in native decimals
        decimals_in: Input token decimals
        decimals_out: Output token decimals
        swap_fee: Swap fee as 18-decimal fixed point
        snapshot: Pool state version the data was parsed from
    """

    id: str
    address: str
    pool_type: PoolType
    token_in: str
    token_out: str
    balance_in: int
    balance_out: int
    decimals_in: int
    decimals_out: int
    swap_fee: Bfp
    snapshot: int


@runtime_checkable
class StableSwapSolver(Protocol):
    """External StableSwap invariant solver.

    Balances and amounts are 18-decimal fixed point, amp is scaled by
    AMP_PRECISION. Implementations raise on failure; callers decide how to
    recover.
    """

    def calc_out_given_in(
        self,
        amp: int,
        balances: list[Bfp],
        token_index_in: int,
        token_index_out: int,
        amount_in: Bfp,
        fee: Bfp,
    ) -> Bfp: ...

    def calc_in_given_out(
        self,
        amp: int,
        balances: list[Bfp],
        token_index_in: int,
        token_index_out: int,
        amount_out: Bfp,
        fee: Bfp,
    ) -> Bfp: ...

    def spot_price_after_swap(
        self,
        amp: int,
        balances: list[Bfp],
        token_index_in: int,
        token_index_out: int,
        amount: Bfp,
        fee: Bfp,
        swap_type: SwapType,
    ) -> Decimal: ...

    def derivative_spot_price_after_swap(
        self,
        amp: int,
        balances: list[Bfp],
        token_index_in: int,
        token_index_out: int,
        amount: Bfp,
        fee: Bfp,
        swap_type: SwapType,
    ) -> Decimal: ...


@dataclass
class PoolToken:
    """Mutable per-token pool state.

    Attributes:
        address: Normalized token address
        balance: Balance in the token's native decimals
        decimals: Token decimals (0-18)
        price_rate: Rate provider value (1 for plain tokens)
    """

    address: str
    balance: int
    decimals: int
    price_rate: Decimal = Decimal(1)

    def __post_init__(self) -> None:
        self.address = normalize_address(self.address)


def parse_pool_tokens(pool: SubgraphPool) -> list[PoolToken]:
    """Convert indexer token state into PoolTokens with native integer balances."""
    return [
        PoolToken(
            address=token.address,
            balance=parse_fixed(token.balance, token.decimals),
            decimals=token.decimals,
            price_rate=Decimal(token.price_rate),
        )
        for token in pool.tokens
    ]


def find_token_index(tokens: list[PoolToken], token: str) -> int | None:
    """Position of token in the pool's token list, or None if absent."""
    token_norm = normalize_address(token)
    for i, pool_token in enumerate(tokens):
        if pool_token.address == token_norm:
            return i
    return None
