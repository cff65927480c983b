"""Stable pool wrapper.

Turns raw stable pool state into pair data and forwards quotes to a
StableSwapSolver. Amounts cross this boundary in the tokens' native decimals;
the solver works on 18-decimal balances. Solver failures are reported as a
zero quote so the router treats the pool as having no liquidity for that trade
and moves on. Spot prices are forwarded to the solver as they are and raise
on failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

import structlog

from sor.config import DEFAULT_PRICING_CONFIG, PricingConfig
from sor.math.fixed_point import Bfp
from sor.models.pool import SubgraphPool
from sor.models.types import format_fixed, normalize_address, parse_fixed

from ..base import (
    PoolPairData,
    PoolToken,
    PoolType,
    StableSwapSolver,
    SwapType,
    find_token_index,
    parse_pool_tokens,
)
from ..errors import MissingAmpError, PoolError, SameTokenError, TokenNotInPoolError
from ..limits import LimitAmountCache, LimitCacheKey
from ..scaling import scale_down_down, scale_down_up, scale_up, scaling_factor_for
from . import math as stable_math

logger = structlog.get_logger()

# Amp is reported with 3 implicit decimals (AMP_PRECISION = 1000)
AMP_DECIMALS = 3


@dataclass(frozen=True)
class StablePoolPairData(PoolPairData):
    """Stable pool snapshot for one token pair.

    Attributes:
        all_balances: Every token balance in human units
        all_balances_scaled: Every token balance at 18 decimals
        amp: Amplification parameter scaled by AMP_PRECISION
        token_index_in: Position of token_in in the pool
        token_index_out: Position of token_out in the pool
    """

    all_balances: tuple[Decimal, ...]
    all_balances_scaled: tuple[int, ...]
    amp: int
    token_index_in: int
    token_index_out: int


class StablePool:
    """Balancer stable pool (StableSwap / Curve-style)."""

    pool_type = PoolType.STABLE

    def __init__(
        self,
        id: str,
        address: str,
        amp: int,
        swap_fee: Bfp,
        total_shares: int,
        tokens: list[PoolToken],
        *,
        solver: StableSwapSolver | None = None,
        config: PricingConfig = DEFAULT_PRICING_CONFIG,
    ) -> None:
        self.id = id
        self.address = normalize_address(address)
        self.amp = amp
        self.swap_fee = swap_fee
        self.total_shares = total_shares
        self.tokens = tokens
        self.solver: StableSwapSolver = solver if solver is not None else stable_math
        self.config = config
        self.snapshot = 0

    @classmethod
    def from_pool(
        cls,
        pool: SubgraphPool,
        *,
        solver: StableSwapSolver | None = None,
        config: PricingConfig = DEFAULT_PRICING_CONFIG,
    ) -> StablePool:
        """Build from indexer state.

        Raises:
            MissingAmpError: If the pool has no amplification parameter
        """
        if pool.amp is None:
            raise MissingAmpError(f"Stable pool {pool.id} missing amp factor")
        return cls(
            id=pool.id,
            address=pool.address,
            amp=parse_fixed(pool.amp, AMP_DECIMALS),
            swap_fee=Bfp(parse_fixed(pool.swap_fee, 18)),
            total_shares=parse_fixed(pool.total_shares, 18),
            tokens=parse_pool_tokens(pool),
            solver=solver,
            config=config,
        )

    @property
    def tokens_list(self) -> list[str]:
        return [token.address for token in self.tokens]

    def parse_pool_pair_data(self, token_in: str, token_out: str) -> StablePoolPairData:
        """Snapshot the pool for a token pair.

        Raises:
            TokenNotInPoolError: If either token is not in the pool
            SameTokenError: If token_in and token_out are the same token
        """
        index_in = find_token_index(self.tokens, token_in)
        if index_in is None:
            raise TokenNotInPoolError(f"Pool {self.id} does not contain token_in {token_in}")
        index_out = find_token_index(self.tokens, token_out)
        if index_out is None:
            raise TokenNotInPoolError(f"Pool {self.id} does not contain token_out {token_out}")
        if index_in == index_out:
            raise SameTokenError(f"Cannot swap {token_in} with itself in pool {self.id}")

        t_in = self.tokens[index_in]
        t_out = self.tokens[index_out]

        return StablePoolPairData(
            id=self.id,
            address=self.address,
            pool_type=self.pool_type,
            token_in=t_in.address,
            token_out=t_out.address,
            balance_in=t_in.balance,
            balance_out=t_out.balance,
            decimals_in=t_in.decimals,
            decimals_out=t_out.decimals,
            swap_fee=self.swap_fee,
            snapshot=self.snapshot,
            all_balances=tuple(format_fixed(t.balance, t.decimals) for t in self.tokens),
            all_balances_scaled=tuple(
                t.balance * scaling_factor_for(t.decimals) for t in self.tokens
            ),
            amp=self.amp,
            token_index_in=index_in,
            token_index_out=index_out,
        )

    def get_normalized_liquidity(self, pair_data: StablePoolPairData) -> Decimal:
        """Approximate liquidity: balance_out scaled by amp.

        The true normalized liquidity of a StableSwap curve is far more
        involved; the router only uses this to rank pools.
        """
        return format_fixed(pair_data.balance_out * pair_data.amp, pair_data.decimals_out + AMP_DECIMALS)

    def get_limit_amount_swap(
        self,
        pair_data: StablePoolPairData,
        swap_type: SwapType,
        cache: LimitAmountCache | None = None,
    ) -> int:
        """Largest trade size (native units) the router may send through this pair."""

        def compute() -> int:
            if swap_type is SwapType.EXACT_IN:
                ratio = self.config.max_in_ratio_bfp
                return Bfp(pair_data.balance_in).mul_down(ratio).value
            ratio = self.config.max_out_ratio_bfp
            return Bfp(pair_data.balance_out).mul_down(ratio).value

        if cache is None:
            return compute()
        return cache.get_or_compute(LimitCacheKey.for_pair(pair_data, swap_type), compute)

    def update_token_balance(self, token: str, new_balance: int) -> None:
        """Replace a balance after a simulated trade.

        Passing the pool address updates total_shares.

        Raises:
            TokenNotInPoolError: If token is neither a pool token nor the BPT
        """
        if normalize_address(token) == self.address:
            self.total_shares = new_balance
        else:
            index = find_token_index(self.tokens, token)
            if index is None:
                raise TokenNotInPoolError(f"Pool {self.id} does not contain token {token}")
            self.tokens[index].balance = new_balance
        self.snapshot += 1

    def exact_token_in_for_token_out(self, pair_data: StablePoolPairData, amount: int) -> int:
        """Output (native units, rounded down) for an exact input, or 0 on solver failure."""
        if amount == 0:
            return 0
        try:
            amount_out = self.solver.calc_out_given_in(
                pair_data.amp,
                [Bfp(balance) for balance in pair_data.all_balances_scaled],
                pair_data.token_index_in,
                pair_data.token_index_out,
                scale_up(amount, scaling_factor_for(pair_data.decimals_in)),
                pair_data.swap_fee,
            )
            return scale_down_down(amount_out, scaling_factor_for(pair_data.decimals_out))
        except (PoolError, ArithmeticError) as e:
            logger.debug(
                "stable_pool_out_given_in_failed",
                pool_id=self.id,
                token_in=pair_data.token_in,
                token_out=pair_data.token_out,
                amount_in=amount,
                error=str(e),
            )
            return 0

    def token_in_for_exact_token_out(self, pair_data: StablePoolPairData, amount: int) -> int:
        """Input (native units, rounded up) for an exact output, or 0 on solver failure."""
        if amount == 0:
            return 0
        try:
            amount_in = self.solver.calc_in_given_out(
                pair_data.amp,
                [Bfp(balance) for balance in pair_data.all_balances_scaled],
                pair_data.token_index_in,
                pair_data.token_index_out,
                scale_up(amount, scaling_factor_for(pair_data.decimals_out)),
                pair_data.swap_fee,
            )
            return scale_down_up(amount_in, scaling_factor_for(pair_data.decimals_in))
        except (PoolError, ArithmeticError) as e:
            logger.debug(
                "stable_pool_in_given_out_failed",
                pool_id=self.id,
                token_in=pair_data.token_in,
                token_out=pair_data.token_out,
                amount_out=amount,
                error=str(e),
            )
            return 0

    def _spot_args(self, pair_data: StablePoolPairData, amount: Bfp, swap_type: SwapType) -> tuple:
        return (
            pair_data.amp,
            [Bfp(balance) for balance in pair_data.all_balances_scaled],
            pair_data.token_index_in,
            pair_data.token_index_out,
            amount,
            pair_data.swap_fee,
            swap_type,
        )

    def spot_price_after_swap_exact_token_in_for_token_out(
        self, pair_data: StablePoolPairData, amount: int
    ) -> Decimal:
        """Price (token_in per token_out, fee included) after selling amount."""
        amount_in = scale_up(amount, scaling_factor_for(pair_data.decimals_in))
        return self.solver.spot_price_after_swap(*self._spot_args(pair_data, amount_in, SwapType.EXACT_IN))

    def spot_price_after_swap_token_in_for_exact_token_out(
        self, pair_data: StablePoolPairData, amount: int
    ) -> Decimal:
        """Price (token_in per token_out, fee included) after buying amount."""
        amount_out = scale_up(amount, scaling_factor_for(pair_data.decimals_out))
        return self.solver.spot_price_after_swap(*self._spot_args(pair_data, amount_out, SwapType.EXACT_OUT))

    def derivative_spot_price_after_swap_exact_token_in_for_token_out(
        self, pair_data: StablePoolPairData, amount: int
    ) -> Decimal:
        amount_in = scale_up(amount, scaling_factor_for(pair_data.decimals_in))
        return self.solver.derivative_spot_price_after_swap(
            *self._spot_args(pair_data, amount_in, SwapType.EXACT_IN)
        )

    def derivative_spot_price_after_swap_token_in_for_exact_token_out(
        self, pair_data: StablePoolPairData, amount: int
    ) -> Decimal:
        amount_out = scale_up(amount, scaling_factor_for(pair_data.decimals_out))
        return self.solver.derivative_spot_price_after_swap(
            *self._spot_args(pair_data, amount_out, SwapType.EXACT_OUT)
        )
