"""Linear pool wrapper.

A linear pool lists three tokens: the main token, its wrapped version and the
pool's own BPT. The BPT is preminted, so the pool's own BPT balance is not
liquidity; the circulating ("virtual") supply is what the math works with.

Amounts passed to and returned from the quote methods are in the native
decimals of the token they denominate. The math runs at 18 decimals.
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
    PairType,
    PoolPairData,
    PoolToken,
    PoolType,
    SwapType,
    find_token_index,
    parse_pool_tokens,
)
from ..errors import (
    InvalidPoolStateError,
    SameTokenError,
    TokenNotInPoolError,
    UnsupportedOperationError,
)
from ..limits import LimitAmountCache, LimitCacheKey
from ..scaling import scale_down_down, scale_down_up, scale_up, scaling_factor_for
from . import math as linear_math
from .math import LinearParams

logger = structlog.get_logger()

BPT_DECIMALS = 18


@dataclass(frozen=True)
class LinearPoolPairData(PoolPairData):
    """Linear pool snapshot for one token pair.

    Attributes:
        pair_type: Which of the six trade directions this is
        main_balance: Main token balance at 18 decimals
        wrapped_balance: Wrapped token balance at 18 decimals
        virtual_bpt_supply: Circulating BPT
        params: Fee, rate and targets for the math
    """

    pair_type: PairType
    main_balance: Bfp
    wrapped_balance: Bfp
    virtual_bpt_supply: Bfp
    params: LinearParams


# (exact-in quote, exact-out quote) per pair type. The main <-> wrapped quotes
# only depend on the main balance.
_BPT_QUOTES = {
    PairType.MAIN_TO_BPT: (linear_math.bpt_out_per_main_in, linear_math.main_in_per_bpt_out),
    PairType.BPT_TO_MAIN: (linear_math.main_out_per_bpt_in, linear_math.bpt_in_per_main_out),
    PairType.WRAPPED_TO_BPT: (
        linear_math.bpt_out_per_wrapped_in,
        linear_math.wrapped_in_per_bpt_out,
    ),
    PairType.BPT_TO_WRAPPED: (
        linear_math.wrapped_out_per_bpt_in,
        linear_math.bpt_in_per_wrapped_out,
    ),
}

_MAIN_WRAPPED_QUOTES = {
    PairType.MAIN_TO_WRAPPED: (
        linear_math.wrapped_out_per_main_in,
        linear_math.main_in_per_wrapped_out,
    ),
    PairType.WRAPPED_TO_MAIN: (
        linear_math.main_out_per_wrapped_in,
        linear_math.wrapped_in_per_main_out,
    ),
}

# (exact-in, exact-out) spot price and derivative functions. Only the
# main <-> BPT directions have closed forms.
_SPOT_PRICES = {
    PairType.MAIN_TO_BPT: (
        linear_math.spot_price_after_swap_bpt_out_per_main_in,
        linear_math.spot_price_after_swap_main_in_per_bpt_out,
    ),
    PairType.BPT_TO_MAIN: (
        linear_math.spot_price_after_swap_main_out_per_bpt_in,
        linear_math.spot_price_after_swap_bpt_in_per_main_out,
    ),
}

_SPOT_PRICE_DERIVATIVES = {
    PairType.MAIN_TO_BPT: (
        linear_math.derivative_spot_price_after_swap_bpt_out_per_main_in,
        linear_math.derivative_spot_price_after_swap_main_in_per_bpt_out,
    ),
    PairType.BPT_TO_MAIN: (
        linear_math.derivative_spot_price_after_swap_main_out_per_bpt_in,
        linear_math.derivative_spot_price_after_swap_bpt_in_per_main_out,
    ),
}


class LinearPool:
    """Balancer boosted linear pool."""

    pool_type = PoolType.LINEAR

    def __init__(
        self,
        id: str,
        address: str,
        swap_fee: Bfp,
        total_shares: int,
        tokens: list[PoolToken],
        main_index: int,
        wrapped_index: int,
        lower_target: Bfp,
        upper_target: Bfp,
        *,
        config: PricingConfig = DEFAULT_PRICING_CONFIG,
    ) -> None:
        for name, index in (("main_index", main_index), ("wrapped_index", wrapped_index)):
            if not 0 <= index < len(tokens):
                raise InvalidPoolStateError(
                    f"Linear pool {id} {name} {index} out of range for {len(tokens)} tokens"
                )
        if main_index == wrapped_index:
            raise InvalidPoolStateError(f"Linear pool {id} main and wrapped index are equal")

        self.id = id
        self.address = normalize_address(address)
        self.swap_fee = swap_fee
        self.total_shares = total_shares
        self.tokens = tokens
        self.main_index = main_index
        self.wrapped_index = wrapped_index
        self.lower_target = lower_target
        self.upper_target = upper_target
        self.config = config
        self.snapshot = 0

    @classmethod
    def from_pool(
        cls,
        pool: SubgraphPool,
        *,
        config: PricingConfig = DEFAULT_PRICING_CONFIG,
    ) -> LinearPool:
        """Build from indexer state.

        Raises:
            InvalidPoolStateError: If a linear-only field is missing
        """
        missing = [
            name
            for name in ("main_index", "wrapped_index", "lower_target", "upper_target")
            if getattr(pool, name) is None
        ]
        if missing:
            raise InvalidPoolStateError(
                f"Linear pool {pool.id} missing {', '.join(missing)}"
            )
        return cls(
            id=pool.id,
            address=pool.address,
            swap_fee=Bfp(parse_fixed(pool.swap_fee, 18)),
            total_shares=parse_fixed(pool.total_shares, 18),
            tokens=parse_pool_tokens(pool),
            main_index=pool.main_index,
            wrapped_index=pool.wrapped_index,
            lower_target=Bfp(parse_fixed(pool.lower_target, 18)),
            upper_target=Bfp(parse_fixed(pool.upper_target, 18)),
            config=config,
        )

    @property
    def tokens_list(self) -> list[str]:
        return [token.address for token in self.tokens]

    @property
    def bpt_index(self) -> int | None:
        return find_token_index(self.tokens, self.address)

    @property
    def virtual_bpt_supply(self) -> int:
        """Circulating BPT: the premint minus what the pool still holds.

        Falls back to total_shares when the pool does not list its own BPT.
        """
        bpt_index = self.bpt_index
        if bpt_index is None:
            return self.total_shares
        return self.config.max_token_balance - self.tokens[bpt_index].balance

    def _params(self) -> LinearParams:
        return LinearParams(
            fee=self.swap_fee,
            rate=Bfp.from_decimal(self.tokens[self.wrapped_index].price_rate),
            lower_target=self.lower_target,
            upper_target=self.upper_target,
        )

    def _role(self, token: str) -> str:
        token_norm = normalize_address(token)
        if token_norm == self.address:
            return "bpt"
        if token_norm == self.tokens[self.main_index].address:
            return "main"
        if token_norm == self.tokens[self.wrapped_index].address:
            return "wrapped"
        raise TokenNotInPoolError(f"Pool {self.id} does not contain token {token}")

    def _balance_and_decimals(self, role: str) -> tuple[int, int]:
        if role == "bpt":
            return self.virtual_bpt_supply, BPT_DECIMALS
        token = self.tokens[self.main_index if role == "main" else self.wrapped_index]
        return token.balance, token.decimals

    def parse_pool_pair_data(self, token_in: str, token_out: str) -> LinearPoolPairData:
        """Snapshot the pool for a token pair.

        Raises:
            TokenNotInPoolError: If either token is not in the pool
            SameTokenError: If token_in and token_out are the same token
        """
        role_in = self._role(token_in)
        role_out = self._role(token_out)
        if role_in == role_out:
            raise SameTokenError(f"Cannot swap {token_in} with itself in pool {self.id}")

        pair_type = PairType[f"{role_in}_TO_{role_out}".upper()]
        balance_in, decimals_in = self._balance_and_decimals(role_in)
        balance_out, decimals_out = self._balance_and_decimals(role_out)

        main = self.tokens[self.main_index]
        wrapped = self.tokens[self.wrapped_index]

        return LinearPoolPairData(
            id=self.id,
            address=self.address,
            pool_type=self.pool_type,
            token_in=normalize_address(token_in),
            token_out=normalize_address(token_out),
            balance_in=balance_in,
            balance_out=balance_out,
            decimals_in=decimals_in,
            decimals_out=decimals_out,
            swap_fee=self.swap_fee,
            snapshot=self.snapshot,
            pair_type=pair_type,
            main_balance=scale_up(main.balance, scaling_factor_for(main.decimals)),
            wrapped_balance=scale_up(wrapped.balance, scaling_factor_for(wrapped.decimals)),
            virtual_bpt_supply=Bfp(self.virtual_bpt_supply),
            params=self._params(),
        )

    def get_normalized_liquidity(self, pair_data: LinearPoolPairData) -> Decimal:
        """Output balance in human units."""
        return format_fixed(pair_data.balance_out, pair_data.decimals_out)

    def get_limit_amount_swap(
        self,
        pair_data: LinearPoolPairData,
        swap_type: SwapType,
        cache: LimitAmountCache | None = None,
    ) -> int:
        """Largest trade size (native units) the router may send through this pair.

        Exact-out trades may take almost_one of the output balance; exact-in
        trades may send whatever input buys that much. An empty output side
        has a limit of 0.
        """

        def compute() -> int:
            max_out = Bfp(pair_data.balance_out).mul_down(self.config.almost_one_bfp).value
            if max_out == 0:
                return 0
            if swap_type is SwapType.EXACT_IN:
                return self.token_in_for_exact_token_out(pair_data, max_out)
            return max_out

        if cache is None:
            return compute()
        return cache.get_or_compute(LimitCacheKey.for_pair(pair_data, swap_type), compute)

    def update_token_balance(self, token: str, new_balance: int) -> None:
        """Replace a balance after a simulated trade.

        Raises:
            TokenNotInPoolError: If token is not in the pool
        """
        index = find_token_index(self.tokens, token)
        if index is None:
            if normalize_address(token) != self.address:
                raise TokenNotInPoolError(f"Pool {self.id} does not contain token {token}")
            self.total_shares = new_balance
        else:
            self.tokens[index].balance = new_balance
        self.snapshot += 1

    def _quote_18(self, pair_data: LinearPoolPairData, amount: Bfp, exact_in: bool) -> Bfp:
        side = 0 if exact_in else 1
        if pair_data.pair_type in _MAIN_WRAPPED_QUOTES:
            quote = _MAIN_WRAPPED_QUOTES[pair_data.pair_type][side]
            return quote(amount, pair_data.main_balance, pair_data.params)
        quote = _BPT_QUOTES[pair_data.pair_type][side]
        return quote(
            amount,
            pair_data.main_balance,
            pair_data.wrapped_balance,
            pair_data.virtual_bpt_supply,
            pair_data.params,
        )

    def exact_token_in_for_token_out(self, pair_data: LinearPoolPairData, amount: int) -> int:
        """Output (native units, rounded down) for an exact input."""
        amount_in = scale_up(amount, scaling_factor_for(pair_data.decimals_in))
        amount_out = self._quote_18(pair_data, amount_in, exact_in=True)
        return scale_down_down(amount_out, scaling_factor_for(pair_data.decimals_out))

    def token_in_for_exact_token_out(self, pair_data: LinearPoolPairData, amount: int) -> int:
        """Input (native units, rounded up) for an exact output."""
        amount_out = scale_up(amount, scaling_factor_for(pair_data.decimals_out))
        amount_in = self._quote_18(pair_data, amount_out, exact_in=False)
        return scale_down_up(amount_in, scaling_factor_for(pair_data.decimals_in))

    def _spot(self, table: dict, pair_data: LinearPoolPairData, amount: Bfp, exact_in: bool) -> Decimal:
        functions = table.get(pair_data.pair_type)
        if functions is None:
            logger.debug(
                "linear_pool_spot_price_unsupported",
                pool_id=self.id,
                pair_type=pair_data.pair_type.value,
            )
            raise UnsupportedOperationError(
                f"No spot price formula for {pair_data.pair_type.value} in linear pool {self.id}"
            )
        price = functions[0 if exact_in else 1](
            amount,
            pair_data.main_balance,
            pair_data.wrapped_balance,
            pair_data.virtual_bpt_supply,
            pair_data.params,
        )
        return price.to_decimal()

    def spot_price_after_swap_exact_token_in_for_token_out(
        self, pair_data: LinearPoolPairData, amount: int
    ) -> Decimal:
        amount_in = scale_up(amount, scaling_factor_for(pair_data.decimals_in))
        return self._spot(_SPOT_PRICES, pair_data, amount_in, exact_in=True)

    def spot_price_after_swap_token_in_for_exact_token_out(
        self, pair_data: LinearPoolPairData, amount: int
    ) -> Decimal:
        amount_out = scale_up(amount, scaling_factor_for(pair_data.decimals_out))
        return self._spot(_SPOT_PRICES, pair_data, amount_out, exact_in=False)

    def derivative_spot_price_after_swap_exact_token_in_for_token_out(
        self, pair_data: LinearPoolPairData, amount: int
    ) -> Decimal:
        amount_in = scale_up(amount, scaling_factor_for(pair_data.decimals_in))
        return self._spot(_SPOT_PRICE_DERIVATIVES, pair_data, amount_in, exact_in=True)

    def derivative_spot_price_after_swap_token_in_for_exact_token_out(
        self, pair_data: LinearPoolPairData, amount: int
    ) -> Decimal:
        amount_out = scale_up(amount, scaling_factor_for(pair_data.decimals_out))
        return self._spot(_SPOT_PRICE_DERIVATIVES, pair_data, amount_out, exact_in=False)
