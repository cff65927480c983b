"""Trade-size limit cache.

The router asks every pool for its maximum trade size many times while
searching for the best split. A LimitAmountCache memoizes those answers for a
single routing pass: create one per pass and drop it afterwards. Keys embed the
pool's snapshot counter, so a pool whose balances were updated mid-pass never
hits an entry computed for its previous state.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import structlog

from .base import PoolPairData, SwapType

logger = structlog.get_logger()


@dataclass(frozen=True)
class LimitCacheKey:
    """Identity of one limit query.

    Attributes:
        pool_id: Pool id
        snapshot: Pool state version
        token_in: Normalized input token
        token_out: Normalized output token
        swap_type: Direction of the query
    """

    pool_id: str
    snapshot: int
    token_in: str
    token_out: str
    swap_type: SwapType

    @classmethod
    def for_pair(cls, pair_data: PoolPairData, swap_type: SwapType) -> LimitCacheKey:
        return cls(
            pool_id=pair_data.id,
            snapshot=pair_data.snapshot,
            token_in=pair_data.token_in,
            token_out=pair_data.token_out,
            swap_type=swap_type,
        )


class LimitAmountCache:
    """Per-routing-pass memo of maximum trade sizes (native token units)."""

    def __init__(self) -> None:
        self._entries: dict[LimitCacheKey, int] = {}
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: LimitCacheKey, compute: Callable[[], int]) -> int:
        """Return the cached limit for key, computing and storing it on a miss."""
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        value = compute()
        self._entries[key] = value
        logger.debug(
            "limit_amount_cached",
            pool_id=key.pool_id,
            snapshot=key.snapshot,
            swap_type=key.swap_type.value,
            limit=value,
        )
        return value

    def invalidate_pool(self, pool_id: str) -> int:
        """Drop every entry for a pool. Returns the number of entries removed."""
        stale = [key for key in self._entries if key.pool_id == pool_id]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
