#!/usr/bin/env python3
"""Quote trades against a pool snapshot.

Loads a pool JSON in the subgraph format, builds the matching pool wrapper and
prints exact-in and exact-out quotes, limits and (for linear pools) spot
prices for one token pair.

Usage:
    python scripts/quote_pool.py tests/fixtures/pools/linear_usdt.json \\
        --token-in 0xdac17f958d2ee523a2206206994597c13d831ec7 \\
        --token-out 0x2bbf681cc4eb09218bee85ea2a5d3d13fa40fc0c \\
        --amount 1000
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from sor.config import PricingConfig
from sor.log_config import configure_logging
from sor.models import SubgraphPool, format_fixed, parse_fixed
from sor.pools import LinearPool, PoolError, StablePool, SwapType

logger = structlog.get_logger()


def build_pool(pool: SubgraphPool, config: PricingConfig) -> LinearPool | StablePool:
    if pool.pool_type.startswith("Linear") or pool.pool_type.endswith("Linear"):
        return LinearPool.from_pool(pool, config=config)
    if pool.pool_type in ("Stable", "MetaStable"):
        return StablePool.from_pool(pool, config=config)
    raise ValueError(f"Unsupported pool type: {pool.pool_type}")


def main() -> int:
    """Main entry point for the quote tool."""
    parser = argparse.ArgumentParser(
        description="Quote a trade against a Balancer pool snapshot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("pool", type=Path, help="Pool snapshot JSON file")
    parser.add_argument("--token-in", required=True, help="Address of the token sold")
    parser.add_argument("--token-out", required=True, help="Address of the token bought")
    parser.add_argument(
        "--amount",
        type=str,
        required=True,
        help="Human-readable amount, used as the input for exact-in and the output for exact-out",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    args = parser.parse_args()

    configure_logging(logging.DEBUG if args.verbose else logging.INFO, json=args.json_logs)

    if not args.pool.exists():
        logger.error("pool_file_not_found", path=str(args.pool))
        print(f"Error: Pool file not found: {args.pool}")
        return 1

    try:
        with open(args.pool) as f:
            pool_state = SubgraphPool.model_validate(json.load(f))
        pool = build_pool(pool_state, PricingConfig.from_env())
        pair = pool.parse_pool_pair_data(args.token_in, args.token_out)
        amount_in = parse_fixed(args.amount, pair.decimals_in)
        amount_out = parse_fixed(args.amount, pair.decimals_out)
    except (ValidationError, ValueError, ArithmeticError, PoolError) as e:
        logger.error("pool_load_failed", path=str(args.pool), error=str(e))
        print(f"Error: {e}")
        return 1

    print("=" * 60)
    print(f"Pool {pool.id} ({pool.pool_type.value})")
    print("=" * 60)
    print(f"Normalized liquidity: {pool.get_normalized_liquidity(pair)}")
    limit_in = pool.get_limit_amount_swap(pair, SwapType.EXACT_IN)
    limit_out = pool.get_limit_amount_swap(pair, SwapType.EXACT_OUT)
    print(f"Max exact-in amount:  {format_fixed(limit_in, pair.decimals_in)}")
    print(f"Max exact-out amount: {format_fixed(limit_out, pair.decimals_out)}")
    print()

    try:
        out = pool.exact_token_in_for_token_out(pair, amount_in)
        print(f"Sell {args.amount} -> receive {format_fixed(out, pair.decimals_out)}")
        needed = pool.token_in_for_exact_token_out(pair, amount_out)
        print(f"Buy {args.amount} -> pay {format_fixed(needed, pair.decimals_in)}")
    except (PoolError, ArithmeticError) as e:
        logger.error("quote_failed", pool_id=pool.id, error=str(e))
        print(f"Error: {e}")
        return 1

    if isinstance(pool, LinearPool):
        try:
            spot = pool.spot_price_after_swap_exact_token_in_for_token_out(pair, amount_in)
            print(f"Spot price after selling: {spot}")
        except PoolError as e:
            logger.info("spot_price_unavailable", pool_id=pool.id, error=str(e))

    return 0


if __name__ == "__main__":
    sys.exit(main())
