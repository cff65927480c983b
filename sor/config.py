"""Pricing configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import structlog

from sor.math.fixed_point import Bfp

logger = structlog.get_logger()

# Largest balance a Balancer vault can hold; linear pools premint this much BPT
MAX_TOKEN_BALANCE = 2**112 - 1

# Scale of the amplification parameter in the StableSwap math
AMP_PRECISION = 1000


@dataclass(frozen=True)
class PricingConfig:
    """Centralized configuration for pool limit calculation.

    Attributes:
        max_in_ratio: Largest stable pool input as a fraction of balance_in
        max_out_ratio: Largest stable pool output as a fraction of balance_out
        almost_one: Fraction of the output balance a linear pool may be drained to
        max_token_balance: Preminted BPT amount of a linear pool (18 decimals)
    """

    max_in_ratio: Decimal = Decimal("0.3")
    max_out_ratio: Decimal = Decimal("0.3")
    almost_one: Decimal = Decimal("0.99")
    max_token_balance: int = MAX_TOKEN_BALANCE

    @property
    def max_in_ratio_bfp(self) -> Bfp:
        return Bfp.from_decimal(self.max_in_ratio)

    @property
    def max_out_ratio_bfp(self) -> Bfp:
        return Bfp.from_decimal(self.max_out_ratio)

    @property
    def almost_one_bfp(self) -> Bfp:
        return Bfp.from_decimal(self.almost_one)

    @classmethod
    def from_env(cls) -> PricingConfig:
        """Build a config from SOR_* environment variables, falling back to defaults."""
        defaults = cls()
        return cls(
            max_in_ratio=_env_decimal("SOR_MAX_IN_RATIO", defaults.max_in_ratio),
            max_out_ratio=_env_decimal("SOR_MAX_OUT_RATIO", defaults.max_out_ratio),
            almost_one=_env_decimal("SOR_ALMOST_ONE", defaults.almost_one),
        )


def _env_decimal(name: str, default: Decimal) -> Decimal:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        logger.warning("invalid_config_value", name=name, raw=raw, using_default=str(default))
        return default
    if not Decimal(0) < value <= Decimal(1):
        logger.warning("config_value_out_of_range", name=name, raw=raw, using_default=str(default))
        return default
    return value


# Default configuration instance
DEFAULT_PRICING_CONFIG = PricingConfig()
