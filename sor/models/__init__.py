"""Pool state models and shared types."""

from sor.models.pool import SubgraphPool, SubgraphToken
from sor.models.types import (
    Address,
    DecimalString,
    format_fixed,
    is_same_address,
    is_valid_address,
    normalize_address,
    parse_fixed,
)

__all__ = [
    # Pool state
    "SubgraphPool",
    "SubgraphToken",
    # Types
    "Address",
    "DecimalString",
    # Helpers
    "normalize_address",
    "is_valid_address",
    "is_same_address",
    "parse_fixed",
    "format_fixed",
]
