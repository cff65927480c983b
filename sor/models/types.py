"""Shared type definitions for pool state models."""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Annotated, Any

from pydantic import BeforeValidator, Field


# Enough digits for any uint256 amount at 18 decimals
_PARSE_PRECISION = 100


def validate_decimal_string(value: Any) -> str:
    """Validate that a value is a non-negative decimal number.

    Indexers report balances and fees as human-readable decimal strings
    ("3110297.904055"). Ints and Decimals are accepted and stringified.

    Raises:
        ValueError: If value is not a finite non-negative decimal
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, Decimal)):
        raise ValueError(f"Decimal value must be string or number, got {type(value).__name__}")
    try:
        parsed = Decimal(str(value))
    except InvalidOperation as err:
        raise ValueError(f"Not a decimal number: '{value}'") from err
    if not parsed.is_finite():
        raise ValueError(f"Decimal value must be finite: '{value}'")
    if parsed < 0:
        raise ValueError(f"Decimal value cannot be negative: '{value}'")
    return str(value)


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Normalize an Ethereum address to lowercase with 0x prefix.

    Raises:
        ValueError: If validate=True and address is not a valid Ethereum address
    """
    addr = address.lower()
    if not addr.startswith("0x"):
        addr = "0x" + addr

    if validate and not is_valid_address(addr):
        raise ValueError(f"Invalid address: {address}")

    return addr


def is_valid_address(address: str) -> bool:
    """Check if a string is a valid Ethereum address."""
    if not isinstance(address, str):
        return False
    if not address.startswith("0x"):
        return False
    if len(address) != 42:
        return False
    try:
        int(address, 16)
        return True
    except ValueError:
        return False


def is_same_address(a: str, b: str) -> bool:
    return normalize_address(a) == normalize_address(b)


def parse_fixed(value: str | Decimal, decimals: int) -> int:
    """Convert a human-readable decimal amount into a native integer amount.

    parse_fixed("1.5", 6) == 1_500_000

    Raises:
        ValueError: If value has more fractional digits than decimals allows
    """
    amount = Decimal(str(value))
    with localcontext() as ctx:
        ctx.prec = _PARSE_PRECISION
        scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {decimals} decimal places")
    return int(scaled)


def format_fixed(amount: int, decimals: int) -> Decimal:
    """Inverse of parse_fixed: native integer amount to a human-readable Decimal."""
    with localcontext() as ctx:
        ctx.prec = _PARSE_PRECISION
        return Decimal(amount).scaleb(-decimals)


# Ethereum address (40 hex chars after 0x prefix)
Address = Annotated[
    str,
    BeforeValidator(lambda v: normalize_address(v) if isinstance(v, str) else v),
    Field(pattern=r"^0x[a-f0-9]{40}$"),
]

# Non-negative human-readable decimal amount, kept as string
DecimalString = Annotated[
    str,
    BeforeValidator(validate_decimal_string),
    Field(description="Non-negative decimal number as string"),
]
