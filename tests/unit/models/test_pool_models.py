"""Tests for pool state models and amount helpers."""

import json
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from sor.models import (
    SubgraphPool,
    SubgraphToken,
    format_fixed,
    is_same_address,
    is_valid_address,
    normalize_address,
    parse_fixed,
)
from tests.helpers import USDT


class TestSubgraphToken:
    """Tests for SubgraphToken model."""

    def test_parse_minimal(self):
        """priceRate defaults to 1."""
        token = SubgraphToken.model_validate({"address": USDT, "balance": "10.5", "decimals": 6})
        assert token.price_rate == "1"

    def test_address_is_normalized(self):
        token = SubgraphToken.model_validate(
            {"address": "0xDAC17F958D2EE523A2206206994597C13D831EC7", "balance": "1", "decimals": 6}
        )
        assert token.address == USDT

    def test_alias_and_field_name(self):
        """Both camelCase aliases and field names are accepted."""
        by_alias = SubgraphToken.model_validate(
            {"address": USDT, "balance": "1", "decimals": 6, "priceRate": "1.02"}
        )
        by_name = SubgraphToken(address=USDT, balance="1", decimals=6, price_rate="1.02")
        assert by_alias == by_name

    @pytest.mark.parametrize("decimals", [-1, 19])
    def test_decimals_out_of_range(self, decimals):
        with pytest.raises(ValidationError):
            SubgraphToken.model_validate({"address": USDT, "balance": "1", "decimals": decimals})

    @pytest.mark.parametrize("balance", ["-1", "abc", "NaN"])
    def test_invalid_balance(self, balance):
        with pytest.raises(ValidationError):
            SubgraphToken.model_validate({"address": USDT, "balance": balance, "decimals": 6})

    def test_invalid_address(self):
        with pytest.raises(ValidationError):
            SubgraphToken.model_validate({"address": "0x1234", "balance": "1", "decimals": 6})


class TestSubgraphPool:
    """Tests for SubgraphPool model."""

    def test_parse_linear_fixture(self, fixtures_dir: Path):
        with open(fixtures_dir / "pools" / "linear_usdt.json") as f:
            pool = SubgraphPool.model_validate(json.load(f))

        assert pool.pool_type == "AaveLinear"
        assert pool.swap_fee == "0.0002"
        assert pool.main_index == 1
        assert pool.wrapped_index == 2
        assert pool.lower_target == "2900000"
        assert pool.amp is None
        assert len(pool.tokens) == 3
        assert pool.tokens_list[1] == USDT

    def test_parse_stable_fixture(self, stable_pool_state: SubgraphPool):
        assert stable_pool_state.amp == "1573"
        assert stable_pool_state.main_index is None
        assert stable_pool_state.model_extra == {"swapEnabled": True}

    def test_unknown_fields_are_kept(self, stable_pool_state: SubgraphPool):
        data = stable_pool_state.model_dump(by_alias=True)
        data["totalWeight"] = "0"
        pool = SubgraphPool.model_validate(data)
        assert pool.model_extra == {"swapEnabled": True, "totalWeight": "0"}

    def test_negative_index_rejected(self, stable_pool_state: SubgraphPool):
        data = stable_pool_state.model_dump(by_alias=True)
        data["mainIndex"] = -1
        with pytest.raises(ValidationError):
            SubgraphPool.model_validate(data)


class TestFixedAmounts:
    """Tests for parse_fixed / format_fixed."""

    def test_parse_fixed(self):
        assert parse_fixed("1.5", 6) == 1_500_000
        assert parse_fixed("3110297.904055", 6) == 3_110_297_904_055

    def test_parse_fixed_keeps_full_precision(self):
        """Large 18-decimal balances do not lose digits."""
        value = "5192296826935206.509058138724964417"
        assert parse_fixed(value, 18) == 5192296826935206509058138724964417

    def test_parse_fixed_excess_decimals_raises(self):
        with pytest.raises(ValueError, match="decimal places"):
            parse_fixed("1.0000001", 6)

    def test_parse_fixed_trailing_zeros_allowed(self):
        assert parse_fixed("1.50000000", 6) == 1_500_000

    def test_format_fixed(self):
        assert format_fixed(1_500_000, 6) == Decimal("1.5")
        assert format_fixed(5192296826935206509058138724964417, 18) == Decimal(
            "5192296826935206.509058138724964417"
        )


class TestAddressHelpers:
    """Tests for address helpers."""

    def test_normalize_adds_prefix(self):
        assert normalize_address("ABCDEF") == "0xabcdef"

    def test_normalize_validate_raises(self):
        with pytest.raises(ValueError):
            normalize_address("0x1234", validate=True)

    def test_is_valid_address(self):
        assert is_valid_address(USDT)
        assert not is_valid_address("0x1234")
        assert not is_valid_address("0x" + "zz" * 20)

    def test_is_same_address(self):
        assert is_same_address(USDT, USDT.upper().replace("0X", "0x"))
