"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from sor.models import SubgraphPool
from sor.pools import LinearPool, StablePool

FIXTURES_DIR = Path(__file__).parent / "fixtures"
POOLS_DIR = FIXTURES_DIR / "pools"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return FIXTURES_DIR


def load_pool_fixture(name: str) -> SubgraphPool:
    """Load a pool snapshot fixture by name.

    Args:
        name: Fixture name without extension (e.g., "linear_usdt")

    Returns:
        Parsed SubgraphPool
    """
    path = POOLS_DIR / f"{name}.json"
    with open(path) as f:
        data = json.load(f)
    return SubgraphPool.model_validate(data)


@pytest.fixture
def linear_pool_state() -> SubgraphPool:
    return load_pool_fixture("linear_usdt")


@pytest.fixture
def stable_pool_state() -> SubgraphPool:
    return load_pool_fixture("stable_dai_usdc_usdt")


@pytest.fixture
def linear_pool(linear_pool_state: SubgraphPool) -> LinearPool:
    """Fresh aUSDT linear pool (BPT, USDT main, aUSDT wrapped)."""
    return LinearPool.from_pool(linear_pool_state)


@pytest.fixture
def stable_pool(stable_pool_state: SubgraphPool) -> StablePool:
    """Fresh DAI/USDC/USDT stable pool."""
    return StablePool.from_pool(stable_pool_state)
