"""Pydantic models for raw pool state.

Mirrors the pool JSON served by the Balancer subgraph. Amounts stay as
human-readable decimal strings here; the pool wrappers convert them to native
integers with parse_fixed when they are built.
"""

from pydantic import BaseModel, Field

from sor.models.types import Address, DecimalString


class SubgraphToken(BaseModel):
    """One token of a pool as reported by the indexer."""

    address: Address
    balance: DecimalString
    # Balancer pools only register tokens with at most 18 decimals
    decimals: int = Field(ge=0, le=18)
    price_rate: DecimalString = Field(default="1", alias="priceRate")

    model_config = {"populate_by_name": True}


class SubgraphPool(BaseModel):
    """Pool state snapshot as reported by the indexer.

    Linear pools set main_index, wrapped_index and the two targets; stable
    pools set amp. Unknown keys are kept in model_extra.
    """

    id: str
    address: Address
    pool_type: str = Field(alias="poolType")
    swap_fee: DecimalString = Field(alias="swapFee")
    total_shares: DecimalString = Field(alias="totalShares")
    tokens: list[SubgraphToken]
    tokens_list: list[Address] = Field(default_factory=list, alias="tokensList")
    amp: DecimalString | None = None
    main_index: int | None = Field(default=None, ge=0, alias="mainIndex")
    wrapped_index: int | None = Field(default=None, ge=0, alias="wrappedIndex")
    lower_target: DecimalString | None = Field(default=None, alias="lowerTarget")
    upper_target: DecimalString | None = Field(default=None, alias="upperTarget")

    model_config = {"extra": "allow", "populate_by_name": True}
