"""Pydantic models describing the DeFiLlama protocol payloads.

``/protocols`` returns flat summaries where ``tvl`` is a number and
``chainTvls`` maps chain names to numbers. ``/protocol/{slug}`` returns the
full history: ``tvl`` is a list of daily points, ``chainTvls`` nests those
histories per chain and ``currentChainTvls`` carries the latest figures.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        # DeFiLlama uses "-" for protocols without a token.
        return None if stripped in {"", "-"} else stripped
    return value


class DefiLlamaBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TvlPoint(DefiLlamaBaseModel):
    date: int | None = None
    total_liquidity_usd: float | None = Field(default=None, alias="totalLiquidityUSD")


class ProtocolPayload(DefiLlamaBaseModel):
    id: str | None = None
    name: str | None = None
    slug: str | None = None
    description: str | None = None
    category: str | None = None
    url: str | None = None
    twitter: str | None = None
    github: list[str] | str | None = None
    symbol: str | None = None
    tvl: float | list[TvlPoint] | None = None
    chain_tvls: dict[str, object] = Field(default_factory=dict[str, object], alias="chainTvls")
    current_chain_tvls: dict[str, float] | None = Field(default=None, alias="currentChainTvls")
    change_1d: float | None = None
    change_7d: float | None = None
    change_1m: float | None = None
    mcap: float | None = None
    fdv: float | None = None
    token_price: float | None = Field(default=None, alias="tokenPrice")

    _normalize_text = field_validator(
        "id", "name", "slug", "description", "category", "url", "twitter", "symbol", mode="before"
    )(_blank_to_none)

    @field_validator("chain_tvls", mode="before")
    @classmethod
    def _none_to_dict(cls, value: object) -> object:
        return {} if value is None else value
