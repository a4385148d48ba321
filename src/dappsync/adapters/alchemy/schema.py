"""Pydantic models describing the Alchemy dapp store payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _none_to_list(value: object) -> object:
    return [] if value is None else value


class AlchemyBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RelatedDappPayload(AlchemyBaseModel):
    name: str | None = None
    slug: str | None = None
    logo_cdn_url: str | None = Field(default=None, alias="logoCdnUrl")
    logo_url: str | None = Field(default=None, alias="logoUrl")
    short_description: str | None = Field(default=None, alias="shortDescription")

    _normalize_text = field_validator(
        "name", "slug", "logo_cdn_url", "logo_url", "short_description", mode="before"
    )(_blank_to_none)


class DappPayload(AlchemyBaseModel):
    """One dapp as returned by the listing and detail endpoints.

    ``chains`` and ``vipChildCategory`` mix plain names, ``{"name": ...}``
    objects and opaque record ids depending on the endpoint, so they stay
    loosely typed here.
    """

    name: str | None = None
    slug: str | None = None
    short_description: str | None = Field(default=None, alias="shortDescription")
    description: str | None = None
    long_description: str | None = Field(default=None, alias="longDescription")
    logo_cdn_url: str | None = Field(default=None, alias="logoCdnUrl")
    logo_url: str | None = Field(default=None, alias="logoUrl")
    chains: list[object] = Field(default_factory=list[object])
    categories: list[object] = Field(default_factory=list[object], alias="vipChildCategory")
    website_url: str | None = Field(default=None, alias="websiteUrl")
    website: str | None = None
    twitter_url: str | None = Field(default=None, alias="twitterUrl")
    twitter: str | None = None
    github_url: str | None = Field(default=None, alias="githubUrl")
    discord_url: str | None = Field(default=None, alias="discordUrl")
    documentation_url: str | None = Field(default=None, alias="documentationUrl")
    featured: bool | None = None
    verified: bool | None = None
    related: list[RelatedDappPayload] = Field(
        default_factory=list[RelatedDappPayload], alias="relatedDappsAndTools"
    )
    alternatives: list[RelatedDappPayload] = Field(default_factory=list[RelatedDappPayload])

    _normalize_text = field_validator(
        "name",
        "slug",
        "short_description",
        "description",
        "long_description",
        "logo_cdn_url",
        "logo_url",
        "website_url",
        "website",
        "twitter_url",
        "twitter",
        "github_url",
        "discord_url",
        "documentation_url",
        mode="before",
    )(_blank_to_none)
    _normalize_lists = field_validator(
        "chains", "categories", "related", "alternatives", mode="before"
    )(_none_to_list)


class DappListResponse(AlchemyBaseModel):
    records: list[DappPayload] = Field(default_factory=list[DappPayload])
    has_more: bool | None = Field(default=None, alias="hasMore")

    _normalize_records = field_validator("records", mode="before")(_none_to_list)
