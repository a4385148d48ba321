"""Translate Alchemy dapp store payloads into directory records."""

from __future__ import annotations

from typing import TYPE_CHECKING

from dappsync.domain.model import DirectoryRecord, RelatedDapp, loose_names

if TYPE_CHECKING:
    from .schema import DappPayload, RelatedDappPayload


def directory_record_from_payload(payload: DappPayload) -> DirectoryRecord:
    related = payload.related or payload.alternatives
    return DirectoryRecord(
        name=payload.name,
        slug=payload.slug,
        description=payload.short_description or payload.description,
        long_description=payload.long_description,
        logo_url=payload.logo_cdn_url or payload.logo_url,
        chain_names=loose_names(payload.chains),
        category_names=loose_names(payload.categories),
        website_url=payload.website_url or payload.website,
        twitter=payload.twitter_url or payload.twitter,
        github_url=payload.github_url,
        discord_url=payload.discord_url,
        docs_url=payload.documentation_url,
        featured=payload.featured,
        verified=payload.verified,
        related=tuple(_related(item.name, item) for item in related if item.name),
    )


def _related(name: str, item: RelatedDappPayload) -> RelatedDapp:
    return RelatedDapp(
        name=name,
        slug=item.slug,
        logo_url=item.logo_cdn_url or item.logo_url,
        short_description=item.short_description,
    )
