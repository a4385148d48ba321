"""Translate DatoCMS items to and from domain records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from dappsync.domain.model import PublishStatus, StoreChainItem, StoreRecord
from dappsync.domain.ports import check_changes

if TYPE_CHECKING:
    from dappsync.domain.ports import RecordChanges

    from .schema import Item

# Domain field name -> dapp model field api key.
DAPP_FIELDS: Final[dict[str, str]] = {
    "title": "title",
    "slug": "slug",
    "short_description": "short_description",
    "protocol_id": "protocol_id",
    "tvl_usd": "tvl_usd",
    "category": "category_defillama",
    "enrichment": "alchemy_recent_activity",
    "chain_tvl": "chain_tvl",
    "last_synced_at": "last_synced_at",
    "last_sync_status": "last_sync_status",
    "token_price_usd": "token_price_usd",
    "chain_ids": "chains",
    "defillama_url": "defillama_url",
    "unified_metadata": "unified_metadata",
}
LOGO_FIELD: Final = "token_logo_url"
CHAIN_NAME_FIELDS: Final = ("name", "title")


def store_record_from_item(
    item: Item, *, chain_names_by_id: Mapping[str, str] | None = None
) -> StoreRecord:
    attributes = item.attributes
    chain_ids = _chain_ids(attributes.get(DAPP_FIELDS["chain_ids"]))
    names_by_id = chain_names_by_id or {}
    return StoreRecord(
        id=item.id,
        title=_text(attributes.get("title")),
        slug=_text(attributes.get("slug")),
        short_description=_text(attributes.get("short_description")),
        protocol_id=_text(attributes.get("protocol_id")),
        tvl_usd=_number(attributes.get("tvl_usd")),
        category=_text(attributes.get(DAPP_FIELDS["category"])),
        enrichment=_json_text(attributes.get(DAPP_FIELDS["enrichment"])),
        chain_tvl=_json_text(attributes.get("chain_tvl")),
        last_synced_at=_timestamp(attributes.get("last_synced_at")),
        token_price_usd=_number(attributes.get("token_price_usd")),
        logo_url=_text(attributes.get(LOGO_FIELD)),
        chain_ids=chain_ids,
        chain_names=tuple(
            names_by_id[chain_id] for chain_id in chain_ids if chain_id in names_by_id
        ),
        status=_status(item.meta.status),
        defillama_url=_text(attributes.get("defillama_url")),
        raw=dict(attributes),
    )


def chain_item_from_item(item: Item) -> StoreChainItem | None:
    for key in CHAIN_NAME_FIELDS:
        name = _text(item.attributes.get(key))
        if name:
            return StoreChainItem(id=item.id, name=name)
    return None


def attributes_from_changes(changes: RecordChanges) -> dict[str, object]:
    """Map a domain change set onto dapp model attributes."""

    check_changes(changes)
    attributes: dict[str, object] = {}
    for name, value in changes.items():
        attributes[DAPP_FIELDS[name]] = _attribute_value(value)
    return attributes


def _attribute_value(value: object) -> object:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat().replace("+00:00", "Z")
    if isinstance(value, (tuple, list)):
        return list(value)
    return value


def _chain_ids(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    ids: list[str] = []
    for entry in value:
        chain_id = entry.get("id") if isinstance(entry, Mapping) else entry
        if isinstance(chain_id, str) and chain_id and chain_id not in ids:
            ids.append(chain_id)
    return tuple(ids)


def _status(value: str | None) -> PublishStatus | None:
    if value is None:
        return None
    try:
        return PublishStatus(value)
    except ValueError:
        return None


def _text(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value
    return None


def _json_text(value: object) -> str | None:
    # JSON fields come back decoded; text fields come back as strings.
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return _text(value)


def _number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _timestamp(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
