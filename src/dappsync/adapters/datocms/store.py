"""DatoCMS-backed implementation of the record store port."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from .client import DatoCmsClient
from .translator import (
    DAPP_FIELDS,
    attributes_from_changes,
    chain_item_from_item,
    store_record_from_item,
)

if TYPE_CHECKING:
    from dappsync.config.datocms import DatoCmsConfig
    from dappsync.domain.model import StoreChainItem, StoreRecord
    from dappsync.domain.ports import RecordChanges, RecordQuery

log = getLogger(__name__)


class DatoCmsRecordStore:
    """Dapp and chain items of one DatoCMS project."""

    def __init__(self, *, config: DatoCmsConfig, client: DatoCmsClient | None = None) -> None:
        self._config = config
        self._client = client or DatoCmsClient(config=config)
        self._chains: list[StoreChainItem] | None = None
        self._dapp_model_id: str | None = None

    def list_records(self, query: RecordQuery | None = None) -> list[StoreRecord]:
        filters: dict[str, object] = {}
        order_by: str | None = None
        if query is not None:
            filters = {DAPP_FIELDS.get(name, name): value for name, value in query.filters.items()}
            order_by = query.order_by
        items = self._client.list_items(self._config.dapp_model, filters=filters, order_by=order_by)
        names_by_id = {chain.id: chain.name for chain in self.list_chains()}
        return [store_record_from_item(item, chain_names_by_id=names_by_id) for item in items]

    def list_chains(self) -> list[StoreChainItem]:
        if self._chains is None:
            items = self._client.list_items(self._config.chain_model)
            chains: list[StoreChainItem] = []
            for item in items:
                chain = chain_item_from_item(item)
                if chain is None:
                    log.warning("Chain item id=%s has no name", item.id)
                    continue
                chains.append(chain)
            self._chains = chains
        return list(self._chains)

    def get(self, record_id: str) -> StoreRecord:
        return store_record_from_item(self._client.get_item(record_id))

    def create(self, changes: RecordChanges) -> StoreRecord:
        if self._dapp_model_id is None:
            self._dapp_model_id = self._client.find_item_type(self._config.dapp_model).id
        item = self._client.create_item(self._dapp_model_id, attributes_from_changes(changes))
        return store_record_from_item(item)

    def update(self, record_id: str, changes: RecordChanges) -> StoreRecord:
        item = self._client.update_item(record_id, attributes_from_changes(changes))
        return store_record_from_item(item)

    def publish(self, record_id: str) -> None:
        self._client.publish_item(record_id)

    def destroy(self, record_id: str) -> None:
        self._client.destroy_item(record_id)
