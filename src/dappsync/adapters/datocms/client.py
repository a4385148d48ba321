"""HTTP client for the DatoCMS Content Management API."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from dappsync.adapters.http_resilience import ResilientClient
from dappsync.domain.ports import (
    RecordStoreError,
    RecordStoreUnavailableError,
    RecordTooLargeError,
)

from .schema import ErrorDocument, Item, ItemCollection, ItemDocument, ItemType, ItemTypeCollection

if TYPE_CHECKING:
    from collections.abc import Callable

    from dappsync.config.datocms import DatoCmsConfig
    from dappsync.config.http_resilience import ResilienceConfig

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
# Error code DatoCMS returns when an item would exceed its size limit.
TECHNICAL_LIMIT_REACHED = "TECHNICAL_LIMIT_REACHED"


class DatoCmsAPIError(RecordStoreError):
    """Raised when the DatoCMS API rejects a request or returns an unexpected payload."""

    def __init__(
        self, message: str, *, status_code: int | None = None, codes: tuple[str, ...] = ()
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.codes = codes


class DatoCmsRecordTooLargeError(DatoCmsAPIError, RecordTooLargeError):
    """Raised when DatoCMS rejects a write with ``TECHNICAL_LIMIT_REACHED``."""


class DatoCmsClient:
    """Low-level client; every public method runs one request cycle to completion."""

    def __init__(
        self,
        *,
        config: DatoCmsConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def find_item_type(self, api_key: str) -> ItemType:
        return asyncio.run(self._find_item_type_async(api_key))

    def list_items(
        self,
        item_type: str,
        *,
        filters: Mapping[str, object] | None = None,
        order_by: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[Item]:
        return asyncio.run(
            self._list_items_async(
                item_type, filters=filters or {}, order_by=order_by, page_size=page_size
            )
        )

    def get_item(self, item_id: str) -> Item:
        return asyncio.run(self._send_item("GET", f"/items/{item_id}"))

    def create_item(self, item_type_id: str, attributes: Mapping[str, object]) -> Item:
        body = {
            "data": {
                "type": "item",
                "attributes": dict(attributes),
                "relationships": {
                    "item_type": {"data": {"type": "item_type", "id": item_type_id}}
                },
            }
        }
        return asyncio.run(self._send_item("POST", "/items", json=body))

    def update_item(self, item_id: str, attributes: Mapping[str, object]) -> Item:
        body = {"data": {"type": "item", "id": item_id, "attributes": dict(attributes)}}
        return asyncio.run(self._send_item("PUT", f"/items/{item_id}", json=body))

    def publish_item(self, item_id: str) -> Item:
        return asyncio.run(self._send_item("PUT", f"/items/{item_id}/publish"))

    def destroy_item(self, item_id: str) -> None:
        asyncio.run(self._request("DELETE", f"/items/{item_id}"))

    async def _find_item_type_async(self, api_key: str) -> ItemType:
        payload = await self._request("GET", "/item-types")
        collection = self._validate(ItemTypeCollection, payload)
        for item_type in collection.data:
            if item_type.attributes.api_key == api_key:
                return item_type
        raise DatoCmsAPIError(f"DatoCMS model {api_key!r} not found")

    async def _list_items_async(
        self,
        item_type: str,
        *,
        filters: Mapping[str, object],
        order_by: str | None,
        page_size: int,
    ) -> list[Item]:
        params: dict[str, str] = {"filter[type]": item_type, "page[limit]": str(page_size)}
        for name, value in filters.items():
            params[f"filter[fields][{name}][eq]"] = str(value)
        if order_by:
            params["order_by"] = order_by

        items: list[Item] = []
        async with self._client_factory(self._resilience) as client:
            while True:
                params["page[offset]"] = str(len(items))
                payload = await self._perform_request(client, "GET", "/items", params=params)
                page = self._validate(ItemCollection, payload)
                items.extend(page.data)
                total = page.meta.total_count
                if not page.data or len(page.data) < page_size:
                    break
                if total is not None and len(items) >= total:
                    break
        log.debug("Listed %d %s item(s)", len(items), item_type)
        return items

    async def _send_item(self, method: str, path: str, *, json: object = None) -> Item:
        payload = await self._request(method, path, json=json)
        return self._validate(ItemDocument, payload).data

    async def _request(self, method: str, path: str, *, json: object = None) -> object:
        async with self._client_factory(self._resilience) as client:
            return await self._perform_request(client, method, path, json=json)

    async def _perform_request(
        self,
        client: ResilientClient,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: object = None,
    ) -> object:
        try:
            if json is None:
                response = await client.request(method, path, params=params)
            else:
                response = await client.request(method, path, params=params, json=json)
        except httpx.TransportError as exc:
            raise RecordStoreUnavailableError(f"DatoCMS unreachable: {exc}") from exc

        if response.is_error:
            raise _api_error(response)
        if response.status_code == httpx.codes.NO_CONTENT or not response.content:
            return None
        return response.json()

    @staticmethod
    def _validate[TModel: (ItemTypeCollection, ItemCollection, ItemDocument)](
        model: type[TModel], payload: object
    ) -> TModel:
        if not isinstance(payload, dict):
            raise DatoCmsAPIError("Unexpected DatoCMS response payload")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise DatoCmsAPIError(f"Unexpected DatoCMS {model.__name__} payload") from exc


def _api_error(response: httpx.Response) -> DatoCmsAPIError:
    try:
        document = ErrorDocument.model_validate(response.json())
    except ValueError:
        document = ErrorDocument()
    codes = tuple(document.codes)
    request = response.request
    message = f"DatoCMS {request.method} {request.url.path} -> {response.status_code}"
    if codes:
        message = f"{message} ({', '.join(codes)})"
    if TECHNICAL_LIMIT_REACHED in codes:
        log.warning(message)
        return DatoCmsRecordTooLargeError(message, status_code=response.status_code, codes=codes)
    log.error(message)
    return DatoCmsAPIError(message, status_code=response.status_code, codes=codes)
