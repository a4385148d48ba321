from __future__ import annotations

import json
from datetime import UTC, datetime

import httpx
import pytest

from dappsync.adapters.datocms import (
    DatoCmsAPIError,
    DatoCmsClient,
    DatoCmsRecordStore,
    attributes_from_changes,
    store_record_from_item,
)
from dappsync.adapters.datocms.schema import Item
from dappsync.config.datocms import DatoCmsConfig
from dappsync.domain.model import PublishStatus, StoreChainItem
from dappsync.domain.ports import (
    RecordQuery,
    RecordStoreError,
    RecordStoreUnavailableError,
    RecordTooLargeError,
    UnknownFieldError,
)
from tests.helpers.http import make_client_factory, resilience_config
from tests.helpers.records import FIXED_NOW

BASE_URL = "https://site-api.test"


def _config() -> DatoCmsConfig:
    return DatoCmsConfig(
        api_token="token",
        dapp_model="dapp",
        chain_model="chain",
        resilience=resilience_config("datocms", BASE_URL, Authorization="Bearer token"),
    )


def _item(
    item_id: str, status: str | None = "published", **attributes: object
) -> dict[str, object]:
    return {"id": item_id, "type": "item", "attributes": attributes, "meta": {"status": status}}


DAPP_ITEM = _item(
    "d1",
    title="Aave",
    tvl_usd="12.5",
    category_defillama="Lending",
    alchemy_recent_activity={"name": "Aave"},
    chains=["c1", "c2"],
    last_synced_at="2025-01-01T00:00:00Z",
    token_logo_url="https://logo.test/aave.png",
)
CHAIN_ITEMS = [_item("c1", name="Ethereum"), _item("c2"), _item("c3", title="Base")]


def _store(
    *,
    routes: dict[tuple[str, str], tuple[int, object]] | None = None,
    requests: list[httpx.Request] | None = None,
) -> DatoCmsRecordStore:
    seen = requests if requests is not None else []
    table = routes or {}

    def dispatch(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "GET" and request.url.path == "/items":
            model = request.url.params["filter[type]"]
            data = CHAIN_ITEMS if model == "chain" else [DAPP_ITEM]
            return httpx.Response(200, json={"data": data, "meta": {"total_count": len(data)}})
        status, payload = table[(request.method, request.url.path)]
        if payload is None:
            return httpx.Response(status)
        return httpx.Response(status, json=payload)

    config = _config()
    client = DatoCmsClient(config=config, client_factory=make_client_factory(dispatch))
    return DatoCmsRecordStore(config=config, client=client)


def test_store_record_from_item_maps_model_fields() -> None:
    record = store_record_from_item(
        Item.model_validate(DAPP_ITEM), chain_names_by_id={"c1": "Ethereum"}
    )

    assert record.id == "d1"
    assert record.title == "Aave"
    assert record.tvl_usd == 12.5
    assert record.category == "Lending"
    assert record.enrichment == '{"name":"Aave"}'
    assert record.chain_ids == ("c1", "c2")
    assert record.chain_names == ("Ethereum",)
    assert record.last_synced_at == datetime(2025, 1, 1, tzinfo=UTC)
    assert record.logo_url == "https://logo.test/aave.png"
    assert record.status is PublishStatus.PUBLISHED


def test_store_record_tolerates_unknown_status_and_bad_values() -> None:
    item = Item.model_validate(
        _item("d2", status="archived", tvl_usd="n/a", last_synced_at="yesterday", chains="c1")
    )

    record = store_record_from_item(item)

    assert record.status is None
    assert record.tvl_usd is None
    assert record.last_synced_at is None
    assert record.chain_ids == ()


def test_attributes_from_changes_uses_model_api_keys() -> None:
    attributes = attributes_from_changes(
        {"category": "Dexes", "last_synced_at": FIXED_NOW, "chain_ids": ("c1",)}
    )

    assert attributes == {
        "category_defillama": "Dexes",
        "last_synced_at": "2025-03-01T12:00:00Z",
        "chains": ["c1"],
    }
    with pytest.raises(UnknownFieldError):
        attributes_from_changes({"logo_url": "x"})


def test_list_records_resolves_chain_names() -> None:
    requests: list[httpx.Request] = []
    store = _store(requests=requests)

    records = store.list_records()

    assert [record.id for record in records] == ["d1"]
    assert records[0].chain_names == ("Ethereum",)
    assert store.list_chains() == [
        StoreChainItem(id="c1", name="Ethereum"),
        StoreChainItem(id="c3", name="Base"),
    ]
    # chain items are fetched once
    assert len(requests) == 2
    assert requests[0].headers["Authorization"] == "Bearer token"
    assert requests[0].url.params["page[limit]"] == "100"


def test_list_records_translates_query() -> None:
    requests: list[httpx.Request] = []
    store = _store(requests=requests)

    store.list_records(RecordQuery(filters={"category": "Lending"}, order_by="title_ASC"))

    params = requests[0].url.params
    assert params["filter[type]"] == "dapp"
    assert params["filter[fields][category_defillama][eq]"] == "Lending"
    assert params["order_by"] == "title_ASC"


def test_list_items_follows_offset_pagination() -> None:
    items = [_item(f"d{index}", title=f"Dapp {index}") for index in range(3)]
    offsets: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        offset = request.url.params["page[offset]"]
        offsets.append(offset)
        start = int(offset)
        return httpx.Response(
            200, json={"data": items[start : start + 2], "meta": {"total_count": 3}}
        )

    client = DatoCmsClient(config=_config(), client_factory=make_client_factory(handler))

    listed = client.list_items("dapp", page_size=2)

    assert [item.id for item in listed] == ["d0", "d1", "d2"]
    assert offsets == ["0", "2"]


def test_update_sends_json_api_document() -> None:
    requests: list[httpx.Request] = []
    updated = _item("d1", title="Aave", tvl_usd=5.0)
    store = _store(
        routes={("PUT", "/items/d1"): (200, {"data": updated})},
        requests=requests,
    )

    record = store.update("d1", {"tvl_usd": 5.0, "last_synced_at": FIXED_NOW})

    body = json.loads(requests[0].content)
    assert body == {
        "data": {
            "type": "item",
            "id": "d1",
            "attributes": {"tvl_usd": 5.0, "last_synced_at": "2025-03-01T12:00:00Z"},
        }
    }
    assert record.tvl_usd == 5.0


def test_create_looks_up_model_id_once() -> None:
    requests: list[httpx.Request] = []
    item_types = {"data": [{"id": "it1", "type": "item_type", "attributes": {"api_key": "dapp"}}]}
    store = _store(
        routes={
            ("GET", "/item-types"): (200, item_types),
            ("POST", "/items"): (201, {"data": _item("d9", "draft")}),
        },
        requests=requests,
    )

    store.create({"title": "New"})
    record = store.create({"title": "Newer"})

    assert [request.method for request in requests] == ["GET", "POST", "POST"]
    body = json.loads(requests[1].content)
    assert body["data"]["relationships"]["item_type"]["data"]["id"] == "it1"
    assert body["data"]["attributes"] == {"title": "New"}
    assert record.status is PublishStatus.DRAFT


def test_create_fails_for_unknown_model() -> None:
    store = _store(routes={("GET", "/item-types"): (200, {"data": []})})

    with pytest.raises(DatoCmsAPIError, match="not found"):
        store.create({"title": "New"})


def test_publish_and_destroy() -> None:
    requests: list[httpx.Request] = []
    store = _store(
        routes={
            ("PUT", "/items/d1/publish"): (200, {"data": DAPP_ITEM}),
            ("DELETE", "/items/d1"): (204, None),
        },
        requests=requests,
    )

    store.publish("d1")
    store.destroy("d1")

    assert [(request.method, request.url.path) for request in requests] == [
        ("PUT", "/items/d1/publish"),
        ("DELETE", "/items/d1"),
    ]


def test_api_errors_carry_codes() -> None:
    error = {"data": [{"id": "e1", "type": "api_error", "attributes": {"code": "INVALID_FIELD"}}]}
    store = _store(routes={("PUT", "/items/d1"): (422, error)})

    with pytest.raises(DatoCmsAPIError) as excinfo:
        store.update("d1", {"title": "Aave"})

    assert isinstance(excinfo.value, RecordStoreError)
    assert excinfo.value.status_code == 422
    assert excinfo.value.codes == ("INVALID_FIELD",)


def test_technical_limit_is_reported_as_record_too_large() -> None:
    error = {
        "data": [
            {"id": "e1", "type": "api_error", "attributes": {"code": "TECHNICAL_LIMIT_REACHED"}}
        ]
    }
    store = _store(routes={("PUT", "/items/d1"): (422, error)})

    with pytest.raises(RecordTooLargeError) as excinfo:
        store.update("d1", {"unified_metadata": "{}"})

    assert isinstance(excinfo.value, DatoCmsAPIError)
    assert excinfo.value.codes == ("TECHNICAL_LIMIT_REACHED",)


def test_unexpected_payload_is_an_api_error() -> None:
    store = _store(routes={("GET", "/items/d1"): (200, [])})

    with pytest.raises(DatoCmsAPIError, match="Unexpected"):
        store.get("d1")


def test_transport_failure_marks_store_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    config = _config()
    client = DatoCmsClient(config=config, client_factory=make_client_factory(handler))
    store = DatoCmsRecordStore(config=config, client=client)

    with pytest.raises(RecordStoreUnavailableError):
        store.list_records()
