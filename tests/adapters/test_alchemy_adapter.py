from __future__ import annotations

from collections.abc import Callable  # noqa: TC003

import httpx
import pytest

from dappsync.adapters.alchemy import (
    AlchemyAPIError,
    AlchemyClient,
    AlchemyDirectory,
    DappPayload,
    directory_record_from_payload,
)
from dappsync.config.alchemy import AlchemyConfig
from dappsync.domain.model import RelatedDapp
from dappsync.domain.ports import ProviderError
from tests.helpers.http import make_client_factory, resilience_config

BASE_URL = "https://dapp-store.test"

AAVE = {
    "name": "Aave",
    "slug": "aave",
    "shortDescription": "Lend and borrow",
    "longDescription": "Aave is a decentralised lending protocol.",
    "logoCdnUrl": "https://cdn.test/aave.png",
    "logoUrl": "https://raw.test/aave.png",
    "chains": ["Ethereum", {"name": "Polygon"}, "recA1b2C3d4E5"],
    "vipChildCategory": [{"name": "Lending"}],
    "website": "https://aave.com",
    "twitterUrl": "  ",
    "twitter": "aave",
    "featured": True,
    "relatedDappsAndTools": None,
    "alternatives": [{"name": "Compound", "logoUrl": "https://raw.test/comp.png"}, {"slug": "x"}],
    "unmodelled": {"ignored": True},
}


def _directory(
    handler: Callable[[httpx.Request], httpx.Response], *, max_pages: int = 20
) -> AlchemyDirectory:
    config = AlchemyConfig(resilience=resilience_config("alchemy", BASE_URL), max_pages=max_pages)
    client = AlchemyClient(config=config, client_factory=make_client_factory(handler))
    return AlchemyDirectory(config=config, client=client)


def test_directory_record_from_payload() -> None:
    record = directory_record_from_payload(DappPayload.model_validate(AAVE))

    assert record.name == "Aave"
    assert record.description == "Lend and borrow"
    assert record.long_description == "Aave is a decentralised lending protocol."
    assert record.logo_url == "https://cdn.test/aave.png"
    assert record.chain_names == ("Ethereum", "Polygon")
    assert record.category_names == ("Lending",)
    assert record.website_url == "https://aave.com"
    assert record.twitter == "aave"
    assert record.featured is True
    assert record.verified is None
    assert record.related == (
        RelatedDapp(name="Compound", logo_url="https://raw.test/comp.png"),
    )


def test_list_page_requests_page_and_reads_has_more() -> None:
    pages: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        pages.append(request.url.params["page"])
        assert request.url.path == "/dapps"
        return httpx.Response(200, json={"records": [AAVE], "hasMore": False})

    listing = _directory(handler).list_page(3)

    assert pages == ["3"]
    assert [record.slug for record in listing.records] == ["aave"]
    assert listing.has_more is False


def test_list_page_without_has_more_continues_while_records_arrive() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        records = [AAVE] if page == "1" else None
        return httpx.Response(200, json={"records": records})

    directory = _directory(handler)

    assert directory.list_page(1).has_more is True
    second = directory.list_page(2)
    assert second.records == []
    assert second.has_more is False


def test_list_page_stops_at_page_limit() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"records": [AAVE], "hasMore": True})

    directory = _directory(handler, max_pages=2)

    assert directory.list_page(2).has_more is False
    assert directory.list_page(3).records == []
    assert directory.list_page(0).records == []
    assert len(calls) == 1


def test_get_detail_returns_none_for_unknown_slug() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/dapps/aave":
            return httpx.Response(200, json=AAVE)
        return httpx.Response(404, json={"error": "not found"})

    directory = _directory(handler)

    detail = directory.get_detail("aave")
    assert detail is not None
    assert detail.slug == "aave"
    assert directory.get_detail("missing") is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "boom"}),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(200, json={"records": "nope"}),
    ],
)
def test_listing_failures_raise_provider_error(response: httpx.Response) -> None:
    directory = _directory(lambda _request: response)

    with pytest.raises(AlchemyAPIError) as excinfo:
        directory.list_page(1)

    assert isinstance(excinfo.value, ProviderError)


def test_transport_failure_raises_provider_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(AlchemyAPIError, match="failed"):
        _directory(handler).get_detail("aave")
