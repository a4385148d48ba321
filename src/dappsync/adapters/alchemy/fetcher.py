"""Directory provider backed by the Alchemy dapp store."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from dappsync.domain.ports import DirectoryPage

from .client import AlchemyClient
from .translator import directory_record_from_payload

if TYPE_CHECKING:
    from dappsync.config.alchemy import AlchemyConfig
    from dappsync.domain.model import DirectoryRecord
    from dappsync.domain.ports import DirectoryProvider

log = getLogger(__name__)


class AlchemyDirectory:
    """Paginated dapp listing; pages past ``max_pages`` are reported empty."""

    def __init__(self, *, config: AlchemyConfig, client: AlchemyClient | None = None) -> None:
        self._max_pages = config.max_pages
        self._client = client or AlchemyClient(config=config)

    def list_page(self, page: int) -> DirectoryPage:
        if page < 1 or page > self._max_pages:
            return DirectoryPage()
        response = self._client.list_dapps(page)
        records = [directory_record_from_payload(payload) for payload in response.records]
        has_more = response.has_more if response.has_more is not None else bool(records)
        log.debug("Directory page %d: %d record(s)", page, len(records))
        return DirectoryPage(records=records, has_more=has_more and page < self._max_pages)

    def get_detail(self, slug: str) -> DirectoryRecord | None:
        payload = self._client.get_dapp(slug)
        if payload is None:
            return None
        return directory_record_from_payload(payload)


if TYPE_CHECKING:
    from dappsync.config.alchemy import get_alchemy_config

    _directory_check: DirectoryProvider = AlchemyDirectory(config=get_alchemy_config())
