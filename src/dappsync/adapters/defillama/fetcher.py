"""Analytics provider backed by DeFiLlama."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .client import DefiLlamaClient
from .translator import analytics_record_from_payload

if TYPE_CHECKING:
    from dappsync.config.defillama import DefiLlamaConfig
    from dappsync.domain.model import AnalyticsRecord
    from dappsync.domain.ports import AnalyticsProvider


class DefiLlamaAnalytics:
    def __init__(self, *, config: DefiLlamaConfig, client: DefiLlamaClient | None = None) -> None:
        self._client = client or DefiLlamaClient(config=config)

    def list_protocols(self) -> list[AnalyticsRecord]:
        return [analytics_record_from_payload(payload) for payload in self._client.list_protocols()]

    def get_protocol(self, protocol_id: str) -> AnalyticsRecord | None:
        payload = self._client.get_protocol(protocol_id)
        if payload is None:
            return None
        return analytics_record_from_payload(payload, protocol_id=protocol_id)


if TYPE_CHECKING:
    from dappsync.config.defillama import get_defillama_config

    _analytics_check: AnalyticsProvider = DefiLlamaAnalytics(config=get_defillama_config())
