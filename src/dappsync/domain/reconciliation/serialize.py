"""Serialize unified metadata under a hard UTF-8 byte budget.

The degradation ladder runs cheapest first and re-measures after every step:
1) serialize as-is
2) shrink the description in proportion to the overage (floored)
3) drop optional nested structures, ``chainTvl`` first
4) hard-truncate the description

If the last step still does not fit, ``BudgetExceededError`` is raised; a
partially fitting payload is never returned.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from dappsync.domain.model import JsonValue, UnifiedMetadata

log = logging.getLogger(__name__)

DEFAULT_BUDGET_BYTES: Final = 250_000
DESCRIPTION_FLOOR: Final = 500
HARD_DESCRIPTION_LIMIT: Final = 1000
ELLIPSIS: Final = "..."
OPTIONAL_FIELDS: Final[tuple[str, ...]] = ("chainTvl", "relatedDapps")


class DegradationStep(StrEnum):
    SHRINK_DESCRIPTION = "shrink-description"
    DROP_CHAIN_TVL = "drop-chainTvl"
    DROP_RELATED_DAPPS = "drop-relatedDapps"
    TRUNCATE_DESCRIPTION = "truncate-description"


_DROP_STEPS: Final[dict[str, DegradationStep]] = {
    "chainTvl": DegradationStep.DROP_CHAIN_TVL,
    "relatedDapps": DegradationStep.DROP_RELATED_DAPPS,
}


class BudgetExceededError(ValueError):
    """Raised when even the fully degraded payload exceeds the budget."""

    def __init__(self, *, budget_bytes: int, size_bytes: int) -> None:
        self.budget_bytes = budget_bytes
        self.size_bytes = size_bytes
        super().__init__(
            f"Unified metadata needs {size_bytes} bytes after degradation; "
            f"budget is {budget_bytes} bytes"
        )


def dumps(payload: dict[str, JsonValue]) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def encoded_size(text: str) -> int:
    return len(text.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class SerializedMetadata:
    text: str
    steps: tuple[DegradationStep, ...] = ()

    @property
    def size_bytes(self) -> int:
        return encoded_size(self.text)

    @property
    def degraded(self) -> bool:
        return bool(self.steps)


class SizeBudgetSerializer:
    def __init__(
        self,
        budget_bytes: int = DEFAULT_BUDGET_BYTES,
        *,
        description_floor: int = DESCRIPTION_FLOOR,
        hard_description_limit: int = HARD_DESCRIPTION_LIMIT,
    ) -> None:
        if budget_bytes <= 0:
            msg = f"budget_bytes must be positive, got {budget_bytes}"
            raise ValueError(msg)
        self.budget_bytes = budget_bytes
        self.description_floor = description_floor
        self.hard_description_limit = hard_description_limit

    def serialize(self, unified: UnifiedMetadata, budget_bytes: int | None = None) -> str:
        return self.fit(unified, budget_bytes).text

    def fit(self, unified: UnifiedMetadata, budget_bytes: int | None = None) -> SerializedMetadata:
        budget = self.budget_bytes if budget_bytes is None else budget_bytes
        steps: list[DegradationStep] = []

        text = dumps(unified.to_payload())
        size = encoded_size(text)
        if size <= budget:
            return SerializedMetadata(text=text)

        shrunk = self._shrink_description(unified, overage=size - budget)
        if shrunk is not None:
            unified = shrunk
            steps.append(DegradationStep.SHRINK_DESCRIPTION)
            text, size = self._measure(unified, steps)
            if size <= budget:
                return SerializedMetadata(text=text, steps=tuple(steps))

        for name in OPTIONAL_FIELDS:
            if name not in unified:
                continue
            unified = unified.without(name)
            steps.append(_DROP_STEPS[name])
            text, size = self._measure(unified, steps)
            if size <= budget:
                return SerializedMetadata(text=text, steps=tuple(steps))

        description = unified.get("description")
        if isinstance(description, str) and len(description) > self.hard_description_limit:
            unified = unified.with_field("description", description[: self.hard_description_limit])
            steps.append(DegradationStep.TRUNCATE_DESCRIPTION)
            text, size = self._measure(unified, steps)
            if size <= budget:
                return SerializedMetadata(text=text, steps=tuple(steps))

        raise BudgetExceededError(budget_bytes=budget, size_bytes=size)

    def _shrink_description(
        self, unified: UnifiedMetadata, *, overage: int
    ) -> UnifiedMetadata | None:
        description = unified.get("description")
        if not isinstance(description, str):
            return None
        body = description.removesuffix(ELLIPSIS)
        target = max(self.description_floor, len(body) - math.ceil(overage / 2))
        shrunk = body[:target] + ELLIPSIS
        if len(shrunk) >= len(description):
            return None
        return unified.with_field("description", shrunk)

    def _measure(
        self, unified: UnifiedMetadata, steps: list[DegradationStep]
    ) -> tuple[str, int]:
        text = dumps(unified.to_payload())
        size = encoded_size(text)
        log.debug("After %s: %d bytes", steps[-1], size)
        return text, size


def serialize(unified: UnifiedMetadata, budget_bytes: int = DEFAULT_BUDGET_BYTES) -> str:
    return SizeBudgetSerializer(budget_bytes).serialize(unified)
