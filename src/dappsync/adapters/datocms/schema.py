"""Pydantic models for DatoCMS Content Management API documents (JSON:API)."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class DatoCmsBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "DatoCMS %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class ResourceRef(DatoCmsBaseModel):
    id: str
    type: str


class RelationshipData(DatoCmsBaseModel):
    data: ResourceRef | list[ResourceRef] | None = None


class ItemMeta(DatoCmsBaseModel):
    status: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    first_published_at: str | None = None


class Item(DatoCmsBaseModel):
    id: str
    type: str = "item"
    # Field values are keyed by the model's field api keys and are untyped.
    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: dict[str, RelationshipData] = Field(default_factory=dict)
    meta: ItemMeta = Field(default_factory=ItemMeta)


class ItemDocument(DatoCmsBaseModel):
    data: Item


class CollectionMeta(DatoCmsBaseModel):
    total_count: int | None = None


class ItemCollection(DatoCmsBaseModel):
    data: list[Item] = Field(default_factory=list)
    meta: CollectionMeta = Field(default_factory=CollectionMeta)


class ItemTypeAttributes(DatoCmsBaseModel):
    api_key: str
    name: str | None = None


class ItemType(DatoCmsBaseModel):
    id: str
    type: str = "item_type"
    attributes: ItemTypeAttributes


class ItemTypeCollection(DatoCmsBaseModel):
    data: list[ItemType] = Field(default_factory=list)


class ApiErrorAttributes(DatoCmsBaseModel):
    code: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class ApiError(DatoCmsBaseModel):
    id: str | None = None
    type: str = "api_error"
    attributes: ApiErrorAttributes = Field(default_factory=ApiErrorAttributes)


class ErrorDocument(DatoCmsBaseModel):
    data: list[ApiError] = Field(default_factory=list)

    @property
    def codes(self) -> list[str]:
        return [error.attributes.code for error in self.data if error.attributes.code]
