"""Category entity and write models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import Field

from recipe_portal.models.base import Entity, FilterModel, PartialUpdate, WriteModel


class Category(Entity):
    id: int
    name: str
    description: str | None = ""
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_active(self) -> bool:
        return self.active

    def to_public_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class CategoryCreate(WriteModel):
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)


class CategoryUpdate(PartialUpdate):
    """Updatable category columns."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description"})

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    active: bool | None = None


class CategoryFilters(FilterModel):
    """Optional filters for category listings."""

    term: str | None = None
    include_inactive: bool = False
