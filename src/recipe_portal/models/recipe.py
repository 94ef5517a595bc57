"""Recipe entity and write models.

``Recipe`` carries both the stored columns and the read-time join fields
(category and author names, rating aggregates). The aggregates come back
from PostgreSQL as ``numeric``/``bigint`` and are coerced to float/int here.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from pydantic import Field, field_validator

from recipe_portal.models.base import Entity, FilterModel, PartialUpdate, WriteModel
from recipe_portal.models.enums import Difficulty, Role


class Recipe(Entity):
    id: int
    title: str
    description: str | None = ""
    ingredients: str
    preparation: str
    prep_time: int | None = None
    servings: int = 1
    difficulty: Difficulty = Difficulty.MEDIUM
    category_id: int
    author_id: int
    approved: bool = False
    active: bool = True
    view_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # Join fields, present on reads only
    category_name: str | None = None
    author_name: str | None = None
    average_rating: float = 0.0
    rating_count: int = 0

    @field_validator("average_rating", mode="before")
    @classmethod
    def coerce_average(cls, value: Any) -> float:
        if value is None:
            return 0.0
        return round(float(Decimal(str(value))), 2)

    @field_validator("rating_count", mode="before")
    @classmethod
    def coerce_count(cls, value: Any) -> int:
        return 0 if value is None else int(value)

    def is_active(self) -> bool:
        return self.active

    def is_approved(self) -> bool:
        return self.approved

    def is_public(self) -> bool:
        """Visible to anonymous readers (join-side checks happen in SQL)."""
        return self.active and self.approved

    def can_edit(self, actor_id: int | None, actor_role: Role | str | None) -> bool:
        """Admins may edit anything; other users only their own recipes."""
        return actor_role == Role.ADMIN or (
            actor_id is not None and self.author_id == actor_id
        )

    def to_public_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class RecipeCreate(WriteModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    ingredients: str = Field(min_length=1)
    preparation: str = Field(min_length=1)
    prep_time: int | None = Field(default=None, ge=0)
    servings: int = Field(default=1, ge=1)
    difficulty: Difficulty = Difficulty.MEDIUM
    category_id: int = Field(ge=1)
    author_id: int = Field(ge=1)


class RecipeUpdate(PartialUpdate):
    """Updatable recipe columns.

    ``approved`` and ``active`` are moderation fields; the service layer
    strips them for non-admin actors before calling the repository.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description", "prep_time"})

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    ingredients: str | None = Field(default=None, min_length=1)
    preparation: str | None = Field(default=None, min_length=1)
    prep_time: int | None = Field(default=None, ge=0)
    servings: int | None = Field(default=None, ge=1)
    difficulty: Difficulty | None = None
    category_id: int | None = Field(default=None, ge=1)
    approved: bool | None = None
    active: bool | None = None


MODERATION_FIELDS = frozenset({"approved", "active"})


class RecipeFilters(FilterModel):
    """Optional listing filters; blank values are ignored."""

    term: str | None = None
    category_id: int | None = None
    difficulty: Difficulty | None = None
    only_approved: bool = True

    def has_criteria(self) -> bool:
        """True when any narrowing filter is set."""
        return bool(
            (self.term and self.term.strip())
            or self.category_id
            or self.difficulty
        )
