"""Unit tests for shared model behaviour."""

from __future__ import annotations

import pytest

from recipe_portal.core.exceptions import InvalidFieldError, NoValidFieldsError
from recipe_portal.models import CategoryUpdate, RecipeUpdate, UserUpdate
from recipe_portal.models.base import drop_fields
from recipe_portal.models.recipe import MODERATION_FIELDS


pytestmark = pytest.mark.unit


class TestPartialUpdateCoerce:
    """Tests for PartialUpdate.coerce."""

    def test_drops_unknown_keys(self) -> None:
        data = CategoryUpdate.coerce({"name": " Soups ", "id": 4, "hacked": True})

        assert data == {"name": "Soups"}

    def test_no_permitted_keys(self) -> None:
        with pytest.raises(NoValidFieldsError) as exc_info:
            RecipeUpdate.coerce({"view_count": 0, "author_id": 1})

        assert exc_info.value.code == "NO_VALID_FIELDS"

    def test_empty_model_instance(self) -> None:
        with pytest.raises(NoValidFieldsError):
            UserUpdate.coerce(UserUpdate())

    def test_invalid_value(self) -> None:
        with pytest.raises(InvalidFieldError) as exc_info:
            RecipeUpdate.coerce({"servings": 0})

        assert exc_info.value.fields == ["servings"]

    def test_nullable_fields_accept_none(self) -> None:
        assert RecipeUpdate.coerce({"description": None}) == {"description": None}

    def test_other_fields_reject_none(self) -> None:
        with pytest.raises(InvalidFieldError, match="title"):
            RecipeUpdate.coerce({"title": None})

    def test_enum_values_are_plain(self) -> None:
        data = RecipeUpdate.coerce({"difficulty": "hard"})

        assert data == {"difficulty": "hard"}
        assert type(data["difficulty"]) is str

    def test_allowed_fields(self) -> None:
        assert CategoryUpdate.allowed_fields() == frozenset({"name", "description", "active"})


class TestDropFields:
    """Tests for drop_fields."""

    def test_from_dict(self) -> None:
        changes = {"title": "New", "approved": True, "active": False}

        assert drop_fields(changes, MODERATION_FIELDS) == {"title": "New"}

    def test_from_model_keeps_only_set_fields(self) -> None:
        changes = RecipeUpdate(title="New", approved=True)

        assert drop_fields(changes, MODERATION_FIELDS) == {"title": "New"}
