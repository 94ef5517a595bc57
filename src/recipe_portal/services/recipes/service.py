"""Recipe service.

Submission, editing and moderation of recipes on behalf of an actor.

Rules:
- New recipes belong to the submitting actor and start unapproved.
- Only the author or an admin may edit or remove a recipe.
- ``approved`` and ``active`` are changed only by admins; for anyone else
  those keys are dropped from the requested changes.
- Inactive recipes behave as missing for every operation here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from recipe_portal.auth.permissions import (
    Permission,
    can_moderate_recipe,
    can_mutate_recipe,
    has_permission,
    require,
)
from recipe_portal.core.exceptions import NotFoundError
from recipe_portal.database.repositories.recipes import RecipeRepository
from recipe_portal.models.base import drop_fields
from recipe_portal.models.recipe import MODERATION_FIELDS, RecipeFilters, RecipeUpdate
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from recipe_portal.auth.models import Actor
    from recipe_portal.database.query import Page, Pagination
    from recipe_portal.models.recipe import Recipe, RecipeCreate

logger = get_logger(__name__)


class RecipeService:
    """Public browsing plus author and admin workflows for recipes."""

    def __init__(self, recipes: RecipeRepository | None = None) -> None:
        self._recipes = recipes or RecipeRepository()

    async def browse(
        self,
        filters: RecipeFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[Recipe]:
        """Public listing: filtered search when criteria are given."""
        filters = RecipeFilters.parse(filters or {})
        if filters.has_criteria():
            return await self._recipes.search(filters, pagination)
        return await self._recipes.list(RecipeFilters(only_approved=True), pagination)

    async def get_recipe(self, recipe_id: int) -> Recipe:
        """Public detail view; counts the view.

        Raises:
            NotFoundError: If the recipe is not publicly visible.
        """
        return await self._recipes.get_detail(recipe_id)

    async def submit(self, actor: Actor, data: RecipeCreate | dict[str, Any]) -> Recipe:
        """Create a recipe authored by ``actor``, pending approval.

        Raises:
            PermissionDeniedError: If the actor may not create recipes.
            ForeignKeyInvalidError: If the category is not active.
            InvalidFieldError: If a field fails validation.
        """
        require(has_permission(actor.role, Permission.RECIPE_CREATE))
        if isinstance(data, BaseModel):
            data = data.model_dump()
        payload = {**data, "author_id": actor.user_id}

        recipe = await self._recipes.create(payload)
        logger.info("Recipe submitted", recipe_id=recipe.id, author_id=actor.user_id)
        return recipe

    async def update_recipe(
        self,
        actor: Actor,
        recipe_id: int,
        changes: RecipeUpdate | dict[str, Any],
    ) -> Recipe:
        """Edit a recipe.

        Raises:
            NotFoundError: If the recipe does not exist or is inactive.
            PermissionDeniedError: If the actor is neither author nor admin.
            NoValidFieldsError: If nothing updatable remains.
        """
        await self._get_mutable(actor, recipe_id)
        if not can_moderate_recipe(actor.role):
            changes = drop_fields(changes, MODERATION_FIELDS)

        return await self._recipes.update(recipe_id, changes)

    async def deactivate_recipe(self, actor: Actor, recipe_id: int) -> Recipe:
        """Soft-delete a recipe.

        Raises:
            NotFoundError: If the recipe does not exist or is already inactive.
            PermissionDeniedError: If the actor is neither author nor admin.
        """
        await self._get_mutable(actor, recipe_id)

        recipe = await self._recipes.deactivate(recipe_id)
        logger.info("Recipe deactivated", recipe_id=recipe_id, actor_id=actor.user_id)
        return recipe

    async def moderate(self, actor: Actor, recipe_id: int, approved: bool) -> Recipe:
        """Approve or withdraw approval of a recipe.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
            NotFoundError: If the recipe does not exist or is inactive.
        """
        require(can_moderate_recipe(actor.role), "Only administrators can moderate recipes")
        if await self._recipes.find_by_id(recipe_id) is None:
            raise NotFoundError("Recipe", recipe_id)

        recipe = await self._recipes.update(recipe_id, RecipeUpdate(approved=approved))
        logger.info(
            "Recipe moderated",
            recipe_id=recipe_id,
            approved=approved,
            actor_id=actor.user_id,
        )
        return recipe

    async def my_recipes(
        self,
        actor: Actor,
        pagination: Pagination | None = None,
    ) -> Page[Recipe]:
        """The actor's active recipes, approved or pending."""
        return await self._recipes.list_by_author(actor.user_id, pagination)

    async def _get_mutable(self, actor: Actor, recipe_id: int) -> Recipe:
        recipe = await self._recipes.find_by_id(recipe_id)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        require(
            can_mutate_recipe(actor.user_id, actor.role, recipe),
            "You can only modify your own recipes",
        )
        return recipe
