"""Category service.

Anyone may read active categories; creating and managing them is reserved
for admins.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipe_portal.auth.permissions import (
    can_create_category,
    can_manage_category,
    require,
)
from recipe_portal.core.exceptions import NotFoundError
from recipe_portal.database.repositories.categories import CategoryRepository
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from recipe_portal.auth.models import Actor
    from recipe_portal.database.query import Page, Pagination
    from recipe_portal.models.category import (
        Category,
        CategoryCreate,
        CategoryFilters,
        CategoryUpdate,
    )

logger = get_logger(__name__)


class CategoryService:
    def __init__(self, categories: CategoryRepository | None = None) -> None:
        self._categories = categories or CategoryRepository()

    async def list_categories(
        self,
        filters: CategoryFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[Category]:
        return await self._categories.list(filters, pagination)

    async def get_category(self, category_id: int) -> Category:
        """Get an active category.

        Raises:
            NotFoundError: If the category does not exist or is inactive.
        """
        category = await self._categories.find_by_id(category_id)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    async def create_category(
        self,
        actor: Actor,
        data: CategoryCreate | dict[str, Any],
    ) -> Category:
        require(can_create_category(actor.role), "Only administrators can create categories")
        return await self._categories.create(data)

    async def update_category(
        self,
        actor: Actor,
        category_id: int,
        changes: CategoryUpdate | dict[str, Any],
    ) -> Category:
        require(can_manage_category(actor.role), "Only administrators can edit categories")
        return await self._categories.update(category_id, changes)

    async def deactivate_category(self, actor: Actor, category_id: int) -> Category:
        """Soft-delete a category.

        Raises:
            PermissionDeniedError: If the actor is not an admin.
            NotFoundError: If the category does not exist or is already inactive.
        """
        require(can_manage_category(actor.role), "Only administrators can remove categories")
        await self.get_category(category_id)

        category = await self._categories.deactivate(category_id)
        logger.info("Category deactivated", category_id=category_id, actor_id=actor.user_id)
        return category
