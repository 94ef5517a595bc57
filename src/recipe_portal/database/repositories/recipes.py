"""Recipe repository.

Reads join the category and author and left-join ratings, grouping by
recipe to compute the average score (0 without ratings) and the rating
count. Listings only ever include recipes whose own row, category and
author are all active; the public ``search`` additionally requires
approval.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipe_portal.core.exceptions import ForeignKeyInvalidError, NotFoundError
from recipe_portal.database.connection import translate_storage_errors
from recipe_portal.database.query import Page, Pagination, QueryBuilder
from recipe_portal.database.repositories.base import Repository
from recipe_portal.models.recipe import (
    Recipe,
    RecipeCreate,
    RecipeFilters,
    RecipeUpdate,
)
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection

logger = get_logger(__name__)


_RECIPE_SELECT = """
    SELECT
        r.*,
        c.name AS category_name,
        u.name AS author_name,
        COALESCE(AVG(rt.score), 0) AS average_rating,
        COUNT(rt.id) AS rating_count
    FROM recipes r
    INNER JOIN categories c ON c.id = r.category_id
    INNER JOIN users u ON u.id = r.author_id
    LEFT JOIN ratings rt ON rt.recipe_id = r.id
"""

_RECIPE_COUNT = """
    SELECT COUNT(*)
    FROM recipes r
    INNER JOIN categories c ON c.id = r.category_id
    INNER JOIN users u ON u.id = r.author_id
"""

_GROUP_BY = " GROUP BY r.id, c.name, u.name"
_NEWEST_FIRST = " ORDER BY r.created_at DESC, r.id DESC"

# Columns matched by the free-text search term
SEARCH_COLUMNS = ("r.title", "r.description", "r.ingredients")


def _eligible(qb: QueryBuilder) -> QueryBuilder:
    """Restrict to active recipes in active categories by active authors."""
    return (
        qb.require("r.active = TRUE")
        .require("c.active = TRUE")
        .require("u.active = TRUE")
    )


class RecipeRepository(Repository):
    """Repository for recipes and their rating aggregates."""

    table = "recipes"

    async def create(self, data: RecipeCreate | dict[str, Any]) -> Recipe:
        """Insert an unapproved recipe and return it with its join fields.

        Raises:
            ForeignKeyInvalidError: If the category or author is not active.
        """
        payload = RecipeCreate.parse(data)

        with translate_storage_errors("recipe references"):
            async with self.pool.acquire() as conn:
                await self._ensure_category_active(conn, payload.category_id)
                await self._ensure_author_active(conn, payload.author_id)
                recipe_id = await conn.fetchval(
                    """
                    INSERT INTO recipes (
                        title, description, ingredients, preparation, prep_time,
                        servings, difficulty, category_id, author_id
                    )
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                    RETURNING id
                    """,
                    payload.title,
                    payload.description,
                    payload.ingredients,
                    payload.preparation,
                    payload.prep_time,
                    payload.servings,
                    payload.difficulty,
                    payload.category_id,
                    payload.author_id,
                )

        logger.info(
            "Recipe created",
            recipe_id=recipe_id,
            author_id=payload.author_id,
            category_id=payload.category_id,
        )
        return await self._reload(recipe_id)

    async def find_by_id(
        self,
        recipe_id: int,
        *,
        include_inactive: bool = False,
    ) -> Recipe | None:
        """Get a recipe with join fields; inactive ones only when requested."""
        qb = QueryBuilder().equals("r.id", recipe_id)
        if not include_inactive:
            qb.require("r.active = TRUE")

        with translate_storage_errors("find recipe"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"{_RECIPE_SELECT}{qb.where_sql}{_GROUP_BY}", *qb.params
                )

        return None if row is None else Recipe.from_row(row)

    async def get_detail(self, recipe_id: int) -> Recipe:
        """Read a publicly visible recipe and count the view.

        The read and the increment are separate statements; concurrent
        readers may lose increments.

        Raises:
            NotFoundError: If the recipe is not publicly visible.
        """
        qb = _eligible(QueryBuilder().equals("r.id", recipe_id))
        qb.require("r.approved = TRUE")

        with translate_storage_errors("recipe detail"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"{_RECIPE_SELECT}{qb.where_sql}{_GROUP_BY}", *qb.params
                )
                if row is None:
                    raise NotFoundError("Recipe", recipe_id)
                await conn.execute(
                    "UPDATE recipes SET view_count = view_count + 1 WHERE id = $1",
                    recipe_id,
                )

        recipe = Recipe.from_row(row)
        recipe.view_count += 1
        return recipe

    async def search(
        self,
        filters: RecipeFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[Recipe]:
        """Public search over approved recipes.

        ``only_approved`` is ignored; approval is always required.
        """
        filters = RecipeFilters.parse(filters or {})
        qb = _eligible(QueryBuilder()).require("r.approved = TRUE")
        self._apply_filters(qb, filters)
        pagination = pagination or Pagination.from_params()
        return await self._page(qb, pagination, "search recipes")

    async def list(
        self,
        filters: RecipeFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[Recipe]:
        """Listing with an ``only_approved`` toggle for moderation views."""
        filters = RecipeFilters.parse(filters or {})
        qb = _eligible(QueryBuilder())
        if filters.only_approved:
            qb.require("r.approved = TRUE")
        self._apply_filters(qb, filters)
        pagination = pagination or Pagination.from_params()
        return await self._page(qb, pagination, "list recipes")

    async def list_by_author(
        self,
        author_id: int,
        pagination: Pagination | None = None,
    ) -> Page[Recipe]:
        """An author's own active recipes, approved or pending."""
        qb = QueryBuilder().require("r.active = TRUE").equals("r.author_id", author_id)
        pagination = pagination or Pagination.from_params()
        return await self._page(qb, pagination, "list author recipes")

    async def update(
        self,
        recipe_id: int,
        changes: RecipeUpdate | dict[str, Any],
    ) -> Recipe:
        """Apply allow-listed changes and return the reloaded recipe.

        Raises:
            NoValidFieldsError: If ``changes`` holds no updatable field.
            ForeignKeyInvalidError: If a new category is not active.
            NotFoundError: If the recipe does not exist.
        """
        data = RecipeUpdate.coerce(changes)
        query, params = self.build_update(data, recipe_id)

        with translate_storage_errors("recipe references"):
            async with self.pool.acquire() as conn:
                if "category_id" in data:
                    await self._ensure_category_active(conn, data["category_id"])
                updated_id = await conn.fetchval(query, *params)

        if updated_id is None:
            raise NotFoundError("Recipe", recipe_id)

        logger.info("Recipe updated", recipe_id=recipe_id, fields=sorted(data))
        return await self._reload(recipe_id)

    async def deactivate(self, recipe_id: int) -> Recipe:
        """Soft-delete a recipe. Deactivating twice is not an error here."""
        return await self.update(recipe_id, RecipeUpdate(active=False))

    @staticmethod
    def _apply_filters(qb: QueryBuilder, filters: RecipeFilters) -> None:
        qb.search(SEARCH_COLUMNS, filters.term)
        qb.equals("r.category_id", filters.category_id)
        qb.equals("r.difficulty", filters.difficulty)

    async def _page(
        self,
        qb: QueryBuilder,
        pagination: Pagination,
        operation: str,
    ) -> Page[Recipe]:
        limit_sql, page_params = qb.paginate(pagination)

        with translate_storage_errors(operation):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"{_RECIPE_SELECT}{qb.where_sql}{_GROUP_BY}{_NEWEST_FIRST}{limit_sql}",
                    *page_params,
                )
                total = await conn.fetchval(
                    f"{_RECIPE_COUNT}{qb.where_sql}", *qb.params
                )

        return Page[Recipe].build(
            [Recipe.from_row(row) for row in rows], total or 0, pagination
        )

    async def _reload(self, recipe_id: int) -> Recipe:
        recipe = await self.find_by_id(recipe_id, include_inactive=True)
        if recipe is None:
            raise NotFoundError("Recipe", recipe_id)
        return recipe

    @staticmethod
    async def _ensure_category_active(conn: Connection, category_id: int) -> None:
        active = await conn.fetchval(
            "SELECT active FROM categories WHERE id = $1", category_id
        )
        if not active:
            msg = f"Category {category_id} does not exist or is inactive"
            raise ForeignKeyInvalidError(msg)

    @staticmethod
    async def _ensure_author_active(conn: Connection, author_id: int) -> None:
        active = await conn.fetchval("SELECT active FROM users WHERE id = $1", author_id)
        if not active:
            msg = f"Author {author_id} does not exist or is inactive"
            raise ForeignKeyInvalidError(msg)
