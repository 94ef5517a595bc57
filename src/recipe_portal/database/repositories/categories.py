"""Category repository.

Name uniqueness is enforced only among active categories: a deactivated
category's name may be reused, and re-activating a category fails if its
name has since been taken. The check runs before the write and the partial
unique index on ``categories(name) WHERE active`` backs it up.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipe_portal.core.exceptions import DuplicateKeyError, NotFoundError
from recipe_portal.database.connection import translate_storage_errors
from recipe_portal.database.query import Page, Pagination, QueryBuilder
from recipe_portal.database.repositories.base import Repository
from recipe_portal.models.category import (
    Category,
    CategoryCreate,
    CategoryFilters,
    CategoryUpdate,
)
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from asyncpg import Connection

logger = get_logger(__name__)


class CategoryRepository(Repository):
    """Repository for recipe categories."""

    table = "categories"

    async def create(self, data: CategoryCreate | dict[str, Any]) -> Category:
        """Insert a category and return it as stored.

        Raises:
            DuplicateKeyError: If an active category already has this name.
        """
        payload = CategoryCreate.parse(data)

        with translate_storage_errors("category name"):
            async with self.pool.acquire() as conn:
                await self._ensure_name_available(conn, payload.name)
                category_id = await conn.fetchval(
                    """
                    INSERT INTO categories (name, description)
                    VALUES ($1, $2)
                    RETURNING id
                    """,
                    payload.name,
                    payload.description,
                )

        logger.info("Category created", category_id=category_id, name=payload.name)
        return await self._reload(category_id)

    async def find_by_id(
        self,
        category_id: int,
        *,
        include_inactive: bool = False,
    ) -> Category | None:
        """Get a category by ID; inactive ones only when requested."""
        query = "SELECT * FROM categories WHERE id = $1"
        if not include_inactive:
            query += " AND active = TRUE"

        with translate_storage_errors("find category"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(query, category_id)

        return None if row is None else Category.from_row(row)

    async def find_by_name(self, name: str) -> Category | None:
        """Get the active category with exactly this name."""
        with translate_storage_errors("find category"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT * FROM categories WHERE name = $1 AND active = TRUE",
                    name.strip(),
                )

        return None if row is None else Category.from_row(row)

    async def list(
        self,
        filters: CategoryFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[Category]:
        """List categories ordered by name."""
        filters = CategoryFilters.parse(filters or {})
        pagination = pagination or Pagination.from_params()

        qb = QueryBuilder()
        if not filters.include_inactive:
            qb.require("active = TRUE")
        qb.search(["name", "description"], filters.term)
        limit_sql, page_params = qb.paginate(pagination)

        with translate_storage_errors("list categories"):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT * FROM categories{qb.where_sql} ORDER BY name ASC{limit_sql}",  # noqa: S608
                    *page_params,
                )
                total = await conn.fetchval(
                    f"SELECT COUNT(*) FROM categories{qb.where_sql}",  # noqa: S608
                    *qb.params,
                )

        return Page[Category].build(
            [Category.from_row(row) for row in rows], total or 0, pagination
        )

    async def update(
        self,
        category_id: int,
        changes: CategoryUpdate | dict[str, Any],
    ) -> Category:
        """Apply allow-listed changes and return the reloaded category.

        Raises:
            NoValidFieldsError: If ``changes`` holds no updatable field.
            DuplicateKeyError: If the resulting active name is taken.
            NotFoundError: If the category does not exist.
        """
        data = CategoryUpdate.coerce(changes)
        query, params = self.build_update(data, category_id)

        with translate_storage_errors("category name"):
            async with self.pool.acquire() as conn:
                if "name" in data or data.get("active") is True:
                    name = data.get("name")
                    if name is None:
                        name = await conn.fetchval(
                            "SELECT name FROM categories WHERE id = $1", category_id
                        )
                    if name is not None:
                        await self._ensure_name_available(conn, name, category_id)
                updated_id = await conn.fetchval(query, *params)

        if updated_id is None:
            raise NotFoundError("Category", category_id)

        logger.info("Category updated", category_id=category_id, fields=sorted(data))
        return await self._reload(category_id)

    async def deactivate(self, category_id: int) -> Category:
        """Soft-delete a category. Deactivating twice is not an error here."""
        return await self.update(category_id, CategoryUpdate(active=False))

    async def activate(self, category_id: int) -> Category:
        """Re-activate a category whose name is still free."""
        return await self.update(category_id, CategoryUpdate(active=True))

    async def _reload(self, category_id: int) -> Category:
        category = await self.find_by_id(category_id, include_inactive=True)
        if category is None:
            raise NotFoundError("Category", category_id)
        return category

    @staticmethod
    async def _ensure_name_available(
        conn: Connection,
        name: str,
        exclude_id: int | None = None,
    ) -> None:
        existing = await conn.fetchval(
            """
            SELECT id FROM categories
            WHERE name = $1 AND active = TRUE AND ($2::int IS NULL OR id <> $2)
            """,
            name,
            exclude_id,
        )
        if existing is not None:
            msg = f"Category '{name}' already exists"
            raise DuplicateKeyError(msg)
