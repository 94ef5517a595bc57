"""Shared plumbing for the entity repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipe_portal.database.connection import get_database_pool


if TYPE_CHECKING:
    from asyncpg import Pool


class Repository:
    """Base repository holding an injected connection pool.

    Repositories use raw asyncpg queries. The pool is passed in by the
    owner of the process lifecycle; when none is given the process-wide
    pool from ``init_database_pool`` is used.
    """

    table: str = ""

    def __init__(self, pool: Pool | None = None) -> None:
        """Initialize repository with optional connection pool.

        Args:
            pool: asyncpg connection pool. If None, uses global pool.
        """
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Get the database connection pool."""
        if self._pool is not None:
            return self._pool
        return get_database_pool()

    def build_update(self, data: dict[str, Any], entity_id: int) -> tuple[str, list[Any]]:
        """Build ``UPDATE ... SET`` for validated ``{column: value}`` pairs.

        Column names come from the update model's declared fields, never
        from caller input. ``updated_at`` is always refreshed.
        """
        assignments = [
            f"{column} = ${index}" for index, column in enumerate(data, start=1)
        ]
        params = [*data.values(), entity_id]
        query = (
            f"UPDATE {self.table} SET {', '.join(assignments)}, updated_at = NOW() "  # noqa: S608
            f"WHERE id = ${len(params)} RETURNING id"
        )
        return query, params
