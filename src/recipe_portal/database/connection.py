"""PostgreSQL connection pool management.

This module provides:
- Process-wide asyncpg pool with explicit init/close lifecycle
- Transaction scoping and stored function invocation helpers
- Translation of driver errors into the typed error taxonomy
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING, Any

import asyncpg

from recipe_portal.core.config import Settings, get_settings
from recipe_portal.core.exceptions import (
    DuplicateKeyError,
    ForeignKeyInvalidError,
    InvalidFieldError,
    PortalError,
    StorageError,
)
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator

    from asyncpg import Connection, Pool, Record

logger = get_logger(__name__)

# Global connection pool
_pool: Pool | None = None

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


async def init_database_pool(settings: Settings | None = None) -> Pool:
    """Initialize the PostgreSQL connection pool.

    Should be called once during application startup.

    Returns:
        The created pool.
    """
    global _pool  # noqa: PLW0603

    settings = settings or get_settings()

    logger.info(
        "Initializing database connection pool",
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        max_size=settings.database.max_pool_size,
    )

    _pool = await asyncpg.create_pool(
        host=settings.database.host,
        port=settings.database.port,
        database=settings.database.name,
        user=settings.database.user,
        password=settings.DATABASE_PASSWORD or None,
        min_size=settings.database.min_pool_size,
        max_size=settings.database.max_pool_size,
        command_timeout=settings.database.command_timeout,
        ssl=settings.database.ssl if settings.database.ssl else None,
    )

    try:
        async with _pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
        logger.info("Database connection established successfully")
    except (asyncpg.PostgresError, OSError):
        logger.exception("Failed to connect to database")
        raise

    return _pool


async def close_database_pool() -> None:
    """Close the connection pool, waiting for checked-out connections."""
    global _pool  # noqa: PLW0603

    logger.info("Closing database connection pool")

    if _pool:
        await _pool.close()
        _pool = None

    logger.info("Database connection pool closed")


def get_database_pool() -> Pool:
    """Get the process-wide connection pool.

    Raises:
        StorageError: If pool is not initialized.
    """
    if _pool is None:
        msg = "Database pool not initialized. Call init_database_pool() first."
        raise StorageError(msg)
    return _pool


@asynccontextmanager
async def database_lifespan(settings: Settings | None = None) -> AsyncIterator[Pool]:
    """Own the pool for the duration of the block.

    Example:
        async with database_lifespan() as pool:
            recipes = RecipeRepository(pool)
    """
    pool = await init_database_pool(settings)
    try:
        yield pool
    finally:
        await close_database_pool()


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """Map driver failures raised inside the block onto typed errors.

    Unique and foreign key violations become ``DuplicateKeyError`` and
    ``ForeignKeyInvalidError``. Any other driver failure is logged here,
    once, and re-raised as ``StorageError`` without the driver's text.
    Typed errors raised inside the block pass through untouched.
    """
    try:
        yield
    except PortalError:
        raise
    except asyncpg.UniqueViolationError as e:
        logger.info("Unique constraint violated", operation=operation)
        msg = f"Duplicate value for {operation}"
        raise DuplicateKeyError(msg) from e
    except asyncpg.ForeignKeyViolationError as e:
        logger.info("Foreign key constraint violated", operation=operation)
        msg = f"Referenced entity does not exist for {operation}"
        raise ForeignKeyInvalidError(msg) from e
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, TimeoutError) as e:
        logger.exception("Storage operation failed", operation=operation)
        raise StorageError from e


@asynccontextmanager
async def transaction(pool: Pool | None = None) -> AsyncIterator[Connection]:
    """Yield a connection inside a transaction.

    Commits when the block exits normally and rolls back when it raises.
    """
    pool = pool or get_database_pool()
    async with pool.acquire() as conn, conn.transaction():
        yield conn


async def call_procedure(
    name: str,
    *args: Any,
    pool: Pool | None = None,
) -> list[Record]:
    """Invoke a set-returning stored function and return its rows.

    Args:
        name: Function name, optionally schema-qualified.
        *args: Positional arguments bound as parameters.

    Raises:
        InvalidFieldError: If ``name`` is not a plain SQL identifier.
    """
    if not _IDENTIFIER.match(name):
        msg = f"Invalid procedure name: {name!r}"
        raise InvalidFieldError(msg, ["name"])

    placeholders = ", ".join(f"${i}" for i in range(1, len(args) + 1))
    query = f"SELECT * FROM {name}({placeholders})"  # noqa: S608

    pool = pool or get_database_pool()
    with translate_storage_errors(f"call {name}"):
        async with pool.acquire() as conn:
            return await conn.fetch(query, *args)


async def check_database_health(pool: Pool | None = None) -> dict[str, str]:
    """Check health of database connection.

    Returns:
        Dictionary with health status.
    """
    pool = pool or _pool
    if pool is None:
        return {"database": "not_initialized"}

    try:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError):
        return {"database": "unhealthy"}
    return {"database": "healthy"}
