"""User account repository.

Emails are stored trimmed and lower-cased and are unique among active
users. Accounts are never deleted, only deactivated. Login bookkeeping
(failure counter, lockout timestamp, last login) is written with single
statements; there is no cross-statement locking.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipe_portal.core.exceptions import DuplicateKeyError, NotFoundError
from recipe_portal.database.connection import translate_storage_errors
from recipe_portal.database.query import Page, Pagination, QueryBuilder
from recipe_portal.database.repositories.base import Repository
from recipe_portal.models.user import (
    User,
    UserCreate,
    UserFilters,
    UserUpdate,
    normalize_email,
)
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from datetime import datetime

    from asyncpg import Connection

logger = get_logger(__name__)


class UserRepository(Repository):
    """Repository for user accounts."""

    table = "users"

    async def create(self, data: UserCreate | dict[str, Any]) -> User:
        """Insert an account and return it as stored.

        Raises:
            DuplicateKeyError: If an active account already uses the email.
        """
        payload = UserCreate.parse(data)

        with translate_storage_errors("user email"):
            async with self.pool.acquire() as conn:
                await self._ensure_email_available(conn, payload.email)
                user_id = await conn.fetchval(
                    """
                    INSERT INTO users (name, email, password_hash, role)
                    VALUES ($1, $2, $3, $4)
                    RETURNING id
                    """,
                    payload.name,
                    payload.email,
                    payload.password_hash,
                    payload.role,
                )

        logger.info("User created", user_id=user_id, role=payload.role)
        return await self._reload(user_id)

    async def find_by_id(
        self,
        user_id: int,
        *,
        include_inactive: bool = False,
    ) -> User | None:
        """Get a user by ID; inactive accounts only when requested."""
        query = "SELECT * FROM users WHERE id = $1"
        if not include_inactive:
            query += " AND active = TRUE"

        with translate_storage_errors("find user"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(query, user_id)

        return None if row is None else User.from_row(row)

    async def find_by_email(self, email: str) -> User | None:
        """Get the active user with this email (case-insensitive)."""
        with translate_storage_errors("find user"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    "SELECT * FROM users WHERE email = $1 AND active = TRUE",
                    normalize_email(email),
                )

        return None if row is None else User.from_row(row)

    async def list(
        self,
        filters: UserFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[User]:
        """List accounts, newest first."""
        filters = UserFilters.parse(filters or {})
        pagination = pagination or Pagination.from_params()

        qb = QueryBuilder()
        qb.flag("active", filters.active)
        qb.equals("role", filters.role)
        qb.search(["name", "email"], filters.term)
        limit_sql, page_params = qb.paginate(pagination)

        with translate_storage_errors("list users"):
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT * FROM users{qb.where_sql} "  # noqa: S608
                    f"ORDER BY created_at DESC, id DESC{limit_sql}",
                    *page_params,
                )
                total = await conn.fetchval(
                    f"SELECT COUNT(*) FROM users{qb.where_sql}",  # noqa: S608
                    *qb.params,
                )

        return Page[User].build([User.from_row(row) for row in rows], total or 0, pagination)

    async def update(self, user_id: int, changes: UserUpdate | dict[str, Any]) -> User:
        """Apply allow-listed profile changes and return the reloaded user.

        Raises:
            NoValidFieldsError: If ``changes`` holds no updatable field.
            DuplicateKeyError: If the new email belongs to another active user.
            NotFoundError: If the user does not exist.
        """
        data = UserUpdate.coerce(changes)
        query, params = self.build_update(data, user_id)

        with translate_storage_errors("user email"):
            async with self.pool.acquire() as conn:
                if "email" in data:
                    await self._ensure_email_available(conn, data["email"], user_id)
                updated_id = await conn.fetchval(query, *params)

        if updated_id is None:
            raise NotFoundError("User", user_id)

        logger.info("User updated", user_id=user_id, fields=sorted(data))
        return await self._reload(user_id)

    async def deactivate(self, user_id: int) -> User:
        """Deactivate an account. Deactivating twice is not an error here."""
        return await self.update(user_id, UserUpdate(active=False))

    async def update_password(self, user_id: int, password_hash: str) -> None:
        """Store a new password digest.

        Raises:
            NotFoundError: If the user does not exist.
        """
        with translate_storage_errors("update password"):
            async with self.pool.acquire() as conn:
                updated_id = await conn.fetchval(
                    """
                    UPDATE users SET password_hash = $1, updated_at = NOW()
                    WHERE id = $2
                    RETURNING id
                    """,
                    password_hash,
                    user_id,
                )

        if updated_id is None:
            raise NotFoundError("User", user_id)

    async def record_failed_login(
        self,
        user_id: int,
        *,
        threshold: int,
        lock_until: datetime,
    ) -> User:
        """Increment the failure counter, locking once it reaches ``threshold``.

        Args:
            user_id: Account that failed to authenticate.
            threshold: Consecutive failures that trigger a lockout.
            lock_until: Lockout expiry to store when the threshold is reached.

        Returns:
            The account with its updated counter and lock.
        """
        with translate_storage_errors("record failed login"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    UPDATE users
                    SET failed_login_count = failed_login_count + 1,
                        locked_until = CASE
                            WHEN failed_login_count + 1 >= $2 THEN $3
                            ELSE locked_until
                        END
                    WHERE id = $1
                    RETURNING *
                    """,
                    user_id,
                    threshold,
                    lock_until,
                )

        if row is None:
            raise NotFoundError("User", user_id)
        return User.from_row(row)

    async def record_successful_login(self, user_id: int) -> User:
        """Reset the failure counter, clear any lock and stamp the login time."""
        with translate_storage_errors("record login"):
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow(
                    """
                    UPDATE users
                    SET failed_login_count = 0,
                        locked_until = NULL,
                        last_login_at = NOW()
                    WHERE id = $1
                    RETURNING *
                    """,
                    user_id,
                )

        if row is None:
            raise NotFoundError("User", user_id)
        return User.from_row(row)

    async def _reload(self, user_id: int) -> User:
        user = await self.find_by_id(user_id, include_inactive=True)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    @staticmethod
    async def _ensure_email_available(
        conn: Connection,
        email: str,
        exclude_id: int | None = None,
    ) -> None:
        existing = await conn.fetchval(
            """
            SELECT id FROM users
            WHERE email = $1 AND active = TRUE AND ($2::int IS NULL OR id <> $2)
            """,
            email,
            exclude_id,
        )
        if existing is not None:
            msg = "Email is already in use"
            raise DuplicateKeyError(msg)
