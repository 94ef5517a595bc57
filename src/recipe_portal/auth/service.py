"""Authentication service.

Orchestrates credential checks, lockout bookkeeping and token issuance on
top of ``UserRepository`` and the pluggable hasher/token collaborators.

Lockout state machine per account:
- Unlocked while ``failed_login_count`` is below the threshold.
- Each wrong secret increments the counter; reaching the threshold sets
  ``locked_until = now + lockout window``.
- While ``now < locked_until`` every attempt, right or wrong, is rejected
  without touching the counter.
- After expiry attempts are evaluated normally; success resets the
  counter and clears the lock, another failure re-locks immediately.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from recipe_portal.auth.jwt import parse_claims
from recipe_portal.auth.models import Actor, AuthenticatedSession, AuthResult
from recipe_portal.core.config import Settings, get_settings
from recipe_portal.core.exceptions import (
    AccountLockedError,
    InvalidCredentialError,
    InvalidFieldError,
    NotFoundError,
)
from recipe_portal.models.enums import Role
from recipe_portal.models.user import User, UserCreate, normalize_email
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from recipe_portal.auth.protocol import PasswordHasher, TokenService
    from recipe_portal.database.repositories.users import UserRepository

logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 6


def _check_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        msg = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        raise InvalidFieldError(msg, ["password"])


class AuthenticationService:
    """Login, registration and password management."""

    def __init__(
        self,
        users: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self.max_attempts = settings.auth.lockout.max_attempts
        self.lockout_window = timedelta(minutes=settings.auth.lockout.duration_minutes)
        self.token_ttl = timedelta(minutes=settings.auth.jwt.access_token_expire_minutes)

    async def authenticate(self, email: str, secret: str) -> AuthenticatedSession:
        """Verify credentials and issue an access token.

        Raises:
            NotFoundError: If no active account uses ``email``.
            AccountLockedError: If the account is inside its lockout window.
            InvalidCredentialError: If ``secret`` is wrong.
        """
        now = datetime.now(UTC)
        user = await self._users.find_by_email(email)
        if user is None:
            logger.info("Login rejected: unknown account")
            raise NotFoundError("User", normalize_email(email))

        if user.is_locked(now):
            logger.warning(
                "Login rejected: account locked",
                user_id=user.id,
                locked_until=user.locked_until,
            )
            raise AccountLockedError(user.locked_until)

        if not await asyncio.to_thread(self._hasher.verify, secret, user.password_hash):
            updated = await self._users.record_failed_login(
                user.id,
                threshold=self.max_attempts,
                lock_until=now + self.lockout_window,
            )
            if updated.is_locked(now):
                logger.warning(
                    "Account locked after repeated failures",
                    user_id=user.id,
                    attempts=updated.failed_login_count,
                    locked_until=updated.locked_until,
                )
            else:
                logger.info(
                    "Login rejected: wrong secret",
                    user_id=user.id,
                    attempts=updated.failed_login_count,
                )
            raise InvalidCredentialError

        user = await self._users.record_successful_login(user.id)
        token = self._tokens.issue({"sub": user.id, "role": str(user.role)}, self.token_ttl)
        logger.info("Login succeeded", user_id=user.id, role=user.role)

        return AuthenticatedSession(
            user=user,
            access_token=token,
            expires_in=int(self.token_ttl.total_seconds()),
        )

    async def login(self, email: str, secret: str) -> AuthResult:
        """``authenticate`` reported as a result instead of an exception.

        Unknown accounts and wrong secrets share one message so the result
        does not reveal which emails are registered.
        """
        try:
            session = await self.authenticate(email, secret)
        except (NotFoundError, InvalidCredentialError) as e:
            return AuthResult(success=False, message="Invalid credentials", error=e.code)
        except AccountLockedError as e:
            return AuthResult(success=False, message=e.message, error=e.code)

        return AuthResult(
            success=True,
            user=session.user,
            message="Login successful",
            access_token=session.access_token,
            expires_in=session.expires_in,
        )

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.REGULAR,
    ) -> User:
        """Create an account with a hashed password.

        Raises:
            DuplicateKeyError: If an active account already uses ``email``.
            InvalidFieldError: If a field fails validation.
        """
        _check_password_strength(password)
        digest = await asyncio.to_thread(self._hasher.hash, password)
        payload = UserCreate.parse(
            {"name": name, "email": email, "password_hash": digest, "role": role}
        )
        user = await self._users.create(payload)
        logger.info("User registered", user_id=user.id)
        return user

    async def change_password(self, user_id: int, current: str, new: str) -> None:
        """Replace the password after checking the current one.

        Raises:
            NotFoundError: If the account does not exist or is inactive.
            InvalidCredentialError: If ``current`` is wrong.
            InvalidFieldError: If ``new`` is too short.
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)

        if not await asyncio.to_thread(self._hasher.verify, current, user.password_hash):
            msg = "Current password is incorrect"
            raise InvalidCredentialError(msg)

        _check_password_strength(new)
        digest = await asyncio.to_thread(self._hasher.hash, new)
        await self._users.update_password(user_id, digest)
        logger.info("Password changed", user_id=user_id)

    def resolve_token(self, token: str) -> Actor:
        """Turn a bearer token into the acting user.

        Raises:
            TokenExpiredError: If the token has expired.
            TokenInvalidError: If the token is invalid.
        """
        payload = parse_claims(self._tokens.verify(token))
        return Actor(user_id=payload.user_id, role=payload.role)
