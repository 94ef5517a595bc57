"""Unit tests for AuthenticationService.

Uses an in-memory account store that mirrors the repository's lockout
bookkeeping, and freezegun to move through the lockout window.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from freezegun import freeze_time

from recipe_portal.auth.jwt import JwtTokenService
from recipe_portal.auth.models import Actor
from recipe_portal.auth.service import AuthenticationService
from recipe_portal.core.config import Settings
from recipe_portal.core.exceptions import (
    AccountLockedError,
    DuplicateKeyError,
    InvalidCredentialError,
    InvalidFieldError,
    NotFoundError,
    TokenExpiredError,
)
from recipe_portal.models import Role, User, UserCreate
from recipe_portal.models.user import normalize_email


pytestmark = pytest.mark.unit

START = "2024-01-01 12:00:00"


class PlainHasher:
    """Reversible stand-in for bcrypt."""

    def hash(self, secret: str) -> str:
        return f"hashed:{secret}"

    def verify(self, secret: str, digest: str) -> bool:
        return digest == f"hashed:{secret}"


class InMemoryUsers:
    """Account store with the same lockout semantics as UserRepository."""

    def __init__(self) -> None:
        self.users: dict[int, User] = {}
        self.successful_logins = 0

    def add(self, **fields: Any) -> User:
        user_id = len(self.users) + 1
        user = User(id=user_id, **fields)
        self.users[user_id] = user
        return user

    async def find_by_id(self, user_id: int) -> User | None:
        user = self.users.get(user_id)
        return user if user is not None and user.active else None

    async def find_by_email(self, email: str) -> User | None:
        email = normalize_email(email)
        for user in self.users.values():
            if user.email == email and user.active:
                return user
        return None

    async def create(self, data: UserCreate) -> User:
        if await self.find_by_email(data.email) is not None:
            msg = "Email is already in use"
            raise DuplicateKeyError(msg)
        return self.add(**data.model_dump())

    async def update_password(self, user_id: int, password_hash: str) -> None:
        self.users[user_id] = self.users[user_id].model_copy(
            update={"password_hash": password_hash}
        )

    async def record_failed_login(
        self, user_id: int, *, threshold: int, lock_until: datetime
    ) -> User:
        user = self.users[user_id]
        count = user.failed_login_count + 1
        locked_until = lock_until if count >= threshold else user.locked_until
        self.users[user_id] = user.model_copy(
            update={"failed_login_count": count, "locked_until": locked_until}
        )
        return self.users[user_id]

    async def record_successful_login(self, user_id: int) -> User:
        self.successful_logins += 1
        self.users[user_id] = self.users[user_id].model_copy(
            update={
                "failed_login_count": 0,
                "locked_until": None,
                "last_login_at": datetime.now(UTC),
            }
        )
        return self.users[user_id]


@pytest.fixture
def users() -> InMemoryUsers:
    store = InMemoryUsers()
    store.add(
        name="Ana",
        email="ana@example.com",
        password_hash="hashed:correct-horse",
        role=Role.REGULAR,
    )
    return store


@pytest.fixture
def service(users: InMemoryUsers, test_settings: Settings) -> AuthenticationService:
    return AuthenticationService(
        users,  # type: ignore[arg-type]
        PlainHasher(),
        JwtTokenService(secret_key=test_settings.JWT_SECRET_KEY),
        settings=test_settings,
    )


class TestAuthenticate:
    """Tests for authenticate."""

    async def test_success_issues_token(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        session = await service.authenticate("ANA@example.com", "correct-horse")

        assert session.user.email == "ana@example.com"
        assert session.token_type == "bearer"
        assert session.expires_in == 3600
        assert session.user.last_login_at is not None
        actor = service.resolve_token(session.access_token)
        assert actor == Actor(user_id=1, role=Role.REGULAR)

    async def test_unknown_email(self, service: AuthenticationService) -> None:
        with pytest.raises(NotFoundError):
            await service.authenticate("nobody@example.com", "whatever")

    async def test_inactive_account_is_unknown(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        users.users[1] = users.users[1].model_copy(update={"active": False})

        with pytest.raises(NotFoundError):
            await service.authenticate("ana@example.com", "correct-horse")

    async def test_wrong_secret_counts_failure(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        with pytest.raises(InvalidCredentialError):
            await service.authenticate("ana@example.com", "wrong")

        assert users.users[1].failed_login_count == 1
        assert users.users[1].locked_until is None

    async def test_success_resets_counter(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        for _ in range(3):
            with pytest.raises(InvalidCredentialError):
                await service.authenticate("ana@example.com", "wrong")

        await service.authenticate("ana@example.com", "correct-horse")

        assert users.users[1].failed_login_count == 0


class TestLockout:
    """Lockout window behaviour."""

    async def test_fifth_failure_locks_account(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        with freeze_time(START, real_asyncio=True):
            for _ in range(5):
                with pytest.raises(InvalidCredentialError):
                    await service.authenticate("ana@example.com", "wrong")

        user = users.users[1]
        assert user.failed_login_count == 5
        assert user.locked_until == datetime(2024, 1, 1, 12, 30, tzinfo=UTC)

    async def test_sixth_attempt_is_locked_even_with_correct_secret(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        with freeze_time(START, real_asyncio=True) as frozen:
            for _ in range(5):
                with pytest.raises(InvalidCredentialError):
                    await service.authenticate("ana@example.com", "wrong")

            frozen.tick(timedelta(minutes=10))
            with pytest.raises(AccountLockedError) as exc_info:
                await service.authenticate("ana@example.com", "correct-horse")

        assert exc_info.value.locked_until == datetime(2024, 1, 1, 12, 30, tzinfo=UTC)
        # Rejected without touching the counter
        assert users.users[1].failed_login_count == 5
        assert users.successful_logins == 0

    async def test_locked_wrong_attempt_does_not_extend_lock(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        with freeze_time(START, real_asyncio=True) as frozen:
            for _ in range(5):
                with pytest.raises(InvalidCredentialError):
                    await service.authenticate("ana@example.com", "wrong")

            frozen.tick(timedelta(minutes=29))
            with pytest.raises(AccountLockedError):
                await service.authenticate("ana@example.com", "wrong")

        assert users.users[1].locked_until == datetime(2024, 1, 1, 12, 30, tzinfo=UTC)
        assert users.users[1].failed_login_count == 5

    async def test_correct_secret_after_expiry_unlocks(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        with freeze_time(START, real_asyncio=True) as frozen:
            for _ in range(5):
                with pytest.raises(InvalidCredentialError):
                    await service.authenticate("ana@example.com", "wrong")

            frozen.tick(timedelta(minutes=31))
            session = await service.authenticate("ana@example.com", "correct-horse")

        assert session.user.failed_login_count == 0
        assert session.user.locked_until is None

    async def test_failure_after_expiry_relocks(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        with freeze_time(START, real_asyncio=True) as frozen:
            for _ in range(5):
                with pytest.raises(InvalidCredentialError):
                    await service.authenticate("ana@example.com", "wrong")

            frozen.tick(timedelta(minutes=31))
            with pytest.raises(InvalidCredentialError):
                await service.authenticate("ana@example.com", "wrong")

            with pytest.raises(AccountLockedError):
                await service.authenticate("ana@example.com", "correct-horse")

        assert users.users[1].locked_until == datetime(2024, 1, 1, 13, 1, tzinfo=UTC)


class TestLogin:
    """Tests for the result-returning login."""

    async def test_success(self, service: AuthenticationService) -> None:
        result = await service.login("ana@example.com", "correct-horse")

        assert result.success is True
        assert result.user is not None
        assert result.access_token
        assert result.expires_in == 3600

    @pytest.mark.parametrize(
        ("email", "secret"),
        [("ana@example.com", "wrong"), ("nobody@example.com", "correct-horse")],
    )
    async def test_failures_share_message(
        self, service: AuthenticationService, email: str, secret: str
    ) -> None:
        result = await service.login(email, secret)

        assert result.success is False
        assert result.message == "Invalid credentials"
        assert result.access_token is None

    async def test_locked(self, service: AuthenticationService) -> None:
        for _ in range(5):
            await service.login("ana@example.com", "wrong")

        result = await service.login("ana@example.com", "correct-horse")

        assert result.success is False
        assert result.error == "ACCOUNT_LOCKED"


class TestRegister:
    async def test_stores_digest(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        user = await service.register("Bia", " BIA@example.com", "secret123")

        assert user.email == "bia@example.com"
        assert user.role == Role.REGULAR
        assert users.users[user.id].password_hash == "hashed:secret123"

    async def test_duplicate_email(self, service: AuthenticationService) -> None:
        with pytest.raises(DuplicateKeyError):
            await service.register("Other Ana", "ana@example.com", "secret123")

    async def test_short_password(self, service: AuthenticationService) -> None:
        with pytest.raises(InvalidFieldError) as exc_info:
            await service.register("Bia", "bia@example.com", "123")

        assert exc_info.value.fields == ["password"]


class TestChangePassword:
    async def test_changes_password(
        self, service: AuthenticationService, users: InMemoryUsers
    ) -> None:
        await service.change_password(1, "correct-horse", "battery-staple")

        assert users.users[1].password_hash == "hashed:battery-staple"

    async def test_wrong_current_password(self, service: AuthenticationService) -> None:
        with pytest.raises(InvalidCredentialError, match="Current password"):
            await service.change_password(1, "nope", "battery-staple")

    async def test_unknown_user(self, service: AuthenticationService) -> None:
        with pytest.raises(NotFoundError):
            await service.change_password(99, "x", "battery-staple")


class TestResolveToken:
    def test_expired_token(self, service: AuthenticationService) -> None:
        with freeze_time(START):
            token = service._tokens.issue({"sub": 1, "role": "regular"}, timedelta(minutes=1))

        with freeze_time("2024-01-01 12:05:00"), pytest.raises(TokenExpiredError):
            service.resolve_token(token)
