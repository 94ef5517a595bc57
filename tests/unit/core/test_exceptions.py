"""Unit tests for the error taxonomy."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from recipe_portal.core.exceptions import (
    AccountLockedError,
    DuplicateKeyError,
    ForeignKeyInvalidError,
    InvalidCredentialError,
    InvalidFieldError,
    NotFoundError,
    NoValidFieldsError,
    PermissionDeniedError,
    PortalError,
    StorageError,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
)


pytestmark = pytest.mark.unit


class TestCodes:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (DuplicateKeyError("dup"), "DUPLICATE_KEY"),
            (NotFoundError("Recipe", 1), "NOT_FOUND"),
            (NoValidFieldsError(), "NO_VALID_FIELDS"),
            (InvalidFieldError("bad", ["servings"]), "INVALID_FIELD"),
            (ForeignKeyInvalidError("fk"), "FOREIGN_KEY_INVALID"),
            (InvalidCredentialError(), "INVALID_CREDENTIAL"),
            (AccountLockedError(), "ACCOUNT_LOCKED"),
            (PermissionDeniedError(), "PERMISSION_DENIED"),
            (StorageError(), "STORAGE_ERROR"),
            (TokenExpiredError("expired"), "TOKEN_EXPIRED"),
            (TokenInvalidError("invalid"), "TOKEN_INVALID"),
        ],
    )
    def test_stable_codes(self, error: PortalError, code: str) -> None:
        assert isinstance(error, PortalError)
        assert error.code == code
        assert error.to_dict() == {"error": code, "message": error.message}


class TestDetails:
    def test_not_found_message(self) -> None:
        error = NotFoundError("Category", 12)

        assert error.message == "Category with identifier '12' not found"
        assert (error.resource, error.identifier) == ("Category", 12)

    def test_locked_carries_expiry(self) -> None:
        until = datetime(2024, 1, 1, 12, 30, tzinfo=UTC)

        assert AccountLockedError(until).locked_until == until

    def test_token_errors_share_base(self) -> None:
        assert issubclass(TokenExpiredError, TokenError)
        assert issubclass(TokenInvalidError, TokenError)

    def test_invalid_field_defaults(self) -> None:
        assert InvalidFieldError("bad").fields == []
