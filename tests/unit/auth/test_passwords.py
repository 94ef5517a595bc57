"""Unit tests for the bcrypt password hasher."""

from __future__ import annotations

import pytest

from recipe_portal.auth.passwords import BcryptPasswordHasher
from recipe_portal.auth.protocol import PasswordHasher


pytestmark = pytest.mark.unit


@pytest.fixture
def hasher() -> BcryptPasswordHasher:
    # Minimum cost keeps the suite fast
    return BcryptPasswordHasher(rounds=4)


class TestBcryptPasswordHasher:
    def test_satisfies_protocol(self, hasher: BcryptPasswordHasher) -> None:
        assert isinstance(hasher, PasswordHasher)

    def test_hash_then_verify(self, hasher: BcryptPasswordHasher) -> None:
        digest = hasher.hash("s3cret!")

        assert digest != "s3cret!"
        assert digest.startswith("$2b$04$")
        assert hasher.verify("s3cret!", digest) is True
        assert hasher.verify("wrong", digest) is False

    def test_salts_differ(self, hasher: BcryptPasswordHasher) -> None:
        assert hasher.hash("same") != hasher.hash("same")

    def test_empty_or_malformed_digest(self, hasher: BcryptPasswordHasher) -> None:
        assert hasher.verify("anything", "") is False
        assert hasher.verify("anything", "not-a-bcrypt-digest") is False

    def test_long_secrets_truncated_consistently(
        self, hasher: BcryptPasswordHasher
    ) -> None:
        secret = "x" * 100
        digest = hasher.hash(secret)

        assert hasher.verify(secret, digest) is True

    def test_rounds_from_settings(self) -> None:
        # config/environments/test lowers the cost to 4
        assert BcryptPasswordHasher().rounds == 4
