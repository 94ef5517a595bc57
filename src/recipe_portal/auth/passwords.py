"""bcrypt implementation of ``PasswordHasher``."""

from __future__ import annotations

import bcrypt

from recipe_portal.core.config import get_settings


class BcryptPasswordHasher:
    """Hash and verify secrets with bcrypt.

    bcrypt only reads the first 72 bytes of a secret; longer secrets are
    truncated identically on hash and verify.
    """

    max_secret_bytes = 72

    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds or get_settings().auth.passwords.bcrypt_rounds

    def _encode(self, secret: str) -> bytes:
        return secret.encode("utf-8")[: self.max_secret_bytes]

    def hash(self, secret: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(self._encode(secret), salt).decode("utf-8")

    def verify(self, secret: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            return bcrypt.checkpw(self._encode(secret), digest.encode("utf-8"))
        except ValueError:
            # Malformed digest stored for the account
            return False
