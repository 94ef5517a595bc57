"""Protocols for the collaborators the authentication service consumes.

Password hashing and token issuance are pluggable. The defaults in
``recipe_portal.auth.passwords`` and ``recipe_portal.auth.jwt`` satisfy these
protocols; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from datetime import timedelta


@runtime_checkable
class PasswordHasher(Protocol):
    """One-way hashing of account secrets."""

    def hash(self, secret: str) -> str:
        """Return a salted digest of ``secret``."""
        ...

    def verify(self, secret: str, digest: str) -> bool:
        """Check ``secret`` against a digest produced by ``hash``."""
        ...


@runtime_checkable
class TokenService(Protocol):
    """Issuance and verification of signed access tokens."""

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """Sign ``claims`` into a token that expires after ``ttl``."""
        ...

    def verify(self, token: str) -> dict[str, Any]:
        """Return the token's claims.

        Raises:
            TokenExpiredError: If the token has expired.
            TokenInvalidError: If the token is malformed or tampered with.
        """
        ...
