"""JWT token handling.

``JwtTokenService`` signs and verifies access tokens with python-jose
(HS256 by default). It implements the ``TokenService`` protocol consumed by
``AuthenticationService``.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from pydantic import BaseModel, ValidationError

from recipe_portal.core.config import get_settings
from recipe_portal.core.exceptions import TokenExpiredError, TokenInvalidError
from recipe_portal.models.enums import Role
from recipe_portal.observability.logging import get_logger


logger = get_logger(__name__)


class TokenPayload(BaseModel):
    """Claims carried by an access token."""

    sub: str  # Subject (user ID)
    role: Role
    exp: datetime  # Expiration time
    iat: datetime  # Issued at
    type: str = "access"

    @property
    def user_id(self) -> int:
        return int(self.sub)


class JwtTokenService:
    """Sign and verify JWT access tokens."""

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None) -> None:
        settings = get_settings()
        self._secret_key = secret_key or settings.JWT_SECRET_KEY
        self._algorithm = algorithm or settings.auth.jwt.algorithm
        if not self._secret_key:
            msg = "JWT_SECRET_KEY must be configured"
            raise ValueError(msg)

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """Create a signed token carrying ``claims`` and expiring after ``ttl``.

        Args:
            claims: Custom claims; ``sub`` is stringified per RFC 7519.
            ttl: Lifetime of the token.

        Returns:
            Encoded JWT token string.
        """
        now = datetime.now(UTC)
        payload = {
            **claims,
            "iat": now,
            "exp": now + ttl,
            "type": "access",
        }
        if "sub" in payload:
            payload["sub"] = str(payload["sub"])

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """Decode and validate a token, returning its raw claims.

        Raises:
            TokenExpiredError: If the token has expired.
            TokenInvalidError: If the token is invalid.
        """
        try:
            return jwt.decode(token, self._secret_key, algorithms=[self._algorithm])

        except ExpiredSignatureError as e:
            logger.debug("Token expired", error=str(e))
            msg = "Token has expired"
            raise TokenExpiredError(msg) from e

        except JWTError as e:
            logger.warning("Invalid token", error=str(e))
            msg = "Invalid token"
            raise TokenInvalidError(msg) from e


def parse_claims(claims: dict[str, Any]) -> TokenPayload:
    """Validate raw claims into a ``TokenPayload``.

    Raises:
        TokenInvalidError: If required claims are missing or malformed.
    """
    try:
        payload = TokenPayload.model_validate(claims)
        _ = payload.user_id
    except (ValidationError, ValueError) as e:
        msg = "Token is missing required claims"
        raise TokenInvalidError(msg) from e
    return payload
