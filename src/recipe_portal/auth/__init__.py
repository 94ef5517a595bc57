"""Authentication and authorization."""

from recipe_portal.auth.jwt import JwtTokenService, TokenPayload
from recipe_portal.auth.models import Actor, AuthenticatedSession, AuthResult
from recipe_portal.auth.passwords import BcryptPasswordHasher
from recipe_portal.auth.protocol import PasswordHasher, TokenService
from recipe_portal.auth.service import AuthenticationService


__all__ = [
    "Actor",
    "AuthResult",
    "AuthenticatedSession",
    "AuthenticationService",
    "BcryptPasswordHasher",
    "JwtTokenService",
    "PasswordHasher",
    "TokenPayload",
    "TokenService",
]
