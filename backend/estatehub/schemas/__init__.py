"""Pydantic schemas for data returned by services."""

from estatehub.schemas.user import SafeUser
from estatehub.schemas.auth import (
    AccessTokenClaims,
    AuthResult,
    SessionInfo,
    TokenPair,
)

__all__ = [
    "AccessTokenClaims",
    "AuthResult",
    "SafeUser",
    "SessionInfo",
    "TokenPair",
]
