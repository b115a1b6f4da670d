"""Database models for the EstateHub backend."""

from estatehub.db.base import Base
from estatehub.models.user import User, UserRole, UserStatus
from estatehub.models.refresh_token import RefreshToken

__all__ = [
    "Base",
    "User",
    "UserRole",
    "UserStatus",
    "RefreshToken",
]
