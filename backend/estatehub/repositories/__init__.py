"""Repositories backing the auth service."""

from estatehub.repositories.user_repository import UserRepository
from estatehub.repositories.refresh_token_repository import RefreshTokenRepository

__all__ = ["RefreshTokenRepository", "UserRepository"]
