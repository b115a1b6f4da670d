"""
Interfaces the auth service consumes.

The SQLAlchemy repositories implement these; tests or alternative backends
may substitute anything with the same shape.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional, Protocol

from estatehub.models.refresh_token import RefreshToken
from estatehub.models.user import User


class CredentialStore(Protocol):
    async def find_by_email(self, email: str) -> Optional[User]: ...

    # Must reflect soft-delete state through ``User.status``
    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]: ...

    async def create(
        self,
        email: str,
        password_hash: Optional[str],
        full_name: str,
        role: str = ...,
        phone: Optional[str] = None,
    ) -> User: ...

    async def update_password(self, user: User, password_hash: str) -> None: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool: ...


class RefreshTokenStore(Protocol):
    async def create(
        self,
        user_id: uuid.UUID,
        token_hash: str,
        family: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> RefreshToken: ...

    async def find_by_id(self, token_id: uuid.UUID) -> Optional[RefreshToken]: ...

    # Excludes revoked and expired records
    async def find_valid_by_hash(self, token_hash: str) -> Optional[RefreshToken]: ...

    async def find_revoked_by_hash(self, token_hash: str) -> Optional[RefreshToken]: ...

    # True only for the call that flipped the record to revoked
    async def revoke(self, token_id: uuid.UUID) -> bool: ...

    async def revoke_all_for_user(self, user_id: uuid.UUID) -> int: ...

    async def revoke_all_for_family(self, family: str) -> int: ...

    async def update_last_used(self, token_id: uuid.UUID) -> None: ...

    async def get_active_sessions_for_user(self, user_id: uuid.UUID) -> List[RefreshToken]: ...

    async def delete_expired(self, older_than: Optional[datetime] = None) -> int: ...
