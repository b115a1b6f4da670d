"""
User repository: the credential store consumed by the auth service.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.models.user import User, UserRole

logger = logging.getLogger(__name__)


class UserRepository:
    """Data access for user credential records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email, case-insensitively.

        Soft-deleted users are returned; callers branch on ``User.status``.
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        email: str,
        password_hash: Optional[str],
        full_name: str,
        role: str = UserRole.CLIENT.value,
        phone: Optional[str] = None,
    ) -> User:
        """
        Create a new user.

        Args:
            email: Email address, stored lower-cased
            password_hash: bcrypt hash, or None for passwordless accounts
            full_name: Display name
            role: One of ``UserRole``
            phone: Optional phone number

        Returns:
            Created User (flushed, not committed)
        """
        user = User(
            email=email.strip().lower(),
            password_hash=password_hash,
            full_name=full_name,
            role=role,
            phone=phone,
        )
        self.session.add(user)
        await self.session.flush()

        logger.info(f"Created user {user.id} with role {role}")
        return user

    async def update_password(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        await self.session.flush()
