"""
Refresh token repository for database operations.

Implements the refresh token store consumed by ``AuthService``: creation,
validity lookups, revocation (single, per user, per family), audit stamps
and expired-row cleanup. Methods flush but never commit; the service owns
the transaction boundary.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.core.clock import Clock
from estatehub.models.refresh_token import RefreshToken

logger = logging.getLogger(__name__)


class RefreshTokenRepository:
    """
    Repository for refresh token records.

    ``revoked_at`` is only ever written where it is still NULL, which keeps
    revocation monotonic and makes ``revoke`` a compare-and-set.
    """

    def __init__(self, session: AsyncSession, clock: Optional[Clock] = None):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            clock: Time source for expiry comparisons
        """
        self.session = session
        self.clock = clock or Clock()

    async def create(
        self,
        user_id: uuid.UUID,
        token_hash: str,
        family: str,
        expires_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> RefreshToken:
        """
        Persist a new refresh token record.

        Args:
            user_id: Owning user
            token_hash: SHA-256 hex digest of the raw token
            family: Lineage identifier
            expires_at: Absolute expiry (naive UTC)
            ip_address: Client address, advisory
            user_agent: Client user agent, advisory

        Returns:
            Created RefreshToken
        """
        record = RefreshToken(
            user_id=user_id,
            token_hash=token_hash,
            family=family,
            issued_at=self.clock.now(),
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(record)
        await self.session.flush()
        return record

    async def find_by_id(self, token_id: uuid.UUID) -> Optional[RefreshToken]:
        result = await self.session.execute(
            select(RefreshToken).where(RefreshToken.id == token_id)
        )
        return result.scalar_one_or_none()

    async def find_valid_by_hash(self, token_hash: str) -> Optional[RefreshToken]:
        """Find a non-revoked, non-expired record by hash."""
        result = await self.session.execute(
            select(RefreshToken).where(
                and_(
                    RefreshToken.token_hash == token_hash,
                    RefreshToken.revoked_at.is_(None),
                    RefreshToken.expires_at > self.clock.now(),
                )
            )
        )
        return result.scalar_one_or_none()

    async def find_revoked_by_hash(self, token_hash: str) -> Optional[RefreshToken]:
        """Find a revoked record by hash (reuse detection)."""
        result = await self.session.execute(
            select(RefreshToken).where(
                and_(
                    RefreshToken.token_hash == token_hash,
                    RefreshToken.revoked_at.is_not(None),
                )
            )
        )
        return result.scalar_one_or_none()

    async def revoke(self, token_id: uuid.UUID) -> bool:
        """
        Revoke a single record.

        Returns:
            True if this call revoked it, False if it was already revoked
            (or does not exist)
        """
        result = await self.session.execute(
            update(RefreshToken)
            .where(
                and_(
                    RefreshToken.id == token_id,
                    RefreshToken.revoked_at.is_(None),
                )
            )
            .values(revoked_at=self.clock.now())
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount == 1

    async def revoke_all_for_user(self, user_id: uuid.UUID) -> int:
        """Revoke every non-revoked record of a user, across families."""
        result = await self.session.execute(
            update(RefreshToken)
            .where(
                and_(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked_at.is_(None),
                )
            )
            .values(revoked_at=self.clock.now())
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount

    async def revoke_all_for_family(self, family: str) -> int:
        """Revoke every non-revoked record sharing a family."""
        result = await self.session.execute(
            update(RefreshToken)
            .where(
                and_(
                    RefreshToken.family == family,
                    RefreshToken.revoked_at.is_(None),
                )
            )
            .values(revoked_at=self.clock.now())
            .execution_options(synchronize_session="evaluate")
        )
        return result.rowcount

    async def update_last_used(self, token_id: uuid.UUID) -> None:
        await self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.id == token_id)
            .values(last_used_at=self.clock.now())
            .execution_options(synchronize_session="evaluate")
        )

    async def get_active_sessions_for_user(self, user_id: uuid.UUID) -> List[RefreshToken]:
        """Non-revoked, non-expired records of a user, newest first."""
        result = await self.session.execute(
            select(RefreshToken)
            .where(
                and_(
                    RefreshToken.user_id == user_id,
                    RefreshToken.revoked_at.is_(None),
                    RefreshToken.expires_at > self.clock.now(),
                )
            )
            .order_by(RefreshToken.issued_at.desc())
        )
        return list(result.scalars().all())

    async def delete_expired(self, older_than: Optional[datetime] = None) -> int:
        """
        Physically delete records that expired before ``older_than``.

        Maintenance sweep; nothing in the auth flow depends on it.
        """
        cutoff = older_than or self.clock.now()
        result = await self.session.execute(
            delete(RefreshToken)
            .where(RefreshToken.expires_at < cutoff)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            logger.info(f"Deleted {result.rowcount} expired refresh tokens")
        return result.rowcount
