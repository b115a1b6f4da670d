"""
Refresh token model for JWT token management.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship
import uuid

from estatehub.core.clock import utc_now
from estatehub.db.base import Base


class RefreshToken(Base):
    """
    Refresh token record.

    Only the SHA-256 hash of the raw token is stored. Every record belongs to
    a ``family`` shared by all tokens rotated out of one login; ``revoked_at``
    is set once and never cleared.
    """

    __tablename__ = "refresh_tokens"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    family = Column(String(64), nullable=False, index=True)

    # Lifecycle
    issued_at = Column(DateTime, default=utc_now, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    last_used_at = Column(DateTime, nullable=True)

    # Provenance (advisory only)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    # Relationships
    user = relationship("User", back_populates="refresh_tokens")

    __table_args__ = (
        Index("idx_refresh_tokens_user_active", "user_id", "revoked_at", "expires_at"),
    )

    def is_valid_at(self, moment) -> bool:
        """Not revoked and not yet expired."""
        return self.revoked_at is None and self.expires_at > moment

    def __repr__(self):
        return f"<RefreshToken(id={self.id}, user_id={self.user_id}, family={self.family}, revoked={self.revoked_at is not None})>"
