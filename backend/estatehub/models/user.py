"""
User model for authentication and user management.
"""
from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from enum import Enum
import uuid

from estatehub.core.clock import utc_now
from estatehub.db.base import Base


class UserRole(str, Enum):
    """Roles carried in access tokens."""

    ADMIN = "admin"
    AGENT = "agent"
    CLIENT = "client"


class UserStatus(str, Enum):
    """Lifecycle state derived from the soft-delete timestamp."""

    ACTIVE = "active"
    DELETED = "deleted"


class User(Base):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    # Nullable for Google-only accounts, which can never log in with a password
    password_hash = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50))

    # Authorization
    role = Column(String(20), nullable=False, default=UserRole.CLIENT.value)

    # Timestamps
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)
    deleted_at = Column(DateTime, nullable=True)

    # Relationships
    refresh_tokens = relationship("RefreshToken", back_populates="user", cascade="all, delete-orphan")

    @property
    def status(self) -> UserStatus:
        return UserStatus.DELETED if self.deleted_at is not None else UserStatus.ACTIVE

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
