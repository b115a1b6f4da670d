"""Service layer."""

from estatehub.services.account_lockout import AccountLockout, LockoutStatus
from estatehub.services.auth_service import AuthService

__all__ = ["AccountLockout", "AuthService", "LockoutStatus"]
