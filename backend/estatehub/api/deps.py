"""
FastAPI dependencies for authentication and authorization.
"""
from functools import lru_cache
from datetime import timedelta
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.core.config import Settings, get_settings
from estatehub.core.exceptions import ForbiddenError, UnauthorizedError
from estatehub.core.security import PasswordHasher
from estatehub.db.session import get_db
from estatehub.models.user import User, UserRole
from estatehub.schemas.auth import AccessTokenClaims
from estatehub.services.account_lockout import AccountLockout
from estatehub.services.auth_service import AuthService

security = HTTPBearer(auto_error=False)


@lru_cache
def get_account_lockout() -> Optional[AccountLockout]:
    """Process-wide lockout registry, or None when disabled."""
    security_settings = get_settings().security
    if not security_settings.lockout_enabled:
        return None
    return AccountLockout(
        max_attempts=security_settings.lockout_max_attempts,
        attempt_window=timedelta(minutes=security_settings.lockout_window_minutes),
    )


@lru_cache
def get_password_hasher(rounds: int) -> PasswordHasher:
    return PasswordHasher(rounds=rounds)


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    """
    Build the auth service for the current request.

    Usage in FastAPI:
        @router.post("/auth/refresh")
        async def refresh(body: RefreshIn, auth: AuthService = Depends(get_auth_service)):
            return await auth.refresh(body.refresh_token)
    """
    return AuthService(
        db,
        settings,
        hasher=get_password_hasher(settings.security.bcrypt_rounds),
        lockout=get_account_lockout(),
    )


async def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> AccessTokenClaims:
    """
    Dependency to get the verified claim set of the bearer access token.

    Raises:
        UnauthorizedError: If the header is missing or the token is invalid
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    return auth_service.verify_access_token(credentials.credentials)


async def get_current_user(
    claims: AccessTokenClaims = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """
    Dependency to get current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If the user no longer exists or was deleted
    """
    return await auth_service.get_active_user(claims.user_id)


def require_role(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.

    Usage:
        @router.get("/admin/users", dependencies=[Depends(require_role(UserRole.ADMIN))])
    """
    async def _check_role(
        claims: AccessTokenClaims = Depends(get_current_claims),
    ) -> AccessTokenClaims:
        if claims.role not in roles:
            raise ForbiddenError("Insufficient permissions")
        return claims

    return _check_role
