"""
Token and session schemas.
"""
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime
import uuid

from estatehub.models.user import UserRole
from estatehub.schemas.user import SafeUser

ACCESS_CLAIMS_VERSION = 1


class AccessTokenClaims(BaseModel):
    """
    Claim set carried by a signed access token.

    ``type`` and ``ver`` are literals, so a payload minted for any other
    purpose fails validation even when its signature is valid.
    """
    sub: str
    email: str
    role: UserRole
    full_name: Optional[str] = None
    type: Literal["access"] = "access"
    ver: Literal[1] = ACCESS_CLAIMS_VERSION
    iat: int
    exp: int
    jti: str

    @property
    def user_id(self) -> uuid.UUID:
        return uuid.UUID(self.sub)

    class Config:
        extra = "ignore"


class TokenPair(BaseModel):
    """Schema for token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AuthResult(BaseModel):
    """Result of a successful login."""
    user: SafeUser
    tokens: TokenPair


class SessionInfo(BaseModel):
    """Active refresh-token session, without any token material."""
    id: uuid.UUID
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    last_used_at: Optional[datetime] = None
    expires_at: datetime
    is_current: bool = False
