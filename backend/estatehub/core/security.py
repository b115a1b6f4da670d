"""
Security utilities for authentication.

Password hashing (bcrypt via passlib), signed access tokens (python-jose),
and opaque refresh token material.
"""
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from jose import JWTError, jwt
from passlib.context import CryptContext
import hashlib
import re
import secrets

DEFAULT_EXPIRY_SECONDS = 900

_EXPIRY_PATTERN = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class PasswordHasher:
    """
    bcrypt password hashing.

    Using ident="2b" for maximum compatibility with bcrypt 4.x. The cost factor
    is configurable so tests can run with the minimum of 4 rounds.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__ident="2b",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """
        Verify a password against its hash.

        A missing hash (passwordless account) never verifies. Malformed hashes
        are treated as a mismatch.
        """
        if not hashed_password:
            return False
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError):
            return False


def validate_password_strength(password: str) -> Tuple[bool, Optional[str]]:
    """
    Validate password meets strength requirements.

    Requirements:
    - At least 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Args:
        password: Password to validate

    Returns:
        tuple: (is_valid, error_message)
    """
    if len(password) < 8:
        return False, "Password must be at least 8 characters"

    if not any(c.isupper() for c in password):
        return False, "Password must contain at least one uppercase letter"

    if not any(c.islower() for c in password):
        return False, "Password must contain at least one lowercase letter"

    if not any(c.isdigit() for c in password):
        return False, "Password must contain at least one number"

    return True, None


def parse_expiry_to_seconds(expiry: str) -> int:
    """
    Convert a duration string such as ``"15m"`` to seconds.

    Accepts ``<integer><unit>`` with unit in s, m, h, d. Anything else falls
    back to 900 seconds instead of raising.
    """
    match = _EXPIRY_PATTERN.match(expiry.strip()) if isinstance(expiry, str) else None
    if not match:
        return DEFAULT_EXPIRY_SECONDS
    return int(match.group(1)) * _UNIT_SECONDS[match.group(2)]


def create_access_token(
    claims: Dict[str, Any],
    secret: str,
    algorithm: str = "HS256",
) -> str:
    """
    Encode a claim set as a signed JWT.

    Args:
        claims: JSON-serializable claim set (``exp``/``iat`` as epoch seconds)
        secret: Signing secret
        algorithm: JWT algorithm

    Returns:
        str: Encoded JWT token
    """
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Dict[str, Any]:
    """
    Decode and validate JWT signature and expiry.

    Raises:
        JWTError: If token is malformed, tampered with or expired
    """
    return jwt.decode(token, secret, algorithms=[algorithm])


def generate_refresh_token() -> str:
    """256 bits of randomness, URL-safe base64 encoded."""
    return secrets.token_urlsafe(32)


def generate_family() -> str:
    """Identifier shared by every refresh token descended from one login."""
    return secrets.token_hex(16)


def generate_jti() -> str:
    return secrets.token_hex(16)


def hash_token(token: str) -> str:
    """
    Hash a token for storage using SHA-256.

    Used for storing refresh tokens in database.

    Args:
        token: Token to hash

    Returns:
        str: SHA-256 hash of token
    """
    return hashlib.sha256(token.encode()).hexdigest()


def epoch_seconds(moment: datetime) -> int:
    """Naive-UTC datetime to integer epoch seconds."""
    return int((moment - datetime(1970, 1, 1)).total_seconds())


__all__ = [
    "DEFAULT_EXPIRY_SECONDS",
    "JWTError",
    "PasswordHasher",
    "create_access_token",
    "decode_token",
    "epoch_seconds",
    "generate_family",
    "generate_jti",
    "generate_refresh_token",
    "hash_token",
    "parse_expiry_to_seconds",
    "validate_password_strength",
]
