"""
Authentication service: credential login and the refresh-token lifecycle.

Refresh tokens are opaque random strings stored only as SHA-256 hashes. Each
login starts a token *family*; every rotation revokes the presented token and
issues a child in the same family. Presenting a token that was already
revoked is treated as theft and revokes the whole family.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Callable, List, Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from estatehub.core.clock import Clock
from estatehub.core.config import Settings
from estatehub.core.exceptions import (
    AccountLockedError,
    ConfigurationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from estatehub.core.security import (
    JWTError,
    PasswordHasher,
    create_access_token,
    decode_token,
    epoch_seconds,
    generate_family,
    generate_jti,
    generate_refresh_token,
    hash_token,
    parse_expiry_to_seconds,
    validate_password_strength,
)
from estatehub.models.user import User, UserRole, UserStatus
from estatehub.repositories.refresh_token_repository import RefreshTokenRepository
from estatehub.repositories.user_repository import UserRepository
from estatehub.schemas.auth import AccessTokenClaims, AuthResult, SessionInfo, TokenPair
from estatehub.schemas.user import SafeUser
from estatehub.services import ports
from estatehub.services.account_lockout import AccountLockout

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"
INVALID_ACCESS_TOKEN = "Could not validate credentials"


class AuthService:
    """
    Session/token authority.

    Holds no mutable state of its own; build one per request around the
    request's database session. All store calls share that session and the
    service commits once per operation.

    Args:
        db: Async database session shared by the default repositories
        settings: Application settings (JWT secret and lifetimes)
        users: Credential store, defaults to ``UserRepository(db)``
        tokens: Refresh token store, defaults to ``RefreshTokenRepository(db)``
        hasher: Password hasher, defaults to bcrypt with configured rounds
        clock: Time source for expiry computation
        lockout: Optional progressive lockout registry for password logins
        token_factory: Source of raw refresh token material

    Raises:
        ConfigurationError: If the JWT secret is missing or too short
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: Settings,
        users: Optional[ports.CredentialStore] = None,
        tokens: Optional[ports.RefreshTokenStore] = None,
        hasher: Optional[ports.PasswordHasher] = None,
        clock: Optional[Clock] = None,
        lockout: Optional[AccountLockout] = None,
        token_factory: Callable[[], str] = generate_refresh_token,
    ):
        secret = settings.jwt.jwt_secret
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"JWT_SECRET must be set and at least {MIN_SECRET_LENGTH} characters"
            )

        self.db = db
        self.settings = settings
        self.clock = clock or Clock()
        self.users = users or UserRepository(db)
        self.tokens = tokens or RefreshTokenRepository(db, clock=self.clock)
        self.hasher = hasher or PasswordHasher(rounds=settings.security.bcrypt_rounds)
        self.lockout = lockout
        self._token_factory = token_factory
        self._secret = secret

    @staticmethod
    def hash_refresh_token(refresh_token: str) -> str:
        """Hash used to identify the caller's current session."""
        return hash_token(refresh_token)

    @asynccontextmanager
    async def _transaction(self):
        """Commit on success, roll back and re-raise on failure."""
        try:
            yield
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

    # ==================== Login / registration ====================

    async def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuthResult:
        """
        Authenticate user with email/password and issue a new token family.

        Raises:
            UnauthorizedError: Unknown email, wrong password, passwordless or
                deleted account (one generic message for all of them)
            AccountLockedError: Too many recent failures for this email
        """
        if self.lockout is not None:
            status = self.lockout.check(email)
            if status.is_locked:
                raise AccountLockedError(retry_after=status.retry_after)

        user = await self.users.find_by_email(email)
        if user is None or user.status is UserStatus.DELETED:
            logger.warning("Login failed: user not found")
            self._record_login_failure(email, ip_address)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not self.hasher.verify(password, user.password_hash):
            logger.warning(f"Login failed: invalid password for user {user.id}")
            self._record_login_failure(email, ip_address)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if self.lockout is not None:
            self.lockout.record_success(email)

        async with self._transaction():
            tokens = await self._generate_token_pair(user, ip_address, user_agent)
            safe_user = SafeUser.model_validate(user)

        logger.info(f"User {safe_user.id} logged in")
        return AuthResult(user=safe_user, tokens=tokens)

    def _record_login_failure(self, email: str, ip_address: Optional[str]) -> None:
        if self.lockout is None:
            return
        self.lockout.record_failure(email, ip_address)
        if ip_address and self.lockout.is_credential_stuffing(ip_address):
            logger.warning(f"Possible credential stuffing from {ip_address}")

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        role: str = UserRole.CLIENT.value,
        phone: Optional[str] = None,
    ) -> SafeUser:
        """
        Create a password account.

        Raises:
            ValidationError: Weak password or unknown role
            ConflictError: Email already registered
        """
        is_valid, error_msg = validate_password_strength(password)
        if not is_valid:
            raise ValidationError("password", error_msg)

        if role not in {r.value for r in UserRole}:
            raise ValidationError("role", f"Unknown role: {role}")

        async with self._transaction():
            if await self.users.find_by_email(email) is not None:
                raise ConflictError("Email already registered")
            user = await self.users.create(
                email=email,
                password_hash=self.hasher.hash(password),
                full_name=full_name,
                role=role,
                phone=phone,
            )
            safe_user = SafeUser.model_validate(user)

        return safe_user

    async def change_password(
        self,
        user_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> int:
        """
        Change user password and sign the user out everywhere.

        Returns:
            Number of sessions revoked
        """
        user = await self.users.find_by_id(user_id)
        if user is None or user.status is UserStatus.DELETED:
            raise NotFoundError("User")

        if not self.hasher.verify(current_password, user.password_hash):
            raise ValidationError("current_password", "Current password is incorrect")

        is_valid, error_msg = validate_password_strength(new_password)
        if not is_valid:
            raise ValidationError("new_password", error_msg)

        async with self._transaction():
            await self.users.update_password(user, self.hasher.hash(new_password))
            revoked = await self.tokens.revoke_all_for_user(user_id)

        logger.info(f"Password changed for user {user_id}, {revoked} sessions revoked")
        return revoked

    # ==================== Refresh token lifecycle ====================

    async def refresh(
        self,
        refresh_token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> TokenPair:
        """
        Rotate a refresh token.

        The presented record is revoked before its replacement is written, and
        both happen in one transaction. A token that is no longer valid is
        checked for reuse before the caller gets the generic error.

        Raises:
            UnauthorizedError: Token unknown, expired, revoked or reused, or
                its owner no longer exists
        """
        stored = await self.tokens.find_valid_by_hash(hash_token(refresh_token))
        if stored is None:
            await self._reject_refresh(refresh_token)

        owner_id = stored.user_id
        tokens = None
        async with self._transaction():
            consumed = await self.tokens.revoke(stored.id)
            if consumed:
                user = await self.users.find_by_id(owner_id)
                if user is not None and user.status is UserStatus.ACTIVE:
                    tokens = await self._generate_token_pair(
                        user, ip_address, user_agent, family=stored.family
                    )
                    await self.tokens.update_last_used(stored.id)

        if not consumed:
            # A concurrent refresh revoked this token between lookup and update
            await self._reject_refresh(refresh_token)

        if tokens is None:
            logger.warning(f"Refresh failed: user {owner_id} not found")
            raise UnauthorizedError("User not found")

        logger.info(f"Token refreshed for user {owner_id}")
        return tokens

    async def _reject_refresh(self, refresh_token: str) -> None:
        """Run reuse detection, then fail with the generic refresh error."""
        if await self.detect_token_reuse(refresh_token):
            logger.warning("Refresh failed: revoked token presented, family revoked")
        else:
            logger.warning("Refresh failed: token not found or expired")
        raise UnauthorizedError(INVALID_REFRESH_TOKEN)

    async def detect_token_reuse(self, refresh_token: str) -> bool:
        """
        Detect replay of an already revoked refresh token.

        If the token matches a revoked record, every remaining token of its
        family is revoked so the whole lineage must re-authenticate.

        Returns:
            True if reuse was detected
        """
        async with self._transaction():
            revoked = await self.tokens.find_revoked_by_hash(hash_token(refresh_token))
            if revoked is None:
                return False
            user_id, family = revoked.user_id, revoked.family
            count = await self.tokens.revoke_all_for_family(family)

        logger.warning(
            f"Refresh token reuse detected for user {user_id}: "
            f"family {family} revoked ({count} active tokens)"
        )
        return True

    async def logout(self, refresh_token: str) -> None:
        """Revoke the presented refresh token if it is still valid. Idempotent."""
        async with self._transaction():
            stored = await self.tokens.find_valid_by_hash(hash_token(refresh_token))
            if stored is None:
                return
            user_id = stored.user_id
            await self.tokens.revoke(stored.id)

        logger.info(f"User {user_id} logged out")

    async def logout_all_devices(self, user_id: uuid.UUID) -> int:
        """
        Revoke every active refresh token of a user.

        Returns:
            Number of sessions revoked
        """
        async with self._transaction():
            count = await self.tokens.revoke_all_for_user(user_id)

        logger.info(f"User {user_id} logged out from all devices ({count} sessions revoked)")
        return count

    async def get_active_sessions(
        self,
        user_id: uuid.UUID,
        current_token_hash: Optional[str] = None,
    ) -> List[SessionInfo]:
        """
        List active sessions of a user.

        Args:
            user_id: Session owner
            current_token_hash: Hash of the caller's refresh token, used to
                flag the current session

        Returns:
            SessionInfo list, newest first
        """
        records = await self.tokens.get_active_sessions_for_user(user_id)
        return [
            SessionInfo(
                id=record.id,
                ip_address=record.ip_address,
                user_agent=record.user_agent,
                created_at=record.issued_at,
                last_used_at=record.last_used_at,
                expires_at=record.expires_at,
                is_current=current_token_hash is not None and record.token_hash == current_token_hash,
            )
            for record in records
        ]

    async def revoke_session(self, user_id: uuid.UUID, session_id: uuid.UUID) -> None:
        """
        Revoke one session of the calling user.

        Raises:
            NotFoundError: No active session with this id
            ForbiddenError: Session belongs to another user
        """
        async with self._transaction():
            record = await self.tokens.find_by_id(session_id)
            if record is None:
                raise NotFoundError("Session")
            if record.user_id != user_id:
                logger.warning(f"User {user_id} attempted to revoke session {session_id} of another user")
                raise ForbiddenError("Cannot revoke another user's session")
            if not record.is_valid_at(self.clock.now()):
                raise NotFoundError("Session")
            await self.tokens.revoke(record.id)

        logger.info(f"Session {session_id} revoked by user {user_id}")

    # ==================== Access tokens ====================

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """
        Validate signature, expiry and claim shape of an access token.

        Raises:
            UnauthorizedError: On any failure, with one generic message
        """
        try:
            payload = decode_token(token, self._secret, self.settings.jwt.jwt_algorithm)
            return AccessTokenClaims.model_validate(payload)
        except (JWTError, SchemaValidationError):
            raise UnauthorizedError(INVALID_ACCESS_TOKEN) from None

    async def get_active_user(self, user_id: uuid.UUID) -> User:
        """
        Load the subject of a verified access token.

        Raises:
            UnauthorizedError: If the user no longer exists or was deleted
        """
        user = await self.users.find_by_id(user_id)
        if user is None or user.status is UserStatus.DELETED:
            raise UnauthorizedError("User not found")
        return user

    async def _generate_token_pair(
        self,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        family: Optional[str] = None,
    ) -> TokenPair:
        """
        Mint an access token and persist a new refresh token record.

        Args:
            user: Token subject
            ip_address: Client address stored with the refresh token
            user_agent: Client user agent stored with the refresh token
            family: Existing family when rotating; a new one is created for logins
        """
        now = self.clock.now()
        expires_in = parse_expiry_to_seconds(self.settings.jwt.access_token_expiry)

        claims = AccessTokenClaims(
            sub=str(user.id),
            email=user.email,
            role=user.role,
            full_name=user.full_name,
            iat=epoch_seconds(now),
            exp=epoch_seconds(now) + expires_in,
            jti=generate_jti(),
        )
        access_token = create_access_token(
            claims.model_dump(mode="json"), self._secret, self.settings.jwt.jwt_algorithm
        )

        raw_refresh_token = self._token_factory()
        await self.tokens.create(
            user_id=user.id,
            token_hash=hash_token(raw_refresh_token),
            family=family or generate_family(),
            expires_at=now + timedelta(days=self.settings.jwt.refresh_token_expiry_days),
            ip_address=ip_address,
            user_agent=user_agent,
        )

        return TokenPair(
            access_token=access_token,
            refresh_token=raw_refresh_token,
            expires_in=expires_in,
        )
