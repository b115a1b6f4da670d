"""
Shared test fixtures.

Tests run against an in-memory SQLite database through aiosqlite. StaticPool
keeps a single connection so the schema created by ``create_all`` is the one
every session sees.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import estatehub.models  # noqa: F401  (registers tables on Base.metadata)
from estatehub.core.clock import FrozenClock
from estatehub.core.config import (
    AppSettings,
    DatabaseSettings,
    JWTSettings,
    SecuritySettings,
    Settings,
)
from estatehub.core.security import PasswordHasher
from estatehub.db.base import Base
from estatehub.repositories.user_repository import UserRepository
from estatehub.services.auth_service import AuthService


TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_JWT_SECRET = "Test-Secret-Key_for-Automation-Only-987654321!"
TEST_PASSWORD = "Correct-Horse-9"


@pytest.fixture
def settings() -> Settings:
    """Test settings: fast bcrypt, lockout off, in-memory database."""
    return Settings(
        database=DatabaseSettings(database_url=TEST_DATABASE_URL),
        jwt=JWTSettings(jwt_secret=TEST_JWT_SECRET, access_token_expiry="15m"),
        security=SecuritySettings(bcrypt_rounds=4, lockout_enabled=False),
        app=AppSettings(env="test", log_format="pretty"),
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
async def engine():
    """Create a test database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def auth_service(db, settings, clock, hasher) -> AuthService:
    return AuthService(db, settings, hasher=hasher, clock=clock)


@pytest.fixture
async def make_user(db, hasher):
    """Factory creating committed users with ``TEST_PASSWORD``."""
    users = UserRepository(db)

    async def _make_user(email: str = "alice@example.com", role: str = "agent", **kwargs):
        user = await users.create(
            email=email,
            password_hash=hasher.hash(kwargs.pop("password", TEST_PASSWORD)),
            full_name=kwargs.pop("full_name", "Alice Agent"),
            role=role,
            **kwargs,
        )
        await db.commit()
        return user

    return _make_user


@pytest.fixture
async def alice(make_user):
    return await make_user()


@pytest.fixture
async def bob(make_user):
    return await make_user(email="bob@example.com", role="client", full_name="Bob Buyer")
