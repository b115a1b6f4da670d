"""
Integration tests for RefreshTokenRepository against SQLite.
"""

import uuid
from datetime import timedelta

import pytest

from estatehub.core.security import generate_family, generate_refresh_token, hash_token
from estatehub.repositories.refresh_token_repository import RefreshTokenRepository


@pytest.fixture
def repo(db, clock):
    return RefreshTokenRepository(db, clock=clock)


@pytest.fixture
def issue(repo, clock, alice):
    """Create a committed token for alice and return (raw, record)."""

    async def _issue(family=None, days=7, user_id=None, **kwargs):
        raw = generate_refresh_token()
        record = await repo.create(
            user_id=user_id or alice.id,
            token_hash=hash_token(raw),
            family=family or generate_family(),
            expires_at=clock.now() + timedelta(days=days),
            **kwargs,
        )
        await repo.session.commit()
        return raw, record

    return _issue


@pytest.mark.asyncio
class TestRefreshTokenRepository:
    async def test_create_and_find_valid(self, repo, issue, clock):
        raw, record = await issue(ip_address="192.0.2.1", user_agent="curl")

        found = await repo.find_valid_by_hash(hash_token(raw))

        assert found.id == record.id
        assert found.issued_at == clock.now()
        assert found.ip_address == "192.0.2.1"
        assert await repo.find_valid_by_hash(hash_token("other")) is None

    async def test_find_valid_ignores_expired(self, repo, issue, clock):
        raw, _ = await issue(days=1)

        clock.advance(days=1)

        assert await repo.find_valid_by_hash(hash_token(raw)) is None

    async def test_revoke_is_compare_and_set(self, repo, issue):
        raw, record = await issue()

        assert await repo.revoke(record.id) is True
        assert await repo.revoke(record.id) is False
        assert await repo.revoke(uuid.uuid4()) is False

        assert await repo.find_valid_by_hash(hash_token(raw)) is None
        revoked = await repo.find_revoked_by_hash(hash_token(raw))
        assert revoked.id == record.id

    async def test_revocation_timestamp_is_never_rewritten(self, repo, issue, clock):
        _, record = await issue()
        await repo.revoke(record.id)
        first = record.revoked_at

        clock.advance(minutes=10)
        await repo.revoke_all_for_user(record.user_id)
        await repo.revoke_all_for_family(record.family)

        assert (await repo.find_by_id(record.id)).revoked_at == first

    async def test_revoke_all_for_family(self, repo, issue):
        family = generate_family()
        _, first = await issue(family=family)
        _, second = await issue(family=family)
        _, other = await issue()

        assert await repo.revoke_all_for_family(family) == 2

        assert first.revoked_at is not None
        assert second.revoked_at is not None
        assert other.revoked_at is None

    async def test_revoke_all_for_user(self, repo, issue, bob):
        await issue()
        await issue()
        _, bobs = await issue(user_id=bob.id)

        assert await repo.revoke_all_for_user(bobs.user_id) == 1
        assert len(await repo.get_active_sessions_for_user(bobs.user_id)) == 0

    async def test_update_last_used(self, repo, issue, clock):
        _, record = await issue()
        clock.advance(minutes=3)

        await repo.update_last_used(record.id)

        assert record.last_used_at == clock.now()

    async def test_active_sessions_newest_first(self, repo, issue, clock, alice):
        _, older = await issue(user_agent="older")
        clock.advance(minutes=1)
        _, newer = await issue(user_agent="newer")
        _, revoked = await issue(user_agent="revoked")
        await repo.revoke(revoked.id)

        sessions = await repo.get_active_sessions_for_user(alice.id)

        assert [s.id for s in sessions] == [newer.id, older.id]

    async def test_delete_expired(self, repo, issue, clock):
        await issue(days=1)
        raw, _ = await issue(days=7)

        clock.advance(days=2)

        assert await repo.delete_expired() == 1
        assert await repo.find_valid_by_hash(hash_token(raw)) is not None
