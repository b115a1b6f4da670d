"""
Unit tests for AccountLockout.

Tests attempt counting, progressive lockout durations, window expiry and
credential stuffing detection.
"""

from datetime import timedelta

import pytest

from estatehub.core.clock import FrozenClock
from estatehub.services.account_lockout import AccountLockout


class TestAccountLockout:
    """Test suite for AccountLockout."""

    @pytest.fixture
    def clock(self):
        return FrozenClock()

    @pytest.fixture
    def lockout(self, clock):
        """Create a fresh AccountLockout for each test."""
        return AccountLockout(max_attempts=3, attempt_window=timedelta(minutes=15), clock=clock)

    def test_unknown_identifier_is_not_locked(self, lockout):
        status = lockout.check("nobody@example.com")
        assert status.is_locked is False
        assert status.remaining_attempts == 3

    def test_failures_count_down_remaining_attempts(self, lockout):
        assert lockout.record_failure("alice@example.com").remaining_attempts == 2
        assert lockout.record_failure("alice@example.com").remaining_attempts == 1
        assert lockout.check("alice@example.com").remaining_attempts == 1

    def test_locks_after_max_attempts(self, lockout):
        for _ in range(2):
            assert lockout.record_failure("alice@example.com").is_locked is False

        status = lockout.record_failure("alice@example.com")

        assert status.is_locked is True
        assert status.retry_after == 300
        assert status.lockout_count == 1
        assert lockout.check("alice@example.com").is_locked is True

    def test_identifier_is_case_insensitive(self, lockout):
        for _ in range(3):
            lockout.record_failure("Alice@Example.com")
        assert lockout.check("alice@example.com").is_locked is True

    def test_lock_expires(self, lockout, clock):
        for _ in range(3):
            lockout.record_failure("alice@example.com")

        clock.advance(minutes=5, seconds=1)

        assert lockout.check("alice@example.com").is_locked is False

    def test_lockout_duration_escalates(self, lockout, clock):
        expected = [300, 900, 3600, 14400, 86400, 86400]
        for seconds in expected:
            for _ in range(3):
                status = lockout.record_failure("alice@example.com")
            assert status.is_locked is True
            assert status.retry_after == seconds
            clock.advance(seconds=seconds + 1)

    def test_failures_outside_window_are_forgotten(self, lockout, clock):
        lockout.record_failure("alice@example.com")
        lockout.record_failure("alice@example.com")

        clock.advance(minutes=16)

        status = lockout.record_failure("alice@example.com")
        assert status.is_locked is False
        assert status.remaining_attempts == 2

    def test_attempts_while_locked_do_not_extend_lock(self, lockout, clock):
        for _ in range(3):
            lockout.record_failure("alice@example.com")
        clock.advance(minutes=2)

        status = lockout.record_failure("alice@example.com")

        assert status.is_locked is True
        assert status.retry_after == 180

    def test_success_resets_counter(self, lockout):
        lockout.record_failure("alice@example.com")
        lockout.record_failure("alice@example.com")
        lockout.record_success("alice@example.com")

        assert lockout.check("alice@example.com").remaining_attempts == 3

    def test_manual_unlock(self, lockout):
        for _ in range(3):
            lockout.record_failure("alice@example.com")

        assert lockout.unlock("alice@example.com") is True
        assert lockout.check("alice@example.com").is_locked is False
        assert lockout.unlock("alice@example.com") is False

    def test_credential_stuffing_detection(self, lockout):
        for i in range(11):
            lockout.record_failure(f"user{i}@example.com", ip_address="203.0.113.7")

        assert lockout.is_credential_stuffing("203.0.113.7") is True
        assert lockout.is_credential_stuffing("198.51.100.1") is False

    def test_stats_and_cleanup(self, lockout, clock):
        for _ in range(3):
            lockout.record_failure("alice@example.com", ip_address="203.0.113.7")
        lockout.record_failure("bob@example.com", ip_address="198.51.100.1")

        assert lockout.stats() == {"locked_accounts": 1, "tracked_ips": 2}

        clock.advance(minutes=31)
        removed = lockout.cleanup()

        assert removed == 1  # bob; alice stays for escalation history
        assert lockout.stats() == {"locked_accounts": 0, "tracked_ips": 1}

    def test_idle_entries_are_swept_without_manual_cleanup(self, lockout, clock):
        for i in range(500):
            lockout.record_failure(f"user{i}@example.com", ip_address=f"10.0.{i // 250}.{i % 250}")
        assert len(lockout._entries) == 500

        clock.advance(days=30)
        for i in range(5):
            lockout.record_failure(f"late{i}@example.com", ip_address="198.51.100.1")

        assert len(lockout._entries) == 5
        assert lockout.stats()["tracked_ips"] == 1

    def test_sweep_waits_for_cleanup_interval(self, clock):
        lockout = AccountLockout(max_attempts=3, clock=clock, cleanup_interval=timedelta(hours=1))
        lockout.record_failure("alice@example.com")

        clock.advance(minutes=45)
        lockout.record_failure("bob@example.com")
        assert set(lockout._entries) == {"alice@example.com", "bob@example.com"}

        clock.advance(minutes=20)
        lockout.record_failure("carol@example.com")
        assert set(lockout._entries) == {"bob@example.com", "carol@example.com"}
