"""
Progressive account lockout for password logins.

Failed attempts are counted per identifier (the lower-cased email) inside a
sliding window. Reaching the limit locks the identifier for the next step of
an escalating duration ladder. State is per process, so several app
instances each enforce their own view.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Set

from estatehub.core.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_LOCKOUT_DURATIONS = [
    timedelta(minutes=5),
    timedelta(minutes=15),
    timedelta(hours=1),
    timedelta(hours=4),
    timedelta(hours=24),
]

DEFAULT_CLEANUP_INTERVAL = timedelta(minutes=5)

# More identifiers than this from one IP looks like credential stuffing
CREDENTIAL_STUFFING_THRESHOLD = 10


@dataclass
class LockoutEntry:
    failed_attempts: int = 0
    last_failed_at: Optional[datetime] = None
    lockout_count: int = 0
    locked_until: Optional[datetime] = None
    ip_addresses: Set[str] = field(default_factory=set)


@dataclass
class LockoutStatus:
    is_locked: bool
    remaining_attempts: int
    locked_until: Optional[datetime] = None
    retry_after: Optional[int] = None  # seconds
    lockout_count: int = 0


class AccountLockout:
    """
    In-memory lockout registry.

    Args:
        max_attempts: Failures tolerated before locking
        attempt_window: Failures older than this no longer count
        durations: Lockout length per successive lockout; the last one repeats
        clock: Time source
        cleanup_interval: Minimum time between automatic sweeps of idle
            entries, run from ``record_failure``
    """

    def __init__(
        self,
        max_attempts: int = 5,
        attempt_window: timedelta = timedelta(minutes=15),
        durations: Optional[List[timedelta]] = None,
        clock: Optional[Clock] = None,
        cleanup_interval: timedelta = DEFAULT_CLEANUP_INTERVAL,
    ):
        self.max_attempts = max_attempts
        self.attempt_window = attempt_window
        self.durations = list(durations or DEFAULT_LOCKOUT_DURATIONS)
        self.clock = clock or Clock()
        self.cleanup_interval = cleanup_interval
        self._entries: Dict[str, LockoutEntry] = {}
        self._ip_identifiers: Dict[str, Set[str]] = {}
        self._last_cleanup = self.clock.now()

    @staticmethod
    def _key(identifier: str) -> str:
        return identifier.strip().lower()

    def _locked_status(self, entry: LockoutEntry, now: datetime) -> LockoutStatus:
        remaining = entry.locked_until - now
        return LockoutStatus(
            is_locked=True,
            remaining_attempts=0,
            locked_until=entry.locked_until,
            retry_after=max(1, math.ceil(remaining.total_seconds())),
            lockout_count=entry.lockout_count,
        )

    def check(self, identifier: str) -> LockoutStatus:
        """Current status without recording anything."""
        now = self.clock.now()
        entry = self._entries.get(self._key(identifier))
        if entry is None:
            return LockoutStatus(is_locked=False, remaining_attempts=self.max_attempts)
        if entry.locked_until and entry.locked_until > now:
            return self._locked_status(entry, now)

        attempts = entry.failed_attempts
        if entry.last_failed_at and now - entry.last_failed_at > self.attempt_window:
            attempts = 0
        return LockoutStatus(
            is_locked=False,
            remaining_attempts=self.max_attempts - attempts,
            lockout_count=entry.lockout_count,
        )

    def record_failure(self, identifier: str, ip_address: Optional[str] = None) -> LockoutStatus:
        """
        Record a failed login attempt.

        Returns:
            Status after this attempt; ``is_locked`` is True when this attempt
            triggered a lockout or the identifier was already locked
        """
        key = self._key(identifier)
        now = self.clock.now()
        if now - self._last_cleanup >= self.cleanup_interval:
            self.cleanup()
        entry = self._entries.setdefault(key, LockoutEntry())

        if entry.locked_until and entry.locked_until > now:
            logger.warning(f"Login attempt on locked account {key} from {ip_address}")
            return self._locked_status(entry, now)

        if entry.last_failed_at and now - entry.last_failed_at > self.attempt_window:
            entry.failed_attempts = 0

        entry.failed_attempts += 1
        entry.last_failed_at = now
        if ip_address:
            entry.ip_addresses.add(ip_address)
            self._ip_identifiers.setdefault(ip_address, set()).add(key)

        if entry.failed_attempts >= self.max_attempts:
            duration = self.durations[min(entry.lockout_count, len(self.durations) - 1)]
            entry.locked_until = now + duration
            entry.lockout_count += 1
            entry.failed_attempts = 0
            logger.warning(
                f"Account {key} locked for {int(duration.total_seconds() // 60)} minutes "
                f"(lockout #{entry.lockout_count}, {len(entry.ip_addresses)} distinct IPs)"
            )
            return self._locked_status(entry, now)

        return LockoutStatus(
            is_locked=False,
            remaining_attempts=self.max_attempts - entry.failed_attempts,
            lockout_count=entry.lockout_count,
        )

    def record_success(self, identifier: str) -> None:
        """Clear the failure counter; the lockout history is kept for escalation."""
        entry = self._entries.get(self._key(identifier))
        if entry is None:
            return
        entry.failed_attempts = 0
        entry.last_failed_at = None
        entry.locked_until = None
        if entry.lockout_count == 0:
            del self._entries[self._key(identifier)]

    def unlock(self, identifier: str) -> bool:
        """Administrative unlock. Returns True if an entry was cleared."""
        removed = self._entries.pop(self._key(identifier), None)
        if removed is not None:
            logger.info(f"Account {self._key(identifier)} manually unlocked")
        return removed is not None

    def is_credential_stuffing(self, ip_address: str) -> bool:
        return len(self._ip_identifiers.get(ip_address, ())) > CREDENTIAL_STUFFING_THRESHOLD

    def _is_stale(self, entry: LockoutEntry, now: datetime) -> bool:
        if entry.locked_until and entry.locked_until > now:
            return False
        if entry.last_failed_at and now - entry.last_failed_at <= self.attempt_window * 2:
            return False
        # Lockout history is kept long enough to escalate the next lockout
        if entry.locked_until and now - entry.locked_until <= self.durations[-1]:
            return False
        return True

    def cleanup(self) -> int:
        """Drop idle, unlocked entries. Returns the number removed."""
        now = self.clock.now()
        self._last_cleanup = now
        stale = [key for key, entry in self._entries.items() if self._is_stale(entry, now)]
        for key in stale:
            del self._entries[key]
        for ip in [ip for ip, keys in self._ip_identifiers.items() if keys.isdisjoint(self._entries)]:
            del self._ip_identifiers[ip]
        if stale:
            logger.info(f"Lockout cleanup removed {len(stale)} idle entries")
        return len(stale)

    def stats(self) -> Dict[str, int]:
        now = self.clock.now()
        return {
            "locked_accounts": sum(
                1 for e in self._entries.values() if e.locked_until and e.locked_until > now
            ),
            "tracked_ips": len(self._ip_identifiers),
        }
