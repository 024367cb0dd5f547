# tutorslots/services/slots/lock.py
"""
Per-slot booking lock on Redis.

Key format: lock:session:{session_id}:slot:{start_utc}
Acquire: SET key token NX EX ttl
Release: compare-and-delete on the token, so a holder whose TTL ran out
never removes a lock someone else took afterwards.

Unlike the cache, the lock fails closed: if Redis cannot be reached the
caller gets LockUnavailableError and must not proceed.
"""

import logging
import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator

from redis import Redis
from redis.exceptions import RedisError

from ...errors import ConflictError, LockUnavailableError
from .config import SlotsConfig, get_slots_config
from .domain import isoformat_utc

logger = logging.getLogger(__name__)

_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


@dataclass(frozen=True)
class LockHandle:
    key: str
    token: str
    acquired: bool


class SlotLock:
    KEY_PREFIX = "lock:session"

    def __init__(self, redis: Redis, config: SlotsConfig | None = None):
        self.redis = redis
        self.config = config or get_slots_config()

    def key(self, session_id: int, start_utc: datetime) -> str:
        return f"{self.KEY_PREFIX}:{session_id}:slot:{isoformat_utc(start_utc)}"

    def acquire(self, session_id: int, start_utc: datetime) -> LockHandle:
        """
        Try once to take the lock; never waits.

        Raises:
            LockUnavailableError: Redis is unreachable.
        """
        key = self.key(session_id, start_utc)
        token = secrets.token_hex(16)
        try:
            acquired = bool(
                self.redis.set(key, token, nx=True, ex=self.config.lock_ttl_seconds)
            )
        except RedisError as exc:
            logger.error("booking lock store unavailable for %s: %s", key, exc)
            raise LockUnavailableError(
                "Booking is temporarily unavailable, please retry later",
                details={"session_id": session_id},
            ) from exc

        if not acquired:
            logger.info("booking lock busy: %s", key)
        return LockHandle(key=key, token=token, acquired=acquired)

    def release(self, handle: LockHandle) -> bool:
        """
        Release a held lock. Safe to call twice or after TTL expiry.

        Returns:
            True if this call removed the key.
        """
        if not handle.acquired:
            return False
        try:
            return bool(self.redis.eval(_RELEASE_SCRIPT, 1, handle.key, handle.token))
        except RedisError as exc:
            # The TTL will clear it
            logger.warning("booking lock release failed for %s: %s", handle.key, exc)
            return False

    @contextmanager
    def hold(self, session_id: int, start_utc: datetime) -> Iterator[LockHandle]:
        """Hold the lock for the block; ConflictError if someone else has it."""
        handle = self.acquire(session_id, start_utc)
        if not handle.acquired:
            raise ConflictError(
                "This slot is being booked by someone else, please pick another or retry",
                details={"session_id": session_id, "start_time": isoformat_utc(start_utc)},
            )
        try:
            yield handle
        finally:
            self.release(handle)
