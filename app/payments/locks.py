"""
Distributed lock for reconciliation.

Redis-based mutual exclusion across Celery workers. Each ParsedPayment
is reconciled under its own key so two workers never process the same
message concurrently; row locks and the one-to-one parsed_payment
constraint guard the database writes underneath.

Usage:
    from payments.locks import DistributedLock, parsed_payment_lock

    with parsed_payment_lock(parsed_payment_id):
        # Only one worker can execute this at a time
        reconcile(parsed_payment_id)
"""

from __future__ import annotations

import time
import uuid as uuid_module
from typing import TYPE_CHECKING

from django_redis import get_redis_connection

from payments.exceptions import LockAcquisitionError

if TYPE_CHECKING:
    from typing import Any

    from redis import Redis

# =============================================================================
# Distributed Locks
# =============================================================================


class DistributedLock:
    """
    Redis-based distributed lock with TTL.

    The key is SET NX with an expiry and a random owner token; release
    deletes the key only while it still holds our token, so a lock that
    expired and was taken by another worker is never released by us.

    Example:
        with DistributedLock("reconciliation:parsed:123", ttl=30):
            reconcile()

        lock = DistributedLock("reconciliation:parsed:123", blocking=False)
        try:
            lock.acquire()
        except LockAcquisitionError:
            # Another worker is reconciling this message
            raise

    Args:
        key: Lock identifier (will be prefixed with "lock:")
        ttl: Lock TTL in seconds (auto-releases after this time)
        blocking: If True, acquire() polls until the lock is free
        timeout: Maximum wait time in seconds (only if blocking=True)
    """

    # Lua script for atomic check-and-delete (release)
    RELEASE_SCRIPT = """
    if redis.call("get", KEYS[1]) == ARGV[1] then
        return redis.call("del", KEYS[1])
    else
        return 0
    end
    """

    POLL_INTERVAL = 0.05

    def __init__(
        self,
        key: str,
        ttl: int = 30,
        blocking: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self.key = f"lock:{key}"
        self.ttl = ttl
        self.blocking = blocking
        self.timeout = timeout
        self._token: str | None = None
        self._redis: Redis | None = None

    def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = get_redis_connection("default")
        return self._redis

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True once the lock is held

        Raises:
            LockAcquisitionError: Lock is held elsewhere (non-blocking) or
                was not released within timeout (blocking)
        """
        self._token = str(uuid_module.uuid4())
        redis = self._get_redis()

        if not self.blocking:
            if self._try_acquire(redis):
                return True
            self._token = None
            raise LockAcquisitionError(
                f"Lock '{self.key}' is already held",
                details={"key": self.key},
            )

        deadline = time.monotonic() + self.timeout
        while time.monotonic() < deadline:
            if self._try_acquire(redis):
                return True
            time.sleep(self.POLL_INTERVAL)

        self._token = None
        raise LockAcquisitionError(
            f"Failed to acquire lock '{self.key}' within {self.timeout}s",
            details={"key": self.key, "timeout": self.timeout},
        )

    def _try_acquire(self, redis: Redis) -> bool:
        return bool(redis.set(self.key, self._token, nx=True, ex=self.ttl))

    def release(self) -> bool:
        """
        Release the lock if we still own it.

        Safe to call more than once; returns False when we held nothing.
        """
        if self._token is None:
            return False

        result = self._get_redis().eval(self.RELEASE_SCRIPT, 1, self.key, self._token)
        self._token = None
        return bool(result)

    @property
    def is_held(self) -> bool:
        return self._token is not None

    def __enter__(self) -> DistributedLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> bool:
        self.release()
        return False


def parsed_payment_lock(parsed_payment_id, ttl: int = 30, timeout: float = 10.0) -> DistributedLock:
    """Lock guarding reconciliation of one ParsedPayment."""
    return DistributedLock(f"reconciliation:parsed:{parsed_payment_id}", ttl=ttl, timeout=timeout)


__all__ = [
    "DistributedLock",
    "parsed_payment_lock",
]
