"""
Tests for the Redis distributed lock.

DistributedLock provides mutual exclusion across Celery workers while a
ParsedPayment is reconciled. Redis is mocked (see mock_redis in the root
conftest).
"""

import pytest

from payments.exceptions import LockAcquisitionError
from payments.locks import DistributedLock, parsed_payment_lock


class TestDistributedLock:
    """Tests for DistributedLock class."""

    def test_acquire_success(self, mock_redis):
        """Should acquire lock when available."""
        lock = DistributedLock("test:key", ttl=30, blocking=False)
        result = lock.acquire()

        assert result is True
        assert lock.is_held is True
        # set(key, token, nx=True, ex=ttl)
        call_args = mock_redis.set.call_args
        assert call_args[0][0] == "lock:test:key"
        assert call_args[1]["nx"] is True
        assert call_args[1]["ex"] == 30

    def test_acquire_generates_unique_token(self, mock_redis):
        lock1 = DistributedLock("test:key1", blocking=False)
        lock2 = DistributedLock("test:key2", blocking=False)

        lock1.acquire()
        lock2.acquire()

        assert lock1._token is not None
        assert lock1._token != lock2._token

    def test_acquire_non_blocking_raises_when_held(self, mock_redis):
        """Non-blocking mode should raise immediately if lock unavailable."""
        mock_redis.set.return_value = False

        lock = DistributedLock("test:key", blocking=False)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert "already held" in str(exc_info.value)
        assert exc_info.value.details["key"] == "lock:test:key"
        assert exc_info.value.error_code == "LOCK_ACQUISITION_FAILED"
        assert lock.is_held is False

    def test_acquire_blocking_waits_and_acquires(self, mock_redis, mocker):
        """Blocking mode should poll until the key is free."""
        mocker.patch("payments.locks.time.sleep")
        mock_redis.set.side_effect = [False, False, True]

        lock = DistributedLock("test:key", blocking=True, timeout=1.0)

        assert lock.acquire() is True
        assert mock_redis.set.call_count == 3

    def test_acquire_blocking_timeout_raises_error(self, mock_redis):
        mock_redis.set.return_value = False

        lock = DistributedLock("test:key", blocking=True, timeout=0.1)

        with pytest.raises(LockAcquisitionError) as exc_info:
            lock.acquire()

        assert "within 0.1s" in str(exc_info.value)
        assert exc_info.value.details["timeout"] == 0.1
        assert lock.is_held is False

    def test_release_success(self, mock_redis):
        lock = DistributedLock("test:key", blocking=False)
        lock.acquire()
        token = lock._token

        assert lock.release() is True
        assert lock.is_held is False
        mock_redis.eval.assert_called_once_with(DistributedLock.RELEASE_SCRIPT, 1, "lock:test:key", token)

    def test_release_only_if_owned(self, mock_redis):
        """The release script returns 0 when the key holds another token."""
        mock_redis.eval.return_value = 0

        lock = DistributedLock("test:key", blocking=False)
        lock.acquire()

        assert lock.release() is False

    def test_release_without_acquire_returns_false(self, mock_redis):
        lock = DistributedLock("test:key", blocking=False)

        assert lock.release() is False
        mock_redis.eval.assert_not_called()

    def test_context_manager_releases_on_exception(self, mock_redis):
        with pytest.raises(ValueError, match="boom"):
            with DistributedLock("test:key"):
                raise ValueError("boom")

        mock_redis.set.assert_called_once()
        mock_redis.eval.assert_called_once()


class TestParsedPaymentLock:
    def test_key_per_parsed_payment(self, mock_redis):
        with parsed_payment_lock("abc", ttl=15):
            pass

        call_args = mock_redis.set.call_args
        assert call_args[0][0] == "lock:reconciliation:parsed:abc"
        assert call_args[1]["ex"] == 15
