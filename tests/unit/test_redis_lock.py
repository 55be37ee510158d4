"""Tests for fx_common.redis_client.distributed_lock."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import LockError

from src.fx_common.errors import PayoutInProgressError
from src.fx_common.redis_client import distributed_lock


def _redis(lock: AsyncMock) -> MagicMock:
    redis = MagicMock()
    redis.lock.return_value = lock
    return redis


class TestDistributedLock:
    async def test_acquire_and_release(self) -> None:
        lock = AsyncMock()
        lock.acquire.return_value = True
        redis = _redis(lock)

        async with distributed_lock(redis, "payout:dividend:ci-1", timeout=10, blocking_timeout=1):
            lock.release.assert_not_awaited()

        redis.lock.assert_called_once_with("payout:dividend:ci-1", timeout=10, blocking_timeout=1)
        lock.release.assert_awaited_once()

    async def test_not_acquired_raises(self) -> None:
        lock = AsyncMock()
        lock.acquire.return_value = False

        with pytest.raises(PayoutInProgressError, match="payout:dividend:ci-1"):
            async with distributed_lock(_redis(lock), "payout:dividend:ci-1"):
                pass

    async def test_expired_lock_release_is_logged(self) -> None:
        lock = AsyncMock()
        lock.acquire.return_value = True
        lock.release.side_effect = LockError("expired")

        async with distributed_lock(_redis(lock), "k"):
            pass

        lock.release.assert_awaited_once()
