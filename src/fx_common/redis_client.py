"""Redis client factory: used for payout batch locks only.

Balances, payout items and payments live in PostgreSQL; Redis only serializes
concurrent payout batches for the same investor across workers.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from redis.exceptions import LockError

from config.settings import settings
from src.fx_common.errors import PayoutInProgressError

logger = logging.getLogger(__name__)

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or create the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
    return _redis_pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.close()
        _redis_pool = None


@asynccontextmanager
async def distributed_lock(
    redis: aioredis.Redis,
    key: str,
    timeout: int | None = None,
    blocking_timeout: int | None = None,
) -> AsyncIterator[None]:
    """Hold a Redis lock on `key` for the body of the block.

    Raises PayoutInProgressError if the lock cannot be acquired within
    `blocking_timeout` seconds.
    """
    lock = redis.lock(
        key,
        timeout=timeout if timeout is not None else settings.PAYOUT_LOCK_TIMEOUT_SECONDS,
        blocking_timeout=(
            blocking_timeout if blocking_timeout is not None
            else settings.PAYOUT_LOCK_WAIT_SECONDS
        ),
    )
    acquired = await lock.acquire()
    if not acquired:
        raise PayoutInProgressError(key)
    logger.debug("Acquired lock %s", key)
    try:
        yield
    finally:
        try:
            await lock.release()
        except LockError:
            # Lock expired while the body ran; another worker may already own it
            logger.warning("Lock %s expired before release", key)
