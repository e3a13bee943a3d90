"""Cross-process single-flight guard for reorders.

Key schema
----------
reorder:lock:{container_id}     String   TTL=reorder_lock_ttl_secs   owner token

The in-process ``OrderedCollection`` state already rejects overlapping
operations on one instance; this lock covers several API workers touching
the same container.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from redis.exceptions import RedisError

from app.exceptions import PersistenceFailureError, ReorderInProgressError
from shared.database import RedisClient, acquire_token_lock, release_token_lock

logger = logging.getLogger(__name__)


def _lock_key(container_id: str) -> str:
    return f"reorder:lock:{container_id}"


@asynccontextmanager
async def reorder_lock(
    redis: RedisClient | None,
    container_id: str,
    ttl_secs: int,
) -> AsyncIterator[None]:
    """Hold the reorder lock for ``container_id`` or raise ``ReorderInProgressError``.

    With no Redis client configured the lock is a no-op. Redis being
    unreachable raises ``PersistenceFailureError``; a failed release is only
    logged because the key expires after ``ttl_secs``.
    """
    if redis is None:
        yield
        return

    key = _lock_key(container_id)
    try:
        token = await acquire_token_lock(redis, key, ttl_secs)
    except RedisError as exc:
        raise PersistenceFailureError("reorder_lock", repr(exc)) from exc
    if token is None:
        raise ReorderInProgressError(container_id)
    try:
        yield
    finally:
        try:
            released = await release_token_lock(redis, key, token)
        except RedisError:
            logger.warning(
                "could not release reorder lock for %s, it expires in %ss",
                container_id,
                ttl_secs,
                exc_info=True,
            )
        else:
            if not released:
                logger.warning("reorder lock for %s expired before release", container_id)
