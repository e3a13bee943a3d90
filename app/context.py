"""Explicit service context.

Holds every process-wide handle (engine, session factory, Redis) so nothing
lives in module globals. Opened in the FastAPI lifespan and closed on
shutdown; tests build their own.

The context also keeps one ``OrderedCollection`` per container, so a reorder
still in flight rejects overlapping requests handled by the same worker.
Redis extends that guard across workers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncEngine

from app.config import Settings
from app.ordering import OrderedCollection, RankStore
from shared.database import (
    AsyncSessionFactory,
    RedisClient,
    get_async_engine,
    get_async_session_factory,
    get_redis_client,
)

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    engine: AsyncEngine
    session_factory: AsyncSessionFactory
    redis: RedisClient | None = None
    collections: dict[str, OrderedCollection] = field(default_factory=dict)

    def ordered_collection(
        self,
        container_id: str,
        make_store: Callable[[], RankStore],
    ) -> OrderedCollection:
        """Return the worker-wide collection for ``container_id``, creating it once."""
        collection = self.collections.get(container_id)
        if collection is None:
            collection = OrderedCollection(
                make_store(),
                container_id,
                persist_timeout=self.settings.persist_timeout_secs,
            )
            self.collections[container_id] = collection
        return collection

    def forget_collection(self, container_id: str) -> None:
        self.collections.pop(container_id, None)

    async def aclose(self) -> None:
        if self.redis is not None:
            await self.redis.aclose()
        await self.engine.dispose()
        logger.info("Service context closed env=%s", self.settings.env_name)


def open_context(settings: Settings, *, with_redis: bool = True) -> ServiceContext:
    """Open engine, session factory and (optionally) Redis.

    ``with_redis=False`` drops the cross-worker reorder lock and is meant for
    tests and one-off scripts running in a single process.
    """
    engine = get_async_engine(settings.database_url)
    redis = get_redis_client(settings.redis_url) if with_redis else None
    logger.info("Service context opened env=%s redis=%s", settings.env_name, with_redis)
    return ServiceContext(
        settings=settings,
        engine=engine,
        session_factory=get_async_session_factory(engine),
        redis=redis,
    )
