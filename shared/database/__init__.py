from shared.database.postgres import (
    AsyncSessionFactory,
    Base,
    get_async_engine,
    get_async_session_factory,
)
from shared.database.redis_client import (
    RedisClient,
    acquire_token_lock,
    get_redis_client,
    release_token_lock,
)

__all__ = [
    "AsyncSessionFactory",
    "Base",
    "RedisClient",
    "acquire_token_lock",
    "get_async_engine",
    "get_async_session_factory",
    "get_redis_client",
    "release_token_lock",
]
