import uuid
from typing import Any

import redis.asyncio as redis

RedisClient = redis.Redis

# Delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def get_redis_client(redis_url: str, **kwargs: Any) -> RedisClient:
    return redis.from_url(redis_url, decode_responses=True, **kwargs)


async def acquire_token_lock(client: RedisClient, key: str, ttl_secs: int) -> str | None:
    """SET NX EX with a fresh owner token. Returns the token, or None if already held."""
    token = uuid.uuid4().hex
    acquired = await client.set(key, token, nx=True, ex=ttl_secs)
    return token if acquired else None


async def release_token_lock(client: RedisClient, key: str, token: str) -> bool:
    """Release ``key`` if ``token`` still owns it. False means the lock had expired."""
    return bool(await client.eval(_RELEASE_SCRIPT, 1, key, token))
