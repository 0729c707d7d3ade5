from typing import Any

import redis.asyncio as redis


def get_redis_client(redis_url: str, **kwargs: Any) -> redis.Redis:
    """Return a lazily-connecting client; the first command opens the pool."""
    kwargs.setdefault("socket_connect_timeout", 2)
    return redis.from_url(redis_url, decode_responses=True, **kwargs)
