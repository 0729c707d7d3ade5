"""Redis cache for playback resume positions.

Key schema
----------
user:{user_id}:lesson:{lesson_id}    Hash   TTL 90d    resume position

Postgres stays the source of truth. All functions are best-effort;
callers catch and log exceptions.
"""

from __future__ import annotations

import time
from uuid import UUID

from redis.asyncio import Redis

_RESUME_TTL = 90 * 24 * 3600  # 90 days


def _resume_key(user_id: UUID, lesson_id: UUID) -> str:
    return f"user:{user_id}:lesson:{lesson_id}"


async def get_resume_position(user_id: UUID, lesson_id: UUID, redis: Redis) -> int | None:
    data = await redis.hgetall(_resume_key(user_id, lesson_id))
    if not data or "position_sec" not in data:
        return None
    return int(data["position_sec"])


async def set_resume_position(
    user_id: UUID,
    lesson_id: UUID,
    position_sec: int,
    lesson_type: str,
    redis: Redis,
) -> None:
    key = _resume_key(user_id, lesson_id)
    await redis.hset(key, mapping={
        "position_sec": str(position_sec),
        "lesson_type": lesson_type,
        "updated_at": str(int(time.time())),
    })
    await redis.expire(key, _RESUME_TTL)

