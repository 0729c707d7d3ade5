"""FastAPI dependencies shared by the learning routers."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from functools import lru_cache

from fastapi import Request
from redis.asyncio import Redis

from app.config import Settings
from app.database import get_session_factory
from app.repository.base import LearningRepository
from app.repository.sqlalchemy import SqlAlchemyLearningRepository


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_now() -> datetime:
    """Single "now" per request; every module in a response is judged against it."""
    return datetime.now(timezone.utc)


async def get_repository(request: Request) -> AsyncGenerator[LearningRepository, None]:
    """Repository strategy chosen at startup (``Settings.data_provider``).

    For Postgres, one session per request: committed on success, rolled back
    when the endpoint raises.
    """
    fixed = getattr(request.app.state, "repository", None)
    if fixed is not None:
        yield fixed
        return
    async with get_session_factory()() as session:
        try:
            yield SqlAlchemyLearningRepository(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_redis(request: Request) -> Redis | None:
    return getattr(request.app.state, "redis", None)
