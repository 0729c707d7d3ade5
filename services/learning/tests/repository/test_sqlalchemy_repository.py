"""Postgres repository tests. Skipped unless LEARNING_TEST_DATABASE_URL is set."""

import os
from collections.abc import AsyncGenerator
from datetime import timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401 - register with Base
from app.drip import service
from app.drip.engine import UnlockReason
from app.exceptions import DataStoreError
from app.models import Course, CourseModule, Lesson, ModuleUnlock
from app.models.enums import ContentStatus, LessonType
from app.repository import SqlAlchemyLearningRepository
from factories import COURSE_RELEASE, ENROLLED_AT, NOW
from shared.database.postgres import Base

TEST_DATABASE_URL = os.environ.get("LEARNING_TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not TEST_DATABASE_URL, reason="LEARNING_TEST_DATABASE_URL not set"),
]


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()
    await engine.dispose()


@pytest_asyncio.fixture
async def pg_repo(db_session: AsyncSession) -> SqlAlchemyLearningRepository:
    return SqlAlchemyLearningRepository(db_session)


async def _seed(repo: SqlAlchemyLearningRepository):
    course = await repo.add_course(Course(
        tenant_id=uuid4(), title="Postgres Course", status=ContentStatus.LIVE, release_at=COURSE_RELEASE,
    ))
    intro = await repo.add_module(CourseModule(
        course_id=course.course_id, title="Intro", order_index=1,
        status=ContentStatus.LIVE, unlock_after_days=0,
    ))
    later = await repo.add_module(CourseModule(
        course_id=course.course_id, title="Later", order_index=2,
        status=ContentStatus.LIVE, unlock_after_days=7,
    ))
    first = await repo.add_lesson(Lesson(
        module_id=intro.module_id, title="First", lesson_type=LessonType.VIDEO,
        duration_sec=60, order_index=1, status=ContentStatus.LIVE,
    ))
    second = await repo.add_lesson(Lesson(
        module_id=later.module_id, title="Second", lesson_type=LessonType.TEXT,
        order_index=1, status=ContentStatus.LIVE,
    ))
    return course, intro, later, first, second


@pytest.mark.asyncio
async def test_enrollment_insert_is_idempotent(pg_repo) -> None:
    course, *_ = await _seed(pg_repo)
    user_id = uuid4()
    first = await pg_repo.create_enrollment_if_absent(user_id, course.course_id, at=ENROLLED_AT)
    second = await pg_repo.create_enrollment_if_absent(
        user_id, course.course_id, at=ENROLLED_AT + timedelta(days=1),
    )
    assert first.enrolled_at == second.enrolled_at == ENROLLED_AT


@pytest.mark.asyncio
async def test_progress_upsert_updates_only_supplied_fields(pg_repo) -> None:
    *_, first, _ = await _seed(pg_repo)
    user_id = uuid4()
    await pg_repo.upsert_lesson_progress(user_id, first.lesson_id, last_position_sec=30)
    await pg_repo.upsert_lesson_progress(user_id, first.lesson_id, is_complete=True, completed_at=NOW)

    row = (await pg_repo.get_lesson_progress(user_id, [first.lesson_id]))[first.lesson_id]
    assert row.is_complete
    assert row.last_position_sec == 30


@pytest.mark.asyncio
async def test_module_unlock_upsert_and_delete(pg_repo) -> None:
    _, intro, *_ = await _seed(pg_repo)
    user_id, staff_id = uuid4(), uuid4()
    for notes in ("first", "second"):
        await pg_repo.upsert_module_unlock(ModuleUnlock(
            user_id=user_id, module_id=intro.module_id, unlocked_at=NOW, unlocked_by=staff_id, notes=notes,
        ))
    unlocks = await pg_repo.get_module_unlocks(user_id, [intro.module_id])
    assert unlocks[intro.module_id].notes == "second"

    assert await pg_repo.delete_module_unlock(user_id, intro.module_id) is True
    assert await pg_repo.delete_module_unlock(user_id, intro.module_id) is False


@pytest.mark.asyncio
async def test_constraint_violation_becomes_data_store_error(pg_repo) -> None:
    with pytest.raises(DataStoreError):
        await pg_repo.add_module(CourseModule(
            course_id=uuid4(), title="Orphan", order_index=1, status=ContentStatus.DRAFT, unlock_after_days=0,
        ))


@pytest.mark.asyncio
async def test_drip_state_through_postgres(pg_repo) -> None:
    course, *_ = await _seed(pg_repo)
    user_id = uuid4()
    await service.enroll(pg_repo, course.tenant_id, user_id, course.course_id, now=ENROLLED_AT)

    states = await service.resolve_module_access(
        pg_repo, course.tenant_id, user_id, course.course_id, now=NOW, tz=ZoneInfo("UTC"),
    )
    assert [s.access.is_locked for s in states] == [False, True]
    assert states[1].access.reason == UnlockReason.SCHEDULE

    stats = await service.get_user_stats(pg_repo, course.tenant_id, user_id)
    assert stats.enrolled_courses == 1
    assert stats.completed_lessons == 0
