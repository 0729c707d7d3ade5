"""Postgres-backed :class:`LearningRepository`.

Works inside the request-scoped ``AsyncSession`` opened by
``app.dependencies.get_repository``, which owns commit/rollback. Upserts are single
``INSERT … ON CONFLICT`` statements keyed by the composite primary keys.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any, ParamSpec, TypeVar
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DataStoreError
from app.models import (
    Course,
    CourseModule,
    Enrollment,
    Lesson,
    LessonProgress,
    ModuleUnlock,
)
from app.models.enums import ContentStatus, EnrollmentStatus
from app.repository.base import UNSET, _Unset

P = ParamSpec("P")
R = TypeVar("R")


def _wrap_errors(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise DataStoreError(f"{fn.__name__} failed: {exc.__class__.__name__}") from exc

    return wrapper


class SqlAlchemyLearningRepository:
    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _save(self, obj: Any) -> Any:
        self._db.add(obj)
        await self._db.flush()
        await self._db.refresh(obj)
        return obj

    async def _patch(self, obj: Any, changes: dict[str, Any]) -> Any:
        for key, value in changes.items():
            setattr(obj, key, value)
        await self._db.flush()
        await self._db.refresh(obj)
        return obj

    async def _remove(self, obj: Any) -> None:
        await self._db.delete(obj)
        await self._db.flush()

    # -- Courses --------------------------------------------------------

    @_wrap_errors
    async def get_course(self, course_id: UUID) -> Course | None:
        return await self._db.get(Course, course_id)

    @_wrap_errors
    async def list_courses(
        self, tenant_id: UUID, *, statuses: Sequence[ContentStatus] | None = None,
    ) -> list[Course]:
        stmt = select(Course).where(Course.tenant_id == tenant_id)
        if statuses is not None:
            stmt = stmt.where(Course.status.in_(list(statuses)))
        result = await self._db.execute(stmt.order_by(Course.created_at.desc()))
        return list(result.scalars().all())

    @_wrap_errors
    async def add_course(self, course: Course) -> Course:
        return await self._save(course)

    @_wrap_errors
    async def update_course(self, course: Course, changes: dict[str, Any]) -> Course:
        return await self._patch(course, changes)

    @_wrap_errors
    async def delete_course(self, course: Course) -> None:
        await self._remove(course)

    # -- Modules --------------------------------------------------------

    @_wrap_errors
    async def get_module(self, module_id: UUID) -> CourseModule | None:
        return await self._db.get(CourseModule, module_id)

    @_wrap_errors
    async def list_modules(
        self, course_id: UUID, *, published_only: bool = False,
    ) -> list[CourseModule]:
        stmt = select(CourseModule).where(CourseModule.course_id == course_id)
        if published_only:
            stmt = stmt.where(CourseModule.status == ContentStatus.LIVE)
        result = await self._db.execute(stmt.order_by(CourseModule.order_index))
        return list(result.scalars().all())

    @_wrap_errors
    async def add_module(self, module: CourseModule) -> CourseModule:
        return await self._save(module)

    @_wrap_errors
    async def update_module(
        self, module: CourseModule, changes: dict[str, Any],
    ) -> CourseModule:
        return await self._patch(module, changes)

    @_wrap_errors
    async def delete_module(self, module: CourseModule) -> None:
        await self._remove(module)

    # -- Lessons --------------------------------------------------------

    @_wrap_errors
    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        return await self._db.get(Lesson, lesson_id)

    async def list_lessons(
        self, module_id: UUID, *, published_only: bool = False,
    ) -> list[Lesson]:
        return await self.list_lessons_for_modules([module_id], published_only=published_only)

    @_wrap_errors
    async def list_lessons_for_modules(
        self, module_ids: Sequence[UUID], *, published_only: bool = False,
    ) -> list[Lesson]:
        if not module_ids:
            return []
        stmt = select(Lesson).where(Lesson.module_id.in_(list(module_ids)))
        if published_only:
            stmt = stmt.where(Lesson.status == ContentStatus.LIVE)
        result = await self._db.execute(stmt.order_by(Lesson.module_id, Lesson.order_index))
        return list(result.scalars().all())

    @_wrap_errors
    async def add_lesson(self, lesson: Lesson) -> Lesson:
        return await self._save(lesson)

    @_wrap_errors
    async def update_lesson(self, lesson: Lesson, changes: dict[str, Any]) -> Lesson:
        return await self._patch(lesson, changes)

    @_wrap_errors
    async def delete_lesson(self, lesson: Lesson) -> None:
        await self._remove(lesson)

    # -- Enrollments ----------------------------------------------------

    async def _select_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        stmt = (
            select(Enrollment)
            .where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .execution_options(populate_existing=True)
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    @_wrap_errors
    async def get_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        return await self._select_enrollment(user_id, course_id)

    @_wrap_errors
    async def create_enrollment_if_absent(
        self, user_id: UUID, course_id: UUID, *, at: datetime,
    ) -> Enrollment:
        stmt = (
            pg_insert(Enrollment)
            .values(
                user_id=user_id,
                course_id=course_id,
                enrolled_at=at,
                started_at=at,
                status=EnrollmentStatus.ACTIVE,
            )
            .on_conflict_do_nothing(index_elements=[Enrollment.user_id, Enrollment.course_id])
        )
        await self._db.execute(stmt)
        enrollment = await self._select_enrollment(user_id, course_id)
        if enrollment is None:
            raise DataStoreError("create_enrollment_if_absent failed: row missing after insert")
        return enrollment

    @_wrap_errors
    async def touch_enrollment(
        self, user_id: UUID, course_id: UUID, *, lesson_id: UUID, at: datetime,
    ) -> None:
        stmt = pg_insert(Enrollment).values(
            user_id=user_id,
            course_id=course_id,
            started_at=at,
            status=EnrollmentStatus.ACTIVE,
            last_lesson_id=lesson_id,
            last_accessed_at=at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[Enrollment.user_id, Enrollment.course_id],
            set_={
                "last_lesson_id": stmt.excluded.last_lesson_id,
                "last_accessed_at": stmt.excluded.last_accessed_at,
            },
        )
        await self._db.execute(stmt)

    @_wrap_errors
    async def list_user_enrollments(
        self,
        user_id: UUID,
        tenant_id: UUID,
        *,
        course_statuses: Sequence[ContentStatus] | None = None,
        accessed_only: bool = False,
        limit: int | None = None,
    ) -> list[Enrollment]:
        stmt = (
            select(Enrollment)
            .join(Course, Course.course_id == Enrollment.course_id)
            .where(Enrollment.user_id == user_id, Course.tenant_id == tenant_id)
        )
        if course_statuses is not None:
            stmt = stmt.where(Course.status.in_(course_statuses))
        if accessed_only:
            stmt = stmt.where(Enrollment.last_accessed_at.is_not(None)).order_by(
                Enrollment.last_accessed_at.desc()
            )
        else:
            stmt = stmt.order_by(
                func.coalesce(Enrollment.enrolled_at, Enrollment.started_at).desc()
            )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    @_wrap_errors
    async def list_course_enrollments(self, course_id: UUID) -> list[Enrollment]:
        stmt = (
            select(Enrollment)
            .where(Enrollment.course_id == course_id)
            .order_by(func.coalesce(Enrollment.enrolled_at, Enrollment.started_at).desc())
        )
        result = await self._db.execute(stmt)
        return list(result.scalars().all())

    # -- Lesson progress ------------------------------------------------

    @_wrap_errors
    async def get_lesson_progress(
        self, user_id: UUID, lesson_ids: Sequence[UUID],
    ) -> dict[UUID, LessonProgress]:
        if not lesson_ids:
            return {}
        stmt = (
            select(LessonProgress)
            .where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id.in_(list(lesson_ids)),
            )
            .execution_options(populate_existing=True)
        )
        result = await self._db.execute(stmt)
        return {row.lesson_id: row for row in result.scalars().all()}

    @_wrap_errors
    async def upsert_lesson_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        *,
        is_complete: bool | _Unset = UNSET,
        completed_at: datetime | None | _Unset = UNSET,
        last_position_sec: int | _Unset = UNSET,
    ) -> None:
        supplied = {
            key: value
            for key, value in (
                ("is_complete", is_complete),
                ("completed_at", completed_at),
                ("last_position_sec", last_position_sec),
            )
            if value is not UNSET
        }
        values = {"is_complete": False, "last_position_sec": 0, **supplied}
        stmt = pg_insert(LessonProgress).values(user_id=user_id, lesson_id=lesson_id, **values)
        index = [LessonProgress.user_id, LessonProgress.lesson_id]
        if supplied:
            stmt = stmt.on_conflict_do_update(
                index_elements=index,
                set_={key: getattr(stmt.excluded, key) for key in supplied},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=index)
        await self._db.execute(stmt)

    @_wrap_errors
    async def count_completed_lessons(self, user_id: UUID, tenant_id: UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(LessonProgress)
            .join(Lesson, Lesson.lesson_id == LessonProgress.lesson_id)
            .join(CourseModule, CourseModule.module_id == Lesson.module_id)
            .join(Course, Course.course_id == CourseModule.course_id)
            .where(
                LessonProgress.user_id == user_id,
                LessonProgress.is_complete.is_(True),
                Course.tenant_id == tenant_id,
            )
        )
        return await self._db.scalar(stmt) or 0

    # -- Manual unlocks -------------------------------------------------

    @_wrap_errors
    async def get_module_unlocks(
        self, user_id: UUID, module_ids: Sequence[UUID],
    ) -> dict[UUID, ModuleUnlock]:
        if not module_ids:
            return {}
        stmt = (
            select(ModuleUnlock)
            .where(
                ModuleUnlock.user_id == user_id,
                ModuleUnlock.module_id.in_(list(module_ids)),
            )
            .execution_options(populate_existing=True)
        )
        result = await self._db.execute(stmt)
        return {row.module_id: row for row in result.scalars().all()}

    @_wrap_errors
    async def upsert_module_unlock(self, unlock: ModuleUnlock) -> ModuleUnlock:
        stmt = pg_insert(ModuleUnlock).values(
            user_id=unlock.user_id,
            module_id=unlock.module_id,
            unlocked_at=unlock.unlocked_at,
            unlocked_by=unlock.unlocked_by,
            notes=unlock.notes,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[ModuleUnlock.user_id, ModuleUnlock.module_id],
            set_={
                "unlocked_at": stmt.excluded.unlocked_at,
                "unlocked_by": stmt.excluded.unlocked_by,
                "notes": stmt.excluded.notes,
            },
        )
        await self._db.execute(stmt)
        return unlock

    @_wrap_errors
    async def delete_module_unlock(self, user_id: UUID, module_id: UUID) -> bool:
        stmt = delete(ModuleUnlock).where(
            ModuleUnlock.user_id == user_id,
            ModuleUnlock.module_id == module_id,
        )
        result = await self._db.execute(stmt)
        return bool(result.rowcount)
