"""Dict-backed :class:`LearningRepository` used for fixtures and tests.

Mirrors the Postgres strategy's semantics: composite-key upserts,
``ON DELETE CASCADE`` from course → module → lesson → progress, and
``SET NULL`` on an enrollment's ``last_lesson_id``.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

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

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _apply(obj: object, changes: dict[str, Any]) -> None:
    for key, value in changes.items():
        setattr(obj, key, value)


class InMemoryLearningRepository:
    def __init__(self) -> None:
        self.courses: dict[UUID, Course] = {}
        self.modules: dict[UUID, CourseModule] = {}
        self.lessons: dict[UUID, Lesson] = {}
        self.enrollments: dict[tuple[UUID, UUID], Enrollment] = {}
        self.progress: dict[tuple[UUID, UUID], LessonProgress] = {}
        self.unlocks: dict[tuple[UUID, UUID], ModuleUnlock] = {}

    # -- Courses --------------------------------------------------------

    async def get_course(self, course_id: UUID) -> Course | None:
        return self.courses.get(course_id)

    async def list_courses(
        self, tenant_id: UUID, *, statuses: Sequence[ContentStatus] | None = None,
    ) -> list[Course]:
        courses = [
            c for c in self.courses.values()
            if c.tenant_id == tenant_id and (statuses is None or c.status in statuses)
        ]
        return sorted(courses, key=lambda c: c.created_at or _EPOCH, reverse=True)

    async def add_course(self, course: Course) -> Course:
        now = datetime.now(timezone.utc)
        course.course_id = course.course_id or uuid.uuid4()
        course.status = course.status or ContentStatus.DRAFT
        course.created_at = course.created_at or now
        course.updated_at = course.updated_at or now
        self.courses[course.course_id] = course
        return course

    async def update_course(self, course: Course, changes: dict[str, Any]) -> Course:
        _apply(course, changes)
        course.updated_at = datetime.now(timezone.utc)
        return course

    async def delete_course(self, course: Course) -> None:
        for module in [m for m in self.modules.values() if m.course_id == course.course_id]:
            await self.delete_module(module)
        for key in [k for k in self.enrollments if k[1] == course.course_id]:
            del self.enrollments[key]
        self.courses.pop(course.course_id, None)

    # -- Modules --------------------------------------------------------

    async def get_module(self, module_id: UUID) -> CourseModule | None:
        return self.modules.get(module_id)

    async def list_modules(
        self, course_id: UUID, *, published_only: bool = False,
    ) -> list[CourseModule]:
        modules = [
            m for m in self.modules.values()
            if m.course_id == course_id and (not published_only or m.is_published)
        ]
        return sorted(modules, key=lambda m: m.order_index)

    async def add_module(self, module: CourseModule) -> CourseModule:
        module.module_id = module.module_id or uuid.uuid4()
        module.status = module.status or ContentStatus.DRAFT
        module.unlock_after_days = module.unlock_after_days or 0
        module.created_at = module.created_at or datetime.now(timezone.utc)
        self.modules[module.module_id] = module
        return module

    async def update_module(
        self, module: CourseModule, changes: dict[str, Any],
    ) -> CourseModule:
        _apply(module, changes)
        return module

    async def delete_module(self, module: CourseModule) -> None:
        for lesson in [l for l in self.lessons.values() if l.module_id == module.module_id]:
            await self.delete_lesson(lesson)
        for key in [k for k in self.unlocks if k[1] == module.module_id]:
            del self.unlocks[key]
        self.modules.pop(module.module_id, None)

    # -- Lessons --------------------------------------------------------

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None:
        return self.lessons.get(lesson_id)

    async def list_lessons(
        self, module_id: UUID, *, published_only: bool = False,
    ) -> list[Lesson]:
        return await self.list_lessons_for_modules([module_id], published_only=published_only)

    async def list_lessons_for_modules(
        self, module_ids: Sequence[UUID], *, published_only: bool = False,
    ) -> list[Lesson]:
        wanted = set(module_ids)
        lessons = [
            l for l in self.lessons.values()
            if l.module_id in wanted and (not published_only or l.is_published)
        ]
        return sorted(lessons, key=lambda l: (str(l.module_id), l.order_index))

    async def add_lesson(self, lesson: Lesson) -> Lesson:
        lesson.lesson_id = lesson.lesson_id or uuid.uuid4()
        lesson.status = lesson.status or ContentStatus.DRAFT
        lesson.created_at = lesson.created_at or datetime.now(timezone.utc)
        self.lessons[lesson.lesson_id] = lesson
        return lesson

    async def update_lesson(self, lesson: Lesson, changes: dict[str, Any]) -> Lesson:
        _apply(lesson, changes)
        return lesson

    async def delete_lesson(self, lesson: Lesson) -> None:
        for key in [k for k in self.progress if k[1] == lesson.lesson_id]:
            del self.progress[key]
        for enrollment in self.enrollments.values():
            if enrollment.last_lesson_id == lesson.lesson_id:
                enrollment.last_lesson_id = None
        self.lessons.pop(lesson.lesson_id, None)

    # -- Enrollments ----------------------------------------------------

    async def get_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        return self.enrollments.get((user_id, course_id))

    async def create_enrollment_if_absent(
        self, user_id: UUID, course_id: UUID, *, at: datetime,
    ) -> Enrollment:
        existing = self.enrollments.get((user_id, course_id))
        if existing is not None:
            return existing
        enrollment = Enrollment(
            user_id=user_id,
            course_id=course_id,
            enrolled_at=at,
            started_at=at,
            status=EnrollmentStatus.ACTIVE,
            last_lesson_id=None,
            last_accessed_at=None,
        )
        self.enrollments[(user_id, course_id)] = enrollment
        return enrollment

    async def touch_enrollment(
        self, user_id: UUID, course_id: UUID, *, lesson_id: UUID, at: datetime,
    ) -> None:
        enrollment = self.enrollments.get((user_id, course_id))
        if enrollment is None:
            enrollment = Enrollment(
                user_id=user_id,
                course_id=course_id,
                enrolled_at=None,
                started_at=at,
                status=EnrollmentStatus.ACTIVE,
            )
            self.enrollments[(user_id, course_id)] = enrollment
        enrollment.last_lesson_id = lesson_id
        enrollment.last_accessed_at = at

    async def list_user_enrollments(
        self,
        user_id: UUID,
        tenant_id: UUID,
        *,
        course_statuses: Sequence[ContentStatus] | None = None,
        accessed_only: bool = False,
        limit: int | None = None,
    ) -> list[Enrollment]:
        rows = [
            e for (uid, cid), e in self.enrollments.items()
            if uid == user_id
            and cid in self.courses
            and self.courses[cid].tenant_id == tenant_id
            and (not accessed_only or e.last_accessed_at is not None)
            and (course_statuses is None or self.courses[cid].status in course_statuses)
        ]
        if accessed_only:
            rows.sort(key=lambda e: e.last_accessed_at, reverse=True)
        else:
            rows.sort(key=lambda e: e.enrollment_instant or _EPOCH, reverse=True)
        return rows[:limit] if limit is not None else rows

    async def list_course_enrollments(self, course_id: UUID) -> list[Enrollment]:
        rows = [e for (_, cid), e in self.enrollments.items() if cid == course_id]
        return sorted(rows, key=lambda e: e.enrollment_instant or _EPOCH, reverse=True)

    # -- Lesson progress ------------------------------------------------

    async def get_lesson_progress(
        self, user_id: UUID, lesson_ids: Sequence[UUID],
    ) -> dict[UUID, LessonProgress]:
        found = {}
        for lesson_id in lesson_ids:
            row = self.progress.get((user_id, lesson_id))
            if row is not None:
                found[lesson_id] = row
        return found

    async def upsert_lesson_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        *,
        is_complete: bool | _Unset = UNSET,
        completed_at: datetime | None | _Unset = UNSET,
        last_position_sec: int | _Unset = UNSET,
    ) -> None:
        row = self.progress.get((user_id, lesson_id))
        if row is None:
            row = LessonProgress(
                user_id=user_id,
                lesson_id=lesson_id,
                is_complete=False,
                completed_at=None,
                last_position_sec=0,
            )
            self.progress[(user_id, lesson_id)] = row
        if is_complete is not UNSET:
            row.is_complete = is_complete
        if completed_at is not UNSET:
            row.completed_at = completed_at
        if last_position_sec is not UNSET:
            row.last_position_sec = last_position_sec

    async def count_completed_lessons(self, user_id: UUID, tenant_id: UUID) -> int:
        count = 0
        for (uid, lesson_id), row in self.progress.items():
            if uid != user_id or not row.is_complete:
                continue
            lesson = self.lessons.get(lesson_id)
            module = self.modules.get(lesson.module_id) if lesson else None
            course = self.courses.get(module.course_id) if module else None
            if course is not None and course.tenant_id == tenant_id:
                count += 1
        return count

    # -- Manual unlocks -------------------------------------------------

    async def get_module_unlocks(
        self, user_id: UUID, module_ids: Sequence[UUID],
    ) -> dict[UUID, ModuleUnlock]:
        found = {}
        for module_id in module_ids:
            row = self.unlocks.get((user_id, module_id))
            if row is not None:
                found[module_id] = row
        return found

    async def upsert_module_unlock(self, unlock: ModuleUnlock) -> ModuleUnlock:
        self.unlocks[(unlock.user_id, unlock.module_id)] = unlock
        return unlock

    async def delete_module_unlock(self, user_id: UUID, module_id: UUID) -> bool:
        return self.unlocks.pop((user_id, module_id), None) is not None
