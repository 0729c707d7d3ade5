"""Data-access contract for the learning service.

Services depend on :class:`LearningRepository` only. Two strategies
implement it: :class:`~app.repository.sqlalchemy.SqlAlchemyLearningRepository`
(Postgres, production) and :class:`~app.repository.memory.InMemoryLearningRepository`
(fixtures and tests). The strategy is chosen once at startup from
``Settings.data_provider``.

Both strategies return the ORM classes from :mod:`app.models`; the
in-memory store simply never attaches them to a session.

Writes keyed by a composite natural key ((user, lesson), (user, course),
(user, module)) are upserts with last-write-wins semantics.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Final, Protocol
from uuid import UUID

from app.models import (
    Course,
    CourseModule,
    Enrollment,
    Lesson,
    LessonProgress,
    ModuleUnlock,
)
from app.models.enums import ContentStatus


class _Unset:
    """Marker for "field not supplied" in patches and partial upserts."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


class LearningRepository(Protocol):
    # -- Courses --------------------------------------------------------

    async def get_course(self, course_id: UUID) -> Course | None: ...

    async def list_courses(
        self, tenant_id: UUID, *, statuses: Sequence[ContentStatus] | None = None,
    ) -> list[Course]:
        """Newest first."""
        ...

    async def add_course(self, course: Course) -> Course: ...

    async def update_course(self, course: Course, changes: dict[str, Any]) -> Course: ...

    async def delete_course(self, course: Course) -> None: ...

    # -- Modules --------------------------------------------------------

    async def get_module(self, module_id: UUID) -> CourseModule | None: ...

    async def list_modules(
        self, course_id: UUID, *, published_only: bool = False,
    ) -> list[CourseModule]:
        """Ascending ``order_index``."""
        ...

    async def add_module(self, module: CourseModule) -> CourseModule: ...

    async def update_module(
        self, module: CourseModule, changes: dict[str, Any],
    ) -> CourseModule: ...

    async def delete_module(self, module: CourseModule) -> None: ...

    # -- Lessons --------------------------------------------------------

    async def get_lesson(self, lesson_id: UUID) -> Lesson | None: ...

    async def list_lessons(
        self, module_id: UUID, *, published_only: bool = False,
    ) -> list[Lesson]:
        """Ascending ``order_index``."""
        ...

    async def list_lessons_for_modules(
        self, module_ids: Sequence[UUID], *, published_only: bool = False,
    ) -> list[Lesson]:
        """Ascending ``(module, order_index)``; callers group by ``module_id``."""
        ...

    async def add_lesson(self, lesson: Lesson) -> Lesson: ...

    async def update_lesson(self, lesson: Lesson, changes: dict[str, Any]) -> Lesson: ...

    async def delete_lesson(self, lesson: Lesson) -> None: ...

    # -- Enrollments ----------------------------------------------------

    async def get_enrollment(self, user_id: UUID, course_id: UUID) -> Enrollment | None: ...

    async def create_enrollment_if_absent(
        self, user_id: UUID, course_id: UUID, *, at: datetime,
    ) -> Enrollment:
        """Insert-or-keep: an existing row is returned untouched."""
        ...

    async def touch_enrollment(
        self, user_id: UUID, course_id: UUID, *, lesson_id: UUID, at: datetime,
    ) -> None:
        """Upsert ``last_lesson_id`` / ``last_accessed_at``."""
        ...

    async def list_user_enrollments(
        self,
        user_id: UUID,
        tenant_id: UUID,
        *,
        course_statuses: Sequence[ContentStatus] | None = None,
        accessed_only: bool = False,
        limit: int | None = None,
    ) -> list[Enrollment]:
        """Scoped to the tenant's courses. ``accessed_only`` sorts by ``last_accessed_at`` desc.

        ``course_statuses`` filters on the course before ``limit`` applies.
        """
        ...

    async def list_course_enrollments(self, course_id: UUID) -> list[Enrollment]:
        """Most recent enrollment first."""
        ...

    # -- Lesson progress ------------------------------------------------

    async def get_lesson_progress(
        self, user_id: UUID, lesson_ids: Sequence[UUID],
    ) -> dict[UUID, LessonProgress]: ...

    async def upsert_lesson_progress(
        self,
        user_id: UUID,
        lesson_id: UUID,
        *,
        is_complete: bool | _Unset = UNSET,
        completed_at: datetime | None | _Unset = UNSET,
        last_position_sec: int | _Unset = UNSET,
    ) -> None:
        """Only supplied fields are written; others keep their stored (or default) value."""
        ...

    async def count_completed_lessons(self, user_id: UUID, tenant_id: UUID) -> int: ...

    # -- Manual unlocks -------------------------------------------------

    async def get_module_unlocks(
        self, user_id: UUID, module_ids: Sequence[UUID],
    ) -> dict[UUID, ModuleUnlock]: ...

    async def upsert_module_unlock(self, unlock: ModuleUnlock) -> ModuleUnlock: ...

    async def delete_module_unlock(self, user_id: UUID, module_id: UUID) -> bool: ...
