"""Admin service — staff content management, no FastAPI imports.

Course, module and lesson CRUD, status changes with release-date
validation, and reordering. Owners and admins may edit any course in
their tenant; instructors only the courses they teach.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from app.admin.patches import CoursePatch, LessonPatch, ModulePatch
from app.drip.sequencer import Direction, adjacent
from app.drip.service import get_tenant_course
from app.exceptions import (
    AdminRoleRequiredError,
    InvalidLessonPayloadError,
    LessonNotFoundError,
    ModuleNotFoundError,
    NotCourseInstructorError,
    ReleaseDateRequiredError,
    ReorderBoundaryError,
)
from app.models import Course, CourseModule, Lesson
from app.models.enums import (
    TIMED_LESSON_TYPES,
    ContentCategory,
    ContentStatus,
    LessonType,
)
from app.repository.base import LearningRepository
from shared.constants import TenantRole
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Authorization and validation helpers
# ---------------------------------------------------------------------------


def _check_can_edit(staff: CurrentUser, course: Course) -> None:
    if staff.tenant_role == TenantRole.INSTRUCTOR and course.instructor_id != staff.id:
        raise NotCourseInstructorError(str(course.course_id))


async def _editable_course(
    repo: LearningRepository, staff: CurrentUser, course_id: UUID,
) -> Course:
    course = await get_tenant_course(repo, staff.tenant_id, course_id)
    _check_can_edit(staff, course)
    return course


async def _editable_module(
    repo: LearningRepository, staff: CurrentUser, module_id: UUID,
) -> CourseModule:
    module = await repo.get_module(module_id)
    if module is None:
        raise ModuleNotFoundError(str(module_id))
    course = await repo.get_course(module.course_id)
    if course is None or course.tenant_id != staff.tenant_id:
        raise ModuleNotFoundError(str(module_id))
    _check_can_edit(staff, course)
    return module


async def _editable_lesson(
    repo: LearningRepository, staff: CurrentUser, lesson_id: UUID,
) -> tuple[Lesson, CourseModule]:
    lesson = await repo.get_lesson(lesson_id)
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))
    try:
        module = await _editable_module(repo, staff, lesson.module_id)
    except ModuleNotFoundError:
        raise LessonNotFoundError(str(lesson_id)) from None
    return lesson, module


def _release_changes(
    entity: str,
    *,
    current_status: ContentStatus,
    current_release_at: datetime | None,
    changes: dict[str, Any],
    now: datetime,
    stamp_live: bool = False,
) -> dict[str, Any]:
    """Validate the status/release pair the write would leave behind.

    Scheduling needs a date. ``stamp_live`` is set by callers only when the
    write makes the item live; it then gets ``now`` if it has no date. Edits
    to an item that is already live never move its release instant.
    """
    status = changes.get("status", current_status)
    release_at = changes.get("release_at", current_release_at)
    if status == ContentStatus.SCHEDULED and release_at is None:
        raise ReleaseDateRequiredError(entity)
    if stamp_live and status == ContentStatus.LIVE and release_at is None:
        changes["release_at"] = now
    return changes


def _check_lesson_payload(lesson_type: LessonType, duration_sec: int | None) -> None:
    if duration_sec is not None and lesson_type not in TIMED_LESSON_TYPES:
        raise InvalidLessonPayloadError(
            f"duration_sec applies only to video and audio lessons, not {lesson_type.value}"
        )


def _next_order_index(items: list[Any]) -> int:
    return max((item.order_index for item in items), default=0) + 1


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


async def list_courses(repo: LearningRepository, staff: CurrentUser) -> list[Course]:
    """Every course in the tenant, drafts included."""
    return await repo.list_courses(staff.tenant_id)


async def get_course_outline(
    repo: LearningRepository, staff: CurrentUser, course_id: UUID,
) -> tuple[Course, list[CourseModule], dict[UUID, list[Lesson]]]:
    course = await get_tenant_course(repo, staff.tenant_id, course_id)
    modules = await repo.list_modules(course_id)
    lessons = await repo.list_lessons_for_modules([m.module_id for m in modules])
    by_module: dict[UUID, list[Lesson]] = {m.module_id: [] for m in modules}
    for lesson in lessons:
        by_module[lesson.module_id].append(lesson)
    for module_lessons in by_module.values():
        module_lessons.sort(key=lambda l: l.order_index)
    return course, modules, by_module


async def create_course(
    repo: LearningRepository,
    staff: CurrentUser,
    *,
    title: str,
    description: str | None = None,
    cover_url: str | None = None,
    promo_video_url: str | None = None,
    instructor_id: UUID | None = None,
    status: ContentStatus = ContentStatus.DRAFT,
    release_at: datetime | None = None,
    now: datetime,
) -> Course:
    if staff.tenant_role == TenantRole.INSTRUCTOR:
        # Instructors always own what they create.
        instructor_id = staff.id
    changes = _release_changes(
        "course",
        current_status=status,
        current_release_at=release_at,
        changes={},
        now=now,
        stamp_live=True,
    )
    course = Course(
        tenant_id=staff.tenant_id,
        instructor_id=instructor_id,
        title=title,
        description=description,
        cover_url=cover_url,
        promo_video_url=promo_video_url,
        status=status,
        release_at=changes.get("release_at", release_at),
    )
    course = await repo.add_course(course)
    logger.info("Course %s created by %s in tenant %s", course.course_id, staff.id, staff.tenant_id)
    return course


async def update_course(
    repo: LearningRepository,
    staff: CurrentUser,
    course_id: UUID,
    patch: CoursePatch,
    *,
    now: datetime,
) -> Course:
    course = await _editable_course(repo, staff, course_id)
    changes = patch.changes()
    if "instructor_id" in changes and not staff.is_tenant_admin:
        raise AdminRoleRequiredError("reassign a course instructor")
    if not changes:
        return course
    changes = _release_changes(
        "course",
        current_status=course.status,
        current_release_at=course.release_at,
        changes=changes,
        now=now,
        stamp_live=changes.get("status") == ContentStatus.LIVE and course.status != ContentStatus.LIVE,
    )
    return await repo.update_course(course, changes)


async def set_course_status(
    repo: LearningRepository,
    staff: CurrentUser,
    course_id: UUID,
    status: ContentStatus,
    *,
    release_at: datetime | None = None,
    now: datetime,
) -> Course:
    patch = CoursePatch(status=status)
    if release_at is not None:
        patch.release_at = release_at
    return await update_course(repo, staff, course_id, patch, now=now)


async def delete_course(repo: LearningRepository, staff: CurrentUser, course_id: UUID) -> None:
    course = await get_tenant_course(repo, staff.tenant_id, course_id)
    if not staff.is_tenant_admin:
        raise AdminRoleRequiredError("delete a course")
    await repo.delete_course(course)
    logger.info("Course %s deleted by %s", course_id, staff.id)


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------


async def create_module(
    repo: LearningRepository,
    staff: CurrentUser,
    course_id: UUID,
    *,
    title: str,
    description: str | None = None,
    order_index: int | None = None,
    status: ContentStatus = ContentStatus.DRAFT,
    release_at: datetime | None = None,
    unlock_after_days: int = 0,
    now: datetime,
) -> CourseModule:
    await _editable_course(repo, staff, course_id)
    _release_changes(
        "module",
        current_status=status,
        current_release_at=release_at,
        changes={},
        now=now,
    )
    if order_index is None:
        order_index = _next_order_index(await repo.list_modules(course_id))
    module = CourseModule(
        course_id=course_id,
        title=title,
        description=description,
        order_index=order_index,
        status=status,
        release_at=release_at,
        unlock_after_days=unlock_after_days,
    )
    return await repo.add_module(module)


async def update_module(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    patch: ModulePatch,
    *,
    now: datetime,
) -> CourseModule:
    module = await _editable_module(repo, staff, module_id)
    changes = patch.changes()
    if not changes:
        return module
    changes = _release_changes(
        "module",
        current_status=module.status,
        current_release_at=module.release_at,
        changes=changes,
        now=now,
    )
    return await repo.update_module(module, changes)


async def delete_module(repo: LearningRepository, staff: CurrentUser, module_id: UUID) -> None:
    module = await _editable_module(repo, staff, module_id)
    await repo.delete_module(module)


async def reorder_module(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    direction: Direction,
) -> list[CourseModule]:
    """Swap ``order_index`` with the neighbouring module; returns the course's modules in order."""
    module = await _editable_module(repo, staff, module_id)
    siblings = await repo.list_modules(module.course_id)
    other = adjacent(siblings, module.order_index, direction)
    if other is None:
        raise ReorderBoundaryError(f"Module {module_id} cannot move {direction.value}")
    mine, theirs = module.order_index, other.order_index
    await repo.update_module(module, {"order_index": theirs})
    await repo.update_module(other, {"order_index": mine})
    return await repo.list_modules(module.course_id)


async def move_module(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    order_index: int,
    *,
    now: datetime,
) -> list[CourseModule]:
    """Set an explicit ``order_index``; other modules keep theirs."""
    module = await update_module(repo, staff, module_id, ModulePatch(order_index=order_index), now=now)
    return await repo.list_modules(module.course_id)


# ---------------------------------------------------------------------------
# Lessons
# ---------------------------------------------------------------------------


async def create_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    *,
    title: str,
    lesson_type: LessonType,
    description: str | None = None,
    content_url: str | None = None,
    content_text: str | None = None,
    scheduled_at: datetime | None = None,
    meeting_url: str | None = None,
    replay_url: str | None = None,
    duration_sec: int | None = None,
    order_index: int | None = None,
    status: ContentStatus = ContentStatus.DRAFT,
    release_at: datetime | None = None,
    content_category: ContentCategory | None = None,
    now: datetime,
) -> Lesson:
    await _editable_module(repo, staff, module_id)
    _check_lesson_payload(lesson_type, duration_sec)
    _release_changes(
        "lesson",
        current_status=status,
        current_release_at=release_at,
        changes={},
        now=now,
    )
    if order_index is None:
        order_index = _next_order_index(await repo.list_lessons(module_id))
    lesson = Lesson(
        module_id=module_id,
        title=title,
        description=description,
        lesson_type=lesson_type,
        content_url=content_url,
        content_text=content_text,
        scheduled_at=scheduled_at,
        meeting_url=meeting_url,
        replay_url=replay_url,
        duration_sec=duration_sec,
        order_index=order_index,
        status=status,
        release_at=release_at,
        content_category=content_category,
    )
    return await repo.add_lesson(lesson)


async def update_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    lesson_id: UUID,
    patch: LessonPatch,
    *,
    now: datetime,
) -> Lesson:
    lesson, _ = await _editable_lesson(repo, staff, lesson_id)
    changes = patch.changes()
    if not changes:
        return lesson
    _check_lesson_payload(
        changes.get("lesson_type", lesson.lesson_type),
        changes.get("duration_sec", lesson.duration_sec),
    )
    changes = _release_changes(
        "lesson",
        current_status=lesson.status,
        current_release_at=lesson.release_at,
        changes=changes,
        now=now,
    )
    return await repo.update_lesson(lesson, changes)


async def delete_lesson(repo: LearningRepository, staff: CurrentUser, lesson_id: UUID) -> None:
    lesson, _ = await _editable_lesson(repo, staff, lesson_id)
    await repo.delete_lesson(lesson)


async def reorder_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    lesson_id: UUID,
    direction: Direction,
) -> list[Lesson]:
    """Swap ``order_index`` with the neighbouring lesson in the same module."""
    lesson, module = await _editable_lesson(repo, staff, lesson_id)
    siblings = await repo.list_lessons(module.module_id)
    other = adjacent(siblings, lesson.order_index, direction)
    if other is None:
        raise ReorderBoundaryError(f"Lesson {lesson_id} cannot move {direction.value}")
    mine, theirs = lesson.order_index, other.order_index
    await repo.update_lesson(lesson, {"order_index": theirs})
    await repo.update_lesson(other, {"order_index": mine})
    return await repo.list_lessons(module.module_id)


async def move_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    lesson_id: UUID,
    order_index: int,
    *,
    now: datetime,
) -> list[Lesson]:
    """Set an explicit ``order_index``; other lessons keep theirs."""
    lesson = await update_lesson(repo, staff, lesson_id, LessonPatch(order_index=order_index), now=now)
    return await repo.list_lessons(lesson.module_id)
