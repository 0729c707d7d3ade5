"""Drip service — member-facing learning logic, no FastAPI imports.

Course access with drip unlocking, enrollment, lesson progress,
next/previous navigation, and the home-screen progress summaries.

Every function takes the caller's ``tenant_id`` and ``user_id``
explicitly and, where time matters, a ``now`` captured once per request.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TypeVar
from uuid import UUID
from zoneinfo import ZoneInfo

from redis.asyncio import Redis

from app.drip import cache
from app.drip.engine import (
    ModuleAccess,
    apply_completion_override,
    completion_pct,
    effective_start,
    evaluate_module,
    resolve_release,
)
from app.drip.sequencer import Direction, adjacent, boundary
from app.exceptions import CourseNotFoundError, DataStoreError, LessonNotFoundError
from app.models import Course, CourseModule, Enrollment, Lesson, LessonProgress
from app.models.enums import ContentStatus
from app.repository.base import LearningRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Statuses a member can see in the catalog. Scheduled courses are listed
# so members can enroll ahead of the launch date.
MEMBER_VISIBLE_COURSE_STATUSES = (ContentStatus.LIVE, ContentStatus.SCHEDULED)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass
class LessonState:
    lesson: Lesson
    is_complete: bool = False
    last_position_sec: int = 0


@dataclass
class ModuleState:
    module: CourseModule
    access: ModuleAccess
    lessons: list[LessonState] = field(default_factory=list)


@dataclass
class CourseProgress:
    progress_pct: int
    completed_lessons: int
    total_lessons: int
    last_lesson_id: UUID | None
    last_accessed_at: datetime | None


@dataclass
class CourseOverview:
    course: Course
    is_enrolled: bool
    progress: CourseProgress


@dataclass
class LessonDetail:
    lesson: Lesson
    module: CourseModule
    is_complete: bool
    last_position_sec: int


@dataclass
class ContinueLearningItem:
    course: Course
    progress_pct: int
    last_lesson_id: UUID | None
    last_lesson_title: str | None
    last_accessed_at: datetime | None


@dataclass
class UserStats:
    enrolled_courses: int
    completed_lessons: int


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


async def get_tenant_course(
    repo: LearningRepository, tenant_id: UUID, course_id: UUID,
) -> Course:
    """Course by id; a course owned by another tenant is indistinguishable from a missing one."""
    course = await repo.get_course(course_id)
    if course is None or course.tenant_id != tenant_id:
        raise CourseNotFoundError(str(course_id))
    return course


async def _get_member_course(
    repo: LearningRepository, tenant_id: UUID, course_id: UUID,
) -> Course:
    course = await get_tenant_course(repo, tenant_id, course_id)
    if course.status == ContentStatus.DRAFT:
        raise CourseNotFoundError(str(course_id))
    return course


async def _get_lesson_in_course(
    repo: LearningRepository, tenant_id: UUID, lesson_id: UUID, course_id: UUID,
) -> Lesson:
    lesson = await repo.get_lesson(lesson_id)
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))
    module = await repo.get_module(lesson.module_id)
    if module is None or module.course_id != course_id:
        raise LessonNotFoundError(str(lesson_id))
    await get_tenant_course(repo, tenant_id, course_id)
    return lesson


async def _locate_lesson(
    repo: LearningRepository, tenant_id: UUID, lesson_id: UUID,
) -> tuple[Lesson, CourseModule, Course]:
    lesson = await repo.get_lesson(lesson_id)
    if lesson is None:
        raise LessonNotFoundError(str(lesson_id))
    module = await repo.get_module(lesson.module_id)
    if module is None:
        raise LessonNotFoundError(str(lesson_id))
    course = await repo.get_course(module.course_id)
    if course is None or course.tenant_id != tenant_id:
        raise LessonNotFoundError(str(lesson_id))
    return lesson, module, course


async def _or_default(lookup: Callable[[], Awaitable[T]], default: T, what: str) -> T:
    """Read paths degrade a failed sub-lookup to ``default`` instead of failing the response."""
    try:
        return await lookup()
    except DataStoreError:
        logger.warning("Degrading %s lookup to default", what, exc_info=True)
        return default


async def published_outline(
    repo: LearningRepository, course_id: UUID,
) -> tuple[list[CourseModule], dict[UUID, list[Lesson]]]:
    modules = await repo.list_modules(course_id, published_only=True)
    lessons = await repo.list_lessons_for_modules(
        [m.module_id for m in modules], published_only=True,
    )
    by_module: dict[UUID, list[Lesson]] = {m.module_id: [] for m in modules}
    for lesson in lessons:
        by_module[lesson.module_id].append(lesson)
    for module_lessons in by_module.values():
        module_lessons.sort(key=lambda l: l.order_index)
    return modules, by_module


async def _course_progress(
    repo: LearningRepository,
    user_id: UUID,
    course: Course,
    enrollment: Enrollment | None,
) -> CourseProgress:
    _, by_module = await published_outline(repo, course.course_id)
    lesson_ids = [l.lesson_id for lessons in by_module.values() for l in lessons]
    progress = await _or_default(
        lambda: repo.get_lesson_progress(user_id, lesson_ids), {}, "lesson progress",
    )
    completed = sum(1 for lid in lesson_ids if lid in progress and progress[lid].is_complete)
    return CourseProgress(
        progress_pct=completion_pct(completed, len(lesson_ids)),
        completed_lessons=completed,
        total_lessons=len(lesson_ids),
        last_lesson_id=enrollment.last_lesson_id if enrollment else None,
        last_accessed_at=enrollment.last_accessed_at if enrollment else None,
    )


# ---------------------------------------------------------------------------
# Module access
# ---------------------------------------------------------------------------


def build_module_states(
    course: Course,
    modules: Sequence[CourseModule],
    lessons_by_module: dict[UUID, list[Lesson]],
    *,
    enrollment: Enrollment | None,
    unlocked_module_ids: set[UUID],
    progress: dict[UUID, LessonProgress],
    now: datetime,
    tz: ZoneInfo,
) -> list[ModuleState]:
    """Apply the unlock evaluator and completion override to every module.

    Shared by the member course view and the staff member-progress view so
    both always agree on what a member can see.
    """
    is_enrolled = enrollment is not None and enrollment.is_active
    cohort_start = None
    if is_enrolled:
        cohort_start = effective_start(
            enrollment.enrollment_instant, resolve_release(course.status, course.release_at),
        )

    states: list[ModuleState] = []
    for module in modules:
        lesson_states = []
        for lesson in lessons_by_module.get(module.module_id, []):
            row = progress.get(lesson.lesson_id)
            lesson_states.append(LessonState(
                lesson=lesson,
                is_complete=bool(row and row.is_complete),
                last_position_sec=row.last_position_sec if row else 0,
            ))
        access = evaluate_module(
            module.module_id,
            is_enrolled=is_enrolled,
            manually_unlocked=module.module_id in unlocked_module_ids,
            module_release_at=module.release_at,
            unlock_after_days=module.unlock_after_days,
            cohort_start=cohort_start,
            now=now,
            tz=tz,
        )
        access = apply_completion_override(
            access, any_lesson_complete=any(s.is_complete for s in lesson_states),
        )
        states.append(ModuleState(module=module, access=access, lessons=lesson_states))
    return states


async def resolve_module_access(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
    tz: ZoneInfo,
) -> list[ModuleState]:
    """Published modules with lock state and published lessons.

    A member who is not enrolled gets every module locked, never an error.
    """
    course = await _get_member_course(repo, tenant_id, course_id)
    modules, by_module = await published_outline(repo, course_id)
    enrollment = await repo.get_enrollment(user_id, course_id)

    module_ids = [m.module_id for m in modules]
    lesson_ids = [l.lesson_id for lessons in by_module.values() for l in lessons]
    unlocks = await _or_default(
        lambda: repo.get_module_unlocks(user_id, module_ids), {}, "module unlock",
    )
    progress = await _or_default(
        lambda: repo.get_lesson_progress(user_id, lesson_ids), {}, "lesson progress",
    )
    return build_module_states(
        course,
        modules,
        by_module,
        enrollment=enrollment,
        unlocked_module_ids=set(unlocks),
        progress=progress,
        now=now,
        tz=tz,
    )


# ---------------------------------------------------------------------------
# Enrollment and progress commands
# ---------------------------------------------------------------------------


async def enroll(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
) -> Enrollment:
    """Idempotent: a second call returns the existing row with its original ``enrolled_at``."""
    await _get_member_course(repo, tenant_id, course_id)
    enrollment = await repo.create_enrollment_if_absent(user_id, course_id, at=now)
    logger.info("User %s enrolled in course %s", user_id, course_id)
    return enrollment


async def mark_lesson_complete(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    lesson_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
) -> None:
    await _get_lesson_in_course(repo, tenant_id, lesson_id, course_id)
    await repo.upsert_lesson_progress(
        user_id, lesson_id, is_complete=True, completed_at=now,
    )
    await repo.touch_enrollment(user_id, course_id, lesson_id=lesson_id, at=now)


async def mark_lesson_incomplete(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    lesson_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
) -> None:
    await _get_lesson_in_course(repo, tenant_id, lesson_id, course_id)
    await repo.upsert_lesson_progress(
        user_id, lesson_id, is_complete=False, completed_at=None,
    )
    await repo.touch_enrollment(user_id, course_id, lesson_id=lesson_id, at=now)


async def update_playback_position(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    lesson_id: UUID,
    course_id: UUID,
    position_sec: int,
    *,
    now: datetime,
    redis: Redis | None = None,
) -> None:
    """Seeking backwards is a valid update; no monotonicity is enforced."""
    lesson = await _get_lesson_in_course(repo, tenant_id, lesson_id, course_id)
    await repo.upsert_lesson_progress(user_id, lesson_id, last_position_sec=position_sec)
    await repo.touch_enrollment(user_id, course_id, lesson_id=lesson_id, at=now)

    if redis is not None:
        try:
            await cache.set_resume_position(
                user_id, lesson_id, position_sec, lesson.lesson_type.value, redis,
            )
        except Exception:
            logger.warning("Resume cache write failed for lesson %s", lesson_id, exc_info=True)


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


async def _step(
    repo: LearningRepository, tenant_id: UUID, lesson_id: UUID, direction: Direction,
) -> Lesson | None:
    lesson, module, course = await _locate_lesson(repo, tenant_id, lesson_id)

    siblings = await repo.list_lessons(module.module_id)
    hit = adjacent(siblings, lesson.order_index, direction)
    if hit is not None:
        return hit

    neighbour = adjacent(await repo.list_modules(course.course_id), module.order_index, direction)
    if neighbour is None:
        return None
    # An empty neighbouring module ends navigation; later modules are not searched.
    return boundary(await repo.list_lessons(neighbour.module_id), direction)


async def get_next_lesson(
    repo: LearningRepository, tenant_id: UUID, lesson_id: UUID,
) -> Lesson | None:
    return await _step(repo, tenant_id, lesson_id, Direction.NEXT)


async def get_previous_lesson(
    repo: LearningRepository, tenant_id: UUID, lesson_id: UUID,
) -> Lesson | None:
    return await _step(repo, tenant_id, lesson_id, Direction.PREVIOUS)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_course_progress(
    repo: LearningRepository, tenant_id: UUID, user_id: UUID, course_id: UUID,
) -> CourseProgress:
    course = await _get_member_course(repo, tenant_id, course_id)
    enrollment = await repo.get_enrollment(user_id, course_id)
    return await _course_progress(repo, user_id, course, enrollment)


async def list_courses(
    repo: LearningRepository, tenant_id: UUID, user_id: UUID,
) -> list[CourseOverview]:
    courses = await repo.list_courses(tenant_id, statuses=MEMBER_VISIBLE_COURSE_STATUSES)
    overviews = []
    for course in courses:
        enrollment = await repo.get_enrollment(user_id, course.course_id)
        overviews.append(CourseOverview(
            course=course,
            is_enrolled=enrollment is not None and enrollment.is_active,
            progress=await _course_progress(repo, user_id, course, enrollment),
        ))
    return overviews


async def get_course(
    repo: LearningRepository, tenant_id: UUID, user_id: UUID, course_id: UUID,
) -> CourseOverview:
    course = await _get_member_course(repo, tenant_id, course_id)
    enrollment = await repo.get_enrollment(user_id, course_id)
    return CourseOverview(
        course=course,
        is_enrolled=enrollment is not None and enrollment.is_active,
        progress=await _course_progress(repo, user_id, course, enrollment),
    )


async def get_lesson(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    lesson_id: UUID,
    *,
    redis: Redis | None = None,
) -> LessonDetail:
    """Published lesson with the member's progress. Lock state is not enforced here."""
    lesson, module, course = await _locate_lesson(repo, tenant_id, lesson_id)
    if not (lesson.is_published and module.is_published) or course.status == ContentStatus.DRAFT:
        raise LessonNotFoundError(str(lesson_id))

    progress = await _or_default(
        lambda: repo.get_lesson_progress(user_id, [lesson_id]), {}, "lesson progress",
    )
    row = progress.get(lesson_id)
    position = row.last_position_sec if row else 0

    if redis is not None:
        try:
            cached = await cache.get_resume_position(user_id, lesson_id, redis)
        except Exception:
            logger.warning("Resume cache read failed for lesson %s", lesson_id, exc_info=True)
            cached = None
        if cached is not None:
            position = cached

    return LessonDetail(
        lesson=lesson,
        module=module,
        is_complete=bool(row and row.is_complete),
        last_position_sec=position,
    )


async def get_continue_learning(
    repo: LearningRepository,
    tenant_id: UUID,
    user_id: UUID,
    *,
    limit: int | None = None,
) -> list[ContinueLearningItem]:
    """Recently accessed courses, newest first; ``limit=None`` returns them all."""
    enrollments = await repo.list_user_enrollments(
        user_id, tenant_id, accessed_only=True, limit=limit,
        course_statuses=MEMBER_VISIBLE_COURSE_STATUSES,
    )
    items = []
    for enrollment in enrollments:
        course = await repo.get_course(enrollment.course_id)
        if course is None:
            continue
        title = None
        if enrollment.last_lesson_id is not None:
            last = await _or_default(
                lambda: repo.get_lesson(enrollment.last_lesson_id), None, "last lesson",
            )
            if last is not None and last.is_published:
                title = last.title
        progress = await _course_progress(repo, user_id, course, enrollment)
        items.append(ContinueLearningItem(
            course=course,
            progress_pct=progress.progress_pct,
            last_lesson_id=enrollment.last_lesson_id,
            last_lesson_title=title,
            last_accessed_at=enrollment.last_accessed_at,
        ))
    return items


async def get_user_stats(
    repo: LearningRepository, tenant_id: UUID, user_id: UUID,
) -> UserStats:
    enrollments = await repo.list_user_enrollments(user_id, tenant_id)
    completed = await repo.count_completed_lessons(user_id, tenant_id)
    return UserStats(enrolled_courses=len(enrollments), completed_lessons=completed)
