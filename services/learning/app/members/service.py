"""Members service — staff view of member progress and manual unlocks.

No FastAPI imports. Lock state comes from the same evaluator the member
view uses, so staff see exactly what the member sees.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from app.drip.engine import completion_pct
from app.drip.service import (
    ModuleState,
    build_module_states,
    get_tenant_course,
    published_outline,
)
from app.exceptions import EnrollmentNotFoundError, ModuleNotFoundError
from app.models import CourseModule, ModuleUnlock
from app.repository.base import LearningRepository
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)


@dataclass
class MemberSummary:
    user_id: UUID
    enrolled_at: datetime | None
    last_accessed_at: datetime | None
    progress_pct: int
    completed_modules: int
    total_modules: int


@dataclass
class MemberModuleProgress:
    state: ModuleState
    unlocked_manually: bool

    @property
    def lessons_total(self) -> int:
        return len(self.state.lessons)

    @property
    def lessons_completed(self) -> int:
        return sum(1 for lesson in self.state.lessons if lesson.is_complete)


@dataclass
class MemberProgress:
    user_id: UUID
    course_id: UUID
    enrolled_at: datetime | None
    last_accessed_at: datetime | None
    progress_pct: int
    modules: list[MemberModuleProgress]


async def _tenant_module(
    repo: LearningRepository, tenant_id: UUID, module_id: UUID,
) -> CourseModule:
    module = await repo.get_module(module_id)
    if module is None:
        raise ModuleNotFoundError(str(module_id))
    course = await repo.get_course(module.course_id)
    if course is None or course.tenant_id != tenant_id:
        raise ModuleNotFoundError(str(module_id))
    return module


async def list_course_members(
    repo: LearningRepository, staff: CurrentUser, course_id: UUID,
) -> list[MemberSummary]:
    """Enrolled members, most recent enrollment first.

    A module counts as completed when it has at least one published lesson
    and the member has completed all of them.
    """
    await get_tenant_course(repo, staff.tenant_id, course_id)
    modules, by_module = await published_outline(repo, course_id)
    lesson_ids = [l.lesson_id for lessons in by_module.values() for l in lessons]

    members = []
    for enrollment in await repo.list_course_enrollments(course_id):
        progress = await repo.get_lesson_progress(enrollment.user_id, lesson_ids)
        done = {lid for lid, row in progress.items() if row.is_complete}
        completed_modules = sum(
            1 for m in modules
            if by_module[m.module_id]
            and all(l.lesson_id in done for l in by_module[m.module_id])
        )
        members.append(MemberSummary(
            user_id=enrollment.user_id,
            enrolled_at=enrollment.enrollment_instant,
            last_accessed_at=enrollment.last_accessed_at,
            progress_pct=completion_pct(len(done), len(lesson_ids)),
            completed_modules=completed_modules,
            total_modules=len(modules),
        ))
    return members


async def get_member_progress(
    repo: LearningRepository,
    staff: CurrentUser,
    user_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
    tz: ZoneInfo,
) -> MemberProgress:
    course = await get_tenant_course(repo, staff.tenant_id, course_id)
    enrollment = await repo.get_enrollment(user_id, course_id)
    if enrollment is None:
        raise EnrollmentNotFoundError(f"user {user_id}, course {course_id}")

    modules, by_module = await published_outline(repo, course_id)
    lesson_ids = [l.lesson_id for lessons in by_module.values() for l in lessons]
    unlocks = await repo.get_module_unlocks(user_id, [m.module_id for m in modules])
    progress = await repo.get_lesson_progress(user_id, lesson_ids)

    states = build_module_states(
        course,
        modules,
        by_module,
        enrollment=enrollment,
        unlocked_module_ids=set(unlocks),
        progress=progress,
        now=now,
        tz=tz,
    )
    completed = sum(1 for lid in lesson_ids if lid in progress and progress[lid].is_complete)
    return MemberProgress(
        user_id=user_id,
        course_id=course_id,
        enrolled_at=enrollment.enrollment_instant,
        last_accessed_at=enrollment.last_accessed_at,
        progress_pct=completion_pct(completed, len(lesson_ids)),
        modules=[
            MemberModuleProgress(state=s, unlocked_manually=s.module.module_id in unlocks)
            for s in states
        ],
    )


async def unlock_module(
    repo: LearningRepository,
    staff: CurrentUser,
    user_id: UUID,
    module_id: UUID,
    *,
    notes: str | None = None,
    now: datetime,
) -> ModuleUnlock:
    """Grant (or refresh) a manual unlock. Last write wins."""
    await _tenant_module(repo, staff.tenant_id, module_id)
    unlock = await repo.upsert_module_unlock(ModuleUnlock(
        user_id=user_id,
        module_id=module_id,
        unlocked_at=now,
        unlocked_by=staff.id,
        notes=notes,
    ))
    logger.info("Module %s unlocked for %s by %s", module_id, user_id, staff.id)
    return unlock


async def revoke_unlock(
    repo: LearningRepository,
    staff: CurrentUser,
    user_id: UUID,
    module_id: UUID,
) -> bool:
    """Remove a manual unlock. Returns whether one existed.

    Modules the member already completed lessons in stay unlocked.
    """
    await _tenant_module(repo, staff.tenant_id, module_id)
    removed = await repo.delete_module_unlock(user_id, module_id)
    if removed:
        logger.info("Manual unlock of module %s revoked for %s by %s", module_id, user_id, staff.id)
    return removed
