"""Members controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status

from app.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from app.members import service
from app.members.schemas import (
    CourseMembersResponse,
    MemberModuleResponse,
    MemberProgressResponse,
    MemberSummaryResponse,
    ModuleUnlockResponse,
    RevokeUnlockResponse,
    UnlockModuleRequest,
)
from app.repository.base import LearningRepository
from shared.models.user import CurrentUser


def _handle_domain_error(exc: Exception) -> HTTPException:
    if isinstance(exc, HTTPException):
        return exc
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal error.")


async def list_course_members(
    repo: LearningRepository, staff: CurrentUser, course_id: UUID,
) -> CourseMembersResponse:
    try:
        members = await service.list_course_members(repo, staff, course_id)
        return CourseMembersResponse(
            course_id=course_id,
            items=[MemberSummaryResponse.model_validate(m) for m in members],
            total=len(members),
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_member_progress(
    repo: LearningRepository,
    staff: CurrentUser,
    user_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
    tz: ZoneInfo,
) -> MemberProgressResponse:
    try:
        progress = await service.get_member_progress(
            repo, staff, user_id, course_id, now=now, tz=tz,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return MemberProgressResponse(
        user_id=progress.user_id,
        course_id=progress.course_id,
        enrolled_at=progress.enrolled_at,
        last_accessed_at=progress.last_accessed_at,
        progress_pct=progress.progress_pct,
        modules=[
            MemberModuleResponse(
                module_id=m.state.module.module_id,
                title=m.state.module.title,
                order_index=m.state.module.order_index,
                unlock_after_days=m.state.module.unlock_after_days,
                is_unlocked=not m.state.access.is_locked,
                unlocked_manually=m.unlocked_manually,
                unlock_reason=m.state.access.reason,
                unlock_date=m.state.access.unlock_date,
                lessons_total=m.lessons_total,
                lessons_completed=m.lessons_completed,
            )
            for m in progress.modules
        ],
    )


async def unlock_module(
    repo: LearningRepository,
    staff: CurrentUser,
    user_id: UUID,
    module_id: UUID,
    body: UnlockModuleRequest,
    *,
    now: datetime,
) -> ModuleUnlockResponse:
    try:
        unlock = await service.unlock_module(
            repo, staff, user_id, module_id, notes=body.notes, now=now,
        )
        return ModuleUnlockResponse.model_validate(unlock)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def revoke_unlock(
    repo: LearningRepository, staff: CurrentUser, user_id: UUID, module_id: UUID,
) -> RevokeUnlockResponse:
    try:
        removed = await service.revoke_unlock(repo, staff, user_id, module_id)
        return RevokeUnlockResponse(removed=removed)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
