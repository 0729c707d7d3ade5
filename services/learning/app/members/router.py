"""Members router — HTTP layer only.

Owner / admin endpoints for enrolled-member progress and manual module
unlocks.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends

from app.config import Settings
from app.dependencies import get_now, get_repository, get_settings
from app.members import controller
from app.members.schemas import (
    CourseMembersResponse,
    MemberProgressResponse,
    ModuleUnlockResponse,
    RevokeUnlockResponse,
    UnlockModuleRequest,
)
from app.repository.base import LearningRepository
from shared.auth.dependencies import require_tenant_admin
from shared.models.user import CurrentUser

router = APIRouter(prefix="/learning/members", tags=["Learning Members"])


@router.get(
    "/courses/{course_id}",
    response_model=CourseMembersResponse,
    summary="Members enrolled in a course",
    description="Most recent enrollment first, with progress and completed-module counts.",
)
async def list_course_members(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_tenant_admin),
) -> CourseMembersResponse:
    return await controller.list_course_members(repo, staff, course_id)


@router.get(
    "/{user_id}/courses/{course_id}",
    response_model=MemberProgressResponse,
    summary="One member's per-module progress and lock state",
)
async def get_member_progress(
    user_id: UUID,
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_tenant_admin),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings),
) -> MemberProgressResponse:
    return await controller.get_member_progress(
        repo, staff, user_id, course_id, now=now, tz=settings.unlock_tz,
    )


@router.put(
    "/{user_id}/modules/{module_id}/unlock",
    response_model=ModuleUnlockResponse,
    summary="Manually unlock a module for a member",
    description="Opens the module regardless of release or cohort timing. "
    "Repeating the call refreshes the unlock time, staff id and notes.",
)
async def unlock_module(
    user_id: UUID,
    module_id: UUID,
    body: UnlockModuleRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_tenant_admin),
    now: datetime = Depends(get_now),
) -> ModuleUnlockResponse:
    return await controller.unlock_module(repo, staff, user_id, module_id, body, now=now)


@router.delete(
    "/{user_id}/modules/{module_id}/unlock",
    response_model=RevokeUnlockResponse,
    summary="Revoke a manual unlock",
    description="Modules where the member has completed a lesson stay unlocked.",
)
async def revoke_unlock(
    user_id: UUID,
    module_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_tenant_admin),
) -> RevokeUnlockResponse:
    return await controller.revoke_unlock(repo, staff, user_id, module_id)
