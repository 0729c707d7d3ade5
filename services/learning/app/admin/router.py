"""Admin router — HTTP layer only.

Staff endpoints for course, module and lesson authoring. Requires an
owner, admin or instructor role in the caller's tenant; instructors are
further limited to their own courses by the service layer.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.admin import controller
from app.admin.schemas import (
    CourseListResponse,
    CourseOutlineResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    CreateModuleRequest,
    LessonResponse,
    ModuleResponse,
    ReorderRequest,
    SetStatusRequest,
    UpdateCourseRequest,
    UpdateLessonRequest,
    UpdateModuleRequest,
)
from app.dependencies import get_now, get_repository
from app.repository.base import LearningRepository
from shared.auth.dependencies import require_content_staff
from shared.models.user import CurrentUser

router = APIRouter(prefix="/learning/admin", tags=["Learning Admin"])


# ======================================================================
# Course endpoints
# ======================================================================


@router.get(
    "/courses",
    response_model=CourseListResponse,
    summary="List every course in the tenant (drafts included)",
)
async def list_courses(
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
) -> CourseListResponse:
    return await controller.list_courses(repo, staff)


@router.post(
    "/courses",
    response_model=CourseResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a course",
    description="Defaults to draft. Scheduling requires `release_at`; going live "
    "without one stamps the current time.",
)
async def create_course(
    body: CreateCourseRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> CourseResponse:
    return await controller.create_course(repo, staff, body, now=now)


@router.get(
    "/courses/{course_id}",
    response_model=CourseOutlineResponse,
    summary="Course with all modules and lessons",
)
async def get_course_outline(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
) -> CourseOutlineResponse:
    return await controller.get_course_outline(repo, staff, course_id)


@router.patch(
    "/courses/{course_id}",
    response_model=CourseResponse,
    summary="Update course fields",
)
async def update_course(
    course_id: UUID,
    body: UpdateCourseRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> CourseResponse:
    return await controller.update_course(repo, staff, course_id, body, now=now)


@router.put(
    "/courses/{course_id}/status",
    response_model=CourseResponse,
    summary="Change course status (draft / scheduled / live)",
)
async def set_course_status(
    course_id: UUID,
    body: SetStatusRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> CourseResponse:
    return await controller.set_course_status(repo, staff, course_id, body, now=now)


@router.delete(
    "/courses/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a course (owner / admin only)",
    description="Removes modules, lessons, progress and enrollments with it.",
)
async def delete_course(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
) -> None:
    await controller.delete_course(repo, staff, course_id)


# ======================================================================
# Module endpoints
# ======================================================================


@router.post(
    "/courses/{course_id}/modules",
    response_model=ModuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a module to a course",
)
async def create_module(
    course_id: UUID,
    body: CreateModuleRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> ModuleResponse:
    return await controller.create_module(repo, staff, course_id, body, now=now)


@router.patch(
    "/modules/{module_id}",
    response_model=ModuleResponse,
    summary="Update module fields",
)
async def update_module(
    module_id: UUID,
    body: UpdateModuleRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> ModuleResponse:
    return await controller.update_module(repo, staff, module_id, body, now=now)


@router.put(
    "/modules/{module_id}/status",
    response_model=ModuleResponse,
    summary="Change module status",
)
async def set_module_status(
    module_id: UUID,
    body: SetStatusRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> ModuleResponse:
    return await controller.set_module_status(repo, staff, module_id, body, now=now)


@router.post(
    "/modules/{module_id}/reorder",
    response_model=list[ModuleResponse],
    summary="Move a module up / down or to an explicit index",
    description="`direction` swaps `order_index` with the neighbouring module; "
    "`order_index` sets it directly. Returns the course's modules in order.",
)
async def reorder_module(
    module_id: UUID,
    body: ReorderRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> list[ModuleResponse]:
    return await controller.reorder_module(repo, staff, module_id, body, now=now)


@router.delete(
    "/modules/{module_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a module and its lessons",
)
async def delete_module(
    module_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
) -> None:
    await controller.delete_module(repo, staff, module_id)


# ======================================================================
# Lesson endpoints
# ======================================================================


@router.post(
    "/modules/{module_id}/lessons",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a lesson to a module",
)
async def create_lesson(
    module_id: UUID,
    body: CreateLessonRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> LessonResponse:
    return await controller.create_lesson(repo, staff, module_id, body, now=now)


@router.patch(
    "/lessons/{lesson_id}",
    response_model=LessonResponse,
    summary="Update lesson fields",
)
async def update_lesson(
    lesson_id: UUID,
    body: UpdateLessonRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> LessonResponse:
    return await controller.update_lesson(repo, staff, lesson_id, body, now=now)


@router.put(
    "/lessons/{lesson_id}/status",
    response_model=LessonResponse,
    summary="Change lesson status",
)
async def set_lesson_status(
    lesson_id: UUID,
    body: SetStatusRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> LessonResponse:
    return await controller.set_lesson_status(repo, staff, lesson_id, body, now=now)


@router.post(
    "/lessons/{lesson_id}/reorder",
    response_model=list[LessonResponse],
    summary="Move a lesson up / down or to an explicit index",
)
async def reorder_lesson(
    lesson_id: UUID,
    body: ReorderRequest,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
    now: datetime = Depends(get_now),
) -> list[LessonResponse]:
    return await controller.reorder_lesson(repo, staff, lesson_id, body, now=now)


@router.delete(
    "/lessons/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a lesson",
)
async def delete_lesson(
    lesson_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    staff: CurrentUser = Depends(require_content_staff),
) -> None:
    await controller.delete_lesson(repo, staff, lesson_id)
