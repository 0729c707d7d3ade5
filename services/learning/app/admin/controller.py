"""Admin controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import HTTPException, status
from pydantic import BaseModel

from app.admin import service
from app.admin.patches import CoursePatch, LessonPatch, ModulePatch, patch_from_fields
from app.admin.schemas import (
    CourseListResponse,
    CourseOutlineResponse,
    CourseResponse,
    CreateCourseRequest,
    CreateLessonRequest,
    CreateModuleRequest,
    LessonResponse,
    ModuleResponse,
    ModuleWithLessonsResponse,
    ReorderRequest,
    SetStatusRequest,
    UpdateCourseRequest,
    UpdateLessonRequest,
    UpdateModuleRequest,
)
from app.drip.sequencer import Direction
from app.exceptions import ForbiddenError, InvalidStateError, NotFoundError
from app.repository.base import LearningRepository
from shared.models.user import CurrentUser

# Columns that are NOT NULL; an explicit null in an update body is rejected.
_REQUIRED_FIELDS = frozenset({"title", "order_index", "unlock_after_days", "lesson_type"})

_DIRECTIONS = {"up": Direction.PREVIOUS, "down": Direction.NEXT}


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


def _supplied(body: BaseModel) -> dict[str, Any]:
    supplied = body.model_dump(exclude_unset=True)
    nulls = sorted(k for k in _REQUIRED_FIELDS if k in supplied and supplied[k] is None)
    if nulls:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Fields cannot be null: {', '.join(nulls)}",
        )
    return supplied


# ---------------------------------------------------------------------------
# Course
# ---------------------------------------------------------------------------


async def list_courses(repo: LearningRepository, staff: CurrentUser) -> CourseListResponse:
    try:
        courses = await service.list_courses(repo, staff)
        return CourseListResponse(
            items=[CourseResponse.model_validate(c) for c in courses], total=len(courses),
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_course_outline(
    repo: LearningRepository, staff: CurrentUser, course_id: UUID,
) -> CourseOutlineResponse:
    try:
        course, modules, by_module = await service.get_course_outline(repo, staff, course_id)
        return CourseOutlineResponse(
            course=CourseResponse.model_validate(course),
            modules=[
                ModuleWithLessonsResponse(
                    **ModuleResponse.model_validate(m).model_dump(),
                    lessons=[LessonResponse.model_validate(l) for l in by_module[m.module_id]],
                )
                for m in modules
            ],
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def create_course(
    repo: LearningRepository, staff: CurrentUser, body: CreateCourseRequest, *, now: datetime,
) -> CourseResponse:
    try:
        course = await service.create_course(repo, staff, **body.model_dump(), now=now)
        return CourseResponse.model_validate(course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_course(
    repo: LearningRepository,
    staff: CurrentUser,
    course_id: UUID,
    body: UpdateCourseRequest,
    *,
    now: datetime,
) -> CourseResponse:
    try:
        patch = patch_from_fields(CoursePatch, _supplied(body))
        course = await service.update_course(repo, staff, course_id, patch, now=now)
        return CourseResponse.model_validate(course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def set_course_status(
    repo: LearningRepository,
    staff: CurrentUser,
    course_id: UUID,
    body: SetStatusRequest,
    *,
    now: datetime,
) -> CourseResponse:
    try:
        course = await service.set_course_status(
            repo, staff, course_id, body.status, release_at=body.release_at, now=now,
        )
        return CourseResponse.model_validate(course)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_course(repo: LearningRepository, staff: CurrentUser, course_id: UUID) -> None:
    try:
        await service.delete_course(repo, staff, course_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Module
# ---------------------------------------------------------------------------


async def create_module(
    repo: LearningRepository,
    staff: CurrentUser,
    course_id: UUID,
    body: CreateModuleRequest,
    *,
    now: datetime,
) -> ModuleResponse:
    try:
        module = await service.create_module(repo, staff, course_id, **body.model_dump(), now=now)
        return ModuleResponse.model_validate(module)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_module(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    body: UpdateModuleRequest,
    *,
    now: datetime,
) -> ModuleResponse:
    try:
        patch = patch_from_fields(ModulePatch, _supplied(body))
        module = await service.update_module(repo, staff, module_id, patch, now=now)
        return ModuleResponse.model_validate(module)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def set_module_status(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    body: SetStatusRequest,
    *,
    now: datetime,
) -> ModuleResponse:
    try:
        patch = ModulePatch(status=body.status)
        if body.release_at is not None:
            patch.release_at = body.release_at
        module = await service.update_module(repo, staff, module_id, patch, now=now)
        return ModuleResponse.model_validate(module)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_module(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    body: ReorderRequest,
    *,
    now: datetime,
) -> list[ModuleResponse]:
    try:
        if body.direction is not None:
            modules = await service.reorder_module(repo, staff, module_id, _DIRECTIONS[body.direction])
        else:
            modules = await service.move_module(repo, staff, module_id, body.order_index, now=now)
        return [ModuleResponse.model_validate(m) for m in modules]
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_module(repo: LearningRepository, staff: CurrentUser, module_id: UUID) -> None:
    try:
        await service.delete_module(repo, staff, module_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Lesson
# ---------------------------------------------------------------------------


async def create_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    module_id: UUID,
    body: CreateLessonRequest,
    *,
    now: datetime,
) -> LessonResponse:
    try:
        lesson = await service.create_lesson(repo, staff, module_id, **body.model_dump(), now=now)
        return LessonResponse.model_validate(lesson)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    lesson_id: UUID,
    body: UpdateLessonRequest,
    *,
    now: datetime,
) -> LessonResponse:
    try:
        patch = patch_from_fields(LessonPatch, _supplied(body))
        lesson = await service.update_lesson(repo, staff, lesson_id, patch, now=now)
        return LessonResponse.model_validate(lesson)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def set_lesson_status(
    repo: LearningRepository,
    staff: CurrentUser,
    lesson_id: UUID,
    body: SetStatusRequest,
    *,
    now: datetime,
) -> LessonResponse:
    try:
        patch = LessonPatch(status=body.status)
        if body.release_at is not None:
            patch.release_at = body.release_at
        lesson = await service.update_lesson(repo, staff, lesson_id, patch, now=now)
        return LessonResponse.model_validate(lesson)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def reorder_lesson(
    repo: LearningRepository,
    staff: CurrentUser,
    lesson_id: UUID,
    body: ReorderRequest,
    *,
    now: datetime,
) -> list[LessonResponse]:
    try:
        if body.direction is not None:
            lessons = await service.reorder_lesson(repo, staff, lesson_id, _DIRECTIONS[body.direction])
        else:
            lessons = await service.move_lesson(repo, staff, lesson_id, body.order_index, now=now)
        return [LessonResponse.model_validate(l) for l in lessons]
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def delete_lesson(repo: LearningRepository, staff: CurrentUser, lesson_id: UUID) -> None:
    try:
        await service.delete_lesson(repo, staff, lesson_id)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
