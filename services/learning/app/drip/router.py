"""Drip router — HTTP layer only.

Member endpoints: catalog, course outline with drip lock state,
enrollment, lesson progress, navigation and home-screen summaries.
Delegates to controller for orchestration.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from redis.asyncio import Redis

from app.config import Settings
from app.dependencies import get_now, get_redis, get_repository, get_settings
from app.drip import controller
from app.drip.schemas import (
    ContinueLearningResponse,
    CourseListResponse,
    CourseModulesResponse,
    CourseProgressResponse,
    CourseSummaryResponse,
    EnrollmentResponse,
    LessonDetailResponse,
    LessonProgressRequest,
    NavigationResponse,
    PlaybackPositionRequest,
    UserStatsResponse,
)
from app.repository.base import LearningRepository
from shared.auth.dependencies import get_current_user_required
from shared.models.user import CurrentUser

router = APIRouter(prefix="/learning", tags=["Learning"])


# ======================================================================
# Course endpoints
# ======================================================================


@router.get(
    "/courses",
    response_model=CourseListResponse,
    summary="List courses in the caller's tenant",
    description="Live and scheduled courses, newest first, each with the caller's progress.",
)
async def list_courses(
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> CourseListResponse:
    return await controller.list_courses(repo, user)


@router.get(
    "/courses/{course_id}",
    response_model=CourseSummaryResponse,
    summary="Get a course with the caller's progress",
)
async def get_course(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> CourseSummaryResponse:
    return await controller.get_course(repo, user, course_id)


@router.get(
    "/courses/{course_id}/modules",
    response_model=CourseModulesResponse,
    summary="Course outline with drip lock state",
    description="Published modules and lessons. Modules are locked until their "
    "release date or cohort-relative unlock date, unless unlocked by staff or "
    "already started. Callers who are not enrolled see every module locked.",
)
async def get_course_modules(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    now: datetime = Depends(get_now),
    settings: Settings = Depends(get_settings),
) -> CourseModulesResponse:
    return await controller.get_course_modules(
        repo, user, course_id, now=now, tz=settings.unlock_tz,
    )


@router.post(
    "/courses/{course_id}/enroll",
    response_model=EnrollmentResponse,
    summary="Enroll in a course",
    description="Idempotent. Re-enrolling keeps the original enrollment date.",
)
async def enroll(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    now: datetime = Depends(get_now),
) -> EnrollmentResponse:
    return await controller.enroll(repo, user, course_id, now=now)


@router.get(
    "/courses/{course_id}/progress",
    response_model=CourseProgressResponse,
    summary="Caller's progress in a course",
)
async def get_course_progress(
    course_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> CourseProgressResponse:
    return await controller.get_course_progress(repo, user, course_id)


# ======================================================================
# Lesson endpoints
# ======================================================================


@router.get(
    "/lessons/{lesson_id}",
    response_model=LessonDetailResponse,
    summary="Get a published lesson with the caller's progress",
)
async def get_lesson(
    lesson_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    redis: Redis | None = Depends(get_redis),
) -> LessonDetailResponse:
    return await controller.get_lesson(repo, user, lesson_id, redis=redis)


@router.get(
    "/lessons/{lesson_id}/next",
    response_model=NavigationResponse,
    summary="Next lesson in course order",
    description="Moves to the next lesson in the module, then into the following "
    "module. Lock state is not consulted.",
)
async def get_next_lesson(
    lesson_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> NavigationResponse:
    return await controller.get_next_lesson(repo, user, lesson_id)


@router.get(
    "/lessons/{lesson_id}/previous",
    response_model=NavigationResponse,
    summary="Previous lesson in course order",
)
async def get_previous_lesson(
    lesson_id: UUID,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> NavigationResponse:
    return await controller.get_previous_lesson(repo, user, lesson_id)


@router.post(
    "/lessons/{lesson_id}/complete",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark a lesson complete",
)
async def mark_lesson_complete(
    lesson_id: UUID,
    body: LessonProgressRequest,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    now: datetime = Depends(get_now),
) -> None:
    await controller.mark_lesson_complete(repo, user, lesson_id, body.course_id, now=now)


@router.post(
    "/lessons/{lesson_id}/incomplete",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark a lesson incomplete",
)
async def mark_lesson_incomplete(
    lesson_id: UUID,
    body: LessonProgressRequest,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    now: datetime = Depends(get_now),
) -> None:
    await controller.mark_lesson_incomplete(repo, user, lesson_id, body.course_id, now=now)


@router.put(
    "/lessons/{lesson_id}/position",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Save playback position",
)
async def update_playback_position(
    lesson_id: UUID,
    body: PlaybackPositionRequest,
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    now: datetime = Depends(get_now),
    redis: Redis | None = Depends(get_redis),
) -> None:
    await controller.update_playback_position(repo, user, lesson_id, body, now=now, redis=redis)


# ======================================================================
# Home screen
# ======================================================================


@router.get(
    "/continue",
    response_model=ContinueLearningResponse,
    summary="Recently accessed courses",
    description="Courses the caller has opened, most recent first, capped for the home screen.",
)
async def get_continue_learning(
    limit: int | None = Query(None, ge=1, le=100, description="Maximum items. Defaults to the configured home-screen size."),
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
    settings: Settings = Depends(get_settings),
) -> ContinueLearningResponse:
    return await controller.get_continue_learning(
        repo, user, limit=limit or settings.continue_learning_limit,
    )


@router.get(
    "/continue/all",
    response_model=ContinueLearningResponse,
    summary="Every course the caller has opened",
)
async def get_all_continue_learning(
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> ContinueLearningResponse:
    return await controller.get_continue_learning(repo, user, limit=None)


@router.get(
    "/stats",
    response_model=UserStatsResponse,
    summary="Caller's enrolled course and completed lesson counts",
)
async def get_user_stats(
    repo: LearningRepository = Depends(get_repository),
    user: CurrentUser = Depends(get_current_user_required),
) -> UserStatsResponse:
    return await controller.get_user_stats(repo, user)
