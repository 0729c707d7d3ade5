"""Drip controller — maps service results to HTTP responses, catches domain exceptions."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import HTTPException, status
from redis.asyncio import Redis

from app.drip import service
from app.drip.schemas import (
    ContinueLearningItemResponse,
    ContinueLearningResponse,
    CourseListResponse,
    CourseModulesResponse,
    CourseProgressResponse,
    CourseSummaryResponse,
    EnrollmentResponse,
    LessonDetailResponse,
    LessonModuleRef,
    LessonRefResponse,
    LessonStateResponse,
    ModuleStateResponse,
    NavigationResponse,
    PlaybackPositionRequest,
    UserStatsResponse,
)
from app.exceptions import ForbiddenError, InvalidStateError, NotFoundError
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


def progress_response(progress: service.CourseProgress) -> CourseProgressResponse:
    return CourseProgressResponse(
        progress_pct=progress.progress_pct,
        completed_lessons=progress.completed_lessons,
        total_lessons=progress.total_lessons,
        last_lesson_id=progress.last_lesson_id,
        last_accessed_at=progress.last_accessed_at,
    )


def _summary(overview: service.CourseOverview) -> CourseSummaryResponse:
    course = overview.course
    return CourseSummaryResponse(
        course_id=course.course_id,
        title=course.title,
        description=course.description,
        cover_url=course.cover_url,
        promo_video_url=course.promo_video_url,
        status=course.status,
        release_at=course.release_at,
        is_enrolled=overview.is_enrolled,
        progress=progress_response(overview.progress),
    )


def module_state_response(state: service.ModuleState) -> ModuleStateResponse:
    module = state.module
    return ModuleStateResponse(
        module_id=module.module_id,
        course_id=module.course_id,
        title=module.title,
        description=module.description,
        order_index=module.order_index,
        is_locked=state.access.is_locked,
        unlock_date=state.access.unlock_date,
        unlock_reason=state.access.reason,
        lessons=[
            LessonStateResponse(
                lesson_id=ls.lesson.lesson_id,
                module_id=ls.lesson.module_id,
                title=ls.lesson.title,
                description=ls.lesson.description,
                lesson_type=ls.lesson.lesson_type,
                duration_sec=ls.lesson.duration_sec,
                order_index=ls.lesson.order_index,
                content_category=ls.lesson.content_category,
                is_complete=ls.is_complete,
                last_position_sec=ls.last_position_sec,
            )
            for ls in state.lessons
        ],
    )


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


async def list_courses(repo: LearningRepository, user: CurrentUser) -> CourseListResponse:
    try:
        overviews = await service.list_courses(repo, user.tenant_id, user.id)
        return CourseListResponse(items=[_summary(o) for o in overviews], total=len(overviews))
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_course(
    repo: LearningRepository, user: CurrentUser, course_id: UUID,
) -> CourseSummaryResponse:
    try:
        overview = await service.get_course(repo, user.tenant_id, user.id, course_id)
        return _summary(overview)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_course_modules(
    repo: LearningRepository,
    user: CurrentUser,
    course_id: UUID,
    *,
    now: datetime,
    tz: ZoneInfo,
) -> CourseModulesResponse:
    try:
        states = await service.resolve_module_access(
            repo, user.tenant_id, user.id, course_id, now=now, tz=tz,
        )
        return CourseModulesResponse(
            course_id=course_id,
            modules=[module_state_response(s) for s in states],
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def enroll(
    repo: LearningRepository, user: CurrentUser, course_id: UUID, *, now: datetime,
) -> EnrollmentResponse:
    try:
        enrollment = await service.enroll(repo, user.tenant_id, user.id, course_id, now=now)
        return EnrollmentResponse.model_validate(enrollment)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_course_progress(
    repo: LearningRepository, user: CurrentUser, course_id: UUID,
) -> CourseProgressResponse:
    try:
        progress = await service.get_course_progress(repo, user.tenant_id, user.id, course_id)
        return progress_response(progress)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Lessons
# ---------------------------------------------------------------------------


async def get_lesson(
    repo: LearningRepository,
    user: CurrentUser,
    lesson_id: UUID,
    *,
    redis: Redis | None,
) -> LessonDetailResponse:
    try:
        detail = await service.get_lesson(repo, user.tenant_id, user.id, lesson_id, redis=redis)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    lesson, module = detail.lesson, detail.module
    return LessonDetailResponse(
        lesson_id=lesson.lesson_id,
        module_id=lesson.module_id,
        title=lesson.title,
        description=lesson.description,
        lesson_type=lesson.lesson_type,
        content_url=lesson.content_url,
        content_text=lesson.content_text,
        scheduled_at=lesson.scheduled_at,
        meeting_url=lesson.meeting_url,
        replay_url=lesson.replay_url,
        duration_sec=lesson.duration_sec,
        content_category=lesson.content_category,
        module=LessonModuleRef(
            module_id=module.module_id, title=module.title, course_id=module.course_id,
        ),
        is_complete=detail.is_complete,
        last_position_sec=detail.last_position_sec,
    )


async def get_next_lesson(
    repo: LearningRepository, user: CurrentUser, lesson_id: UUID,
) -> NavigationResponse:
    try:
        lesson = await service.get_next_lesson(repo, user.tenant_id, lesson_id)
        return NavigationResponse(lesson=LessonRefResponse.model_validate(lesson) if lesson else None)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def get_previous_lesson(
    repo: LearningRepository, user: CurrentUser, lesson_id: UUID,
) -> NavigationResponse:
    try:
        lesson = await service.get_previous_lesson(repo, user.tenant_id, lesson_id)
        return NavigationResponse(lesson=LessonRefResponse.model_validate(lesson) if lesson else None)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def mark_lesson_complete(
    repo: LearningRepository,
    user: CurrentUser,
    lesson_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
) -> None:
    try:
        await service.mark_lesson_complete(
            repo, user.tenant_id, user.id, lesson_id, course_id, now=now,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def mark_lesson_incomplete(
    repo: LearningRepository,
    user: CurrentUser,
    lesson_id: UUID,
    course_id: UUID,
    *,
    now: datetime,
) -> None:
    try:
        await service.mark_lesson_incomplete(
            repo, user.tenant_id, user.id, lesson_id, course_id, now=now,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


async def update_playback_position(
    repo: LearningRepository,
    user: CurrentUser,
    lesson_id: UUID,
    body: PlaybackPositionRequest,
    *,
    now: datetime,
    redis: Redis | None,
) -> None:
    try:
        await service.update_playback_position(
            repo,
            user.tenant_id,
            user.id,
            lesson_id,
            body.course_id,
            body.position_sec,
            now=now,
            redis=redis,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc


# ---------------------------------------------------------------------------
# Home screen
# ---------------------------------------------------------------------------


async def get_continue_learning(
    repo: LearningRepository, user: CurrentUser, *, limit: int | None,
) -> ContinueLearningResponse:
    try:
        items = await service.get_continue_learning(repo, user.tenant_id, user.id, limit=limit)
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
    return ContinueLearningResponse(items=[
        ContinueLearningItemResponse(
            course_id=item.course.course_id,
            title=item.course.title,
            cover_url=item.course.cover_url,
            progress_pct=item.progress_pct,
            last_lesson_id=item.last_lesson_id,
            last_lesson_title=item.last_lesson_title,
            last_accessed_at=item.last_accessed_at,
        )
        for item in items
    ])


async def get_user_stats(repo: LearningRepository, user: CurrentUser) -> UserStatsResponse:
    try:
        stats = await service.get_user_stats(repo, user.tenant_id, user.id)
        return UserStatsResponse(
            enrolled_courses=stats.enrolled_courses,
            completed_lessons=stats.completed_lessons,
        )
    except Exception as exc:
        raise _handle_domain_error(exc) from exc
