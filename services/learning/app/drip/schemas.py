"""Drip domain Pydantic V2 schemas.

Member-facing views: catalog, course outline with lock state, lesson
detail, progress and home-screen summaries.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.drip.engine import UnlockReason
from app.models.enums import ContentCategory, ContentStatus, EnrollmentStatus, LessonType


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class LessonProgressRequest(BaseModel):
    """Identifies the lesson being marked complete / incomplete."""

    course_id: UUID = Field(description="Course the lesson belongs to.")


class PlaybackPositionRequest(BaseModel):
    course_id: UUID = Field(description="Course the lesson belongs to.")
    position_sec: int = Field(ge=0, description="Resume point in seconds. Backward seeks are allowed.")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CourseProgressResponse(BaseModel):
    progress_pct: int = Field(ge=0, le=100)
    completed_lessons: int
    total_lessons: int
    last_lesson_id: UUID | None = None
    last_accessed_at: datetime | None = None


class CourseSummaryResponse(BaseModel):
    """Course card with the caller's progress."""

    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    title: str
    description: str | None
    cover_url: str | None
    promo_video_url: str | None
    status: ContentStatus
    release_at: datetime | None
    is_enrolled: bool = False
    progress: CourseProgressResponse


class CourseListResponse(BaseModel):
    items: list[CourseSummaryResponse]
    total: int


class LessonStateResponse(BaseModel):
    lesson_id: UUID
    module_id: UUID
    title: str
    description: str | None
    lesson_type: LessonType
    duration_sec: int | None
    order_index: int
    content_category: ContentCategory | None
    is_complete: bool
    last_position_sec: int


class ModuleStateResponse(BaseModel):
    """Published module with the caller's lock state."""

    module_id: UUID
    course_id: UUID
    title: str
    description: str | None
    order_index: int
    is_locked: bool
    unlock_date: datetime | None = Field(
        default=None,
        description="When a locked module opens. Null when unknown or when unlocked manually.",
    )
    unlock_reason: UnlockReason
    lessons: list[LessonStateResponse] = Field(default_factory=list)


class CourseModulesResponse(BaseModel):
    course_id: UUID
    modules: list[ModuleStateResponse]


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    course_id: UUID
    enrolled_at: datetime | None
    started_at: datetime | None
    status: EnrollmentStatus
    last_lesson_id: UUID | None
    last_accessed_at: datetime | None


class LessonModuleRef(BaseModel):
    module_id: UUID
    title: str
    course_id: UUID


class LessonDetailResponse(BaseModel):
    lesson_id: UUID
    module_id: UUID
    title: str
    description: str | None
    lesson_type: LessonType
    content_url: str | None
    content_text: str | None
    scheduled_at: datetime | None
    meeting_url: str | None
    replay_url: str | None
    duration_sec: int | None
    content_category: ContentCategory | None
    module: LessonModuleRef
    is_complete: bool
    last_position_sec: int


class LessonRefResponse(BaseModel):
    """Target of next / previous navigation."""

    model_config = ConfigDict(from_attributes=True)

    lesson_id: UUID
    module_id: UUID
    title: str
    lesson_type: LessonType


class NavigationResponse(BaseModel):
    lesson: LessonRefResponse | None = None


class ContinueLearningItemResponse(BaseModel):
    course_id: UUID
    title: str
    cover_url: str | None
    progress_pct: int
    last_lesson_id: UUID | None
    last_lesson_title: str | None = Field(
        default=None,
        description="Null when the last lesson was deleted or unpublished.",
    )
    last_accessed_at: datetime | None


class ContinueLearningResponse(BaseModel):
    items: list[ContinueLearningItemResponse]


class UserStatsResponse(BaseModel):
    enrolled_courses: int
    completed_lessons: int
