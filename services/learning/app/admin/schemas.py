"""Admin domain Pydantic V2 schemas.

Staff-facing course, module and lesson management.
Follows RORO: separate request models from response models. Update
requests are dumped with ``exclude_unset=True`` into explicit patch types.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.enums import ContentCategory, ContentStatus, LessonType


# ---------------------------------------------------------------------------
# Course request schemas
# ---------------------------------------------------------------------------


class CreateCourseRequest(BaseModel):
    """New courses default to draft. Instructors always become the course instructor."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    cover_url: str | None = Field(default=None, max_length=500)
    promo_video_url: str | None = Field(default=None, max_length=500)
    instructor_id: UUID | None = Field(
        default=None,
        description="Owners and admins may assign any instructor; ignored for instructors.",
    )
    status: ContentStatus = ContentStatus.DRAFT
    release_at: datetime | None = Field(
        default=None,
        description="Required when status is scheduled. Stamped with the current time when going live without one.",
    )


class UpdateCourseRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    cover_url: str | None = Field(default=None, max_length=500)
    promo_video_url: str | None = Field(default=None, max_length=500)
    instructor_id: UUID | None = None
    release_at: datetime | None = None


class SetStatusRequest(BaseModel):
    status: ContentStatus
    release_at: datetime | None = Field(
        default=None,
        description="Release instant. Required for scheduled unless already set.",
    )


# ---------------------------------------------------------------------------
# Module request schemas
# ---------------------------------------------------------------------------


class CreateModuleRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    order_index: int | None = Field(
        default=None, ge=0, description="Appended after the last module when omitted.",
    )
    status: ContentStatus = ContentStatus.DRAFT
    release_at: datetime | None = Field(
        default=None, description="Module-level release date; overrides cohort timing when set.",
    )
    unlock_after_days: int = Field(
        default=0, ge=0, description="Days after the member's effective start.",
    )


class UpdateModuleRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    order_index: int | None = Field(default=None, ge=0)
    release_at: datetime | None = None
    unlock_after_days: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Lesson request schemas
# ---------------------------------------------------------------------------


class CreateLessonRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    lesson_type: LessonType
    content_url: str | None = Field(default=None, max_length=500)
    content_text: str | None = None
    scheduled_at: datetime | None = Field(default=None, description="Live sessions only.")
    meeting_url: str | None = Field(default=None, max_length=500)
    replay_url: str | None = Field(default=None, max_length=500)
    duration_sec: int | None = Field(default=None, ge=0, description="Video and audio only.")
    order_index: int | None = Field(default=None, ge=0)
    status: ContentStatus = ContentStatus.DRAFT
    release_at: datetime | None = None
    content_category: ContentCategory | None = None


class UpdateLessonRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    lesson_type: LessonType | None = None
    content_url: str | None = Field(default=None, max_length=500)
    content_text: str | None = None
    scheduled_at: datetime | None = None
    meeting_url: str | None = Field(default=None, max_length=500)
    replay_url: str | None = Field(default=None, max_length=500)
    duration_sec: int | None = Field(default=None, ge=0)
    order_index: int | None = Field(default=None, ge=0)
    release_at: datetime | None = None
    content_category: ContentCategory | None = None


class ReorderRequest(BaseModel):
    """Either swap with a neighbour (``direction``) or set ``order_index`` directly."""

    direction: Literal["up", "down"] | None = None
    order_index: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _exactly_one(self) -> ReorderRequest:
        if (self.direction is None) == (self.order_index is None):
            raise ValueError("Provide exactly one of direction or order_index")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    course_id: UUID
    tenant_id: UUID
    instructor_id: UUID | None
    title: str
    description: str | None
    cover_url: str | None
    promo_video_url: str | None
    status: ContentStatus
    release_at: datetime | None
    is_published: bool
    created_at: datetime
    updated_at: datetime


class CourseListResponse(BaseModel):
    items: list[CourseResponse]
    total: int


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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
    order_index: int
    status: ContentStatus
    release_at: datetime | None
    is_published: bool
    content_category: ContentCategory | None
    created_at: datetime


class ModuleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    module_id: UUID
    course_id: UUID
    title: str
    description: str | None
    order_index: int
    status: ContentStatus
    release_at: datetime | None
    unlock_after_days: int
    is_published: bool
    created_at: datetime


class ModuleWithLessonsResponse(ModuleResponse):
    lessons: list[LessonResponse] = Field(default_factory=list)


class CourseOutlineResponse(BaseModel):
    """Course with every module and lesson, drafts included."""

    course: CourseResponse
    modules: list[ModuleWithLessonsResponse]
