"""Members domain Pydantic V2 schemas (staff views of member progress)."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.drip.engine import UnlockReason


class UnlockModuleRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    notes: str | None = Field(default=None, max_length=2000, description="Why the module was opened early.")


class ModuleUnlockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    module_id: UUID
    unlocked_at: datetime
    unlocked_by: UUID
    notes: str | None


class RevokeUnlockResponse(BaseModel):
    removed: bool


class MemberSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    enrolled_at: datetime | None
    last_accessed_at: datetime | None
    progress_pct: int = Field(ge=0, le=100)
    completed_modules: int
    total_modules: int


class CourseMembersResponse(BaseModel):
    course_id: UUID
    items: list[MemberSummaryResponse]
    total: int


class MemberModuleResponse(BaseModel):
    module_id: UUID
    title: str
    order_index: int
    unlock_after_days: int
    is_unlocked: bool
    unlocked_manually: bool
    unlock_reason: UnlockReason
    unlock_date: datetime | None
    lessons_total: int
    lessons_completed: int


class MemberProgressResponse(BaseModel):
    user_id: UUID
    course_id: UUID
    enrolled_at: datetime | None
    last_accessed_at: datetime | None
    progress_pct: int = Field(ge=0, le=100)
    modules: list[MemberModuleResponse]
