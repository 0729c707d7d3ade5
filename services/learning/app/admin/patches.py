"""Partial-update types for staff edits.

Each field defaults to :data:`UNSET`; only fields the caller supplied are
written. ``None`` is a real value (it clears a nullable column).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any
from uuid import UUID

from app.models.enums import ContentCategory, ContentStatus, LessonType
from app.repository.base import UNSET, _Unset


class _Patch:
    def changes(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()


@dataclass
class CoursePatch(_Patch):
    title: str | _Unset = UNSET
    description: str | None | _Unset = UNSET
    cover_url: str | None | _Unset = UNSET
    promo_video_url: str | None | _Unset = UNSET
    instructor_id: UUID | None | _Unset = UNSET
    status: ContentStatus | _Unset = UNSET
    release_at: datetime | None | _Unset = UNSET


@dataclass
class ModulePatch(_Patch):
    title: str | _Unset = UNSET
    description: str | None | _Unset = UNSET
    order_index: int | _Unset = UNSET
    status: ContentStatus | _Unset = UNSET
    release_at: datetime | None | _Unset = UNSET
    unlock_after_days: int | _Unset = UNSET


@dataclass
class LessonPatch(_Patch):
    title: str | _Unset = UNSET
    description: str | None | _Unset = UNSET
    lesson_type: LessonType | _Unset = UNSET
    content_url: str | None | _Unset = UNSET
    content_text: str | None | _Unset = UNSET
    scheduled_at: datetime | None | _Unset = UNSET
    meeting_url: str | None | _Unset = UNSET
    replay_url: str | None | _Unset = UNSET
    duration_sec: int | None | _Unset = UNSET
    order_index: int | _Unset = UNSET
    status: ContentStatus | _Unset = UNSET
    release_at: datetime | None | _Unset = UNSET
    content_category: ContentCategory | None | _Unset = UNSET


def patch_from_fields(patch_cls: type, supplied: dict[str, Any]) -> Any:
    """Build a patch from a request body dumped with ``exclude_unset=True``."""
    known = {f.name for f in fields(patch_cls)}
    return patch_cls(**{k: v for k, v in supplied.items() if k in known})
