"""Drip-release rules. Pure functions, no I/O.

Every function takes ``now`` explicitly; callers capture it once per
request so all modules in one response are judged against the same instant.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID
from zoneinfo import ZoneInfo

from app.models.enums import ContentStatus

# "Already available": a live item with no release date.
ALWAYS_AVAILABLE = datetime.min.replace(tzinfo=timezone.utc)

_UTC = ZoneInfo("UTC")


class UnlockReason(str, enum.Enum):
    MANUAL = "manual"
    RELEASE = "release"
    SCHEDULE = "schedule"
    COMPLETED = "completed"
    NOT_ENROLLED = "not_enrolled"
    PENDING = "pending"


@dataclass(frozen=True)
class ModuleAccess:
    module_id: UUID
    is_locked: bool
    unlock_date: datetime | None
    reason: UnlockReason


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_release(status: ContentStatus, release_at: datetime | None) -> datetime | None:
    """Effective availability instant, or ``None`` for never (drafts)."""
    if status == ContentStatus.DRAFT:
        return None
    if release_at is not None:
        return _aware(release_at)
    if status == ContentStatus.LIVE:
        return ALWAYS_AVAILABLE
    # Scheduled without a date is rejected on write; treat legacy rows as never.
    return None


def effective_start(enrolled_at: datetime | None, course_release: datetime | None) -> datetime | None:
    """Cohort clock start: the later of enrollment and course release."""
    if enrolled_at is None or course_release is None:
        return None
    return max(_aware(enrolled_at), _aware(course_release))


def add_calendar_days(instant: datetime, days: int, tz: ZoneInfo = _UTC) -> datetime:
    """Add ``days`` on the wall clock of ``tz`` and return the result in UTC.

    Across a DST change the elapsed time differs from ``days * 24h``; the
    local time of day is what stays fixed.
    """
    if days == 0:
        return _aware(instant)
    local = _aware(instant).astimezone(tz)
    shifted = (local.replace(tzinfo=None) + timedelta(days=days)).replace(tzinfo=tz)
    return shifted.astimezone(timezone.utc)


def evaluate_module(
    module_id: UUID,
    *,
    is_enrolled: bool,
    manually_unlocked: bool,
    module_release_at: datetime | None,
    unlock_after_days: int,
    cohort_start: datetime | None,
    now: datetime,
    tz: ZoneInfo = _UTC,
) -> ModuleAccess:
    """Lock verdict for one (member, module) before the completion override."""
    now = _aware(now)
    if not is_enrolled:
        return ModuleAccess(module_id, True, None, UnlockReason.NOT_ENROLLED)
    if manually_unlocked:
        return ModuleAccess(module_id, False, None, UnlockReason.MANUAL)
    if module_release_at is not None:
        release = _aware(module_release_at)
        return ModuleAccess(module_id, now < release, release, UnlockReason.RELEASE)
    if cohort_start is None:
        return ModuleAccess(module_id, True, None, UnlockReason.PENDING)
    unlock_date = add_calendar_days(cohort_start, unlock_after_days, tz)
    return ModuleAccess(module_id, now < unlock_date, unlock_date, UnlockReason.SCHEDULE)


def apply_completion_override(access: ModuleAccess, *, any_lesson_complete: bool) -> ModuleAccess:
    """Once a member has completed something in a module it never re-locks."""
    if not any_lesson_complete or not access.is_locked:
        return access
    return ModuleAccess(access.module_id, False, access.unlock_date, UnlockReason.COMPLETED)


def completion_pct(completed: int, total: int) -> int:
    if total <= 0:
        return 0
    pct = round(100 * completed / total)
    return max(0, min(100, pct))
