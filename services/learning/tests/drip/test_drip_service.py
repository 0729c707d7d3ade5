from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from app.drip import service
from app.drip.engine import UnlockReason
from app.exceptions import CourseNotFoundError, DataStoreError, LessonNotFoundError
from app.models import ModuleUnlock
from app.models.enums import ContentStatus, EnrollmentStatus
from factories import ENROLLED_AT, NOW, add_course, add_lesson, add_module

UTC = ZoneInfo("UTC")


async def _enroll(repo, catalog, user, at=ENROLLED_AT):
    return await service.enroll(repo, user.tenant_id, user.id, catalog.course.course_id, now=at)


async def _states(repo, catalog, user, now=NOW):
    states = await service.resolve_module_access(
        repo, user.tenant_id, user.id, catalog.course.course_id, now=now, tz=UTC,
    )
    return {s.module.title: s for s in states}


# ---------------------------------------------------------------------------
# Enrollment
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_enroll_is_idempotent(repo, catalog, member) -> None:
    first = await _enroll(repo, catalog, member)
    second = await _enroll(repo, catalog, member, at=ENROLLED_AT + timedelta(days=3))
    assert first is second
    assert second.enrolled_at == ENROLLED_AT
    assert second.status == EnrollmentStatus.ACTIVE
    assert len(repo.enrollments) == 1


@pytest.mark.asyncio
async def test_enroll_in_draft_course_is_not_found(repo, tenant_id, member) -> None:
    draft = add_course(repo, tenant_id, status=ContentStatus.DRAFT, release_at=None)
    with pytest.raises(CourseNotFoundError):
        await service.enroll(repo, tenant_id, member.id, draft.course_id, now=NOW)


@pytest.mark.asyncio
async def test_enroll_in_other_tenant_course_is_not_found(repo, catalog, outsider) -> None:
    with pytest.raises(CourseNotFoundError):
        await service.enroll(repo, outsider.tenant_id, outsider.id, catalog.course.course_id, now=NOW)


# ---------------------------------------------------------------------------
# Module access
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_not_enrolled_member_sees_every_module_locked(repo, catalog, member) -> None:
    states = await _states(repo, catalog, member)
    assert list(states) == ["Intro", "Components", "Empty", "Hooks"]
    for state in states.values():
        assert state.access.is_locked
        assert state.access.reason == UnlockReason.NOT_ENROLLED


@pytest.mark.asyncio
async def test_cohort_schedule_counts_from_enrollment(repo, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    states = await _states(repo, catalog, member)

    assert not states["Intro"].access.is_locked
    components = states["Components"].access
    assert components.is_locked
    assert components.reason == UnlockReason.SCHEDULE
    assert components.unlock_date == datetime(2025, 1, 17, 9, 0, tzinfo=timezone.utc)
    assert [l.lesson.title for l in states["Intro"].lessons] == ["Welcome", "Setup"]


@pytest.mark.asyncio
async def test_completed_lesson_unlocks_module_early(repo, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    await service.mark_lesson_complete(
        repo, member.tenant_id, member.id, catalog.lessons["props"].lesson_id,
        catalog.course.course_id, now=NOW,
    )
    states = await _states(repo, catalog, member)
    assert not states["Components"].access.is_locked
    assert states["Components"].access.reason == UnlockReason.COMPLETED
    assert states["Components"].lessons[0].is_complete


@pytest.mark.asyncio
async def test_manual_unlock_opens_module(repo, catalog, member, admin) -> None:
    await _enroll(repo, catalog, member)
    hooks = catalog.modules["hooks"]
    repo.unlocks[(member.id, hooks.module_id)] = ModuleUnlock(
        user_id=member.id, module_id=hooks.module_id, unlocked_at=NOW, unlocked_by=admin.id,
    )
    states = await _states(repo, catalog, member)
    assert states["Hooks"].access.reason == UnlockReason.MANUAL
    assert not states["Hooks"].access.is_locked


@pytest.mark.asyncio
async def test_withdrawn_member_is_treated_as_not_enrolled(repo, catalog, member) -> None:
    enrollment = await _enroll(repo, catalog, member)
    enrollment.status = EnrollmentStatus.WITHDRAWN
    states = await _states(repo, catalog, member)
    assert all(s.access.reason == UnlockReason.NOT_ENROLLED for s in states.values())


@pytest.mark.asyncio
async def test_module_access_degrades_when_progress_lookup_fails(repo, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    repo.get_lesson_progress = AsyncMock(side_effect=DataStoreError("store down"))

    states = await _states(repo, catalog, member)
    assert not states["Intro"].access.is_locked
    assert not any(l.is_complete for s in states.values() for l in s.lessons)


@pytest.mark.asyncio
async def test_module_access_for_draft_course_is_not_found(repo, catalog, member) -> None:
    catalog.course.status = ContentStatus.DRAFT
    with pytest.raises(CourseNotFoundError):
        await _states(repo, catalog, member)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_progress_counts_published_lessons_only(repo, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    lesson = catalog.lessons["welcome"]
    await service.mark_lesson_complete(
        repo, member.tenant_id, member.id, lesson.lesson_id, catalog.course.course_id, now=NOW,
    )
    progress = await service.get_course_progress(
        repo, member.tenant_id, member.id, catalog.course.course_id,
    )
    assert progress.total_lessons == 4
    assert progress.completed_lessons == 1
    assert progress.progress_pct == 25
    assert progress.last_lesson_id == lesson.lesson_id
    assert progress.last_accessed_at == NOW


@pytest.mark.asyncio
async def test_mark_incomplete_clears_completion(repo, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    lesson_id = catalog.lessons["welcome"].lesson_id
    course_id = catalog.course.course_id
    await service.mark_lesson_complete(repo, member.tenant_id, member.id, lesson_id, course_id, now=NOW)
    await service.mark_lesson_incomplete(repo, member.tenant_id, member.id, lesson_id, course_id, now=NOW)

    row = repo.progress[(member.id, lesson_id)]
    assert not row.is_complete
    assert row.completed_at is None


@pytest.mark.asyncio
async def test_mark_complete_rejects_lesson_from_another_course(repo, tenant_id, catalog, member) -> None:
    other = add_course(repo, tenant_id, title="Other")
    with pytest.raises(LessonNotFoundError):
        await service.mark_lesson_complete(
            repo, tenant_id, member.id, catalog.lessons["welcome"].lesson_id, other.course_id, now=NOW,
        )


@pytest.mark.asyncio
async def test_playback_position_allows_backward_seek(repo, catalog, member) -> None:
    lesson_id = catalog.lessons["welcome"].lesson_id
    course_id = catalog.course.course_id
    await service.update_playback_position(repo, member.tenant_id, member.id, lesson_id, course_id, 300, now=NOW)
    await service.update_playback_position(repo, member.tenant_id, member.id, lesson_id, course_id, 120, now=NOW)
    assert repo.progress[(member.id, lesson_id)].last_position_sec == 120


@pytest.mark.asyncio
async def test_playback_position_survives_cache_failure(repo, catalog, member) -> None:
    redis = AsyncMock()
    redis.hset.side_effect = ConnectionError("redis down")
    lesson_id = catalog.lessons["welcome"].lesson_id

    await service.update_playback_position(
        repo, member.tenant_id, member.id, lesson_id, catalog.course.course_id, 42, now=NOW, redis=redis,
    )
    assert repo.progress[(member.id, lesson_id)].last_position_sec == 42


# ---------------------------------------------------------------------------
# Lesson detail
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_lesson_does_not_enforce_lock(repo, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    detail = await service.get_lesson(repo, member.tenant_id, member.id, catalog.lessons["props"].lesson_id)
    assert detail.lesson.title == "Props"
    assert detail.module.title == "Components"
    assert detail.last_position_sec == 0


@pytest.mark.asyncio
async def test_get_lesson_in_draft_module_is_not_found(repo, catalog, member) -> None:
    with pytest.raises(LessonNotFoundError):
        await service.get_lesson(repo, member.tenant_id, member.id, catalog.lessons["secret"].lesson_id)


@pytest.mark.asyncio
async def test_get_lesson_prefers_cached_position(repo, catalog, member) -> None:
    lesson_id = catalog.lessons["welcome"].lesson_id
    await service.update_playback_position(
        repo, member.tenant_id, member.id, lesson_id, catalog.course.course_id, 30, now=NOW,
    )
    redis = AsyncMock()
    redis.hgetall.return_value = {"position_sec": "95"}

    detail = await service.get_lesson(repo, member.tenant_id, member.id, lesson_id, redis=redis)
    assert detail.last_position_sec == 95


@pytest.mark.asyncio
async def test_get_lesson_falls_back_when_cache_fails(repo, catalog, member) -> None:
    lesson_id = catalog.lessons["welcome"].lesson_id
    await service.update_playback_position(
        repo, member.tenant_id, member.id, lesson_id, catalog.course.course_id, 30, now=NOW,
    )
    redis = AsyncMock()
    redis.hgetall.side_effect = ConnectionError("redis down")

    detail = await service.get_lesson(repo, member.tenant_id, member.id, lesson_id, redis=redis)
    assert detail.last_position_sec == 30


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_next_lesson_within_and_across_modules(repo, catalog, member) -> None:
    lessons = catalog.lessons
    nxt = await service.get_next_lesson(repo, member.tenant_id, lessons["welcome"].lesson_id)
    assert nxt is lessons["setup"]
    nxt = await service.get_next_lesson(repo, member.tenant_id, lessons["setup"].lesson_id)
    assert nxt is lessons["props"]


@pytest.mark.asyncio
async def test_previous_lesson_crosses_into_last_lesson_of_prior_module(repo, catalog, member) -> None:
    prev = await service.get_previous_lesson(repo, member.tenant_id, catalog.lessons["props"].lesson_id)
    assert prev is catalog.lessons["setup"]


@pytest.mark.asyncio
async def test_navigation_stops_at_empty_neighbour_module(repo, catalog, member) -> None:
    lessons = catalog.lessons
    assert await service.get_next_lesson(repo, member.tenant_id, lessons["props"].lesson_id) is None
    assert await service.get_previous_lesson(repo, member.tenant_id, lessons["state"].lesson_id) is None


@pytest.mark.asyncio
async def test_previous_of_first_lesson_is_none(repo, catalog, member) -> None:
    assert await service.get_previous_lesson(repo, member.tenant_id, catalog.lessons["welcome"].lesson_id) is None


@pytest.mark.asyncio
async def test_navigation_hides_other_tenants_lessons(repo, catalog, outsider) -> None:
    with pytest.raises(LessonNotFoundError):
        await service.get_next_lesson(repo, outsider.tenant_id, catalog.lessons["welcome"].lesson_id)


# ---------------------------------------------------------------------------
# Catalog and home screen
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_list_courses_shows_live_and_scheduled_only(repo, tenant_id, catalog, member) -> None:
    add_course(repo, tenant_id, title="Draft", status=ContentStatus.DRAFT, release_at=None)
    add_course(
        repo, tenant_id, title="Soon", status=ContentStatus.SCHEDULED,
        release_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
        created_at=datetime(2025, 1, 5, tzinfo=timezone.utc),
    )
    add_course(repo, uuid4(), title="Elsewhere")

    overviews = await service.list_courses(repo, tenant_id, member.id)
    assert [o.course.title for o in overviews] == ["Soon", "Drip Course"]
    assert not any(o.is_enrolled for o in overviews)


@pytest.mark.asyncio
async def test_continue_learning_orders_by_last_access(repo, tenant_id, catalog, member) -> None:
    second = add_course(repo, tenant_id, title="Second")
    second_lesson = add_lesson(repo, add_module(repo, second, 1), 1, title="Only")
    await _enroll(repo, catalog, member)
    await service.enroll(repo, tenant_id, member.id, second.course_id, now=ENROLLED_AT)

    await service.update_playback_position(
        repo, tenant_id, member.id, catalog.lessons["welcome"].lesson_id,
        catalog.course.course_id, 10, now=NOW,
    )
    await service.update_playback_position(
        repo, tenant_id, member.id, second_lesson.lesson_id,
        second.course_id, 10, now=NOW + timedelta(hours=1),
    )

    items = await service.get_continue_learning(repo, tenant_id, member.id)
    assert [i.course.title for i in items] == ["Second", "Drip Course"]
    assert items[0].last_lesson_title == "Only"

    limited = await service.get_continue_learning(repo, tenant_id, member.id, limit=1)
    assert [i.course.title for i in limited] == ["Second"]


@pytest.mark.asyncio
async def test_continue_learning_limit_skips_courses_back_in_draft(repo, tenant_id, catalog, member) -> None:
    withdrawn = add_course(repo, tenant_id, title="Withdrawn")
    withdrawn_lesson = add_lesson(repo, add_module(repo, withdrawn, 1), 1)
    await service.update_playback_position(
        repo, tenant_id, member.id, catalog.lessons["welcome"].lesson_id,
        catalog.course.course_id, 10, now=NOW,
    )
    await service.update_playback_position(
        repo, tenant_id, member.id, withdrawn_lesson.lesson_id,
        withdrawn.course_id, 10, now=NOW + timedelta(hours=1),
    )
    withdrawn.status = ContentStatus.DRAFT

    items = await service.get_continue_learning(repo, tenant_id, member.id, limit=1)
    assert [i.course.title for i in items] == ["Drip Course"]


@pytest.mark.asyncio
async def test_continue_learning_hides_title_of_unpublished_lesson(repo, tenant_id, catalog, member) -> None:
    lesson = catalog.lessons["welcome"]
    await service.update_playback_position(
        repo, tenant_id, member.id, lesson.lesson_id, catalog.course.course_id, 10, now=NOW,
    )
    lesson.status = ContentStatus.DRAFT

    (item,) = await service.get_continue_learning(repo, tenant_id, member.id)
    assert item.last_lesson_id == lesson.lesson_id
    assert item.last_lesson_title is None


@pytest.mark.asyncio
async def test_continue_learning_survives_deleted_lesson(repo, tenant_id, catalog, member) -> None:
    lesson = catalog.lessons["welcome"]
    await service.update_playback_position(
        repo, tenant_id, member.id, lesson.lesson_id, catalog.course.course_id, 10, now=NOW,
    )
    await repo.delete_lesson(lesson)

    (item,) = await service.get_continue_learning(repo, tenant_id, member.id)
    assert item.last_lesson_id is None
    assert item.last_lesson_title is None


@pytest.mark.asyncio
async def test_user_stats(repo, tenant_id, catalog, member) -> None:
    await _enroll(repo, catalog, member)
    for key in ("welcome", "setup"):
        await service.mark_lesson_complete(
            repo, tenant_id, member.id, catalog.lessons[key].lesson_id, catalog.course.course_id, now=NOW,
        )
    stats = await service.get_user_stats(repo, tenant_id, member.id)
    assert stats.enrolled_courses == 1
    assert stats.completed_lessons == 2
