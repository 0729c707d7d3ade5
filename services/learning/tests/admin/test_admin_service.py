from datetime import datetime, timezone
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from app.admin import service
from app.admin.patches import CoursePatch, LessonPatch, ModulePatch, patch_from_fields
from app.drip import service as drip
from app.drip.sequencer import Direction
from app.exceptions import (
    AdminRoleRequiredError,
    CourseNotFoundError,
    InvalidLessonPayloadError,
    ModuleNotFoundError,
    NotCourseInstructorError,
    ReleaseDateRequiredError,
    ReorderBoundaryError,
)
from app.models.enums import ContentStatus, LessonType
from factories import ENROLLED_AT, NOW, add_course, add_lesson, add_module, make_user
from shared.constants import TenantRole

LAUNCH = datetime(2025, 3, 1, tzinfo=timezone.utc)
UTC = ZoneInfo("UTC")


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_instructor_always_owns_created_course(repo, instructor) -> None:
    course = await service.create_course(
        repo, instructor, title="Mine", instructor_id=uuid4(), now=NOW,
    )
    assert course.instructor_id == instructor.id
    assert course.tenant_id == instructor.tenant_id
    assert course.status == ContentStatus.DRAFT
    assert course.release_at is None


@pytest.mark.asyncio
async def test_going_live_without_date_stamps_now(repo, admin) -> None:
    course = await service.create_course(repo, admin, title="Live", status=ContentStatus.LIVE, now=NOW)
    assert course.release_at == NOW


@pytest.mark.asyncio
async def test_draft_course_going_live_stamps_now(repo, admin) -> None:
    course = await service.create_course(repo, admin, title="Later", now=NOW)
    live = await service.set_course_status(repo, admin, course.course_id, ContentStatus.LIVE, now=NOW)
    assert live.release_at == NOW


@pytest.mark.asyncio
async def test_editing_live_course_keeps_release_and_unlocks(repo, tenant_id, admin, member) -> None:
    course = add_course(repo, tenant_id, release_at=None)
    module = add_module(repo, course, 1, unlock_after_days=1)
    add_lesson(repo, module, 1)
    await drip.enroll(repo, tenant_id, member.id, course.course_id, now=ENROLLED_AT)

    async def locked() -> bool:
        (state,) = await drip.resolve_module_access(
            repo, tenant_id, member.id, course.course_id, now=NOW, tz=UTC,
        )
        return state.access.is_locked

    assert not await locked()
    renamed = await service.update_course(
        repo, admin, course.course_id, CoursePatch(title="Renamed"), now=NOW,
    )
    assert renamed.title == "Renamed"
    assert renamed.release_at is None
    assert not await locked()

    # Re-publishing a course that is already live is not a transition either.
    await service.set_course_status(repo, admin, course.course_id, ContentStatus.LIVE, now=NOW)
    assert repo.courses[course.course_id].release_at is None


@pytest.mark.asyncio
async def test_scheduling_requires_release_date(repo, admin) -> None:
    with pytest.raises(ReleaseDateRequiredError):
        await service.create_course(repo, admin, title="Soon", status=ContentStatus.SCHEDULED, now=NOW)

    course = await service.create_course(repo, admin, title="Draft", now=NOW)
    with pytest.raises(ReleaseDateRequiredError):
        await service.set_course_status(repo, admin, course.course_id, ContentStatus.SCHEDULED, now=NOW)

    scheduled = await service.set_course_status(
        repo, admin, course.course_id, ContentStatus.SCHEDULED, release_at=LAUNCH, now=NOW,
    )
    assert scheduled.status == ContentStatus.SCHEDULED
    assert scheduled.release_at == LAUNCH


@pytest.mark.asyncio
async def test_clearing_release_of_scheduled_course_is_rejected(repo, admin) -> None:
    course = await service.create_course(
        repo, admin, title="Soon", status=ContentStatus.SCHEDULED, release_at=LAUNCH, now=NOW,
    )
    with pytest.raises(ReleaseDateRequiredError):
        await service.update_course(repo, admin, course.course_id, CoursePatch(release_at=None), now=NOW)


@pytest.mark.asyncio
async def test_instructor_cannot_edit_someone_elses_course(repo, catalog, tenant_id) -> None:
    other = make_user(tenant_id, TenantRole.INSTRUCTOR)
    with pytest.raises(NotCourseInstructorError):
        await service.update_course(repo, other, catalog.course.course_id, CoursePatch(title="Hijack"), now=NOW)


@pytest.mark.asyncio
async def test_only_admins_reassign_instructor(repo, catalog, instructor, admin) -> None:
    patch = CoursePatch(instructor_id=uuid4())
    with pytest.raises(AdminRoleRequiredError):
        await service.update_course(repo, instructor, catalog.course.course_id, patch, now=NOW)

    course = await service.update_course(repo, admin, catalog.course.course_id, patch, now=NOW)
    assert course.instructor_id == patch.instructor_id


@pytest.mark.asyncio
async def test_update_course_applies_only_supplied_fields(repo, catalog, instructor) -> None:
    catalog.course.description = "Keep me"
    patch = patch_from_fields(CoursePatch, {"title": "Renamed", "unknown": 1})
    course = await service.update_course(repo, instructor, catalog.course.course_id, patch, now=NOW)
    assert course.title == "Renamed"
    assert course.description == "Keep me"


@pytest.mark.asyncio
async def test_delete_course_needs_admin_and_cascades(repo, catalog, instructor, admin) -> None:
    with pytest.raises(AdminRoleRequiredError):
        await service.delete_course(repo, instructor, catalog.course.course_id)

    await service.delete_course(repo, admin, catalog.course.course_id)
    assert repo.courses == {}
    assert repo.modules == {}
    assert repo.lessons == {}


@pytest.mark.asyncio
async def test_other_tenant_sees_course_as_missing(repo, catalog, outsider) -> None:
    with pytest.raises(CourseNotFoundError):
        await service.get_course_outline(repo, outsider, catalog.course.course_id)


@pytest.mark.asyncio
async def test_outline_includes_drafts(repo, catalog, admin) -> None:
    course, modules, by_module = await service.get_course_outline(repo, admin, catalog.course.course_id)
    assert course is catalog.course
    assert [m.title for m in modules] == ["Intro", "Components", "Empty", "Hooks", "Hidden"]
    assert [l.title for l in by_module[catalog.modules["hidden"].module_id]] == ["Secret"]


# ---------------------------------------------------------------------------
# Modules
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_new_module_is_appended(repo, catalog, instructor) -> None:
    module = await service.create_module(repo, instructor, catalog.course.course_id, title="Extra", now=NOW)
    assert module.order_index == 6
    assert module.status == ContentStatus.DRAFT
    assert module.unlock_after_days == 0


@pytest.mark.asyncio
async def test_live_module_without_date_keeps_cohort_timing(repo, catalog, instructor) -> None:
    module = await service.update_module(
        repo, instructor, catalog.modules["hidden"].module_id,
        ModulePatch(status=ContentStatus.LIVE), now=NOW,
    )
    assert module.status == ContentStatus.LIVE
    assert module.release_at is None


@pytest.mark.asyncio
async def test_scheduled_module_requires_release_date(repo, catalog, instructor) -> None:
    with pytest.raises(ReleaseDateRequiredError):
        await service.update_module(
            repo, instructor, catalog.modules["hidden"].module_id,
            ModulePatch(status=ContentStatus.SCHEDULED), now=NOW,
        )


@pytest.mark.asyncio
async def test_reorder_module_swaps_with_neighbour(repo, catalog, instructor) -> None:
    components = catalog.modules["components"]
    modules = await service.reorder_module(repo, instructor, components.module_id, Direction.PREVIOUS)
    assert [m.title for m in modules][:2] == ["Components", "Intro"]
    assert components.order_index == 1
    assert catalog.modules["intro"].order_index == 2


@pytest.mark.asyncio
async def test_reorder_module_past_the_end_fails(repo, catalog, instructor) -> None:
    with pytest.raises(ReorderBoundaryError):
        await service.reorder_module(repo, instructor, catalog.modules["intro"].module_id, Direction.PREVIOUS)
    with pytest.raises(ReorderBoundaryError):
        await service.reorder_module(repo, instructor, catalog.modules["hidden"].module_id, Direction.NEXT)


@pytest.mark.asyncio
async def test_move_module_sets_explicit_index(repo, catalog, instructor) -> None:
    modules = await service.move_module(repo, instructor, catalog.modules["intro"].module_id, 10, now=NOW)
    assert modules[-1].title == "Intro"
    assert modules[-1].order_index == 10


@pytest.mark.asyncio
async def test_delete_module_removes_its_lessons(repo, catalog, instructor) -> None:
    intro = catalog.modules["intro"]
    await service.delete_module(repo, instructor, intro.module_id)
    assert intro.module_id not in repo.modules
    assert catalog.lessons["welcome"].lesson_id not in repo.lessons


@pytest.mark.asyncio
async def test_missing_module_is_not_found(repo, admin) -> None:
    with pytest.raises(ModuleNotFoundError):
        await service.delete_module(repo, admin, uuid4())


# ---------------------------------------------------------------------------
# Lessons
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_lesson_appends_within_module(repo, catalog, instructor) -> None:
    lesson = await service.create_lesson(
        repo, instructor, catalog.modules["intro"].module_id,
        title="Recap", lesson_type=LessonType.VIDEO, duration_sec=120, now=NOW,
    )
    assert lesson.order_index == 3
    assert lesson.status == ContentStatus.DRAFT


@pytest.mark.asyncio
async def test_duration_only_for_timed_lessons(repo, catalog, instructor) -> None:
    with pytest.raises(InvalidLessonPayloadError):
        await service.create_lesson(
            repo, instructor, catalog.modules["intro"].module_id,
            title="Notes", lesson_type=LessonType.TEXT, duration_sec=60, now=NOW,
        )

    welcome = catalog.lessons["welcome"]
    with pytest.raises(InvalidLessonPayloadError):
        await service.update_lesson(
            repo, instructor, welcome.lesson_id, LessonPatch(lesson_type=LessonType.PDF), now=NOW,
        )

    lesson = await service.update_lesson(
        repo, instructor, welcome.lesson_id,
        LessonPatch(lesson_type=LessonType.PDF, duration_sec=None), now=NOW,
    )
    assert lesson.lesson_type == LessonType.PDF
    assert lesson.duration_sec is None


@pytest.mark.asyncio
async def test_reorder_lesson_within_module(repo, catalog, instructor) -> None:
    lessons = await service.reorder_lesson(repo, instructor, catalog.lessons["welcome"].lesson_id, Direction.NEXT)
    assert [l.title for l in lessons] == ["Setup", "Welcome"]

    with pytest.raises(ReorderBoundaryError):
        await service.reorder_lesson(repo, instructor, catalog.lessons["props"].lesson_id, Direction.NEXT)


@pytest.mark.asyncio
async def test_delete_lesson_clears_resume_pointer(repo, catalog, member, instructor) -> None:
    welcome = catalog.lessons["welcome"]
    await repo.touch_enrollment(member.id, catalog.course.course_id, lesson_id=welcome.lesson_id, at=NOW)

    await service.delete_lesson(repo, instructor, welcome.lesson_id)
    assert repo.enrollments[(member.id, catalog.course.course_id)].last_lesson_id is None
