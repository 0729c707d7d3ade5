from uuid import uuid4

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "learning"


@pytest.mark.asyncio
async def test_requires_bearer_token(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/learning/courses")
    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "unauthenticated"
    assert response.headers["X-Request-ID"] == body["request_id"]


@pytest.mark.asyncio
async def test_list_courses(async_client: AsyncClient, catalog, member, auth_headers) -> None:
    response = await async_client.get("/api/v1/learning/courses", headers=auth_headers(member))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    course = data["items"][0]
    assert course["course_id"] == str(catalog.course.course_id)
    assert course["is_enrolled"] is False
    assert course["progress"]["total_lessons"] == 4


@pytest.mark.asyncio
async def test_unknown_course_is_enveloped_404(async_client: AsyncClient, catalog, member, auth_headers) -> None:
    response = await async_client.get(f"/api/v1/learning/courses/{uuid4()}", headers=auth_headers(member))
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "not_found"


@pytest.mark.asyncio
async def test_enroll_then_modules_show_drip_state(async_client: AsyncClient, catalog, member, auth_headers) -> None:
    headers = auth_headers(member)
    course_id = catalog.course.course_id

    enrolled = await async_client.post(f"/api/v1/learning/courses/{course_id}/enroll", headers=headers)
    assert enrolled.status_code == 200
    assert enrolled.json()["status"] == "active"

    again = await async_client.post(f"/api/v1/learning/courses/{course_id}/enroll", headers=headers)
    assert again.json()["enrolled_at"] == enrolled.json()["enrolled_at"]

    response = await async_client.get(f"/api/v1/learning/courses/{course_id}/modules", headers=headers)
    assert response.status_code == 200
    modules = response.json()["modules"]
    assert [m["title"] for m in modules] == ["Intro", "Components", "Empty", "Hooks"]
    assert modules[0]["is_locked"] is False
    assert modules[1]["is_locked"] is True
    assert modules[1]["unlock_reason"] == "schedule"
    # enrolled at NOW (2025-01-12) so day 7 lands on 2025-01-19
    assert modules[1]["unlock_date"].startswith("2025-01-19")


@pytest.mark.asyncio
async def test_complete_lesson_and_read_progress(async_client: AsyncClient, catalog, member, auth_headers) -> None:
    headers = auth_headers(member)
    course_id = catalog.course.course_id
    lesson_id = catalog.lessons["welcome"].lesson_id
    await async_client.post(f"/api/v1/learning/courses/{course_id}/enroll", headers=headers)

    response = await async_client.post(
        f"/api/v1/learning/lessons/{lesson_id}/complete",
        json={"course_id": str(course_id)},
        headers=headers,
    )
    assert response.status_code == 204

    progress = await async_client.get(f"/api/v1/learning/courses/{course_id}/progress", headers=headers)
    assert progress.json()["progress_pct"] == 25
    assert progress.json()["last_lesson_id"] == str(lesson_id)

    stats = await async_client.get("/api/v1/learning/stats", headers=headers)
    assert stats.json() == {"enrolled_courses": 1, "completed_lessons": 1}


@pytest.mark.asyncio
async def test_negative_position_is_rejected(async_client: AsyncClient, catalog, member, auth_headers) -> None:
    response = await async_client.put(
        f"/api/v1/learning/lessons/{catalog.lessons['welcome'].lesson_id}/position",
        json={"course_id": str(catalog.course.course_id), "position_sec": -5},
        headers=auth_headers(member),
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_position_round_trips_through_lesson_detail(
    async_client: AsyncClient, catalog, member, auth_headers,
) -> None:
    headers = auth_headers(member)
    lesson_id = catalog.lessons["welcome"].lesson_id
    saved = await async_client.put(
        f"/api/v1/learning/lessons/{lesson_id}/position",
        json={"course_id": str(catalog.course.course_id), "position_sec": 73},
        headers=headers,
    )
    assert saved.status_code == 204

    detail = await async_client.get(f"/api/v1/learning/lessons/{lesson_id}", headers=headers)
    assert detail.status_code == 200
    assert detail.json()["last_position_sec"] == 73
    assert detail.json()["module"]["title"] == "Intro"

    home = await async_client.get("/api/v1/learning/continue", headers=headers)
    (item,) = home.json()["items"]
    assert item["last_lesson_title"] == "Welcome"


@pytest.mark.asyncio
async def test_next_and_previous(async_client: AsyncClient, catalog, member, auth_headers) -> None:
    headers = auth_headers(member)
    setup_id = catalog.lessons["setup"].lesson_id

    nxt = await async_client.get(f"/api/v1/learning/lessons/{setup_id}/next", headers=headers)
    assert nxt.json()["lesson"]["lesson_id"] == str(catalog.lessons["props"].lesson_id)

    first = catalog.lessons["welcome"].lesson_id
    prev = await async_client.get(f"/api/v1/learning/lessons/{first}/previous", headers=headers)
    assert prev.json() == {"lesson": None}
