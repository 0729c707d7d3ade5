from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.dependencies import get_now, get_repository
from app.main import create_app
from app.models.enums import ContentStatus, LessonType
from app.repository import InMemoryLearningRepository
from factories import NOW, Catalog, add_course, add_lesson, add_module, make_user
from shared.auth.config import AuthSettings
from shared.auth.dependencies import create_access_token
from shared.constants import TenantRole
from shared.models.user import CurrentUser


@pytest.fixture
def repo() -> InMemoryLearningRepository:
    return InMemoryLearningRepository()


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def member(tenant_id: UUID) -> CurrentUser:
    return make_user(tenant_id, TenantRole.MEMBER)


@pytest.fixture
def instructor(tenant_id: UUID) -> CurrentUser:
    return make_user(tenant_id, TenantRole.INSTRUCTOR)


@pytest.fixture
def admin(tenant_id: UUID) -> CurrentUser:
    return make_user(tenant_id, TenantRole.ADMIN)


@pytest.fixture
def outsider() -> CurrentUser:
    """Admin of a different tenant."""
    return make_user(uuid4(), TenantRole.ADMIN)


@pytest.fixture
def catalog(repo: InMemoryLearningRepository, tenant_id: UUID, instructor: CurrentUser) -> Catalog:
    course = add_course(repo, tenant_id, instructor_id=instructor.id)
    catalog = Catalog(course=course)

    intro = add_module(repo, course, 1, title="Intro", unlock_after_days=0)
    components = add_module(repo, course, 2, title="Components", unlock_after_days=7)
    empty = add_module(repo, course, 3, title="Empty", unlock_after_days=10)
    hooks = add_module(repo, course, 4, title="Hooks", unlock_after_days=14)
    hidden = add_module(repo, course, 5, title="Hidden", status=ContentStatus.DRAFT)
    catalog.modules.update(intro=intro, components=components, empty=empty, hooks=hooks, hidden=hidden)

    catalog.lessons.update(
        welcome=add_lesson(repo, intro, 1, title="Welcome"),
        setup=add_lesson(repo, intro, 2, title="Setup", lesson_type=LessonType.TEXT),
        props=add_lesson(repo, components, 1, title="Props"),
        state=add_lesson(repo, hooks, 1, title="State", lesson_type=LessonType.AUDIO, duration_sec=300),
        secret=add_lesson(repo, hidden, 1, title="Secret"),
    )
    return catalog


@pytest.fixture
def auth_headers():
    settings = AuthSettings()

    def _headers(user: CurrentUser) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user, settings)}"}

    return _headers


@pytest.fixture
def app(repo: InMemoryLearningRepository) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_repository] = lambda: repo
    app.dependency_overrides[get_now] = lambda: NOW
    return app


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
