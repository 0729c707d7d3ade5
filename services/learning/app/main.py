import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.admin.router import router as admin_router
from app.database import close_db, init_db
from app.dependencies import get_settings
from app.drip.router import router as drip_router
from app.members.router import router as members_router
from app.repository import build_fixture_repository
from shared.database.redis_client import get_redis_client
from shared.middleware.error_handler import error_envelope_middleware, http_exception_handler
from shared.middleware.request_id import request_id_middleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    if settings.data_provider == "fixtures":
        app.state.repository = build_fixture_repository()
        logger.info("Serving the demo catalog from memory")
    else:
        app.state.repository = None
        init_db(settings.learning_database_url)

    # Resume-position cache; reads fall back to Postgres when disabled
    app.state.redis = get_redis_client(settings.redis_url) if settings.resume_cache_enabled else None

    yield

    # Shutdown
    if app.state.redis is not None:
        await app.state.redis.aclose()
    await close_db()


SWAGGER_DESCRIPTION = """\
## Learning Service: Drip-Scheduled Courses

Owns the member learning experience for courses whose modules open on a
schedule: catalog, enrollment, per-member module locks, lesson playback
with resume, completion tracking and navigation.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Learning** | Catalog, enrollment, module lock state, lessons, progress, continue-learning |
| **Learning Admin** | Course, module and lesson authoring, publishing and ordering |
| **Learning Members** | Staff view of member progress + manual module unlocks |

### Authentication

Every endpoint except the health check requires a JWT Bearer token.
Token structure: `{"sub": "<user_uuid>", "tenant_id": "<tenant_uuid>", "tenant_role": "member|instructor|admin|owner"}`.

### Module Unlock Order

```
not enrolled        -> locked
manual unlock       -> unlocked
module release_at   -> unlocked once reached
enrolled + N days   -> unlocked N calendar days after the cohort start
any lesson complete -> stays unlocked
```

### Status Transitions

```
Course / Module / Lesson: DRAFT -> SCHEDULED (release_at) -> LIVE
Enrollment:               ACTIVE | WITHDRAWN
```
"""


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Drip Learning",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(drip_router, prefix="/api/v1")
    app.include_router(admin_router, prefix="/api/v1")
    app.include_router(members_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "learning"}

    return app


app = create_app()
