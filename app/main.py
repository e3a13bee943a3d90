import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings
from app.context import open_context
from app.backoffice.router import router as backoffice_router
from app.learner.router import router as learner_router
from shared.middleware import (
    RequestIdLogFilter,
    error_envelope_middleware,
    http_exception_handler,
    request_id_middleware,
)


def get_settings() -> Settings:
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Tests may install their own context before startup
    owns_context = getattr(app.state, "context", None) is None
    if owns_context:
        app.state.context = open_context(get_settings())

    yield

    if owns_context:
        await app.state.context.aclose()
        app.state.context = None


SWAGGER_DESCRIPTION = """\
## Derivatives Academy Course API

Learner dashboard and administrative backoffice for the derivatives
course catalogue.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Learner** | Dashboard totals, catalogue with progress, registration, chapter completion |
| **Backoffice** | Module and chapter authoring, publish toggle, drag-and-drop reordering |

### Authentication

All endpoints (except the health check) require a valid JWT Bearer token.
Backoffice endpoints additionally require the `admin` or `super_admin` role.

### Reordering

`POST .../reorder` drops `source_id` onto `target_id`. Ranks stay contiguous
(1..n). When a rank write fails the list is reloaded from the database and
the response carries `"outcome": "rolled_back"` with the reloaded order.
"""


def create_app() -> FastAPI:
    settings = get_settings()
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdLogFilter())
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(levelname)s:%(name)s:[%(request_id)s] %(message)s",
        handlers=[handler],
    )
    app = FastAPI(
        title="Derivatives Academy Course API",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.context = None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(learner_router, prefix="/api/v1")
    app.include_router(backoffice_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "academy"}

    return app


app = create_app()
