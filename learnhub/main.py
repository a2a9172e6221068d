"""LearnHub API application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from learnhub.config import get_settings
from learnhub.core.database import CassandraStore
from learnhub.core.errors import register_exception_handlers
from learnhub.core.logging import configure_structlog, get_logger
from learnhub.core.middleware import RequestContextMiddleware
from learnhub.courses.router import router as courses_router
from learnhub.health import router as health_router
from learnhub.progress.repository import CourseRepository
from learnhub.progress.router import router as progress_router
from learnhub.progress.service import ProgressService


settings = get_settings()
configure_structlog(settings)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Connect to Cassandra and wire the progress service.

    Without a database the API still starts; progress endpoints answer 503
    and the readiness probe reports "degraded".
    """
    logger.info(
        "starting_application",
        version=settings.app_version,
        environment=settings.environment,
    )

    store = CassandraStore(settings)
    app.state.progress_service = None
    try:
        session = await store.open()
    except Exception as e:
        logger.warning("database_init_skipped", error=str(e))
    else:
        app.state.progress_service = ProgressService(
            repository=CourseRepository(session, settings.cassandra_keyspace),
            max_write_retries=settings.progress_max_write_retries,
            certificate_issuer_name=settings.certificate_issuer_name,
        )

    yield

    logger.info("shutting_down_application")
    store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    docs_enabled = settings.is_development
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course progress and certificate API",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if docs_enabled else None,
        redoc_url=None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )
    register_exception_handlers(app)

    for router in (health_router, courses_router, progress_router):
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        return {
            "message": "LearnHub API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
