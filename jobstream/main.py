from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from jobstream.config.logging import get_logger, setup_logging
from jobstream.config.settings import Settings, settings as default_settings
from jobstream.v1.core.exceptions import (
    JobStreamException,
    RequestContextMiddleware,
    general_exception_handler,
    http_exception_handler,
    jobstream_exception_handler,
    request_validation_exception_handler,
)
from jobstream.v1.core.registries import transform_registry
from jobstream.v1.healthz import router as health_router
from jobstream.v1.jobs.routes import router as jobs_router
from jobstream.v1.notifications.routes import router as hub_router
from jobstream.v1.runtime import build_runtime

logger = get_logger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings

    # Initialize structured logging
    setup_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Built inside the running loop so queues and events bind to it
        runtime = build_runtime(settings)
        app.state.runtime = runtime
        await runtime.start()
        logger.info("Application started", environment=settings.environment)
        try:
            yield
        finally:
            await runtime.stop()
            logger.info("Application stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Queued string jobs with real-time progress streaming",
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
        # All endpoints will be under /v1/ prefix
        openapi_url="/v1/openapi.json" if settings.debug else None,
        docs_url="/v1/docs" if settings.debug else None,
        redoc_url="/v1/redoc" if settings.debug else None,
    )

    # Add middleware
    app.add_middleware(RequestContextMiddleware)

    # Add CORS middleware for development
    if settings.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # Add exception handlers
    app.add_exception_handler(JobStreamException, jobstream_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers with /v1 prefix
    app.include_router(health_router, prefix="/v1", tags=["health"])
    app.include_router(jobs_router, prefix="/v1")
    app.include_router(hub_router, prefix="/v1")

    # Freeze registries in non-development environments to prevent runtime modifications
    if settings.environment != "development":
        transform_registry.freeze()

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "jobstream.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )
