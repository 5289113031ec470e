"""
FastAPI application and composition root.

Builds the local store, the remote store and exactly one TasksRepository,
and hands the repository to request handlers through ``app.state``.
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional, Tuple

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from . import __version__
from .config import Settings, settings
from .data_sources import (
    HttpTasksRemoteDataSource,
    InMemoryTasksRemoteDataSource,
    SqlTasksLocalDataSource,
    TasksDataSource,
)
from .database import create_db_engine, create_session_factory, init_db
from .domain.exceptions import (
    InvalidArgumentException,
    StoreWriteException,
    TaskNotFoundException,
)
from .logging_config import configure_logging
from .metrics import metrics_response, track_request_metrics
from .repositories.tasks_repository import TasksRepository
from .routers import health_router, tasks_router

logger = structlog.get_logger(__name__)


def create_remote_data_source(app_settings: Settings) -> TasksDataSource:
    """Create the remote store selected by REMOTE_BACKEND."""
    if app_settings.REMOTE_BACKEND == "http":
        return HttpTasksRemoteDataSource(
            base_url=app_settings.REMOTE_BASE_URL,
            timeout=app_settings.REMOTE_TIMEOUT,
            cache_ttl_seconds=app_settings.REMOTE_CACHE_TTL_SECONDS,
        )
    return InMemoryTasksRemoteDataSource(latency_ms=app_settings.FAKE_REMOTE_LATENCY_MS)


def create_tasks_repository(app_settings: Settings) -> Tuple[TasksRepository, Engine]:
    """
    Create and configure the tasks repository with all dependencies.

    Args:
        app_settings: Application settings

    Returns:
        Tuple of (repository, database engine)
    """
    engine = create_db_engine(app_settings.DATABASE_URL)
    init_db(engine)

    local_data_source = SqlTasksLocalDataSource(create_session_factory(engine))
    remote_data_source = create_remote_data_source(app_settings)

    repository = TasksRepository(
        remote_data_source=remote_data_source,
        local_data_source=local_data_source,
        raise_on_write_failure=app_settings.RAISE_ON_WRITE_FAILURE,
    )
    return repository, engine


def create_app(
    app_settings: Optional[Settings] = None,
    repository: Optional[TasksRepository] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to the environment settings)
        repository: Prebuilt repository; when given, the lifespan does not
            build stores of its own

    Returns:
        Configured FastAPI application
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging(app_settings.LOG_LEVEL, app_settings.LOG_JSON)
        logger.info("Starting tasks service", version=__version__)

        engine = None
        if repository is None:
            try:
                app.state.tasks_repository, engine = create_tasks_repository(app_settings)
                logger.info(
                    "Tasks repository initialized",
                    remote_backend=app_settings.REMOTE_BACKEND,
                )
            except Exception as e:
                logger.error("Failed to initialize tasks repository", error=str(e))
                raise

        yield

        logger.info("Shutting down tasks service...")
        remote = app.state.tasks_repository.remote_data_source
        if isinstance(remote, HttpTasksRemoteDataSource):
            await remote.close()
        if engine is not None:
            engine.dispose()
        logger.info("Tasks service shut down complete")

    app = FastAPI(
        title="Tasks Service",
        description="To-do tasks repository over a local and a remote store",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        openapi_url="/api/openapi.json",
    )
    if repository is not None:
        app.state.tasks_repository = repository

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Add request ID for log correlation."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def track_metrics(request: Request, call_next):
        """Track Prometheus metrics."""
        start_time = time.time()
        response = await call_next(request)
        track_request_metrics(
            request.method, request.url.path, response.status_code, time.time() - start_time
        )
        return response

    app.include_router(tasks_router.router)
    app.include_router(health_router.router)

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return metrics_response()

    @app.exception_handler(TaskNotFoundException)
    async def task_not_found_handler(request: Request, exc: TaskNotFoundException):
        return JSONResponse(
            status_code=404,
            content={"error": "task_not_found", "message": exc.message},
        )

    @app.exception_handler(InvalidArgumentException)
    async def invalid_argument_handler(request: Request, exc: InvalidArgumentException):
        return JSONResponse(
            status_code=422,
            content={"error": "invalid_argument", "message": exc.message},
        )

    @app.exception_handler(StoreWriteException)
    async def store_write_handler(request: Request, exc: StoreWriteException):
        logger.warning("Write not applied to every store", **exc.details)
        return JSONResponse(
            status_code=502,
            content={"error": "store_write_failed", "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("todo_tasks.app:app", host="0.0.0.0", port=8000, log_level="info")
