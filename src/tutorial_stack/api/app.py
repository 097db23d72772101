"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, and
lifespan events into a single ``FastAPI`` instance. It is the only place
that touches ``FastAPI`` directly.

Tags:
    api, app-factory, composition-root, FastAPI
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from starlette.concurrency import run_in_threadpool

from tutorial_stack.api.deps import get_settings
from tutorial_stack.api.middleware.errors import (
    operational_error_handler,
    stack_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from tutorial_stack.api.middleware.request_id import RequestIDMiddleware
from tutorial_stack.api.middleware.timing import TimingMiddleware
from tutorial_stack.api.settings import TutorialsAPISettings
from tutorial_stack.core.errors import StackError
from tutorial_stack.core.health import HealthCheck, create_health_router
from tutorial_stack.core.logging import get_logger
from tutorial_stack.core.orm import create_stack_engine, init_schema, stack_session_factory
from tutorial_stack.deploy.ledger import PipelineLedger
from tutorial_stack.deploy.trigger import PipelineCoordinator

log = get_logger("tutorial_stack.api")


def _ensure_schema(app: FastAPI) -> None:
    if not app.state.schema_ready:
        tables = init_schema(app.state.engine)
        app.state.schema_ready = True
        log.info("database.initialized", backend=app.state.engine.dialect.name, tables=tables)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - create tables on startup, dispose the pool on shutdown."""
    log.info("api.starting", version=app.version)
    try:
        await run_in_threadpool(_ensure_schema, app)
    except OperationalError as exc:
        # readiness stays red and retries until the database is reachable
        log.error("database.init_failed", error=str(exc.orig or exc))

    yield

    if app.state.owns_engine:
        app.state.engine.dispose()
    log.info("api.stopped")


def _database_check(app: FastAPI) -> HealthCheck:
    def _probe() -> bool:
        _ensure_schema(app)
        with app.state.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    async def check() -> bool:
        return await run_in_threadpool(_probe)

    return HealthCheck("database", check, required=True, timeout_s=3.0)


def _pipeline_coordinator() -> tuple[PipelineCoordinator, PipelineLedger]:
    from tutorial_stack.deploy.config import PipelineConfig, PipelineSecrets
    from tutorial_stack.deploy.pipeline import pipeline_for_events

    config = PipelineConfig.from_env()
    ledger = PipelineLedger(config.output_dir)
    run = pipeline_for_events(config, PipelineSecrets.from_env(), ledger=ledger)
    return PipelineCoordinator(run, branch=config.branch), ledger


def create_app(
    *,
    settings: TutorialsAPISettings | None = None,
    engine: Engine | None = None,
    coordinator: PipelineCoordinator | None = None,
    ledger: PipelineLedger | None = None,
) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings
        Override settings (useful for testing). When ``None`` the cached
        singleton from :func:`get_settings` is used.
    engine
        Use this engine instead of one built from ``settings.database_url``.
        An engine passed in is not disposed on shutdown.
    coordinator, ledger
        Pipeline webhook collaborators; built from the environment when the
        webhook is enabled and these are omitted.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=None,
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    app.state.owns_engine = engine is None
    app.state.engine = engine or create_stack_engine(settings.database_url, echo=settings.database_echo)
    app.state.session_factory = stack_session_factory(app.state.engine)
    app.state.schema_ready = False

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StackError, stack_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from tutorial_stack.api.routers import tutorials

    prefix = settings.api_prefix

    # Health endpoints at root level (no prefix) for container healthchecks
    app.include_router(
        create_health_router(
            "tutorials-api",
            version=settings.api_version,
            checks=[_database_check(app)],
        ),
    )
    app.include_router(tutorials.router, prefix=prefix, tags=["tutorials"])

    if settings.pipeline_webhook_enabled:
        from tutorial_stack.api.routers import pipeline

        if coordinator is None or ledger is None:
            built_coordinator, built_ledger = _pipeline_coordinator()
            coordinator = coordinator or built_coordinator
            ledger = ledger or built_ledger
        app.state.pipeline_coordinator = coordinator
        app.state.pipeline_ledger = ledger
        app.include_router(pipeline.router, prefix=prefix, tags=["pipeline"])

    return app
