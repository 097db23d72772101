"""
FastAPI dependency injection - shared singletons and per-request factories.

Usage in routers::

    from tutorial_stack.api.deps import OpContext

    @router.get("/tutorials")
    def list_tutorials(ctx: OpContext):
        ...

The engine and session factory live on ``app.state`` (built by
:func:`tutorial_stack.api.app.create_app`); each request gets its own
session, closed when the response is sent.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from tutorial_stack.api.settings import TutorialsAPISettings
from tutorial_stack.ops.context import OperationContext

# ── Settings (singleton) ─────────────────────────────────────────────────


@lru_cache(maxsize=1)
def get_settings() -> TutorialsAPISettings:
    """Cached settings - loaded once per process."""
    return TutorialsAPISettings()


# ── Database session (per-request) ───────────────────────────────────────


def get_session(request: Request) -> Generator[Session, None, None]:
    """Yield a session for the request lifespan."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


# ── Operation context (per-request) ──────────────────────────────────────


def get_operation_context(
    request: Request,
    session: Annotated[Session, Depends(get_session)],
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request."""
    request_id = getattr(request.state, "request_id", str(uuid.uuid4()))
    return OperationContext(
        session=session,
        request_id=request_id,
        caller="api",
        debug=request.app.state.settings.debug,
    )


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[TutorialsAPISettings, Depends(get_settings)]
DbSession = Annotated[Session, Depends(get_session)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
