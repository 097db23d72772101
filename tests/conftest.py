"""
Shared pytest fixtures for tutorial-stack tests.

This module provides:
- An in-memory SQLite engine with the schema created
- A session and an ``OperationContext`` over it
- A ``TestClient`` for the API wired to the same engine

Usage:
    def test_something(ctx):
        result = create_tutorial(ctx, CreateTutorialRequest(title="x"))
"""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Ensure the package is importable without an editable install
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from tutorial_stack.api.app import create_app  # noqa: E402
from tutorial_stack.api.settings import TutorialsAPISettings  # noqa: E402
from tutorial_stack.core.orm import create_stack_engine, init_schema, stack_session_factory  # noqa: E402
from tutorial_stack.ops.context import OperationContext  # noqa: E402


# =============================================================================
# Database
# =============================================================================


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with every table created."""
    eng = create_stack_engine("sqlite://")
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session(engine: Engine) -> Generator[Session, None, None]:
    with stack_session_factory(engine)() as s:
        yield s


@pytest.fixture()
def ctx(session: Session) -> OperationContext:
    """Operation context for calling ops functions directly."""
    return OperationContext(session=session, caller="test")


# =============================================================================
# API
# =============================================================================


@pytest.fixture()
def api_settings() -> TutorialsAPISettings:
    return TutorialsAPISettings(database_url="sqlite://", log_level="WARNING")


@pytest.fixture()
def client(engine: Engine, api_settings: TutorialsAPISettings) -> Generator[TestClient, None, None]:
    """API client; the lifespan runs, so startup schema creation is exercised."""
    app = create_app(settings=api_settings, engine=engine)
    with TestClient(app) as c:
        yield c
