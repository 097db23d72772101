"""SQLAlchemy engine factory and session helpers.

This module provides:

* ``create_stack_engine``    -- Create a SA engine from a database URL.
* ``StackSession``           -- Session with ``expire_on_commit=False``.
* ``stack_session_factory``  -- ``sessionmaker`` producing ``StackSession``.
* ``init_schema``            -- Create all tables that do not exist yet.

Tags:
    orm, sqlalchemy, session, engine
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tutorial_stack.core.orm.base import StackBase


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def create_stack_engine(
    url: str = "sqlite:///tutorials.db",
    *,
    echo: bool = False,
    pool_size: int | None = None,
    max_overflow: int | None = None,
    pool_timeout: int | None = None,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql+psycopg://…``).
    echo:
        If ``True``, log all SQL.
    pool_size, max_overflow, pool_timeout:
        Connection pool parameters (ignored for SQLite).
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if url.startswith("sqlite"):
        # request handlers run in a threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if _is_memory_sqlite(url):
            # one shared connection, otherwise each checkout sees an empty db
            kwargs.setdefault("poolclass", StaticPool)

        engine = _sa_create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
            cursor = dbapi_connection.cursor()
            if not _is_memory_sqlite(url):
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    pool_kwargs: dict[str, Any] = {"pool_pre_ping": True}
    if pool_size is not None:
        pool_kwargs["pool_size"] = pool_size
    if max_overflow is not None:
        pool_kwargs["max_overflow"] = max_overflow
    if pool_timeout is not None:
        pool_kwargs["pool_timeout"] = pool_timeout

    return _sa_create_engine(url, echo=echo, **pool_kwargs, **kwargs)


class StackSession(Session):
    """Pre-configured session with ``expire_on_commit=False``.

    Prevents lazy-load surprises when a committed row is serialised after
    the transaction ends.
    """

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def stack_session_factory(engine: Engine) -> sessionmaker[StackSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``StackSession`` instances."""
    return sessionmaker(bind=engine, class_=StackSession)


def init_schema(engine: Engine) -> list[str]:
    """Create any missing tables and return the names of all known tables."""
    from tutorial_stack.core.orm import tables  # noqa: F401  (registers mappers)

    StackBase.metadata.create_all(engine)
    return sorted(StackBase.metadata.tables)
