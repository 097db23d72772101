"""SQLAlchemy 2.0 ORM layer for tutorial-stack.

Modules
-------
base        StackBase (declarative base) + TimestampMixin
session     Engine factory, StackSession, session factory, schema init
tables      Mapped table classes (TutorialTable)

Tags:
    orm, sqlalchemy, declarative
"""

from __future__ import annotations

from tutorial_stack.core.orm.base import StackBase, TimestampMixin
from tutorial_stack.core.orm.session import (
    StackSession,
    create_stack_engine,
    init_schema,
    stack_session_factory,
)
from tutorial_stack.core.orm.tables import TutorialTable

__all__ = [
    "StackBase",
    "TimestampMixin",
    "create_stack_engine",
    "StackSession",
    "stack_session_factory",
    "init_schema",
    "TutorialTable",
]
