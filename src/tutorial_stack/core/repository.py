"""Tutorial repository: the only code that issues queries against ``tutorials``.

Operations in :mod:`tutorial_stack.ops.tutorials` never build SQL
themselves; they go through :class:`TutorialRepository`, which wraps a
SQLAlchemy session and returns mapped :class:`TutorialTable` rows.

The repository flushes but does not commit. Committing is the caller's
decision (one transaction per operation).

Tags:
    repository, sqlalchemy, tutorials
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from tutorial_stack.core.orm.tables import TutorialTable


def new_tutorial_id() -> str:
    """Return a fresh 32-character hex id."""
    return uuid.uuid4().hex


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class TutorialRepository:
    """CRUD for the ``tutorials`` table."""

    UPDATABLE_FIELDS = ("title", "description", "published")

    def __init__(self, session: Session):
        self.session = session

    # -- reads -----------------------------------------------------------------

    def list_all(self) -> Sequence[TutorialTable]:
        """All tutorials, oldest first."""
        stmt = select(TutorialTable).order_by(TutorialTable.created_at, TutorialTable.id)
        return self.session.scalars(stmt).all()

    def search_title(self, fragment: str) -> Sequence[TutorialTable]:
        """Tutorials whose title contains *fragment*, ignoring case."""
        pattern = f"%{_escape_like(fragment)}%"
        stmt = (
            select(TutorialTable)
            .where(TutorialTable.title.ilike(pattern, escape="\\"))
            .order_by(TutorialTable.created_at, TutorialTable.id)
        )
        return self.session.scalars(stmt).all()

    def list_published(self) -> Sequence[TutorialTable]:
        stmt = (
            select(TutorialTable)
            .where(TutorialTable.published.is_(True))
            .order_by(TutorialTable.created_at, TutorialTable.id)
        )
        return self.session.scalars(stmt).all()

    def get(self, tutorial_id: str) -> TutorialTable | None:
        return self.session.get(TutorialTable, tutorial_id)

    def count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(TutorialTable)) or 0

    # -- writes ----------------------------------------------------------------

    def create(self, *, title: str, description: str = "", published: bool = False) -> TutorialTable:
        """Insert a tutorial and return the flushed row (id and timestamps populated)."""
        row = TutorialTable(
            id=new_tutorial_id(),
            title=title,
            description=description,
            published=published,
        )
        self.session.add(row)
        self.session.flush()
        return row

    def update(self, tutorial_id: str, changes: dict[str, Any]) -> TutorialTable | None:
        """Apply *changes* in place. Returns ``None`` when the id is unknown.

        Keys outside :attr:`UPDATABLE_FIELDS` are ignored.
        """
        row = self.get(tutorial_id)
        if row is None:
            return None
        for key, value in changes.items():
            if key in self.UPDATABLE_FIELDS:
                setattr(row, key, value)
        self.session.flush()
        return row

    def delete(self, tutorial_id: str) -> bool:
        """Delete one tutorial. Returns ``False`` when the id is unknown."""
        row = self.get(tutorial_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def delete_all(self) -> int:
        """Delete every tutorial and return how many were removed."""
        result = self.session.execute(delete(TutorialTable))
        return result.rowcount or 0


__all__ = ["TutorialRepository", "new_tutorial_id"]
