"""Table definitions.

Tags:
    orm, sqlalchemy, tables, tutorials
"""

from __future__ import annotations

from sqlalchemy import Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from tutorial_stack.core.orm.base import StackBase, TimestampMixin


class TutorialTable(TimestampMixin, StackBase):
    __tablename__ = "tutorials"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"TutorialTable(id={self.id!r}, title={self.title!r}, published={self.published!r})"
