"""
Typed response objects for tutorial operations.

Responses carry only domain data: no HTTP status codes and no CLI
formatting.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from tutorial_stack.core.orm.tables import TutorialTable


@dataclass(frozen=True, slots=True)
class TutorialSummary:
    """A tutorial as returned to API and CLI callers."""

    id: str
    title: str
    description: str = ""
    published: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_row(cls, row: TutorialTable) -> TutorialSummary:
        return cls(
            id=row.id,
            title=row.title,
            description=row.description,
            published=row.published,
            created_at=row.created_at.isoformat() if row.created_at else None,
            updated_at=row.updated_at.isoformat() if row.updated_at else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class DeleteResult:
    """Result payload for single and bulk deletes."""

    deleted: int
    id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.id is not None:
            return {"id": self.id, "deleted": self.deleted > 0}
        return {"deleted": self.deleted}
