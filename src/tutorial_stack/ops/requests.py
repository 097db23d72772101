"""
Typed request objects for tutorial operations.

Requests carry only transport-agnostic data: no raw HTTP bodies and no
Typer params. Validation of the *content* (blank titles, empty updates)
happens in :mod:`tutorial_stack.ops.tutorials`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CreateTutorialRequest:
    """Request for :func:`tutorial_stack.ops.tutorials.create_tutorial`."""

    title: str
    description: str = ""
    published: bool = False


@dataclass(frozen=True, slots=True)
class UpdateTutorialRequest:
    """Request for :func:`tutorial_stack.ops.tutorials.update_tutorial`.

    ``None`` means "leave unchanged"; only supplied fields are written.
    """

    title: str | None = None
    description: str | None = None
    published: bool | None = None

    def changes(self) -> dict[str, Any]:
        """The supplied fields as a column → value mapping."""
        pairs = {
            "title": self.title,
            "description": self.description,
            "published": self.published,
        }
        return {key: value for key, value in pairs.items() if value is not None}
