"""
Per-call context for tutorial operations.

The API builds one per request (sharing the request's ``X-Request-ID``),
the CLI one per command. Operations read the session and the dry-run flag
from it and tag their log lines with :meth:`OperationContext.log_fields`.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session


@dataclass
class OperationContext:
    """First argument of every function in :mod:`tutorial_stack.ops.tutorials`.

    Attributes:
        session: Open SQLAlchemy session; operations commit or roll back on it.
        caller: ``"api"``, ``"cli"`` or ``"test"``.
        dry_run: Writes validate and return a preview, but nothing is committed.
        request_id: Correlation id (auto-generated when not supplied).
        debug: Unexpected failures carry the exception text in their message.
    """

    session: Session
    caller: str = "sdk"
    dry_run: bool = False
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    debug: bool = False

    def log_fields(self) -> dict[str, Any]:
        return {"caller": self.caller, "request_id": self.request_id}
