"""
What every tutorial operation returns.

Operations never raise for expected failures. They return an
:class:`OperationResult` whose ``error.code`` is one of :class:`ErrorCode`;
the API maps the code to an HTTP status and the CLI to exit code 1.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from tutorial_stack.core.errors import ErrorCategory

T = TypeVar("T")


class ErrorCode(str, Enum):
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    UNAVAILABLE = "UNAVAILABLE"
    INTERNAL = "INTERNAL"


@dataclass(frozen=True, slots=True)
class OperationError:
    """Why an operation failed.

    ``details`` carries machine-readable extras such as the offending
    field or tutorial id.
    """

    code: str
    message: str
    category: ErrorCategory | None = None
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False


@dataclass
class OperationResult(Generic[T]):
    """Success with ``data`` or failure with ``error``; build with :meth:`ok` / :meth:`fail`."""

    success: bool
    data: T | None = None
    error: OperationError | None = None
    warnings: list[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(
        cls,
        data: T,
        *,
        elapsed_ms: float = 0.0,
        metadata: dict[str, Any] | None = None,
        warnings: list[str] | None = None,
    ) -> OperationResult[T]:
        return cls(True, data, None, list(warnings or []), elapsed_ms, dict(metadata or {}))

    @classmethod
    def fail(
        cls,
        code: ErrorCode | str,
        message: str,
        *,
        category: ErrorCategory | None = None,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        elapsed_ms: float = 0.0,
    ) -> OperationResult[T]:
        code = code.value if isinstance(code, ErrorCode) else code
        error = OperationError(code, message, category, dict(details or {}), retryable)
        return cls(False, None, error, [], elapsed_ms)

    @property
    def dry_run(self) -> bool:
        return bool(self.metadata.get("dry_run"))

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form for ``--json`` output. Empty fields are omitted."""
        out: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            error: dict[str, Any] = {
                "code": self.error.code,
                "message": self.error.message,
                "retryable": self.error.retryable,
            }
            if self.error.details:
                error["details"] = self.error.details
            out["error"] = error
        if self.warnings:
            out["warnings"] = self.warnings
        if self.elapsed_ms:
            out["elapsed_ms"] = round(self.elapsed_ms, 2)
        return out


class Stopwatch:
    """Wall-clock timer for one operation call."""

    __slots__ = ("_started",)

    def __init__(self) -> None:
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._started) * 1000
