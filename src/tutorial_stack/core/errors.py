"""
Structured error types for tutorial-stack.

Every failure the system knows about is a :class:`StackError` subclass that
carries a category, a retryable flag, structured context and an optional
chained cause. The API maps them to HTTP statuses, the CLI to exit codes,
and the pipeline to a ``FAILED`` run.

Hierarchy::

    StackError
    ├── ValidationError            (VALIDATION)  bad input to a CRUD operation
    ├── NotFoundError              (NOT_FOUND)   unknown tutorial id
    ├── DatabaseUnavailableError   (DATABASE)    engine unreachable, retryable
    ├── UpstreamUnavailableError   (NETWORK)     proxy origin down, retryable
    ├── ConfigError                (CONFIG)
    │   └── MissingConfigError
    └── PipelineError              (PIPELINE)
        ├── PipelineStateError     illegal state-machine transition
        ├── StepFailedError        a pipeline step did not succeed
        ├── CommandError           a subprocess exited non-zero / timed out
        └── ToolNotFoundError      docker / ssh missing from PATH

Nothing in the pipeline is retried automatically, so ``retryable`` is
informational: it tells an operator whether re-running is worth trying.

Tags:
    error-handling, exception-hierarchy, error-context
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Self


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    DATABASE = "DATABASE"
    NETWORK = "NETWORK"
    CONFIG = "CONFIG"
    PIPELINE = "PIPELINE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Only non-None fields end up in :meth:`to_dict`, so callers set what is
    relevant and nothing else. Never store secrets here; the dict is logged.
    """

    run_id: str | None = None
    step: str | None = None
    resource_id: str | None = None
    url: str | None = None
    command: str | None = None
    exit_code: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("run_id", "step", "resource_id", "url", "command", "exit_code"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class StackError(Exception):
    """Base exception for all tutorial-stack errors.

    Subclasses set ``default_category`` and ``default_retryable``; both can
    be overridden per instance.

    Example:
        >>> err = StackError("boom").with_context(run_id="abc")
        >>> err.context.run_id
        'abc'
        >>> err.to_dict()["category"]
        'INTERNAL'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> Self:
        """Add context to this error (fluent API)."""
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CRUD / service errors
# =============================================================================


class ValidationError(StackError):
    """Malformed input to a CRUD operation. Never retryable."""

    default_category = ErrorCategory.VALIDATION


class NotFoundError(StackError):
    """The requested tutorial does not exist."""

    default_category = ErrorCategory.NOT_FOUND


class DatabaseUnavailableError(StackError):
    """The database could not be reached."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class UpstreamUnavailableError(StackError):
    """A proxy origin refused the connection or timed out.

    ``timed_out`` separates a slow origin (504) from an unreachable one (502).
    """

    default_category = ErrorCategory.NETWORK
    default_retryable = True

    def __init__(self, message: str, *, timed_out: bool = False, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.timed_out = timed_out


# =============================================================================
# Configuration errors
# =============================================================================


class ConfigError(StackError):
    """Invalid configuration."""

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigError):
    """A required setting or secret was not supplied."""

    def __init__(self, name: str, **kwargs: Any):
        super().__init__(f"Missing required configuration: {name}", **kwargs)
        self.name = name


# =============================================================================
# Pipeline errors
# =============================================================================


class PipelineError(StackError):
    """Base for deployment pipeline failures."""

    default_category = ErrorCategory.PIPELINE


class PipelineStateError(PipelineError):
    """An illegal pipeline state transition was attempted."""


class StepFailedError(PipelineError):
    """A pipeline step did not complete successfully."""

    def __init__(self, step: str, message: str, **kwargs: Any):
        super().__init__(f"Step {step!r} failed: {message}", **kwargs)
        self.step = step
        self.context.step = step


class CommandError(PipelineError):
    """An external command exited non-zero or timed out."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        stdout: str = "",
        stderr: str = "",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.context.exit_code = exit_code


class ToolNotFoundError(PipelineError):
    """A required CLI tool (docker, ssh) is not on PATH."""


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "StackError",
    "ValidationError",
    "NotFoundError",
    "DatabaseUnavailableError",
    "UpstreamUnavailableError",
    "ConfigError",
    "MissingConfigError",
    "PipelineError",
    "PipelineStateError",
    "StepFailedError",
    "CommandError",
    "ToolNotFoundError",
]
