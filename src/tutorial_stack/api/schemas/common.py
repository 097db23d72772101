"""
Common API schemas - the success envelope and RFC 7807 errors.

Every endpoint returns either :class:`SuccessResponse` (2xx) or
:class:`ProblemDetail` (4xx/5xx).
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ── RFC 7807 Problem Detail ─────────────────────────────────────────────


class ErrorDetail(BaseModel):
    """Field-level error, used for request validation failures."""

    code: str = Field(description="Machine-readable error code (e.g., 'missing', 'bool_parsing')")
    message: str = Field(description="Human-readable error description")
    field: str | None = Field(default=None, description="Dotted path of the offending field")


class ProblemDetail(BaseModel):
    """RFC 7807 «Problem Details for HTTP APIs».

    Error Codes:
        - ``VALIDATION_FAILED`` (400): Invalid input data
        - ``NOT_FOUND`` (404): Tutorial does not exist
        - ``UNAVAILABLE`` (503): Database unreachable
        - ``INTERNAL`` (500): Unexpected server error

    Example:
        {
            "type": "about:blank",
            "title": "Tutorial '4f0c…' not found",
            "status": 404,
            "detail": "",
            "instance": "/api/tutorials/4f0c…",
            "errors": []
        }
    """

    type: str = Field(default="about:blank", description="Error type URI (usually 'about:blank')")
    title: str = Field(description="Short human-readable error summary")
    status: int = Field(description="HTTP status code")
    detail: str = Field(default="", description="Human-readable explanation of the error")
    instance: str = Field(default="", description="URI of the failing request")
    errors: list[ErrorDetail] = Field(
        default_factory=list,
        description="Field-level error details",
    )


# ── Success Envelope ────────────────────────────────────────────────────


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope: the payload lives under ``data``."""

    data: T = Field(description="Response payload (type varies by endpoint)")
    elapsed_ms: float = Field(default=0.0, description="Server-side processing time in milliseconds")
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings",
    )
