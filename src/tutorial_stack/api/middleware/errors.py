"""
Error handling - maps ops-layer codes and exceptions to RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from tutorial_stack.api.schemas.common import ErrorDetail, ProblemDetail
from tutorial_stack.core.errors import ErrorCategory, StackError
from tutorial_stack.core.logging import get_logger
from tutorial_stack.ops.result import ErrorCode

logger = get_logger(__name__)

# ── Error code → HTTP status mapping ─────────────────────────────────────

ERROR_CODE_TO_STATUS: dict[str, int] = {
    ErrorCode.VALIDATION_FAILED: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.UNAVAILABLE: 503,
    ErrorCode.INTERNAL: 500,
}

CATEGORY_TO_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.DATABASE: 503,
    ErrorCategory.NETWORK: 502,
}


def status_for_error_code(code: str) -> int:
    """Resolve an ops error code to HTTP status, defaulting to 500."""
    return ERROR_CODE_TO_STATUS.get(code, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
    )
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and params are 400, not FastAPI's default 422."""
    errors = [
        {
            "code": err.get("type", "invalid"),
            "message": err.get("msg", ""),
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body") or None,
        }
        for err in exc.errors()
    ]
    return problem_response(
        status=400,
        title="Request validation failed",
        detail=f"{len(errors)} invalid field(s)",
        instance=str(request.url.path),
        errors=errors,
    )


async def stack_error_handler(request: Request, exc: StackError) -> JSONResponse:
    """Typed errors that escape a route: status from the error category."""
    status = CATEGORY_TO_STATUS.get(exc.category, 500)
    logger.warning("request.stack_error", status=status, **exc.to_dict())
    return problem_response(status=status, title=exc.message, instance=str(request.url.path))


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """Database unreachable outside the ops layer (e.g. session checkout)."""
    logger.error("request.database_unavailable", error=str(exc.orig or exc))
    return problem_response(
        status=503,
        title="Database unavailable",
        instance=str(request.url.path),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions - returns 500 with ProblemDetail."""
    logger.error("request.unhandled", error=str(exc), exc_info=exc)
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url),
    )
