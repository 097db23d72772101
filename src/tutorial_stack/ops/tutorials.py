"""
Tutorial operations.

CRUD plus title search over the ``tutorials`` table, wired to the API
router and the ``tutorial-stack tutorials`` CLI group. Each write commits
its own transaction. Inside an operation, expected failures are raised as
:class:`~tutorial_stack.core.errors.StackError` subclasses; on the way out
the session is rolled back and the error becomes an ``OperationResult``
error code:

==============================  =====================  ======================
raised                          code                   when
==============================  =====================  ======================
``ValidationError``             ``VALIDATION_FAILED``  blank title, empty update
``NotFoundError``               ``NOT_FOUND``          unknown tutorial id
``DatabaseUnavailableError``    ``UNAVAILABLE``        ``OperationalError``
anything else                   ``INTERNAL``
==============================  =====================  ======================
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import OperationalError

from tutorial_stack.core.errors import (
    DatabaseUnavailableError,
    ErrorCategory,
    NotFoundError,
    StackError,
    ValidationError,
)
from tutorial_stack.core.logging import get_logger
from tutorial_stack.core.repository import TutorialRepository
from tutorial_stack.ops.context import OperationContext
from tutorial_stack.ops.requests import CreateTutorialRequest, UpdateTutorialRequest
from tutorial_stack.ops.responses import DeleteResult, TutorialSummary
from tutorial_stack.ops.result import ErrorCode, OperationResult, Stopwatch

logger = get_logger(__name__)

_CATEGORY_CODES: dict[ErrorCategory, ErrorCode] = {
    ErrorCategory.VALIDATION: ErrorCode.VALIDATION_FAILED,
    ErrorCategory.NOT_FOUND: ErrorCode.NOT_FOUND,
    ErrorCategory.DATABASE: ErrorCode.UNAVAILABLE,
}


def _repo(ctx: OperationContext) -> TutorialRepository:
    return TutorialRepository(ctx.session)


def _not_found(tutorial_id: str) -> NotFoundError:
    return NotFoundError(f"Tutorial '{tutorial_id}' not found").with_context(id=tutorial_id)


def _failure(ctx: OperationContext, action: str, exc: Exception, timer: Stopwatch) -> OperationResult[Any]:
    ctx.session.rollback()
    if isinstance(exc, OperationalError):
        logger.error("op_unavailable", action=action, error=str(exc.orig or exc), **ctx.log_fields())
        exc = DatabaseUnavailableError(f"Database unavailable while trying to {action}", cause=exc)
    if isinstance(exc, StackError):
        return OperationResult.fail(
            _CATEGORY_CODES.get(exc.category, ErrorCode.INTERNAL),
            exc.message,
            category=exc.category,
            details=exc.context.to_dict(),
            retryable=exc.retryable,
            elapsed_ms=timer.elapsed_ms,
        )
    logger.exception("op_failed", action=action, error=str(exc), **ctx.log_fields())
    return OperationResult.fail(
        ErrorCode.INTERNAL,
        f"Failed to {action}: {exc}" if ctx.debug else f"Failed to {action}",
        category=ErrorCategory.INTERNAL,
        elapsed_ms=timer.elapsed_ms,
    )


# ------------------------------------------------------------------ #
# Writes
# ------------------------------------------------------------------ #


def create_tutorial(
    ctx: OperationContext,
    request: CreateTutorialRequest,
) -> OperationResult[TutorialSummary]:
    """Store a new tutorial. ``published`` defaults to ``False``."""
    timer = Stopwatch()

    try:
        title = (request.title or "").strip()
        if not title:
            raise ValidationError("title must not be empty").with_context(field="title")

        if ctx.dry_run:
            return OperationResult.ok(
                TutorialSummary(id="", title=title, description=request.description, published=request.published),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        row = _repo(ctx).create(
            title=title,
            description=request.description,
            published=request.published,
        )
        ctx.session.commit()
        summary = TutorialSummary.from_row(row)
    except Exception as exc:
        return _failure(ctx, "create tutorial", exc, timer)

    logger.info("tutorial.created", tutorial_id=summary.id, **ctx.log_fields())
    return OperationResult.ok(summary, elapsed_ms=timer.elapsed_ms)


def update_tutorial(
    ctx: OperationContext,
    tutorial_id: str,
    request: UpdateTutorialRequest,
) -> OperationResult[TutorialSummary]:
    """Apply a partial update; fields left as ``None`` keep their value."""
    timer = Stopwatch()

    try:
        changes = request.changes()
        if not changes:
            raise ValidationError("update must set at least one field")
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError("title must not be empty").with_context(field="title")

        repo = _repo(ctx)
        if ctx.dry_run:
            row = repo.get(tutorial_id)
            if row is None:
                raise _not_found(tutorial_id)
            preview = {**TutorialSummary.from_row(row).to_dict(), **changes}
            return OperationResult.ok(
                TutorialSummary(**preview),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        row = repo.update(tutorial_id, changes)
        if row is None:
            raise _not_found(tutorial_id)
        ctx.session.commit()
        summary = TutorialSummary.from_row(row)
    except Exception as exc:
        return _failure(ctx, "update tutorial", exc, timer)

    logger.info("tutorial.updated", tutorial_id=tutorial_id, fields=sorted(changes), **ctx.log_fields())
    return OperationResult.ok(summary, elapsed_ms=timer.elapsed_ms)


def delete_tutorial(
    ctx: OperationContext,
    tutorial_id: str,
) -> OperationResult[DeleteResult]:
    """Delete one tutorial. Deleting an unknown id is ``NOT_FOUND``."""
    timer = Stopwatch()

    try:
        repo = _repo(ctx)
        if ctx.dry_run:
            if repo.get(tutorial_id) is None:
                raise _not_found(tutorial_id)
            return OperationResult.ok(
                DeleteResult(deleted=1, id=tutorial_id),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )

        if not repo.delete(tutorial_id):
            raise _not_found(tutorial_id)
        ctx.session.commit()
    except Exception as exc:
        return _failure(ctx, "delete tutorial", exc, timer)

    logger.info("tutorial.deleted", tutorial_id=tutorial_id, **ctx.log_fields())
    return OperationResult.ok(DeleteResult(deleted=1, id=tutorial_id), elapsed_ms=timer.elapsed_ms)

def delete_all_tutorials(ctx: OperationContext) -> OperationResult[DeleteResult]:
    """Delete every tutorial and report how many were removed."""
    timer = Stopwatch()

    try:
        repo = _repo(ctx)
        if ctx.dry_run:
            return OperationResult.ok(
                DeleteResult(deleted=repo.count()),
                elapsed_ms=timer.elapsed_ms,
                metadata={"dry_run": True},
            )
        removed = repo.delete_all()
        ctx.session.commit()
    except Exception as exc:
        return _failure(ctx, "delete tutorials", exc, timer)

    logger.info("tutorial.deleted_all", count=removed, **ctx.log_fields())
    return OperationResult.ok(DeleteResult(deleted=removed), elapsed_ms=timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Reads
# ------------------------------------------------------------------ #


def get_tutorial(
    ctx: OperationContext,
    tutorial_id: str,
) -> OperationResult[TutorialSummary]:
    """Get a single tutorial by id."""
    timer = Stopwatch()

    try:
        row = _repo(ctx).get(tutorial_id)
        if row is None:
            raise _not_found(tutorial_id)
        return OperationResult.ok(TutorialSummary.from_row(row), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return _failure(ctx, "get tutorial", exc, timer)


def list_tutorials(ctx: OperationContext) -> OperationResult[list[TutorialSummary]]:
    """All tutorials, oldest first."""
    timer = Stopwatch()

    try:
        rows = _repo(ctx).list_all()
        return OperationResult.ok(
            [TutorialSummary.from_row(r) for r in rows],
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return _failure(ctx, "list tutorials", exc, timer)


def search_tutorials(
    ctx: OperationContext,
    title: str,
) -> OperationResult[list[TutorialSummary]]:
    """Tutorials whose title contains *title* (case-insensitive)."""
    timer = Stopwatch()

    try:
        rows = _repo(ctx).search_title(title)
        return OperationResult.ok(
            [TutorialSummary.from_row(r) for r in rows],
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return _failure(ctx, "search tutorials", exc, timer)


def list_published(ctx: OperationContext) -> OperationResult[list[TutorialSummary]]:
    """Tutorials with ``published = true``."""
    timer = Stopwatch()

    try:
        rows = _repo(ctx).list_published()
        return OperationResult.ok(
            [TutorialSummary.from_row(r) for r in rows],
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        return _failure(ctx, "list published tutorials", exc, timer)
