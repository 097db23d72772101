"""
Tutorials router - CRUD and title search.

Endpoints:
    POST   /tutorials               Create a tutorial (201)
    GET    /tutorials               List all; ``?title=`` searches by title
    GET    /tutorials/published     List published tutorials
    GET    /tutorials/{id}          Get one tutorial
    PUT    /tutorials/{id}          Partial update
    DELETE /tutorials/{id}          Delete one tutorial
    DELETE /tutorials               Delete every tutorial

All successful responses use the ``{"data": ...}`` envelope; failures are
Problem Details with the status from the ops error code.
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Query, Request
from pydantic import BaseModel, Field

from tutorial_stack.api.deps import OpContext
from tutorial_stack.api.schemas.common import SuccessResponse
from tutorial_stack.api.utils import _dc, _handle_error
from tutorial_stack.ops import tutorials as ops
from tutorial_stack.ops.requests import CreateTutorialRequest, UpdateTutorialRequest

router = APIRouter(prefix="/tutorials")


# ------------------------------------------------------------------ #
# Pydantic Schemas
# ------------------------------------------------------------------ #


class TutorialSchema(BaseModel):
    """Tutorial representation."""

    id: str
    title: str
    description: str = ""
    published: bool = False
    created_at: str | None = None
    updated_at: str | None = None


class TutorialCreateBody(BaseModel):
    """Request body for creating a tutorial."""

    title: str = Field(..., description="Tutorial title (required, non-blank)")
    description: str = Field(default="", description="Free-form description")
    published: bool = Field(default=False, description="Whether the tutorial is published")


class TutorialUpdateBody(BaseModel):
    """Request body for a partial update. Omitted fields are left unchanged."""

    title: str | None = Field(default=None, description="New title")
    description: str | None = Field(default=None, description="New description")
    published: bool | None = Field(default=None, description="New published flag")


class DeleteSchema(BaseModel):
    id: str | None = None
    deleted: bool | int


# ------------------------------------------------------------------ #
# Collection
# ------------------------------------------------------------------ #


@router.post("", status_code=201, response_model=SuccessResponse[TutorialSchema])
def create_tutorial(ctx: OpContext, body: TutorialCreateBody, request: Request):
    """Create a tutorial. ``published`` defaults to ``false``."""
    result = ops.create_tutorial(
        ctx,
        CreateTutorialRequest(
            title=body.title,
            description=body.description,
            published=body.published,
        ),
    )
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.get("", response_model=SuccessResponse[list[TutorialSchema]])
def list_tutorials(
    ctx: OpContext,
    request: Request,
    title: str | None = Query(None, description="Case-insensitive substring of the title"),
):
    """List tutorials, optionally filtered by a title substring."""
    if title is not None:
        result = ops.search_tutorials(ctx, title)
    else:
        result = ops.list_tutorials(ctx)
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=[_dc(t) for t in result.data or []], elapsed_ms=result.elapsed_ms)


@router.delete("", response_model=SuccessResponse[DeleteSchema])
def delete_all_tutorials(ctx: OpContext, request: Request):
    """Delete every tutorial. Returns how many were removed."""
    result = ops.delete_all_tutorials(ctx)
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.get("/published", response_model=SuccessResponse[list[TutorialSchema]])
def list_published(ctx: OpContext, request: Request):
    """List tutorials whose ``published`` flag is set."""
    result = ops.list_published(ctx)
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=[_dc(t) for t in result.data or []], elapsed_ms=result.elapsed_ms)


# ------------------------------------------------------------------ #
# Item
# ------------------------------------------------------------------ #


@router.get("/{tutorial_id}", response_model=SuccessResponse[TutorialSchema])
def get_tutorial(
    ctx: OpContext,
    request: Request,
    tutorial_id: str = Path(..., description="Tutorial ID"),
):
    """Get one tutorial."""
    result = ops.get_tutorial(ctx, tutorial_id)
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.put("/{tutorial_id}", response_model=SuccessResponse[TutorialSchema])
def update_tutorial(
    ctx: OpContext,
    body: TutorialUpdateBody,
    request: Request,
    tutorial_id: str = Path(..., description="Tutorial ID"),
):
    """Update the supplied fields of one tutorial."""
    result = ops.update_tutorial(
        ctx,
        tutorial_id,
        UpdateTutorialRequest(
            title=body.title,
            description=body.description,
            published=body.published,
        ),
    )
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/{tutorial_id}", response_model=SuccessResponse[DeleteSchema])
def delete_tutorial(
    ctx: OpContext,
    request: Request,
    tutorial_id: str = Path(..., description="Tutorial ID"),
):
    """Delete one tutorial. A second delete of the same id is a 404."""
    result = ops.delete_tutorial(ctx, tutorial_id)
    if not result.success:
        return _handle_error(result, request.url.path)
    return SuccessResponse(data=_dc(result.data), elapsed_ms=result.elapsed_ms)
