"""
Shared API router utilities.

- ``_dc()`` - convert a dataclass or dict to a plain dict
- ``_handle_error()`` - convert a failed OperationResult to a ``problem_response``
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi.responses import JSONResponse

from tutorial_stack.api.middleware.errors import problem_response, status_for_error_code
from tutorial_stack.ops.result import OperationResult


def _dc(obj: Any) -> dict[str, Any]:
    """Convert a dataclass (or dict) to a plain dict.

    Returns an empty dict for objects that are neither dataclasses nor dicts.
    """
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _handle_error(result: OperationResult[Any], instance: str = "") -> JSONResponse:
    """Convert a failed ``OperationResult`` into a Problem Details response.

    The error code picks the HTTP status; the error message is the title.
    """
    code = result.error.code if result.error else "INTERNAL"
    return problem_response(
        status=status_for_error_code(code),
        title=result.error.message if result.error else "Operation failed",
        detail=code,
        instance=instance,
    )
