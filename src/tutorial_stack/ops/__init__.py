"""
Operations layer: the tutorial business logic shared by the API and the CLI.

- All functions accept ``OperationContext`` as first argument
- All functions return ``OperationResult[T]`` (never raise)
- All functions are transport-agnostic (no HTTP, no CLI knowledge)

Usage::

    from tutorial_stack.ops import OperationContext
    from tutorial_stack.ops.requests import CreateTutorialRequest
    from tutorial_stack.ops.tutorials import create_tutorial

    with session_factory() as session:
        ctx = OperationContext(session=session, caller="cli")
        result = create_tutorial(ctx, CreateTutorialRequest(title="Intro"))
        assert result.success
"""

from tutorial_stack.ops.context import OperationContext
from tutorial_stack.ops.result import ErrorCode, OperationError, OperationResult

__all__ = [
    "OperationContext",
    "ErrorCode",
    "OperationError",
    "OperationResult",
]
