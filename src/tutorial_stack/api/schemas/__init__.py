"""Response envelopes shared by every router."""

from tutorial_stack.api.schemas.common import ErrorDetail, ProblemDetail, SuccessResponse

__all__ = ["ErrorDetail", "ProblemDetail", "SuccessResponse"]
