"""Result models and state machine for pipeline runs.

Pydantic v2 models so a finished run can be written with
``model_dump_json(indent=2)`` and read back with ``model_validate_json()``
(see :mod:`tutorial_stack.deploy.ledger`).

State machine::

    IDLE -> TRIGGERED -> BUILDING -> PUBLISHING -> DEPLOYING -> COMPLETE
                            |            |             |
                            +------------+-------------+--> FAILED

:meth:`PipelineRunResult.advance` is the only way the state changes; an
edge not in :data:`TRANSITIONS` raises
:class:`~tutorial_stack.core.errors.PipelineStateError`.

Tags:
    results, models, pydantic, pipeline, state-machine
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from tutorial_stack.core.errors import PipelineStateError


def _now() -> str:
    return datetime.now(UTC).isoformat()


class PipelineState(str, Enum):
    """Lifecycle state of one pipeline run."""

    IDLE = "IDLE"
    TRIGGERED = "TRIGGERED"
    BUILDING = "BUILDING"
    PUBLISHING = "PUBLISHING"
    DEPLOYING = "DEPLOYING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.TRIGGERED}),
    PipelineState.TRIGGERED: frozenset({PipelineState.BUILDING}),
    PipelineState.BUILDING: frozenset({PipelineState.PUBLISHING, PipelineState.FAILED}),
    PipelineState.PUBLISHING: frozenset({PipelineState.DEPLOYING, PipelineState.FAILED}),
    PipelineState.DEPLOYING: frozenset({PipelineState.COMPLETE, PipelineState.FAILED}),
    PipelineState.COMPLETE: frozenset(),
    PipelineState.FAILED: frozenset(),
}

TERMINAL_STATES = frozenset({PipelineState.COMPLETE, PipelineState.FAILED})


class StepStatus(str, Enum):
    """Outcome of one pipeline step."""

    PENDING = "PENDING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class StepResult(BaseModel):
    """One step of a run: what ran, how it ended, and its output tail."""

    name: str
    phase: PipelineState
    status: StepStatus = StepStatus.PENDING
    command: str | None = None
    exit_code: int | None = None
    started_at: str | None = None
    completed_at: str | None = None
    duration_seconds: float = 0.0
    stdout: str = ""
    stderr: str = ""
    error: str | None = None


class StateChange(BaseModel):
    state: PipelineState
    at: str = Field(default_factory=_now)


class PipelineRunResult(BaseModel):
    """Everything known about one pipeline run."""

    run_id: str
    branch: str
    commit: str | None = None
    state: PipelineState = PipelineState.IDLE
    steps: list[StepResult] = Field(default_factory=list)
    failed_step: str | None = None
    error: str | None = None
    state_history: list[StateChange] = Field(default_factory=list)
    started_at: str = Field(default_factory=_now)
    completed_at: str | None = None
    duration_seconds: float = 0.0
    dry_run: bool = False
    summary: str = ""

    def advance(self, new_state: PipelineState) -> None:
        """Move to *new_state*, or raise if the edge is not allowed."""
        if new_state not in TRANSITIONS[self.state]:
            raise PipelineStateError(
                f"Illegal pipeline transition {self.state.value} -> {new_state.value}"
            ).with_context(run_id=self.run_id)
        self.state = new_state
        self.state_history.append(StateChange(state=new_state))

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.COMPLETE

    def step(self, name: str) -> StepResult:
        for step in self.steps:
            if step.name == name:
                return step
        raise KeyError(name)

    def mark_complete(self) -> None:
        """Finalize timestamps, duration and summary."""
        self.completed_at = _now()
        start = datetime.fromisoformat(self.started_at)
        end = datetime.fromisoformat(self.completed_at)
        self.duration_seconds = round((end - start).total_seconds(), 3)

        counts: dict[str, int] = {}
        for step in self.steps:
            counts[step.status.value] = counts.get(step.status.value, 0) + 1
        parts = [f"{count} {status.lower()}" for status, count in counts.items()]
        self.summary = f"{self.state.value}: " + ", ".join(parts)
        if self.failed_step:
            self.summary += f" (failed at {self.failed_step})"


__all__ = [
    "PipelineState",
    "TRANSITIONS",
    "TERMINAL_STATES",
    "StepStatus",
    "StepResult",
    "StateChange",
    "PipelineRunResult",
]
