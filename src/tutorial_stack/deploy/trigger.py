"""Push events and single-flight scheduling of pipeline runs.

Only pushes to the configured branch trigger a run. Runs never overlap:
:class:`PipelineCoordinator` keeps at most one run active and at most one
trigger pending. A push that arrives while a run is active becomes the
pending trigger, replacing any older pending one, so after a burst of
pushes only the newest commit is deployed next. Active runs are never
cancelled.

Tags:
    trigger, webhook, coordinator, concurrency, coalescing
"""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel

from tutorial_stack.core.logging import get_logger
from tutorial_stack.deploy.results import PipelineRunResult

logger = get_logger(__name__)

_BRANCH_PREFIX = "refs/heads/"


class PushEvent(BaseModel):
    """A push to a git ref."""

    ref: str
    commit: str | None = None
    repository: str | None = None
    pusher: str | None = None

    @property
    def branch(self) -> str | None:
        """Branch name for ``refs/heads/*`` refs; ``None`` for tags."""
        if self.ref.startswith(_BRANCH_PREFIX):
            return self.ref[len(_BRANCH_PREFIX):]
        if self.ref.startswith("refs/"):
            return None
        return self.ref

    @classmethod
    def from_github(cls, payload: dict[str, Any]) -> PushEvent:
        """Build from a GitHub ``push`` webhook payload.

        Raises
        ------
        ValueError
            ``repository`` or ``pusher`` is not an object, or a field has
            the wrong type (pydantic's ``ValidationError`` is a ``ValueError``).
        """
        repo = payload.get("repository") or {}
        pusher = payload.get("pusher") or {}
        for key, value in (("repository", repo), ("pusher", pusher)):
            if not isinstance(value, dict):
                raise ValueError(f"'{key}' must be an object, got {type(value).__name__}")
        return cls(
            ref=payload.get("ref", ""),
            commit=payload.get("after"),
            repository=repo.get("full_name"),
            pusher=pusher.get("name"),
        )


class TriggerDecision(str, Enum):
    """What :meth:`PipelineCoordinator.submit` did with an event."""

    IGNORED = "ignored"
    STARTED = "started"
    QUEUED = "queued"
    REPLACED = "replaced"


class PipelineCoordinator:
    """Runs the pipeline for push events, one at a time, coalescing the backlog.

    Parameters
    ----------
    run_pipeline
        ``run(commit) -> PipelineRunResult``; see
        :func:`tutorial_stack.deploy.pipeline.pipeline_for_events`.
    branch
        The branch whose pushes deploy.
    history_size
        How many finished results :attr:`history` keeps.
    """

    def __init__(
        self,
        run_pipeline: Callable[[str | None], PipelineRunResult],
        branch: str = "main",
        history_size: int = 50,
    ) -> None:
        self._run_pipeline = run_pipeline
        self.branch = branch
        self._lock = threading.Lock()
        self._active: PushEvent | None = None
        self._pending: PushEvent | None = None
        self._worker: threading.Thread | None = None
        self._history: deque[PipelineRunResult] = deque(maxlen=history_size)

    def submit(self, event: PushEvent) -> TriggerDecision:
        """Start, queue, or ignore *event*. Never blocks on a running pipeline."""
        if event.branch != self.branch:
            logger.info("trigger.ignored", ref=event.ref, branch=self.branch)
            return TriggerDecision.IGNORED

        with self._lock:
            if self._active is not None:
                decision = TriggerDecision.REPLACED if self._pending is not None else TriggerDecision.QUEUED
                self._pending = event
                logger.info("trigger.coalesced", decision=decision.value, commit=event.commit)
                return decision
            self._active = event
            self._worker = threading.Thread(
                target=self._drain,
                name="tutorial-stack-pipeline",
                daemon=True,
            )
            self._worker.start()

        logger.info("trigger.started", commit=event.commit)
        return TriggerDecision.STARTED

    def _drain(self) -> None:
        while True:
            with self._lock:
                event = self._active
            if event is None:
                return
            try:
                result = self._run_pipeline(event.commit)
            except Exception:
                # keep draining; a crashed run must not wedge the coordinator
                logger.exception("trigger.run_crashed", commit=event.commit)
            else:
                with self._lock:
                    self._history.append(result)
            with self._lock:
                self._active, self._pending = self._pending, None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._active is not None

    def status(self) -> dict[str, Any]:
        with self._lock:
            return {
                "branch": self.branch,
                "active_commit": self._active.commit if self._active else None,
                "pending_commit": self._pending.commit if self._pending else None,
                "completed_runs": len(self._history),
            }

    @property
    def history(self) -> list[PipelineRunResult]:
        """Finished results, oldest first."""
        with self._lock:
            return list(self._history)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no run is active or pending. Returns ``False`` on timeout."""
        with self._lock:
            worker = self._worker
        if worker is None:
            return True
        worker.join(timeout)
        return not worker.is_alive()


__all__ = ["PushEvent", "TriggerDecision", "PipelineCoordinator"]
