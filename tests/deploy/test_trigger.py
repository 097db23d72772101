"""Tests for push events and the single-flight pipeline coordinator."""

from __future__ import annotations

import threading

import pytest

from tutorial_stack.deploy.results import PipelineRunResult
from tutorial_stack.deploy.trigger import PipelineCoordinator, PushEvent, TriggerDecision


def _event(commit: str, ref: str = "refs/heads/main") -> PushEvent:
    return PushEvent(ref=ref, commit=commit)


class TestPushEvent:
    @pytest.mark.parametrize(
        ("ref", "branch"),
        [("refs/heads/main", "main"), ("refs/heads/feature/x", "feature/x"), ("refs/tags/v1", None), ("main", "main")],
    )
    def test_branch(self, ref, branch):
        assert PushEvent(ref=ref).branch == branch

    def test_from_github(self):
        event = PushEvent.from_github(
            {"ref": "refs/heads/main", "after": "abc", "repository": {"full_name": "a/b"}, "pusher": {"name": "o"}}
        )
        assert (event.commit, event.repository, event.pusher) == ("abc", "a/b", "o")

    def test_from_github_minimal(self):
        event = PushEvent.from_github({"ref": "refs/heads/dev"})
        assert event.commit is None
        assert event.repository is None

    @pytest.mark.parametrize("key", ["repository", "pusher"])
    def test_from_github_rejects_non_object(self, key):
        with pytest.raises(ValueError, match=f"'{key}' must be an object"):
            PushEvent.from_github({"ref": "refs/heads/main", key: "x"})

    def test_from_github_wrong_ref_type(self):
        with pytest.raises(ValueError):
            PushEvent.from_github({"ref": 123})


class TestPipelineCoordinator:
    def test_other_branch_ignored(self):
        calls: list[str | None] = []
        coord = PipelineCoordinator(lambda c: calls.append(c), branch="main")
        assert coord.submit(_event("x", ref="refs/heads/dev")) == TriggerDecision.IGNORED
        assert coord.submit(_event("y", ref="refs/tags/v1")) == TriggerDecision.IGNORED
        assert coord.wait(1)
        assert calls == []

    def test_single_run(self):
        def run(commit):
            return PipelineRunResult(run_id=commit, branch="main", commit=commit)

        coord = PipelineCoordinator(run)
        assert coord.submit(_event("aaa")) == TriggerDecision.STARTED
        assert coord.wait(5)
        assert [r.commit for r in coord.history] == ["aaa"]
        assert coord.busy is False

    def test_burst_coalesces_to_newest(self):
        release = threading.Event()
        started = threading.Event()
        ran: list[str | None] = []

        def run(commit):
            ran.append(commit)
            started.set()
            release.wait(5)
            return PipelineRunResult(run_id=commit, branch="main", commit=commit)

        coord = PipelineCoordinator(run)
        assert coord.submit(_event("A")) == TriggerDecision.STARTED
        assert started.wait(5)
        assert coord.submit(_event("B")) == TriggerDecision.QUEUED
        assert coord.submit(_event("C")) == TriggerDecision.REPLACED

        status = coord.status()
        assert status["active_commit"] == "A"
        assert status["pending_commit"] == "C"

        release.set()
        assert coord.wait(5)
        # B was superseded by C and never ran; A was not cancelled
        assert ran == ["A", "C"]
        assert coord.status()["pending_commit"] is None

    def test_crashed_run_does_not_wedge(self):
        def run(commit):
            raise RuntimeError("exploded")

        coord = PipelineCoordinator(run)
        coord.submit(_event("A"))
        assert coord.wait(5)
        assert coord.busy is False
        assert coord.history == []
        assert coord.submit(_event("B")) == TriggerDecision.STARTED
        assert coord.wait(5)
