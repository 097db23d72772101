"""Tests for the build -> publish -> deploy pipeline, results and ledger.

All commands go through a fake runner; nothing is executed.
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import pytest

from tutorial_stack.core.errors import CommandError, MissingConfigError, PipelineStateError
from tutorial_stack.deploy.config import PipelineConfig, PipelineSecrets
from tutorial_stack.deploy.container import CommandResult, CommandRunner
from tutorial_stack.deploy.ledger import PipelineLedger
from tutorial_stack.deploy.pipeline import PipelineRunner, pipeline_for_events
from tutorial_stack.deploy.results import PipelineRunResult, PipelineState, StepStatus

STEP_NAMES = ["build-api", "build-frontend", "registry-login", "push-api", "push-frontend", "deploy"]


class FakeRunner(CommandRunner):
    """Records commands; fails the first command whose argv contains ``fail_on``."""

    def __init__(self, fail_on: str | None = None) -> None:
        super().__init__(timeout_seconds=5)
        self.fail_on = fail_on
        self.calls: list[list[str]] = []
        self.inputs: list[str | None] = []

    def resolve(self, tool: str) -> str:
        return tool

    def run(self, args: Sequence[str], *, input_text=None, cwd=None, timeout_seconds=None) -> CommandResult:
        argv = [str(a) for a in args]
        self.calls.append(argv)
        self.inputs.append(input_text)
        if self.fail_on and self.fail_on in argv:
            raise CommandError(
                f"{argv[0]} exited with code 1",
                exit_code=1,
                stderr="boom",
            ).with_context(command=" ".join(argv))
        return CommandResult(args=argv, returncode=0, stdout="ok")


@pytest.fixture()
def secrets(tmp_path) -> PipelineSecrets:
    key = tmp_path / "id_ed25519"
    key.write_text("KEY\n")
    return PipelineSecrets(
        registry_username="bot",
        registry_token="tok-123",
        deploy_host="host.example",
        deploy_user="deploy",
        deploy_ssh_key_path=key,
    )


@pytest.fixture()
def config(tmp_path) -> PipelineConfig:
    return PipelineConfig(namespace="acme", tag="v1", output_dir=tmp_path / "runs")


class TestSuccessfulRun:
    def test_all_steps_in_order(self, config, secrets):
        runner = FakeRunner()
        result = PipelineRunner(config, secrets, runner=runner).run(commit="abc123")

        assert result.succeeded
        assert result.state == PipelineState.COMPLETE
        assert result.commit == "abc123"
        assert [s.name for s in result.steps] == STEP_NAMES
        assert all(s.status == StepStatus.SUCCEEDED for s in result.steps)
        assert [h.state for h in result.state_history] == [
            PipelineState.TRIGGERED,
            PipelineState.BUILDING,
            PipelineState.PUBLISHING,
            PipelineState.DEPLOYING,
            PipelineState.COMPLETE,
        ]
        assert result.summary == "COMPLETE: 6 succeeded"

    def test_commands(self, config, secrets):
        runner = FakeRunner()
        PipelineRunner(config, secrets, runner=runner).run()

        assert runner.calls[0][:4] == ["docker", "build", "-t", "acme/tutorials-api:v1"]
        assert runner.calls[1][:4] == ["docker", "build", "-t", "acme/tutorials-frontend:v1"]
        assert runner.calls[2][:2] == ["docker", "login"]
        assert runner.inputs[2] == "tok-123"
        assert runner.calls[3] == ["docker", "push", "acme/tutorials-api:v1"]
        assert runner.calls[4] == ["docker", "push", "acme/tutorials-frontend:v1"]
        assert runner.calls[5][0] == "ssh"
        assert runner.calls[5][-1] == config.remote_command

    def test_token_not_recorded(self, config, secrets):
        result = PipelineRunner(config, secrets, runner=FakeRunner()).run()
        assert "tok-123" not in result.model_dump_json()


class TestFailFast:
    def test_build_failure_skips_publish_and_deploy(self, config, secrets):
        runner = FakeRunner(fail_on="acme/tutorials-frontend:v1")
        result = PipelineRunner(config, secrets, runner=runner).run()

        assert result.state == PipelineState.FAILED
        assert result.failed_step == "build-frontend"
        assert [s.status for s in result.steps] == [
            StepStatus.SUCCEEDED,
            StepStatus.FAILED,
            StepStatus.SKIPPED,
            StepStatus.SKIPPED,
            StepStatus.SKIPPED,
            StepStatus.SKIPPED,
        ]
        # nothing after the failing build was executed
        assert len(runner.calls) == 2
        failed = result.step("build-frontend")
        assert failed.exit_code == 1
        assert failed.stderr == "boom"
        assert "(failed at build-frontend)" in result.summary

    def test_deploy_failure(self, config, secrets):
        runner = FakeRunner(fail_on="deploy@host.example")
        result = PipelineRunner(config, secrets, runner=runner).run()
        assert result.state == PipelineState.FAILED
        assert result.failed_step == "deploy"
        assert result.state_history[-2].state == PipelineState.DEPLOYING

    def test_unexpected_exception_fails_step(self, config, secrets, monkeypatch):
        runner = FakeRunner()
        pipeline = PipelineRunner(config, secrets, runner=runner)

        def broken_push(image: str) -> CommandResult:
            raise OSError("disk full")

        monkeypatch.setattr(pipeline.docker, "push", broken_push)
        result = pipeline.run()
        assert result.failed_step == "push-api"
        assert result.step("push-api").error == "OSError: disk full"
        assert result.error == "Step 'push-api' failed: OSError: disk full"


class TestPreconditions:
    def test_missing_secrets_raise_before_any_step(self, config):
        runner = FakeRunner()
        with pytest.raises(MissingConfigError):
            PipelineRunner(config, PipelineSecrets(), runner=runner).run()
        assert runner.calls == []

    def test_dry_run_without_secrets(self, tmp_path):
        config = PipelineConfig(dry_run=True, output_dir=tmp_path)
        pipeline = PipelineRunner(config, PipelineSecrets())
        result = pipeline.run()
        assert result.succeeded
        assert result.dry_run is True
        assert len(pipeline.runner.history) == 6
        assert all(r.dry_run for r in pipeline.runner.history)


class TestLedger:
    def test_written_and_read_back(self, config, secrets):
        ledger = PipelineLedger(config.output_dir)
        result = PipelineRunner(config, secrets, runner=FakeRunner(fail_on="push"), ledger=ledger).run()

        run_dir = config.output_dir / config.run_id
        summary = json.loads((run_dir / "summary.json").read_text())
        assert summary["state"] == "FAILED"
        assert (run_dir / "steps" / "push-api.log").read_text().startswith("$ docker push")
        assert not (run_dir / "steps" / "deploy.log").exists()

        assert ledger.get(config.run_id) == result
        assert ledger.get("unknown") is None

    def test_list_runs_newest_first(self, tmp_path):
        ledger = PipelineLedger(tmp_path)
        old = PipelineRunResult(run_id="old", branch="main", started_at="2026-01-01T00:00:00+00:00")
        new = PipelineRunResult(run_id="new", branch="main", started_at="2026-02-01T00:00:00+00:00")
        ledger.write(old)
        ledger.write(new)
        (tmp_path / "broken").mkdir()
        (tmp_path / "broken" / "summary.json").write_text("{not json")
        assert [r.run_id for r in ledger.list_runs()] == ["new", "old"]
        assert [r.run_id for r in ledger.list_runs(limit=1)] == ["new"]

    def test_missing_dir(self, tmp_path):
        assert PipelineLedger(tmp_path / "none").list_runs() == []


class TestStateMachine:
    def test_illegal_transition(self):
        result = PipelineRunResult(run_id="r", branch="main")
        with pytest.raises(PipelineStateError):
            result.advance(PipelineState.DEPLOYING)

    def test_terminal_states_are_final(self):
        result = PipelineRunResult(run_id="r", branch="main")
        result.advance(PipelineState.TRIGGERED)
        result.advance(PipelineState.BUILDING)
        result.advance(PipelineState.FAILED)
        with pytest.raises(PipelineStateError):
            result.advance(PipelineState.PUBLISHING)


class TestPipelineForEvents:
    def test_fresh_run_id_per_call(self, config, secrets):
        runners: list[FakeRunner] = []

        def factory(run_config: PipelineConfig) -> FakeRunner:
            runners.append(FakeRunner())
            return runners[-1]

        run = pipeline_for_events(config, secrets, runner_factory=factory)
        first, second = run("aaa"), run("bbb")
        assert first.run_id != second.run_id
        assert (first.commit, second.commit) == ("aaa", "bbb")
        assert len(runners) == 2
