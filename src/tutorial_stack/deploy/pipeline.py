"""Build -> publish -> deploy pipeline.

:class:`PipelineRunner` executes the fixed step list below, moving the
run through the :mod:`~tutorial_stack.deploy.results` state machine as it
crosses phase boundaries:

==================  ============  ==========================================
step                phase         command
==================  ============  ==========================================
``build-api``       BUILDING      ``docker build`` of the API image
``build-frontend``  BUILDING      ``docker build`` of the front-end image
``registry-login``  PUBLISHING    ``docker login --password-stdin``
``push-api``        PUBLISHING    ``docker push`` of the API image
``push-frontend``   PUBLISHING    ``docker push`` of the front-end image
``deploy``          DEPLOYING     ``ssh`` + ``docker compose pull && up -d``
==================  ============  ==========================================

Fail-fast: the first step that raises moves the run to ``FAILED``; every
later step is recorded as ``SKIPPED`` and never executed. There is no
rollback and no retry.

Tags:
    pipeline, deploy, docker, ssh, fail-fast
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import SecretStr

from tutorial_stack.core.errors import CommandError, StepFailedError
from tutorial_stack.core.logging import LogContext, get_logger
from tutorial_stack.deploy.config import PipelineConfig, PipelineSecrets
from tutorial_stack.deploy.container import CommandResult, CommandRunner, DockerCLI
from tutorial_stack.deploy.ledger import PipelineLedger
from tutorial_stack.deploy.remote import RemoteHost, ssh_identity_file
from tutorial_stack.deploy.results import (
    PipelineRunResult,
    PipelineState,
    StepResult,
    StepStatus,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineStep:
    name: str
    phase: PipelineState
    action: Callable[[], CommandResult]


class PipelineRunner:
    """Run the pipeline once for one commit.

    Parameters
    ----------
    config
        Non-secret settings; ``config.run_id`` identifies the run.
    secrets
        Registry and SSH credentials. Required unless ``config.dry_run``.
    runner
        Command runner; a fresh :class:`CommandRunner` when omitted.
    ledger
        When given, the finished result is written to it.
    """

    def __init__(
        self,
        config: PipelineConfig,
        secrets: PipelineSecrets | None = None,
        *,
        runner: CommandRunner | None = None,
        ledger: PipelineLedger | None = None,
    ) -> None:
        self.config = config
        self.secrets = secrets if secrets is not None else PipelineSecrets.from_env()
        self.runner = runner or CommandRunner(
            timeout_seconds=config.command_timeout_seconds,
            dry_run=config.dry_run,
        )
        self.docker = DockerCLI(self.runner)
        self.ledger = ledger

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def steps(self) -> list[PipelineStep]:
        c = self.config
        return [
            PipelineStep(
                "build-api",
                PipelineState.BUILDING,
                lambda: self.docker.build(c.api_image_ref, c.api_context, c.api_dockerfile),
            ),
            PipelineStep(
                "build-frontend",
                PipelineState.BUILDING,
                lambda: self.docker.build(c.frontend_image_ref, c.frontend_context, c.frontend_dockerfile),
            ),
            PipelineStep("registry-login", PipelineState.PUBLISHING, self._login),
            PipelineStep("push-api", PipelineState.PUBLISHING, lambda: self.docker.push(c.api_image_ref)),
            PipelineStep(
                "push-frontend",
                PipelineState.PUBLISHING,
                lambda: self.docker.push(c.frontend_image_ref),
            ),
            PipelineStep("deploy", PipelineState.DEPLOYING, self._deploy),
        ]

    def _login(self) -> CommandResult:
        s = self.secrets
        return self.docker.login(
            self.config.registry,
            s.registry_username or "<registry-username>",
            s.registry_token or SecretStr(""),
        )

    def _deploy(self) -> CommandResult:
        s = self.secrets
        remote = RemoteHost(
            s.deploy_host or "<deploy-host>",
            s.deploy_user or "<deploy-user>",
            self.runner,
            port=self.config.ssh_port,
        )
        if self.config.dry_run and s.deploy_ssh_key is None and s.deploy_ssh_key_path is None:
            return remote.run(self.config.remote_command, Path("<ssh-key>"))
        with ssh_identity_file(s) as identity:
            return remote.run(self.config.remote_command, identity)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, commit: str | None = None) -> PipelineRunResult:
        """Execute every step in order, stopping at the first failure.

        Raises
        ------
        MissingConfigError
            If secrets are incomplete and this is not a dry run. Nothing
            has been executed at that point.
        """
        if not self.config.dry_run:
            self.secrets.require_complete()

        steps = self.steps()
        result = PipelineRunResult(
            run_id=self.config.run_id,
            branch=self.config.branch,
            commit=commit or self.config.commit,
            dry_run=self.config.dry_run,
            steps=[StepResult(name=s.name, phase=s.phase) for s in steps],
        )

        with LogContext(run_id=result.run_id):
            result.advance(PipelineState.TRIGGERED)
            logger.info("pipeline.triggered", branch=result.branch, commit=result.commit, dry_run=result.dry_run)

            for step, record in zip(steps, result.steps, strict=True):
                if result.state != step.phase:
                    result.advance(step.phase)
                    logger.info("pipeline.phase", state=step.phase.value)
                failure = self._execute(step, record)
                if failure is not None:
                    result.failed_step = failure.step
                    result.error = failure.message
                    result.advance(PipelineState.FAILED)
                    break
            else:
                result.advance(PipelineState.COMPLETE)

            for record in result.steps:
                if record.status == StepStatus.PENDING:
                    record.status = StepStatus.SKIPPED

            result.mark_complete()
            log = logger.info if result.succeeded else logger.error
            log("pipeline.finished", state=result.state.value, summary=result.summary)

        if self.ledger is not None:
            self.ledger.write(result)
        return result

    def _execute(self, step: PipelineStep, record: StepResult) -> StepFailedError | None:
        """Run one step, filling in *record*. Returns the failure, if any."""
        record.started_at = datetime.now(UTC).isoformat()
        start = time.monotonic()
        logger.info("step.started", step=step.name)
        try:
            outcome = step.action()
        except CommandError as exc:
            record.status = StepStatus.FAILED
            record.command = exc.context.command
            record.exit_code = exc.exit_code
            record.stdout = exc.stdout
            record.stderr = exc.stderr
            record.error = exc.message
        except Exception as exc:
            # missing tools, unreadable key files and the like fail the step too
            record.status = StepStatus.FAILED
            record.error = f"{type(exc).__name__}: {exc}"
        else:
            record.status = StepStatus.SUCCEEDED
            record.command = outcome.command_line
            record.exit_code = outcome.returncode
            record.stdout = outcome.stdout
            record.stderr = outcome.stderr
        record.completed_at = datetime.now(UTC).isoformat()
        record.duration_seconds = round(time.monotonic() - start, 3)

        if record.status == StepStatus.FAILED:
            failure = StepFailedError(step.name, record.error or "unknown error").with_context(
                command=record.command,
                exit_code=record.exit_code,
            )
            logger.error("step.failed", error=record.error, **failure.context.to_dict())
            return failure
        logger.info("step.succeeded", step=step.name, duration_seconds=record.duration_seconds)
        return None


def pipeline_for_events(
    config: PipelineConfig,
    secrets: PipelineSecrets | None = None,
    *,
    ledger: PipelineLedger | None = None,
    runner_factory: Callable[[PipelineConfig], CommandRunner] | None = None,
) -> Callable[[str | None], PipelineRunResult]:
    """Return ``run(commit)`` that executes a fresh run per call.

    Each call gets its own ``run_id`` and command runner; *config* is
    used as a template. This is what :class:`PipelineCoordinator` drives.
    """

    def run(commit: str | None) -> PipelineRunResult:
        run_config = config.model_copy(update={"run_id": uuid.uuid4().hex[:12], "commit": commit})
        runner = runner_factory(run_config) if runner_factory else None
        return PipelineRunner(run_config, secrets, runner=runner, ledger=ledger).run()

    return run


__all__ = ["PipelineStep", "PipelineRunner", "pipeline_for_events"]
