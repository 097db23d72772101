"""Subprocess wrappers for the ``docker`` CLI.

The pipeline builds, logs in and pushes by shelling out to ``docker``.
There is no docker SDK dependency; anything exposing a ``docker`` CLI
(Docker Engine, Docker Desktop, Podman with the docker shim) works.

Key Concepts:
    CommandRunner: Runs one external command with a timeout and returns a
        :class:`CommandResult`. Non-zero exits and timeouts raise
        :class:`~tutorial_stack.core.errors.CommandError`. In dry-run mode
        it records the command and returns success without executing.
    DockerCLI: ``build`` / ``login`` / ``push`` on top of a runner.

The registry token is passed on stdin (``--password-stdin``), never on the
command line, so it never shows up in ``ps`` output or in the step logs.

Tags:
    docker, subprocess, build, registry
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from pydantic import SecretStr

from tutorial_stack.core.errors import CommandError, ToolNotFoundError

logger = logging.getLogger(__name__)

_TAIL_CHARS = 4000


def _tail(text: str) -> str:
    return text[-_TAIL_CHARS:] if len(text) > _TAIL_CHARS else text


@dataclass
class CommandResult:
    """Outcome of one external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0
    dry_run: bool = False

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)


@dataclass
class CommandRunner:
    """Run external commands with a timeout.

    Parameters
    ----------
    timeout_seconds
        Default per-command timeout.
    dry_run
        Record commands in :attr:`history` without executing them.
    """

    timeout_seconds: int = 900
    dry_run: bool = False
    history: list[CommandResult] = field(default_factory=list)

    def resolve(self, tool: str) -> str:
        """Absolute path of *tool*, or the bare name in dry-run mode."""
        if self.dry_run:
            return tool
        path = shutil.which(tool)
        if path is None:
            raise ToolNotFoundError(f"{tool!r} not found on PATH")
        return path

    def run(
        self,
        args: Sequence[str],
        *,
        input_text: str | None = None,
        cwd: str | None = None,
        timeout_seconds: int | None = None,
    ) -> CommandResult:
        """Run *args*; raise :class:`CommandError` unless it exits 0."""
        argv = [str(a) for a in args]
        timeout = timeout_seconds or self.timeout_seconds
        display = shlex.join(argv)

        if self.dry_run:
            result = CommandResult(args=argv, returncode=0, dry_run=True)
            self.history.append(result)
            logger.info("command.dry_run", extra={"command": display})
            return result

        logger.info("command.start", extra={"command": display, "cwd": cwd})
        start = time.monotonic()
        try:
            proc = subprocess.run(
                argv,
                input=input_text,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                f"{argv[0]} timed out after {timeout}s",
                stdout=_tail(_decode(exc.stdout)),
                stderr=_tail(_decode(exc.stderr)),
                cause=exc,
            ).with_context(command=display) from exc
        except FileNotFoundError as exc:
            raise ToolNotFoundError(f"{argv[0]!r} not found", cause=exc) from exc

        result = CommandResult(
            args=argv,
            returncode=proc.returncode,
            stdout=_tail(proc.stdout or ""),
            stderr=_tail(proc.stderr or ""),
            duration_seconds=round(time.monotonic() - start, 3),
        )
        self.history.append(result)

        if proc.returncode != 0:
            logger.warning(
                "command.failed",
                extra={"command": display, "exit_code": proc.returncode},
            )
            raise CommandError(
                f"{argv[0]} exited with code {proc.returncode}",
                exit_code=proc.returncode,
                stdout=result.stdout,
                stderr=result.stderr,
            ).with_context(command=display)

        logger.info(
            "command.done",
            extra={"command": display, "duration_seconds": result.duration_seconds},
        )
        return result


def _decode(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class DockerCLI:
    """The three docker operations the pipeline needs.

    Example::

        docker = DockerCLI(CommandRunner(timeout_seconds=600))
        docker.build("acme/tutorials-api:latest", context=".")
        docker.login("docker.io", "acme", SecretStr(token))
        docker.push("acme/tutorials-api:latest")
    """

    def __init__(self, runner: CommandRunner, docker: str = "docker") -> None:
        self.runner = runner
        self._docker = docker
        self._docker_cmd: str | None = None

    @property
    def docker_cmd(self) -> str:
        if self._docker_cmd is None:
            self._docker_cmd = self.runner.resolve(self._docker)
        return self._docker_cmd

    def build(self, image: str, context: str, dockerfile: str | None = None) -> CommandResult:
        """``docker build -t <image> [-f <context>/<dockerfile>] <context>``."""
        args = [self.docker_cmd, "build", "-t", image]
        if dockerfile:
            args += ["-f", f"{context.rstrip('/')}/{dockerfile}"]
        args.append(context)
        return self.runner.run(args)

    def login(self, registry: str, username: str, token: SecretStr) -> CommandResult:
        """``docker login`` with the token on stdin."""
        args = [self.docker_cmd, "login", "--username", username, "--password-stdin"]
        if registry and registry != "docker.io":
            args.append(registry)
        return self.runner.run(args, input_text=token.get_secret_value())

    def push(self, image: str) -> CommandResult:
        return self.runner.run([self.docker_cmd, "push", image])


__all__ = ["CommandResult", "CommandRunner", "DockerCLI"]
