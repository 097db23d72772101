"""SSH access to the deployment host.

One host, one session per run. The deploy step is a single remote
command (see :attr:`PipelineConfig.remote_command`); nothing is copied
to the host by the pipeline.

The private key arrives either as a path or as file contents (CI secret).
:func:`ssh_identity_file` turns the latter into a ``0600`` temp file for
the lifetime of the SSH call and removes it afterwards.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from tutorial_stack.core.errors import MissingConfigError
from tutorial_stack.deploy.config import PipelineSecrets
from tutorial_stack.deploy.container import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


@contextmanager
def ssh_identity_file(secrets: PipelineSecrets) -> Iterator[Path]:
    """Yield a path to the SSH private key described by *secrets*."""
    if secrets.deploy_ssh_key_path is not None:
        yield Path(secrets.deploy_ssh_key_path).expanduser()
        return
    if secrets.deploy_ssh_key is None:
        raise MissingConfigError("TUTORIALS_DEPLOY_SSH_KEY")

    key = secrets.deploy_ssh_key.get_secret_value()
    if not key.endswith("\n"):
        # ssh rejects keys without a trailing newline
        key += "\n"

    fd, name = tempfile.mkstemp(prefix="tutorial-stack-", suffix=".key")
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            os.chmod(path, 0o600)
            fh.write(key)
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("ssh.identity_removed", extra={"path": str(path)})


class RemoteHost:
    """Run commands on the deployment host over ``ssh``.

    ``BatchMode=yes`` makes ssh fail instead of prompting, so a bad key
    shows up as a failed step rather than a hung pipeline.
    """

    def __init__(
        self,
        host: str,
        user: str,
        runner: CommandRunner,
        *,
        port: int = 22,
        ssh: str = "ssh",
    ) -> None:
        self.host = host
        self.user = user
        self.port = port
        self.runner = runner
        self._ssh = ssh

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}"

    def ssh_args(self, identity_file: Path, command: str) -> list[str]:
        return [
            self.runner.resolve(self._ssh),
            "-i", str(identity_file),
            "-p", str(self.port),
            "-o", "BatchMode=yes",
            "-o", "StrictHostKeyChecking=accept-new",
            "-o", "IdentitiesOnly=yes",
            self.target,
            command,
        ]

    def run(self, command: str, identity_file: Path) -> CommandResult:
        """Execute *command* in one SSH session."""
        logger.info("ssh.run", extra={"target": self.target, "remote_command": command})
        return self.runner.run(self.ssh_args(identity_file, command))


__all__ = ["RemoteHost", "ssh_identity_file"]
