"""Tests for the docker/ssh subprocess wrappers. No docker or ssh required."""

from __future__ import annotations

import os
import stat
import subprocess
import tempfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from pydantic import SecretStr

from tutorial_stack.core.errors import CommandError, MissingConfigError, ToolNotFoundError
from tutorial_stack.deploy.config import PipelineSecrets
from tutorial_stack.deploy.container import CommandRunner, DockerCLI
from tutorial_stack.deploy.remote import RemoteHost, ssh_identity_file


def _completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestCommandRunner:
    @patch("tutorial_stack.deploy.container.subprocess.run")
    def test_success(self, mock_run):
        mock_run.return_value = _completed(stdout="built")
        runner = CommandRunner(timeout_seconds=30)
        result = runner.run(["docker", "build", "."])
        assert result.returncode == 0
        assert result.stdout == "built"
        assert result.command_line == "docker build ."
        assert runner.history == [result]
        assert mock_run.call_args.kwargs["timeout"] == 30

    @patch("tutorial_stack.deploy.container.subprocess.run")
    def test_nonzero_exit_raises(self, mock_run):
        mock_run.return_value = _completed(returncode=2, stderr="denied")
        with pytest.raises(CommandError) as exc_info:
            CommandRunner().run(["docker", "push", "x"])
        err = exc_info.value
        assert err.exit_code == 2
        assert err.stderr == "denied"
        assert err.context.command == "docker push x"

    @patch("tutorial_stack.deploy.container.subprocess.run")
    def test_timeout_raises(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="docker", timeout=5, output=b"partial")
        with pytest.raises(CommandError, match="timed out after 5s") as exc_info:
            CommandRunner().run(["docker", "build", "."], timeout_seconds=5)
        assert exc_info.value.stdout == "partial"
        assert exc_info.value.exit_code is None

    @patch("tutorial_stack.deploy.container.subprocess.run")
    def test_missing_binary(self, mock_run):
        mock_run.side_effect = FileNotFoundError("docker")
        with pytest.raises(ToolNotFoundError):
            CommandRunner().run(["docker", "info"])

    @patch("tutorial_stack.deploy.container.subprocess.run")
    def test_dry_run_executes_nothing(self, mock_run):
        runner = CommandRunner(dry_run=True)
        result = runner.run(["docker", "push", "x"])
        assert result.dry_run is True
        assert runner.history[0].args == ["docker", "push", "x"]
        mock_run.assert_not_called()

    def test_output_tail_is_bounded(self):
        with patch("tutorial_stack.deploy.container.subprocess.run", return_value=_completed(stdout="x" * 10000)):
            result = CommandRunner().run(["echo"])
        assert len(result.stdout) == 4000

    @patch("tutorial_stack.deploy.container.shutil.which", return_value=None)
    def test_resolve_missing_tool(self, _which):
        with pytest.raises(ToolNotFoundError):
            CommandRunner().resolve("docker")
        assert CommandRunner(dry_run=True).resolve("docker") == "docker"


class TestDockerCLI:
    def _docker(self):
        runner = CommandRunner(dry_run=True)
        return DockerCLI(runner), runner

    def test_build(self):
        docker, runner = self._docker()
        docker.build("acme/api:v1", "frontend", "Dockerfile")
        assert runner.history[0].args == ["docker", "build", "-t", "acme/api:v1", "-f", "frontend/Dockerfile", "frontend"]

    def test_login_token_on_stdin(self):
        runner = MagicMock(spec=CommandRunner)
        runner.resolve.return_value = "docker"
        DockerCLI(runner).login("ghcr.io", "bot", SecretStr("tok-123"))
        args = runner.run.call_args.args[0]
        assert args == ["docker", "login", "--username", "bot", "--password-stdin", "ghcr.io"]
        assert "tok-123" not in " ".join(args)
        assert runner.run.call_args.kwargs["input_text"] == "tok-123"

    def test_login_docker_hub_omits_registry(self):
        docker, runner = self._docker()
        docker.login("docker.io", "bot", SecretStr("t"))
        assert runner.history[0].args[-1] == "--password-stdin"

    def test_push(self):
        docker, runner = self._docker()
        docker.push("acme/api:v1")
        assert runner.history[0].args == ["docker", "push", "acme/api:v1"]


class TestSSHIdentityFile:
    def test_path_used_as_is(self, tmp_path):
        key = tmp_path / "id_ed25519"
        key.write_text("KEY\n")
        with ssh_identity_file(PipelineSecrets(deploy_ssh_key_path=key)) as path:
            assert path == key
        assert key.exists()

    def test_contents_written_0600_and_removed(self):
        secrets = PipelineSecrets(deploy_ssh_key="-----BEGIN KEY-----\nabc\n-----END KEY-----")
        with ssh_identity_file(secrets) as path:
            assert path.read_text().endswith("-----END KEY-----\n")
            assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert not Path(path).exists()

    def test_removed_on_error(self):
        secrets = PipelineSecrets(deploy_ssh_key="KEY")
        with pytest.raises(RuntimeError):
            with ssh_identity_file(secrets) as path:
                raise RuntimeError("ssh failed")
        assert not path.exists()

    def test_file_closed_and_removed_when_chmod_fails(self):
        created: list[str] = []
        opened = []
        real_mkstemp = tempfile.mkstemp
        real_fdopen = os.fdopen

        def tracking_mkstemp(*args, **kwargs):
            fd, name = real_mkstemp(*args, **kwargs)
            created.append(name)
            return fd, name

        def tracking_fdopen(fd, *args, **kwargs):
            fh = real_fdopen(fd, *args, **kwargs)
            opened.append(fh)
            return fh

        secrets = PipelineSecrets(deploy_ssh_key="KEY")
        with (
            patch("tutorial_stack.deploy.remote.os.fdopen", side_effect=tracking_fdopen),
            patch("tutorial_stack.deploy.remote.os.chmod", side_effect=PermissionError("denied")),
            patch("tutorial_stack.deploy.remote.tempfile.mkstemp", side_effect=tracking_mkstemp),
            pytest.raises(PermissionError),
        ):
            with ssh_identity_file(secrets):
                pass
        assert opened[0].closed
        assert not Path(created[0]).exists()

    def test_no_key(self):
        with pytest.raises(MissingConfigError):
            with ssh_identity_file(PipelineSecrets()):
                pass


class TestRemoteHost:
    def test_ssh_args(self):
        runner = CommandRunner(dry_run=True)
        host = RemoteHost("host.example", "deploy", runner, port=2222)
        host.run("docker compose up -d", Path("/tmp/key"))
        args = runner.history[0].args
        assert args[0] == "ssh"
        assert args[1:5] == ["-i", "/tmp/key", "-p", "2222"]
        assert "BatchMode=yes" in args
        assert args[-2:] == ["deploy@host.example", "docker compose up -d"]
