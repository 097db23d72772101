"""Configuration models for the deployment pipeline.

Two models, one safe to log and one that is never logged:

PipelineConfig
    Non-secret knobs: which branch deploys, image names and tag, Docker
    build contexts, the remote directory, timeouts, and where run
    artifacts go. Every field except ``run_id`` can be overridden by a
    ``TUTORIALS_PIPELINE_*`` environment variable via :meth:`from_env`.

PipelineSecrets
    Registry credentials and SSH identity, held as ``SecretStr`` so they
    render as ``**********`` in reprs, logs and ``model_dump_json()``.

Override precedence for both: kwargs > env vars > field defaults.

Tags:
    config, pydantic, pipeline, secrets, environment
"""

from __future__ import annotations

import os
import shlex
import uuid
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel, Field, SecretStr, model_validator

from tutorial_stack.core.errors import MissingConfigError

_TRUE = ("true", "1", "yes")


class PipelineConfig(BaseModel):
    """Configuration for one pipeline run.

    Example::

        config = PipelineConfig(namespace="acme", tag="2026-10-18")
        config.api_image_ref        # 'acme/tutorials-api:2026-10-18'
    """

    # Trigger
    branch: str = Field(default="main", description="Branch whose pushes deploy")
    commit: str | None = Field(default=None, description="Commit being deployed")

    # Images
    registry: str = Field(default="docker.io", description="Registry host for docker login")
    namespace: str = Field(default="tutorials", description="Registry namespace / account")
    api_image: str = Field(default="tutorials-api", description="API image name")
    frontend_image: str = Field(default="tutorials-frontend", description="Front-end image name")
    tag: str = Field(default="latest", description="Image tag pushed and pulled")

    # Build contexts
    api_context: str = Field(default=".", description="Build context for the API image")
    api_dockerfile: str = Field(default="Dockerfile", description="API Dockerfile, relative to its context")
    frontend_context: str = Field(default="frontend", description="Build context for the front-end image")
    frontend_dockerfile: str = Field(default="Dockerfile", description="Front-end Dockerfile, relative to its context")

    # Remote
    remote_dir: str = Field(default="~/tutorial-stack", description="Directory holding docker-compose.yml on the host")
    ssh_port: int = Field(default=22, description="SSH port of the deployment host")

    # Execution
    command_timeout_seconds: int = Field(default=900, description="Timeout for each external command")
    output_dir: Path = Field(default=Path("pipeline-runs"), description="Run artifacts directory")
    dry_run: bool = Field(default=False, description="Record commands without executing them")

    # Internal
    run_id: str = Field(default="", description="Unique run identifier (auto-generated)")

    ENV_VARS: ClassVar[dict[str, str]] = {
        "branch": "TUTORIALS_PIPELINE_BRANCH",
        "commit": "TUTORIALS_PIPELINE_COMMIT",
        "registry": "TUTORIALS_PIPELINE_REGISTRY",
        "namespace": "TUTORIALS_PIPELINE_NAMESPACE",
        "api_image": "TUTORIALS_PIPELINE_API_IMAGE",
        "frontend_image": "TUTORIALS_PIPELINE_FRONTEND_IMAGE",
        "tag": "TUTORIALS_PIPELINE_TAG",
        "api_context": "TUTORIALS_PIPELINE_API_CONTEXT",
        "api_dockerfile": "TUTORIALS_PIPELINE_API_DOCKERFILE",
        "frontend_context": "TUTORIALS_PIPELINE_FRONTEND_CONTEXT",
        "frontend_dockerfile": "TUTORIALS_PIPELINE_FRONTEND_DOCKERFILE",
        "remote_dir": "TUTORIALS_PIPELINE_REMOTE_DIR",
        "ssh_port": "TUTORIALS_PIPELINE_SSH_PORT",
        "command_timeout_seconds": "TUTORIALS_PIPELINE_COMMAND_TIMEOUT_SECONDS",
        "output_dir": "TUTORIALS_PIPELINE_OUTPUT_DIR",
        "dry_run": "TUTORIALS_PIPELINE_DRY_RUN",
    }

    @model_validator(mode="after")
    def _set_defaults(self) -> PipelineConfig:
        if not self.run_id:
            self.run_id = uuid.uuid4().hex[:12]
        return self

    def image_ref(self, image: str) -> str:
        """Fully-qualified reference for *image* under this namespace and tag."""
        name = f"{self.namespace}/{image}:{self.tag}"
        if self.registry and self.registry != "docker.io":
            return f"{self.registry}/{name}"
        return name

    @property
    def api_image_ref(self) -> str:
        return self.image_ref(self.api_image)

    @property
    def frontend_image_ref(self) -> str:
        return self.image_ref(self.frontend_image)

    @property
    def remote_command(self) -> str:
        """Shell command run on the host: pull the new images and restart."""
        remote_dir = self.remote_dir
        # keep ~ unquoted so the remote shell expands it
        if remote_dir.startswith("~/"):
            target = "~/" + shlex.quote(remote_dir[2:])
        else:
            target = shlex.quote(remote_dir)
        return f"cd {target} && docker compose pull && docker compose up -d --remove-orphans"

    @classmethod
    def from_env(cls, **overrides: Any) -> PipelineConfig:
        """Create config from TUTORIALS_PIPELINE_* environment variables."""
        values: dict[str, Any] = {}
        for field_name, env_var in cls.ENV_VARS.items():
            env_val = os.environ.get(env_var)
            if env_val is not None:
                if field_name in ("ssh_port", "command_timeout_seconds"):
                    values[field_name] = int(env_val)
                elif field_name == "dry_run":
                    values[field_name] = env_val.lower() in _TRUE
                else:
                    values[field_name] = env_val
        values.update(overrides)
        return cls(**values)


class PipelineSecrets(BaseModel):
    """Credentials the pipeline needs and nothing else.

    The SSH private key can be given either as contents
    (``TUTORIALS_DEPLOY_SSH_KEY``, typical in CI) or as a path to an
    existing key file (``TUTORIALS_DEPLOY_SSH_KEY_PATH``, typical locally).
    """

    registry_username: str | None = None
    registry_token: SecretStr | None = None
    deploy_host: str | None = None
    deploy_user: str | None = None
    deploy_ssh_key: SecretStr | None = None
    deploy_ssh_key_path: Path | None = None

    ENV_VARS: ClassVar[dict[str, str]] = {
        "registry_username": "TUTORIALS_REGISTRY_USERNAME",
        "registry_token": "TUTORIALS_REGISTRY_TOKEN",
        "deploy_host": "TUTORIALS_DEPLOY_HOST",
        "deploy_user": "TUTORIALS_DEPLOY_USER",
        "deploy_ssh_key": "TUTORIALS_DEPLOY_SSH_KEY",
        "deploy_ssh_key_path": "TUTORIALS_DEPLOY_SSH_KEY_PATH",
    }

    @classmethod
    def from_env(cls, **overrides: Any) -> PipelineSecrets:
        """Read secrets from the environment; empty variables count as unset."""
        values: dict[str, Any] = {}
        for field_name, env_var in cls.ENV_VARS.items():
            env_val = os.environ.get(env_var)
            if env_val:
                values[field_name] = env_val
        values.update(overrides)
        return cls(**values)

    def missing(self) -> list[str]:
        """Environment variable names still needed for a full run."""
        missing = [
            self.ENV_VARS[name]
            for name in ("registry_username", "registry_token", "deploy_host", "deploy_user")
            if getattr(self, name) is None
        ]
        if self.deploy_ssh_key is None and self.deploy_ssh_key_path is None:
            missing.append(self.ENV_VARS["deploy_ssh_key"])
        return missing

    def require_complete(self) -> None:
        """Raise :class:`MissingConfigError` naming every absent secret."""
        missing = self.missing()
        if missing:
            raise MissingConfigError(", ".join(missing))

    @property
    def ssh_target(self) -> str:
        return f"{self.deploy_user}@{self.deploy_host}"
