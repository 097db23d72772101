"""Shared base settings for every tutorial-stack service.

The API, the front-end server and the proxy all need a bind address, a
port, and logging knobs. ``StackBaseSettings`` declares those once; each
service subclass adds its own fields and its own ``env_prefix``.

Precedence (highest first): constructor kwargs, environment variables,
``.env`` file, field defaults.

Examples:
    >>> from tutorial_stack.core.settings import StackBaseSettings
    >>> class WorkerSettings(StackBaseSettings):
    ...     model_config = SettingsConfigDict(env_prefix="TUTORIALS_WORKER_")
    ...     concurrency: int = 4
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StackBaseSettings(BaseSettings):
    """Common settings shared across all tutorial-stack services.

    Fields
    ──────
    host       : Bind address
    port       : Bind port (override per service)
    debug      : Expose exception messages in 500 responses
    log_level  : structlog level
    log_json   : Force JSON (True) / console (False) output; None = auto
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Network ──────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")

    # ── Observability ────────────────────────────────────────────
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(default=None, description="JSON logs (None = auto-detect)")
