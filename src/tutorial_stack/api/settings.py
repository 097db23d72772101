"""
API-specific settings.

Extends :class:`~tutorial_stack.core.settings.StackBaseSettings` with the
database URL and the REST transport knobs (prefix, CORS, pipeline
webhook). Every value can be overridden by a ``TUTORIALS_`` environment
variable: ``TUTORIALS_DATABASE_URL``, ``TUTORIALS_PORT`` and so on.
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import SettingsConfigDict

from tutorial_stack.core.settings import StackBaseSettings


class TutorialsAPISettings(StackBaseSettings):
    """Settings for the tutorials REST API.

    Order of precedence (highest → lowest):
        1. Constructor kwargs (tests)
        2. Environment variables (``TUTORIALS_DATABASE_URL``, etc.)
        3. ``.env`` file
        4. Defaults below
    """

    model_config = SettingsConfigDict(
        env_prefix="TUTORIALS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    port: int = Field(default=8080, description="Bind port")

    # ── API ──────────────────────────────────────────────────────────────
    api_prefix: str = Field(default="/api", description="URL prefix for all endpoints")
    api_title: str = Field(default="Tutorials API", description="OpenAPI title")
    api_version: str = Field(default="0.1.0", description="OpenAPI version string")

    # ── Database ─────────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite:///tutorials.db",
        description="SQLAlchemy connection URL",
    )
    database_echo: bool = Field(default=False, description="Log every SQL statement")

    # ── CORS ─────────────────────────────────────────────────────────────
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins",
    )

    # ── Pipeline webhook ─────────────────────────────────────────────────
    pipeline_webhook_enabled: bool = Field(
        default=False,
        description="Expose POST {api_prefix}/pipeline/push",
    )
    pipeline_webhook_secret: SecretStr | None = Field(
        default=None,
        description="GitHub webhook secret; when set, X-Hub-Signature-256 is required",
    )
