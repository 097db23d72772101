"""Proxy settings, read from ``TUTORIALS_PROXY_*`` environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from tutorial_stack.core.settings import StackBaseSettings


class ProxySettings(StackBaseSettings):
    """Where the two origins live and how long to wait for them."""

    model_config = SettingsConfigDict(
        env_prefix="TUTORIALS_PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    port: int = Field(default=8000, description="Bind port (the only published port)")

    api_origin: str = Field(default="http://localhost:8080", description="Base URL of the API service")
    frontend_origin: str = Field(default="http://localhost:8081", description="Base URL of the front-end service")
    api_prefix: str = Field(default="/api", description="Paths under this prefix go to the API")

    connect_timeout_s: float = Field(default=5.0, description="Upstream connect timeout")
    upstream_timeout_s: float = Field(default=30.0, description="Upstream read/write timeout")
