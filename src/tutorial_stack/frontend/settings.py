"""Front-end server settings, read from ``TUTORIALS_FRONTEND_*`` variables."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from tutorial_stack.core.settings import StackBaseSettings


class FrontendSettings(StackBaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TUTORIALS_FRONTEND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    port: int = Field(default=8081, description="Bind port")
    static_dir: Path = Field(default=Path("dist"), description="Directory of built SPA assets")
    index_file: str = Field(default="index.html", description="Entry document served for client-side routes")
    asset_max_age_s: int = Field(default=3600, description="Cache-Control max-age for files other than the index")
