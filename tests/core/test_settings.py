"""Tests for the pydantic-settings layer."""

from __future__ import annotations

from tutorial_stack.api.settings import TutorialsAPISettings
from tutorial_stack.frontend.settings import FrontendSettings
from tutorial_stack.proxy.settings import ProxySettings


class TestServiceSettings:
    def test_api_defaults(self, monkeypatch):
        monkeypatch.delenv("TUTORIALS_DATABASE_URL", raising=False)
        s = TutorialsAPISettings()
        assert s.port == 8080
        assert s.api_prefix == "/api"
        assert s.database_url == "sqlite:///tutorials.db"
        assert s.pipeline_webhook_enabled is False

    def test_api_env_override(self, monkeypatch):
        monkeypatch.setenv("TUTORIALS_DATABASE_URL", "postgresql+psycopg://u:p@db:5432/t")
        monkeypatch.setenv("TUTORIALS_PIPELINE_WEBHOOK_SECRET", "s3cret")
        s = TutorialsAPISettings()
        assert s.database_url == "postgresql+psycopg://u:p@db:5432/t"
        assert s.pipeline_webhook_secret is not None
        assert s.pipeline_webhook_secret.get_secret_value() == "s3cret"
        assert "s3cret" not in repr(s)

    def test_prefixes_do_not_collide(self, monkeypatch):
        monkeypatch.setenv("TUTORIALS_PROXY_PORT", "9000")
        monkeypatch.setenv("TUTORIALS_FRONTEND_PORT", "9001")
        monkeypatch.delenv("TUTORIALS_PORT", raising=False)
        assert ProxySettings().port == 9000
        assert FrontendSettings().port == 9001
        assert TutorialsAPISettings().port == 8080

    def test_kwargs_win(self, monkeypatch):
        monkeypatch.setenv("TUTORIALS_PROXY_API_ORIGIN", "http://env:1")
        assert ProxySettings(api_origin="http://kw:2").api_origin == "http://kw:2"
