"""Tests for the front-end static server."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tutorial_stack.frontend.app import StaticSite, create_frontend_app
from tutorial_stack.frontend.settings import FrontendSettings


@pytest.fixture()
def dist(tmp_path):
    root = tmp_path / "dist"
    (root / "assets").mkdir(parents=True)
    (root / "index.html").write_text("<html>app</html>")
    (root / "assets" / "app.js").write_text("console.log(1)")
    (tmp_path / "secret.txt").write_text("nope")
    return root


@pytest.fixture()
def client(dist):
    return TestClient(create_frontend_app(FrontendSettings(static_dir=dist, asset_max_age_s=60)))


class TestStaticSite:
    def test_locate(self, dist):
        site = StaticSite(dist)
        assert site.locate("/assets/app.js") == (dist / "assets" / "app.js").resolve()
        assert site.locate("/") == site.index
        assert site.locate("/tutorials/42") == site.index
        assert site.locate("/assets/missing.js") is None

    def test_traversal_blocked(self, dist):
        assert StaticSite(dist).locate("/../secret.txt") is None

    def test_no_index(self, tmp_path):
        assert StaticSite(tmp_path).locate("/anything") is None

    def test_null_byte_not_found(self, dist):
        assert StaticSite(dist).locate("/assets/app\x00.js") is None


class TestFrontendApp:
    def test_index(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.text == "<html>app</html>"
        assert resp.headers["cache-control"] == "no-cache"

    def test_client_side_route_falls_back_to_index(self, client):
        resp = client.get("/tutorials/42/edit")
        assert resp.status_code == 200
        assert resp.text == "<html>app</html>"

    def test_asset(self, client):
        resp = client.get("/assets/app.js")
        assert resp.status_code == 200
        assert resp.text == "console.log(1)"
        assert resp.headers["cache-control"] == "public, max-age=60"

    def test_missing_asset_is_404(self, client):
        resp = client.get("/assets/missing.js")
        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")

    def test_encoded_null_byte_is_404(self, client):
        resp = client.get("/tutorials%00/x")
        assert resp.status_code == 404

    def test_health(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}
        assert client.get("/health").json()["service"] == "tutorials-frontend"
