"""Endpoint tests for /api/tutorials."""

from __future__ import annotations

from unittest.mock import patch

BASE = "/api/tutorials"


def _create(client, **body) -> dict:
    resp = client.post(BASE, json={"title": "Intro", **body})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestCreate:
    def test_created_with_defaults(self, client):
        resp = client.post(BASE, json={"title": "Intro to SQL", "description": "basics"})
        assert resp.status_code == 201
        body = resp.json()
        assert set(body) >= {"data", "elapsed_ms", "warnings"}
        data = body["data"]
        assert data["id"]
        assert data["title"] == "Intro to SQL"
        assert data["description"] == "basics"
        assert data["published"] is False

    def test_missing_title_is_400(self, client):
        resp = client.post(BASE, json={"description": "no title"})
        assert resp.status_code == 400
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["status"] == 400
        assert any(e["field"] == "title" for e in body["errors"])

    def test_blank_title_is_400(self, client):
        resp = client.post(BASE, json={"title": "  "})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "VALIDATION_FAILED"

    def test_wrong_type_is_400(self, client):
        resp = client.post(BASE, json={"title": "x", "published": "sometimes"})
        assert resp.status_code == 400

    def test_malformed_json_is_400(self, client):
        resp = client.post(BASE, content=b"{not json", headers={"content-type": "application/json"})
        assert resp.status_code == 400


class TestRead:
    def test_list(self, client):
        _create(client, title="a")
        _create(client, title="b")
        resp = client.get(BASE)
        assert resp.status_code == 200
        assert {t["title"] for t in resp.json()["data"]} == {"a", "b"}

    def test_list_empty(self, client):
        assert client.get(BASE).json()["data"] == []

    def test_search_by_title(self, client):
        _create(client, title="Intro to SQL")
        _create(client, title="Python")
        resp = client.get(BASE, params={"title": "sql"})
        assert [t["title"] for t in resp.json()["data"]] == ["Intro to SQL"]

    def test_published(self, client):
        _create(client, title="draft")
        _create(client, title="live", published=True)
        resp = client.get(f"{BASE}/published")
        assert [t["title"] for t in resp.json()["data"]] == ["live"]

    def test_get_one(self, client):
        created = _create(client)
        resp = client.get(f"{BASE}/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["data"] == created

    def test_get_unknown_is_404(self, client):
        resp = client.get(f"{BASE}/does-not-exist")
        assert resp.status_code == 404
        body = resp.json()
        assert body["status"] == 404
        assert body["detail"] == "NOT_FOUND"
        assert body["instance"] == f"{BASE}/does-not-exist"


class TestUpdate:
    def test_partial_update(self, client):
        created = _create(client, description="keep")
        resp = client.put(f"{BASE}/{created['id']}", json={"published": True})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["published"] is True
        assert data["description"] == "keep"
        assert data["title"] == created["title"]

    def test_empty_body_is_400(self, client):
        created = _create(client)
        resp = client.put(f"{BASE}/{created['id']}", json={})
        assert resp.status_code == 400

    def test_unknown_is_404(self, client):
        resp = client.put(f"{BASE}/nope", json={"title": "x"})
        assert resp.status_code == 404


class TestDelete:
    def test_delete_twice(self, client):
        created = _create(client)
        first = client.delete(f"{BASE}/{created['id']}")
        assert first.status_code == 200
        assert first.json()["data"] == {"id": created["id"], "deleted": True}
        second = client.delete(f"{BASE}/{created['id']}")
        assert second.status_code == 404

    def test_delete_all(self, client):
        _create(client, title="a")
        _create(client, title="b")
        resp = client.delete(BASE)
        assert resp.status_code == 200
        assert resp.json()["data"]["deleted"] == 2
        assert client.get(BASE).json()["data"] == []


class TestInternalErrors:
    def test_exception_text_not_exposed(self, client):
        with patch(
            "tutorial_stack.ops.tutorials.TutorialRepository.list_all",
            side_effect=RuntimeError("password=hunter2"),
        ):
            resp = client.get(BASE)
        assert resp.status_code == 500
        body = resp.json()
        assert body["title"] == "Failed to list tutorials"
        assert "hunter2" not in resp.text
