"""Tests for the push webhook and pipeline endpoints."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from tutorial_stack.api.app import create_app
from tutorial_stack.api.routers.pipeline import sign_payload
from tutorial_stack.api.settings import TutorialsAPISettings
from tutorial_stack.deploy.ledger import PipelineLedger
from tutorial_stack.deploy.results import PipelineRunResult, PipelineState
from tutorial_stack.deploy.trigger import PipelineCoordinator, PushEvent, TriggerDecision

PUSH = {
    "ref": "refs/heads/main",
    "after": "abc123",
    "repository": {"full_name": "acme/tutorials"},
    "pusher": {"name": "octocat"},
}


@pytest.fixture()
def coordinator() -> MagicMock:
    coord = MagicMock(spec=PipelineCoordinator)
    coord.submit.return_value = TriggerDecision.STARTED
    coord.status.return_value = {"branch": "main", "active_commit": "abc123", "pending_commit": None}
    return coord


def _client(engine, coordinator, ledger, secret: str | None = None) -> TestClient:
    settings = TutorialsAPISettings(
        database_url="sqlite://",
        pipeline_webhook_enabled=True,
        pipeline_webhook_secret=secret,
    )
    app = create_app(settings=settings, engine=engine, coordinator=coordinator, ledger=ledger)
    return TestClient(app)


class TestPushWebhook:
    def test_push_submitted(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", json=PUSH, headers={"X-GitHub-Event": "push"})
        assert resp.status_code == 202
        assert resp.json()["data"] == {"decision": "started", "ref": "refs/heads/main", "commit": "abc123"}
        event = coordinator.submit.call_args.args[0]
        assert isinstance(event, PushEvent)
        assert event.branch == "main"
        assert event.repository == "acme/tutorials"
        assert event.pusher == "octocat"

    def test_ping(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", json={"zen": "hi"}, headers={"X-GitHub-Event": "ping"})
        assert resp.status_code == 200
        assert resp.json()["data"]["decision"] == "pong"
        coordinator.submit.assert_not_called()

    def test_other_event_ignored(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", json=PUSH, headers={"X-GitHub-Event": "issues"})
        assert resp.json()["data"]["decision"] == "ignored"
        coordinator.submit.assert_not_called()

    def test_missing_ref_is_400(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", json={"after": "abc"})
        assert resp.status_code == 400

    def test_invalid_json_is_400(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", content=b"{oops")
        assert resp.status_code == 400

    def test_body_not_utf8_is_400(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", content=b"\xff{}")
        assert resp.status_code == 400
        assert resp.json()["title"] == "Webhook body is not valid JSON"

    @pytest.mark.parametrize(
        "override",
        [
            {"repository": "acme/tutorials"},
            {"pusher": "octocat"},
            {"ref": 123},
            {"after": ["abc"]},
        ],
    )
    def test_malformed_payload_is_400(self, engine, coordinator, tmp_path, override):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.post("/api/pipeline/push", json={**PUSH, **override})
        assert resp.status_code == 400
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["title"] == "Malformed push payload"
        coordinator.submit.assert_not_called()


class TestSignature:
    def test_valid_signature(self, engine, coordinator, tmp_path):
        body = json.dumps(PUSH).encode()
        headers = {"X-Hub-Signature-256": sign_payload("s3cret", body), "content-type": "application/json"}
        with _client(engine, coordinator, PipelineLedger(tmp_path), secret="s3cret") as c:
            resp = c.post("/api/pipeline/push", content=body, headers=headers)
        assert resp.status_code == 202
        coordinator.submit.assert_called_once()

    def test_bad_signature_is_401(self, engine, coordinator, tmp_path):
        body = json.dumps(PUSH).encode()
        headers = {"X-Hub-Signature-256": sign_payload("wrong", body)}
        with _client(engine, coordinator, PipelineLedger(tmp_path), secret="s3cret") as c:
            resp = c.post("/api/pipeline/push", content=body, headers=headers)
        assert resp.status_code == 401
        coordinator.submit.assert_not_called()

    def test_missing_signature_is_401(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path), secret="s3cret") as c:
            resp = c.post("/api/pipeline/push", json=PUSH)
        assert resp.status_code == 401

    def test_sign_payload_format(self):
        sig = sign_payload("k", b"body")
        assert sig.startswith("sha256=")
        assert len(sig) == len("sha256=") + 64


class TestRunsAndStatus:
    def test_runs_from_ledger(self, engine, coordinator, tmp_path):
        ledger = PipelineLedger(tmp_path)
        result = PipelineRunResult(run_id="r1", branch="main", commit="abc123")
        result.advance(PipelineState.TRIGGERED)
        ledger.write(result)

        with _client(engine, coordinator, ledger) as c:
            resp = c.get("/api/pipeline/runs")
        assert resp.status_code == 200
        runs = resp.json()["data"]
        assert [r["run_id"] for r in runs] == ["r1"]
        assert runs[0]["state"] == "TRIGGERED"

    def test_status(self, engine, coordinator, tmp_path):
        with _client(engine, coordinator, PipelineLedger(tmp_path)) as c:
            resp = c.get("/api/pipeline/status")
        assert resp.json()["data"]["active_commit"] == "abc123"
