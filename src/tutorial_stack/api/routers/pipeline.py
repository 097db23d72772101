"""
Pipeline router - push webhook and run history.

Endpoints:
    POST /pipeline/push     GitHub ``push`` webhook; starts or queues a run
    GET  /pipeline/runs     Recent run summaries from the ledger
    GET  /pipeline/status   Active / pending commit of the coordinator

Mounted only when ``pipeline_webhook_enabled`` is set. When a webhook
secret is configured, every push must carry a valid
``X-Hub-Signature-256`` header.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from tutorial_stack.api.deps import Settings
from tutorial_stack.api.middleware.errors import problem_response
from tutorial_stack.core.logging import get_logger
from tutorial_stack.deploy.ledger import PipelineLedger
from tutorial_stack.deploy.trigger import PipelineCoordinator, PushEvent

logger = get_logger(__name__)

router = APIRouter(prefix="/pipeline")

SIGNATURE_HEADER = "X-Hub-Signature-256"


def sign_payload(secret: str, body: bytes) -> str:
    """``sha256=<hex>`` HMAC of *body*, as GitHub computes it."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def _coordinator(request: Request) -> PipelineCoordinator:
    return request.app.state.pipeline_coordinator


def _ledger(request: Request) -> PipelineLedger:
    return request.app.state.pipeline_ledger


@router.post("/push", status_code=202)
async def push_webhook(request: Request, settings: Settings) -> Any:
    """Accept a GitHub push event and hand it to the coordinator."""
    body = await request.body()
    path = request.url.path

    secret = settings.pipeline_webhook_secret
    if secret is not None:
        supplied = request.headers.get(SIGNATURE_HEADER, "")
        expected = sign_payload(secret.get_secret_value(), body)
        if not hmac.compare_digest(supplied, expected):
            logger.warning("pipeline.webhook_bad_signature")
            return problem_response(status=401, title="Invalid webhook signature", instance=path)

    event_type = request.headers.get("X-GitHub-Event", "push")
    if event_type == "ping":
        return JSONResponse(status_code=200, content={"data": {"decision": "pong"}})
    if event_type != "push":
        return JSONResponse(status_code=202, content={"data": {"decision": "ignored", "event": event_type}})

    try:
        payload = json.loads(body or b"{}")
    except ValueError as exc:
        # JSONDecodeError and UnicodeDecodeError
        return problem_response(status=400, title="Webhook body is not valid JSON", detail=str(exc), instance=path)
    if not isinstance(payload, dict) or not payload.get("ref"):
        return problem_response(status=400, title="Push payload has no 'ref'", instance=path)

    try:
        event = PushEvent.from_github(payload)
    except ValueError as exc:
        logger.warning("pipeline.webhook_bad_payload", error=str(exc))
        return problem_response(status=400, title="Malformed push payload", detail=str(exc), instance=path)
    decision = _coordinator(request).submit(event)
    logger.info("pipeline.webhook", ref=event.ref, commit=event.commit, decision=decision.value)
    return {"data": {"decision": decision.value, "ref": event.ref, "commit": event.commit}}


@router.get("/runs")
def list_runs(request: Request, limit: int = Query(20, ge=1, le=200)) -> Any:
    """Most recent pipeline runs, newest first."""
    runs = _ledger(request).list_runs(limit=limit)
    return {"data": [r.model_dump(mode="json") for r in runs]}


@router.get("/status")
def pipeline_status(request: Request) -> Any:
    return {"data": _coordinator(request).status()}
