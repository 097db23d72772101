"""Health endpoints for the API, front-end and proxy containers.

Every service mounts the same three routes at the root::

    GET /health         full report; 503 when a required dependency is down
    GET /health/ready   503 unless every dependency is healthy
    GET /health/live    200 while the process is up, no dependency checks

The compose healthchecks probe ``/health/ready`` on the API (so the proxy
waits for the database) and ``/health/live`` on the other two.

Usage::

    monitor = HealthMonitor("tutorials-api", "0.1.0", [HealthCheck("database", ping_db)])
    app.include_router(monitor.router())
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

Status = Literal["healthy", "degraded", "unhealthy"]

_PROCESS_STARTED = time.monotonic()


class CheckResult(BaseModel):
    status: Status
    latency_ms: float | None = None
    error: str | None = None


class HealthReport(BaseModel):
    """Body of ``/health`` and ``/health/ready``."""

    status: Status
    service: str
    version: str
    uptime_s: float
    timestamp: str
    checks: dict[str, CheckResult] = Field(default_factory=dict)


@dataclass(frozen=True)
class HealthCheck:
    """One dependency probe.

    ``probe`` returns normally when the dependency is usable and raises
    (or returns ``False``) when it is not. A failing optional check only
    degrades the report.
    """

    name: str
    probe: Callable[[], Awaitable[bool]]
    required: bool = True
    timeout_s: float = 5.0

    async def run(self) -> CheckResult:
        started = time.monotonic()
        try:
            ok = await asyncio.wait_for(self.probe(), timeout=self.timeout_s)
        except TimeoutError:
            return CheckResult(status="unhealthy", error="timeout")
        except Exception as exc:  # noqa: BLE001 - reported in the body
            return CheckResult(
                status="unhealthy",
                latency_ms=_elapsed_ms(started),
                error=str(exc)[:200],
            )
        return CheckResult(
            status="unhealthy" if ok is False else "healthy",
            latency_ms=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> float:
    return round((time.monotonic() - started) * 1000, 2)


class HealthMonitor:
    """Runs a service's dependency checks and serves the results."""

    def __init__(self, service: str, version: str, checks: Sequence[HealthCheck] = ()) -> None:
        self.service = service
        self.version = version
        self.checks = list(checks)

    async def report(self) -> HealthReport:
        results = await asyncio.gather(*(check.run() for check in self.checks))
        by_name = {check.name: result for check, result in zip(self.checks, results, strict=True)}
        return HealthReport(
            status=self._overall(by_name),
            service=self.service,
            version=self.version,
            uptime_s=round(time.monotonic() - _PROCESS_STARTED, 1),
            timestamp=datetime.now(UTC).isoformat(),
            checks=by_name,
        )

    def _overall(self, results: dict[str, CheckResult]) -> Status:
        failed = [c for c in self.checks if results[c.name].status != "healthy"]
        if any(c.required for c in failed):
            return "unhealthy"
        return "degraded" if failed else "healthy"

    def router(self, prefix: str = "/health") -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get(prefix, response_model=HealthReport)
        async def health() -> JSONResponse:
            report = await self.report()
            code = 503 if report.status == "unhealthy" else 200
            return JSONResponse(report.model_dump(), status_code=code)

        @router.get(f"{prefix}/ready", response_model=HealthReport)
        async def ready() -> JSONResponse:
            report = await self.report()
            code = 200 if report.status == "healthy" else 503
            return JSONResponse(report.model_dump(), status_code=code)

        @router.get(f"{prefix}/live")
        async def live() -> dict[str, str]:
            return {"status": "alive"}

        return router


def create_health_router(
    service_name: str,
    version: str,
    checks: Sequence[HealthCheck] = (),
    prefix: str = "/health",
) -> APIRouter:
    """Shorthand for ``HealthMonitor(service_name, version, checks).router(prefix)``."""
    return HealthMonitor(service_name, version, checks).router(prefix)
