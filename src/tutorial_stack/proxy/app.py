"""ASGI reverse proxy.

One catch-all route forwards every request to the origin chosen by the
:class:`~tutorial_stack.proxy.routing.RouteTable`, preserving method,
path, query string, body and end-to-end headers. The only state shared
between requests is the pooled ``httpx.AsyncClient``.

Failure semantics (no retries):

* origin refuses or drops the connection -> ``502 Bad Gateway``
* origin does not answer in time         -> ``504 Gateway Timeout``

The proxy answers ``/health``, ``/health/live`` and ``/health/ready``
itself so the container healthcheck does not depend on the origins.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from urllib.parse import quote

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from tutorial_stack import __version__
from tutorial_stack.api.middleware.errors import problem_response
from tutorial_stack.core.errors import UpstreamUnavailableError
from tutorial_stack.core.health import create_health_router
from tutorial_stack.core.logging import get_logger
from tutorial_stack.proxy.routing import RouteTable
from tutorial_stack.proxy.settings import ProxySettings

logger = get_logger(__name__)

HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)

# httpx hands back a decoded body, so length and encoding are recomputed
_RESPONSE_DROP = HOP_BY_HOP_HEADERS | {"content-length", "content-encoding"}

METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _connection_tokens(headers: httpx.Headers | dict[str, str]) -> set[str]:
    value = headers.get("connection", "")
    return {token.strip().lower() for token in value.split(",") if token.strip()}


def _raw_path(request: Request) -> str:
    """Path as the client sent it, percent-escapes intact."""
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1").split("?", 1)[0]
    return quote(request.scope["path"])


async def upstream_error_handler(request: Request, exc: UpstreamUnavailableError) -> JSONResponse:
    if exc.timed_out:
        return problem_response(status=504, title="Gateway Timeout", detail=exc.message, instance=request.url.path)
    return problem_response(status=502, title="Bad Gateway", detail=exc.message, instance=request.url.path)


class ReverseProxy:
    """Forward requests according to a route table."""

    def __init__(self, table: RouteTable, client: httpx.AsyncClient) -> None:
        self.table = table
        self.client = client

    def request_headers(self, request: Request) -> dict[str, str]:
        """End-to-end request headers plus ``X-Forwarded-*``; ``Host`` is dropped."""
        drop = HOP_BY_HOP_HEADERS | {"host", "content-length"} | _connection_tokens(request.headers)
        headers = {k: v for k, v in request.headers.items() if k.lower() not in drop}

        client_host = request.client.host if request.client else ""
        prior = request.headers.get("x-forwarded-for")
        forwarded_for = f"{prior}, {client_host}" if prior and client_host else (prior or client_host)
        if forwarded_for:
            headers["x-forwarded-for"] = forwarded_for
        headers["x-forwarded-proto"] = request.url.scheme
        if "host" in request.headers:
            headers["x-forwarded-host"] = request.headers["host"]
        return headers

    async def forward(self, request: Request) -> Response:
        """Send *request* to its origin and relay the answer.

        Raises
        ------
        UpstreamUnavailableError
            The origin was unreachable or did not answer in time.
        """
        route = self.table.resolve(request.url.path)
        url = route.upstream_url(_raw_path(request), request.url.query)
        body = await request.body()

        try:
            upstream = await self.client.request(
                request.method,
                url,
                headers=self.request_headers(request),
                content=body,
            )
        except httpx.TimeoutException as exc:
            logger.warning("proxy.upstream_timeout", route=route.name, url=url, error=str(exc))
            raise UpstreamUnavailableError(
                f"{route.name} did not respond in time", timed_out=True, cause=exc
            ).with_context(url=url) from exc
        except httpx.TransportError as exc:
            logger.warning("proxy.upstream_unreachable", route=route.name, url=url, error=str(exc))
            raise UpstreamUnavailableError(f"{route.name} is unreachable", cause=exc).with_context(url=url) from exc

        drop = _RESPONSE_DROP | _connection_tokens(upstream.headers)
        headers = [(k, v) for k, v in upstream.headers.multi_items() if k.lower() not in drop]
        response = Response(content=upstream.content, status_code=upstream.status_code)
        for key, value in headers:
            response.headers.append(key, value)
        logger.debug("proxy.forwarded", route=route.name, method=request.method, status=upstream.status_code)
        return response


def create_proxy_app(
    settings: ProxySettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the proxy ASGI app.

    Parameters
    ----------
    settings
        Origins and timeouts; read from the environment when omitted.
    transport
        Custom httpx transport (``httpx.MockTransport`` in tests).
    """
    settings = settings or ProxySettings()
    table = RouteTable.from_settings(settings)
    timeout = httpx.Timeout(settings.upstream_timeout_s, connect=settings.connect_timeout_s)
    client = httpx.AsyncClient(transport=transport, timeout=timeout, follow_redirects=False)
    proxy = ReverseProxy(table, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("proxy.starting", routes=repr(table))
        yield
        await client.aclose()

    app = FastAPI(title="tutorials-proxy", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.proxy = proxy
    app.add_exception_handler(UpstreamUnavailableError, upstream_error_handler)

    app.include_router(create_health_router("tutorials-proxy", version=__version__))

    @app.api_route("/{path:path}", methods=METHODS, include_in_schema=False)
    async def catch_all(request: Request) -> Response:
        return await proxy.forward(request)

    return app


__all__ = ["HOP_BY_HOP_HEADERS", "ReverseProxy", "create_proxy_app", "upstream_error_handler"]
