"""Path-prefix routing for the reverse proxy.

Matching is on whole path segments: ``/api`` matches ``/api``, ``/api/``
and ``/api/tutorials`` but not ``/apiary``. When several routes match, the
longest prefix wins; when none does, the default route (the front-end)
takes the request.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from tutorial_stack.proxy.settings import ProxySettings


def _normalize_prefix(prefix: str) -> str:
    return "/" + prefix.strip("/")


@dataclass(frozen=True)
class Route:
    """Requests whose path starts with ``prefix`` go to ``origin``."""

    prefix: str
    origin: str
    name: str

    def matches(self, path: str) -> bool:
        if self.prefix == "/":
            return True
        return path == self.prefix or path.startswith(self.prefix + "/")

    def upstream_url(self, path: str, query: str = "") -> str:
        """Full upstream URL; the path is forwarded unchanged."""
        url = self.origin.rstrip("/") + path
        return f"{url}?{query}" if query else url


class RouteTable:
    """An ordered set of :class:`Route` objects plus a fallback."""

    def __init__(self, routes: Iterable[Route], default: Route) -> None:
        normalized = [
            Route(_normalize_prefix(r.prefix), r.origin, r.name) for r in routes
        ]
        self.routes = sorted(normalized, key=lambda r: len(r.prefix), reverse=True)
        self.default = default

    def resolve(self, path: str) -> Route:
        """Longest matching prefix on a segment boundary, else the default."""
        path = path or "/"
        for route in self.routes:
            if route.matches(path):
                return route
        return self.default

    @classmethod
    def from_settings(cls, settings: ProxySettings) -> RouteTable:
        """``{"/": frontend, "<api_prefix>": api}``."""
        frontend = Route("/", settings.frontend_origin, "frontend")
        api = Route(settings.api_prefix, settings.api_origin, "api")
        return cls([api, frontend], default=frontend)

    def __repr__(self) -> str:
        routes = ", ".join(f"{r.prefix}->{r.name}" for r in self.routes)
        return f"RouteTable({routes}; default={self.default.name})"
