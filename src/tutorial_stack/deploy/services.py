"""Service registry for the orchestrated tutorial stack.

The four services that make up one deployment, described once as
:class:`ServiceSpec` objects. :mod:`tutorial_stack.deploy.compose`
renders them into ``docker-compose.yml`` and the CLI lists them.

Topology::

    database  <-  api  <-+
                         +-  proxy  (only published port)
              frontend <-+

Tags:
    services, registry, topology, compose
"""

from __future__ import annotations

from dataclasses import dataclass, field

DB_USER = "tutorials"
DB_NAME = "tutorials"
_DB_VOLUME = "tutorials-data"


@dataclass(frozen=True)
class ServiceSpec:
    """Specification for one service in the stack."""

    name: str
    """Service name, also its hostname on the compose network."""

    image: str
    """Docker image reference."""

    port: int
    """Port the service listens on inside its container."""

    publish_port: int | None = None
    """Host port to publish; ``None`` keeps the service internal."""

    command: list[str] = field(default_factory=list)
    """Overrides the image's default command when non-empty."""

    env: dict[str, str] = field(default_factory=dict)

    depends_on: list[str] = field(default_factory=list)
    """Services that must be healthy before this one starts."""

    volumes: dict[str, str] = field(default_factory=dict)
    """Named volume -> container mount path."""

    healthcheck: list[str] = field(default_factory=list)
    """Compose healthcheck ``test`` array."""

    description: str = ""


def _http_healthcheck(port: int, path: str) -> list[str]:
    probe = f"import urllib.request; urllib.request.urlopen('http://localhost:{port}{path}', timeout=3)"
    return ["CMD", "python", "-c", probe]


# ---------------------------------------------------------------------------
# Pre-defined services
# ---------------------------------------------------------------------------

DATABASE = ServiceSpec(
    name="database",
    image="postgres:16-alpine",
    port=5432,
    env={
        "POSTGRES_USER": DB_USER,
        "POSTGRES_PASSWORD": "${TUTORIALS_DB_PASSWORD:-tutorials}",
        "POSTGRES_DB": DB_NAME,
    },
    volumes={_DB_VOLUME: "/var/lib/postgresql/data"},
    healthcheck=["CMD-SHELL", f"pg_isready -U {DB_USER} -d {DB_NAME}"],
    description="PostgreSQL holding the tutorials table",
)

API = ServiceSpec(
    name="api",
    image="tutorials/tutorials-api:latest",
    port=8080,
    command=["tutorial-stack", "serve", "api"],
    env={
        "TUTORIALS_DATABASE_URL": (
            f"postgresql+psycopg://{DB_USER}:${{TUTORIALS_DB_PASSWORD:-tutorials}}@database:5432/{DB_NAME}"
        ),
        "TUTORIALS_PORT": "8080",
    },
    depends_on=["database"],
    healthcheck=_http_healthcheck(8080, "/health/ready"),
    description="Tutorial CRUD API",
)

FRONTEND = ServiceSpec(
    name="frontend",
    image="tutorials/tutorials-frontend:latest",
    port=8081,
    command=["tutorial-stack", "serve", "frontend"],
    env={
        "TUTORIALS_FRONTEND_STATIC_DIR": "/app/dist",
        "TUTORIALS_FRONTEND_PORT": "8081",
    },
    healthcheck=_http_healthcheck(8081, "/health/live"),
    description="Static single-page app server",
)

PROXY = ServiceSpec(
    name="proxy",
    image="tutorials/tutorials-api:latest",
    port=8000,
    publish_port=80,
    command=["tutorial-stack", "serve", "proxy"],
    env={
        "TUTORIALS_PROXY_API_ORIGIN": "http://api:8080",
        "TUTORIALS_PROXY_FRONTEND_ORIGIN": "http://frontend:8081",
        "TUTORIALS_PROXY_PORT": "8000",
    },
    depends_on=["api", "frontend"],
    healthcheck=_http_healthcheck(8000, "/health/live"),
    description="Reverse proxy, the single ingress",
)

SERVICES: dict[str, ServiceSpec] = {
    s.name: s for s in (DATABASE, API, FRONTEND, PROXY)
}


__all__ = [
    "ServiceSpec",
    "DATABASE",
    "API",
    "FRONTEND",
    "PROXY",
    "SERVICES",
]
