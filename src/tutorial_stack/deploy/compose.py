"""Docker Compose generation for the tutorial stack.

Renders the :mod:`tutorial_stack.deploy.services` registry into the
``docker-compose.yml`` that lives in ``remote_dir`` on the deployment host.
The pipeline's deploy step only runs ``docker compose pull`` and
``docker compose up -d`` against that file, so everything about the
topology is decided here.

Key Concepts:
    generate_stack_compose: YAML string for the four-service stack, image
        references taken from a :class:`PipelineConfig`.
    startup_order: Topological sort of ``depends_on``; the order compose
        will start services in.
    check_compose_contract: Verifies a compose document (generated or
        hand-edited) still has the shape the stack relies on.
    write_compose_file: Persists YAML string to disk.

Tags:
    compose, docker, yaml, generation, deployment
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from tutorial_stack.core.errors import ConfigError
from tutorial_stack.deploy.config import PipelineConfig
from tutorial_stack.deploy.services import API, DATABASE, FRONTEND, PROXY, ServiceSpec

logger = logging.getLogger(__name__)

REQUIRED_SERVICES = ("database", "api", "frontend", "proxy")
REQUIRED_EDGES = (("api", "database"), ("proxy", "api"), ("proxy", "frontend"))
INGRESS_SERVICE = "proxy"


def stack_services(config: PipelineConfig | None = None) -> list[ServiceSpec]:
    """The four stack services, with image refs resolved from *config*."""
    config = config or PipelineConfig()
    return [
        DATABASE,
        replace(API, image=config.api_image_ref),
        replace(FRONTEND, image=config.frontend_image_ref),
        replace(PROXY, image=config.api_image_ref),
    ]


def startup_order(services: Iterable[ServiceSpec]) -> list[str]:
    """Return service names so that every service follows its dependencies.

    Ties are broken by declaration order, so the result is deterministic.

    Raises
    ------
    ConfigError
        On an unknown dependency or a dependency cycle.
    """
    specs = list(services)
    names = [s.name for s in specs]
    pending = {s.name: set(s.depends_on) for s in specs}

    for spec in specs:
        unknown = set(spec.depends_on) - set(names)
        if unknown:
            raise ConfigError(f"Service {spec.name!r} depends on unknown service(s): {sorted(unknown)}")

    order: list[str] = []
    while pending:
        ready = [n for n in names if n in pending and not pending[n]]
        if not ready:
            raise ConfigError(f"Dependency cycle between services: {sorted(pending)}")
        for name in ready:
            order.append(name)
            del pending[name]
        for deps in pending.values():
            deps.difference_update(ready)
    return order


def build_stack_compose(
    services: list[ServiceSpec],
    project_name: str = "tutorial-stack",
) -> dict[str, Any]:
    """Build the compose document as a plain dict (services in startup order)."""
    by_name = {s.name: s for s in services}

    compose: dict[str, Any] = {
        "name": project_name,
        "services": {},
        "volumes": {},
    }

    for name in startup_order(services):
        spec = by_name[name]
        service: dict[str, Any] = {"image": spec.image}

        if spec.command:
            service["command"] = list(spec.command)
        if spec.env:
            service["environment"] = dict(spec.env)
        if spec.publish_port is not None:
            service["ports"] = [f"{spec.publish_port}:{spec.port}"]
        else:
            service["expose"] = [str(spec.port)]

        if spec.depends_on:
            service["depends_on"] = {
                dep: {"condition": "service_healthy"} for dep in spec.depends_on
            }

        if spec.healthcheck:
            service["healthcheck"] = {
                "test": list(spec.healthcheck),
                "interval": "10s",
                "timeout": "5s",
                "retries": 5,
                "start_period": "20s",
            }

        for vol_name, mount_path in spec.volumes.items():
            service.setdefault("volumes", []).append(f"{vol_name}:{mount_path}")
            compose["volumes"][vol_name] = {}

        service["restart"] = "unless-stopped"
        compose["services"][name] = service

    if not compose["volumes"]:
        del compose["volumes"]
    return compose


def generate_stack_compose(
    config: PipelineConfig | None = None,
    project_name: str = "tutorial-stack",
) -> str:
    """Generate the stack's docker-compose YAML.

    Returns
    -------
    str
        YAML string with a short header comment, ready to write to a file.
    """
    services = stack_services(config)
    compose = build_stack_compose(services, project_name=project_name)
    header = (
        "# Generated by `tutorial-stack deploy compose`\n"
        f"# Project: {project_name}\n"
        f"# Services: {', '.join(compose['services'])}\n\n"
    )
    return header + yaml.safe_dump(compose, default_flow_style=False, sort_keys=False)


def _depends_on(service: dict[str, Any]) -> set[str]:
    # long form is a mapping, short form a list; both iterate as names
    return set(service.get("depends_on") or [])


def _named_volumes_used(service: dict[str, Any]) -> set[str]:
    used: set[str] = set()
    for entry in service.get("volumes") or []:
        source = entry.get("source", "") if isinstance(entry, dict) else str(entry).split(":", 1)[0]
        if source and not source.startswith((".", "/", "~")):
            used.add(source)
    return used


def check_compose_contract(compose: dict[str, Any] | str) -> list[str]:
    """Check a compose document against the stack's topology rules.

    Accepts the parsed dict or the YAML text. Returns a list of
    violations; an empty list means the document is acceptable.
    """
    if isinstance(compose, str):
        compose = yaml.safe_load(compose) or {}

    problems: list[str] = []
    services: dict[str, Any] = compose.get("services") or {}

    names = set(services)
    if names != set(REQUIRED_SERVICES):
        problems.append(
            f"expected services {sorted(REQUIRED_SERVICES)}, found {sorted(names)}"
        )

    for dependent, dependency in REQUIRED_EDGES:
        if dependent in services and dependency not in _depends_on(services[dependent]):
            problems.append(f"{dependent!r} must depend on {dependency!r}")

    published = sorted(n for n, svc in services.items() if svc.get("ports"))
    if published != [INGRESS_SERVICE]:
        problems.append(f"only {INGRESS_SERVICE!r} may publish ports, found {published}")
    elif len(services[INGRESS_SERVICE]["ports"]) != 1:
        problems.append(f"{INGRESS_SERVICE!r} must publish exactly one port")

    volumes = list((compose.get("volumes") or {}).keys())
    if len(volumes) != 1:
        problems.append(f"expected exactly one named volume, found {volumes}")
    elif "database" in services and volumes[0] not in _named_volumes_used(services["database"]):
        problems.append(f"volume {volumes[0]!r} must be mounted on 'database'")

    return problems


def write_compose_file(content: str, output_path: str | Path = "docker-compose.yml") -> str:
    """Write compose YAML to *output_path* and return the path written."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    logger.info("compose.written", extra={"path": str(path)})
    return str(path)


__all__ = [
    "stack_services",
    "startup_order",
    "build_stack_compose",
    "generate_stack_compose",
    "check_compose_contract",
    "write_compose_file",
]
