"""
CLI: ``tutorial-stack serve`` - run one of the stack's HTTP services.

Each container in the stack runs one of these::

    tutorial-stack serve api        # REST API        (TUTORIALS_*)
    tutorial-stack serve frontend   # static SPA      (TUTORIALS_FRONTEND_*)
    tutorial-stack serve proxy      # single ingress  (TUTORIALS_PROXY_*)

Host and port default to the service's settings; the flags override them.
"""

from __future__ import annotations

import typer
import uvicorn

from tutorial_stack.cli.utils import console
from tutorial_stack.core.logging import configure_logging
from tutorial_stack.core.settings import StackBaseSettings

app = typer.Typer(no_args_is_help=True)


def _run(
    service: str,
    factory: str,
    settings: StackBaseSettings,
    host: str | None,
    port: int | None,
    reload: bool,
) -> None:
    bind_host = host or settings.host
    bind_port = port or settings.port
    configure_logging(level=settings.log_level, json_format=settings.log_json, service=service)
    console.print(f"[bold green]Starting {service}[/bold green] on {bind_host}:{bind_port}")
    uvicorn.run(
        factory,
        factory=True,
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@app.command("api")
def serve_api(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
) -> None:
    """Start the tutorials REST API."""
    from tutorial_stack.api.settings import TutorialsAPISettings

    _run("tutorials-api", "tutorial_stack.api:create_app", TutorialsAPISettings(), host, port, reload)


@app.command("frontend")
def serve_frontend(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
) -> None:
    """Serve the built single-page app."""
    from tutorial_stack.frontend.settings import FrontendSettings

    settings = FrontendSettings()
    if not settings.static_dir.is_dir():
        console.print(f"[yellow]Warning:[/yellow] static dir {settings.static_dir} does not exist")
    _run("tutorials-frontend", "tutorial_stack.frontend:create_frontend_app", settings, host, port, reload)


@app.command("proxy")
def serve_proxy(
    host: str | None = typer.Option(None, "--host", "-h", help="Bind address"),
    port: int | None = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on changes"),
) -> None:
    """Start the reverse proxy in front of the API and the front end."""
    from tutorial_stack.proxy.settings import ProxySettings

    _run("tutorials-proxy", "tutorial_stack.proxy:create_proxy_app", ProxySettings(), host, port, reload)
