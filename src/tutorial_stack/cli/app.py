"""
Root Typer application for the tutorial-stack CLI.

Sub-commands import their heavy dependencies (FastAPI, SQLAlchemy)
inside the command body, so ``--help`` stays fast.
"""

from __future__ import annotations

import typer
from typer import Typer

from tutorial_stack import __version__
from tutorial_stack.core.logging import configure_logging

app = Typer(
    name="tutorial-stack",
    help="tutorial-stack - tutorials API, its front end, proxy, and deployment pipeline.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tutorial-stack {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for CLI commands."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs as JSON."),
) -> None:
    """tutorial-stack CLI - manage tutorials, run services, and deploy."""
    configure_logging(
        level=log_level,
        json_format=log_json,
        service="tutorial-stack-cli",
        stderr=True,
        cache_loggers=False,
    )


# ── Sub-command registration ─────────────────────────────────────────────

from tutorial_stack.cli.db import app as db_app  # noqa: E402
from tutorial_stack.cli.deploy import app as deploy_app  # noqa: E402
from tutorial_stack.cli.serve import app as serve_app  # noqa: E402
from tutorial_stack.cli.tutorials import app as tutorials_app  # noqa: E402

app.add_typer(db_app, name="db", help="Database operations.")
app.add_typer(tutorials_app, name="tutorials", help="Tutorial management.")
app.add_typer(serve_app, name="serve", help="Run a stack service.")
app.add_typer(deploy_app, name="deploy", help="Compose file, CI workflow, and the deployment pipeline.")
