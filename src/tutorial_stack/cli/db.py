"""
CLI: ``tutorial-stack db`` - database management commands.
"""

from __future__ import annotations

import typer

from tutorial_stack.cli.utils import DATABASE_OPTION_HELP, console, print_json, resolve_database_url

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create missing tables."""
    from tutorial_stack.core.orm import create_stack_engine, init_schema

    engine = create_stack_engine(resolve_database_url(database))
    try:
        tables = init_schema(engine)
        backend = engine.dialect.name
    finally:
        engine.dispose()

    if json_out:
        print_json({"backend": backend, "tables": tables})
        return
    console.print(f"[green]Schema ready[/green] on {backend}: {', '.join(tables)}")
