"""
CLI utility helpers - output formatting and session management.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from tutorial_stack.core.orm import create_stack_engine, init_schema, stack_session_factory
from tutorial_stack.ops.context import OperationContext
from tutorial_stack.ops.result import OperationResult

console = Console()
err_console = Console(stderr=True)

DATABASE_OPTION_HELP = "SQLAlchemy URL (default: TUTORIALS_DATABASE_URL or sqlite:///tutorials.db)"


# ── Session helper ───────────────────────────────────────────────────────


def resolve_database_url(database: str | None) -> str:
    if database:
        return database
    from tutorial_stack.api.settings import TutorialsAPISettings

    return TutorialsAPISettings().database_url


@contextmanager
def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
) -> Iterator[OperationContext]:
    """Yield an ``OperationContext`` over a fresh session; tables are created if missing."""
    engine = create_stack_engine(resolve_database_url(database))
    try:
        init_schema(engine)
        with stack_session_factory(engine)() as session:
            yield OperationContext(session=session, caller="cli", dry_run=dry_run)
    finally:
        engine.dispose()


# ── Output helpers ───────────────────────────────────────────────────────


def _to_dict(obj: Any) -> dict[str, Any]:
    """Convert dataclass / pydantic model / dict to plain dict."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    if isinstance(obj, dict):
        return obj
    return {"value": str(obj)}


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def output_result(
    result: OperationResult[Any],
    *,
    as_json: bool = False,
    title: str = "",
    columns: list[str] | None = None,
) -> None:
    """Render an ``OperationResult`` to the terminal; exit 1 on failure."""
    if not result.success:
        err = result.error
        msg = err.message if err else "Unknown error"
        code = err.code if err else "ERROR"
        if as_json:
            print_json(result.to_dict())
        else:
            err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
        raise typer.Exit(code=1)

    data = result.data

    if as_json:
        payload = [_to_dict(d) for d in data] if isinstance(data, list | tuple) else _to_dict(data)
        print_json(payload)
        return

    if result.dry_run:
        console.print("[yellow]Dry run: nothing was written.[/yellow]")
    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        print_table([_to_dict(d) for d in data], title=title, columns=columns)
    else:
        print_dict(_to_dict(data), title=title)


def print_table(rows: list[dict[str, Any]], *, title: str = "", columns: list[str] | None = None) -> None:
    """Render a list of dicts as a Rich table."""
    cols = columns or list(rows[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in cols:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(row.get(c, "")) for c in cols))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
