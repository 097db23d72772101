"""
CLI: ``tutorial-stack tutorials`` - tutorial CRUD against the database directly.

Usage::

    tutorial-stack tutorials create "Intro to SQL" --description "..." --published
    tutorial-stack tutorials list
    tutorial-stack tutorials search sql
    tutorial-stack tutorials update <id> --unpublished
    tutorial-stack tutorials delete <id>
"""

from __future__ import annotations

import typer

from tutorial_stack.cli.utils import DATABASE_OPTION_HELP, make_context, output_result

app = typer.Typer(no_args_is_help=True)

LIST_COLUMNS = ["id", "title", "published", "created_at"]


@app.command("list")
def list_cmd(
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List every tutorial."""
    from tutorial_stack.ops.tutorials import list_tutorials

    with make_context(database) as ctx:
        result = list_tutorials(ctx)
    output_result(result, as_json=json_out, title="Tutorials", columns=LIST_COLUMNS)


@app.command()
def search(
    title: str = typer.Argument(..., help="Case-insensitive title substring"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Find tutorials whose title contains TITLE."""
    from tutorial_stack.ops.tutorials import search_tutorials

    with make_context(database) as ctx:
        result = search_tutorials(ctx, title)
    output_result(result, as_json=json_out, title=f"Tutorials matching {title!r}", columns=LIST_COLUMNS)


@app.command()
def published(
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List published tutorials."""
    from tutorial_stack.ops.tutorials import list_published

    with make_context(database) as ctx:
        result = list_published(ctx)
    output_result(result, as_json=json_out, title="Published tutorials", columns=LIST_COLUMNS)


@app.command()
def get(
    tutorial_id: str = typer.Argument(..., help="Tutorial ID"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show one tutorial."""
    from tutorial_stack.ops.tutorials import get_tutorial

    with make_context(database) as ctx:
        result = get_tutorial(ctx, tutorial_id)
    output_result(result, as_json=json_out, title="Tutorial")


@app.command()
def create(
    title: str = typer.Argument(..., help="Tutorial title"),
    description: str = typer.Option("", "--description", help="Description"),
    is_published: bool = typer.Option(False, "--published/--unpublished", help="Publish immediately"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create a tutorial."""
    from tutorial_stack.ops.requests import CreateTutorialRequest
    from tutorial_stack.ops.tutorials import create_tutorial

    request = CreateTutorialRequest(title=title, description=description, published=is_published)
    with make_context(database, dry_run=dry_run) as ctx:
        result = create_tutorial(ctx, request)
    output_result(result, as_json=json_out, title="Created")


@app.command()
def update(
    tutorial_id: str = typer.Argument(..., help="Tutorial ID"),
    title: str | None = typer.Option(None, "--title", help="New title"),
    description: str | None = typer.Option(None, "--description", help="New description"),
    is_published: bool | None = typer.Option(None, "--published/--unpublished", help="New published flag"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Update the given fields of a tutorial."""
    from tutorial_stack.ops.requests import UpdateTutorialRequest
    from tutorial_stack.ops.tutorials import update_tutorial

    request = UpdateTutorialRequest(title=title, description=description, published=is_published)
    with make_context(database, dry_run=dry_run) as ctx:
        result = update_tutorial(ctx, tutorial_id, request)
    output_result(result, as_json=json_out, title="Updated")


@app.command()
def delete(
    tutorial_id: str = typer.Argument(..., help="Tutorial ID"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Delete one tutorial."""
    from tutorial_stack.ops.tutorials import delete_tutorial

    with make_context(database, dry_run=dry_run) as ctx:
        result = delete_tutorial(ctx, tutorial_id)
    output_result(result, as_json=json_out, title="Deleted")


@app.command("delete-all")
def delete_all(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    database: str | None = typer.Option(None, "--database", "-d", help=DATABASE_OPTION_HELP),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Delete every tutorial."""
    from tutorial_stack.ops.tutorials import delete_all_tutorials

    if not (yes or dry_run):
        typer.confirm("Delete ALL tutorials?", abort=True)
    with make_context(database, dry_run=dry_run) as ctx:
        result = delete_all_tutorials(ctx)
    output_result(result, as_json=json_out, title="Deleted")
