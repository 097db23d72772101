"""
CLI: ``tutorial-stack deploy`` - compose file, CI workflow, and pipeline runs.

Usage::

    tutorial-stack deploy services                   # list the stack's services
    tutorial-stack deploy compose -o docker-compose.yml
    tutorial-stack deploy check docker-compose.yml   # topology rules
    tutorial-stack deploy workflow -o .github/workflows/deploy.yml

    tutorial-stack deploy run --ref refs/heads/main --commit abc123
    tutorial-stack deploy run --dry-run              # record commands only
    tutorial-stack deploy runs                       # past runs from the ledger
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import typer
from rich.table import Table

from tutorial_stack.cli.utils import console, err_console, print_json

if TYPE_CHECKING:
    from tutorial_stack.deploy.results import PipelineRunResult

app = typer.Typer(no_args_is_help=True)

_STATUS_STYLE = {
    "SUCCEEDED": "green",
    "FAILED": "red",
    "SKIPPED": "dim",
    "PENDING": "yellow",
}


# ── Services ─────────────────────────────────────────────────────────────


@app.command("services")
def list_services(
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List the services that make up one deployment."""
    from tutorial_stack.deploy.compose import startup_order
    from tutorial_stack.deploy.services import SERVICES

    order = startup_order(SERVICES.values())

    if json_out:
        print_json(
            [
                {
                    "name": name,
                    "image": SERVICES[name].image,
                    "port": SERVICES[name].port,
                    "published": SERVICES[name].publish_port,
                    "depends_on": SERVICES[name].depends_on,
                }
                for name in order
            ]
        )
        return

    table = Table(title="Stack Services")
    table.add_column("Name", style="cyan")
    table.add_column("Image")
    table.add_column("Port", justify="right")
    table.add_column("Published", justify="right")
    table.add_column("Depends on")
    table.add_column("Description")
    for name in order:
        svc = SERVICES[name]
        table.add_row(
            svc.name,
            svc.image,
            str(svc.port),
            str(svc.publish_port) if svc.publish_port else "-",
            ", ".join(svc.depends_on) or "-",
            svc.description,
        )
    console.print(table)


# ── Compose ──────────────────────────────────────────────────────────────


@app.command("compose")
def compose(
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file instead of stdout."),
    namespace: str | None = typer.Option(None, "--namespace", help="Registry namespace for the images."),
    tag: str | None = typer.Option(None, "--tag", help="Image tag."),
    project_name: str = typer.Option("tutorial-stack", "--project-name", help="Compose project name."),
) -> None:
    """Generate the stack's docker-compose.yml."""
    from tutorial_stack.deploy.compose import check_compose_contract, generate_stack_compose, write_compose_file
    from tutorial_stack.deploy.config import PipelineConfig

    overrides = {k: v for k, v in {"namespace": namespace, "tag": tag}.items() if v}
    config = PipelineConfig.from_env(**overrides)
    content = generate_stack_compose(config, project_name=project_name)

    problems = check_compose_contract(content)
    if problems:
        for problem in problems:
            err_console.print(f"[red]✗[/red] {problem}")
        raise typer.Exit(code=1)

    if output is None:
        typer.echo(content, nl=False)
        return
    path = write_compose_file(content, output)
    console.print(f"[green]Wrote[/green] {path}")


@app.command("check")
def check(
    compose_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="docker-compose.yml to check."),
) -> None:
    """Check a compose file against the stack's topology rules."""
    from tutorial_stack.deploy.compose import check_compose_contract

    problems = check_compose_contract(compose_file.read_text(encoding="utf-8"))
    if problems:
        for problem in problems:
            err_console.print(f"[red]✗[/red] {problem}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] {compose_file} satisfies the stack topology")


# ── CI workflow ──────────────────────────────────────────────────────────


@app.command("workflow")
def workflow(
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to file instead of stdout."),
    python_version: str = typer.Option("3.12", "--python", help="Python version on the runner."),
) -> None:
    """Generate the GitHub Actions workflow that runs the pipeline on push."""
    from tutorial_stack.deploy.ci import render_ci_workflow
    from tutorial_stack.deploy.config import PipelineConfig

    content = render_ci_workflow(PipelineConfig.from_env(), python_version=python_version)
    if output is None:
        typer.echo(content, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    console.print(f"[green]Wrote[/green] {output}")


# ── Pipeline ─────────────────────────────────────────────────────────────


@app.command("run")
def run(
    ref: str | None = typer.Option(None, "--ref", help="Pushed git ref; other branches are ignored."),
    commit: str | None = typer.Option(None, "--commit", help="Commit SHA being deployed."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Record commands without executing them."),
    output_dir: Path | None = typer.Option(None, "--output-dir", help="Run ledger directory."),
    json_out: bool = typer.Option(False, "--json", help="Output the run result as JSON."),
) -> None:
    """Build both images, push them, and redeploy the host.

    Stops at the first failing step; later steps are skipped.
    """
    from tutorial_stack.core.errors import MissingConfigError
    from tutorial_stack.deploy.config import PipelineConfig, PipelineSecrets
    from tutorial_stack.deploy.ledger import PipelineLedger
    from tutorial_stack.deploy.pipeline import PipelineRunner
    from tutorial_stack.deploy.trigger import PushEvent

    overrides: dict[str, object] = {}
    if commit is not None:
        overrides["commit"] = commit
    if dry_run:
        overrides["dry_run"] = True
    if output_dir is not None:
        overrides["output_dir"] = output_dir
    config = PipelineConfig.from_env(**overrides)

    if ref is not None:
        event = PushEvent(ref=ref, commit=config.commit)
        if event.branch != config.branch:
            console.print(f"[dim]Ignoring push to {ref}; deploys run for {config.branch!r} only.[/dim]")
            return

    runner = PipelineRunner(config, PipelineSecrets.from_env(), ledger=PipelineLedger(config.output_dir))
    if not json_out:
        console.print(f"[bold]tutorial-stack pipeline[/] - run_id: {config.run_id}")
        console.print(f"  branch: {config.branch}  commit: {config.commit or '-'}  dry-run: {config.dry_run}")

    try:
        result = runner.run()
    except MissingConfigError as exc:
        err_console.print(f"[bold red]Error[/bold red]: {exc.message}")
        raise typer.Exit(code=1) from exc

    if json_out:
        typer.echo(result.model_dump_json(indent=2))
    else:
        _print_run_result(result)

    if not result.succeeded:
        raise typer.Exit(code=1)


@app.command("runs")
def runs(
    output_dir: Path | None = typer.Option(None, "--output-dir", help="Run ledger directory."),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum runs to show."),
    json_out: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List past pipeline runs, newest first."""
    from tutorial_stack.deploy.config import PipelineConfig
    from tutorial_stack.deploy.ledger import PipelineLedger

    directory = output_dir or PipelineConfig.from_env().output_dir
    results = PipelineLedger(directory).list_runs(limit=limit)

    if json_out:
        print_json([r.model_dump(mode="json") for r in results])
        return
    if not results:
        console.print("[dim]No runs recorded.[/dim]")
        return

    table = Table(title="Pipeline Runs")
    table.add_column("Run", style="cyan")
    table.add_column("Commit")
    table.add_column("State")
    table.add_column("Started")
    table.add_column("Summary")
    for r in results:
        style = "green" if r.succeeded else "red"
        table.add_row(r.run_id, (r.commit or "-")[:12], f"[{style}]{r.state.value}[/]", r.started_at, r.summary)
    console.print(table)


def _print_run_result(result: PipelineRunResult) -> None:
    """Pretty-print a PipelineRunResult."""
    table = Table(title="Pipeline Steps")
    table.add_column("Step", style="cyan")
    table.add_column("Phase")
    table.add_column("Status")
    table.add_column("Exit", justify="right")
    table.add_column("Duration", justify="right")

    for step in result.steps:
        style = _STATUS_STYLE.get(step.status.value, "")
        table.add_row(
            step.name,
            step.phase.value,
            f"[{style}]{step.status.value}[/]" if style else step.status.value,
            "-" if step.exit_code is None else str(step.exit_code),
            f"{step.duration_seconds:.1f}s",
        )
    console.print(table)

    if result.error:
        err_console.print(f"[red]{result.error}[/red]")
    console.print(f"[bold]{result.summary}[/bold]")
