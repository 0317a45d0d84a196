"""Command-line interface for running tasks."""

from __future__ import annotations

import json

import typer
from rich.console import Console
from rich.table import Table

from orchestra_taskkit.registry import TaskNotFoundError, get_task, list_tasks
from orchestra_taskkit.runner import run_task
from orchestra_taskkit.schema import load_schema

app = typer.Typer(
    name="task-run",
    help="Run orchestration API tasks with schema validation.",
    no_args_is_help=True,
)

console = Console()


def _load_tasks() -> None:
    # Import tasks to populate registry
    import orchestra_taskkit.tasks  # noqa: F401


@app.command("run")
def run_cmd(
    task_name: str = typer.Argument(..., help="Name of the task to run"),
    input_source: str = typer.Option(
        ...,
        "--input",
        "-i",
        help="Path to input JSON file or inline JSON string",
    ),
    output_path: str = typer.Option(
        ...,
        "--output",
        "-o",
        help="Path to write the output JSON",
    ),
    variables: str | None = typer.Option(
        None,
        "--vars",
        help="Path to a JSON file or inline JSON object exposed as 'vars' to templates",
    ),
    schemas_root: str | None = typer.Option(
        None,
        "--schemas",
        "-s",
        help="Root directory containing task schemas (default: bundled schemas)",
    ),
    messages_enabled: bool | None = typer.Option(
        None,
        "--messages/--no-messages",
        help="Enable/disable messages artifact (default: auto-detect based on /outputs)",
    ),
    messages_out: str | None = typer.Option(
        None,
        "--messages-out",
        help="Path to write messages JSON (default: /outputs/messages.json)",
    ),
) -> None:
    """Run a task with input/output validation."""
    _load_tasks()

    exit_code = run_task(
        task_name=task_name,
        input_source=input_source,
        output_path=output_path,
        schemas_root=schemas_root,
        variables_source=variables,
        messages_enabled=messages_enabled,
        messages_output_path=messages_out,
    )
    raise typer.Exit(code=exit_code)


@app.command("list")
def list_cmd(
    group: str | None = typer.Option(
        None,
        "--group",
        "-g",
        help="Only list tasks of this group (e.g. 'executions')",
    ),
) -> None:
    """List all available tasks."""
    _load_tasks()

    tasks = list_tasks(group)

    if not tasks:
        console.print("[yellow]No tasks registered.[/yellow]")
        return

    table = Table(title="Available Tasks")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Description", style="green")
    table.add_column("Input Schema", style="dim")
    table.add_column("Output Schema", style="dim")

    for task in tasks:
        table.add_row(
            task.name,
            task.description,
            task.input_schema,
            task.output_schema,
        )

    console.print(table)


@app.command("schema")
def schema_cmd(
    task_name: str = typer.Argument(..., help="Name of the task"),
    schema_type: str = typer.Option(
        "input",
        "--type",
        "-t",
        help="Schema type: 'input' or 'output'",
    ),
    schemas_root: str | None = typer.Option(
        None,
        "--schemas",
        "-s",
        help="Root directory containing task schemas (default: bundled schemas)",
    ),
) -> None:
    """Print the JSON schema for a task."""
    _load_tasks()

    if schema_type not in ("input", "output"):
        console.print(f"[red]Error:[/red] Unknown schema type: {schema_type}")
        raise typer.Exit(code=1)

    try:
        task = get_task(task_name)
    except TaskNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from None

    schema_path = task.schema_path("input" if schema_type == "input" else "output", schemas_root)

    try:
        schema = load_schema(schema_path)
        console.print_json(json.dumps(schema, indent=2))
    except FileNotFoundError:
        console.print(f"[red]Error:[/red] Schema not found: {schema_path}")
        raise typer.Exit(code=1) from None


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
