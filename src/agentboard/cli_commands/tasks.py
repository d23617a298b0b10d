"""``agentboard tasks``: create, claim and progress tasks."""

from __future__ import annotations

import sys
from typing import get_args

import click

from agentboard.cli_commands._output import console, print_models_json, print_tasks_table
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime
from agentboard.core.blackboard.models import (
    CreateTask,
    Task,
    TaskQuery,
    TaskStatus,
    TaskType,
    TaskUpdate,
)

_TYPES = click.Choice(get_args(TaskType))
_STATUSES = click.Choice(get_args(TaskStatus))
_FORMAT = click.Choice(["table", "json"])


def _report(task: Task | None, task_id: str, verb: str) -> None:
    if task is None:
        console.print(f"[red]Task not found:[/red] {task_id}")
        sys.exit(1)
    console.print(f"[green]Task {verb}:[/green] {task.id} ({task.status})")


@click.group()
def tasks() -> None:
    """Create and work tasks."""


@tasks.command("create")
@click.option("--title", required=True)
@click.option("--type", "task_type", type=_TYPES, required=True)
@click.option("--by", "created_by", required=True, help="Creating agent id.")
@click.option("--priority", type=click.IntRange(0, 4), default=None, help="0 is most urgent.")
@click.option("--depends-on", multiple=True, help="Task id this one waits for (repeatable).")
@click.option("--description", default=None)
@click.option("--context", "context_id", default=None)
@pass_runtime
def create(
    runtime: BoardRuntime,
    title: str,
    task_type: TaskType,
    created_by: str,
    priority: int | None,
    depends_on: tuple[str, ...],
    description: str | None,
    context_id: str | None,
) -> None:
    """Create a pending task."""
    data = CreateTask(
        title=title,
        type=task_type,
        created_by=created_by,
        priority=priority,
        depends_on=list(depends_on),
        description=description,
        context_id=context_id,
    )
    task = runtime.run(lambda board: board.tasks.create(data))
    console.print(f"[green]Task created:[/green] {task.id} (priority {task.priority})")


@tasks.command("ready")
@click.option("--capability", "-c", multiple=True, help="Only these task types (repeatable).")
@click.option("--format", "fmt", type=_FORMAT, default="table", help="Output format.")
@pass_runtime
def ready(runtime: BoardRuntime, capability: tuple[str, ...], fmt: str) -> None:
    """List tasks whose dependencies are complete, most urgent first."""
    results = runtime.run(lambda board: board.tasks.get_ready(capability or None))

    if not results:
        console.print("[yellow]No ready tasks.[/yellow]")
        return

    if fmt == "json":
        print_models_json(results)
    else:
        print_tasks_table(results, title="Ready Tasks")


@tasks.command("claim")
@click.argument("task_id")
@click.option("--agent", "agent_id", required=True, help="Claiming agent id.")
@pass_runtime
def claim(runtime: BoardRuntime, task_id: str, agent_id: str) -> None:
    """Claim a pending task."""
    task = runtime.run(lambda board: board.tasks.claim(task_id, agent_id))
    if task is None:
        console.print(f"[yellow]Task {task_id} is unknown or already claimed.[/yellow]")
        sys.exit(1)
    console.print(f"[green]Task claimed:[/green] {task.id} by {agent_id}")


@tasks.command("update")
@click.argument("task_id")
@click.option("--status", type=_STATUSES, required=True)
@click.option("--error", default=None, help="Error message to record.")
@pass_runtime
def update(runtime: BoardRuntime, task_id: str, status: TaskStatus, error: str | None) -> None:
    """Move a task to a new status."""
    changes = TaskUpdate(status=status, error=error)
    _report(runtime.run(lambda board: board.tasks.update(task_id, changes)), task_id, "updated")


@tasks.command("complete")
@click.argument("task_id")
@click.option("--finding", "finding_ids", multiple=True, help="Finding produced (repeatable).")
@pass_runtime
def complete(runtime: BoardRuntime, task_id: str, finding_ids: tuple[str, ...]) -> None:
    """Mark a task completed."""
    produced = list(finding_ids) or None
    task = runtime.run(lambda board: board.tasks.complete(task_id, findings=produced))
    _report(task, task_id, "completed")


@tasks.command("fail")
@click.argument("task_id")
@click.option("--error", required=True, help="Why the task failed.")
@pass_runtime
def fail(runtime: BoardRuntime, task_id: str, error: str) -> None:
    """Mark a task failed."""
    _report(runtime.run(lambda board: board.tasks.fail(task_id, error)), task_id, "failed")


@tasks.command("list")
@click.option("--status", type=_STATUSES, default=None)
@click.option("--type", "task_type", type=_TYPES, default=None)
@click.option("--assignee", default=None)
@click.option("--context", "context_id", default=None)
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--format", "fmt", type=_FORMAT, default="table", help="Output format.")
@pass_runtime
def list_tasks(
    runtime: BoardRuntime,
    status: TaskStatus | None,
    task_type: TaskType | None,
    assignee: str | None,
    context_id: str | None,
    limit: int,
    fmt: str,
) -> None:
    """List tasks matching the given filters."""
    query = TaskQuery(
        status=status, type=task_type, assigned_to=assignee, context_id=context_id, limit=limit
    )
    results = runtime.run(lambda board: board.tasks.query(query))

    if not results:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    if fmt == "json":
        print_models_json(results)
    else:
        print_tasks_table(results)
