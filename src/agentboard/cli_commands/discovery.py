"""``agentboard activity``, ``search``, ``grep`` and ``connections``: cross-entity discovery."""

from __future__ import annotations

from typing import Literal

import click

from agentboard.cli_commands._output import (
    console,
    print_connections_table,
    print_findings_table,
    print_grep_matches,
    print_models_json,
    print_tasks_table,
)
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime

_ENTITIES = click.Choice(["finding", "task"])


@click.command()
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("--instance", "instance_id", default=None, help="Only this instance's entities.")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def activity(runtime: BoardRuntime, limit: int, instance_id: str | None, as_json: bool) -> None:
    """Show the newest findings and the most recently updated tasks."""
    recent = runtime.run(
        lambda board: board.recent_activity(limit=limit, instance_id=instance_id)
    )

    if as_json:
        print_models_json(recent)
        return
    if not recent.findings and not recent.tasks:
        console.print("[yellow]No recent activity.[/yellow]")
        return
    if recent.findings:
        print_findings_table(recent.findings, title="Recent Findings")
    if recent.tasks:
        print_tasks_table(recent.tasks, title="Recent Tasks")


@click.command()
@click.argument("text")
@click.option("--instance", "instance_id", default=None, help="Only this instance's entities.")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def search(
    runtime: BoardRuntime, text: str, instance_id: str | None, limit: int, as_json: bool
) -> None:
    """Free-text search across findings and tasks."""
    results = runtime.run(
        lambda board: board.search(text, instance_id=instance_id, limit=limit)
    )

    if as_json:
        print_models_json(results)
        return
    if not results.findings and not results.tasks:
        console.print("[yellow]Nothing matched.[/yellow]")
        return
    if results.findings:
        print_findings_table(results.findings)
    if results.tasks:
        print_tasks_table(results.tasks)


@click.command()
@click.argument("pattern")
@click.option("--entity", type=_ENTITIES, default=None, help="Only findings or only tasks.")
@click.option("--instance", "instance_id", default=None, help="Only this instance's entities.")
@click.option("--limit", type=click.IntRange(min=1), default=50, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def grep(
    runtime: BoardRuntime,
    pattern: str,
    entity: Literal["finding", "task"] | None,
    instance_id: str | None,
    limit: int,
    as_json: bool,
) -> None:
    """Regex search over document lines."""
    matches = runtime.run(
        lambda board: board.grep(pattern, entity=entity, instance_id=instance_id, limit=limit)
    )

    if as_json:
        print_models_json(matches)
        return
    if not matches:
        console.print("[yellow]No matching lines.[/yellow]")
        return
    print_grep_matches(matches)


@click.command()
@click.argument("path")
@click.option("--depth", type=click.IntRange(min=1), default=2, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def connections(runtime: BoardRuntime, path: str, depth: int, as_json: bool) -> None:
    """Show documents linked to PATH, e.g. ``findings/security/f-....md``."""
    nodes = runtime.run(lambda board: board.connections(path, depth))

    if as_json:
        print_models_json(nodes)
        return
    if not nodes:
        console.print("[yellow]No connections found.[/yellow]")
        return
    print_connections_table(path, nodes)
