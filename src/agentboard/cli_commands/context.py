"""``agentboard context``: contexts, compaction summaries and manifests."""

from __future__ import annotations

import sys

import click

from agentboard.cli_commands._output import (
    console,
    print_findings_table,
    print_models_json,
    print_tasks_table,
)
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime
from agentboard.core.blackboard.blackboard import Blackboard
from agentboard.core.blackboard.models import HydratedContext


@click.group()
def context() -> None:
    """Group work into contexts and summarise them."""


@context.command("create")
@click.argument("context_id")
@click.argument("name")
@click.option("--description", default=None)
@pass_runtime
def create(runtime: BoardRuntime, context_id: str, name: str, description: str | None) -> None:
    """Create context CONTEXT_ID called NAME."""
    ctx = runtime.run(lambda board: board.contexts.create(context_id, name, description))
    console.print(f"[green]Context created:[/green] {ctx.id}")


@context.command("summary")
@click.argument("context_id")
@click.option("--with-manifest", is_flag=True, help="Also persist the compaction manifest.")
@pass_runtime
def summary(runtime: BoardRuntime, context_id: str, with_manifest: bool) -> None:
    """Print the markdown summary of CONTEXT_ID."""
    if with_manifest:
        snapshot = runtime.run(lambda board: board.context.summarize_with_manifest(context_id))
        click.echo(snapshot.markdown)
        return
    click.echo(runtime.run(lambda board: board.context.summarize(context_id)))


@context.command("manifest")
@click.argument("context_id")
@pass_runtime
def manifest(runtime: BoardRuntime, context_id: str) -> None:
    """Print the stored compaction manifest of CONTEXT_ID."""
    found = runtime.run(lambda board: board.context.get_manifest(context_id))
    if found is None:
        console.print(f"[yellow]No manifest stored for {context_id}.[/yellow]")
        sys.exit(1)
    console.print_json(found.to_json())


@context.command("hydrate")
@click.argument("context_id")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def hydrate(runtime: BoardRuntime, context_id: str, as_json: bool) -> None:
    """Re-fetch the findings and tasks listed in CONTEXT_ID's manifest."""

    async def _hydrate(board: Blackboard) -> HydratedContext | None:
        stored = await board.context.get_manifest(context_id)
        return await board.context.hydrate(stored) if stored is not None else None

    hydrated = runtime.run(_hydrate)
    if hydrated is None:
        console.print(f"[yellow]No manifest stored for {context_id}.[/yellow]")
        sys.exit(1)

    if as_json:
        print_models_json(hydrated)
        return
    print_findings_table(hydrated.findings)
    print_tasks_table(hydrated.tasks)
