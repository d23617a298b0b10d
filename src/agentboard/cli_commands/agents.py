"""``agentboard agents``: register and list agents."""

from __future__ import annotations

import click

from agentboard.cli_commands._output import console, print_agents_table, print_models_json
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime
from agentboard.core.blackboard.models import AgentCard


@click.group()
def agents() -> None:
    """Manage registered agents."""


@agents.command("register")
@click.argument("agent_id")
@click.option("--name", default=None, help="Human-readable name (defaults to the id).")
@click.option(
    "--capability",
    "-c",
    "capabilities",
    multiple=True,
    required=True,
    help="Capability the agent offers (repeatable).",
)
@click.option("--version", "agent_version", default=None, help="Agent version string.")
@pass_runtime
def register(
    runtime: BoardRuntime,
    agent_id: str,
    name: str | None,
    capabilities: tuple[str, ...],
    agent_version: str | None,
) -> None:
    """Register AGENT_ID (or refresh its card)."""
    card = AgentCard(
        id=agent_id,
        name=name or agent_id,
        capabilities=list(capabilities),
        version=agent_version,
    )
    registered = runtime.run(lambda board: board.agents.register(card))
    console.print(f"[green]Agent registered:[/green] {registered.id}")
    console.print(f"  Capabilities: {', '.join(registered.capabilities)}")


@agents.command("list")
@click.option("--instance", "instance_id", default=None, help="Only agents of this instance.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
@pass_runtime
def list_agents(runtime: BoardRuntime, instance_id: str | None, fmt: str) -> None:
    """List registered agents."""
    cards = runtime.run(lambda board: board.agents.list(instance_id))

    if not cards:
        console.print("[yellow]No agents registered yet.[/yellow]")
        return

    if fmt == "json":
        print_models_json(cards)
    else:
        print_agents_table(cards)
