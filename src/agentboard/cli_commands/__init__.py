"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from agentboard.cli_commands.agents import agents
    from agentboard.cli_commands.context import context
    from agentboard.cli_commands.discovery import activity, connections, grep, search
    from agentboard.cli_commands.findings import findings
    from agentboard.cli_commands.inbox import inbox
    from agentboard.cli_commands.stats import stats
    from agentboard.cli_commands.tasks import tasks

    cli.add_command(agents)
    cli.add_command(findings)
    cli.add_command(tasks)
    cli.add_command(inbox)
    cli.add_command(context)
    cli.add_command(stats)
    cli.add_command(activity)
    cli.add_command(search)
    cli.add_command(grep)
    cli.add_command(connections)
