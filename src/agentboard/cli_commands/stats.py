"""``agentboard stats``: blackboard-wide counts."""

from __future__ import annotations

import click

from agentboard.cli_commands._output import print_models_json, print_stats
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime


@click.command()
@click.option("--instance", "instance_id", default=None, help="Only this instance's entities.")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def stats(runtime: BoardRuntime, instance_id: str | None, as_json: bool) -> None:
    """Show counts of agents, findings, tasks and contexts."""
    result = runtime.run(lambda board: board.stats(instance_id))
    if as_json:
        print_models_json(result)
    else:
        print_stats(result)
