"""``agentboard findings``: post, browse and resolve findings."""

from __future__ import annotations

import sys
from typing import get_args

import click

from agentboard.cli_commands._output import (
    console,
    print_finding,
    print_findings_table,
    print_models_json,
)
from agentboard.cli_commands._runtime import BoardRuntime, pass_runtime
from agentboard.core.blackboard.models import (
    CreateFinding,
    FindingQuery,
    FindingScope,
    FindingSeverity,
    FindingStatus,
    FindingTopic,
)

_TOPICS = click.Choice(get_args(FindingTopic))
_SEVERITIES = click.Choice(get_args(FindingSeverity))
_STATUSES = click.Choice(get_args(FindingStatus))
_SCOPES = click.Choice(get_args(FindingScope))
_FORMAT = click.Choice(["table", "json"])


@click.group()
def findings() -> None:
    """Post and manage findings."""


@findings.command("post")
@click.option("--agent", "agent_id", required=True, help="Posting agent id.")
@click.option("--topic", type=_TOPICS, required=True)
@click.option("--title", required=True)
@click.option("--content", required=True, help="Markdown body.")
@click.option("--severity", type=_SEVERITIES, default=None)
@click.option("--confidence", type=click.FloatRange(0.0, 1.0), default=0.8, show_default=True)
@click.option("--scope", type=_SCOPES, default=None, help="Defaults to the configured scope.")
@click.option("--status", type=click.Choice(["draft", "published"]), default=None)
@click.option("--context", "context_id", default=None)
@click.option("--parent", "parent_id", default=None, help="Finding this one replies to.")
@pass_runtime
def post(
    runtime: BoardRuntime,
    agent_id: str,
    topic: FindingTopic,
    title: str,
    content: str,
    severity: FindingSeverity | None,
    confidence: float,
    scope: FindingScope | None,
    status: FindingStatus | None,
    context_id: str | None,
    parent_id: str | None,
) -> None:
    """Post a new finding."""
    data = CreateFinding(
        agent_id=agent_id,
        topic=topic,
        title=title,
        content=content,
        severity=severity,
        confidence=confidence,
        scope=scope,
        status=status,
        context_id=context_id,
        parent_id=parent_id,
    )
    finding = runtime.run(lambda board: board.findings.post(data))
    console.print(f"[green]Finding posted:[/green] {finding.id}")


@findings.command("list")
@click.option("--topic", type=_TOPICS, default=None)
@click.option("--agent", "agent_id", default=None)
@click.option("--context", "context_id", default=None)
@click.option("--status", type=_STATUSES, default=None)
@click.option("--severity", type=_SEVERITIES, multiple=True, help="Allowed severity (repeatable).")
@click.option("--min-confidence", type=click.FloatRange(0.0, 1.0), default=None)
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--format", "fmt", type=_FORMAT, default="table", help="Output format.")
@pass_runtime
def list_findings(
    runtime: BoardRuntime,
    topic: FindingTopic | None,
    agent_id: str | None,
    context_id: str | None,
    status: FindingStatus | None,
    severity: tuple[FindingSeverity, ...],
    min_confidence: float | None,
    limit: int,
    fmt: str,
) -> None:
    """List findings matching the given filters."""
    query = FindingQuery(
        topic=topic,
        agent_id=agent_id,
        context_id=context_id,
        status=status,
        severity=list(severity) or None,
        min_confidence=min_confidence,
        limit=limit,
    )
    results = runtime.run(lambda board: board.findings.query(query))

    if not results:
        console.print("[yellow]No findings found.[/yellow]")
        return

    if fmt == "json":
        print_models_json(results)
    else:
        print_findings_table(results)


@findings.command("show")
@click.argument("finding_id")
@click.option("--json", "as_json", is_flag=True, help="Print as JSON.")
@pass_runtime
def show(runtime: BoardRuntime, finding_id: str, as_json: bool) -> None:
    """Show FINDING_ID in full."""
    finding = runtime.run(lambda board: board.findings.get(finding_id))
    if finding is None:
        console.print(f"[red]Finding not found:[/red] {finding_id}")
        sys.exit(1)

    if as_json:
        print_models_json(finding)
    else:
        print_finding(finding)


@findings.command("ack")
@click.argument("finding_id")
@click.option("--agent", "agent_id", required=True, help="Acknowledging agent id.")
@pass_runtime
def ack(runtime: BoardRuntime, finding_id: str, agent_id: str) -> None:
    """Acknowledge a published finding."""
    finding = runtime.run(lambda board: board.findings.acknowledge(finding_id, agent_id))
    if finding is None:
        console.print(f"[yellow]Finding {finding_id} is unknown or not published.[/yellow]")
        sys.exit(1)
    console.print(f"[green]Acknowledged:[/green] {finding.id}")


@findings.command("resolve")
@click.argument("finding_id")
@click.option("--agent", "agent_id", required=True, help="Resolving agent id.")
@click.option("--resolution", required=True, help="How the finding was addressed.")
@pass_runtime
def resolve(runtime: BoardRuntime, finding_id: str, agent_id: str, resolution: str) -> None:
    """Resolve a published or acknowledged finding."""
    finding = runtime.run(lambda board: board.findings.resolve(finding_id, agent_id, resolution))
    if finding is None:
        console.print(f"[yellow]Finding {finding_id} is unknown or cannot be resolved.[/yellow]")
        sys.exit(1)
    console.print(f"[green]Resolved:[/green] {finding.id}")


@findings.command("search")
@click.argument("text")
@click.option("--topic", type=_TOPICS, default=None)
@click.option("--limit", type=click.IntRange(min=1), default=10, show_default=True)
@click.option("--format", "fmt", type=_FORMAT, default="table", help="Output format.")
@pass_runtime
def search(
    runtime: BoardRuntime, text: str, topic: FindingTopic | None, limit: int, fmt: str
) -> None:
    """Free-text search over findings."""
    results = runtime.run(lambda board: board.findings.search(text, topic=topic, limit=limit))

    if not results:
        console.print("[yellow]No matching findings.[/yellow]")
        return

    if fmt == "json":
        print_models_json(results)
    else:
        print_findings_table(results)
