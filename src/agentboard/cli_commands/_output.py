"""Shared CLI output formatters."""

from __future__ import annotations

import json
from collections.abc import Sequence

from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from agentboard.core.blackboard.models import AgentCard, BlackboardStats, Finding, Task  # noqa: TC001
from agentboard.core.events.models import Notification, Subscription  # noqa: TC001
from agentboard.store.backend import GraphNode, GrepMatch  # noqa: TC001

console = Console()


def print_models_json(models: Sequence[BaseModel] | BaseModel) -> None:
    """Print one model or a list of models as JSON."""
    if isinstance(models, BaseModel):
        console.print_json(models.model_dump_json())
        return
    data = [m.model_dump(mode="json") for m in models]
    console.print_json(json.dumps(data))


def print_agents_table(agents: Sequence[AgentCard]) -> None:
    table = Table(title="Agents")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Status")
    table.add_column("Capabilities")

    for agent in agents:
        table.add_row(agent.id, agent.name, agent.status, ", ".join(agent.capabilities))

    console.print(table)


def print_findings_table(findings: Sequence[Finding], *, title: str = "Findings") -> None:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("Topic")
    table.add_column("Severity")
    table.add_column("Status")
    table.add_column("Agent")
    table.add_column("Title")

    for f in findings:
        table.add_row(f.id, f.topic, f.severity or "-", f.status, f.agent_id, _truncate(f.title))

    console.print(table)


def print_finding(finding: Finding) -> None:
    """Print one finding in full."""
    console.print(f"\n[bold]{finding.title}[/bold]  [dim]{finding.id}[/dim]")
    console.print(
        f"  {finding.topic} | severity: {finding.severity or '-'} | "
        f"confidence: {finding.confidence:.2f} | status: {finding.status}"
    )
    console.print(f"  by {finding.agent_id}, scope {finding.scope}")
    if finding.context_id:
        console.print(f"  context: {finding.context_id}")
    if finding.resolution:
        console.print(f"  resolved by {finding.resolved_by}: {finding.resolution}")
    console.print(f"\n{finding.content}")


def print_tasks_table(tasks: Sequence[Task], *, title: str = "Tasks") -> None:
    table = Table(title=title)
    table.add_column("ID", style="cyan")
    table.add_column("P", justify="right")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Assignee")
    table.add_column("Title")

    for task in tasks:
        table.add_row(
            task.id,
            str(task.priority),
            task.type,
            task.status,
            task.assigned_to or "-",
            _truncate(task.title),
        )

    console.print(table)


def print_subscriptions_table(subs: Sequence[Subscription]) -> None:
    table = Table(title="Subscriptions")
    table.add_column("ID", style="cyan")
    table.add_column("Pattern")
    table.add_column("Severity filter")
    table.add_column("Expires")

    for sub in subs:
        table.add_row(
            sub.id,
            f"{sub.pattern_type}={sub.pattern_value}",
            ", ".join(sub.filters.severity or []) or "-",
            sub.expires_at.isoformat() if sub.expires_at else "-",
        )

    console.print(table)


def print_notifications_table(notes: Sequence[Notification]) -> None:
    table = Table(title="Unread Notifications")
    table.add_column("ID", style="cyan")
    table.add_column("Event")
    table.add_column("From")
    table.add_column("Source")
    table.add_column("Title")

    for note in notes:
        table.add_row(
            note.id,
            note.event_type,
            note.source_agent_id,
            note.source_id,
            _truncate(note.summary.title),
        )

    console.print(table)


def print_stats(stats: BlackboardStats) -> None:
    console.print("\n[bold]Blackboard Stats[/bold]")
    console.print(f"  Agents: {stats.agents}")
    console.print(f"  Contexts: {stats.contexts}")
    console.print(f"  Findings: {stats.findings.total}")
    for label, counts in (
        ("by topic", stats.findings.by_topic),
        ("by status", stats.findings.by_status),
        ("by severity", stats.findings.by_severity),
    ):
        if counts:
            console.print(f"    {label}: {_format_counts(counts)}")
    console.print(f"  Tasks: {stats.tasks.total}")
    for label, counts in (("by status", stats.tasks.by_status), ("by type", stats.tasks.by_type)):
        if counts:
            console.print(f"    {label}: {_format_counts(counts)}")


def print_grep_matches(matches: Sequence[GrepMatch]) -> None:
    for match in matches:
        console.print(f"[cyan]{match.path}[/cyan]")
        for line in match.matches:
            console.print(f"  {_truncate(line.strip(), 120)}", markup=False)


def print_connections_table(path: str, nodes: Sequence[GraphNode]) -> None:
    table = Table(title=f"Connections of {path}")
    table.add_column("Path", style="cyan")
    table.add_column("Relation")
    table.add_column("Distance", justify="right")

    for node in sorted(nodes, key=lambda n: (n.distance, n.path)):
        table.add_row(node.path, node.relation or "-", str(node.distance))

    console.print(table)


def _format_counts(counts: dict[str, int]) -> str:
    return ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
