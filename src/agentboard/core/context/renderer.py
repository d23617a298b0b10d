"""Bounded markdown rendering of a context's blackboard state.

The output is injected into a host's compacted conversation, so every
section is capped: a fixed number of findings and active tasks, each with
truncated text.
"""

from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, Field

from agentboard.core.blackboard.models import HIGH_SEVERITIES, AgentCard, Finding, Task


class SummaryLimits(BaseModel):
    """Caps applied by :func:`render_summary`."""

    max_findings: int = Field(default=10, gt=0)
    finding_chars: int = Field(default=300, gt=0)
    task_chars: int = Field(default=200, gt=0)
    max_active_tasks: int = Field(default=5, gt=0)


def _truncate(text: str, max_len: int) -> str:
    return text if len(text) <= max_len else text[:max_len] + "..."


def select_key_findings(findings: Sequence[Finding], limit: int) -> list[Finding]:
    """High/critical findings first, then the remaining unresolved ones."""
    high = [f for f in findings if f.severity in HIGH_SEVERITIES]
    rest = [f for f in findings if f.severity not in HIGH_SEVERITIES and f.is_unresolved]
    return [*high, *rest][:limit]


def _finding_block(finding: Finding, limits: SummaryLimits) -> str:
    label = (finding.severity or "info").upper()
    return (
        f"#### [{label}] {finding.title}\n"
        f"- Agent: {finding.agent_id} | Confidence: {finding.confidence:.2f} | Status: {finding.status}\n"
        f"{_truncate(finding.content, limits.finding_chars)}"
    )


def _task_line(task: Task, limits: SummaryLimits) -> str:
    line = f"- [{task.status.upper()}] {task.title} (assigned: {task.assigned_to or 'unassigned'})"
    if task.description:
        line += f"\n  {_truncate(task.description, limits.task_chars)}"
    return line


def render_summary(
    context_id: str,
    findings: Sequence[Finding],
    tasks: Sequence[Task],
    agents: Sequence[AgentCard],
    limits: SummaryLimits | None = None,
) -> str:
    """Render the compaction summary for one context."""
    limits = limits or SummaryLimits()
    unresolved = [f for f in findings if f.is_unresolved]
    active = [task for task in tasks if task.status in ("working", "claimed")]
    blocked = [task for task in tasks if task.status == "blocked"]

    agent_lines = "\n".join(f"- {a.id}: {', '.join(a.capabilities)}" for a in agents) or "- None"
    finding_blocks = "\n\n".join(
        _finding_block(f, limits) for f in select_key_findings(findings, limits.max_findings)
    ) or "- None"
    task_lines = "\n".join(
        _task_line(task, limits) for task in active[: limits.max_active_tasks]
    ) or "- No active tasks"

    parts = [
        f"## Blackboard Summary (Context: {context_id})",
        "",
        f"### Agents Active ({len(agents)})",
        agent_lines,
        "",
        f"### Key Findings ({len(findings)} total, {len(unresolved)} unresolved)",
        finding_blocks,
    ]
    if len(findings) > limits.max_findings:
        parts += ["", f"- ... and {len(findings) - limits.max_findings} more findings"]

    parts += ["", "### Tasks", task_lines]
    if blocked:
        parts += ["", f"**Blocked ({len(blocked)}):**", *(f"- {task.title}" for task in blocked)]

    parts += ["", "### Unresolved Issues"]
    parts.append(
        f"- {len(unresolved)} findings need resolution" if unresolved else "- All findings resolved"
    )
    if blocked:
        parts.append(f"- {len(blocked)} tasks blocked")
    return "\n".join(parts) + "\n"
