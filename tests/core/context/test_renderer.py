"""Tests for the markdown context summary renderer."""

from __future__ import annotations

from agentboard.core.blackboard.models import AgentCard, Finding, Task
from agentboard.core.context.renderer import SummaryLimits, render_summary, select_key_findings


def _finding(fid: str, **overrides: object) -> Finding:
    data: dict[str, object] = {
        "id": fid,
        "agent_id": "scanner",
        "topic": "security",
        "title": f"Finding {fid}",
        "content": "details",
    }
    data.update(overrides)
    return Finding.model_validate(data)


def _task(tid: str, status: str, **overrides: object) -> Task:
    data: dict[str, object] = {
        "id": tid,
        "title": f"Task {tid}",
        "type": "fix",
        "created_by": "lead",
        "status": status,
    }
    data.update(overrides)
    return Task.model_validate(data)


class TestSelectKeyFindings:
    def test_high_severity_first(self) -> None:
        findings = [
            _finding("a", severity="low"),
            _finding("b", severity="critical"),
            _finding("c"),
            _finding("d", severity="high"),
        ]
        assert [f.id for f in select_key_findings(findings, 10)] == ["b", "d", "a", "c"]

    def test_resolved_low_severity_dropped(self) -> None:
        findings = [_finding("a", severity="low", status="resolved"), _finding("b")]
        assert [f.id for f in select_key_findings(findings, 10)] == ["b"]

    def test_resolved_high_severity_kept(self) -> None:
        findings = [_finding("a", severity="high", status="resolved")]
        assert [f.id for f in select_key_findings(findings, 10)] == ["a"]

    def test_limit(self) -> None:
        findings = [_finding(str(i)) for i in range(5)]
        assert len(select_key_findings(findings, 3)) == 3


class TestRenderSummary:
    def test_empty_context(self) -> None:
        text = render_summary("audit", [], [], [])
        assert text.startswith("## Blackboard Summary (Context: audit)\n")
        assert "### Agents Active (0)\n- None" in text
        assert "### Key Findings (0 total, 0 unresolved)\n- None" in text
        assert "### Tasks\n- No active tasks" in text
        assert "- All findings resolved" in text

    def test_sections(self) -> None:
        agents = [AgentCard(id="scanner", name="Scanner", capabilities=["review", "analysis"])]
        findings = [
            _finding("f-1", severity="high", confidence=0.9, title="SQL injection"),
            _finding("f-2", status="resolved"),
        ]
        tasks = [
            _task("t-1", "working", assigned_to="fixer", description="Patch the query"),
            _task("t-2", "blocked", title="Deploy"),
            _task("t-3", "pending"),
        ]
        text = render_summary("audit", findings, tasks, agents)

        assert "- scanner: review, analysis" in text
        assert "### Key Findings (2 total, 1 unresolved)" in text
        assert "#### [HIGH] SQL injection" in text
        assert "- Agent: scanner | Confidence: 0.90 | Status: published" in text
        assert "- [WORKING] Task t-1 (assigned: fixer)\n  Patch the query" in text
        assert "Task t-3" not in text
        assert "**Blocked (1):**\n- Deploy" in text
        assert "- 1 findings need resolution" in text
        assert "- 1 tasks blocked" in text

    def test_unrated_finding_labelled_info(self) -> None:
        text = render_summary("c", [_finding("f-1")], [], [])
        assert "#### [INFO] Finding f-1" in text

    def test_truncation(self) -> None:
        limits = SummaryLimits(finding_chars=10, task_chars=5)
        text = render_summary(
            "c",
            [_finding("f-1", content="x" * 50)],
            [_task("t-1", "claimed", description="y" * 50)],
            [],
            limits,
        )
        assert "x" * 10 + "..." in text
        assert "x" * 11 not in text
        assert "  yyyyy..." in text

    def test_overflow_note(self) -> None:
        limits = SummaryLimits(max_findings=2)
        findings = [_finding(str(i)) for i in range(5)]
        text = render_summary("c", findings, [], [], limits)
        assert "- ... and 3 more findings" in text
        assert text.count("#### ") == 2

    def test_active_task_cap(self) -> None:
        limits = SummaryLimits(max_active_tasks=2)
        tasks = [_task(f"t-{i}", "working") for i in range(4)]
        text = render_summary("c", [], tasks, [], limits)
        assert text.count("- [WORKING]") == 2
