"""Context aggregator: summaries, compaction manifests and hydration.

At a compaction point the host needs two things: a bounded markdown
summary it can splice into the conversation, and a small manifest of ids
it can later use to fetch the full findings and tasks back.  Both are
built from one read of the context's findings, tasks and participating
agents.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.models import (
    AgentCard,
    BlackboardStats,
    CompactionManifest,
    ContextSnapshot,
    Finding,
    FindingDescriptor,
    FindingQuery,
    FindingStats,
    HydratedContext,
    ManifestStats,
    Task,
    TaskDescriptor,
    TaskQuery,
    TaskStats,
    utcnow,
)
from agentboard.core.context.renderer import SummaryLimits, render_summary
from agentboard.core.coordination.base import DEFAULT_QUERY_LIMIT, StoreComponent
from agentboard.core.coordination.contexts import ContextRegistry
from agentboard.core.coordination.findings import FindingManager
from agentboard.core.coordination.registry import AgentRegistry
from agentboard.core.coordination.tasks import TaskGraph
from agentboard.core.session.scope import Scope
from agentboard.errors import StoreError
from agentboard.store.backend import DocumentStore
from agentboard.utils.telemetry import (
    ATTR_CONTEXT_ID,
    ATTR_FINDING_COUNT,
    ATTR_TASK_COUNT,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_SCAN_LIMIT = 1000


def build_manifest(
    context_id: str,
    findings: Sequence[Finding],
    tasks: Sequence[Task],
    agents: Sequence[AgentCard],
) -> CompactionManifest:
    return CompactionManifest(
        context_id=context_id,
        finding_ids=[
            FindingDescriptor(
                id=f.id,
                topic=f.topic,
                severity=f.severity,
                status=f.status,
                confidence=f.confidence,
            )
            for f in findings
        ],
        task_ids=[
            TaskDescriptor(id=task.id, type=task.type, status=task.status, priority=task.priority)
            for task in tasks
        ],
        agent_ids=[a.id for a in agents],
        stats=ManifestStats(
            total_findings=len(findings),
            unresolved_findings=sum(1 for f in findings if f.is_unresolved),
            active_tasks=sum(1 for task in tasks if task.status in ("working", "claimed")),
            blocked_tasks=sum(1 for task in tasks if task.status == "blocked"),
        ),
    )


def _count(values: Sequence[str | None]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for value in values:
        if value:
            counts[value] = counts.get(value, 0) + 1
    return counts


class ContextAggregator(StoreComponent):
    """Builds summaries and manifests over the coordination components."""

    def __init__(
        self,
        store: DocumentStore,
        scope: Scope,
        *,
        agents: AgentRegistry,
        findings: FindingManager,
        tasks: TaskGraph,
        contexts: ContextRegistry,
        limits: SummaryLimits | None = None,
        query_limit: int = DEFAULT_QUERY_LIMIT,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        super().__init__(store, scope, query_limit=query_limit)
        self._agents = agents
        self._findings = findings
        self._tasks = tasks
        self._contexts = contexts
        self._limits = limits or SummaryLimits()
        self._scan_limit = scan_limit

    async def _collect(
        self, context_id: str
    ) -> tuple[list[Finding], list[Task], list[AgentCard]]:
        findings, tasks, agents = await asyncio.gather(
            self._findings.query(FindingQuery(context_id=context_id, limit=self._scan_limit)),
            self._tasks.query(TaskQuery(context_id=context_id, limit=self._scan_limit)),
            self._agents.list(),
        )
        participants = {f.agent_id for f in findings}
        participants.update(task.created_by for task in tasks)
        participants.update(task.assigned_to for task in tasks if task.assigned_to)
        active = [a for a in agents if a.status == "active" and a.id in participants]
        return findings, tasks, active

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def summarize(self, context_id: str) -> str:
        with _tracer.start_as_current_span("context.summarize") as span:
            self._annotate(span)
            span.set_attribute(ATTR_CONTEXT_ID, context_id)
            findings, tasks, agents = await self._collect(context_id)
            span.set_attribute(ATTR_FINDING_COUNT, len(findings))
            span.set_attribute(ATTR_TASK_COUNT, len(tasks))
            return render_summary(context_id, findings, tasks, agents, self._limits)

    async def summarize_with_manifest(self, context_id: str) -> ContextSnapshot:
        """Summarise *context_id* and persist its compaction manifest.

        Persisting the manifest and refreshing the context record are
        best-effort; failures are logged and the snapshot is still returned.
        """
        with _tracer.start_as_current_span("context.summarize") as span:
            self._annotate(span)
            span.set_attribute(ATTR_CONTEXT_ID, context_id)
            findings, tasks, agents = await self._collect(context_id)
            span.set_attribute(ATTR_FINDING_COUNT, len(findings))
            span.set_attribute(ATTR_TASK_COUNT, len(tasks))

            manifest = build_manifest(context_id, findings, tasks, agents)
            markdown = render_summary(context_id, findings, tasks, agents, self._limits)

            try:
                await self._store.put(
                    t.manifest_path(context_id),
                    manifest.to_json(),
                    tags=t.manifest_tags(context_id, self._scope),
                )
                await self._contexts.refresh(
                    context_id,
                    findings=[f.id for f in findings],
                    tasks=[task.id for task in tasks],
                    agents=manifest.agent_ids,
                    summary=markdown,
                )
            except StoreError as exc:
                logger.warning("Could not persist manifest for %s: %s", context_id, exc)

            return ContextSnapshot(markdown=markdown, manifest=manifest)

    # ------------------------------------------------------------------
    # Manifest recovery
    # ------------------------------------------------------------------

    async def get_manifest(self, context_id: str) -> CompactionManifest | None:
        return await self._load(CompactionManifest, t.manifest_path(context_id))

    async def hydrate(self, manifest: CompactionManifest) -> HydratedContext:
        """Re-fetch every finding and task listed in *manifest*.

        Entries deleted since the manifest was written are dropped.
        """
        findings, tasks = await asyncio.gather(
            asyncio.gather(*(self._findings.get(d.id) for d in manifest.finding_ids)),
            asyncio.gather(*(self._tasks.get(d.id) for d in manifest.task_ids)),
        )
        return HydratedContext(
            findings=[f for f in findings if f is not None],
            tasks=[task for task in tasks if task is not None],
        )

    # ------------------------------------------------------------------
    # Session teardown
    # ------------------------------------------------------------------

    async def archive_session_scoped(self, session_name: str) -> int:
        """Re-tag the session's session-scoped findings as archived.

        Nothing is deleted.  Returns the number of findings archived.
        """
        query = t.query(t.FINDING, t.scope("session"), t.session(session_name))
        refs = await self._list(query, limit=self._scan_limit)
        add = [str(t.archived(session_name)), str(t.archived_at(utcnow().date().isoformat()))]
        remove = [str(t.session(session_name))]

        archived = 0
        for ref in refs:
            try:
                if await self._store.update_tags(ref.path, add=add, remove=remove):
                    archived += 1
            except StoreError as exc:
                logger.warning("Could not archive %s: %s", ref.path, exc)
        if archived:
            logger.debug("Archived %d session finding(s) from %s", archived, session_name)
        return archived

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    async def stats(self, instance_id: str | None = None) -> BlackboardStats:
        agents, findings, tasks, contexts = await asyncio.gather(
            self._agents.list(instance_id),
            self._findings.query(FindingQuery(instance_id=instance_id, limit=self._scan_limit)),
            self._tasks.query(TaskQuery(instance_id=instance_id, limit=self._scan_limit)),
            self._list(
                t.query(t.CONTEXT, t.instance(instance_id) if instance_id else None),
                limit=self._scan_limit,
            ),
        )
        return BlackboardStats(
            agents=len(agents),
            findings=FindingStats(
                total=len(findings),
                by_topic=_count([f.topic for f in findings]),
                by_status=_count([f.status for f in findings]),
                by_severity=_count([f.severity for f in findings]),
            ),
            tasks=TaskStats(
                total=len(tasks),
                by_status=_count([task.status for task in tasks]),
                by_type=_count([task.type for task in tasks]),
            ),
            contexts=len(contexts),
        )
