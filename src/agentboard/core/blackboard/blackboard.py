"""Blackboard facade: one object wiring every coordination component.

The facade owns the shared :class:`Scope` and hands the same store and
scope to each component, so a session started here is visible to every
writer.  Components stay individually usable; the facade only adds
cross-entity search, grep and graph exploration.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.models import (
    BlackboardStats,
    FindingQuery,
    FindingScope,
    RecentActivity,
    SearchResults,
    TaskQuery,
)
from agentboard.core.context.aggregator import ContextAggregator
from agentboard.core.context.renderer import SummaryLimits
from agentboard.core.coordination.base import DEFAULT_QUERY_LIMIT
from agentboard.core.coordination.contexts import ContextRegistry
from agentboard.core.coordination.findings import FindingManager
from agentboard.core.coordination.registry import AgentRegistry
from agentboard.core.coordination.tasks import TaskGraph
from agentboard.core.events.bus import DEFAULT_SCAN_LIMIT, EventBus
from agentboard.core.events.mailbox import Mailbox
from agentboard.core.session.scope import Scope, SessionManager
from agentboard.errors import StoreError
from agentboard.store.backend import DocumentStore, GraphNode, GrepMatch
from agentboard.store.memory import InMemoryStore
from agentboard.store.yams import YamsStore

if TYPE_CHECKING:
    from agentboard.config.models import BoardSettings, StoreSettings

logger = logging.getLogger(__name__)


def open_store(settings: StoreSettings) -> DocumentStore:
    """Build the store described by *settings*.

    A memory store is restored from ``snapshot_path`` when that file exists.
    """
    if settings.backend == "yams":
        return YamsStore(settings.yams_binary, owner=settings.owner)
    if settings.snapshot_path:
        path = Path(settings.snapshot_path)
        if path.exists():
            return InMemoryStore.restore(path.read_bytes())
    return InMemoryStore()


class Blackboard:
    """Shared coordination surface for a set of agents.

    Usage::

        board = Blackboard(InMemoryStore())
        await board.agents.register(AgentCard(id="scanner", name="Scanner", capabilities=["review"]))
        task = await board.tasks.create(CreateTask(title="Audit", type="review", created_by="lead"))
        await board.tasks.claim(task.id, "scanner")
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        instance_id: str | None = None,
        default_scope: FindingScope = "persistent",
        limits: SummaryLimits | None = None,
        query_limit: int = DEFAULT_QUERY_LIMIT,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        self.store = store
        self.scope = Scope(instance_id) if instance_id else Scope()
        self._query_limit = query_limit
        self.sessions = SessionManager(store, self.scope)
        self.events = EventBus(store, self.scope, query_limit=query_limit, scan_limit=scan_limit)
        self.mailbox = Mailbox(store, self.scope, query_limit=query_limit, scan_limit=scan_limit)
        self.agents = AgentRegistry(store, self.scope, query_limit=query_limit)
        self.findings = FindingManager(
            store,
            self.scope,
            events=self.events,
            sessions=self.sessions,
            default_scope=default_scope,
            query_limit=query_limit,
        )
        self.tasks = TaskGraph(
            store, self.scope, events=self.events, sessions=self.sessions, query_limit=query_limit
        )
        self.contexts = ContextRegistry(store, self.scope, query_limit=query_limit)
        self.context = ContextAggregator(
            store,
            self.scope,
            agents=self.agents,
            findings=self.findings,
            tasks=self.tasks,
            contexts=self.contexts,
            limits=limits,
            query_limit=query_limit,
        )

    @classmethod
    def from_settings(
        cls, settings: BoardSettings, store: DocumentStore | None = None
    ) -> Blackboard:
        return cls(
            store if store is not None else open_store(settings.store),
            instance_id=settings.instance_id,
            default_scope=settings.default_scope,
            limits=settings.summary,
            query_limit=settings.limits.query_limit,
            scan_limit=settings.limits.mailbox_scan_limit,
        )

    @property
    def instance_id(self) -> str:
        return self.scope.instance_id

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_session(self, name: str | None = None) -> str:
        return await self.sessions.start(name)

    async def stop_session(self) -> int:
        """Archive the session's session-scoped findings, then close it.

        Returns the number of findings archived.
        """
        name = self.sessions.name
        if not self.sessions.active or not name:
            return 0
        archived = await self.context.archive_session_scoped(name)
        await self.sessions.stop()
        return archived

    # ------------------------------------------------------------------
    # Cross-entity discovery
    # ------------------------------------------------------------------

    async def search(
        self, text: str, *, instance_id: str | None = None, limit: int = 20
    ) -> SearchResults:
        query = t.query(t.instance(instance_id)) if instance_id else None
        try:
            hits = await self.store.search(text, query=query, limit=limit)
        except StoreError as exc:
            logger.warning("Search failed: %s", exc)
            return SearchResults()

        finding_ids = [t.id_from_path(h.path) for h in hits if h.path.startswith("findings/")]
        task_ids = [t.id_from_path(h.path) for h in hits if h.path.startswith("tasks/")]
        findings, tasks = await asyncio.gather(
            asyncio.gather(*(self.findings.get(i) for i in finding_ids)),
            asyncio.gather(*(self.tasks.get(i) for i in task_ids)),
        )
        return SearchResults(
            findings=[f for f in findings if f is not None],
            tasks=[task for task in tasks if task is not None],
        )

    async def grep(
        self,
        pattern: str,
        *,
        entity: Literal["finding", "task"] | None = None,
        instance_id: str | None = None,
        limit: int = 50,
    ) -> list[GrepMatch]:
        kind = {"finding": t.FINDING, "task": t.TASK}.get(entity) if entity else None
        query = t.query(kind, t.instance(instance_id) if instance_id else None)
        try:
            return await self.store.grep(pattern, query=query if query.tags else None, limit=limit)
        except StoreError as exc:
            logger.warning("Grep failed: %s", exc)
            return []

    async def connections(self, path: str, depth: int = 2) -> list[GraphNode]:
        try:
            return await self.store.graph_neighbors(path, depth)
        except StoreError as exc:
            logger.warning("Graph lookup for %s failed: %s", path, exc)
            return []

    async def recent_activity(
        self, *, limit: int = 10, instance_id: str | None = None
    ) -> RecentActivity:
        """Return the *limit* newest findings and most recently updated tasks.

        Store listings carry no ordering, so up to ``query_limit`` entities of
        each kind are fetched and sorted here.
        """
        scan = max(limit, self._query_limit)
        findings, tasks = await asyncio.gather(
            self.findings.query(FindingQuery(instance_id=instance_id, limit=scan)),
            self.tasks.query(TaskQuery(instance_id=instance_id, limit=scan)),
        )
        findings.sort(key=lambda f: f.created_at, reverse=True)
        tasks.sort(key=lambda task: task.updated_at or task.created_at, reverse=True)
        return RecentActivity(findings=findings[:limit], tasks=tasks[:limit])

    async def stats(self, instance_id: str | None = None) -> BlackboardStats:
        return await self.context.stats(instance_id)
