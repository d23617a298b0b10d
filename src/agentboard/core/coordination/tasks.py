"""Task coordination graph: creation, readiness, claiming and lifecycle.

State machine::

    pending -> claimed -> working -> review -> completed
       |          |         ^  |
       |          |         |  v
       |          |       blocked
       |          +-> completed
       +-> cancelled <- claimed

``failed`` is reachable from every non-terminal state.  A pending task may
also be completed or failed directly; the update then assigns it to its
creator.

A task is *ready* when it is pending and every task it depends on exists
and is completed.  Claiming is the one place that needs exclusivity: the
claim write carries the etag observed at read time, so the store rejects
it if another agent got there first.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.codec import decode_json
from agentboard.core.blackboard.models import (
    DEFAULT_PRIORITY,
    Artifact,
    CreateTask,
    Task,
    TaskQuery,
    TaskStatus,
    TaskType,
    TaskUpdate,
    dedupe_dependencies,
    new_id,
    utcnow,
)
from agentboard.core.coordination.base import DEFAULT_QUERY_LIMIT, StoreComponent
from agentboard.core.events.models import EventType, TaskEvent
from agentboard.errors import (
    DocumentParseError,
    InvalidTransitionError,
    PreconditionFailedError,
    StoreError,
)
from agentboard.store.backend import DocumentStore, Precondition
from agentboard.utils.telemetry import (
    ATTR_AGENT_ID,
    ATTR_PENDING_COUNT,
    ATTR_READY_COUNT,
    ATTR_TASK_CLAIMED,
    ATTR_TASK_ID,
    get_tracer,
)

if TYPE_CHECKING:
    from agentboard.core.events.bus import EventBus
    from agentboard.core.session.scope import Scope, SessionManager

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

# Transitions reachable through update(); pending -> claimed only via claim().
TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    "pending": frozenset({"completed", "failed", "cancelled"}),
    "claimed": frozenset({"working", "completed", "failed", "cancelled"}),
    "working": frozenset({"blocked", "review", "completed", "failed"}),
    "blocked": frozenset({"working", "failed"}),
    "review": frozenset({"working", "completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
    "cancelled": frozenset(),
}

DEFAULT_READY_SCAN = 1000


class TaskGraph(StoreComponent):
    """Claimable tasks with dependencies."""

    def __init__(
        self,
        store: DocumentStore,
        scope: Scope,
        *,
        events: EventBus | None = None,
        sessions: SessionManager | None = None,
        query_limit: int = DEFAULT_QUERY_LIMIT,
        ready_scan: int = DEFAULT_READY_SCAN,
    ) -> None:
        super().__init__(store, scope, query_limit=query_limit)
        self._events = events
        self._sessions = sessions
        self._ready_scan = ready_scan

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------

    async def create(self, data: CreateTask) -> Task:
        """Persist a new pending task.

        Raises:
            StoreError: If the write fails.
        """
        task_id = new_id("t")
        task = Task(
            **data.model_dump(exclude={"priority", "depends_on"}),
            id=task_id,
            priority=data.priority if data.priority is not None else DEFAULT_PRIORITY,
            depends_on=dedupe_dependencies(task_id, data.depends_on),
        )
        await self._save(task)
        logger.debug("Created task %s (%s, p%d)", task.id, task.type, task.priority)

        if self._sessions is not None:
            await self._sessions.reconcile()
        await self._emit("task_created", task, task.created_by)
        return task

    async def get(self, task_id: str) -> Task | None:
        return await self._load(Task, t.task_path(task_id))

    async def query(self, q: TaskQuery) -> list[Task]:
        tag_query = t.query(
            t.TASK,
            t.instance(q.instance_id) if q.instance_id else None,
            t.task_type(q.type) if q.type else None,
            t.status(q.status) if q.status else None,
            t.priority(q.priority) if q.priority is not None else None,
            t.creator(q.created_by) if q.created_by else None,
            t.assignee(q.assigned_to) if q.assigned_to else None,
            t.context(q.context_id) if q.context_id else None,
        )
        refs = await self._list(tag_query, limit=q.limit, offset=q.offset)
        return await self._load_many(Task, [r.path for r in refs])

    async def search(
        self,
        text: str,
        *,
        type: TaskType | None = None,
        instance_id: str | None = None,
        limit: int = 10,
    ) -> list[Task]:
        tag_query = t.query(
            t.TASK,
            t.instance(instance_id) if instance_id else None,
            t.task_type(type) if type else None,
        )
        try:
            hits = await self._store.search(text, query=tag_query, limit=limit)
        except StoreError as exc:
            logger.warning("Task search failed: %s", exc)
            return []
        return await self._load_many(Task, [h.path for h in hits if h.path.startswith("tasks/")])

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    async def get_ready(
        self,
        capabilities: Iterable[str] | None = None,
        instance_id: str | None = None,
    ) -> list[Task]:
        """Pending tasks whose dependencies are all completed, by ascending priority.

        Dependencies that are missing or cannot be read count as not
        completed.  A non-empty *capabilities* set keeps only tasks whose
        ``type`` is in it.
        """
        with _tracer.start_as_current_span("task.ready") as span:
            self._annotate(span)
            pending = await self.query(
                TaskQuery(status="pending", instance_id=instance_id, limit=self._ready_scan)
            )
            pending = [task for task in pending if task.status == "pending"]
            span.set_attribute(ATTR_PENDING_COUNT, len(pending))

            dep_ids = list(dict.fromkeys(d for task in pending for d in task.depends_on))
            done = await asyncio.gather(*(self._is_completed(d) for d in dep_ids))
            completed = {d for d, ok in zip(dep_ids, done) if ok}

            allowed = set(capabilities) if capabilities is not None else set()
            ready = [
                task
                for task in pending
                if all(d in completed for d in task.depends_on)
                and (not allowed or task.type in allowed)
            ]
            ready.sort(key=lambda task: task.priority)
            span.set_attribute(ATTR_READY_COUNT, len(ready))
            return ready

    async def _is_completed(self, task_id: str) -> bool:
        """Unreadable dependencies read as missing, i.e. not completed."""
        dep = await self.get(task_id)
        return dep is not None and dep.status == "completed"

    # ------------------------------------------------------------------
    # Claiming
    # ------------------------------------------------------------------

    async def claim(self, task_id: str, agent_id: str) -> Task | None:
        """Atomically take a pending task.

        Returns ``None`` if the task is unknown, not pending, or another
        agent's claim landed first.

        Raises:
            StoreError: If the store itself fails.
        """
        with _tracer.start_as_current_span("task.claim") as span:
            self._annotate(span)
            span.set_attribute(ATTR_TASK_ID, task_id)
            span.set_attribute(ATTR_AGENT_ID, agent_id)
            span.set_attribute(ATTR_TASK_CLAIMED, False)

            doc = await self._store.get(t.task_path(task_id))
            if doc is None:
                return None
            try:
                task = decode_json(Task, doc.content, doc.path)
            except DocumentParseError as exc:
                logger.debug("Cannot claim malformed task: %s", exc)
                return None
            if task.status != "pending":
                logger.debug("Task %s is %s; claim by %s rejected", task_id, task.status, agent_id)
                return None

            now = utcnow()
            claimed = task.model_copy(
                update={
                    "status": "claimed",
                    "assigned_to": agent_id,
                    "claimed_at": now,
                    "updated_at": now,
                }
            )
            try:
                await self._save(claimed, precondition=Precondition(if_match=doc.etag))
            except PreconditionFailedError:
                logger.debug("Task %s claim by %s lost the race", task_id, agent_id)
                return None

            span.set_attribute(ATTR_TASK_CLAIMED, True)
            logger.debug("Task %s claimed by %s", task_id, agent_id)

        await self._emit("task_claimed", claimed, agent_id)
        return claimed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def update(self, task_id: str, changes: TaskUpdate) -> Task | None:
        """Merge *changes* onto the stored task and rewrite it.

        Raises:
            InvalidTransitionError: If the status change is not allowed.
        """
        return await self._apply(task_id, changes)

    async def complete(
        self,
        task_id: str,
        findings: list[str] | None = None,
        artifacts: list[Artifact] | None = None,
    ) -> Task | None:
        return await self._apply(
            task_id, TaskUpdate(status="completed", findings=findings, artifacts=artifacts)
        )

    async def fail(self, task_id: str, error: str) -> Task | None:
        return await self._apply(task_id, TaskUpdate(status="failed", error=error))

    async def cancel(self, task_id: str, agent_id: str) -> Task | None:
        return await self._apply(task_id, TaskUpdate(status="cancelled"), actor=agent_id)

    async def _apply(
        self, task_id: str, changes: TaskUpdate, *, actor: str | None = None
    ) -> Task | None:
        task = await self.get(task_id)
        if task is None:
            return None

        previous = task.status
        target = changes.status
        if target is not None and target != previous and target not in TRANSITIONS[previous]:
            raise InvalidTransitionError(task_id, previous, target)

        update = changes.model_dump(exclude_none=True)
        update["updated_at"] = utcnow()
        status = target or previous
        if status != "pending" and task.assigned_to is None:
            update["assigned_to"] = actor or task.created_by
        updated = task.model_validate({**task.model_dump(), **update})

        await self._save(updated)

        if target is not None and target != previous:
            event_type: EventType = "task_completed" if target == "completed" else "task_updated"
            await self._emit(event_type, updated, updated.assigned_to or updated.created_by)
        return updated

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _save(self, task: Task, *, precondition: Precondition | None = None) -> None:
        await self._write(
            t.task_path(task.id),
            task,
            t.task_tags(task, self._scope),
            precondition=precondition,
        )

    async def _emit(self, event_type: EventType, task: Task, agent_id: str) -> None:
        if self._events is None:
            return
        await self._events.trigger(
            TaskEvent(
                event_type=event_type,
                source_id=task.id,
                source_agent_id=agent_id,
                status=task.status,
                context_id=task.context_id,
                title=task.title,
                task_type=task.type,
                priority=task.priority,
            )
        )
