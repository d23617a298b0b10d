"""Finding lifecycle manager.

State machine::

    draft -> published -> acknowledged -> resolved
                 |              |
                 +-> resolved   +-> rejected
                 +-> rejected

Status changes after posting are tag-only: the markdown body is never
rewritten.  The current ``status:*`` tag and the resolution metadata are
overlaid onto the parsed document on every read.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, get_args

from pydantic import ValidationError

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.codec import decode_finding, encode_finding
from agentboard.core.blackboard.models import (
    CreateFinding,
    Finding,
    FindingQuery,
    FindingScope,
    FindingStatus,
    FindingTopic,
    new_id,
    utcnow,
)
from agentboard.core.coordination.base import DEFAULT_QUERY_LIMIT, StoreComponent
from agentboard.core.events.models import EventType, FindingEvent
from agentboard.errors import DocumentParseError, StoreError
from agentboard.store.backend import Document, DocumentStore

if TYPE_CHECKING:
    from agentboard.core.events.bus import EventBus
    from agentboard.core.session.scope import Scope, SessionManager

logger = logging.getLogger(__name__)

# target status -> statuses it may be entered from
_ALLOWED_FROM: dict[FindingStatus, frozenset[str]] = {
    "published": frozenset({"draft"}),
    "acknowledged": frozenset({"published"}),
    "resolved": frozenset({"published", "acknowledged"}),
    "rejected": frozenset({"published", "acknowledged"}),
}

_STATUS_TAGS = tuple(str(t.status(s)) for s in get_args(FindingStatus))

_OVERLAY_KEYS = ("acknowledged_by", "acknowledged_at", "resolved_by", "resolution", "resolved_at")


def _overlay(finding: Finding, doc: Document) -> Finding:
    """Apply the document's live status tag and resolution metadata."""
    update: dict[str, str] = {k: doc.metadata[k] for k in _OVERLAY_KEYS if doc.metadata.get(k)}
    statuses = [tag.split(":", 1)[1] for tag in doc.tags if tag in _STATUS_TAGS]
    if statuses:
        update["status"] = statuses[-1]
    if not update:
        return finding
    try:
        return Finding.model_validate({**finding.model_dump(), **update})
    except ValidationError as exc:
        logger.debug("Ignoring bad overlay on %s: %s", doc.path, exc)
        return finding


class FindingManager(StoreComponent):
    """Posts, reads and transitions findings."""

    def __init__(
        self,
        store: DocumentStore,
        scope: Scope,
        *,
        events: EventBus | None = None,
        sessions: SessionManager | None = None,
        default_scope: FindingScope = "persistent",
        query_limit: int = DEFAULT_QUERY_LIMIT,
    ) -> None:
        super().__init__(store, scope, query_limit=query_limit)
        self._events = events
        self._sessions = sessions
        self._default_scope: FindingScope = default_scope

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def post(self, data: CreateFinding) -> Finding:
        """Persist a new finding and notify subscribers.

        Raises:
            StoreError: If the write fails.
        """
        finding = Finding(
            **data.model_dump(exclude={"status", "scope"}),
            id=new_id("f"),
            status=data.status or "published",
            scope=data.scope or self._default_scope,
        )
        await self._store.put(
            t.finding_path(finding.topic, finding.id),
            encode_finding(finding),
            tags=t.finding_tags(finding, self._scope),
            session=self._scope.session,
        )
        logger.debug("Posted finding %s [%s] by %s", finding.id, finding.topic, finding.agent_id)

        if self._sessions is not None:
            await self._sessions.reconcile()
        await self._emit("finding_created", finding, finding.agent_id)
        return finding

    async def publish(self, finding_id: str, agent_id: str) -> Finding | None:
        return await self._transition(finding_id, agent_id, "published", {}, "finding_updated")

    async def acknowledge(self, finding_id: str, agent_id: str) -> Finding | None:
        metadata = {"acknowledged_by": agent_id, "acknowledged_at": utcnow().isoformat()}
        return await self._transition(finding_id, agent_id, "acknowledged", metadata, "finding_updated")

    async def resolve(self, finding_id: str, agent_id: str, resolution: str) -> Finding | None:
        metadata = {
            "resolved_by": agent_id,
            "resolution": resolution,
            "resolved_at": utcnow().isoformat(),
        }
        return await self._transition(finding_id, agent_id, "resolved", metadata, "finding_resolved")

    async def reject(self, finding_id: str, agent_id: str, reason: str) -> Finding | None:
        metadata = {
            "rejected_by": agent_id,
            "rejection_reason": reason,
            "rejected_at": utcnow().isoformat(),
        }
        return await self._transition(finding_id, agent_id, "rejected", metadata, "finding_updated")

    async def _transition(
        self,
        finding_id: str,
        agent_id: str,
        target: FindingStatus,
        metadata: dict[str, str],
        event_type: EventType,
    ) -> Finding | None:
        doc = await self._read(t.finding_glob(finding_id))
        finding = self._decode(doc) if doc is not None else None
        if doc is None or finding is None:
            logger.debug("Finding %s not found; %s ignored", finding_id, target)
            return None
        if finding.status not in _ALLOWED_FROM[target]:
            logger.debug("Finding %s is %s; cannot become %s", finding_id, finding.status, target)
            return None

        new_tag = str(t.status(target))
        updated = await self._store.update_tags(
            doc.path,
            add=[new_tag],
            remove=[s for s in _STATUS_TAGS if s != new_tag],
            metadata=metadata,
        )
        if not updated:
            return None

        result = Finding.model_validate({**finding.model_dump(), **metadata, "status": target})
        await self._emit(event_type, result, agent_id)
        return result

    async def _emit(self, event_type: EventType, finding: Finding, agent_id: str) -> None:
        if self._events is None:
            return
        await self._events.trigger(
            FindingEvent(
                event_type=event_type,
                source_id=finding.id,
                source_agent_id=agent_id,
                status=finding.status,
                context_id=finding.context_id,
                title=finding.title,
                topic=finding.topic,
                severity=finding.severity,
            )
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _decode(self, doc: Document) -> Finding | None:
        try:
            return _overlay(decode_finding(doc.content, doc.path), doc)
        except DocumentParseError as exc:
            logger.debug("Skipping malformed finding: %s", exc)
            return None

    async def _load_finding(self, path: str) -> Finding | None:
        doc = await self._read(path)
        return self._decode(doc) if doc is not None else None

    async def get(self, finding_id: str) -> Finding | None:
        return await self._load_finding(t.finding_glob(finding_id))

    async def query(self, q: FindingQuery) -> list[Finding]:
        """Tag-filtered lookup; confidence and severity are filtered after fetch."""
        tag_query = t.query(
            t.FINDING,
            t.instance(q.instance_id) if q.instance_id else None,
            t.topic(q.topic) if q.topic else None,
            t.agent(q.agent_id) if q.agent_id else None,
            t.context(q.context_id) if q.context_id else None,
            t.status(q.status) if q.status else None,
            t.scope(q.scope) if q.scope else None,
            t.session(q.session) if q.session else None,
        )
        refs = await self._list(tag_query, limit=q.limit, offset=q.offset)
        loaded = await asyncio.gather(*(self._load_finding(r.path) for r in refs))

        findings: list[Finding] = []
        for finding in loaded:
            if finding is None:
                continue
            if q.min_confidence is not None and finding.confidence < q.min_confidence:
                continue
            if q.severity and finding.severity not in q.severity:
                continue
            findings.append(finding)
        return findings

    async def search(
        self,
        text: str,
        *,
        topic: FindingTopic | None = None,
        instance_id: str | None = None,
        limit: int = 10,
    ) -> list[Finding]:
        tag_query = t.query(
            t.FINDING,
            t.instance(instance_id) if instance_id else None,
            t.topic(topic) if topic else None,
        )
        try:
            hits = await self._store.search(text, query=tag_query, limit=limit)
        except StoreError as exc:
            logger.warning("Finding search failed: %s", exc)
            return []
        loaded = await asyncio.gather(
            *(self._load_finding(h.path) for h in hits if h.path.startswith("findings/"))
        )
        return [f for f in loaded if f is not None]
