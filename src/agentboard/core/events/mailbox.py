"""Per-recipient mailbox over stored notifications.

The mailbox is pull-based: agents poll :meth:`Mailbox.get_unread` or
:meth:`Mailbox.get_count` when they choose.  Every operation is confined
to one recipient within the current instance.
"""

from __future__ import annotations

import logging

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.models import utcnow
from agentboard.core.coordination.base import DEFAULT_QUERY_LIMIT, StoreComponent
from agentboard.core.events.bus import DEFAULT_SCAN_LIMIT
from agentboard.core.events.models import Notification, NotificationCount, NotificationStatus
from agentboard.core.session.scope import Scope
from agentboard.errors import StoreError
from agentboard.store.backend import DocumentStore, TagQuery

logger = logging.getLogger(__name__)


class Mailbox(StoreComponent):
    def __init__(
        self,
        store: DocumentStore,
        scope: Scope,
        *,
        query_limit: int = DEFAULT_QUERY_LIMIT,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
    ) -> None:
        super().__init__(store, scope, query_limit=query_limit)
        self._scan_limit = scan_limit

    def _query(self, recipient_id: str, status: NotificationStatus | None = None) -> TagQuery:
        return t.query(
            t.NOTIFICATION,
            t.instance(self._scope.instance_id),
            t.recipient(recipient_id),
            t.status(status) if status else None,
        )

    async def get_unread(self, recipient_id: str, limit: int = 20) -> list[Notification]:
        """Return up to *limit* unread notifications, newest first."""
        refs = await self._list(self._query(recipient_id, "unread"), limit=self._scan_limit)
        notes = await self._load_many(Notification, [r.path for r in refs])
        notes = [n for n in notes if n.status == "unread"]
        notes.sort(key=lambda n: n.created_at, reverse=True)
        return notes[:limit]

    async def mark_read(self, recipient_id: str, notification_id: str) -> bool:
        note = await self._load(Notification, t.notification_path(recipient_id, notification_id))
        if note is None or note.status == "dismissed":
            return False
        return await self._save(note.model_copy(update={"status": "read", "read_at": utcnow()}))

    async def mark_all_read(self, recipient_id: str) -> int:
        unread = await self.get_unread(recipient_id, limit=self._scan_limit)
        count = 0
        for note in unread:
            if await self.mark_read(recipient_id, note.id):
                count += 1
        return count

    async def dismiss(self, recipient_id: str, notification_id: str) -> bool:
        note = await self._load(Notification, t.notification_path(recipient_id, notification_id))
        if note is None:
            return False
        return await self._save(note.model_copy(update={"status": "dismissed"}))

    async def get_count(self, recipient_id: str) -> NotificationCount:
        unread = await self._list(self._query(recipient_id, "unread"), limit=self._scan_limit)
        total = await self._list(self._query(recipient_id), limit=self._scan_limit)
        return NotificationCount(unread=len(unread), total=len(total))

    async def _save(self, note: Notification) -> bool:
        try:
            await self._write(
                t.notification_path(note.recipient_id, note.id),
                note,
                t.notification_tags(note, self._scope),
            )
        except StoreError as exc:
            logger.warning("Could not update notification %s: %s", note.id, exc)
            return False
        return True
