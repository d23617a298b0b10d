"""Tests for Mailbox."""

from __future__ import annotations

from datetime import timedelta

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.codec import encode_json
from agentboard.core.blackboard.models import utcnow
from agentboard.core.events.mailbox import Mailbox
from agentboard.core.events.models import Notification, NotificationSummary
from agentboard.core.session.scope import Scope
from agentboard.store.memory import InMemoryStore


class TestMailbox:
    def setup_method(self) -> None:
        self.store = InMemoryStore()
        self.scope = Scope(instance_id="i1")
        self.mailbox = Mailbox(self.store, self.scope)

    async def _deliver(self, note_id: str, recipient: str = "lead", age: int = 0) -> Notification:
        note = Notification(
            id=note_id,
            subscription_id="sub-1",
            event_type="finding_created",
            source_id="f-1",
            source_type="finding",
            source_agent_id="scanner",
            summary=NotificationSummary(title=f"Note {note_id}"),
            recipient_id=recipient,
            created_at=utcnow() - timedelta(minutes=age),
        )
        await self.store.put(
            t.notification_path(recipient, note_id),
            encode_json(note),
            tags=t.notification_tags(note, self.scope),
        )
        return note

    async def test_unread_newest_first(self) -> None:
        await self._deliver("n-old", age=10)
        await self._deliver("n-new", age=0)
        await self._deliver("n-mid", age=5)

        unread = await self.mailbox.get_unread("lead")
        assert [n.id for n in unread] == ["n-new", "n-mid", "n-old"]

    async def test_unread_limit(self) -> None:
        for i in range(5):
            await self._deliver(f"n-{i}", age=i)
        unread = await self.mailbox.get_unread("lead", limit=2)
        assert [n.id for n in unread] == ["n-0", "n-1"]

    async def test_recipients_are_isolated(self) -> None:
        await self._deliver("n-1", recipient="lead")
        await self._deliver("n-2", recipient="other")
        assert [n.id for n in await self.mailbox.get_unread("lead")] == ["n-1"]

    async def test_mark_read(self) -> None:
        await self._deliver("n-1")
        assert await self.mailbox.mark_read("lead", "n-1") is True
        assert await self.mailbox.get_unread("lead") == []

        doc = await self.store.get(t.notification_path("lead", "n-1"))
        assert doc is not None
        assert "status:read" in doc.tags
        assert '"read_at": null' not in doc.content

    async def test_mark_read_unknown(self) -> None:
        assert await self.mailbox.mark_read("lead", "n-missing") is False

    async def test_mark_read_other_recipient(self) -> None:
        await self._deliver("n-1", recipient="other")
        assert await self.mailbox.mark_read("lead", "n-1") is False

    async def test_mark_all_read(self) -> None:
        for i in range(3):
            await self._deliver(f"n-{i}")
        assert await self.mailbox.mark_all_read("lead") == 3
        assert await self.mailbox.get_unread("lead") == []
        assert await self.mailbox.mark_all_read("lead") == 0

    async def test_dismiss(self) -> None:
        await self._deliver("n-1")
        assert await self.mailbox.dismiss("lead", "n-1") is True
        assert await self.mailbox.get_unread("lead") == []
        assert await self.mailbox.mark_read("lead", "n-1") is False

    async def test_dismiss_unknown(self) -> None:
        assert await self.mailbox.dismiss("lead", "n-missing") is False

    async def test_count(self) -> None:
        for i in range(3):
            await self._deliver(f"n-{i}")
        await self.mailbox.mark_read("lead", "n-0")

        count = await self.mailbox.get_count("lead")
        assert count.unread == 2
        assert count.total == 3

    async def test_other_instance_invisible(self) -> None:
        await self._deliver("n-1")
        other = Mailbox(self.store, Scope(instance_id="i2"))
        assert await other.get_unread("lead") == []
        assert (await other.get_count("lead")).total == 0
