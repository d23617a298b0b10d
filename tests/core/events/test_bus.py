"""Tests for EventBus and subscription matching."""

from __future__ import annotations

from datetime import timedelta

from agentboard.core.blackboard.models import CreateFinding, utcnow
from agentboard.core.coordination.findings import FindingManager
from agentboard.core.events.bus import EventBus, subscription_matches
from agentboard.core.events.mailbox import Mailbox
from agentboard.core.events.models import (
    FindingEvent,
    Subscription,
    SubscriptionFilters,
    TaskEvent,
)
from agentboard.core.session.scope import Scope
from agentboard.errors import StoreUnavailableError
from agentboard.store.memory import InMemoryStore


def _event(**overrides: object) -> FindingEvent:
    data: dict[str, object] = {
        "event_type": "finding_created",
        "source_id": "f-1",
        "source_agent_id": "scanner",
        "status": "published",
        "title": "Hardcoded secret",
        "topic": "security",
        "severity": "high",
    }
    data.update(overrides)
    return FindingEvent.model_validate(data)


def _sub(**overrides: object) -> Subscription:
    data: dict[str, object] = {
        "id": "sub-1",
        "subscriber_id": "reviewer",
        "pattern_type": "topic",
        "pattern_value": "security",
    }
    data.update(overrides)
    return Subscription.model_validate(data)


class TestSubscriptionMatches:
    def test_topic_match(self) -> None:
        assert subscription_matches(_sub(), _event())

    def test_topic_mismatch(self) -> None:
        assert not subscription_matches(_sub(pattern_value="performance"), _event())

    def test_exclude_self(self) -> None:
        sub = _sub(subscriber_id="scanner")
        assert not subscription_matches(sub, _event())

        included = _sub(subscriber_id="scanner", filters=SubscriptionFilters(exclude_self=False))
        assert subscription_matches(included, _event())

    def test_agent_pattern(self) -> None:
        assert subscription_matches(_sub(pattern_type="agent", pattern_value="scanner"), _event())

    def test_status_pattern(self) -> None:
        sub = _sub(pattern_type="status", pattern_value="resolved")
        assert not subscription_matches(sub, _event())
        assert subscription_matches(sub, _event(status="resolved"))

    def test_context_pattern(self) -> None:
        sub = _sub(pattern_type="context", pattern_value="audit")
        assert not subscription_matches(sub, _event())
        assert subscription_matches(sub, _event(context_id="audit"))

    def test_entity_pattern(self) -> None:
        sub = _sub(pattern_type="entity", pattern_value="task")
        task_event = TaskEvent(
            event_type="task_created",
            source_id="t-1",
            source_agent_id="lead",
            title="Fix",
            task_type="fix",
        )
        assert subscription_matches(sub, task_event)
        assert not subscription_matches(sub, _event())

    def test_severity_filter(self) -> None:
        sub = _sub(filters=SubscriptionFilters(severity=["high", "critical"]))
        assert subscription_matches(sub, _event(severity="critical"))
        assert not subscription_matches(sub, _event(severity="low"))
        assert not subscription_matches(sub, _event(severity=None))

    def test_empty_severity_filter_allows_all(self) -> None:
        sub = _sub(filters=SubscriptionFilters(severity=[]))
        assert subscription_matches(sub, _event(severity=None))

    def test_expired_never_matches(self) -> None:
        sub = _sub(expires_at=utcnow() - timedelta(seconds=1))
        assert not subscription_matches(sub, _event())

    def test_future_expiry_matches(self) -> None:
        sub = _sub(expires_at=utcnow() + timedelta(hours=1))
        assert subscription_matches(sub, _event())

    def test_paused_never_matches(self) -> None:
        assert not subscription_matches(_sub(status="paused"), _event())


class TestSubscriptions:
    def setup_method(self) -> None:
        self.bus = EventBus(InMemoryStore(), Scope(instance_id="i1"))

    async def test_subscribe_and_get(self) -> None:
        sub = await self.bus.subscribe("reviewer", "topic", "security")
        assert sub.status == "active"
        assert await self.bus.get("reviewer", sub.id) == sub

    async def test_list(self) -> None:
        await self.bus.subscribe("reviewer", "topic", "security")
        await self.bus.subscribe("reviewer", "agent", "scanner")
        await self.bus.subscribe("other", "topic", "bug")
        assert len(await self.bus.list("reviewer")) == 2

    async def test_cancel(self) -> None:
        sub = await self.bus.subscribe("reviewer", "topic", "security")
        assert await self.bus.cancel("reviewer", sub.id) is True
        assert await self.bus.get("reviewer", sub.id) is None
        assert await self.bus.list("reviewer") == []
        assert await self.bus.cancel("reviewer", sub.id) is False

    async def test_cancel_unknown(self) -> None:
        assert await self.bus.cancel("reviewer", "sub-missing") is False

    async def test_pause_and_resume(self) -> None:
        sub = await self.bus.subscribe("reviewer", "topic", "security")
        assert await self.bus.pause("reviewer", sub.id) is True
        assert await self.bus.get("reviewer", sub.id) is None
        assert await self.bus.trigger(_event()) == 0

        assert await self.bus.resume("reviewer", sub.id) is True
        assert await self.bus.trigger(_event()) == 1

    async def test_lapsed_subscription_hidden(self) -> None:
        sub = await self.bus.subscribe(
            "reviewer", "topic", "security", expires_at=utcnow() - timedelta(minutes=1)
        )
        assert await self.bus.get("reviewer", sub.id) is None
        assert await self.bus.list("reviewer") == []


class TestTrigger:
    def setup_method(self) -> None:
        self.store = InMemoryStore()
        self.scope = Scope(instance_id="i1")
        self.bus = EventBus(self.store, self.scope)
        self.mailbox = Mailbox(self.store, self.scope)

    async def test_delivers_to_each_match(self) -> None:
        await self.bus.subscribe("reviewer", "topic", "security")
        await self.bus.subscribe("auditor", "agent", "scanner")
        await self.bus.subscribe("perf", "topic", "performance")

        assert await self.bus.trigger(_event()) == 2
        assert len(await self.mailbox.get_unread("reviewer")) == 1
        assert len(await self.mailbox.get_unread("auditor")) == 1
        assert await self.mailbox.get_unread("perf") == []

    async def test_notification_content(self) -> None:
        sub = await self.bus.subscribe("reviewer", "topic", "security")
        await self.bus.trigger(_event())

        [note] = await self.mailbox.get_unread("reviewer")
        assert note.subscription_id == sub.id
        assert note.event_type == "finding_created"
        assert note.source_type == "finding"
        assert note.source_agent_id == "scanner"
        assert note.summary.title == "Hardcoded secret"
        assert note.summary.topic == "security"
        assert note.summary.severity == "high"

    async def test_other_instances_not_notified(self) -> None:
        other_bus = EventBus(self.store, Scope(instance_id="i2"))
        await other_bus.subscribe("reviewer", "topic", "security")
        assert await self.bus.trigger(_event()) == 0

    async def test_failed_delivery_is_skipped(self) -> None:
        await self.bus.subscribe("reviewer", "topic", "security")
        await self.bus.subscribe("auditor", "topic", "security")

        real_put = self.store.put

        async def flaky_put(path: str, content: str, **kwargs: object) -> None:
            if path.startswith("notifications/reviewer/"):
                raise StoreUnavailableError("add", "quota")
            await real_put(path, content, **kwargs)  # type: ignore[arg-type]

        self.store.put = flaky_put  # type: ignore[method-assign]
        assert await self.bus.trigger(_event()) == 1
        assert len(await self.mailbox.get_unread("auditor")) == 1


class TestFindingNotifications:
    def setup_method(self) -> None:
        store = InMemoryStore()
        scope = Scope(instance_id="i1")
        self.bus = EventBus(store, scope)
        self.mailbox = Mailbox(store, scope)
        self.findings = FindingManager(store, scope, events=self.bus)

    async def test_severity_filtered_subscription(self) -> None:
        await self.bus.subscribe(
            "lead", "topic", "security", filters=SubscriptionFilters(severity=["high", "critical"])
        )
        base = {"agent_id": "scanner", "topic": "security", "content": "details"}
        await self.findings.post(
            CreateFinding.model_validate({**base, "title": "Low", "severity": "low"})
        )
        await self.findings.post(
            CreateFinding.model_validate({**base, "title": "Crit", "severity": "critical"})
        )

        notes = await self.mailbox.get_unread("lead")
        assert [n.summary.title for n in notes] == ["Crit"]

    async def test_resolve_notifies_again(self) -> None:
        await self.bus.subscribe("lead", "topic", "security")
        finding = await self.findings.post(
            CreateFinding(agent_id="scanner", topic="security", title="Leak", content="details")
        )
        await self.findings.resolve(finding.id, "fixer", "patched")

        notes = await self.mailbox.get_unread("lead")
        assert sorted(n.event_type for n in notes) == ["finding_created", "finding_resolved"]

    async def test_acknowledge_unknown_sends_nothing(self) -> None:
        await self.bus.subscribe("lead", "topic", "security")
        assert await self.findings.acknowledge("f-missing", "lead") is None
        assert (await self.mailbox.get_count("lead")).total == 0

