"""Event bus: subscriptions, event matching and notification fan-out.

Every state-changing coordination operation hands a :data:`BlackboardEvent`
to :meth:`EventBus.trigger`.  The bus scans the instance's active
subscriptions, keeps those whose pattern and filters accept the event, and
writes one :class:`Notification` per match into the subscriber's mailbox.
Expiry is evaluated lazily at match and list time; nothing sweeps in the
background.
"""

from __future__ import annotations

import logging
from datetime import datetime

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.models import new_id, utcnow
from agentboard.core.coordination.base import DEFAULT_QUERY_LIMIT, StoreComponent
from agentboard.core.events.models import (
    BlackboardEvent,
    Notification,
    NotificationSummary,
    PatternType,
    Subscription,
    SubscriptionFilters,
    SubscriptionStatus,
)
from agentboard.core.session.scope import Scope
from agentboard.errors import StoreError
from agentboard.store.backend import DocumentStore
from agentboard.utils.telemetry import (
    ATTR_EVENT_TYPE,
    ATTR_NOTIFICATIONS,
    ATTR_SOURCE_ID,
    get_tracer,
)

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

DEFAULT_SCAN_LIMIT = 500


def subscription_matches(
    sub: Subscription, event: BlackboardEvent, now: datetime | None = None
) -> bool:
    """Return whether *event* should be delivered to *sub*."""
    if sub.status != "active" or sub.is_expired(now):
        return False
    if sub.filters.exclude_self and sub.subscriber_id == event.source_agent_id:
        return False
    if event.pattern_field(sub.pattern_type) != sub.pattern_value:
        return False
    allowed = sub.filters.severity
    if allowed:
        severity = getattr(event, "severity", None)
        if severity is None or severity not in allowed:
            return False
    return True


class EventBus(StoreComponent):
    """Subscription registry plus event-to-notification dispatch."""

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

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def subscribe(
        self,
        subscriber_id: str,
        pattern_type: PatternType,
        pattern_value: str,
        filters: SubscriptionFilters | None = None,
        expires_at: datetime | None = None,
    ) -> Subscription:
        sub = Subscription(
            id=new_id("sub"),
            subscriber_id=subscriber_id,
            pattern_type=pattern_type,
            pattern_value=pattern_value,
            filters=filters or SubscriptionFilters(),
            expires_at=expires_at,
        )
        await self._save(sub)
        logger.debug("%s subscribed to %s=%s as %s", subscriber_id, pattern_type, pattern_value, sub.id)
        return sub

    async def get(self, subscriber_id: str, subscription_id: str) -> Subscription | None:
        """Return the subscription if it is active and unexpired."""
        sub = await self._fetch(subscriber_id, subscription_id)
        if sub is None or sub.status != "active" or sub.is_expired():
            return None
        return sub

    async def list(self, subscriber_id: str) -> list[Subscription]:
        query = t.query(t.SUBSCRIPTION, t.instance(self._scope.instance_id), t.subscriber(subscriber_id))
        refs = await self._list(query)
        subs = await self._load_many(Subscription, [r.path for r in refs])
        now = utcnow()
        return [s for s in subs if s.status == "active" and not s.is_expired(now)]

    async def cancel(self, subscriber_id: str, subscription_id: str) -> bool:
        """Mark a subscription expired.  ``False`` if unknown or already expired."""
        sub = await self._fetch(subscriber_id, subscription_id)
        if sub is None or sub.is_expired():
            return False
        return await self._set_status(sub, "expired")

    async def pause(self, subscriber_id: str, subscription_id: str) -> bool:
        sub = await self._fetch(subscriber_id, subscription_id)
        if sub is None or sub.status != "active" or sub.is_expired():
            return False
        return await self._set_status(sub, "paused")

    async def resume(self, subscriber_id: str, subscription_id: str) -> bool:
        sub = await self._fetch(subscriber_id, subscription_id)
        if sub is None or sub.status != "paused" or sub.is_expired():
            return False
        return await self._set_status(sub, "active")

    async def _fetch(self, subscriber_id: str, subscription_id: str) -> Subscription | None:
        return await self._load(Subscription, t.subscription_path(subscriber_id, subscription_id))

    async def _save(self, sub: Subscription) -> None:
        await self._write(
            t.subscription_path(sub.subscriber_id, sub.id),
            sub,
            t.subscription_tags(sub, self._scope),
        )

    async def _set_status(self, sub: Subscription, status: SubscriptionStatus) -> bool:
        try:
            await self._save(sub.model_copy(update={"status": status}))
        except StoreError as exc:
            logger.warning("Could not mark subscription %s %s: %s", sub.id, status, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def find_matching(self, event: BlackboardEvent) -> list[Subscription]:
        query = t.query(t.SUBSCRIPTION, t.instance(self._scope.instance_id), t.status("active"))
        refs = await self._list(query, limit=self._scan_limit)
        subs = await self._load_many(Subscription, [r.path for r in refs])
        now = utcnow()
        return [s for s in subs if subscription_matches(s, event, now)]

    async def trigger(self, event: BlackboardEvent) -> int:
        """Deliver *event* to every matching subscriber.  Returns the count."""
        with _tracer.start_as_current_span("events.trigger") as span:
            self._annotate(span)
            span.set_attribute(ATTR_EVENT_TYPE, event.event_type)
            span.set_attribute(ATTR_SOURCE_ID, event.source_id)

            delivered = 0
            for sub in await self.find_matching(event):
                note = Notification(
                    id=new_id("notif"),
                    subscription_id=sub.id,
                    event_type=event.event_type,
                    source_id=event.source_id,
                    source_type=event.source_type,
                    source_agent_id=event.source_agent_id,
                    summary=NotificationSummary(
                        title=event.title,
                        topic=getattr(event, "topic", None),
                        severity=getattr(event, "severity", None),
                        status=event.status,
                    ),
                    recipient_id=sub.subscriber_id,
                )
                try:
                    await self._write(
                        t.notification_path(note.recipient_id, note.id),
                        note,
                        t.notification_tags(note, self._scope),
                    )
                except StoreError as exc:
                    logger.warning("Notification for %s dropped: %s", sub.subscriber_id, exc)
                    continue
                delivered += 1

            span.set_attribute(ATTR_NOTIFICATIONS, delivered)
            if delivered:
                logger.debug("%s on %s -> %d notification(s)", event.event_type, event.source_id, delivered)
            return delivered
