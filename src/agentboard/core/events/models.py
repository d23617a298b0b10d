"""Event bus models: events, subscriptions, and mailbox notifications.

A :data:`BlackboardEvent` is transient: it is built by the operation that
changed a finding or task, matched against subscriptions, and discarded.
Subscriptions and notifications are persisted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from agentboard.core.blackboard.models import (
    FindingSeverity,
    FindingTopic,
    TaskType,
    utcnow,
)

EventType = Literal[
    "finding_created",
    "finding_updated",
    "finding_resolved",
    "task_created",
    "task_updated",
    "task_claimed",
    "task_completed",
]
SourceType = Literal["finding", "task"]
PatternType = Literal["topic", "entity", "agent", "status", "context"]
SubscriptionStatus = Literal["active", "paused", "expired"]
NotificationStatus = Literal["unread", "read", "dismissed"]


class _EventBase(BaseModel):
    event_type: EventType
    source_id: str
    source_agent_id: str
    status: str | None = None
    context_id: str | None = None
    title: str

    def pattern_field(self, pattern_type: PatternType) -> str | None:
        """Return the event field a subscription of *pattern_type* compares."""
        if pattern_type == "topic":
            return getattr(self, "topic", None)
        if pattern_type == "agent":
            return self.source_agent_id
        if pattern_type == "status":
            return self.status
        if pattern_type == "context":
            return self.context_id
        return self.source_type  # type: ignore[attr-defined,no-any-return]


class FindingEvent(_EventBase):
    """An event raised by a finding lifecycle operation."""

    source_type: Literal["finding"] = "finding"
    topic: FindingTopic
    severity: FindingSeverity | None = None


class TaskEvent(_EventBase):
    """An event raised by a task lifecycle operation."""

    source_type: Literal["task"] = "task"
    task_type: TaskType | None = None
    priority: int | None = None


BlackboardEvent = Annotated[FindingEvent | TaskEvent, Field(discriminator="source_type")]


class SubscriptionFilters(BaseModel):
    """Extra conditions applied after the pattern matches.

    ``min_confidence`` is stored but not evaluated: events carry no
    confidence value.
    """

    severity: list[FindingSeverity] | None = None
    min_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    exclude_self: bool = True


class Subscription(BaseModel):
    """A standing rule routing matching events into an agent's mailbox."""

    id: str
    subscriber_id: str = Field(min_length=1)
    pattern_type: PatternType
    pattern_value: str = Field(min_length=1)
    filters: SubscriptionFilters = Field(default_factory=SubscriptionFilters)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime | None = None
    status: SubscriptionStatus = "active"

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.status == "expired":
            return True
        if self.expires_at is None:
            return False
        expires = self.expires_at
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=UTC)
        return expires < (now or utcnow())


class NotificationSummary(BaseModel):
    """Denormalised view of the source so recipients need not refetch it."""

    title: str
    topic: str | None = None
    severity: FindingSeverity | None = None
    status: str | None = None


class Notification(BaseModel):
    """A mailbox entry created when an event matches a subscription."""

    id: str
    subscription_id: str
    event_type: EventType
    source_id: str
    source_type: SourceType
    source_agent_id: str
    summary: NotificationSummary
    recipient_id: str
    created_at: datetime = Field(default_factory=utcnow)
    read_at: datetime | None = None
    status: NotificationStatus = "unread"


class NotificationCount(BaseModel):
    unread: int = 0
    total: int = 0
