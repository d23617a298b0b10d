"""Event bus: subscriptions, matching and per-agent mailboxes."""

from agentboard.core.events.bus import EventBus, subscription_matches
from agentboard.core.events.mailbox import Mailbox
from agentboard.core.events.models import (
    BlackboardEvent,
    FindingEvent,
    Notification,
    Subscription,
    SubscriptionFilters,
    TaskEvent,
)

__all__ = [
    "BlackboardEvent",
    "EventBus",
    "FindingEvent",
    "Mailbox",
    "Notification",
    "Subscription",
    "SubscriptionFilters",
    "TaskEvent",
    "subscription_matches",
]
