"""Tag encoding: canonical paths and tag sets for every persisted entity.

Tags are the store's only query index.  They are built exclusively through
:class:`Tag` values and the ``*_tags`` helpers below, so every write of an
entity carries the same deterministic set (kind, instance, optional
session, and the entity's classifying fields).  Queries are built with
:func:`query`, which always ANDs.
"""

from __future__ import annotations

import glob
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from agentboard.store.backend import TagQuery

if TYPE_CHECKING:
    from agentboard.core.blackboard.models import AgentCard, Context, Finding, Task
    from agentboard.core.events.models import Notification, Subscription
    from agentboard.core.session.scope import Scope


@dataclass(frozen=True)
class Tag:
    """A single ``key`` or ``key:value`` index entry."""

    key: str
    value: str | None = None

    def __str__(self) -> str:
        return self.key if self.value is None else f"{self.key}:{self.value}"


AGENT = Tag("agent")
FINDING = Tag("finding")
TASK = Tag("task")
CONTEXT = Tag("context")
SUBSCRIPTION = Tag("subscription")
NOTIFICATION = Tag("notification")
MANIFEST = Tag("manifest")


def instance(instance_id: str) -> Tag:
    return Tag("inst", instance_id)


def session(name: str) -> Tag:
    return Tag("session", name)


def status(value: str) -> Tag:
    return Tag("status", value)


def context(context_id: str) -> Tag:
    return Tag("ctx", context_id)


def topic(value: str) -> Tag:
    return Tag("topic", value)


def agent(agent_id: str) -> Tag:
    return Tag("agent", agent_id)


def scope(value: str) -> Tag:
    return Tag("scope", value)


def severity(value: str) -> Tag:
    return Tag("severity", value)


def capability(value: str) -> Tag:
    return Tag("capability", value)


def task_type(value: str) -> Tag:
    return Tag("type", value)


def priority(value: int) -> Tag:
    return Tag("priority", str(value))


def creator(agent_id: str) -> Tag:
    return Tag("creator", agent_id)


def assignee(agent_id: str) -> Tag:
    return Tag("assignee", agent_id)


def subscriber(agent_id: str) -> Tag:
    return Tag("subscriber", agent_id)


def pattern(pattern_type: str, value: str) -> Tag:
    return Tag("pattern", f"{pattern_type}:{value}")


def recipient(agent_id: str) -> Tag:
    return Tag("recipient", agent_id)


def event(event_type: str) -> Tag:
    return Tag("event", event_type)


def archived(session_name: str) -> Tag:
    return Tag("archived", session_name)


def archived_at(day: str) -> Tag:
    return Tag("archived_at", day)


def render(tags: Iterable[Tag | None]) -> list[str]:
    """Render tags to store strings, dropping ``None`` and duplicates."""
    return list(dict.fromkeys(str(t) for t in tags if t is not None))


def query(*tags: Tag | None) -> TagQuery:
    """Build a match-all :class:`TagQuery` from the non-``None`` tags."""
    return TagQuery(tags=tuple(render(tags)), match_all=True)


def _scoped(kind: Tag, scope_: Scope) -> list[Tag | None]:
    return [
        kind,
        instance(scope_.instance_id),
        session(scope_.session) if scope_.session else None,
    ]


# ----------------------------------------------------------------------
# Entity tag sets
# ----------------------------------------------------------------------


def agent_tags(card: AgentCard, scope_: Scope) -> list[str]:
    return render([*_scoped(AGENT, scope_), *(capability(c) for c in card.capabilities)])


def finding_tags(finding: Finding, scope_: Scope) -> list[str]:
    return render(
        [
            *_scoped(FINDING, scope_),
            agent(finding.agent_id),
            topic(finding.topic),
            scope(finding.scope),
            status(finding.status),
            severity(finding.severity) if finding.severity else None,
            context(finding.context_id) if finding.context_id else None,
        ]
    )


def task_tags(task: Task, scope_: Scope) -> list[str]:
    return render(
        [
            *_scoped(TASK, scope_),
            task_type(task.type),
            status(task.status),
            priority(task.priority),
            creator(task.created_by),
            assignee(task.assigned_to) if task.assigned_to else None,
            context(task.context_id) if task.context_id else None,
        ]
    )


def context_tags(ctx: Context, scope_: Scope) -> list[str]:
    return render([*_scoped(CONTEXT, scope_), status(ctx.status)])


def subscription_tags(sub: Subscription, scope_: Scope) -> list[str]:
    return render(
        [
            *_scoped(SUBSCRIPTION, scope_),
            subscriber(sub.subscriber_id),
            pattern(sub.pattern_type, sub.pattern_value),
            status(sub.status),
        ]
    )


def notification_tags(note: Notification, scope_: Scope) -> list[str]:
    return render(
        [
            *_scoped(NOTIFICATION, scope_),
            recipient(note.recipient_id),
            event(note.event_type),
            status(note.status),
        ]
    )


def manifest_tags(context_id: str, scope_: Scope) -> list[str]:
    return render([MANIFEST, instance(scope_.instance_id), context(context_id), scope("persistent")])


# ----------------------------------------------------------------------
# Canonical paths
# ----------------------------------------------------------------------


def agent_path(agent_id: str) -> str:
    return f"agents/{agent_id}.json"


def finding_path(topic_: str, finding_id: str) -> str:
    return f"findings/{topic_}/{finding_id}.md"


def finding_glob(finding_id: str) -> str:
    """Findings are partitioned by topic, so id lookups go through a glob."""
    return f"findings/*/{glob.escape(finding_id)}.md"


def task_path(task_id: str) -> str:
    return f"tasks/{task_id}.json"


def context_path(context_id: str) -> str:
    return f"contexts/{context_id}.json"


def manifest_path(context_id: str) -> str:
    return f"contexts/{context_id}/compaction-manifest.json"


def subscription_path(subscriber_id: str, subscription_id: str) -> str:
    return f"subscriptions/{subscriber_id}/{subscription_id}.json"


def notification_path(recipient_id: str, notification_id: str) -> str:
    return f"notifications/{recipient_id}/{notification_id}.json"


def id_from_path(path: str) -> str:
    """Return the entity id encoded in a canonical path."""
    name = path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[0] if "." in name else name
