"""Blackboard data models: every record agents share through the store.

Agents, findings, tasks and contexts are persisted entities; the query
objects describe tag-filtered lookups; the manifest models describe the
lightweight recovery index written at compaction time.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AgentStatus = Literal["active", "idle", "offline"]
FindingTopic = Literal[
    "security",
    "performance",
    "bug",
    "architecture",
    "refactor",
    "test",
    "doc",
    "dependency",
    "accessibility",
    "other",
]
FindingSeverity = Literal["info", "low", "medium", "high", "critical"]
FindingStatus = Literal["draft", "published", "acknowledged", "resolved", "rejected"]
FindingScope = Literal["session", "persistent"]
ReferenceType = Literal["file", "url", "finding", "task", "symbol"]
TaskType = Literal["analysis", "fix", "review", "test", "research", "synthesis"]
TaskStatus = Literal[
    "pending",
    "claimed",
    "working",
    "blocked",
    "review",
    "completed",
    "failed",
    "cancelled",
]
ArtifactType = Literal["file", "data", "report"]
ContextStatus = Literal["active", "completed", "archived"]

DEFAULT_PRIORITY = 2
HIGH_SEVERITIES: frozenset[str] = frozenset({"high", "critical"})


def new_id(prefix: str) -> str:
    """Return a globally unique id such as ``t-1718000000000-a1b2c3``."""
    return f"{prefix}-{int(time.time() * 1000)}-{uuid4().hex[:6]}"


def utcnow() -> datetime:
    return datetime.now(UTC)


class AgentCard(BaseModel):
    """Identity and capabilities of a registered agent."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    capabilities: list[str] = Field(min_length=1)
    version: str | None = None
    status: AgentStatus = "active"
    registered_at: datetime | None = None


class Reference(BaseModel):
    """A typed link from a finding to a file, URL, symbol, or another entity."""

    type: ReferenceType
    target: str = Field(min_length=1)
    label: str | None = None
    line_start: int | None = Field(default=None, gt=0)
    line_end: int | None = Field(default=None, gt=0)


class CreateFinding(BaseModel):
    """Input accepted by :meth:`FindingManager.post`."""

    agent_id: str = Field(min_length=1)
    topic: FindingTopic
    title: str = Field(min_length=1, max_length=200, pattern=r"^[^\r\n]+$")
    content: str = Field(min_length=1)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    severity: FindingSeverity | None = None
    status: FindingStatus | None = None
    scope: FindingScope | None = None
    context_id: str | None = None
    parent_id: str | None = None
    references: list[Reference] = []
    ttl: int | None = Field(default=None, gt=0)
    metadata: dict[str, str] | None = None


class Finding(BaseModel):
    """A discovery posted by one agent for others to read."""

    id: str
    agent_id: str
    topic: FindingTopic
    title: str
    content: str
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    severity: FindingSeverity | None = None
    status: FindingStatus = "published"
    scope: FindingScope = "persistent"
    context_id: str | None = None
    parent_id: str | None = None
    references: list[Reference] = []
    ttl: int | None = None
    metadata: dict[str, str] | None = None
    created_at: datetime = Field(default_factory=utcnow)
    acknowledged_by: str | None = None
    acknowledged_at: datetime | None = None
    resolved_by: str | None = None
    resolution: str | None = None
    resolved_at: datetime | None = None

    @property
    def is_unresolved(self) -> bool:
        return self.status not in ("resolved", "rejected")


class Artifact(BaseModel):
    """An output produced while working a task."""

    name: str = Field(min_length=1)
    type: ArtifactType
    path: str | None = None
    hash: str | None = None
    mime_type: str | None = None


class CreateTask(BaseModel):
    """Input accepted by :meth:`TaskGraph.create`."""

    title: str = Field(min_length=1, max_length=200)
    description: str | None = None
    type: TaskType
    priority: int | None = Field(default=None, ge=0, le=4)
    created_by: str = Field(min_length=1)
    depends_on: list[str] = []
    context_id: str | None = None
    parent_task: str | None = None
    metadata: dict[str, str] | None = None


class Task(BaseModel):
    """A unit of claimable work with dependencies and a lifecycle."""

    id: str
    title: str
    description: str | None = None
    type: TaskType
    priority: int = Field(default=DEFAULT_PRIORITY, ge=0, le=4)
    status: TaskStatus = "pending"
    created_by: str
    assigned_to: str | None = None
    claimed_at: datetime | None = None
    depends_on: list[str] = []
    findings: list[str] = []
    artifacts: list[Artifact] = []
    context_id: str | None = None
    parent_task: str | None = None
    error: str | None = None
    metadata: dict[str, str] | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None


class TaskUpdate(BaseModel):
    """Fields :meth:`TaskGraph.update` merges onto a stored task.

    ``None`` leaves the stored value unchanged.
    """

    status: TaskStatus | None = None
    error: str | None = None
    findings: list[str] | None = None
    artifacts: list[Artifact] | None = None


class Context(BaseModel):
    """A named grouping of related findings, tasks and agents."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None
    findings: list[str] = []
    tasks: list[str] = []
    agents: list[str] = []
    status: ContextStatus = "active"
    summary: str | None = None
    created_at: datetime = Field(default_factory=utcnow)


# ----------------------------------------------------------------------
# Queries
# ----------------------------------------------------------------------


class FindingQuery(BaseModel):
    """Filter for :meth:`FindingManager.query`.

    Tag-backed fields are ANDed server-side; ``severity`` and
    ``min_confidence`` are applied after fetch.
    """

    topic: FindingTopic | None = None
    agent_id: str | None = None
    context_id: str | None = None
    instance_id: str | None = None
    status: FindingStatus | None = None
    severity: list[FindingSeverity] | None = None
    min_confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    scope: FindingScope | None = None
    session: str | None = None
    limit: int = Field(default=20, gt=0)
    offset: int = Field(default=0, ge=0)


class TaskQuery(BaseModel):
    """Filter for :meth:`TaskGraph.query`.  Every field is a tag."""

    type: TaskType | None = None
    status: TaskStatus | None = None
    priority: int | None = Field(default=None, ge=0, le=4)
    created_by: str | None = None
    assigned_to: str | None = None
    context_id: str | None = None
    instance_id: str | None = None
    limit: int = Field(default=20, gt=0)
    offset: int = Field(default=0, ge=0)


# ----------------------------------------------------------------------
# Compaction manifest
# ----------------------------------------------------------------------


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FindingDescriptor(_CamelModel):
    id: str
    topic: FindingTopic
    severity: FindingSeverity | None = None
    status: FindingStatus
    confidence: float


class TaskDescriptor(_CamelModel):
    id: str
    type: TaskType
    status: TaskStatus
    priority: int = DEFAULT_PRIORITY


class ManifestStats(_CamelModel):
    total_findings: int = 0
    unresolved_findings: int = 0
    active_tasks: int = 0
    blocked_tasks: int = 0


class CompactionManifest(_CamelModel):
    """Lightweight, re-fetchable index of a context's findings and tasks."""

    context_id: str
    timestamp: datetime = Field(default_factory=utcnow)
    finding_ids: list[FindingDescriptor] = []
    task_ids: list[TaskDescriptor] = []
    agent_ids: list[str] = []
    stats: ManifestStats = Field(default_factory=ManifestStats)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class ContextSnapshot(BaseModel):
    """Markdown summary and manifest produced together at compaction time."""

    markdown: str
    manifest: CompactionManifest


class HydratedContext(BaseModel):
    """Full entities re-fetched from a manifest's ids."""

    findings: list[Finding] = []
    tasks: list[Task] = []


class FindingStats(BaseModel):
    total: int = 0
    by_topic: dict[str, int] = {}
    by_status: dict[str, int] = {}
    by_severity: dict[str, int] = {}


class TaskStats(BaseModel):
    total: int = 0
    by_status: dict[str, int] = {}
    by_type: dict[str, int] = {}


class BlackboardStats(BaseModel):
    agents: int = 0
    findings: FindingStats = Field(default_factory=FindingStats)
    tasks: TaskStats = Field(default_factory=TaskStats)
    contexts: int = 0


def dedupe_dependencies(task_id: str, depends_on: list[str]) -> list[str]:
    """Drop duplicates and self-references from a dependency list."""
    return [d for d in dict.fromkeys(depends_on) if d and d != task_id]


class SearchResults(BaseModel):
    """Cross-entity search hits, split by kind."""

    findings: list[Finding] = []
    tasks: list[Task] = []


class RecentActivity(BaseModel):
    """Newest findings and most recently touched tasks, newest first."""

    findings: list[Finding] = []
    tasks: list[Task] = []
