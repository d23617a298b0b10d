"""Blackboard entities: data models, tag encoding and document codecs.

The :class:`~agentboard.core.blackboard.blackboard.Blackboard` facade lives in
its own module because it depends on every coordination component.
"""

from agentboard.core.blackboard.models import (
    AgentCard,
    Artifact,
    CompactionManifest,
    Context,
    CreateFinding,
    CreateTask,
    Finding,
    FindingQuery,
    Reference,
    Task,
    TaskQuery,
    TaskUpdate,
)

__all__ = [
    "AgentCard",
    "Artifact",
    "CompactionManifest",
    "Context",
    "CreateFinding",
    "CreateTask",
    "Finding",
    "FindingQuery",
    "Reference",
    "Task",
    "TaskQuery",
    "TaskUpdate",
]
