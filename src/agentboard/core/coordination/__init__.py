"""Coordination components: agents, findings, tasks and context records."""

from agentboard.core.coordination.base import StoreComponent
from agentboard.core.coordination.contexts import ContextRegistry
from agentboard.core.coordination.findings import FindingManager
from agentboard.core.coordination.registry import AgentRegistry
from agentboard.core.coordination.tasks import TaskGraph

__all__ = [
    "AgentRegistry",
    "ContextRegistry",
    "FindingManager",
    "StoreComponent",
    "TaskGraph",
]
