"""Agent registry: who is participating and what they can do."""

from __future__ import annotations

import logging

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.models import AgentCard, AgentStatus, utcnow
from agentboard.core.coordination.base import StoreComponent

logger = logging.getLogger(__name__)


class AgentRegistry(StoreComponent):
    """Idempotent agent card storage keyed by agent id.

    Concurrent registrations of the same id are last-write-wins.
    """

    async def register(self, card: AgentCard) -> AgentCard:
        existing = await self.get(card.id)
        registered_at = existing.registered_at if existing and existing.registered_at else utcnow()
        full = card.model_copy(update={"registered_at": registered_at})
        await self._write(t.agent_path(full.id), full, t.agent_tags(full, self._scope))
        logger.debug("Registered agent %s (%s)", full.id, ", ".join(full.capabilities))
        return full

    async def get(self, agent_id: str) -> AgentCard | None:
        return await self._load(AgentCard, t.agent_path(agent_id))

    async def list(self, instance_id: str | None = None) -> list[AgentCard]:
        query = t.query(t.AGENT, t.instance(instance_id) if instance_id else None)
        refs = await self._list(query)
        return await self._load_many(AgentCard, [r.path for r in refs])

    async def update_status(self, agent_id: str, status: AgentStatus) -> AgentCard | None:
        """Set *status* on a known agent.  Unknown ids are a silent no-op."""
        card = await self.get(agent_id)
        if card is None:
            return None
        updated = card.model_copy(update={"status": status})
        await self._write(t.agent_path(agent_id), updated, t.agent_tags(updated, self._scope))
        return updated
