"""Context records: named groupings that findings and tasks point at."""

from __future__ import annotations

import logging

from agentboard.core.blackboard import tags as t
from agentboard.core.blackboard.models import Context, ContextStatus
from agentboard.core.coordination.base import StoreComponent

logger = logging.getLogger(__name__)


class ContextRegistry(StoreComponent):
    """Create, read and maintain :class:`Context` records.

    Findings and tasks reference a context by id; the record's id lists are
    a denormalised index refreshed at summary time, not a source of truth.
    """

    async def create(self, context_id: str, name: str, description: str | None = None) -> Context:
        ctx = Context(id=context_id, name=name, description=description)
        await self._save(ctx)
        logger.debug("Created context %s", context_id)
        return ctx

    async def get(self, context_id: str) -> Context | None:
        return await self._load(Context, t.context_path(context_id))

    async def list(
        self, status: ContextStatus | None = None, instance_id: str | None = None
    ) -> list[Context]:
        query = t.query(
            t.CONTEXT,
            t.instance(instance_id) if instance_id else None,
            t.status(status) if status else None,
        )
        refs = await self._list(query)
        return await self._load_many(Context, [r.path for r in refs])

    async def set_status(self, context_id: str, status: ContextStatus) -> Context | None:
        ctx = await self.get(context_id)
        if ctx is None:
            return None
        updated = ctx.model_copy(update={"status": status})
        await self._save(updated)
        return updated

    async def refresh(
        self,
        context_id: str,
        *,
        findings: list[str],
        tasks: list[str],
        agents: list[str],
        summary: str | None = None,
    ) -> Context | None:
        """Overwrite the record's id lists (and summary) if it exists."""
        ctx = await self.get(context_id)
        if ctx is None:
            return None
        update: dict[str, object] = {"findings": findings, "tasks": tasks, "agents": agents}
        if summary is not None:
            update["summary"] = summary
        updated = ctx.model_copy(update=update)
        await self._save(updated)
        return updated

    async def _save(self, ctx: Context) -> None:
        await self._write(t.context_path(ctx.id), ctx, t.context_tags(ctx, self._scope))
