"""Shared plumbing for components that persist entities in a :class:`DocumentStore`.

Reads degrade: a missing document, an unparseable one, or a failing store
call all collapse to ``None`` / an empty list.  Writes go straight to the
store and propagate its errors.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from agentboard.core.blackboard.codec import decode_json, encode_json
from agentboard.core.session.scope import Scope
from agentboard.errors import DocumentParseError, StoreError
from agentboard.store.backend import (
    Document,
    DocumentRef,
    DocumentStore,
    Precondition,
    TagQuery,
)
from agentboard.utils.telemetry import set_scope_attributes

if TYPE_CHECKING:
    from opentelemetry.trace import Span

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DEFAULT_QUERY_LIMIT = 100


class StoreComponent:
    """Base class holding the store, the shared scope, and read helpers."""

    def __init__(
        self,
        store: DocumentStore,
        scope: Scope,
        *,
        query_limit: int = DEFAULT_QUERY_LIMIT,
    ) -> None:
        self._store = store
        self._scope = scope
        self._query_limit = query_limit

    @property
    def scope(self) -> Scope:
        return self._scope

    def _annotate(self, span: Span) -> None:
        set_scope_attributes(span, self._scope.instance_id, self._scope.session)

    async def _read(self, path: str) -> Document | None:
        try:
            return await self._store.get(path)
        except StoreError as exc:
            logger.warning("Read of %s failed: %s", path, exc)
            return None

    async def _load(self, model_cls: type[M], path: str) -> M | None:
        doc = await self._read(path)
        if doc is None:
            return None
        try:
            return decode_json(model_cls, doc.content, doc.path)
        except DocumentParseError as exc:
            logger.debug("Skipping malformed document: %s", exc)
            return None

    async def _load_many(self, model_cls: type[M], paths: Sequence[str]) -> list[M]:
        loaded = await asyncio.gather(*(self._load(model_cls, p) for p in paths))
        return [m for m in loaded if m is not None]

    async def _list(
        self, query: TagQuery, *, limit: int | None = None, offset: int = 0
    ) -> list[DocumentRef]:
        try:
            return await self._store.list(query, limit=limit or self._query_limit, offset=offset)
        except StoreError as exc:
            logger.warning("List %s failed: %s", ",".join(query.tags), exc)
            return []

    async def _write(
        self,
        path: str,
        model: BaseModel,
        tags: list[str],
        *,
        precondition: Precondition | None = None,
    ) -> None:
        await self._store.put(
            path,
            encode_json(model),
            tags=tags,
            session=self._scope.session,
            precondition=precondition,
        )
