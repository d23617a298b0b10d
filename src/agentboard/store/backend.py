"""Document store protocol: the storage collaborator behind the blackboard.

:class:`DocumentStore` defines the async contract every backend satisfies:
tag-filtered enumeration, relevance search, exact/glob reads, upserts with an
optional compare-and-swap precondition, and tag-only mutation.  The
coordination core never talks to a concrete store directly.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field


def content_etag(content: str) -> str:
    """Return the entity tag used for conditional writes."""
    return hashlib.sha256(content.encode()).hexdigest()


class TagQuery(BaseModel):
    """A tag filter.  ``match_all`` ANDs every tag; otherwise any tag matches."""

    tags: tuple[str, ...] = ()
    match_all: bool = True

    def matches(self, tags: Sequence[str]) -> bool:
        if not self.tags:
            return True
        present = set(tags)
        if self.match_all:
            return all(t in present for t in self.tags)
        return any(t in present for t in self.tags)


class Precondition(BaseModel):
    """Expected prior state for a conditional :meth:`DocumentStore.put`.

    * **if_match**: the etag the caller observed; the write fails if the
      stored document changed since.
    * **if_absent**: the write fails if a document already exists.
    """

    if_match: str | None = None
    if_absent: bool = False


class DocumentRef(BaseModel):
    """A document descriptor returned by :meth:`DocumentStore.list`."""

    path: str
    tags: list[str] = []
    metadata: dict[str, str] = {}
    updated_at: datetime | None = None


class Document(DocumentRef):
    """A full document: descriptor plus raw content."""

    content: str
    session: str | None = None

    @property
    def etag(self) -> str:
        return content_etag(self.content)


class SearchHit(BaseModel):
    """A relevance-ranked search result."""

    path: str
    score: float = 0.0
    snippet: str = ""


class GrepMatch(BaseModel):
    """All matching lines of one document."""

    path: str
    matches: list[str] = []


class GraphNode(BaseModel):
    """A node reached by :meth:`DocumentStore.graph_neighbors`."""

    path: str
    relation: str = ""
    distance: int = 1
    properties: dict[str, Any] = Field(default_factory=dict)


def utcnow() -> datetime:
    return datetime.now(UTC)


@runtime_checkable
class DocumentStore(Protocol):
    """Async tagged-document storage protocol."""

    async def put(
        self,
        path: str,
        content: str,
        *,
        tags: Sequence[str],
        metadata: Mapping[str, str] | None = None,
        session: str | None = None,
        precondition: Precondition | None = None,
    ) -> None:
        """Upsert a document.

        Raises:
            PreconditionFailedError: If *precondition* does not hold.
            StoreUnavailableError: If the store call fails.
        """
        ...

    async def get(self, path: str) -> Document | None:
        """Read a document by exact path or glob; ``None`` if absent."""
        ...

    async def list(self, query: TagQuery, *, limit: int = 100, offset: int = 0) -> list[DocumentRef]:
        """Enumerate documents matching *query*."""
        ...

    async def search(
        self, text: str, *, query: TagQuery | None = None, limit: int = 10
    ) -> list[SearchHit]:
        """Relevance-ranked free-text search scoped by *query*."""
        ...

    async def update_tags(
        self,
        path: str,
        *,
        add: Sequence[str] = (),
        remove: Sequence[str] = (),
        metadata: Mapping[str, str] | None = None,
    ) -> bool:
        """Mutate tags/metadata without rewriting content.  ``False`` if absent."""
        ...

    async def graph_neighbors(self, path: str, depth: int = 2) -> list[GraphNode]:
        """Return entities connected to *path* up to *depth* hops."""
        ...

    async def grep(
        self, pattern: str, *, query: TagQuery | None = None, limit: int = 50
    ) -> list[GrepMatch]:
        """Regex search across scoped documents."""
        ...

    async def delete(self, path: str) -> bool:
        """Remove a document.  ``False`` if absent."""
        ...

    async def start_session(self, name: str) -> None:
        """Open a store-side session that subsequent writes may join."""
        ...

    async def close_session(self) -> None:
        """Close the current store-side session."""
        ...

    async def merge_session(self, name: str) -> None:
        """Merge a session's writes into the durable corpus."""
        ...
