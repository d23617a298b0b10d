"""InMemoryStore: dict-backed :class:`DocumentStore` implementation.

Suitable for tests, single-process deployments, and the CLI's snapshot
mode.  Every call that mutates state performs its precondition check and
its write without yielding to the event loop, so conditional writes are
atomic with respect to every other coroutine sharing the store.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Mapping, Sequence

from pydantic import BaseModel

from agentboard.errors import PreconditionFailedError, StoreUnavailableError
from agentboard.store.backend import (
    Document,
    DocumentRef,
    GraphNode,
    GrepMatch,
    Precondition,
    SearchHit,
    TagQuery,
    utcnow,
)

_GLOB_CHARS = frozenset("*?[")
_WORD_RE = re.compile(r"[\w-]+")


class _Snapshot(BaseModel):
    documents: list[Document] = []


def _dedupe(tags: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(tags))


class InMemoryStore:
    """Dict-backed document store.

    Documents are copied on every read so callers can never mutate stored
    state in place (mimicking a real persistence layer).
    """

    def __init__(self) -> None:
        self._docs: dict[str, Document] = {}
        self._session: str | None = None

    @property
    def current_session(self) -> str | None:
        return self._session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Document | None:
        if _GLOB_CHARS.isdisjoint(path):
            doc = self._docs.get(path)
            return doc.model_copy(deep=True) if doc is not None else None
        for candidate in sorted(self._docs):
            if fnmatch.fnmatchcase(candidate, path):
                return self._docs[candidate].model_copy(deep=True)
        return None

    async def list(self, query: TagQuery, *, limit: int = 100, offset: int = 0) -> list[DocumentRef]:
        refs = [
            DocumentRef(
                path=doc.path,
                tags=list(doc.tags),
                metadata=dict(doc.metadata),
                updated_at=doc.updated_at,
            )
            for doc in self._docs.values()
            if query.matches(doc.tags)
        ]
        return refs[offset : offset + limit]

    async def search(
        self, text: str, *, query: TagQuery | None = None, limit: int = 10
    ) -> list[SearchHit]:
        terms = {t.lower() for t in _WORD_RE.findall(text)}
        if not terms:
            return []
        hits: list[SearchHit] = []
        for doc in self._docs.values():
            if query is not None and not query.matches(doc.tags):
                continue
            words = [w.lower() for w in _WORD_RE.findall(doc.content)]
            score = sum(1 for w in words if w in terms)
            if score:
                hits.append(SearchHit(path=doc.path, score=float(score), snippet=doc.content[:120]))
        hits.sort(key=lambda h: h.score, reverse=True)
        return hits[:limit]

    async def grep(
        self, pattern: str, *, query: TagQuery | None = None, limit: int = 50
    ) -> list[GrepMatch]:
        try:
            regex = re.compile(pattern)
        except re.error as exc:
            raise StoreUnavailableError("grep", f"invalid pattern: {exc}") from exc
        results: list[GrepMatch] = []
        for doc in self._docs.values():
            if query is not None and not query.matches(doc.tags):
                continue
            lines = [line for line in doc.content.splitlines() if regex.search(line)]
            if lines:
                results.append(GrepMatch(path=doc.path, matches=lines))
            if len(results) >= limit:
                break
        return results

    async def graph_neighbors(self, path: str, depth: int = 2) -> list[GraphNode]:
        """Breadth-first walk over documents that mention each other's ids."""
        if path not in self._docs:
            return []
        seen = {path}
        frontier = [path]
        nodes: list[GraphNode] = []
        for distance in range(1, depth + 1):
            next_frontier: list[str] = []
            for current in frontier:
                for other in self._linked(current):
                    if other in seen:
                        continue
                    seen.add(other)
                    next_frontier.append(other)
                    nodes.append(GraphNode(path=other, relation="references", distance=distance))
            frontier = next_frontier
        return nodes

    def _linked(self, path: str) -> list[str]:
        doc = self._docs[path]
        stem = _stem(path)
        linked: list[str] = []
        for other_path, other in self._docs.items():
            if other_path == path:
                continue
            if stem in other.content or _stem(other_path) in doc.content:
                linked.append(other_path)
        return linked

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

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
        existing = self._docs.get(path)
        if precondition is not None:
            if precondition.if_absent and existing is not None:
                raise PreconditionFailedError(path)
            if precondition.if_match is not None and (
                existing is None or existing.etag != precondition.if_match
            ):
                raise PreconditionFailedError(path)

        merged = dict(existing.metadata) if existing is not None else {}
        merged.update(metadata or {})
        self._docs[path] = Document(
            path=path,
            content=content,
            tags=_dedupe(tags),
            metadata=merged,
            session=session if session is not None else self._session,
            updated_at=utcnow(),
        )

    async def update_tags(
        self,
        path: str,
        *,
        add: Sequence[str] = (),
        remove: Sequence[str] = (),
        metadata: Mapping[str, str] | None = None,
    ) -> bool:
        doc = self._docs.get(path) if _GLOB_CHARS.isdisjoint(path) else None
        if doc is None:
            match = await self.get(path)
            doc = self._docs.get(match.path) if match is not None else None
        if doc is None:
            return False
        removed = set(remove)
        doc.tags = _dedupe([t for t in doc.tags if t not in removed] + list(add))
        doc.metadata.update(metadata or {})
        doc.updated_at = utcnow()
        return True

    async def delete(self, path: str) -> bool:
        return self._docs.pop(path, None) is not None

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_session(self, name: str) -> None:
        self._session = name

    async def close_session(self) -> None:
        self._session = None

    async def merge_session(self, name: str) -> None:
        for doc in self._docs.values():
            if doc.session == name:
                doc.session = None

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def snapshot(self) -> bytes:
        """Serialise every document to JSON bytes."""
        return _Snapshot(documents=list(self._docs.values())).model_dump_json().encode()

    @classmethod
    def restore(cls, data: bytes) -> InMemoryStore:
        """Rebuild a store from bytes produced by :meth:`snapshot`."""
        store = cls()
        for doc in _Snapshot.model_validate_json(data).documents:
            store._docs[doc.path] = doc
        return store


def _stem(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[0]
