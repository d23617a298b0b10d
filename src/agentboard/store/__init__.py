"""Storage collaborator: the tagged-document store contract and its adapters."""

from agentboard.store.backend import (
    Document,
    DocumentRef,
    DocumentStore,
    GraphNode,
    GrepMatch,
    Precondition,
    SearchHit,
    TagQuery,
)
from agentboard.store.memory import InMemoryStore
from agentboard.store.yams import YamsStore

__all__ = [
    "Document",
    "DocumentRef",
    "DocumentStore",
    "GraphNode",
    "GrepMatch",
    "InMemoryStore",
    "Precondition",
    "SearchHit",
    "TagQuery",
    "YamsStore",
]
