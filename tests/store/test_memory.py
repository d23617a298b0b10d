"""Tests for InMemoryStore."""

from __future__ import annotations

import pytest

from agentboard.errors import PreconditionFailedError, StoreUnavailableError
from agentboard.store.backend import DocumentStore, Precondition, TagQuery, content_etag
from agentboard.store.memory import InMemoryStore


class TestInMemoryStoreReads:
    def setup_method(self) -> None:
        self.store = InMemoryStore()

    def test_satisfies_protocol(self) -> None:
        assert isinstance(self.store, DocumentStore)

    async def test_get_missing_returns_none(self) -> None:
        assert await self.store.get("nope.json") is None

    async def test_put_and_get(self) -> None:
        await self.store.put("tasks/t-1.json", "{}", tags=["task", "status:pending"])
        doc = await self.store.get("tasks/t-1.json")
        assert doc is not None
        assert doc.content == "{}"
        assert doc.tags == ["task", "status:pending"]
        assert doc.updated_at is not None

    async def test_get_returns_independent_copy(self) -> None:
        await self.store.put("a.json", "{}", tags=["x"])
        first = await self.store.get("a.json")
        assert first is not None
        first.tags.append("mutated")
        second = await self.store.get("a.json")
        assert second is not None
        assert second.tags == ["x"]

    async def test_get_by_glob(self) -> None:
        await self.store.put("findings/bug/f-1.md", "body", tags=["finding"])
        doc = await self.store.get("findings/*/f-1.md")
        assert doc is not None
        assert doc.path == "findings/bug/f-1.md"

    async def test_tags_are_deduplicated(self) -> None:
        await self.store.put("a.json", "{}", tags=["x", "y", "x"])
        doc = await self.store.get("a.json")
        assert doc is not None
        assert doc.tags == ["x", "y"]

    async def test_list_match_all(self) -> None:
        await self.store.put("a.json", "{}", tags=["task", "status:pending"])
        await self.store.put("b.json", "{}", tags=["task", "status:claimed"])
        await self.store.put("c.json", "{}", tags=["agent"])

        refs = await self.store.list(TagQuery(tags=("task", "status:pending")))
        assert [r.path for r in refs] == ["a.json"]

    async def test_list_match_any(self) -> None:
        await self.store.put("a.json", "{}", tags=["task"])
        await self.store.put("b.json", "{}", tags=["agent"])
        await self.store.put("c.json", "{}", tags=["context"])

        refs = await self.store.list(TagQuery(tags=("task", "agent"), match_all=False))
        assert sorted(r.path for r in refs) == ["a.json", "b.json"]

    async def test_list_limit_and_offset(self) -> None:
        for i in range(5):
            await self.store.put(f"d{i}.json", "{}", tags=["doc"])
        refs = await self.store.list(TagQuery(tags=("doc",)), limit=2, offset=1)
        assert [r.path for r in refs] == ["d1.json", "d2.json"]

    async def test_search_ranks_by_term_hits(self) -> None:
        await self.store.put("a.md", "token leak in token refresh", tags=["finding"])
        await self.store.put("b.md", "one token here", tags=["finding"])
        await self.store.put("c.md", "nothing relevant", tags=["finding"])

        hits = await self.store.search("token")
        assert [h.path for h in hits] == ["a.md", "b.md"]
        assert hits[0].score > hits[1].score

    async def test_search_scoped_by_tags(self) -> None:
        await self.store.put("a.md", "token", tags=["finding"])
        await self.store.put("b.json", "token", tags=["task"])
        hits = await self.store.search("token", query=TagQuery(tags=("task",)))
        assert [h.path for h in hits] == ["b.json"]

    async def test_grep_returns_matching_lines(self) -> None:
        await self.store.put("a.md", "first line\nTODO fix\nlast", tags=["finding"])
        results = await self.store.grep(r"TODO")
        assert len(results) == 1
        assert results[0].matches == ["TODO fix"]

    async def test_grep_invalid_pattern_is_store_error(self) -> None:
        await self.store.put("a.md", "(unbalanced", tags=["finding"])
        with pytest.raises(StoreUnavailableError, match="invalid pattern"):
            await self.store.grep("(")

    async def test_graph_neighbors_follow_mentions(self) -> None:
        await self.store.put("tasks/t-1.json", '{"findings": ["f-1"]}', tags=["task"])
        await self.store.put("findings/bug/f-1.md", "root cause", tags=["finding"])
        await self.store.put("notes/n-1.md", "see t-1", tags=["note"])

        nodes = await self.store.graph_neighbors("findings/bug/f-1.md", depth=2)
        by_path = {n.path: n.distance for n in nodes}
        assert by_path == {"tasks/t-1.json": 1, "notes/n-1.md": 2}

    async def test_graph_neighbors_unknown_path(self) -> None:
        assert await self.store.graph_neighbors("missing.md") == []


class TestInMemoryStoreWrites:
    def setup_method(self) -> None:
        self.store = InMemoryStore()

    async def test_if_match_succeeds_on_current_etag(self) -> None:
        await self.store.put("t.json", "v1", tags=["task"])
        doc = await self.store.get("t.json")
        assert doc is not None

        cond = Precondition(if_match=doc.etag)
        await self.store.put("t.json", "v2", tags=["task"], precondition=cond)
        updated = await self.store.get("t.json")
        assert updated is not None
        assert updated.content == "v2"

    async def test_if_match_fails_on_stale_etag(self) -> None:
        await self.store.put("t.json", "v1", tags=["task"])
        stale = content_etag("v0")
        with pytest.raises(PreconditionFailedError):
            await self.store.put(
                "t.json", "v2", tags=["task"], precondition=Precondition(if_match=stale)
            )

    async def test_if_match_fails_when_missing(self) -> None:
        with pytest.raises(PreconditionFailedError):
            await self.store.put(
                "t.json", "v1", tags=["task"], precondition=Precondition(if_match="nope")
            )

    async def test_if_absent(self) -> None:
        cond = Precondition(if_absent=True)
        await self.store.put("t.json", "v1", tags=["task"], precondition=cond)
        with pytest.raises(PreconditionFailedError):
            await self.store.put("t.json", "v2", tags=["task"], precondition=cond)

    async def test_put_merges_metadata(self) -> None:
        await self.store.put("a.json", "{}", tags=["x"], metadata={"owner": "a"})
        await self.store.put("a.json", "{}", tags=["x"], metadata={"extra": "b"})
        doc = await self.store.get("a.json")
        assert doc is not None
        assert doc.metadata == {"owner": "a", "extra": "b"}

    async def test_update_tags_add_remove(self) -> None:
        await self.store.put("f.md", "body", tags=["finding", "status:published"])
        ok = await self.store.update_tags(
            "f.md",
            add=["status:resolved"],
            remove=["status:published"],
            metadata={"resolved_by": "a"},
        )
        assert ok is True
        doc = await self.store.get("f.md")
        assert doc is not None
        assert doc.tags == ["finding", "status:resolved"]
        assert doc.metadata["resolved_by"] == "a"
        assert doc.content == "body"

    async def test_update_tags_by_glob(self) -> None:
        await self.store.put("findings/bug/f-1.md", "body", tags=["finding"])
        assert await self.store.update_tags("findings/*/f-1.md", add=["archived:s"]) is True
        doc = await self.store.get("findings/bug/f-1.md")
        assert doc is not None
        assert "archived:s" in doc.tags

    async def test_update_tags_missing(self) -> None:
        assert await self.store.update_tags("nope.md", add=["x"]) is False

    async def test_delete(self) -> None:
        await self.store.put("a.json", "{}", tags=["x"])
        assert await self.store.delete("a.json") is True
        assert await self.store.delete("a.json") is False
        assert await self.store.get("a.json") is None


class TestInMemoryStoreSessions:
    def setup_method(self) -> None:
        self.store = InMemoryStore()

    async def test_writes_join_current_session(self) -> None:
        await self.store.start_session("s1")
        await self.store.put("a.json", "{}", tags=["x"])
        doc = await self.store.get("a.json")
        assert doc is not None
        assert doc.session == "s1"

    async def test_merge_detaches_documents(self) -> None:
        await self.store.put("a.json", "{}", tags=["x"], session="s1")
        await self.store.merge_session("s1")
        doc = await self.store.get("a.json")
        assert doc is not None
        assert doc.session is None

    async def test_close_session(self) -> None:
        await self.store.start_session("s1")
        await self.store.close_session()
        assert self.store.current_session is None


class TestSnapshot:
    async def test_snapshot_restore(self) -> None:
        store = InMemoryStore()
        await store.put("a.json", '{"x": 1}', tags=["task", "status:pending"], metadata={"k": "v"})

        restored = InMemoryStore.restore(store.snapshot())
        doc = await restored.get("a.json")
        assert doc is not None
        assert doc.content == '{"x": 1}'
        assert doc.tags == ["task", "status:pending"]
        assert doc.metadata == {"k": "v"}
