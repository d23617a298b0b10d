"""Tests for host lifecycle hooks."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from agentboard.core.blackboard.blackboard import Blackboard
from agentboard.core.blackboard.models import CompactionManifest, CreateFinding
from agentboard.plugin.hooks import BlackboardHooks, embed_manifest, extract_manifest
from agentboard.store.memory import InMemoryStore


class TestManifestEmbedding:
    def test_embed_and_extract(self) -> None:
        manifest = CompactionManifest(context_id="audit", agent_ids=["a1"])
        text = embed_manifest("## Summary", manifest)
        assert text.startswith("## Summary\n<!-- BLACKBOARD_MANIFEST:{")
        assert text.endswith(" -->")

        extracted = extract_manifest(text)
        assert extracted is not None
        assert extracted.context_id == "audit"
        assert extracted.agent_ids == ["a1"]

    def test_extract_last_manifest(self) -> None:
        first = embed_manifest("one", CompactionManifest(context_id="old"))
        second = embed_manifest("two", CompactionManifest(context_id="new"))
        extracted = extract_manifest(f"{first}\n\n{second}")
        assert extracted is not None
        assert extracted.context_id == "new"

    def test_extract_none_when_absent(self) -> None:
        assert extract_manifest("plain conversation text") is None

    def test_extract_none_when_malformed(self) -> None:
        assert extract_manifest("<!-- BLACKBOARD_MANIFEST:{not json} -->") is None


class TestBlackboardHooks:
    def setup_method(self) -> None:
        self.store = InMemoryStore()
        self.board = Blackboard(self.store, instance_id="i1")
        self.hooks = BlackboardHooks(self.board)

    async def test_session_created_starts_session(self) -> None:
        name = await self.hooks.on_session_created("conv-1")
        assert name == "conv-1"
        assert self.board.scope.session == "conv-1"

    async def test_session_created_swallows_failure(self) -> None:
        board = MagicMock()
        board.start_session = AsyncMock(side_effect=RuntimeError("store down"))
        hooks = BlackboardHooks(board)
        assert await hooks.on_session_created("conv-1") is None

    async def test_compacting_appends_summary(self) -> None:
        await self.board.findings.post(
            CreateFinding(
                agent_id="scanner",
                topic="bug",
                title="Null deref",
                content="crash on empty input",
                context_id="default",
            )
        )
        output: list[str] = []
        await self.hooks.on_compacting(output)

        assert len(output) == 1
        assert "## Blackboard Summary (Context: default)" in output[0]
        manifest = extract_manifest(output[0])
        assert manifest is not None
        assert len(manifest.finding_ids) == 1

    async def test_compacting_uses_configured_context(self) -> None:
        hooks = BlackboardHooks(self.board, context_id="audit")
        output: list[str] = []
        await hooks.on_compacting(output)
        assert "(Context: audit)" in output[0]

        await hooks.on_compacting(output, context_id="override")
        assert "(Context: override)" in output[1]

    async def test_compacting_archives_session_findings(self) -> None:
        await self.hooks.on_session_created("conv-1")
        finding = await self.board.findings.post(
            CreateFinding(
                agent_id="scanner",
                topic="bug",
                title="Scratch note",
                content="temporary",
                scope="session",
            )
        )
        await self.hooks.on_compacting([], session_id="conv-1")

        doc = await self.store.get(f"findings/bug/{finding.id}.md")
        assert doc is not None
        assert "archived:conv-1" in doc.tags

    async def test_compacting_swallows_failure(self) -> None:
        board = MagicMock()
        board.context.summarize_with_manifest = AsyncMock(side_effect=RuntimeError("boom"))
        hooks = BlackboardHooks(board)
        output: list[str] = []
        await hooks.on_compacting(output)
        assert output == []

    async def test_compacted_is_noop(self) -> None:
        await self.hooks.on_compacted("conv-1")
