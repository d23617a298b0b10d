"""Host lifecycle hooks.

A host (an agent runtime or chat client) drives the blackboard through
three signals: a conversation started, a compaction is about to happen,
and a compaction finished.  None of these may raise into the host, so
every hook logs and swallows its own failures.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING

from pydantic import ValidationError

from agentboard.core.blackboard.models import CompactionManifest

if TYPE_CHECKING:
    from agentboard.core.blackboard.blackboard import Blackboard

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_ID = "default"

_MANIFEST_MARKER = "BLACKBOARD_MANIFEST"
_MANIFEST_RE = re.compile(rf"<!-- {_MANIFEST_MARKER}:(.*?) -->", re.DOTALL)


def embed_manifest(markdown: str, manifest: CompactionManifest) -> str:
    """Append *manifest* to *markdown* as an HTML comment."""
    return f"{markdown}\n<!-- {_MANIFEST_MARKER}:{manifest.to_json()} -->"


def extract_manifest(text: str) -> CompactionManifest | None:
    """Parse the last embedded manifest out of compacted text, if any."""
    matches = _MANIFEST_RE.findall(text)
    if not matches:
        return None
    try:
        return CompactionManifest.model_validate(json.loads(matches[-1]))
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.debug("Ignoring malformed embedded manifest: %s", exc)
        return None


class BlackboardHooks:
    """Adapter between host lifecycle signals and a :class:`Blackboard`.

    *context_id* is the context summarised when a compaction call does not
    name one.
    """

    def __init__(self, board: Blackboard, *, context_id: str | None = None) -> None:
        self._board = board
        self.context_id = context_id

    async def on_session_created(self, session_id: str | None = None) -> str | None:
        """Start a store session for the new conversation."""
        try:
            return await self._board.start_session(session_id)
        except Exception:
            logger.warning("Session start failed", exc_info=True)
            return None

    async def on_compacting(
        self,
        output: list[str],
        *,
        session_id: str | None = None,
        context_id: str | None = None,
    ) -> None:
        """Archive session findings, then push the summary and manifest onto *output*."""
        ctx = context_id or self.context_id or DEFAULT_CONTEXT_ID
        try:
            if session_id:
                await self._board.context.archive_session_scoped(session_id)
            snapshot = await self._board.context.summarize_with_manifest(ctx)
            output.append(embed_manifest(snapshot.markdown, snapshot.manifest))
        except Exception:
            logger.warning("Compaction summary for %s failed", ctx, exc_info=True)

    async def on_compacted(self, session_id: str | None = None) -> None:
        """Compaction finished.  Nothing is required of the blackboard."""
        logger.debug("Compaction completed for session %s", session_id or "-")
