"""YamsStore: drives the ``yams`` content store CLI as a :class:`DocumentStore`.

Every operation launches one ``yams`` subprocess via
:func:`asyncio.create_subprocess_exec` (arguments are passed as a vector, so
no shell quoting is involved) and parses its ``--json`` output.

The ``yams`` CLI has no native conditional write.  Preconditions are
checked and applied under a process-local lock, which serialises claims
made through one store instance but not across processes.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from typing import Any

from agentboard.errors import PreconditionFailedError, StoreUnavailableError
from agentboard.store.backend import (
    Document,
    DocumentRef,
    GraphNode,
    GrepMatch,
    Precondition,
    SearchHit,
    TagQuery,
)

logger = logging.getLogger(__name__)

# Lower-cased stderr fragments yams prints when a cat target does not exist.
_NOT_FOUND_MARKERS = ("not found", "no such", "no document")


def _normalise_tags(raw: Any) -> list[str]:
    if isinstance(raw, dict):
        return [f"{k}:{v}" if v not in (None, "") else str(k) for k, v in raw.items()]
    if isinstance(raw, str):
        return [t for t in raw.split(",") if t]
    if isinstance(raw, list):
        return [str(t) for t in raw]
    return []


def _normalise_metadata(raw: Any) -> dict[str, str]:
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    return {}


def _tag_args(query: TagQuery | None) -> list[str]:
    if query is None or not query.tags:
        return []
    args = ["--tags", ",".join(query.tags)]
    if query.match_all:
        args.append("--match-all-tags")
    return args


def _is_missing(exc: StoreUnavailableError) -> bool:
    """True when *exc* is a clean non-zero exit reporting an absent document."""
    if exc.__cause__ is not None:
        return False
    detail = exc.detail.lower()
    return any(marker in detail for marker in _NOT_FOUND_MARKERS)


def _metadata_args(metadata: Mapping[str, str] | None, flag: str = "--metadata") -> list[str]:
    args: list[str] = []
    for key, value in (metadata or {}).items():
        args.extend([flag, f"{key}={value}"])
    return args


class YamsStore:
    """Document store backed by the ``yams`` CLI.

    Usage::

        store = YamsStore(binary="yams", owner="agentboard")
        await store.put("tasks/t-1.json", "{}", tags=["task"])
    """

    def __init__(self, binary: str = "yams", *, owner: str = "agentboard") -> None:
        self._binary = binary
        self._owner = owner
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Process plumbing
    # ------------------------------------------------------------------

    async def _run(self, *args: str, stdin: str | None = None) -> str:
        """Run ``yams <args>`` and return stripped stdout."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self._binary,
                *args,
                stdin=asyncio.subprocess.PIPE if stdin is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await proc.communicate(
                input=stdin.encode() if stdin is not None else None
            )
        except OSError as exc:
            raise StoreUnavailableError(args[0] if args else "exec", str(exc)) from exc

        if proc.returncode:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            raise StoreUnavailableError(args[0] if args else "exec", detail)
        return stdout.decode(errors="replace").strip() if stdout else ""

    async def _run_json(self, *args: str) -> Any:
        raw = await self._run(*args, "--json")
        try:
            return json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            raise StoreUnavailableError(args[0], f"invalid JSON response: {raw[:200]}") from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Document | None:
        try:
            content = await self._run("cat", path)
        except StoreUnavailableError as exc:
            if _is_missing(exc):
                return None
            raise

        ref = await self._describe(path)
        return Document(
            path=ref.path if ref is not None else path,
            content=content,
            tags=ref.tags if ref is not None else [],
            metadata=ref.metadata if ref is not None else {},
        )

    async def _describe(self, path: str) -> DocumentRef | None:
        """Fetch tags/metadata for a single document (best-effort)."""
        try:
            data = await self._run_json("list", "--name", path, "--limit", "1")
        except StoreUnavailableError:
            logger.debug("YamsStore: no descriptor for %s", path)
            return None
        docs = data.get("documents") or []
        return self._to_ref(docs[0]) if docs else None

    @staticmethod
    def _to_ref(raw: dict[str, Any]) -> DocumentRef:
        return DocumentRef(
            path=raw.get("name") or raw.get("path") or "",
            tags=_normalise_tags(raw.get("tags")),
            metadata=_normalise_metadata(raw.get("metadata")),
        )

    async def list(self, query: TagQuery, *, limit: int = 100, offset: int = 0) -> list[DocumentRef]:
        data = await self._run_json(
            "list", *_tag_args(query), "--limit", str(limit), "--offset", str(offset)
        )
        return [self._to_ref(d) for d in data.get("documents") or [] if d.get("name") or d.get("path")]

    async def search(
        self, text: str, *, query: TagQuery | None = None, limit: int = 10
    ) -> list[SearchHit]:
        data = await self._run_json("search", text, *_tag_args(query), "--limit", str(limit))
        return [
            SearchHit(
                path=r.get("path", ""),
                score=float(r.get("score", 0.0)),
                snippet=r.get("snippet", ""),
            )
            for r in data.get("results") or []
            if r.get("path")
        ]

    async def grep(
        self, pattern: str, *, query: TagQuery | None = None, limit: int = 50
    ) -> list[GrepMatch]:
        data = await self._run_json("grep", pattern, *_tag_args(query), "--limit", str(limit))
        by_path: dict[str, list[str]] = {}
        for line in str(data.get("output", "")).splitlines():
            if not line.strip():
                continue
            sep = line.find(":")
            if sep > 0:
                by_path.setdefault(line[:sep], []).append(line[sep + 1 :])
        return [GrepMatch(path=p, matches=m) for p, m in by_path.items()]

    async def graph_neighbors(self, path: str, depth: int = 2) -> list[GraphNode]:
        data = await self._run_json("graph", "--name", path, "--depth", str(depth))
        nodes: list[GraphNode] = []
        for raw in data.get("connected_nodes") or []:
            node_path = raw.get("path") or raw.get("name")
            if not node_path:
                continue
            nodes.append(
                GraphNode(
                    path=node_path,
                    relation=str(raw.get("relation", "")),
                    distance=int(raw.get("distance", 1)),
                    properties={k: v for k, v in raw.items() if k not in ("path", "name")},
                )
            )
        return nodes

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
        args = [
            "add",
            "-",
            "--name",
            path,
            "--tags",
            ",".join(dict.fromkeys(tags)),
            *_metadata_args({"owner": self._owner, **(metadata or {})}),
        ]
        if session:
            args.extend(["--session", session])

        if precondition is None:
            await self._run(*args, stdin=content)
            return

        async with self._lock:
            current = await self.get(path)
            if precondition.if_absent and current is not None:
                raise PreconditionFailedError(path)
            if precondition.if_match is not None and (
                current is None or current.etag != precondition.if_match
            ):
                raise PreconditionFailedError(path)
            await self._run(*args, stdin=content)

    async def update_tags(
        self,
        path: str,
        *,
        add: Sequence[str] = (),
        remove: Sequence[str] = (),
        metadata: Mapping[str, str] | None = None,
    ) -> bool:
        args = ["update", "--name", path]
        if add:
            args.extend(["--tags", ",".join(add)])
        if remove:
            args.extend(["--remove-tags", ",".join(remove)])
        args.extend(_metadata_args(metadata, flag="-m"))
        await self._run(*args)
        return True

    async def delete(self, path: str) -> bool:
        try:
            await self._run("delete", "--name", path)
        except StoreUnavailableError as exc:
            logger.debug("YamsStore: delete %s failed: %s", path, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def start_session(self, name: str) -> None:
        await self._run("session", "start", name)
        await self._run("session", "use", name)

    async def close_session(self) -> None:
        await self._run("session", "close")

    async def merge_session(self, name: str) -> None:
        await self._run("session", "merge", name)
