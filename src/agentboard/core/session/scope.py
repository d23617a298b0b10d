"""Instance and session scoping shared by every coordination component."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from uuid import uuid4

from agentboard.errors import StoreError
from agentboard.store.backend import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class Scope:
    """Where writes land.

    ``instance_id`` lives as long as the process; ``session`` is set while a
    conversational session is open.  Components hold the same instance, so
    starting a session is immediately visible to every writer.
    """

    instance_id: str = field(default_factory=lambda: str(uuid4()))
    session: str | None = None


class SessionManager:
    """Opens, closes and reconciles store-side sessions for a :class:`Scope`."""

    def __init__(self, store: DocumentStore, scope: Scope) -> None:
        self._store = store
        self._scope = scope
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def name(self) -> str | None:
        return self._scope.session

    async def start(self, name: str | None = None) -> str:
        """Start (or join) a session and return its name."""
        session = name or f"agentboard-{int(time.time() * 1000)}"
        await self._store.start_session(session)
        self._scope.session = session
        self._active = True
        logger.debug("Session %s started for instance %s", session, self._scope.instance_id)
        return session

    async def stop(self) -> None:
        """Reconcile, then close the active session.  No-op when none is active."""
        if not self._active or not self._scope.session:
            return
        session = self._scope.session
        await self.reconcile()
        await self._store.close_session()
        self._scope.session = None
        self._active = False
        logger.debug("Session %s closed", session)

    async def reconcile(self) -> None:
        """Merge the session's writes into the durable corpus.

        Failures are logged and swallowed so a reconciliation glitch never
        blocks the write that triggered it.
        """
        if not self._scope.session:
            return
        try:
            await self._store.merge_session(self._scope.session)
        except StoreError as exc:
            logger.warning("Session %s reconcile failed: %s", self._scope.session, exc)
