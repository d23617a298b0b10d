"""Per-invocation board construction for CLI commands.

Each command builds a :class:`Blackboard` from the resolved settings, runs
one coroutine against it, and, for a memory store with a snapshot file,
writes the store back so the next invocation sees the result.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import click

from agentboard.config.models import BoardSettings
from agentboard.core.blackboard.blackboard import Blackboard
from agentboard.errors import BoardError
from agentboard.store.memory import InMemoryStore
from agentboard.utils.telemetry import configure_telemetry

T = TypeVar("T")

CLI_INSTANCE_ID = "local"


class BoardRuntime:
    """Settings resolved from global options, shared with every subcommand."""

    def __init__(self, settings: BoardSettings) -> None:
        self.settings = settings
        if self.settings.instance_id is None:
            self.settings.instance_id = CLI_INSTANCE_ID
        self._telemetry_ready = False

    def run(self, operation: Callable[[Blackboard], Awaitable[T]]) -> T:
        """Run *operation* against a fresh board and persist the snapshot.

        Blackboard errors are reported as :class:`click.ClickException`.
        """
        self._setup_telemetry()
        board = Blackboard.from_settings(self.settings)
        try:
            result = asyncio.run(operation(board))
        except BoardError as exc:
            raise click.ClickException(str(exc)) from exc
        self._save(board)
        return result

    def _setup_telemetry(self) -> None:
        telemetry = self.settings.telemetry
        if not telemetry.enabled or self._telemetry_ready:
            return
        try:
            configure_telemetry(export_to_console=False, otlp_endpoint=telemetry.otlp_endpoint)
        except ImportError as exc:
            raise click.ClickException(str(exc)) from exc
        self._telemetry_ready = True

    def _save(self, board: Blackboard) -> None:
        path = self.settings.store.snapshot_path
        if path and isinstance(board.store, InMemoryStore):
            Path(path).write_bytes(board.store.snapshot())


pass_runtime = click.make_pass_decorator(BoardRuntime)
