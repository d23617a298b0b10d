"""Tests for ``agentboard agents`` and the global CLI options."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner, Result

from agentboard import __version__
from agentboard.cli import main

if TYPE_CHECKING:
    from pathlib import Path


def _invoke(store: Path, *args: str) -> Result:
    return CliRunner().invoke(main, ["--store-file", str(store), *args])


class TestGlobalOptions:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_groups(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for group in ("agents", "findings", "tasks", "inbox", "context", "stats"):
            assert group in result.output

    def test_store_file_rejected_for_yams(self, tmp_path: Path) -> None:
        config = tmp_path / "agentboard.yaml"
        config.write_text("store:\n  backend: yams\n")
        result = CliRunner().invoke(
            main,
            ["--config", str(config), "--store-file", str(tmp_path / "b.json"), "stats"],
        )
        assert result.exit_code != 0
        assert "memory backend" in result.output

    def test_bad_config_reported(self, tmp_path: Path) -> None:
        config = tmp_path / "agentboard.yaml"
        config.write_text("- not\n- a mapping\n")
        result = CliRunner().invoke(main, ["--config", str(config), "stats"])
        assert result.exit_code == 1
        assert "mapping" in result.output


class TestAgents:
    def test_register_and_list(self, tmp_path: Path) -> None:
        store = tmp_path / "board.json"
        result = _invoke(store, "agents", "register", "scanner", "-c", "review", "-c", "fix")
        assert result.exit_code == 0
        assert "Agent registered: scanner" in result.output
        assert "review, fix" in result.output
        assert store.exists()

        result = _invoke(store, "agents", "list")
        assert result.exit_code == 0
        assert "scanner" in result.output

    def test_list_json(self, tmp_path: Path) -> None:
        store = tmp_path / "board.json"
        _invoke(store, "agents", "register", "scanner", "--name", "Scanner", "-c", "review")

        result = _invoke(store, "agents", "list", "--format", "json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["id"] == "scanner"
        assert data[0]["name"] == "Scanner"

    def test_list_empty(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path / "board.json", "agents", "list")
        assert result.exit_code == 0
        assert "No agents registered yet." in result.output

    def test_register_requires_capability(self, tmp_path: Path) -> None:
        result = _invoke(tmp_path / "board.json", "agents", "register", "scanner")
        assert result.exit_code == 2

    def test_list_by_instance(self, tmp_path: Path) -> None:
        store = tmp_path / "board.json"
        _invoke(store, "agents", "register", "scanner", "-c", "review")

        result = _invoke(store, "agents", "list", "--instance", "elsewhere")
        assert "No agents registered yet." in result.output

        result = _invoke(store, "agents", "list", "--instance", "local")
        assert "scanner" in result.output
