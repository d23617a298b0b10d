"""Smoke test to verify the project scaffolding works."""

from __future__ import annotations


def test_import() -> None:
    import agentboard

    assert agentboard.__version__ == "0.1.0"


def test_cli_entrypoint() -> None:
    from agentboard.cli import main

    assert callable(main)


def test_model_imports() -> None:
    from agentboard.core.blackboard import (
        AgentCard,
        CompactionManifest,
        CreateFinding,
        CreateTask,
        Finding,
        Task,
    )

    assert AgentCard is not None
    assert CreateFinding is not None
    assert Finding is not None
    assert CreateTask is not None
    assert Task is not None
    assert CompactionManifest is not None


def test_lazy_import_from_agentboard() -> None:
    import agentboard

    assert agentboard.Blackboard is not None
    assert agentboard.BoardSettings is not None
