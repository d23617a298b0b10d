"""agentboard: multi-agent coordination over a shared blackboard."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from agentboard.config.models import BoardSettings as BoardSettings
    from agentboard.core.blackboard.blackboard import Blackboard as Blackboard

_LAZY_EXPORTS = {
    "Blackboard": "agentboard.core.blackboard.blackboard",
    "BoardSettings": "agentboard.config.models",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'agentboard' has no attribute {name!r}")
