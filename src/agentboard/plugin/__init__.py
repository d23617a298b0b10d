"""Host integration: lifecycle hooks for agent runtimes."""

from agentboard.plugin.hooks import BlackboardHooks, embed_manifest, extract_manifest

__all__ = ["BlackboardHooks", "embed_manifest", "extract_manifest"]
