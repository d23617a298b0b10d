"""Context aggregation: compaction summaries and manifests."""

from agentboard.core.context.aggregator import ContextAggregator, build_manifest
from agentboard.core.context.renderer import SummaryLimits, render_summary

__all__ = ["ContextAggregator", "SummaryLimits", "build_manifest", "render_summary"]
