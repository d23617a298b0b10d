"""Pydantic models for the ``agentboard.yaml`` settings file."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from agentboard.core.blackboard.models import FindingScope
from agentboard.core.context.renderer import SummaryLimits


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class StoreSettings(BaseModel):
    """Which document store to use and how to reach it."""

    backend: Literal["memory", "yams"] = "memory"
    snapshot_path: str | None = None
    yams_binary: str = "yams"
    owner: str = "agentboard"

    @model_validator(mode="after")
    def _validate_backend(self) -> StoreSettings:
        if self.backend == "yams" and self.snapshot_path:
            msg = "snapshot_path only applies to the memory backend"
            raise ValueError(msg)
        return self


class LimitSettings(BaseModel):
    """Page sizes for store scans."""

    query_limit: int = Field(default=100, gt=0)
    mailbox_scan_limit: int = Field(default=500, gt=0)


class BoardSettings(BaseModel):
    """Top-level settings parsed from YAML."""

    instance_id: str | None = None
    default_scope: FindingScope = "persistent"
    store: StoreSettings = Field(default_factory=StoreSettings)
    limits: LimitSettings = Field(default_factory=LimitSettings)
    summary: SummaryLimits = Field(default_factory=SummaryLimits)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
