"""ImpactSummary -- the machine-readable report of one pipeline run."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ImpactSummary(BaseModel):
    """Before/after size accounting plus the human-readable action log.

    Built once by ``pipeline.impact.build_summary`` and never mutated.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    original_bytes: int = Field(alias="originalBytes")
    cleaned_bytes: int = Field(alias="cleanedBytes")
    bytes_saved: int = Field(alias="bytesSaved", ge=0)
    nodes_removed: int = Field(alias="nodesRemoved", ge=0)
    estimated_speed_gain: str = Field(alias="estimatedSpeedGain")
    action_log: tuple[str, ...] = Field(alias="actionLog", min_length=1)
