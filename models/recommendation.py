"""Recommendation and comparison models produced by the AI collaborator."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Recommendation(BaseModel):
    """A single item of an AI optimization plan.

    ``options`` is the closed-vocabulary channel: canonical CleaningOptions
    keys the plan wants switched on.  When it is empty the orchestrator falls
    back to the legacy keyword match on ``title``.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str
    description: str = ""
    priority: Optional[Literal["High", "Medium", "Low"]] = None
    options: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        if v is None:
            return None
        text = str(v).strip().capitalize()
        if text in ("High", "Medium", "Low"):
            return text
        return None


class FinalRecommendation(BaseModel):
    """Follow-up advice attached to a before/after comparison."""

    model_config = ConfigDict(extra="ignore")

    title: str = ""
    description: str = ""


class ComparisonAnalysis(BaseModel):
    """AI summary of a before/after PageSpeed comparison."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    summary: str
    improvements: list[str] = Field(default_factory=list)
    regressions: list[str] = Field(default_factory=list)
    final_recommendations: list[FinalRecommendation] = Field(
        default_factory=list, alias="finalRecommendations"
    )
