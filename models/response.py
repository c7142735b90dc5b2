"""Response bodies returned by the pipeline and the HTTP surface."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.options import CleaningOptions
from models.recommendation import Recommendation
from models.summary import ImpactSummary


class CleanResult(BaseModel):
    """Output of one pipeline run (also the ``POST /clean`` response)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cleaned_html: str = Field(alias="cleanedHtml")
    summary: ImpactSummary
    effective_options: CleaningOptions = Field(alias="effectiveOptions")


class PlanResponse(BaseModel):
    """Response body for ``POST /plan``."""

    recommendations: list[Recommendation]


class ReportResponse(BaseModel):
    """Response body for ``POST /report``: raw reports plus flattened scores."""

    report: dict[str, Any]
    scores: dict[str, dict[str, Optional[int]]]
