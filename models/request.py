"""Request bodies accepted by the HTTP surface."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.options import CleaningOptions
from models.recommendation import Recommendation


class CleanRequest(BaseModel):
    """Body of ``POST /clean``.

    Unknown fields are rejected with a 422 response.
    """

    model_config = ConfigDict(extra="forbid")

    html: str
    options: CleaningOptions = Field(default_factory=CleaningOptions)
    recommendations: Optional[list[Recommendation]] = None


class PlanRequest(BaseModel):
    """Body of ``POST /plan``: a PageSpeed report keyed by strategy."""

    model_config = ConfigDict(extra="forbid")

    report: dict[str, Any]


class CompareRequest(BaseModel):
    """Body of ``POST /compare``: reports captured before and after cleaning."""

    model_config = ConfigDict(extra="forbid")

    before: dict[str, Any]
    after: dict[str, Any]


class ReportRequest(BaseModel):
    """Body of ``POST /report``: the page to measure."""

    model_config = ConfigDict(extra="forbid")

    url: str = Field(min_length=1)
