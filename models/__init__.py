"""Public re-exports of all model types."""

from models.options import OPTION_KEYS, CleaningOptions, resolve_option_key
from models.recommendation import (
    ComparisonAnalysis,
    FinalRecommendation,
    Recommendation,
)
from models.request import CleanRequest, CompareRequest, PlanRequest, ReportRequest
from models.response import CleanResult, PlanResponse, ReportResponse
from models.summary import ImpactSummary

__all__ = [
    # Options
    "CleaningOptions",
    "OPTION_KEYS",
    "resolve_option_key",
    # AI collaborator
    "Recommendation",
    "FinalRecommendation",
    "ComparisonAnalysis",
    # Pipeline output
    "ImpactSummary",
    "CleanResult",
    # Request/Response
    "CleanRequest",
    "PlanRequest",
    "CompareRequest",
    "PlanResponse",
    "ReportRequest",
    "ReportResponse",
]
