"""FastAPI application for the leanpost HTML optimizer.

Exports ``app`` for use with ``uvicorn main:app``.
"""

import json
import logging
import traceback
from functools import partial
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Load .env next to this file so OPENAI_* / PAGESPEED_API_KEY / LEANPOST_* are set
load_dotenv(Path(__file__).resolve().parent / ".env")

from llm.client import LLMClient
from models.recommendation import ComparisonAnalysis
from models.request import CleanRequest, CompareRequest, PlanRequest, ReportRequest
from models.response import CleanResult, PlanResponse, ReportResponse
from pagespeed.client import PageSpeedClient, PageSpeedError, extract_scores
from pipeline import orchestrator
from pipeline.advisor import compare_reports, generate_optimization_plan, rewrite_to_semantic_html
from pipeline.settings import PipelineSettings


# ---------------------------------------------------------------------------
# Structured JSON logging
# ---------------------------------------------------------------------------

class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for structured log output."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Include optional extra fields when present
        for key in ("request_id", "step", "elapsed_ms", "bytes_saved", "overrides", "url"):
            val = getattr(record, key, None)
            if val is not None:
                log_data[key] = val
        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


_handler = logging.StreamHandler()
_handler.setFormatter(StructuredFormatter())

logger = logging.getLogger("leanpost")
logger.addHandler(_handler)
logger.setLevel(logging.INFO)
# Prevent propagation to root logger to avoid duplicate output
logger.propagate = False


# ---------------------------------------------------------------------------
# Collaborators (lazy singletons)
# ---------------------------------------------------------------------------

_llm_client: Optional[LLMClient] = None
_pagespeed_client: Optional[PageSpeedClient] = None
_settings: Optional[PipelineSettings] = None


def get_llm_client() -> LLMClient:
    """Return the module-level LLM client, creating it on first use."""
    global _llm_client  # noqa: PLW0603
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


def get_pagespeed_client() -> PageSpeedClient:
    global _pagespeed_client  # noqa: PLW0603
    if _pagespeed_client is None:
        _pagespeed_client = PageSpeedClient()
    return _pagespeed_client


def get_settings() -> PipelineSettings:
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = PipelineSettings.from_env()
    return _settings


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="leanpost")


@app.exception_handler(PageSpeedError)
async def pagespeed_error_handler(request: Request, exc: PageSpeedError) -> JSONResponse:
    logger.warning("pagespeed request failed: %s", exc, extra={"step": "pagespeed"})
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def catch_all_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch all unhandled exceptions and return a JSON 500."""
    logger.error(
        "Unhandled exception: %s: %s\n%s",
        type(exc).__name__,
        exc,
        traceback.format_exc(),
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
async def health() -> dict:
    """Health check."""
    return {"status": "healthy"}


# The routes below block on httpx calls; plain ``def`` puts them on the threadpool.
@app.post("/clean", response_model=CleanResult)
def clean(request: CleanRequest) -> CleanResult:
    """Run the optimization pipeline over one post body."""
    client = get_llm_client()
    rewriter = partial(rewrite_to_semantic_html, client) if client.configured else None
    result = orchestrator.run(
        request.html,
        request.options,
        request.recommendations,
        settings=get_settings(),
        rewriter=rewriter,
    )
    logger.info(
        "clean response",
        extra={"step": "clean", "bytes_saved": result.summary.bytes_saved},
    )
    return result


@app.post("/plan", response_model=PlanResponse)
def plan(request: PlanRequest) -> PlanResponse:
    """Turn a PageSpeed report into a prioritized recommendation list."""
    return PlanResponse(recommendations=generate_optimization_plan(get_llm_client(), request.report))


@app.post("/compare", response_model=Optional[ComparisonAnalysis])
def compare(request: CompareRequest) -> Optional[ComparisonAnalysis]:
    """Compare before/after reports; ``null`` when the AI service is unavailable."""
    return compare_reports(get_llm_client(), request.before, request.after)


@app.post("/report", response_model=ReportResponse)
def report(request: ReportRequest) -> ReportResponse:
    """Fetch mobile and desktop PageSpeed reports for a URL."""
    raw = get_pagespeed_client().fetch_report(request.url)
    return ReportResponse(report=raw, scores=extract_scores(raw))
