"""AI collaborator: optimization plans, report comparison, semantic rewrite.

Every function takes an ``LLMClient`` so callers (and tests) decide where
requests go.  Plan and comparison failures degrade to explanatory or empty
results; the rewrite raises so the orchestrator can fall back to the
pre-rewrite markup.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from llm.client import LLMClient
from llm.parser import (
    normalize_comparison,
    normalize_recommendations,
    parse_llm_json,
    strip_code_fence,
)
from models.recommendation import ComparisonAnalysis, Recommendation
from passes.contract import ALL_KINDS
from pipeline.prompts import (
    build_compare_messages,
    build_plan_messages,
    build_rewrite_messages,
)

logger = logging.getLogger("leanpost")

MISSING_KEY_PLAN = Recommendation(
    title="Missing API Key",
    description="Provide an LLM API key (OPENAI_API_KEY) to generate an AI optimization plan.",
    priority="High",
)
FAILED_PLAN = Recommendation(
    title="Error",
    description=(
        "Failed to generate an AI optimization plan. The AI service may be temporarily "
        "unavailable or the API key is invalid."
    ),
    priority="High",
)

# Substrings whose count must not drop across a rewrite.
EMBED_MARKERS: tuple[str, ...] = (
    "<iframe",
    "<script",
    "<video",
    "twitter-tweet",
    "instagram-media",
    "tiktok-embed",
    "reddit-embed-bq",
    "data-facade",
) + tuple(kind.css_class for kind in ALL_KINDS)


def generate_optimization_plan(client: LLMClient, report: dict[str, Any]) -> list[Recommendation]:
    """Ask for a prioritized plan for a PageSpeed report.

    Never raises; failures come back as a single explanatory item with no
    option keys, so it can never switch a cleaner option on.
    """
    if not client.configured:
        return [MISSING_KEY_PLAN]
    try:
        content = client.complete(build_plan_messages(report), max_tokens=3000)
        items = normalize_recommendations(parse_llm_json(content, expect=list))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("plan generation failed: %s: %s", type(exc).__name__, exc, extra={"step": "plan"})
        return [FAILED_PLAN]
    if not items:
        logger.warning("plan generation returned no usable items", extra={"step": "plan"})
        return [FAILED_PLAN]
    return items


def compare_reports(
    client: LLMClient, before: dict[str, Any], after: dict[str, Any]
) -> Optional[ComparisonAnalysis]:
    """Before/after analysis, or None when unavailable."""
    if not client.configured:
        return None
    try:
        content = client.complete(build_compare_messages(before, after), json_mode=True)
        return normalize_comparison(parse_llm_json(content))
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("comparison failed: %s: %s", type(exc).__name__, exc, extra={"step": "compare"})
        return None


def _marker_counts(html: str) -> dict[str, int]:
    lowered = html.lower()
    return {marker: lowered.count(marker) for marker in EMBED_MARKERS}


def rewrite_to_semantic_html(client: LLMClient, html: str) -> str:
    """Return *html* rewritten with semantic tags.

    Raises:
        ValueError: If the client is not configured, the result is empty,
            or the result lost embed markup present in the input.
        httpx.HTTPError: On transport failures.
    """
    if not client.configured:
        raise ValueError("semantic rewrite needs an LLM API key")
    rewritten = strip_code_fence(client.complete(build_rewrite_messages(html), max_tokens=16000))
    if not rewritten:
        raise ValueError("semantic rewrite returned empty markup")
    before, after = _marker_counts(html), _marker_counts(rewritten)
    lost = [marker for marker, count in before.items() if after[marker] < count]
    if lost:
        raise ValueError(f"semantic rewrite dropped embed markup: {', '.join(lost)}")
    return rewritten
