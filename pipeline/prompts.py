"""Prompt construction for the AI plan, comparison and rewrite requests."""

from __future__ import annotations

import json
from typing import Any

from models.options import OPTION_KEYS

# ---------------------------------------------------------------------------
# System prompts
# ---------------------------------------------------------------------------

PLAN_SYSTEM_PROMPT = """\
You are a web performance engineer specializing in WordPress and Core Web Vitals.
Analyze the mobile PageSpeed Insights data you are given and produce an aggressive,
high-impact, prioritized optimization plan. Focus on render-blocking resources, the
critical rendering path, LCP, INP and CLS. Be specific.

Return JSON only: an array of objects with
  "title" (string), "description" (string), "priority" ("High" | "Medium" | "Low"),
  "options" (array of strings, possibly empty).
"options" lists the cleaner settings that would address the item, chosen ONLY from:
{keys}
No markdown or commentary.
"""

COMPARE_SYSTEM_PROMPT = """\
You are a web performance expert comparing a "before" and an "after" mobile PageSpeed report.
1. Summarize key improvements and regressions.
2. If the score improvement is small or negative, give a concrete technical hypothesis why
   (for example a third-party script that introduced new render-blocking requests).
3. Be encouraging but realistic.
4. Give 2 final high-impact recommendations for further optimization.

Return JSON only: {"summary": string, "improvements": [string], "regressions": [string],
"finalRecommendations": [{"title": string, "description": string}]}
"""

REWRITE_SYSTEM_PROMPT = """\
You are an expert HTML developer. Rewrite the HTML you are given to use modern, semantic
HTML5 tags (for example <b> to <strong>, <i> to <em>). Keep the structure and content
identical. Preserve every <iframe>, <script>, <video>, <blockquote class="twitter-tweet">,
<blockquote class="instagram-media">, <blockquote class="tiktok-embed"> and
<blockquote class="reddit-embed-bq"> exactly as it is, and every element carrying a
data-facade attribute. Return only the HTML, with no explanation.
"""

# Audits worth sending: failing or partially passing ones only.
_AUDIT_SCORE_CUTOFF = 0.9
_MAX_AUDITS = 40


def _lighthouse(report: dict[str, Any], strategy: str = "mobile") -> dict[str, Any]:
    return ((report.get(strategy) or {}).get("lighthouseResult")) or {}


def _category_scores(lighthouse: dict[str, Any]) -> dict[str, Any]:
    return {
        key: (value or {}).get("score")
        for key, value in (lighthouse.get("categories") or {}).items()
    }


def failing_audits(report: dict[str, Any]) -> list[dict[str, Any]]:
    """Mobile audits scoring below the cutoff, worst first."""
    audits = _lighthouse(report).get("audits") or {}
    failing = []
    for audit_id, audit in audits.items():
        score = (audit or {}).get("score")
        if isinstance(score, (int, float)) and score < _AUDIT_SCORE_CUTOFF:
            failing.append(
                {
                    "id": audit_id,
                    "title": audit.get("title", ""),
                    "score": score,
                    "displayValue": audit.get("displayValue", ""),
                }
            )
    failing.sort(key=lambda a: a["score"])
    return failing[:_MAX_AUDITS]


def _metrics(lighthouse: dict[str, Any]) -> dict[str, Any]:
    try:
        return lighthouse["audits"]["metrics"]["details"]["items"][0]
    except (KeyError, IndexError, TypeError):
        return {}


# ---------------------------------------------------------------------------
# Message builders
# ---------------------------------------------------------------------------


def build_plan_messages(report: dict[str, Any]) -> list[dict]:
    lighthouse = _lighthouse(report)
    data = {"categories": _category_scores(lighthouse), "audits": failing_audits(report)}
    return [
        {"role": "system", "content": PLAN_SYSTEM_PROMPT.replace("{keys}", ", ".join(OPTION_KEYS))},
        {"role": "user", "content": f"REPORT:\n{json.dumps(data)}"},
    ]


def build_compare_messages(before: dict[str, Any], after: dict[str, Any]) -> list[dict]:
    def _relevant(report: dict[str, Any]) -> dict[str, Any]:
        lighthouse = _lighthouse(report)
        return {"categories": _category_scores(lighthouse), "metrics": _metrics(lighthouse)}

    return [
        {"role": "system", "content": COMPARE_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": f"BEFORE:\n{json.dumps(_relevant(before))}\n\nAFTER:\n{json.dumps(_relevant(after))}",
        },
    ]


def build_rewrite_messages(html: str) -> list[dict]:
    return [
        {"role": "system", "content": REWRITE_SYSTEM_PROMPT},
        {"role": "user", "content": html},
    ]
