"""Robust JSON parsing for LLM response text.

Handles markdown code fences, preamble text, and trailing commentary
that LLMs commonly add around JSON output, then validates items through
the pydantic models.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Union

from pydantic import ValidationError

from models.recommendation import ComparisonAnalysis, Recommendation

logger = logging.getLogger("leanpost")

JSONValue = Union[dict, list]


def strip_code_fence(content: str) -> str:
    """Remove a surrounding ```lang ... ``` fence, if any."""
    s = content.strip()
    if not s.startswith("```"):
        return s
    newline = s.find("\n")
    s = s[newline + 1:] if newline != -1 else s[3:]
    if s.rstrip().endswith("```"):
        s = s.rstrip()[:-3]
    return s.strip()


def _loads(text: str, expect: type) -> Any:
    try:
        obj = json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None
    return obj if isinstance(obj, expect) else None


def parse_llm_json(content: str, expect: type = dict) -> JSONValue:
    """Parse a JSON object (or array, with ``expect=list``) from LLM text.

    Three-phase approach:
      1. Fast path -- try ``json.loads`` directly.
      2. Fence stripping -- remove markdown ```json / ``` wrappers.
      3. Extraction -- first ``{``/``[`` to the matching last ``}``/``]``.

    Raises:
        ValueError: If no valid JSON of the expected type can be extracted.
    """
    raw = content.strip()
    if not raw:
        raise ValueError("LLM returned non-JSON: (empty string)")

    # --- Fast path: pure JSON ---
    obj = _loads(raw, expect)
    if obj is not None:
        return obj

    # --- Fence stripping ---
    if raw.startswith("```"):
        obj = _loads(strip_code_fence(raw), expect)
        if obj is not None:
            return obj

    # --- Extraction ---
    opener, closer = ("[", "]") if expect is list else ("{", "}")
    start = raw.find(opener)
    end = raw.rfind(closer)
    if 0 <= start < end:
        obj = _loads(raw[start : end + 1], expect)
        if obj is not None:
            return obj

    raise ValueError(f"LLM returned non-JSON: {raw[:200]}")


def normalize_recommendations(raw: Any) -> list[Recommendation]:
    """Validate plan items, dropping the ones that do not fit.

    Accepts a bare list or an object wrapping it under ``recommendations``
    (what JSON-object mode tends to produce).
    """
    if isinstance(raw, dict):
        raw = raw.get("recommendations", raw.get("plan", []))
    if not isinstance(raw, list):
        return []
    items: list[Recommendation] = []
    for entry in raw:
        if not isinstance(entry, dict) or not entry.get("title"):
            continue
        try:
            items.append(Recommendation.model_validate(entry))
        except ValidationError as exc:
            logger.debug("dropping invalid recommendation: %s", exc.errors()[:1])
    return items


def normalize_comparison(raw: Any) -> ComparisonAnalysis | None:
    """Validate a comparison object; None when it does not fit."""
    if not isinstance(raw, dict) or "summary" not in raw:
        return None
    try:
        return ComparisonAnalysis.model_validate(raw)
    except ValidationError:
        return None
