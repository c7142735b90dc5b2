"""LLM gateway client and JSON response parser."""

from llm.client import LLMClient
from llm.parser import normalize_recommendations, parse_llm_json, strip_code_fence

__all__ = ["LLMClient", "normalize_recommendations", "parse_llm_json", "strip_code_fence"]
