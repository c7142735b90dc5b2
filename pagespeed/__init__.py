"""PageSpeed Insights client."""

from pagespeed.client import PageSpeedClient, PageSpeedError, extract_scores

__all__ = ["PageSpeedClient", "PageSpeedError", "extract_scores"]
