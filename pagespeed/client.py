"""PageSpeed Insights v5 client.

Fetches mobile and desktop Lighthouse reports for a URL.  Uses httpx for
HTTP and tenacity for retry-on-error, like the LLM client.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger("leanpost")

API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
CATEGORIES = ("PERFORMANCE", "ACCESSIBILITY", "BEST_PRACTICES", "SEO")
STRATEGIES = ("mobile", "desktop")


class PageSpeedError(RuntimeError):
    """The API rejected the request; ``message`` is its own explanation."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, PageSpeedError):
        return exc.status_code in (429, 500, 502, 503)
    return isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout))


def _error_message(resp: httpx.Response, strategy: str) -> str:
    try:
        message = ((resp.json() or {}).get("error") or {}).get("message")
    except ValueError:
        message = None
    return message or (
        f"Failed to fetch PageSpeed data for {strategy}. Status: {resp.status_code}. "
        "Please check your URL and API key."
    )


class PageSpeedClient:
    """Synchronous PageSpeed Insights client.

    Reads ``PAGESPEED_API_KEY`` from the environment.  Lighthouse runs are
    slow, hence the long default timeout.
    """

    def __init__(
        self,
        timeout: float = 120.0,
        *,
        api_key: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key: str = api_key if api_key is not None else os.getenv("PAGESPEED_API_KEY", "")
        self._client = httpx.Client(timeout=timeout, transport=transport)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2.0),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    def run_strategy(self, url: str, strategy: str) -> dict[str, Any]:
        """Run one Lighthouse analysis.

        Raises:
            PageSpeedError: On a missing key or any non-2xx response.
        """
        if not self.api_key:
            raise PageSpeedError("PageSpeed API key has not been provided.")
        params: list[tuple[str, str]] = [("url", url), ("key", self.api_key), ("strategy", strategy)]
        params.extend(("category", category) for category in CATEGORIES)
        resp = self._client.get(API_URL, params=params)
        if resp.status_code >= 400:
            raise PageSpeedError(_error_message(resp, strategy), resp.status_code)
        return resp.json()

    def fetch_report(self, url: str) -> dict[str, dict[str, Any]]:
        """Return ``{"mobile": ..., "desktop": ...}`` raw API responses."""
        report = {strategy: self.run_strategy(url, strategy) for strategy in STRATEGIES}
        logger.info("pagespeed report fetched", extra={"step": "pagespeed", "url": url})
        return report

    def close(self) -> None:
        self._client.close()


def extract_scores(report: dict[str, Any]) -> dict[str, dict[str, Optional[int]]]:
    """Flatten a report into 0-100 category scores per strategy.

    Missing strategies or categories come back as None.
    """
    scores: dict[str, dict[str, Optional[int]]] = {}
    for strategy in STRATEGIES:
        categories = (((report.get(strategy) or {}).get("lighthouseResult") or {}).get("categories")) or {}
        scores[strategy] = {}
        for key in ("performance", "accessibility", "best-practices", "seo"):
            score = (categories.get(key) or {}).get("score")
            scores[strategy][key] = round(score * 100) if isinstance(score, (int, float)) else None
    return scores
