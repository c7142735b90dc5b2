"""Chat-completions client for the AI plan/rewrite collaborator.

Talks to any OpenAI-compatible gateway.  Uses httpx for HTTP and tenacity
for retry-on-error.
"""

from __future__ import annotations

import os
from typing import Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

DEFAULT_MODEL = "gpt-4o-mini"


def _is_retryable(exc: BaseException) -> bool:
    """Return True for transient gateway errors that should be retried."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503)
    if isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout)):
        return True
    return False


class LLMClient:
    """Synchronous client for the OpenAI-compatible LLM gateway.

    Reads ``OPENAI_BASE_URL``, ``OPENAI_API_KEY`` and ``LEANPOST_LLM_MODEL``
    from the environment and retries on 429 / 5xx errors with exponential
    backoff.  ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url: str = (
            base_url or os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
        ).rstrip("/")
        self.api_key: str = api_key if api_key is not None else os.getenv("OPENAI_API_KEY", "")
        self.model: str = model or os.getenv("LEANPOST_LLM_MODEL", DEFAULT_MODEL)
        self.timeout = timeout
        self._client: httpx.Client = httpx.Client(timeout=self.timeout, transport=transport)

    @property
    def configured(self) -> bool:
        """True when an API key is available."""
        return bool(self.api_key)

    # ------------------------------------------------------------------
    # Chat completions
    # ------------------------------------------------------------------

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2.0),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    def chat_completions(
        self,
        *,
        messages: list[dict],
        model: Optional[str] = None,
        temperature: float = 0.2,
        max_tokens: int = 2000,
        json_mode: bool = False,
    ) -> dict:
        """Send a chat-completions request to the gateway.

        Args:
            messages: OpenAI-style message list.
            model: Model name (defaults to the client's model).
            temperature: Sampling temperature (ignored for GPT-5.x).
            max_tokens: Maximum tokens in the completion.
            json_mode: Ask for a JSON object response.

        Returns:
            The parsed JSON response dict from the gateway.

        Raises:
            httpx.HTTPStatusError: On non-retryable HTTP errors.
        """
        model = model or self.model
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        body: dict = {"model": model, "messages": messages}

        # GPT-5.x uses max_completion_tokens and does not accept temperature.
        if model.startswith("gpt-5"):
            body["max_completion_tokens"] = max_tokens
        else:
            body["temperature"] = temperature
            body["max_tokens"] = max_tokens
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        resp = self._client.post(
            f"{self.base_url}/chat/completions",
            json=body,
            headers=headers,
        )
        resp.raise_for_status()
        return resp.json()

    def complete(self, messages: list[dict], **kwargs) -> str:
        """Return the text of the first choice.

        Raises:
            ValueError: If the response carries no message content.
        """
        data = self.chat_completions(messages=messages, **kwargs)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError(f"LLM response has no content: {str(data)[:200]}") from exc
        if not isinstance(content, str):
            raise ValueError("LLM response content is not text")
        return content

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        if self._client is not None:
            self._client.close()
