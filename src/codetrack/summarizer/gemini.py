"""Google Gemini client used to condense activity into one line."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"

# Timeout for a single generateContent call (seconds)
REQUEST_TIMEOUT = 30.0


class SummarizerError(Exception):
    """The summarization provider failed or returned an unusable response."""


class Summarizer(Protocol):
    """Turns a prompt into generated text.

    Implementations must raise SummarizerError rather than return garbage.
    """

    async def summarize(self, prompt: str) -> str: ...


class GeminiSummarizer:
    """Summarizer backed by the Gemini generateContent endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the Gemini client.

        Args:
            api_key: Gemini API key.
            model: Model name, e.g. "gemini-1.5-flash".
            base_url: API root, overridable for tests and proxies.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def summarize(self, prompt: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=payload,
                )
        except httpx.HTTPError as e:
            raise SummarizerError(f"Request failed: {e}") from e

        if not response.is_success:
            raise SummarizerError(f"API Error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise SummarizerError("Response is not valid JSON") from e

        text = self._extract_text(data)
        logger.debug(f"Gemini returned {len(text)} chars")
        return text

    @staticmethod
    def _extract_text(data: Any) -> str:
        """Pull the first candidate's text out of a generateContent response."""
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise SummarizerError(f"Unexpected response shape: {e!r}") from e
        if not isinstance(text, str) or not text.strip():
            raise SummarizerError("Response contained no text")
        return text.strip()
