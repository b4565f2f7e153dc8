"""Summary pipeline with fallback to the raw activity text."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from .config import DEFAULT_PROMPT_TEMPLATE, NO_ACTIVITY_TEXT, format_prompt
from .gemini import Summarizer

logger = logging.getLogger(__name__)


class SummaryStatus(Enum):
    SUCCESS = "success"
    DEGRADED = "degraded"  # Summarizer failed, raw text returned


@dataclass
class SummaryResult:
    """Result of summarizing one window of activity."""

    text: str
    status: SummaryStatus
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.status is SummaryStatus.DEGRADED


class SummaryPipeline:
    """Condenses buffered activity to one line via a Summarizer.

    A failing summarizer never blocks persistence: the raw text is
    returned instead and the result is marked DEGRADED.
    """

    def __init__(
        self,
        summarizer: Summarizer,
        prompt_template: str = DEFAULT_PROMPT_TEMPLATE,
    ):
        self.summarizer = summarizer
        self.prompt_template = prompt_template

    async def summarize(self, raw_text: str) -> SummaryResult:
        fallback = raw_text or NO_ACTIVITY_TEXT
        try:
            prompt = format_prompt(self.prompt_template, raw_text)
            text = await self.summarizer.summarize(prompt)
        except Exception as e:
            logger.warning(f"Summarization failed, using raw activity: {e}")
            return SummaryResult(text=fallback, status=SummaryStatus.DEGRADED, error=str(e))

        if not isinstance(text, str) or not text.strip():
            logger.warning("Summarizer returned empty text, using raw activity")
            return SummaryResult(
                text=fallback,
                status=SummaryStatus.DEGRADED,
                error="empty summary",
            )

        return SummaryResult(text=text.strip(), status=SummaryStatus.SUCCESS)
