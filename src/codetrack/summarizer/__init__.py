"""Summarizer module for condensing buffered activity.

This module turns a window of raw activity descriptions into a one-line
summary using Google Gemini, falling back to the raw text when the
provider is unavailable.
"""

from .config import (
    DEFAULT_PROMPT_TEMPLATE,
    NO_ACTIVITY_TEXT,
    format_prompt,
    get_prompt_template,
)
from .gemini import GeminiSummarizer, Summarizer, SummarizerError
from .pipeline import SummaryPipeline, SummaryResult, SummaryStatus

__all__ = [
    # Config
    "DEFAULT_PROMPT_TEMPLATE",
    "NO_ACTIVITY_TEXT",
    "format_prompt",
    "get_prompt_template",
    # Provider
    "GeminiSummarizer",
    "Summarizer",
    "SummarizerError",
    # Pipeline
    "SummaryPipeline",
    "SummaryResult",
    "SummaryStatus",
]
