"""Summarizer prompt templates."""

from __future__ import annotations

from pathlib import Path


DEFAULT_PROMPT_TEMPLATE = "Summarize coding activity in 1 line: {activity}"

# Used in place of blank activity, both in the prompt and as the fallback text
NO_ACTIVITY_TEXT = "No activity logged"


def format_prompt(template: str, activity: str) -> str:
    """Format the prompt template with the buffered activity.

    Args:
        template: Prompt template with an {activity} placeholder.
        activity: Newline-joined activity descriptions.

    Returns:
        Formatted prompt string.
    """
    return template.format(activity=activity or NO_ACTIVITY_TEXT)


def get_prompt_template(
    prompt: str | None = None,
    prompt_file: Path | None = None,
) -> str:
    """Get the prompt template from config or use default.

    Args:
        prompt: Inline prompt string.
        prompt_file: Path to prompt file.

    Returns:
        The prompt template string.
    """
    if prompt:
        return prompt
    if prompt_file and prompt_file.exists():
        return prompt_file.read_text()
    return DEFAULT_PROMPT_TEMPLATE
