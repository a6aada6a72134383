"""LLM-backed section summarization providers."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from src.config import Settings, settings
from src.segmenter.models import SectionLabel
from src.summarizer.models import SectionSummary

logger = logging.getLogger(__name__)

MAX_TRANSCRIPT_CHARS = 8000
SUMMARY_NOT_AVAILABLE = "Summary not available."

SYSTEM_PROMPT = (
    "You are a helpful assistant that summarizes church service content. "
    "Always return valid JSON."
)
CUSTOM_PROMPT_SYSTEM = (
    "You are a helpful assistant. Follow the user's instructions exactly. "
    "Always return valid JSON."
)

# Tool definition for Claude structured output
SUMMARY_TOOL: dict[str, Any] = {
    "name": "store_summary",
    "description": "Store the summary of one church service section.",
    "input_schema": {
        "type": "object",
        "properties": {
            "summary": {
                "type": "string",
                "description": "2-4 sentence summary of the section.",
            },
            "bullets": {
                "type": "array",
                "description": "Key points (Sermon sections only).",
                "items": {"type": "string"},
            },
        },
        "required": ["summary"],
    },
}


class SummarizationProvider(Protocol):
    """Anything that can summarize one section of a transcript."""

    async def summarize(self, text: str, label: SectionLabel) -> SectionSummary: ...


def build_prompt(text: str, label: SectionLabel, custom_prompt: str | None = None) -> str:
    """Build the summarization request for one section.

    A non-blank *custom_prompt* replaces the default instructions; the JSON
    shape requirement is always appended so the answer stays parseable.
    """
    is_sermon = label == SectionLabel.SERMON
    transcript = text[:MAX_TRANSCRIPT_CHARS]

    if custom_prompt and custom_prompt.strip():
        shape = '{"summary": "summary text"'
        if is_sermon:
            shape += ', "bullets": ["bullet 1", "bullet 2", ...]'
        shape += "}"
        return f"{custom_prompt.strip()}\n\nReturn JSON: {shape}\n\nTranscript:\n{transcript}"

    if is_sermon:
        instructions = (
            "Summarize this sermon section from a church service transcript. Provide:\n"
            "1. A concise summary paragraph (2-4 sentences) capturing the main message\n"
            "2. 5-10 bullet points highlighting key points, scriptures, and takeaways\n\n"
            'Return JSON: {"summary": "2-4 sentence summary", '
            '"bullets": ["bullet 1", "bullet 2", ...]}'
        )
    elif label == SectionLabel.OTHER:
        instructions = (
            "Summarize this section from a church service transcript in 2-4 sentences. "
            "Capture the key information, events, or points shared. This section may "
            "contain various types of content.\n\n"
            'Return JSON: {"summary": "2-4 sentence summary"}'
        )
    else:
        instructions = (
            f"Summarize this {label.value.lower()} section from a church service "
            "transcript in 2-4 sentences. Capture the key information, events, or "
            "points shared.\n\n"
            'Return JSON: {"summary": "2-4 sentence summary"}'
        )
    return f"{instructions}\n\nTranscript:\n{transcript}"


def parse_summary(data: Any, label: SectionLabel) -> SectionSummary:
    """Turn a decoded model response into a :class:`SectionSummary`.

    A missing or blank ``summary`` becomes :data:`SUMMARY_NOT_AVAILABLE`;
    blank bullets are dropped.

    Raises:
        ValueError: If *data* is not a JSON object, ``summary`` is not a
            string, or ``bullets`` is not a list of strings.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Unexpected summary payload: {type(data).__name__}")

    summary = data.get("summary")
    if summary is not None and not isinstance(summary, str):
        raise ValueError(f"Summary must be a string, got {type(summary).__name__}")

    bullets = data.get("bullets")
    if bullets is not None:
        if not isinstance(bullets, list) or not all(isinstance(b, str) for b in bullets):
            raise ValueError(f"Bullets must be a list of strings: {bullets!r}")
        bullets = [b.strip() for b in bullets if b.strip()]
    elif label == SectionLabel.SERMON:
        bullets = []

    return SectionSummary(
        summary=summary.strip() if summary and summary.strip() else SUMMARY_NOT_AVAILABLE,
        bullets=bullets,
    )


class OpenAISummarizationProvider:
    """Summarize sections with OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        custom_prompt: str | None = None,
        max_retries: int = 2,
    ) -> None:
        self.model = model
        self.custom_prompt = custom_prompt
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=max_retries)

    async def summarize(self, text: str, label: SectionLabel) -> SectionSummary:
        has_custom = bool(self.custom_prompt and self.custom_prompt.strip())
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "system",
                    "content": CUSTOM_PROMPT_SYSTEM if has_custom else SYSTEM_PROMPT,
                },
                {"role": "user", "content": build_prompt(text, label, self.custom_prompt)},
            ],
            response_format={"type": "json_object"},
            temperature=0.5,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ValueError("No response content from OpenAI")
        return parse_summary(json.loads(content), label)


class AnthropicSummarizationProvider:
    """Summarize sections with Claude, using forced tool use for structured output."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        custom_prompt: str | None = None,
        max_retries: int = 2,
    ) -> None:
        self.model = model
        self.custom_prompt = custom_prompt
        self.client = AsyncAnthropic(api_key=api_key, max_retries=max_retries)

    async def summarize(self, text: str, label: SectionLabel) -> SectionSummary:
        has_custom = bool(self.custom_prompt and self.custom_prompt.strip())
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=1024,
            system=CUSTOM_PROMPT_SYSTEM if has_custom else SYSTEM_PROMPT,
            tools=[SUMMARY_TOOL],
            tool_choice={"type": "tool", "name": "store_summary"},
            messages=[
                {"role": "user", "content": build_prompt(text, label, self.custom_prompt)}
            ],
        )

        for block in response.content:
            if block.type != "tool_use" or block.name != "store_summary":
                continue
            data = block.input
            if isinstance(data, str):
                data = json.loads(data)
            return parse_summary(data, label)

        raise ValueError("No store_summary tool call in response")


class MockSummarizationProvider:
    """Canned summaries for development without an API key."""

    async def summarize(self, text: str, label: SectionLabel) -> SectionSummary:
        if label == SectionLabel.SERMON:
            return SectionSummary(
                summary="The message covers important biblical themes and practical applications.",
                bullets=[
                    "Key point from the message",
                    "Scriptural reference discussed",
                    "Practical application shared",
                    "Important takeaway for daily life",
                    "Call to action or reflection",
                ],
            )
        return SectionSummary(
            summary="Key information and updates were shared with the congregation."
        )


def create_summarization_provider(
    config: Settings = settings,
    api_key: str | None = None,
    model: str | None = None,
    prompt: str | None = None,
) -> SummarizationProvider:
    """Pick the summarizer for the configured LLM provider.

    *api_key*, *model* and *prompt* override the corresponding settings
    (e.g. a per-user key or custom prompt).  Falls back to
    :class:`MockSummarizationProvider` when no API key is available.
    """
    custom_prompt = prompt if prompt is not None else config.summary_prompt

    if config.llm_provider == "anthropic":
        key = api_key or config.anthropic_api_key
        if key:
            return AnthropicSummarizationProvider(
                api_key=key,
                model=model or config.anthropic_model,
                custom_prompt=custom_prompt,
                max_retries=config.llm_max_retries,
            )
    elif config.llm_provider == "openai":
        key = api_key or config.openai_api_key
        if key:
            return OpenAISummarizationProvider(
                api_key=key,
                model=model or config.openai_model,
                base_url=config.openai_base_url,
                custom_prompt=custom_prompt,
                max_retries=config.llm_max_retries,
            )

    logger.warning("No API key for LLM provider %r, using mock summarizer", config.llm_provider)
    return MockSummarizationProvider()
