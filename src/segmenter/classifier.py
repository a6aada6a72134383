"""Section classification of candidate segments.

Providers share one interface so the backing service can be swapped
(OpenAI, Anthropic, or a deterministic keyword fallback when no API key is
configured).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from src.config import Settings, settings
from src.segmenter.models import CandidateSegment, Classification, SectionLabel

logger = logging.getLogger(__name__)

# Only the classification request is truncated; segment text is kept whole.
MAX_SEGMENT_CHARS = 500
DEFAULT_CONFIDENCE = 0.8

SYSTEM_PROMPT = (
    "You are a helpful assistant that classifies church service transcript "
    "segments. Always return valid JSON with a 'results' array."
)

TAXONOMY = (
    "You are analyzing transcript segments from a church service. Classify each "
    "segment into one of these categories:\n\n"
    '- "Announcements": Upcoming events, reminders, community information, scheduling\n'
    '- "Sharing": Personal testimonies, prayer requests, praise reports, personal stories\n'
    '- "Sermon": Teaching, Bible study, scriptural message, theological content\n'
    '- "Other": Music, prayers, silence, transitions, or unclear content\n'
)

# Tool definition for Claude structured output
CLASSIFICATION_TOOL: dict[str, Any] = {
    "name": "store_classifications",
    "description": (
        "Store one classification per transcript segment, in the same order "
        "as the segments were given."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "results": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "label": {
                            "type": "string",
                            "enum": [label.value for label in SectionLabel],
                        },
                        "confidence": {
                            "type": "number",
                            "description": "Confidence score 0-1.",
                        },
                    },
                    "required": ["label", "confidence"],
                },
            },
        },
        "required": ["results"],
    },
}


class ClassificationProvider(Protocol):
    """Anything that can label candidate segments."""

    async def classify(self, segment: CandidateSegment) -> Classification: ...

    async def classify_batch(self, segments: list[CandidateSegment]) -> list[Classification]:
        """Classify *segments*; the result has the same length and order."""
        ...


def build_prompt(segments: list[CandidateSegment], json_format: bool = True) -> str:
    """Build the classification request for a batch of segments."""
    listing = "\n".join(
        f"\n[{i}] {segment.text[:MAX_SEGMENT_CHARS]}" for i, segment in enumerate(segments)
    )
    instructions = TAXONOMY
    if json_format:
        instructions += (
            '\nReturn JSON object with format: {"results": [{"label": "Announcements" | '
            '"Sharing" | "Sermon" | "Other", "confidence": 0.0-1.0}, ...]}\n'
        )
    return f"{instructions}\nSegments to classify:\n{listing}"


def _coerce_label(value: Any) -> SectionLabel:
    try:
        return SectionLabel(value)
    except ValueError:
        return SectionLabel.OTHER


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, float(value)))


def parse_classifications(data: Any, expected: int) -> list[Classification]:
    """Turn a decoded model response into classifications.

    Accepts ``{"results": [...]}``, ``{"classifications": [...]}`` or a bare
    list.  Extra entries are dropped.

    Raises:
        ValueError: If the payload has an unexpected shape or fewer entries
            than *expected*.
    """
    if isinstance(data, list):
        results = data
    elif isinstance(data, dict):
        results = data.get("results") or data.get("classifications") or []
    else:
        raise ValueError(f"Unexpected classification payload: {type(data).__name__}")

    if not isinstance(results, list):
        raise ValueError(f"Classification results must be a list, got {type(results).__name__}")
    if len(results) < expected:
        raise ValueError(f"Expected {expected} classifications, got {len(results)}")

    classifications: list[Classification] = []
    for item in results[:expected]:
        if not isinstance(item, dict):
            raise ValueError(f"Unexpected classification entry: {item!r}")
        classifications.append(
            Classification(
                label=_coerce_label(item.get("label") or item.get("category") or "Other"),
                confidence=_coerce_confidence(item.get("confidence")),
            )
        )
    return classifications


def fallback_classifications(segments: list[CandidateSegment]) -> list[Classification]:
    """Degrade every segment to ``Other`` with zero confidence."""
    return [Classification(label=SectionLabel.OTHER, confidence=0.0) for _ in segments]


class OpenAIClassificationProvider:
    """Classify segments with one OpenAI chat completion per batch."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        max_retries: int = 2,
    ) -> None:
        self.model = model
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=max_retries)

    async def classify(self, segment: CandidateSegment) -> Classification:
        return (await self.classify_batch([segment]))[0]

    async def classify_batch(self, segments: list[CandidateSegment]) -> list[Classification]:
        if not segments:
            return []

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_prompt(segments)},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
            )
            content = response.choices[0].message.content if response.choices else None
            if not content:
                raise ValueError("No response content from OpenAI")
            return parse_classifications(json.loads(content), len(segments))
        except Exception:
            logger.exception("Classification failed for %d segments", len(segments))
            return fallback_classifications(segments)


class AnthropicClassificationProvider:
    """Classify segments with Claude, using forced tool use for structured output."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        max_retries: int = 2,
    ) -> None:
        self.model = model
        self.client = AsyncAnthropic(api_key=api_key, max_retries=max_retries)

    async def classify(self, segment: CandidateSegment) -> Classification:
        return (await self.classify_batch([segment]))[0]

    async def classify_batch(self, segments: list[CandidateSegment]) -> list[Classification]:
        if not segments:
            return []

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=2048,
                system=SYSTEM_PROMPT,
                tools=[CLASSIFICATION_TOOL],
                tool_choice={"type": "tool", "name": "store_classifications"},
                messages=[
                    {
                        "role": "user",
                        "content": build_prompt(segments, json_format=False),
                    }
                ],
            )
            return parse_classifications(_tool_input(response), len(segments))
        except Exception:
            logger.exception("Classification failed for %d segments", len(segments))
            return fallback_classifications(segments)


def _tool_input(response: Any) -> Any:
    """Return the input of the ``store_classifications`` tool_use block."""
    for block in response.content:
        if block.type != "tool_use" or block.name != "store_classifications":
            continue
        data = block.input
        if isinstance(data, str):
            data = json.loads(data)
        return data
    raise ValueError("No store_classifications tool call in response")


class KeywordClassificationProvider:
    """Deterministic classifier driven by the keywords the chunker collected."""

    async def classify(self, segment: CandidateSegment) -> Classification:
        keywords = segment.keywords
        if any("announce" in k for k in keywords):
            return Classification(label=SectionLabel.ANNOUNCEMENTS, confidence=0.9)
        if any("shar" in k or "testimony" in k for k in keywords):
            return Classification(label=SectionLabel.SHARING, confidence=0.9)
        if any("sermon" in k or "message" in k or "scripture" in k for k in keywords):
            return Classification(label=SectionLabel.SERMON, confidence=0.9)
        return Classification(label=SectionLabel.OTHER, confidence=0.5)

    async def classify_batch(self, segments: list[CandidateSegment]) -> list[Classification]:
        return [await self.classify(segment) for segment in segments]


def create_classification_provider(config: Settings = settings) -> ClassificationProvider:
    """Pick the classifier for the configured LLM provider.

    Falls back to :class:`KeywordClassificationProvider` when the provider
    has no API key.
    """
    if config.llm_provider == "anthropic" and config.anthropic_api_key:
        return AnthropicClassificationProvider(
            api_key=config.anthropic_api_key,
            model=config.anthropic_model,
            max_retries=config.llm_max_retries,
        )
    if config.llm_provider == "openai" and config.openai_api_key:
        return OpenAIClassificationProvider(
            api_key=config.openai_api_key,
            model=config.openai_model,
            base_url=config.openai_base_url,
            max_retries=config.llm_max_retries,
        )

    logger.warning("No API key for LLM provider %r, using keyword classifier", config.llm_provider)
    return KeywordClassificationProvider()
