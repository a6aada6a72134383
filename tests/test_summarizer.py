"""Tests for section summarization (no external APIs required)."""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.config import Settings
from src.segmenter.models import FinalSection, SectionLabel
from src.summarizer.models import SectionSummary
from src.summarizer.pipeline import SUMMARY_FAILED, summarize_sections
from src.summarizer.summarize import (
    AnthropicSummarizationProvider,
    MockSummarizationProvider,
    OpenAISummarizationProvider,
    build_prompt,
    create_summarization_provider,
    parse_summary,
)


class FlakyProvider:
    """Summarizes every section except those whose text contains ``fail``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, SectionLabel]] = []

    async def summarize(self, text: str, label: SectionLabel) -> SectionSummary:
        self.calls.append((text, label))
        if "fail" in text:
            raise ConnectionError("upstream unavailable")
        bullets = ["point"] if label == SectionLabel.SERMON else None
        return SectionSummary(summary=f"Summary of {text}", bullets=bullets)


def _section(label: SectionLabel, text: str, start_ms: int = 0) -> FinalSection:
    return FinalSection(label=label, start_ms=start_ms, end_ms=start_ms + 30_000, text=text)


# ---------------------------------------------------------------------------
# summarize_sections
# ---------------------------------------------------------------------------


class TestSummarizeSections:
    def test_summaries_attached_in_order(self) -> None:
        sections = [
            _section(SectionLabel.ANNOUNCEMENTS, "picnic", 0),
            _section(SectionLabel.SERMON, "grace", 30_000),
        ]
        result = asyncio.run(summarize_sections(sections, FlakyProvider()))

        assert [s.summary for s in result] == ["Summary of picnic", "Summary of grace"]
        assert result[0].bullets is None
        assert result[1].bullets == ["point"]

    def test_failure_is_isolated(self) -> None:
        sections = [
            _section(SectionLabel.ANNOUNCEMENTS, "picnic", 0),
            _section(SectionLabel.SERMON, "please fail", 30_000),
            _section(SectionLabel.SHARING, "testimony", 60_000),
        ]
        result = asyncio.run(summarize_sections(sections, FlakyProvider()))

        assert len(result) == 3
        assert result[0].summary == "Summary of picnic"
        assert result[1].summary == SUMMARY_FAILED
        assert result[1].bullets == []
        assert result[2].summary == "Summary of testimony"

    def test_failed_non_sermon_has_no_bullets(self) -> None:
        result = asyncio.run(
            summarize_sections([_section(SectionLabel.SHARING, "fail")], FlakyProvider())
        )
        assert result[0].summary.startswith("Summary generation failed")
        assert result[0].bullets is None

    def test_other_sections_pass_through(self) -> None:
        provider = FlakyProvider()
        other = _section(SectionLabel.OTHER, "music")
        result = asyncio.run(summarize_sections([other], provider))
        assert result == [other]
        assert provider.calls == []

    def test_inputs_are_not_mutated(self) -> None:
        section = _section(SectionLabel.SERMON, "grace")
        asyncio.run(summarize_sections([section], FlakyProvider()))
        assert section.summary is None

    def test_empty(self) -> None:
        assert asyncio.run(summarize_sections([], FlakyProvider())) == []


# ---------------------------------------------------------------------------
# Prompt and response handling
# ---------------------------------------------------------------------------


class TestBuildPrompt:
    def test_sermon_asks_for_bullets(self) -> None:
        prompt = build_prompt("text", SectionLabel.SERMON)
        assert "5-10 bullet points" in prompt
        assert '"bullets"' in prompt

    def test_other_labels_do_not_ask_for_bullets(self) -> None:
        prompt = build_prompt("text", SectionLabel.SHARING)
        assert "sharing section" in prompt
        assert '"bullets"' not in prompt

    def test_transcript_is_truncated(self) -> None:
        prompt = build_prompt("y" * 9000, SectionLabel.SHARING)
        assert "y" * 8000 in prompt
        assert "y" * 8001 not in prompt

    def test_custom_prompt_replaces_instructions(self) -> None:
        prompt = build_prompt("text", SectionLabel.SERMON, "  Summarize for the newsletter.  ")
        assert prompt.startswith("Summarize for the newsletter.")
        assert "5-10 bullet points" not in prompt
        assert '"bullets"' in prompt

    def test_blank_custom_prompt_is_ignored(self) -> None:
        assert build_prompt("text", SectionLabel.SERMON, "   ") == build_prompt(
            "text", SectionLabel.SERMON
        )


class TestParseSummary:
    def test_sermon_without_bullets_gets_empty_list(self) -> None:
        result = parse_summary({"summary": "A message on grace."}, SectionLabel.SERMON)
        assert result == SectionSummary(summary="A message on grace.", bullets=[])

    def test_missing_summary(self) -> None:
        result = parse_summary({}, SectionLabel.ANNOUNCEMENTS)
        assert result.summary == "Summary not available."
        assert result.bullets is None

    def test_non_object_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_summary(["summary"], SectionLabel.SHARING)

    def test_non_string_summary_raises(self) -> None:
        with pytest.raises(ValueError, match="Summary must be a string"):
            parse_summary({"summary": ["a", "b"]}, SectionLabel.SHARING)

    def test_non_string_bullets_raise(self) -> None:
        with pytest.raises(ValueError, match="Bullets"):
            parse_summary({"summary": "ok", "bullets": [{"point": 1}]}, SectionLabel.SERMON)
        with pytest.raises(ValueError, match="Bullets"):
            parse_summary({"summary": "ok", "bullets": "one point"}, SectionLabel.SERMON)

    def test_blank_values_are_cleaned(self) -> None:
        result = parse_summary({"summary": "   ", "bullets": ["Romans 5", "  "]}, SectionLabel.SERMON)
        assert result == SectionSummary(summary="Summary not available.", bullets=["Romans 5"])


class TestOpenAISummarizationProvider:
    @patch("src.summarizer.summarize.AsyncOpenAI")
    def test_summarize(self, mock_openai_cls: MagicMock) -> None:
        response = MagicMock()
        choice = MagicMock()
        choice.message.content = json.dumps({"summary": "Grace abounds.", "bullets": ["Romans 5"]})
        response.choices = [choice]
        create = AsyncMock(return_value=response)
        mock_openai_cls.return_value.chat.completions.create = create

        provider = OpenAISummarizationProvider(api_key="sk-test")
        result = asyncio.run(provider.summarize("sermon text", SectionLabel.SERMON))

        assert result == SectionSummary(summary="Grace abounds.", bullets=["Romans 5"])
        kwargs = create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["temperature"] == 0.5

    @patch("src.summarizer.summarize.AsyncOpenAI")
    def test_invalid_json_raises(self, mock_openai_cls: MagicMock) -> None:
        response = MagicMock()
        choice = MagicMock()
        choice.message.content = "Sure! Here is your summary."
        response.choices = [choice]
        mock_openai_cls.return_value.chat.completions.create = AsyncMock(return_value=response)

        provider = OpenAISummarizationProvider(api_key="sk-test")
        with pytest.raises(ValueError):
            asyncio.run(provider.summarize("text", SectionLabel.SHARING))

    @patch("src.summarizer.summarize.AsyncOpenAI")
    def test_malformed_summary_falls_back_for_that_section(self, mock_openai_cls: MagicMock) -> None:
        response = MagicMock()
        choice = MagicMock()
        choice.message.content = json.dumps({"summary": ["a", "b"]})
        response.choices = [choice]
        mock_openai_cls.return_value.chat.completions.create = AsyncMock(return_value=response)

        provider = OpenAISummarizationProvider(api_key="sk-test")
        result = asyncio.run(
            summarize_sections([_section(SectionLabel.ANNOUNCEMENTS, "picnic")], provider)
        )
        assert result[0].summary == SUMMARY_FAILED
        assert result[0].bullets is None


class TestAnthropicSummarizationProvider:
    @patch("src.summarizer.summarize.AsyncAnthropic")
    def test_tool_use_response(self, mock_anthropic_cls: MagicMock) -> None:
        tool_block = MagicMock()
        tool_block.type = "tool_use"
        tool_block.name = "store_summary"
        tool_block.input = {"summary": "Events were announced."}
        response = MagicMock()
        response.content = [tool_block]
        mock_anthropic_cls.return_value.messages.create = AsyncMock(return_value=response)

        provider = AnthropicSummarizationProvider(api_key="sk-ant-test")
        result = asyncio.run(provider.summarize("text", SectionLabel.ANNOUNCEMENTS))
        assert result == SectionSummary(summary="Events were announced.", bullets=None)


class TestMockSummarizationProvider:
    def test_sermon_has_bullets(self) -> None:
        result = asyncio.run(MockSummarizationProvider().summarize("x", SectionLabel.SERMON))
        assert result.bullets is not None
        assert len(result.bullets) == 5

    def test_other_labels_have_no_bullets(self) -> None:
        result = asyncio.run(MockSummarizationProvider().summarize("x", SectionLabel.SHARING))
        assert result.bullets is None


class TestCreateSummarizationProvider:
    def test_openai_with_key(self) -> None:
        config = Settings(_env_file=None, llm_provider="openai", openai_api_key="sk-test")  # type: ignore[call-arg]
        provider = create_summarization_provider(config)
        assert isinstance(provider, OpenAISummarizationProvider)

    def test_explicit_key_and_prompt(self) -> None:
        config = Settings(_env_file=None, llm_provider="openai", openai_api_key="")  # type: ignore[call-arg]
        provider = create_summarization_provider(
            config, api_key="sk-user", model="gpt-4o", prompt="Be brief."
        )
        assert isinstance(provider, OpenAISummarizationProvider)
        assert provider.model == "gpt-4o"
        assert provider.custom_prompt == "Be brief."

    def test_anthropic_with_key(self) -> None:
        config = Settings(  # type: ignore[call-arg]
            _env_file=None, llm_provider="anthropic", anthropic_api_key="sk-ant-test"
        )
        assert isinstance(create_summarization_provider(config), AnthropicSummarizationProvider)

    def test_mock_without_key(self) -> None:
        config = Settings(  # type: ignore[call-arg]
            _env_file=None, llm_provider="openai", openai_api_key="", anthropic_api_key=""
        )
        assert isinstance(create_summarization_provider(config), MockSummarizationProvider)
