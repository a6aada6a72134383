"""Summarize every section of a segmented recording concurrently."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from src.segmenter.models import FinalSection, SectionLabel
from src.summarizer.models import SectionSummary
from src.summarizer.summarize import SummarizationProvider, create_summarization_provider

logger = logging.getLogger(__name__)

SUMMARY_FAILED = "Summary generation failed. Please review the transcript manually."


def _failed_summary(label: SectionLabel) -> SectionSummary:
    return SectionSummary(
        summary=SUMMARY_FAILED,
        bullets=[] if label == SectionLabel.SERMON else None,
    )


async def summarize_sections(
    sections: list[FinalSection],
    provider: SummarizationProvider | None = None,
) -> list[FinalSection]:
    """Attach a summary (and Sermon bullets) to each section.

    Sections are summarized concurrently.  A failure only affects its own
    section, which gets a placeholder summary a reviewer can regenerate.
    ``Other`` sections are returned unchanged.

    Args:
        sections: Finalized sections.
        provider: Summarization provider; built from settings when omitted.

    Returns:
        New sections, same length and order as *sections*.
    """
    to_summarize = [i for i, s in enumerate(sections) if s.label != SectionLabel.OTHER]
    if not to_summarize:
        return list(sections)

    if provider is None:
        provider = create_summarization_provider()

    outcomes = await asyncio.gather(
        *(provider.summarize(sections[i].text, sections[i].label) for i in to_summarize),
        return_exceptions=True,
    )

    summarized = list(sections)
    for i, outcome in zip(to_summarize, outcomes, strict=True):
        section = sections[i]
        if isinstance(outcome, BaseException):
            logger.error(
                "Summarizing %s section %d-%d ms failed: %s",
                section.label,
                section.start_ms,
                section.end_ms,
                outcome,
            )
            outcome = _failed_summary(section.label)
        summarized[i] = replace(section, summary=outcome.summary, bullets=outcome.bullets)

    return summarized
