"""End-to-end analysis of a recording: segment -> (summarize)."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from src.segmenter.classifier import ClassificationProvider
from src.segmenter.config import DEFAULT_CONFIG, SegmentationConfig
from src.segmenter.models import FinalSection, IgnoredSegment, TranscriptChunk
from src.segmenter.pipeline import segment_transcript
from src.summarizer.pipeline import summarize_sections
from src.summarizer.summarize import SummarizationProvider

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Sections and ignored ranges of a recording, with run metadata."""

    sections: list[FinalSection] = field(default_factory=list)
    ignored: list[IgnoredSegment] = field(default_factory=list)
    candidate_count: int = 0
    classified_count: int = 0
    processing_time_ms: int = 0


async def analyze_transcript(
    chunks: list[TranscriptChunk],
    total_duration_ms: int,
    skip_summarization: bool = False,
    config: SegmentationConfig = DEFAULT_CONFIG,
    classifier: ClassificationProvider | None = None,
    summarizer: SummarizationProvider | None = None,
) -> AnalysisResult:
    """Detect the sections of a recording and, optionally, summarize them.

    Args:
        chunks: Transcript fragments in timestamp order.
        total_duration_ms: Length of the recording in milliseconds.
        skip_summarization: If True, stop after segmentation.
        config: Segmentation thresholds.
        classifier: Classification provider override.
        summarizer: Summarization provider override.

    Returns:
        An :class:`AnalysisResult`.

    Raises:
        ValueError: If *total_duration_ms* is not positive.
    """
    if total_duration_ms <= 0:
        raise ValueError("total_duration_ms must be a positive number")

    started = time.perf_counter()

    result = await segment_transcript(chunks, total_duration_ms, config, classifier)

    sections = result.sections
    if not skip_summarization and sections:
        sections = await summarize_sections(sections, summarizer)

    processing_time_ms = int((time.perf_counter() - started) * 1000)
    logger.info("Analyzed %d chunks in %d ms", len(chunks), processing_time_ms)

    return AnalysisResult(
        sections=sections,
        ignored=result.ignored,
        candidate_count=len(result.candidates),
        classified_count=len(result.classified),
        processing_time_ms=processing_time_ms,
    )
