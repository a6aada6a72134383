"""Segmentation pipeline: chunk -> classify -> merge -> finalize."""

from __future__ import annotations

import logging

from src.segmenter.chunker import chunk_transcript
from src.segmenter.classifier import ClassificationProvider, create_classification_provider
from src.segmenter.config import DEFAULT_CONFIG, SegmentationConfig
from src.segmenter.merger import finalize_sections, merge_segments
from src.segmenter.models import ClassifiedSegment, SegmentationResult, TranscriptChunk

logger = logging.getLogger(__name__)


async def segment_transcript(
    chunks: list[TranscriptChunk],
    total_duration_ms: int,
    config: SegmentationConfig = DEFAULT_CONFIG,
    classifier: ClassificationProvider | None = None,
) -> SegmentationResult:
    """Run the full segmentation pipeline over a recording's transcript.

    Args:
        chunks: Transcript fragments in timestamp order.
        total_duration_ms: Length of the recording in milliseconds.
        config: Segmentation thresholds.
        classifier: Classification provider; built from settings when omitted.

    Returns:
        Sorted sections and gap-filled ignored ranges, plus the intermediate
        candidates and classifications for diagnostics.
    """
    # 1. Chunk
    candidates = chunk_transcript(chunks, config)
    if not candidates:
        logger.info("No candidate segments from %d transcript chunks", len(chunks))
        return SegmentationResult()

    # 2. Classify
    if classifier is None:
        classifier = create_classification_provider()
    classifications = await classifier.classify_batch(candidates)
    classified = [
        ClassifiedSegment.from_candidate(candidate, classification)
        for candidate, classification in zip(candidates, classifications, strict=True)
    ]

    # 3. Merge
    sections, ignored = merge_segments(classified, config)

    # 4. Finalize
    sections, ignored = finalize_sections(sections, ignored, total_duration_ms)

    logger.info(
        "Segmented %d chunks into %d candidates, %d sections, %d ignored ranges",
        len(chunks),
        len(candidates),
        len(sections),
        len(ignored),
    )
    return SegmentationResult(
        sections=sections,
        ignored=ignored,
        candidates=candidates,
        classified=classified,
    )
