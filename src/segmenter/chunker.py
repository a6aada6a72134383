"""Heuristic chunking of transcript fragments into candidate segments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.segmenter.config import SegmentationConfig
from src.segmenter.models import BreakReason, CandidateSegment, TranscriptChunk

logger = logging.getLogger(__name__)

# Speech rate used to guess how long a fragment was spoken for.
WORDS_PER_SECOND = 10
MIN_CHUNK_DURATION_MS = 1000


@dataclass
class _Accumulator:
    """The open candidate segment while walking the chunks."""

    start_ms: int
    end_ms: int
    texts: list[str]
    keywords: dict[str, None] = field(default_factory=dict)  # ordered set

    @classmethod
    def open(cls, chunk: TranscriptChunk, keywords: list[str]) -> _Accumulator:
        return cls(
            start_ms=chunk.timestamp_ms,
            end_ms=chunk.timestamp_ms,
            texts=[chunk.text],
            keywords=dict.fromkeys(keywords),
        )

    def to_segment(self, break_reason: BreakReason | None = None) -> CandidateSegment:
        return CandidateSegment(
            start_ms=self.start_ms,
            end_ms=self.end_ms,
            text=" ".join(self.texts).strip(),
            break_reason=break_reason,
            keywords=tuple(self.keywords),
        )


def estimate_speech_duration_ms(text: str) -> float:
    """Rough spoken duration of *text*: ~10 words per second, at least 1 s."""
    words = len(text.split())
    return max(MIN_CHUNK_DURATION_MS, (words / WORDS_PER_SECOND) * 1000)


def silence_gap_ms(prev: TranscriptChunk, current: TranscriptChunk) -> float:
    """Estimated silence between the end of *prev* and the start of *current*."""
    estimated_prev_end = prev.timestamp_ms + estimate_speech_duration_ms(prev.text)
    return current.timestamp_ms - estimated_prev_end


def find_keywords(text: str, keywords: tuple[str, ...]) -> list[str]:
    """Return every (lowercased) keyword contained in *text*, case-insensitively."""
    lower_text = text.lower()
    return [k for k in keywords if k in lower_text]


def chunk_transcript(
    chunks: list[TranscriptChunk],
    config: SegmentationConfig,
) -> list[CandidateSegment]:
    """Group transcript chunks into candidate segments.

    A segment is closed on a silence gap, on a section keyword once the
    segment is older than the minimum duration, or when it reaches the
    maximum duration.  Breaks are only honoured once the segment spans at
    least ``min_segment_duration_ms``.  The chunk that triggers a break is
    kept in the closing segment and also opens the next one.  A trailing
    segment shorter than the minimum is dropped.

    Args:
        chunks: Transcript fragments in timestamp order.
        config: Segmentation thresholds and keywords.

    Returns:
        Candidate segments in input order.
    """
    if not chunks:
        return []

    keywords = config.keywords.normalized()
    segments: list[CandidateSegment] = []
    current = _Accumulator.open(chunks[0], find_keywords(chunks[0].text, keywords))
    prev = chunks[0]

    for chunk in chunks[1:]:
        found = find_keywords(chunk.text, keywords)
        break_reason: BreakReason | None = None
        elapsed = chunk.timestamp_ms - current.start_ms

        if silence_gap_ms(prev, chunk) > config.silence_threshold_ms:
            break_reason = BreakReason.SILENCE

        if found:
            if elapsed > config.min_segment_duration_ms:
                break_reason = BreakReason.KEYWORD
            current.keywords.update(dict.fromkeys(found))

        # Duration wins over the other reasons
        if elapsed >= config.max_segment_duration_ms:
            break_reason = BreakReason.DURATION

        current.texts.append(chunk.text)
        current.end_ms = chunk.timestamp_ms

        if break_reason is not None and elapsed >= config.min_segment_duration_ms:
            segments.append(current.to_segment(break_reason))
            current = _Accumulator.open(chunk, found)

        prev = chunk

    if current.end_ms - current.start_ms >= config.min_segment_duration_ms:
        segments.append(current.to_segment())
    else:
        logger.debug(
            "Dropping trailing segment %d-%d ms (shorter than %d ms)",
            current.start_ms,
            current.end_ms,
            config.min_segment_duration_ms,
        )

    return segments
