"""Data models for the transcript segmentation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class SectionLabel(StrEnum):
    """Structural section of a church service."""

    ANNOUNCEMENTS = "Announcements"
    SHARING = "Sharing"
    SERMON = "Sermon"
    OTHER = "Other"


class BreakReason(StrEnum):
    """Heuristic that closed a candidate segment."""

    SILENCE = "silence"
    KEYWORD = "keyword"
    DURATION = "duration"
    TOPIC_SHIFT = "topic_shift"


class IgnoreReason(StrEnum):
    """Why a time range is excluded from the labelled sections."""

    MUSIC = "music"
    PRAYER = "prayer"
    SILENCE = "silence"
    OTHER = "other"


@dataclass
class TranscriptChunk:
    """One fragment of recognized speech, offset from the recording start."""

    text: str
    timestamp_ms: int
    is_final: bool | None = None


@dataclass(frozen=True)
class CandidateSegment:
    """A contiguous, not yet labelled span of transcript chunks."""

    start_ms: int
    end_ms: int
    text: str
    break_reason: BreakReason | None = None
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True)
class Classification:
    """A single classifier verdict."""

    label: SectionLabel
    confidence: float


@dataclass(frozen=True)
class ClassifiedSegment:
    """A candidate segment with its section label attached."""

    start_ms: int
    end_ms: int
    text: str
    label: SectionLabel
    confidence: float
    break_reason: BreakReason | None = None
    keywords: tuple[str, ...] = ()

    @classmethod
    def from_candidate(
        cls, candidate: CandidateSegment, classification: Classification
    ) -> ClassifiedSegment:
        return cls(
            start_ms=candidate.start_ms,
            end_ms=candidate.end_ms,
            text=candidate.text,
            label=classification.label,
            confidence=classification.confidence,
            break_reason=candidate.break_reason,
            keywords=candidate.keywords,
        )


@dataclass
class FinalSection:
    """A merged, user-facing section.

    ``summary`` and ``bullets`` are filled by the summarizer; ``bullets`` is
    only meaningful for Sermon sections. ``confidence`` is the average
    classifier confidence of the merged segments (diagnostic only).
    """

    label: SectionLabel
    start_ms: int
    end_ms: int
    text: str
    summary: str | None = None
    bullets: list[str] | None = None
    confidence: float | None = None


@dataclass
class IgnoredSegment:
    """A time range not covered by any section."""

    start_ms: int
    end_ms: int
    reason: IgnoreReason


@dataclass
class SegmentationResult:
    """Output of a full segmentation run."""

    sections: list[FinalSection] = field(default_factory=list)
    ignored: list[IgnoredSegment] = field(default_factory=list)
    candidates: list[CandidateSegment] = field(default_factory=list)
    classified: list[ClassifiedSegment] = field(default_factory=list)
