"""Segmentation thresholds: the immutable SegmentationConfig and its defaults."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SectionKeywords:
    """Phrases that hint at a section transition, grouped by section."""

    announcements: tuple[str, ...] = (
        "announcement",
        "announcements",
        "upcoming",
        "event",
        "reminder",
        "this week",
        "next week",
        "don't forget",
        "please join us",
    )
    sharing: tuple[str, ...] = (
        "sharing",
        "testimony",
        "testimonies",
        "witness",
        "share",
        "praise report",
        "prayer request",
        "thanksgiving",
    )
    sermon: tuple[str, ...] = (
        "sermon",
        "message",
        "teaching",
        "scripture",
        "verse",
        "bible",
        "today we",
        "let's turn to",
        "open your bibles",
    )

    def normalized(self) -> tuple[str, ...]:
        """All keywords, lowercased, in category order."""
        return tuple(k.lower() for k in (*self.announcements, *self.sharing, *self.sermon))


@dataclass(frozen=True)
class SegmentationConfig:
    """Immutable thresholds for one pipeline run (all values in milliseconds).

    Pass it explicitly to every stage; tests substitute their own instances
    via :func:`dataclasses.replace`.
    """

    min_segment_duration_ms: int = 30_000
    max_segment_duration_ms: int = 120_000
    silence_threshold_ms: int = 2_000
    merge_gap_threshold_ms: int = 5_000
    keywords: SectionKeywords = field(default_factory=SectionKeywords)


DEFAULT_CONFIG = SegmentationConfig()
