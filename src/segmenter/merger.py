"""Merge classified segments into final sections and account for gaps."""

from __future__ import annotations

from dataclasses import dataclass

from src.segmenter.config import SegmentationConfig
from src.segmenter.models import (
    ClassifiedSegment,
    FinalSection,
    IgnoredSegment,
    IgnoreReason,
    SectionLabel,
)

# Gaps between sections up to this long are not reported as ignored ranges.
GAP_FILL_THRESHOLD_MS = 1000


@dataclass
class _OpenSection:
    label: SectionLabel
    start_ms: int
    end_ms: int
    texts: list[str]
    confidences: list[float]

    @classmethod
    def open(cls, seg: ClassifiedSegment) -> _OpenSection:
        return cls(
            label=seg.label,
            start_ms=seg.start_ms,
            end_ms=seg.end_ms,
            texts=[seg.text],
            confidences=[seg.confidence],
        )

    def to_section(self) -> FinalSection:
        return FinalSection(
            label=self.label,
            start_ms=self.start_ms,
            end_ms=self.end_ms,
            text=" ".join(self.texts).strip(),
            confidence=sum(self.confidences) / len(self.confidences),
        )


def merge_segments(
    classified: list[ClassifiedSegment],
    config: SegmentationConfig,
) -> tuple[list[FinalSection], list[IgnoredSegment]]:
    """Merge consecutive segments that share a label.

    ``Other`` segments are turned into ignored ranges one-to-one.  The rest
    are merged while the label stays the same and the gap to the open
    section is at most ``merge_gap_threshold_ms``.

    Args:
        classified: Classified segments in chunker order.
        config: Segmentation thresholds.

    Returns:
        ``(sections, ignored)``; sections are in merge order, not yet sorted.
    """
    ignored = [
        IgnoredSegment(start_ms=seg.start_ms, end_ms=seg.end_ms, reason=IgnoreReason.OTHER)
        for seg in classified
        if seg.label == SectionLabel.OTHER
    ]

    sections: list[FinalSection] = []
    current: _OpenSection | None = None

    for seg in classified:
        if seg.label == SectionLabel.OTHER:
            continue

        if current is None:
            current = _OpenSection.open(seg)
            continue

        gap = seg.start_ms - current.end_ms
        if seg.label == current.label and gap <= config.merge_gap_threshold_ms:
            current.end_ms = seg.end_ms
            current.texts.append(seg.text)
            current.confidences.append(seg.confidence)
        else:
            sections.append(current.to_section())
            current = _OpenSection.open(seg)

    if current is not None:
        sections.append(current.to_section())

    return sections, ignored


def finalize_sections(
    sections: list[FinalSection],
    ignored: list[IgnoredSegment],
    total_duration_ms: int,
) -> tuple[list[FinalSection], list[IgnoredSegment]]:
    """Sort sections by start time and fill uncovered gaps with silence.

    Gaps longer than one second before the first section, between sections
    and after the last section become ``silence`` ignored ranges.

    Args:
        sections: Sections from :func:`merge_segments`.
        ignored: Ignored ranges from :func:`merge_segments`.
        total_duration_ms: Length of the recording.

    Returns:
        ``(sections, ignored)``, both sorted by ``start_ms``.
    """
    ordered = sorted(sections, key=lambda s: s.start_ms)
    all_ignored = list(ignored)

    for current, nxt in zip(ordered, ordered[1:]):
        if nxt.start_ms - current.end_ms > GAP_FILL_THRESHOLD_MS:
            all_ignored.append(
                IgnoredSegment(
                    start_ms=current.end_ms,
                    end_ms=nxt.start_ms,
                    reason=IgnoreReason.SILENCE,
                )
            )

    if ordered:
        first, last = ordered[0], ordered[-1]
        if first.start_ms > GAP_FILL_THRESHOLD_MS:
            all_ignored.append(
                IgnoredSegment(start_ms=0, end_ms=first.start_ms, reason=IgnoreReason.SILENCE)
            )
        if last.end_ms < total_duration_ms - GAP_FILL_THRESHOLD_MS:
            all_ignored.append(
                IgnoredSegment(
                    start_ms=last.end_ms,
                    end_ms=total_duration_ms,
                    reason=IgnoreReason.SILENCE,
                )
            )

    all_ignored.sort(key=lambda s: s.start_ms)
    return ordered, all_ignored
