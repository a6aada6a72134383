"""Data models for section summaries."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SectionSummary:
    """Summary of one section; ``bullets`` is only set for Sermon sections."""

    summary: str
    bullets: list[str] | None = None
