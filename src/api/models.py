"""Pydantic request/response schemas for the Service Recorder API.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON stored on recording rows.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.segmenter.models import IgnoreReason, SectionLabel, TranscriptChunk


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TranscriptChunkModel(CamelModel):
    """One transcript fragment."""

    text: str
    timestamp_ms: int = Field(ge=0)
    is_final: bool | None = None

    def to_chunk(self) -> TranscriptChunk:
        return TranscriptChunk(
            text=self.text,
            timestamp_ms=self.timestamp_ms,
            is_final=self.is_final,
        )


class SegmentationOverrides(CamelModel):
    """Optional threshold overrides for a single analysis run."""

    min_segment_duration_ms: int | None = Field(default=None, ge=0)
    max_segment_duration_ms: int | None = Field(default=None, gt=0)
    silence_threshold_ms: int | None = Field(default=None, ge=0)
    merge_gap_threshold_ms: int | None = Field(default=None, ge=0)


class AnalyzeRequest(CamelModel):
    """Request body for the /api/analyze endpoint."""

    chunks: list[TranscriptChunkModel]
    total_duration_ms: int = Field(gt=0)
    skip_summarization: bool = False
    config: SegmentationOverrides | None = None


class FinalSectionModel(CamelModel):
    """A labelled section of a recording."""

    label: SectionLabel
    start_ms: int
    end_ms: int
    text: str
    summary: str | None = None
    bullets: list[str] | None = None
    confidence: float | None = None


class IgnoredSegmentModel(CamelModel):
    """A time range not covered by any section."""

    start_ms: int
    end_ms: int
    reason: IgnoreReason


class AnalysisMetadata(CamelModel):
    candidate_count: int
    classified_count: int
    processing_time_ms: int | None = None


class AnalyzeResponse(CamelModel):
    """Response body for the analyze endpoints."""

    sections: list[FinalSectionModel]
    ignored: list[IgnoredSegmentModel]
    metadata: AnalysisMetadata | None = None


class SummarizeRequest(CamelModel):
    """Request body for the /api/summarize endpoint."""

    text: str = Field(min_length=1)
    label: SectionLabel
    prompt: str | None = None


class SummarizeResponse(CamelModel):
    summary: str
    bullets: list[str] | None = None


class TranscriptChunksRequest(CamelModel):
    """Request body for replacing a recording's transcript chunks."""

    transcript_chunks: list[TranscriptChunkModel]


class TranscriptChunksResponse(CamelModel):
    recording_id: str
    num_chunks: int


class ParsedTranscriptResponse(CamelModel):
    """Response body for the /api/transcripts/parse endpoint."""

    format: str
    num_chunks: int
    chunks: list[TranscriptChunkModel]
