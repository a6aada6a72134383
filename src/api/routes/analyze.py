"""Analysis endpoints: section detection and summary regeneration."""

from __future__ import annotations

from dataclasses import replace

import anthropic
import openai
from fastapi import APIRouter, HTTPException

from src.analysis import AnalysisResult, analyze_transcript
from src.api.models import (
    AnalysisMetadata,
    AnalyzeRequest,
    AnalyzeResponse,
    FinalSectionModel,
    IgnoredSegmentModel,
    SegmentationOverrides,
    SummarizeRequest,
    SummarizeResponse,
)
from src.segmenter.config import DEFAULT_CONFIG, SegmentationConfig
from src.summarizer.summarize import create_summarization_provider

router = APIRouter()


def build_config(overrides: SegmentationOverrides | None) -> SegmentationConfig:
    """Apply per-request threshold overrides to the default config."""
    if overrides is None:
        return DEFAULT_CONFIG
    return replace(DEFAULT_CONFIG, **overrides.model_dump(exclude_none=True))


def build_response(result: AnalysisResult) -> AnalyzeResponse:
    """Convert an analysis result into its API representation."""
    return AnalyzeResponse(
        sections=[FinalSectionModel.model_validate(s) for s in result.sections],
        ignored=[IgnoredSegmentModel.model_validate(s) for s in result.ignored],
        metadata=AnalysisMetadata(
            candidate_count=result.candidate_count,
            classified_count=result.classified_count,
            processing_time_ms=result.processing_time_ms,
        ),
    )


@router.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze(request: AnalyzeRequest) -> AnalyzeResponse:
    """Detect Announcements / Sharing / Sermon sections in a transcript.

    Sections are summarized unless ``skipSummarization`` is set.  Failed
    classifications show up as ignored ranges and failed summaries as a
    placeholder string; the request itself still succeeds.
    """
    result = await analyze_transcript(
        [c.to_chunk() for c in request.chunks],
        request.total_duration_ms,
        skip_summarization=request.skip_summarization,
        config=build_config(request.config),
    )
    return build_response(result)


@router.post("/api/summarize", response_model=SummarizeResponse)
async def summarize(request: SummarizeRequest) -> SummarizeResponse:
    """Regenerate the summary of a single section (e.g. after a reviewer edit)."""
    provider = create_summarization_provider(prompt=request.prompt)

    try:
        result = await provider.summarize(request.text, request.label)
    except (openai.APIStatusError, anthropic.APIStatusError) as exc:
        # Upstream overloaded or rejected the request; not a client error.
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc
    except (openai.APIConnectionError, anthropic.APIConnectionError) as exc:
        raise HTTPException(status_code=503, detail="LLM unavailable: connection error") from exc
    except ValueError as exc:
        # Includes json.JSONDecodeError
        raise HTTPException(status_code=502, detail=f"Invalid LLM response: {exc}") from exc

    return SummarizeResponse(summary=result.summary, bullets=result.bullets)
