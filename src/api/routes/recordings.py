"""Recording endpoints: analyze a stored recording, replace its transcript."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query

from src.analysis import analyze_transcript
from src.api.models import AnalyzeResponse, TranscriptChunksRequest, TranscriptChunksResponse
from src.api.routes.analyze import build_response
from src.ingestion.parsers import chunks_from_records
from src.ingestion.storage import (
    fetch_recording,
    get_supabase_client,
    store_segments,
    store_transcript_chunks,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/recordings/{recording_id}/analyze", response_model=AnalyzeResponse)
async def analyze_recording(
    recording_id: str,
    skip_summarization: Annotated[bool, Query()] = False,
) -> AnalyzeResponse:
    """Detect and summarize the sections of a stored recording.

    Sections are saved on the recording's ``segments`` column; ignored
    ranges are only returned.
    """
    client = get_supabase_client()
    recording = fetch_recording(client, recording_id)
    if recording is None:
        raise HTTPException(status_code=404, detail="Recording not found")

    records = recording.get("transcript_chunks") or []
    if not isinstance(records, list) or not records:
        raise HTTPException(
            status_code=400,
            detail="Recording has no transcript to analyze",
        )

    duration_seconds = recording.get("duration") or 0
    if duration_seconds <= 0:
        raise HTTPException(status_code=400, detail="Recording has no duration")

    try:
        chunks = chunks_from_records(records)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Malformed transcript: {exc}") from exc

    result = await analyze_transcript(
        chunks,
        int(duration_seconds * 1000),
        skip_summarization=skip_summarization,
    )
    response = build_response(result)

    store_segments(
        client,
        recording_id,
        [s.model_dump(by_alias=True, mode="json") for s in response.sections],
    )
    logger.info(
        "Stored %d sections for recording %s", len(response.sections), recording_id
    )
    return response


@router.put(
    "/api/recordings/{recording_id}/transcript-chunks",
    response_model=TranscriptChunksResponse,
)
async def update_transcript_chunks(
    recording_id: str,
    request: TranscriptChunksRequest,
) -> TranscriptChunksResponse:
    """Replace the transcript chunks stored on a recording."""
    client = get_supabase_client()
    rows = [
        c.model_dump(by_alias=True, mode="json", exclude_none=True)
        for c in request.transcript_chunks
    ]
    if not store_transcript_chunks(client, recording_id, rows):
        raise HTTPException(status_code=404, detail="Recording not found")

    return TranscriptChunksResponse(recording_id=recording_id, num_chunks=len(rows))
