"""Transcript upload endpoint: normalize a transcript file into chunks."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile

from src.api.models import ParsedTranscriptResponse, TranscriptChunkModel
from src.ingestion.parsers import parse_transcript

router = APIRouter()

# 10 MB upload limit
MAX_UPLOAD_BYTES = 10 * 1024 * 1024

# Extensions accepted as transcript files, mapped to parser formats
TRANSCRIPT_FORMATS = {"vtt": "vtt", "txt": "text", "json": "json"}


@router.post("/api/transcripts/parse", response_model=ParsedTranscriptResponse)
async def parse_transcript_file(
    file: Annotated[UploadFile, File(...)],
) -> ParsedTranscriptResponse:
    """Parse an uploaded ``.json``, ``.vtt`` or ``.txt`` transcript.

    JSON may be stored transcript chunks or Whisper ``verbose_json`` output.
    """
    raw = await file.read()
    if len(raw) > MAX_UPLOAD_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {MAX_UPLOAD_BYTES // (1024 * 1024)} MB.",
        )

    filename = file.filename or ""
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    fmt = TRANSCRIPT_FORMATS.get(ext)
    if fmt is None:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type {ext!r}. Supported: {sorted(TRANSCRIPT_FORMATS)}",
        )

    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="Transcript must be UTF-8 text") from exc

    try:
        chunks = parse_transcript(content, fmt)
    except (ValueError, KeyError, TypeError) as exc:
        # json.JSONDecodeError is a ValueError
        raise HTTPException(status_code=400, detail=f"Could not parse transcript: {exc}") from exc

    return ParsedTranscriptResponse(
        format=fmt,
        num_chunks=len(chunks),
        chunks=[TranscriptChunkModel.model_validate(c) for c in chunks],
    )
