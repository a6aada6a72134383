"""Transcript parsers producing timestamped transcript chunks.

Supported inputs: stored chunk JSON, Whisper ``verbose_json`` output, WebVTT,
and plain text with optional ``[MM:SS]`` line prefixes.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from typing import Any

from src.segmenter.models import TranscriptChunk

_VTT_TIMESTAMP_RE = re.compile(
    r"(\d{1,2}:\d{2}:\d{2}[.,]\d{3}|\d{2}:\d{2}[.,]\d{3})\s*-->\s*"
    r"(\d{1,2}:\d{2}:\d{2}[.,]\d{3}|\d{2}:\d{2}[.,]\d{3})"
)
# Teams-style voice tag; WebVTT allows the closing </v> to be omitted.
_VTT_VOICE_RE = re.compile(r"^<v ([^>]+)>(.*?)(?:</v>)?$", re.DOTALL)
_TEXT_TIMESTAMP_RE = re.compile(r"^\[(?:(\d+):)?(\d{1,2}):(\d{2})\]\s*(.*)$")


def _parse_vtt_timestamp(ts: str) -> int:
    """Convert a VTT timestamp (HH:MM:SS.mmm or MM:SS.mmm) to milliseconds."""
    parts = ts.strip().replace(",", ".").split(":")
    if len(parts) == 3:
        hours, minutes, seconds = parts
    elif len(parts) == 2:
        hours = "0"
        minutes, seconds = parts
    else:
        return 0
    return round((int(hours) * 3600 + int(minutes) * 60 + float(seconds)) * 1000)


def parse_vtt(content: str) -> list[TranscriptChunk]:
    """Parse a WebVTT file; each cue becomes one chunk at its start time.

    ``<v Speaker>`` voice tags are stripped, keeping only the spoken text.
    """
    chunks: list[TranscriptChunk] = []

    lines = content.strip().splitlines()
    i = 0
    while i < len(lines):
        match = _VTT_TIMESTAMP_RE.search(lines[i].strip())
        if not match:
            i += 1
            continue

        start = _parse_vtt_timestamp(match.group(1))

        # Collect text lines until blank line or next timestamp / end
        text_lines: list[str] = []
        i += 1
        while i < len(lines) and lines[i].strip() and not _VTT_TIMESTAMP_RE.search(lines[i]):
            text_lines.append(lines[i].strip())
            i += 1

        text = " ".join(text_lines)
        voice_match = _VTT_VOICE_RE.match(text)
        if voice_match:
            text = voice_match.group(2).strip()

        if text:
            chunks.append(TranscriptChunk(text=text, timestamp_ms=start, is_final=True))

    return chunks


def parse_plain_text(content: str) -> list[TranscriptChunk]:
    """Parse a plain-text transcript, one chunk per non-empty line.

    Lines may start with ``[MM:SS]`` or ``[H:MM:SS]``; lines without a
    prefix reuse the previous line's timestamp (0 at the start).
    """
    chunks: list[TranscriptChunk] = []
    timestamp_ms = 0

    for line in content.strip().splitlines():
        line = line.strip()
        if not line:
            continue

        match = _TEXT_TIMESTAMP_RE.match(line)
        if match:
            hours, minutes, seconds, line = match.groups()
            timestamp_ms = (int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds)) * 1000
            if not line:
                continue

        chunks.append(TranscriptChunk(text=line, timestamp_ms=timestamp_ms, is_final=True))

    return chunks


def chunks_from_records(records: list[Any]) -> list[TranscriptChunk]:
    """Build chunks from stored records (``{"text", "timestampMs", "isFinal"}``).

    Raises:
        ValueError: If a record is not an object, lacks text/timestamp, or
            has a negative timestamp.
    """
    if not isinstance(records, list):
        raise ValueError("Transcript chunks must be a list")
    chunks: list[TranscriptChunk] = []
    for record in records:
        if not isinstance(record, dict):
            raise ValueError(f"Transcript chunk must be an object, got {type(record).__name__}")
        timestamp = record.get("timestampMs", record.get("timestamp_ms"))
        if "text" not in record or not isinstance(timestamp, int | float):
            raise ValueError(f"Transcript chunk needs text and timestampMs: {record!r}")
        if timestamp < 0:
            raise ValueError(f"Transcript chunk timestamp must not be negative: {record!r}")
        is_final = record.get("isFinal", record.get("is_final"))
        chunks.append(
            TranscriptChunk(
                text=str(record["text"]),
                timestamp_ms=int(timestamp),
                is_final=is_final if isinstance(is_final, bool) else None,
            )
        )
    return chunks


def _whisper_chunks(segments: Any) -> list[TranscriptChunk]:
    """Whisper ``verbose_json`` segments; ``start`` is in seconds."""
    if not isinstance(segments, list):
        raise ValueError("Whisper segments must be a list")
    chunks: list[TranscriptChunk] = []
    for seg in segments:
        if not isinstance(seg, dict) or not isinstance(seg.get("text"), str):
            raise ValueError(f"Whisper segment needs text: {seg!r}")
        start = seg.get("start", 0)
        if isinstance(start, bool) or not isinstance(start, int | float) or start < 0:
            raise ValueError(f"Whisper segment start must be a non-negative number: {seg!r}")
        chunks.append(
            TranscriptChunk(text=seg["text"], timestamp_ms=round(start * 1000), is_final=True)
        )
    return chunks


def parse_json(content: str) -> list[TranscriptChunk]:
    """Parse a JSON transcript.

    Supported formats:

    Stored chunks (a bare list, or under ``transcript_chunks`` / ``chunks``)::

        [{"text": "...", "timestampMs": 1200, "isFinal": true}]

    Whisper ``verbose_json`` (times in seconds)::

        {"text": "...", "segments": [{"start": 1.2, "end": 3.4, "text": "..."}]}

    A Whisper response without segments becomes a single chunk at 0 ms.
    """
    data = json.loads(content)

    if isinstance(data, list):
        return chunks_from_records(data)
    if not isinstance(data, dict):
        raise ValueError(f"Unrecognized JSON transcript format: {type(data).__name__}")

    if "transcript_chunks" in data:
        return chunks_from_records(data["transcript_chunks"])
    if "chunks" in data:
        return chunks_from_records(data["chunks"])
    if "segments" in data:
        return _whisper_chunks(data["segments"])
    if isinstance(data.get("text"), str):
        return [TranscriptChunk(text=data["text"], timestamp_ms=0, is_final=True)]

    msg = f"Unrecognized JSON transcript format. Keys: {list(data.keys())}"
    raise ValueError(msg)


def parse_transcript(content: str, format: str) -> list[TranscriptChunk]:
    """Dispatch to the correct parser based on *format*.

    Args:
        content: Raw transcript text.
        format: One of ``"vtt"``, ``"text"`` / ``"plain_text"`` / ``"txt"``,
                or ``"json"``.

    Returns:
        Parsed transcript chunks.

    Raises:
        ValueError: If *format* is not recognized.
    """
    dispatch: dict[str, Callable[[str], list[TranscriptChunk]]] = {
        "vtt": parse_vtt,
        "text": parse_plain_text,
        "plain_text": parse_plain_text,
        "txt": parse_plain_text,
        "json": parse_json,
    }

    parser = dispatch.get(format)
    if parser is None:
        msg = f"Unknown transcript format: {format!r}. Supported: {list(dispatch.keys())}"
        raise ValueError(msg)

    return parser(content)
