"""Supabase storage helpers for recordings."""

from __future__ import annotations

from typing import Any, cast

from supabase import Client, create_client

from src.config import settings

RECORDINGS_TABLE = "recordings"


def get_supabase_client() -> Client:
    """Create and return a Supabase client from the configured URL and key."""
    return create_client(settings.supabase_url, settings.supabase_key)


def fetch_recording(client: Client, recording_id: str) -> dict[str, Any] | None:
    """Return the recording's transcript chunks and duration, or None if missing.

    ``duration`` is stored in seconds; ``transcript_chunks`` is a JSON array
    of ``{"text", "timestampMs", "isFinal"}`` objects.
    """
    result = (
        client.table(RECORDINGS_TABLE)
        .select("id, duration, transcript_chunks")
        .eq("id", recording_id)
        .execute()
    )
    # Supabase .data is typed as JSON (broad union); cast to concrete type.
    rows = cast(list[dict[str, Any]], result.data)
    return rows[0] if rows else None


def store_segments(
    client: Client,
    recording_id: str,
    sections: list[dict[str, Any]],
) -> None:
    """Persist serialized sections on the recording's ``segments`` column.

    Ignored ranges are derived data and are not stored.
    """
    client.table(RECORDINGS_TABLE).update({"segments": sections}).eq(
        "id", recording_id
    ).execute()


def store_transcript_chunks(
    client: Client,
    recording_id: str,
    chunks: list[dict[str, Any]],
) -> bool:
    """Replace a recording's transcript chunks; return False if it does not exist."""
    result = (
        client.table(RECORDINGS_TABLE)
        .update({"transcript_chunks": chunks})
        .eq("id", recording_id)
        .execute()
    )
    return bool(result.data)
