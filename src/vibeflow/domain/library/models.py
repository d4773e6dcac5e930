"""
Music library domain models.

Contains data structures for representing songs in a user's library.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, NamedTuple


class SourceType(str, Enum):
    """Where a song came from."""

    UPLOAD = "upload"
    YOUTUBE = "youtube"


class Song(NamedTuple):
    """A song in the user's library.

    Owned by the library store; the player holds a read-mostly cached copy.
    Only is_favorite ever changes, always through `song._replace(...)`.
    """
    id: str
    title: str
    artist: str
    album: Optional[str] = None
    cover_url: Optional[str] = None
    audio_url: Optional[str] = None  # URL or path the playback engine can open
    duration: int = 0  # in seconds, 0 if unknown
    added_at: float = 0.0  # Unix timestamp, newest first in library views
    is_favorite: bool = False
    genre: Optional[str] = None
    source_type: SourceType = SourceType.UPLOAD


def parse_timestamp(value: Any) -> float:
    """Convert an ISO-8601 string or a number into a Unix timestamp.

    Naive ISO strings are treated as UTC. Missing/unparseable values give 0.0.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        # Millisecond timestamps from JS clients
        return value / 1000.0 if value > 1e11 else float(value)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def song_from_api(data: dict[str, Any], base_url: Optional[str] = None) -> Song:
    """Map a library store payload (camelCase JSON) onto a Song.

    Args:
        data: Song object as returned by the library API
        base_url: Server root used to absolutize relative audio URLs

    Returns:
        Song instance
    """
    audio_url = data.get("audioUrl")
    if audio_url and base_url and audio_url.startswith("/"):
        audio_url = base_url.rstrip("/") + audio_url

    try:
        source_type = SourceType(data.get("sourceType") or SourceType.UPLOAD.value)
    except ValueError:
        source_type = SourceType.UPLOAD

    return Song(
        id=str(data["id"]),
        title=data.get("title") or "Unknown Title",
        artist=data.get("artist") or "Unknown Artist",
        album=data.get("album"),
        cover_url=data.get("coverUrl"),
        audio_url=audio_url,
        duration=max(0, int(data.get("duration") or 0)),
        added_at=parse_timestamp(data.get("addedAt")),
        is_favorite=bool(data.get("isFavorite")),
        genre=data.get("genre"),
        source_type=source_type,
    )


def sort_newest_first(songs: list[Song]) -> list[Song]:
    """Order songs by added_at descending; ties keep store order (stable sort)."""
    return sorted(songs, key=lambda song: song.added_at, reverse=True)


def format_duration(seconds: float) -> str:
    """Format time in seconds to MM:SS format."""
    if seconds < 0:
        return "00:00"

    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes:02d}:{secs:02d}"
