"""Library domain - songs, the remote library store and its local cache.

This domain handles:
- Song model and wire-format mapping
- Server-side persistence of accounts and songs (SQLite)
- HTTP client for the library store
- Favorite/delete synchronization of the cached library
"""

from .client import LibraryClient, raise_for_status
from .metadata import AudioMetadata, read_audio_metadata
from .exceptions import (
    NotAuthenticatedError,
    RemoteUnavailableError,
    SongNotFoundError,
    ValidationFailedError,
    VibeFlowError,
)
from .models import (
    Song,
    SourceType,
    format_duration,
    parse_timestamp,
    song_from_api,
    sort_newest_first,
)
from .synchronizer import LibraryStore, LibrarySynchronizer

__all__ = [
    # Models
    "Song",
    "SourceType",
    "format_duration",
    "parse_timestamp",
    "song_from_api",
    "sort_newest_first",
    # Errors
    "VibeFlowError",
    "NotAuthenticatedError",
    "RemoteUnavailableError",
    "SongNotFoundError",
    "ValidationFailedError",
    # Metadata
    "AudioMetadata",
    "read_audio_metadata",
    # Store
    "LibraryClient",
    "LibraryStore",
    "LibrarySynchronizer",
    "raise_for_status",
]
