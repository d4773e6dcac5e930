"""
Favorite/delete synchronization between the local library cache and the store.

The remote store is the source of truth: every mutation is followed by a full
refresh, and the cache is only ever replaced wholesale.
"""

from typing import Optional, Protocol

from loguru import logger

from .exceptions import SongNotFoundError
from .models import Song, sort_newest_first


class LibraryStore(Protocol):
    """The subset of the library store the synchronizer needs."""

    def list_songs(self) -> list[Song]: ...

    def set_favorite(self, song_id: str, is_favorite: bool) -> Song: ...

    def delete_song(self, song_id: str) -> None: ...


class LibrarySynchronizer:
    """Owns the cached library list for one client."""

    def __init__(self, store: LibraryStore):
        self.store = store
        self._songs: list[Song] = []

    @property
    def songs(self) -> list[Song]:
        return list(self._songs)

    def find(self, song_id: str) -> Optional[Song]:
        for song in self._songs:
            if song.id == song_id:
                return song
        return None

    def index_of(self, song_id: str) -> int:
        """Position of a song in the cached order, -1 if absent."""
        for i, song in enumerate(self._songs):
            if song.id == song_id:
                return i
        return -1

    def refresh_library(self) -> list[Song]:
        """Fetch the full library and replace the cache, newest first.

        Raises:
            VibeFlowError: Any store failure; the cache is left untouched
        """
        songs = sort_newest_first(self.store.list_songs())
        self._songs = songs
        logger.debug(f"Library refreshed: {len(songs)} songs")
        return self.songs

    def toggle_favorite(self, song_id: str) -> bool:
        """Flip a song's favorite flag remotely, then refresh.

        Returns:
            The new favorite value

        Raises:
            SongNotFoundError: Song is not in the cached library
            VibeFlowError: Store failure (cache untouched)
        """
        song = self.find(song_id)
        if song is None:
            raise SongNotFoundError(song_id)

        new_value = not song.is_favorite
        self.store.set_favorite(song_id, new_value)
        logger.info(f"Set favorite={new_value} on {song_id}")
        self.refresh_library()
        return new_value

    def remove_song(self, song_id: str) -> None:
        """Delete a song remotely, then refresh.

        Raises:
            VibeFlowError: Store failure (cache untouched)
        """
        self.store.delete_song(song_id)
        logger.info(f"Deleted song {song_id}")
        self.refresh_library()
