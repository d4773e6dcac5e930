"""
Queue and history controller for the VibeFlow player.

Owns the PlaybackSession, drives the engine, and routes library mutations
through the LibrarySynchronizer. Single-threaded: every public method and
engine callback runs to completion before the next one starts.
"""

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, NamedTuple, Optional

from loguru import logger

from vibeflow.domain.library.exceptions import VibeFlowError
from vibeflow.domain.library.models import Song
from vibeflow.domain.library.synchronizer import LibrarySynchronizer

from .engine import EngineError, PlaybackEngine

# Past this many seconds, "previous" restarts the current song instead
RESTART_THRESHOLD = 3.0


class RepeatMode(str, Enum):
    OFF = "off"
    ALL = "all"
    ONE = "one"

    def next(self) -> "RepeatMode":
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]


@dataclass
class PlaybackSession:
    """Mutable player state for one running client."""

    current_song: Optional[Song] = None
    queue: list[Song] = field(default_factory=list)
    history: list[Song] = field(default_factory=list)
    is_playing: bool = False
    position: float = 0.0
    duration: float = 0.0
    volume: int = 80
    repeat_mode: RepeatMode = RepeatMode.OFF
    shuffle_enabled: bool = False


class PlaybackSnapshot(NamedTuple):
    """Immutable copy of a PlaybackSession handed to subscribers."""

    current_song: Optional[Song]
    queue: tuple[Song, ...]
    history: tuple[Song, ...]
    is_playing: bool
    position: float
    duration: float
    volume: int
    repeat_mode: RepeatMode
    shuffle_enabled: bool


Listener = Callable[[PlaybackSnapshot], None]


class PlaybackController:
    """Queue/history state machine on top of a PlaybackEngine."""

    def __init__(
        self,
        engine: PlaybackEngine,
        synchronizer: LibrarySynchronizer,
        repeat_mode: RepeatMode | str = RepeatMode.OFF,
        shuffle: bool = False,
        volume: int = 80,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.synchronizer = synchronizer
        self.session = PlaybackSession(
            volume=max(0, min(100, volume)),
            repeat_mode=RepeatMode(repeat_mode),
            shuffle_enabled=shuffle,
        )
        self._rng = rng or random.Random()
        self._listeners: list[Listener] = []

        engine.on_position_changed(self._on_position_changed)
        engine.on_duration_known(self._on_duration_known)
        engine.on_completed(self._on_completed)

    # Observation

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a state-change listener. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> PlaybackSnapshot:
        s = self.session
        return PlaybackSnapshot(
            current_song=s.current_song,
            queue=tuple(s.queue),
            history=tuple(s.history),
            is_playing=s.is_playing,
            position=s.position,
            duration=s.duration,
            volume=s.volume,
            repeat_mode=s.repeat_mode,
            shuffle_enabled=s.shuffle_enabled,
        )

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    @property
    def library(self) -> list[Song]:
        return self.synchronizer.songs

    # Transport

    def play_song(self, song: Song) -> bool:
        """Make `song` current and start it.

        The outgoing song goes to history only if `song` has a different id.
        Returns False if the engine could not start it (session is Stopped).
        """
        current = self.session.current_song
        if current is not None and current.id != song.id:
            self.session.history.append(current)
        return self._start(song)

    def _start(self, song: Song) -> bool:
        session = self.session
        session.current_song = song
        session.is_playing = True
        session.position = 0.0
        session.duration = float(song.duration)

        if not song.audio_url:
            logger.error(f"Song {song.id} has no audio locator")
            self._stop()
            self._notify()
            return False

        try:
            if self.engine.source == song.audio_url:
                self.engine.resume()
            else:
                self.engine.load(song.audio_url)
                self.engine.play()
        except EngineError as e:
            logger.error(f"Could not play {song.id}: {e}")
            self._stop()
            self._notify()
            return False

        logger.info(f"Now playing: {song.artist} - {song.title}")
        self._notify()
        return True

    def _stop(self) -> None:
        try:
            self.engine.stop()
        except EngineError as e:
            logger.warning(f"Engine stop failed: {e}")
        session = self.session
        session.current_song = None
        session.is_playing = False
        session.position = 0.0
        session.duration = 0.0

    def toggle_play(self) -> bool:
        """Pause or resume. No-op without a current song."""
        session = self.session
        if session.current_song is None:
            return False

        try:
            if session.is_playing:
                self.engine.pause()
            else:
                self.engine.play()
        except EngineError as e:
            logger.error(f"Toggle play failed: {e}")
            return False

        session.is_playing = not session.is_playing
        self._notify()
        return True

    def play_next(self) -> bool:
        """Advance: queue first, then the library when repeating, else stop.

        Returns True if something is now playing.
        """
        session = self.session
        if session.queue:
            return self.play_song(session.queue.pop(0))

        if session.repeat_mode != RepeatMode.OFF:
            successor = self._library_successor()
            if successor is not None:
                return self.play_song(successor)

        logger.debug("Nothing left to play, stopping")
        self._stop()
        self._notify()
        return False

    def _library_successor(self) -> Optional[Song]:
        library = self.synchronizer.songs
        if not library:
            return None

        current = self.session.current_song
        if self.session.shuffle_enabled:
            candidates = [s for s in library if current is None or s.id != current.id]
            return self._rng.choice(candidates or library)

        index = self.synchronizer.index_of(current.id) if current else -1
        return library[(index + 1) % len(library)]

    def play_previous(self) -> bool:
        """Restart the current song if past 3s, else go back one in history."""
        session = self.session
        if session.current_song is not None and self.engine.position > RESTART_THRESHOLD:
            return self.seek(0)

        if session.history:
            # The abandoned song does not go back onto history
            return self._start(session.history.pop())

        return False

    def seek(self, seconds: float) -> bool:
        session = self.session
        if session.current_song is None:
            return False

        target = max(0.0, float(seconds))
        if session.duration > 0:
            target = min(target, session.duration)

        try:
            self.engine.set_position(target)
        except EngineError as e:
            logger.error(f"Seek failed: {e}")
            return False

        session.position = target
        self._notify()
        return True

    # Queue

    def add_to_queue(self, songs: list[Song]) -> None:
        self.session.queue.extend(songs)
        self._notify()

    def set_queue(self, songs: list[Song]) -> None:
        self.session.queue = list(songs)
        self._notify()

    def clear_queue(self) -> None:
        self.session.queue = []
        self._notify()

    def play_mix(self, songs: list[Song]) -> bool:
        """Play the first song and queue the rest (vibe mix)."""
        if not songs:
            return False
        self.session.queue = list(songs[1:])
        return self.play_song(songs[0])

    # Modes

    def set_repeat_mode(self, mode: RepeatMode | str) -> None:
        self.session.repeat_mode = RepeatMode(mode)
        self._notify()

    def cycle_repeat_mode(self) -> RepeatMode:
        self.session.repeat_mode = self.session.repeat_mode.next()
        self._notify()
        return self.session.repeat_mode

    def toggle_shuffle(self) -> bool:
        self.session.shuffle_enabled = not self.session.shuffle_enabled
        self._notify()
        return self.session.shuffle_enabled

    def set_volume(self, volume: int) -> int:
        volume = max(0, min(100, int(volume)))
        try:
            self.engine.set_volume(volume)
        except EngineError as e:
            logger.warning(f"Set volume failed: {e}")
        self.session.volume = volume
        self._notify()
        return volume

    # Library mutations

    def refresh_library(self) -> bool:
        try:
            self.synchronizer.refresh_library()
        except VibeFlowError as e:
            logger.error(f"Failed to load library: {e}")
            return False
        self._notify()
        return True

    def toggle_like(self, song_id: str) -> bool:
        """Flip a song's favorite flag. Returns whether it took effect."""
        try:
            new_value = self.synchronizer.toggle_favorite(song_id)
        except VibeFlowError as e:
            logger.error(f"Failed to toggle favorite on {song_id}: {e}")
            return False

        current = self.session.current_song
        if current is not None and current.id == song_id:
            self.session.current_song = current._replace(is_favorite=new_value)
        self._notify()
        return True

    def remove_song(self, song_id: str) -> bool:
        """Delete a song from the library and from queue/history.

        Deleting the current song stops playback.
        """
        try:
            self.synchronizer.remove_song(song_id)
        except VibeFlowError as e:
            logger.error(f"Failed to delete song {song_id}: {e}")
            return False

        session = self.session
        session.queue = [s for s in session.queue if s.id != song_id]
        session.history = [s for s in session.history if s.id != song_id]
        if session.current_song is not None and session.current_song.id == song_id:
            self._stop()
        self._notify()
        return True

    # Engine callbacks

    def _on_position_changed(self, position: float) -> None:
        if self.session.current_song is None:
            return
        self.session.position = position
        self._notify()

    def _on_duration_known(self, duration: float) -> None:
        if self.session.current_song is None:
            return
        self.session.duration = duration
        self._notify()

    def _on_completed(self) -> None:
        song = self.session.current_song
        if song is None:
            return

        if self.session.repeat_mode == RepeatMode.ONE:
            logger.debug(f"Repeating {song.id}")
            try:
                self.engine.load(song.audio_url)
                self.engine.play()
            except EngineError as e:
                logger.error(f"Could not restart {song.id}: {e}")
                self._stop()
                self._notify()
                return
            self.session.position = 0.0
            self.session.is_playing = True
            self._notify()
            return

        self.play_next()
