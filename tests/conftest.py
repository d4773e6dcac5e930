"""Shared fixtures: song factory, in-memory library store, scripted engine,
and an isolated data/config directory for server tests."""

from typing import Optional

import pytest

from vibeflow.domain.library.exceptions import RemoteUnavailableError, SongNotFoundError
from vibeflow.domain.library.models import Song
from vibeflow.domain.library.synchronizer import LibrarySynchronizer
from vibeflow.domain.playback.controller import PlaybackController
from vibeflow.domain.playback.engine import EngineError, PlaybackEngine


def make_song(song_id: str, added_at: float = 0.0, **kwargs) -> Song:
    """Song with a playable locator derived from its id."""
    kwargs.setdefault("title", f"Title {song_id}")
    kwargs.setdefault("artist", f"Artist {song_id}")
    kwargs.setdefault("audio_url", f"http://test/audio/{song_id}.mp3")
    kwargs.setdefault("duration", 200)
    return Song(id=song_id, added_at=added_at, **kwargs)


class FakeStore:
    """In-memory library store. Set `fail = True` to simulate an outage."""

    def __init__(self, songs: Optional[list[Song]] = None):
        self.songs: list[Song] = list(songs or [])
        self.fail = False
        self.calls: list[tuple] = []

    def _check(self) -> None:
        if self.fail:
            raise RemoteUnavailableError("store offline")

    def list_songs(self) -> list[Song]:
        self.calls.append(("list_songs",))
        self._check()
        return list(self.songs)

    def set_favorite(self, song_id: str, is_favorite: bool) -> Song:
        self.calls.append(("set_favorite", song_id, is_favorite))
        self._check()
        for i, song in enumerate(self.songs):
            if song.id == song_id:
                self.songs[i] = song._replace(is_favorite=is_favorite)
                return self.songs[i]
        raise SongNotFoundError(song_id)

    def delete_song(self, song_id: str) -> None:
        self.calls.append(("delete_song", song_id))
        self._check()
        before = len(self.songs)
        self.songs = [s for s in self.songs if s.id != song_id]
        if len(self.songs) == before:
            raise SongNotFoundError(song_id)


class FakeEngine(PlaybackEngine):
    """Scripted engine: tests set position/duration and trigger completion."""

    def __init__(self):
        super().__init__()
        self._source: Optional[str] = None
        self.current_position = 0.0
        self.current_duration = 0.0
        self.playing = False
        self.finished = False
        self.volume = 80
        self.fail_load = False
        self.loads: list[str] = []

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def position(self) -> float:
        return self.current_position

    @property
    def duration(self) -> float:
        return self.current_duration

    def load(self, locator: str) -> None:
        if self.fail_load:
            raise EngineError(f"cannot load {locator}")
        self.loads.append(locator)
        self._source = locator
        self.current_position = 0.0
        self.finished = False
        self.playing = False
        self._reset_tracking()

    def play(self) -> None:
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def stop(self) -> None:
        self._source = None
        self.playing = False
        self.current_position = 0.0
        self._reset_tracking()

    def set_position(self, seconds: float) -> None:
        self.current_position = seconds

    def set_volume(self, volume: int) -> None:
        self.volume = volume

    def restart(self) -> None:
        self.finished = False
        super().restart()

    def _is_finished(self) -> bool:
        return self.finished

    def finish_track(self) -> None:
        """Simulate natural end-of-track followed by a poll."""
        self.current_position = self.current_duration
        self.finished = True
        self.poll()


@pytest.fixture
def song_factory():
    return make_song


@pytest.fixture
def library_songs() -> list[Song]:
    """Three songs, stored oldest first; the cached order is S0, S1, S2."""
    return [make_song("S2", 100.0), make_song("S1", 200.0), make_song("S0", 300.0)]


@pytest.fixture
def store(library_songs) -> FakeStore:
    return FakeStore(library_songs)


@pytest.fixture
def synchronizer(store) -> LibrarySynchronizer:
    sync = LibrarySynchronizer(store)
    sync.refresh_library()
    return sync


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def controller(engine, synchronizer) -> PlaybackController:
    return PlaybackController(engine, synchronizer)


@pytest.fixture
def vibeflow_env(tmp_path, monkeypatch):
    """Point config and data directories at a temp dir and clear env overrides."""
    data_dir = tmp_path / "data"
    config_home = tmp_path / "config"
    monkeypatch.setenv("VIBEFLOW_DATA_DIR", str(data_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    for name in ("OPENAI_API_KEY", "VIBEFLOW_BASE_URL", "ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
