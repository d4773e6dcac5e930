"""Playback domain - engine integration and the queue/history controller.

This domain handles:
- MPV player integration via JSON IPC
- Transport state (playing, paused, stopped)
- Queue, history, repeat and shuffle semantics
"""

from .controller import (
    PlaybackController,
    PlaybackSession,
    PlaybackSnapshot,
    RepeatMode,
)
from .engine import (
    EngineError,
    MpvEngine,
    PlaybackEngine,
    check_mpv_available,
)

__all__ = [
    # Controller
    "PlaybackController",
    "PlaybackSession",
    "PlaybackSnapshot",
    "RepeatMode",
    # Engine
    "EngineError",
    "MpvEngine",
    "PlaybackEngine",
    "check_mpv_available",
]
