"""
Playback engine abstraction and the mpv implementation.

The engine plays one audio locator at a time and reports back through
listener callbacks. Callbacks are only ever invoked from poll(), so the
caller decides which thread handles them.
"""

import json
import os
import socket
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Optional

from loguru import logger

# Minimum valid duration (seconds) - durations below this indicate metadata errors
MIN_VALID_DURATION = 10.0

# Minimum playback time before allowing "track finished" (seconds)
MIN_PLAYBACK_TIME = 3.0


class EngineError(Exception):
    """Raised when the audio backend is missing or refuses a command."""

    pass


class PlaybackEngine:
    """Base class for audio backends.

    Subclasses implement the transport methods plus `_is_finished()`;
    notification bookkeeping lives here. Completion is latched: it fires at
    most once per `load()` or `restart()`.
    """

    def __init__(self) -> None:
        self._position_listeners: list[Callable[[float], None]] = []
        self._duration_listeners: list[Callable[[float], None]] = []
        self._completed_listeners: list[Callable[[], None]] = []
        self._last_position: Optional[float] = None
        self._last_duration: float = 0.0
        self._completed = False

    # Listener registration

    def on_position_changed(self, callback: Callable[[float], None]) -> None:
        self._position_listeners.append(callback)

    def on_duration_known(self, callback: Callable[[float], None]) -> None:
        self._duration_listeners.append(callback)

    def on_completed(self, callback: Callable[[], None]) -> None:
        self._completed_listeners.append(callback)

    # Transport (backend specific)

    @property
    def source(self) -> Optional[str]:
        raise NotImplementedError

    @property
    def position(self) -> float:
        raise NotImplementedError

    @property
    def duration(self) -> float:
        raise NotImplementedError

    def load(self, locator: str) -> None:
        raise NotImplementedError

    def play(self) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError

    def set_position(self, seconds: float) -> None:
        raise NotImplementedError

    def set_volume(self, volume: int) -> None:
        raise NotImplementedError

    def _is_finished(self) -> bool:
        raise NotImplementedError

    def restart(self) -> None:
        """Rewind the loaded track to the start and re-arm completion."""
        self.set_position(0.0)
        self._reset_tracking()

    def resume(self) -> None:
        """Continue the loaded track, rewinding first if it already ended."""
        if self._completed:
            self.restart()
        else:
            # Report the real position on the next poll
            self._last_position = None
        self.play()

    # Notifications

    def _reset_tracking(self) -> None:
        """Call from load()/stop() so the next track starts fresh."""
        self._last_position = None
        self._last_duration = 0.0
        self._completed = False

    def poll(self) -> None:
        """Sample the backend and emit position/duration/completion events."""
        if self.source is None:
            return

        duration = self.duration
        if duration > 0 and abs(duration - self._last_duration) >= 0.1:
            self._last_duration = duration
            for callback in list(self._duration_listeners):
                callback(duration)

        position = self.position
        if self._last_position is None or abs(position - self._last_position) >= 0.05:
            self._last_position = position
            for callback in list(self._position_listeners):
                callback(position)

        if not self._completed and self._is_finished():
            self._completed = True
            logger.debug(f"Track finished: {self.source}")
            for callback in list(self._completed_listeners):
                callback()


def check_mpv_available() -> bool:
    """Check if MPV is available on the system."""
    try:
        result = subprocess.run(
            ["mpv", "--version"], capture_output=True, text=True, timeout=5
        )
        return result.returncode == 0
    except (subprocess.SubprocessError, FileNotFoundError, OSError):
        return False


class MpvEngine(PlaybackEngine):
    """mpv subprocess driven over its JSON IPC socket."""

    def __init__(self, socket_path: Optional[str] = None, volume: int = 80):
        super().__init__()
        if not socket_path:
            socket_path = str(Path(tempfile.gettempdir()) / f"vibeflow-mpv-{os.getpid()}")
        self.socket_path = socket_path
        self.volume = max(0, min(100, volume))
        self.process: Optional[subprocess.Popen] = None
        self._source: Optional[str] = None
        self._started_at: Optional[float] = None

    # Process management

    def start(self) -> None:
        """Start MPV with JSON IPC.

        Raises:
            EngineError: mpv is not installed or the socket never came up
        """
        if self.is_running():
            return
        if not check_mpv_available():
            raise EngineError("mpv not found. Install it with your package manager.")

        logger.info(f"Starting MPV player with socket: {self.socket_path}")

        if os.path.exists(self.socket_path):
            logger.debug(f"Removing existing socket: {self.socket_path}")
            os.unlink(self.socket_path)

        cmd = [
            "mpv",
            "--idle=yes",
            "--no-video",
            "--no-terminal",
            f"--input-ipc-server={self.socket_path}",
            f"--volume={self.volume}",
            "--keep-open=yes",
            "--load-scripts=no",
        ]

        try:
            self.process = subprocess.Popen(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
            )
        except (subprocess.SubprocessError, OSError) as e:
            raise EngineError(f"Failed to start MPV: {e}")

        timeout = 5.0
        start_time = time.time()
        while not os.path.exists(self.socket_path):
            if time.time() - start_time > timeout:
                self.process.kill()
                self.process = None
                raise EngineError(f"MPV socket creation timeout after {timeout}s")
            time.sleep(0.1)

        if not self._command(["get_property", "idle-active"]):
            self.process.kill()
            self.process = None
            raise EngineError("MPV socket connection test failed")

        logger.info("MPV started successfully")

    def close(self) -> None:
        """Stop MPV process and cleanup."""
        if self.process:
            try:
                self.process.kill()
                self.process.wait(timeout=2.0)
            except (OSError, subprocess.TimeoutExpired):
                pass  # Already gone
            self.process = None

        if os.path.exists(self.socket_path):
            try:
                os.unlink(self.socket_path)
            except OSError:
                pass
        self._source = None

    def is_running(self) -> bool:
        if not self.process or self.process.poll() is not None:
            return False
        return os.path.exists(self.socket_path)

    # IPC

    def _send(self, command: list[Any]) -> Optional[dict[str, Any]]:
        """Send one JSON IPC command and return the decoded reply."""
        if not os.path.exists(self.socket_path):
            return None

        try:
            with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
                sock.settimeout(2.0)
                sock.connect(self.socket_path)
                sock.sendall((json.dumps({"command": command}) + "\n").encode("utf-8"))
                response = sock.recv(4096).decode("utf-8").strip()
        except OSError:
            return None

        # mpv may interleave event lines; the reply is the line with "error"
        for line in response.splitlines():
            try:
                data = json.loads(line)
            except json.JSONDecodeError:
                continue
            if "error" in data:
                return data
        return None

    def _command(self, command: list[Any]) -> bool:
        reply = self._send(command)
        return reply is not None and reply.get("error") == "success"

    def _get_property(self, name: str) -> Any:
        reply = self._send(["get_property", name])
        if reply and reply.get("error") == "success":
            return reply.get("data")
        return None

    def _require(self, command: list[Any]) -> None:
        if not self._command(command):
            raise EngineError(f"mpv rejected command: {command[0]}")

    # Transport

    @property
    def source(self) -> Optional[str]:
        return self._source

    @property
    def position(self) -> float:
        if self._source is None:
            return 0.0
        return self._get_property("time-pos") or 0.0

    @property
    def duration(self) -> float:
        if self._source is None:
            return 0.0
        return self._get_property("duration") or 0.0

    def load(self, locator: str) -> None:
        """Replace the current file, paused until play() is called."""
        self.start()
        self._require(["set_property", "pause", True])
        self._require(["loadfile", locator, "replace"])
        self._source = locator
        self._started_at = time.time()
        self._reset_tracking()
        logger.debug(f"Loaded: {locator}")

    def play(self) -> None:
        self._require(["set_property", "pause", False])

    def pause(self) -> None:
        self._require(["set_property", "pause", True])

    def stop(self) -> None:
        if self.is_running():
            self._command(["stop"])
        self._source = None
        self._started_at = None
        self._reset_tracking()

    def set_position(self, seconds: float) -> None:
        self._require(["seek", seconds, "absolute"])

    def restart(self) -> None:
        super().restart()
        self._started_at = time.time()

    def set_volume(self, volume: int) -> None:
        self.volume = max(0, min(100, volume))
        if self.is_running():
            self._require(["set_property", "volume", self.volume])

    def _is_finished(self) -> bool:
        """Check if track finished with multiple validation layers.

        Safeguards:
        1. Minimum playback time (prevents incomplete metadata issues)
        2. Duration sanity check (detects corrupted/incomplete metadata)
        3. Position-based completion check
        4. EOF flag validation (with position confirmation)
        """
        if not self.is_running() or self._source is None:
            return False

        if self._started_at is not None:
            if time.time() - self._started_at < MIN_PLAYBACK_TIME:
                return False

        position = self._get_property("time-pos") or 0.0
        duration = self._get_property("duration") or 0.0
        eof = self._get_property("eof-reached")

        if 0 < duration < MIN_VALID_DURATION:
            # Only trust eof when position is very close
            return eof is True and position >= duration - 0.1

        finished_by_position = duration > 0 and position >= duration - 0.5
        finished_by_eof = eof is True and duration > 0 and position >= duration - 1.0
        return finished_by_position or finished_by_eof
