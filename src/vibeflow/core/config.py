"""
Configuration management for VibeFlow
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from loguru import logger


@dataclass
class ServerConfig:
    """Configuration for the HTTP server (library store)."""

    host: str = "0.0.0.0"
    port: int = 3001
    audio_dir: Optional[str] = None  # Default: <data_dir>/uploads/audio
    session_days: int = 30
    cookie_secure: bool = False
    allowed_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:5173"]
    )


@dataclass
class ClientConfig:
    """Configuration for the library client used by the player."""

    base_url: str = "http://localhost:3001"
    timeout: float = 30.0


@dataclass
class PlayerConfig:
    """Configuration for music player settings."""

    mpv_socket_path: Optional[str] = None
    volume: int = 80
    repeat_mode: str = "off"  # off, all, one
    shuffle: bool = False

    def validate(self) -> None:
        """Validate player configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        valid_modes = {"off", "all", "one"}
        if self.repeat_mode not in valid_modes:
            raise ValueError(
                f"Invalid repeat_mode: {self.repeat_mode!r}. "
                f"Valid modes are: {valid_modes}"
            )
        if not 0 <= self.volume <= 100:
            raise ValueError(f"Invalid volume: {self.volume} (expected 0-100)")


@dataclass
class AIConfig:
    """Configuration for AI vibe suggestions."""

    openai_api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    enabled: bool = True
    suggestion_count: int = 5


@dataclass
class YouTubeConfig:
    """Configuration for YouTube audio extraction."""

    cookies_path: Optional[str] = None  # Default: <data_dir>/cookies.txt
    audio_format: str = "mp3"
    info_timeout: int = 60
    download_timeout: int = 300


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/vibeflow/vibeflow.log)
    )
    console_output: bool = False  # Also output to stderr (for debugging)


@dataclass
class Config:
    """Main configuration object."""

    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def audio_dir(self) -> Path:
        """Directory where uploaded and extracted audio is stored."""
        if self.server.audio_dir:
            return Path(self.server.audio_dir).expanduser()
        return get_data_dir() / "uploads" / "audio"

    def cookies_path(self) -> Path:
        """Path of the YouTube cookies.txt file."""
        if self.youtube.cookies_path:
            return Path(self.youtube.cookies_path).expanduser()
        return get_data_dir() / "cookies.txt"


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "vibeflow"
    return Path.home() / ".config" / "vibeflow"


def _find_project_config() -> Optional[Path]:
    """Find config.toml in project root by looking for pyproject.toml.

    Used during development so the project's config file is picked up even
    when the working directory is elsewhere.

    Returns:
        Path to config.toml in project root, or None if not found
    """
    current = Path(__file__).resolve().parent
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            config_path = parent / "config.toml"
            return config_path if config_path.exists() else None
    return None


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Project root (detected via pyproject.toml) - for development
    2. Current working directory
    3. XDG_CONFIG_HOME/vibeflow (or ~/.config/vibeflow)
    """
    project_config = _find_project_config()
    if project_config:
        return project_config

    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path.

    VIBEFLOW_DATA_DIR wins over XDG_DATA_HOME.
    """
    explicit = os.environ.get("VIBEFLOW_DATA_DIR")
    if explicit:
        return Path(explicit)
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "vibeflow"
    return Path.home() / ".local" / "share" / "vibeflow"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# VibeFlow Configuration

[server]
# Interface and port for `vibeflow serve`
host = "0.0.0.0"
port = 3001

# Where uploaded and extracted audio is stored (default: <data dir>/uploads/audio)
# audio_dir = "~/Music/vibeflow"

# Session cookie lifetime in days
session_days = 30

# Send the session cookie only over HTTPS
cookie_secure = false

# Origins allowed by CORS (ALLOWED_ORIGINS env var overrides)
allowed_origins = ["http://localhost:5173"]

[client]
# Library server used by the player (VIBEFLOW_BASE_URL env var overrides)
base_url = "http://localhost:3001"
timeout = 30.0

[player]
# Path for mpv socket (auto-detected if not specified)
# mpv_socket_path = "/tmp/mpv-socket"

# Default volume (0-100)
volume = 80

# What happens when the queue runs out: off, all, one
repeat_mode = "off"

# Pick random library songs when the queue runs out
shuffle = false

[ai]
# OpenAI API key for vibe suggestions (OPENAI_API_KEY env var overrides)
# openai_api_key = "your-api-key-here"
model = "gpt-4o-mini"
enabled = true

# Number of songs in a suggested mix
suggestion_count = 5

[youtube]
# Browser-exported cookies.txt used when YouTube demands a sign-in
# cookies_path = "~/.local/share/vibeflow/cookies.txt"
audio_format = "mp3"
info_timeout = 60
download_timeout = 300

[logging]
# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
level = "INFO"

# Custom log file path (default: ~/.local/share/vibeflow/vibeflow.log)
# log_file = "/path/to/custom/vibeflow.log"

# Also output logs to stderr (useful for debugging)
console_output = false
""".strip()


def load_config() -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - OPENAI_API_KEY
    - VIBEFLOW_BASE_URL
    - ALLOWED_ORIGINS (comma separated)
    """
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    config_path = get_config_path()

    if not config_path.exists():
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(create_default_config(), encoding="utf-8")
            logger.info(f"Created default configuration at: {config_path}")
        except OSError as e:
            logger.warning(f"Could not write default config to {config_path}: {e}")
        config = Config()
    else:
        try:
            with open(config_path, "rb") as f:
                toml_data = tomllib.load(f)
            config = _parse_config(toml_data)
        except (tomllib.TOMLDecodeError, OSError, ValueError, TypeError) as e:
            logger.warning(f"Error loading configuration from {config_path}: {e}")
            logger.warning("Using default configuration.")
            config = Config()

    _apply_env_overrides(config)
    return config


def _parse_config(toml_data: dict) -> Config:
    """Build a Config from parsed TOML, falling back to defaults per key."""
    config = Config()

    if "server" in toml_data:
        server_data = toml_data["server"]
        config.server = ServerConfig(
            host=server_data.get("host", config.server.host),
            port=int(server_data.get("port", config.server.port)),
            audio_dir=server_data.get("audio_dir"),
            session_days=int(
                server_data.get("session_days", config.server.session_days)
            ),
            cookie_secure=server_data.get(
                "cookie_secure", config.server.cookie_secure
            ),
            allowed_origins=server_data.get(
                "allowed_origins", config.server.allowed_origins
            ),
        )

    if "client" in toml_data:
        client_data = toml_data["client"]
        config.client = ClientConfig(
            base_url=client_data.get("base_url", config.client.base_url),
            timeout=float(client_data.get("timeout", config.client.timeout)),
        )

    if "player" in toml_data:
        player_data = toml_data["player"]
        config.player = PlayerConfig(
            mpv_socket_path=player_data.get("mpv_socket_path"),
            volume=player_data.get("volume", config.player.volume),
            repeat_mode=player_data.get("repeat_mode", config.player.repeat_mode),
            shuffle=player_data.get("shuffle", config.player.shuffle),
        )
        try:
            config.player.validate()
        except ValueError as e:
            logger.warning(f"Invalid player configuration: {e}")
            logger.warning("Using default player configuration.")
            config.player = PlayerConfig()

    if "ai" in toml_data:
        ai_data = toml_data["ai"]
        config.ai = AIConfig(
            openai_api_key=ai_data.get("openai_api_key"),
            model=ai_data.get("model", config.ai.model),
            enabled=ai_data.get("enabled", config.ai.enabled),
            suggestion_count=ai_data.get(
                "suggestion_count", config.ai.suggestion_count
            ),
        )

    if "youtube" in toml_data:
        youtube_data = toml_data["youtube"]
        config.youtube = YouTubeConfig(
            cookies_path=youtube_data.get("cookies_path"),
            audio_format=youtube_data.get(
                "audio_format", config.youtube.audio_format
            ),
            info_timeout=youtube_data.get(
                "info_timeout", config.youtube.info_timeout
            ),
            download_timeout=youtube_data.get(
                "download_timeout", config.youtube.download_timeout
            ),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> None:
    openai_api_key = os.environ.get("OPENAI_API_KEY")
    if openai_api_key:
        config.ai.openai_api_key = openai_api_key

    base_url = os.environ.get("VIBEFLOW_BASE_URL")
    if base_url:
        config.client.base_url = base_url

    allowed_origins = os.environ.get("ALLOWED_ORIGINS")
    if allowed_origins:
        config.server.allowed_origins = [
            origin.strip() for origin in allowed_origins.split(",") if origin.strip()
        ]


def get_log_file_path(config: Config) -> Path:
    """Resolve the log file path from config."""
    if config.logging.log_file:
        return Path(config.logging.log_file)
    return get_data_dir() / "vibeflow.log"


def ensure_directories() -> None:
    """Ensure all necessary directories exist."""
    get_config_dir().mkdir(parents=True, exist_ok=True)
    get_data_dir().mkdir(parents=True, exist_ok=True)
