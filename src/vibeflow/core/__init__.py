"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database operations (SQLite)
- Logging and console output (Loguru, Rich)
"""

from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_log_file_path,
    create_default_config,
    ensure_directories,
)

from .database import (
    get_database_path,
    get_db_connection,
    init_database,
)

from .output import get_console, log, safe_print, setup_loguru

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_log_file_path",
    "create_default_config",
    "ensure_directories",
    # Database
    "get_database_path",
    "get_db_connection",
    "init_database",
    # Output
    "get_console",
    "log",
    "safe_print",
    "setup_loguru",
]
