"""
SQLite database operations for VibeFlow
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from .config import get_data_dir


# Database schema version for migrations
SCHEMA_VERSION = 2


def get_database_path() -> Path:
    """Get the path to the SQLite database file."""
    return get_data_dir() / "vibeflow.db"


@contextmanager
def get_db_connection(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with proper cleanup and concurrency support."""
    path = db_path or get_database_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    # check_same_thread=False: FastAPI may resolve a dependency and run the
    # handler on different worker threads
    conn = sqlite3.connect(path, timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    # WAL allows reads during writes
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    try:
        yield conn
    finally:
        conn.close()


def migrate_database(conn: sqlite3.Connection, current_version: int) -> None:
    """Migrate database from current_version to latest schema."""
    if current_version < 1:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT UNIQUE NOT NULL,
                password TEXT NOT NULL,
                display_name TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        conn.execute("""
            CREATE TABLE IF NOT EXISTS songs (
                id TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                artist TEXT NOT NULL,
                album TEXT,
                cover_url TEXT,
                audio_path TEXT,
                duration INTEGER DEFAULT 0,
                added_at TEXT NOT NULL,
                is_favorite INTEGER DEFAULT 0,
                genre TEXT,
                source_type TEXT NOT NULL, -- 'upload' or 'youtube'
                source_url TEXT,
                FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
            )
        """)

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_songs_user_id ON songs (user_id, added_at)"
        )

    if current_version < 2:
        # v2: server-side session store for cookie auth
        conn.execute("""
            CREATE TABLE IF NOT EXISTS sessions (
                token TEXT PRIMARY KEY,
                user_id INTEGER NOT NULL,
                created_at REAL NOT NULL,
                expires_at REAL NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
            )
        """)
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_sessions_expires_at ON sessions (expires_at)"
        )

    conn.commit()


def init_database(db_path: Optional[Path] = None) -> None:
    """Create tables and run pending migrations."""
    with get_db_connection(db_path) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """)
        row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        if current_version < SCHEMA_VERSION:
            logger.info(
                f"Migrating database from v{current_version} to v{SCHEMA_VERSION}"
            )
            migrate_database(conn, current_version)
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
