"""Persistence for accounts and songs (server side of the library store).

All song queries are scoped to the owning user; a song id that belongs to
another account behaves exactly like a missing one.
"""

import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .exceptions import ValidationFailedError
from .models import SourceType

SONG_COLUMNS = (
    "id, user_id, title, artist, album, cover_url, audio_path, duration, "
    "added_at, is_favorite, genre, source_type, source_url"
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# Users


def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[dict[str, Any]]:
    row = conn.execute(
        "SELECT id, email, password, display_name FROM users WHERE id = ?",
        (user_id,),
    ).fetchone()
    return dict(row) if row else None


def get_user_by_email(conn: sqlite3.Connection, email: str) -> Optional[dict[str, Any]]:
    row = conn.execute(
        "SELECT id, email, password, display_name FROM users WHERE email = ?",
        (email.strip().lower(),),
    ).fetchone()
    return dict(row) if row else None


def create_user(
    conn: sqlite3.Connection, email: str, password_hash: str, display_name: str
) -> dict[str, Any]:
    """Insert a new account. Emails are stored lowercased.

    Raises:
        ValidationFailedError: If the email is already registered
    """
    try:
        cursor = conn.execute(
            "INSERT INTO users (email, password, display_name) VALUES (?, ?, ?)",
            (email.strip().lower(), password_hash, display_name.strip()),
        )
        conn.commit()
    except sqlite3.IntegrityError:
        raise ValidationFailedError("Email already registered")

    logger.info(f"Created user #{cursor.lastrowid}")
    return get_user(conn, cursor.lastrowid)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """Strip the password hash for API responses."""
    return {
        "id": user["id"],
        "email": user["email"],
        "displayName": user["display_name"],
    }


# Songs


def song_row_to_api(row: sqlite3.Row | dict[str, Any]) -> dict[str, Any]:
    """Convert a songs row to the camelCase wire shape.

    Stored audio is exposed under /audio/<filename>; songs without a file get
    audioUrl=None.
    """
    audio_path = row["audio_path"]
    return {
        "id": row["id"],
        "title": row["title"],
        "artist": row["artist"],
        "album": row["album"],
        "coverUrl": row["cover_url"],
        "audioUrl": f"/audio/{Path(audio_path).name}" if audio_path else None,
        "duration": row["duration"] or 0,
        "addedAt": row["added_at"],
        "isFavorite": bool(row["is_favorite"]),
        "genre": row["genre"],
        "sourceType": row["source_type"],
        "sourceUrl": row["source_url"],
    }


def list_songs(conn: sqlite3.Connection, user_id: int) -> list[dict[str, Any]]:
    """All songs of a user, newest first."""
    cursor = conn.execute(
        f"SELECT {SONG_COLUMNS} FROM songs WHERE user_id = ? ORDER BY added_at DESC",
        (user_id,),
    )
    return [dict(row) for row in cursor.fetchall()]


def get_song(
    conn: sqlite3.Connection, song_id: str, user_id: int
) -> Optional[dict[str, Any]]:
    row = conn.execute(
        f"SELECT {SONG_COLUMNS} FROM songs WHERE id = ? AND user_id = ?",
        (song_id, user_id),
    ).fetchone()
    return dict(row) if row else None


def create_song(
    conn: sqlite3.Connection,
    user_id: int,
    title: Optional[str],
    artist: Optional[str],
    source_type: str = SourceType.UPLOAD.value,
    album: Optional[str] = None,
    cover_url: Optional[str] = None,
    audio_path: Optional[str] = None,
    duration: Optional[int] = 0,
    genre: Optional[str] = None,
    source_url: Optional[str] = None,
) -> dict[str, Any]:
    """Insert a song for a user and return the stored row.

    Raises:
        ValidationFailedError: Missing title/artist or unknown source type
    """
    if not title or not title.strip():
        raise ValidationFailedError("Title is required")
    if not artist or not artist.strip():
        raise ValidationFailedError("Artist is required")
    try:
        source = SourceType(source_type)
    except ValueError:
        raise ValidationFailedError(f"Invalid source type: {source_type}")

    song_id = str(uuid.uuid4())
    conn.execute(
        f"""
        INSERT INTO songs ({SONG_COLUMNS})
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?, ?)
        """,
        (
            song_id,
            user_id,
            title.strip(),
            artist.strip(),
            album,
            cover_url,
            audio_path,
            max(0, int(duration or 0)),
            _now_iso(),
            genre,
            source.value,
            source_url,
        ),
    )
    conn.commit()

    logger.info(f"Created song {song_id} for user #{user_id} ({source.value})")
    return get_song(conn, song_id, user_id)


def set_favorite(
    conn: sqlite3.Connection, song_id: str, user_id: int, is_favorite: bool
) -> Optional[dict[str, Any]]:
    """Set the favorite flag. Returns the updated row, or None if not found."""
    cursor = conn.execute(
        "UPDATE songs SET is_favorite = ? WHERE id = ? AND user_id = ?",
        (1 if is_favorite else 0, song_id, user_id),
    )
    conn.commit()
    if cursor.rowcount == 0:
        return None
    return get_song(conn, song_id, user_id)


def delete_song(
    conn: sqlite3.Connection, song_id: str, user_id: int
) -> Optional[dict[str, Any]]:
    """Delete a song row. Returns the deleted row (for file cleanup) or None."""
    song = get_song(conn, song_id, user_id)
    if not song:
        return None

    conn.execute("DELETE FROM songs WHERE id = ? AND user_id = ?", (song_id, user_id))
    conn.commit()
    logger.info(f"Deleted song {song_id} for user #{user_id}")
    return song
