"""
Tag and duration extraction for uploaded audio files
"""

from pathlib import Path
from typing import List, NamedTuple, Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError

SUPPORTED_EXTENSIONS = {".mp3", ".m4a", ".ogg", ".opus", ".flac", ".wav", ".aac"}


class AudioMetadata(NamedTuple):
    """What could be learned about an audio file."""
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    duration: int = 0  # whole seconds, 0 if unknown


def get_tag_value(audio_file: MutagenFile, tag_names: List[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        value = audio_file.get(tag_name)
        if value:
            # Handle different formats
            if isinstance(value, list) and value:
                return str(value[0])
            return str(value)
    return None


def metadata_from_filename(filename: str) -> AudioMetadata:
    """Parse "Artist - Title.ext"; otherwise the stem is the title."""
    title = Path(filename).stem
    artist = None

    if " - " in title:
        artist, _, title = title.partition(" - ")
        artist = artist.strip() or None
        title = title.strip()

    return AudioMetadata(title=title or None, artist=artist)


def read_audio_metadata(file_path: Path, original_name: Optional[str] = None) -> AudioMetadata:
    """Extract tags and duration using mutagen, falling back to the filename.

    Args:
        file_path: File on disk
        original_name: Name the file was uploaded under (stored files are renamed)
    """
    fallback = metadata_from_filename(original_name or file_path.name)

    try:
        audio_file = MutagenFile(file_path)
    except (MutagenError, OSError) as e:
        logger.warning(f"Could not read tags from {file_path}: {e}")
        return fallback

    if audio_file is None:
        # File couldn't be read by mutagen, use filename
        return fallback

    duration = 0
    if getattr(audio_file, "info", None) is not None:
        duration = int(getattr(audio_file.info, "length", 0) or 0)

    return AudioMetadata(
        title=get_tag_value(audio_file, ["TIT2", "\xa9nam", "TITLE", "title"]) or fallback.title,
        artist=get_tag_value(audio_file, ["TPE1", "\xa9ART", "ARTIST", "artist"]) or fallback.artist,
        album=get_tag_value(audio_file, ["TALB", "\xa9alb", "ALBUM", "album"]),
        genre=get_tag_value(audio_file, ["TCON", "\xa9gen", "GENRE", "genre"]),
        duration=max(0, duration),
    )
