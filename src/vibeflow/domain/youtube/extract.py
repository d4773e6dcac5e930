"""YouTube audio extraction using yt-dlp."""

import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yt_dlp
from loguru import logger

from .cookies import has_cookies
from .exceptions import (
    AgeRestrictedError,
    AuthRequiredError,
    ExtractionError,
    InvalidURLError,
    VideoUnavailableError,
)

DEFAULT_ARTIST = "YouTube Import"
DEFAULT_TITLE = "Unknown Title"

_YOUTUBE_URL = re.compile(
    r"^(https?://)?((www|m|music)\.)?(youtube\.com|youtu\.be)/", re.IGNORECASE
)


@dataclass(frozen=True)
class ExtractResult:
    """Metadata and local file of one extracted video."""

    title: str
    artist: str
    duration: int
    thumbnail: str
    audio_path: Path


def is_youtube_url(url: str) -> bool:
    return bool(url and _YOUTUBE_URL.match(url.strip()))


def clean_uploader(uploader: str) -> str:
    """Strip channel decorations: "Artist - Topic" and "ArtistVEVO"."""
    cleaned = re.sub(r" - Topic$", "", uploader)
    cleaned = re.sub(r"VEVO$", "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


def split_title(title: Optional[str], uploader: Optional[str]) -> tuple[str, str]:
    """Derive (artist, title) from a video title and its uploader.

    "Artist - Song - Remix" splits on the first " - "; otherwise the cleaned
    uploader is the artist.

    Example:
        ("Daft Punk - One More Time", "x") -> ("Daft Punk", "One More Time")
    """
    if title and " - " in title:
        artist, _, rest = title.partition(" - ")
        return artist.strip(), rest.strip()

    artist = clean_uploader(uploader) if uploader else ""
    return artist or DEFAULT_ARTIST, title or DEFAULT_TITLE


def _classify(error: Exception) -> ExtractionError:
    """Map a yt-dlp failure onto the extraction error taxonomy."""
    message = str(error)
    lowered = message.lower()
    if "confirm you're not a bot" in lowered or "confirm you’re not a bot" in lowered:
        return AuthRequiredError(
            "YouTube requires authentication. Please upload a cookies.txt file "
            "from your browser to enable downloads."
        )
    if "age-restricted" in lowered or "confirm your age" in lowered:
        return AgeRestrictedError(
            "This video is age-restricted. You may need to upload cookies from a "
            "logged-in YouTube account."
        )
    if "video unavailable" in lowered or "private video" in lowered:
        return VideoUnavailableError("This video is unavailable or private")
    return ExtractionError("Failed to extract audio. Please check the URL and try again.")


def _base_options(cookies_path: Optional[Path], timeout: float) -> dict:
    opts = {
        "quiet": True,
        "no_warnings": True,
        "noplaylist": True,
        "socket_timeout": timeout,
    }
    if cookies_path is not None and has_cookies(cookies_path):
        opts["cookiefile"] = str(cookies_path)
    return opts


def extract_audio(
    url: str,
    user_id: int,
    audio_dir: Path,
    cookies_path: Optional[Path] = None,
    audio_format: str = "mp3",
    info_timeout: float = 60,
    download_timeout: float = 300,
) -> ExtractResult:
    """Download the audio track of a YouTube video into `audio_dir`.

    The file is named `{user_id}_{millis}.{audio_format}` so concurrent
    imports never collide.

    Raises:
        InvalidURLError: Not a YouTube URL
        AuthRequiredError: YouTube wants a signed-in session
        VideoUnavailableError: Video is unavailable/deleted/private
        AgeRestrictedError: Video requires age verification
        ExtractionError: Any other failure
    """
    if not is_youtube_url(url):
        raise InvalidURLError(f"Not a YouTube URL: {url}")

    audio_dir.mkdir(parents=True, exist_ok=True)
    temp_id = f"{user_id}_{int(time.time() * 1000)}"

    try:
        with yt_dlp.YoutubeDL(_base_options(cookies_path, info_timeout)) as ydl:
            info = ydl.extract_info(url, download=False)
        if not info:
            raise VideoUnavailableError("Failed to extract video information")

        download_opts = _base_options(cookies_path, download_timeout)
        download_opts.update(
            {
                "format": "bestaudio/best",
                "outtmpl": str(audio_dir / f"{temp_id}.%(ext)s"),
                "postprocessors": [
                    {
                        "key": "FFmpegExtractAudio",
                        "preferredcodec": audio_format,
                        "preferredquality": "0",
                    }
                ],
            }
        )
        with yt_dlp.YoutubeDL(download_opts) as ydl:
            ydl.download([url])
    except ExtractionError:
        raise
    except yt_dlp.utils.DownloadError as e:
        logger.error(f"yt-dlp error for {url}: {e}")
        raise _classify(e)

    audio_path = audio_dir / f"{temp_id}.{audio_format}"
    if not audio_path.exists():
        # Post-processing may keep the source extension
        candidates = sorted(audio_dir.glob(f"{temp_id}.*"))
        if candidates:
            candidates[0].rename(audio_path)

    if not audio_path.exists():
        raise ExtractionError("Audio file was not created")

    artist, title = split_title(info.get("title"), info.get("uploader"))
    result = ExtractResult(
        title=title,
        artist=artist,
        duration=int(info.get("duration") or 0),
        thumbnail=info.get("thumbnail") or f"https://picsum.photos/seed/{temp_id}/200/200",
        audio_path=audio_path,
    )
    logger.info(f"Extracted {artist} - {title} ({url}) -> {audio_path}")
    return result
