"""YouTube domain - audio extraction and cookie credentials."""

from .cookies import delete_cookies, has_cookies, is_valid_cookies, save_cookies
from .exceptions import (
    AgeRestrictedError,
    AuthRequiredError,
    DuplicateExtractionError,
    ExtractionError,
    InvalidURLError,
    VideoUnavailableError,
)
from .extract import (
    ExtractResult,
    clean_uploader,
    extract_audio,
    is_youtube_url,
    split_title,
)

__all__ = [
    "ExtractResult",
    "extract_audio",
    "split_title",
    "clean_uploader",
    "is_youtube_url",
    "has_cookies",
    "is_valid_cookies",
    "save_cookies",
    "delete_cookies",
    "ExtractionError",
    "InvalidURLError",
    "AuthRequiredError",
    "VideoUnavailableError",
    "AgeRestrictedError",
    "DuplicateExtractionError",
]
