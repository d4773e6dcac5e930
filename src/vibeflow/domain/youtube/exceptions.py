"""YouTube extraction exceptions for error handling."""

from vibeflow.domain.library.exceptions import VibeFlowError


class ExtractionError(VibeFlowError):
    """Base exception for YouTube extraction."""

    pass


class InvalidURLError(ExtractionError):
    """Raised when the URL is missing or not a YouTube URL."""

    pass


class AuthRequiredError(ExtractionError):
    """Raised when YouTube demands a signed-in session (upload cookies.txt)."""

    pass


class VideoUnavailableError(ExtractionError):
    """Raised when video is deleted, private or unavailable."""

    pass


class AgeRestrictedError(ExtractionError):
    """Raised when video requires age verification."""

    pass


class DuplicateExtractionError(ExtractionError):
    """Raised when the same URL is already being extracted for this user."""

    def __init__(self, url: str, message: str = None):
        self.url = url
        super().__init__(message or f"Already extracting: {url}")
