"""Library store exceptions for error handling."""


class VibeFlowError(Exception):
    """Base exception for library store operations."""

    pass


class NotAuthenticatedError(VibeFlowError):
    """Raised when the request has no valid session."""

    pass


class SongNotFoundError(VibeFlowError):
    """Raised when a song does not exist or belongs to another account."""

    def __init__(self, song_id: str, message: str = None):
        self.song_id = song_id
        super().__init__(message or f"Song not found: {song_id}")


class RemoteUnavailableError(VibeFlowError):
    """Raised on network failures or server-side errors."""

    pass


class ValidationFailedError(VibeFlowError):
    """Raised when required fields are missing or malformed."""

    pass
