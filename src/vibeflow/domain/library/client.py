"""HTTP client for the VibeFlow library store.

Wraps the REST API exposed by web.backend. The session cookie issued at login
lives in a requests.Session and can be persisted between CLI invocations.
"""

import json
from pathlib import Path
from typing import Any, Optional

import requests
from loguru import logger

from .exceptions import (
    NotAuthenticatedError,
    RemoteUnavailableError,
    SongNotFoundError,
    ValidationFailedError,
    VibeFlowError,
)
from .models import Song, song_from_api


def _error_detail(response: requests.Response) -> str:
    """Best-effort human-readable message from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        detail = data.get("detail") or data.get("error")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return json.dumps(detail)
    return f"HTTP {response.status_code}"


def raise_for_status(response: requests.Response, song_id: Optional[str] = None) -> None:
    """Translate HTTP error statuses into the library error taxonomy.

    Raises:
        NotAuthenticatedError: 401
        SongNotFoundError: 404
        ValidationFailedError: 400 / 422
        RemoteUnavailableError: Any other error status
    """
    if response.ok:
        return

    detail = _error_detail(response)
    status = response.status_code

    if status == 401:
        raise NotAuthenticatedError(detail)
    if status == 404:
        raise SongNotFoundError(song_id or "", detail)
    if status in (400, 422):
        raise ValidationFailedError(detail)
    raise RemoteUnavailableError(f"Server error {status}: {detail}")


class LibraryClient:
    """Library store client bound to one server and one cookie session."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            return self.http.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise RemoteUnavailableError(f"Could not reach {self.base_url}: {e}")

    # Session persistence

    def save_session(self, path: Path) -> None:
        """Write the session cookies to disk (owner-readable only)."""
        path.parent.mkdir(parents=True, exist_ok=True)
        cookies = requests.utils.dict_from_cookiejar(self.http.cookies)
        path.write_text(json.dumps(cookies), encoding="utf-8")
        path.chmod(0o600)

    def load_session(self, path: Path) -> bool:
        """Restore cookies saved by save_session. Returns True if any were loaded."""
        if not path.exists():
            return False
        try:
            cookies = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {path}: {e}")
            return False
        requests.utils.add_dict_to_cookiejar(self.http.cookies, cookies)
        return bool(cookies)

    # Auth

    def signup(self, email: str, password: str, display_name: str) -> dict[str, Any]:
        response = self._request(
            "POST",
            "/api/auth/signup",
            json={"email": email, "password": password, "displayName": display_name},
        )
        raise_for_status(response)
        return response.json()["user"]

    def login(self, email: str, password: str) -> dict[str, Any]:
        response = self._request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        raise_for_status(response)
        return response.json()["user"]

    def logout(self) -> None:
        response = self._request("POST", "/api/auth/logout")
        raise_for_status(response)
        self.http.cookies.clear()

    def me(self) -> Optional[dict[str, Any]]:
        response = self._request("GET", "/api/auth/me")
        raise_for_status(response)
        return response.json().get("user")

    # Songs

    def list_songs(self) -> list[Song]:
        """Fetch every song of the logged-in account (store order)."""
        response = self._request("GET", "/api/songs")
        raise_for_status(response)
        return [song_from_api(item, self.base_url) for item in response.json()]

    def create_song(self, fields: dict[str, Any]) -> Song:
        """Create a metadata-only song record (camelCase fields)."""
        response = self._request("POST", "/api/songs", json=fields)
        raise_for_status(response)
        return song_from_api(response.json(), self.base_url)

    def upload_song(
        self,
        file_path: Path,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        album: Optional[str] = None,
        genre: Optional[str] = None,
    ) -> Song:
        """Upload a local audio file; missing title/artist are read from its tags."""
        data = {
            key: value
            for key, value in {
                "title": title,
                "artist": artist,
                "album": album,
                "genre": genre,
            }.items()
            if value
        }
        with open(file_path, "rb") as f:
            response = self._request(
                "POST",
                "/api/songs/upload",
                data=data,
                files={"file": (file_path.name, f)},
            )
        raise_for_status(response)
        return song_from_api(response.json(), self.base_url)

    def set_favorite(self, song_id: str, is_favorite: bool) -> Song:
        response = self._request(
            "POST", f"/api/songs/{song_id}/favorite", json={"isFavorite": is_favorite}
        )
        raise_for_status(response, song_id)
        return song_from_api(response.json(), self.base_url)

    def delete_song(self, song_id: str) -> None:
        response = self._request("DELETE", f"/api/songs/{song_id}")
        raise_for_status(response, song_id)

    # YouTube

    def extract_youtube(self, url: str) -> Song:
        """Ask the server to extract audio from a YouTube URL into the library.

        Raises:
            AuthRequiredError: YouTube wants a sign-in; upload cookies first
            DuplicateExtractionError: The same URL is already being extracted
            VideoUnavailableError: Video is private, removed or missing
        """
        from vibeflow.domain.youtube.exceptions import (
            AuthRequiredError,
            DuplicateExtractionError,
            VideoUnavailableError,
        )

        # Extraction can take minutes; do not apply the default timeout
        response = self._request(
            "POST", "/api/youtube/extract", json={"url": url}, timeout=None
        )
        if response.status_code == 403:
            raise AuthRequiredError(_error_detail(response))
        if response.status_code == 409:
            raise DuplicateExtractionError(url, _error_detail(response))
        if response.status_code == 404:
            raise VideoUnavailableError(_error_detail(response))
        raise_for_status(response)
        return song_from_api(response.json(), self.base_url)

    def has_youtube_cookies(self) -> bool:
        response = self._request("GET", "/api/youtube/cookies")
        raise_for_status(response)
        return bool(response.json().get("hasCookies"))

    def upload_youtube_cookies(self, cookies: str) -> None:
        response = self._request("POST", "/api/youtube/cookies", json={"cookies": cookies})
        raise_for_status(response)

    def delete_youtube_cookies(self) -> None:
        response = self._request("DELETE", "/api/youtube/cookies")
        raise_for_status(response)

    # Vibe

    def suggest_vibe(self, history_ids: list[str]) -> dict[str, Any]:
        """Server-side vibe suggestion for the given listening history."""
        response = self._request(
            "POST", "/api/vibe", json={"historyIds": history_ids}
        )
        raise_for_status(response)
        return response.json()

    def health(self) -> bool:
        try:
            response = self._request("GET", "/health")
        except VibeFlowError:
            return False
        return response.ok
