"""Tests for the HTTP library client."""

from unittest.mock import MagicMock

import pytest
import requests

from vibeflow.domain.library.client import LibraryClient
from vibeflow.domain.library.exceptions import (
    NotAuthenticatedError,
    RemoteUnavailableError,
    SongNotFoundError,
    ValidationFailedError,
)
from vibeflow.domain.youtube.exceptions import (
    AuthRequiredError,
    DuplicateExtractionError,
    VideoUnavailableError,
)

BASE_URL = "http://localhost:3001"


def _response(status: int, payload=None, text: str = "") -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.ok = status < 400
    response.reason = "reason"
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def http() -> MagicMock:
    session = MagicMock(spec=requests.Session)
    session.cookies = requests.cookies.RequestsCookieJar()
    return session


@pytest.fixture
def client(http) -> LibraryClient:
    return LibraryClient(BASE_URL, timeout=5.0, session=http)


SONG_PAYLOAD = {
    "id": "s1",
    "title": "T",
    "artist": "A",
    "audioUrl": "/audio/s1.mp3",
    "addedAt": "2024-01-01T00:00:00Z",
    "isFavorite": False,
    "sourceType": "upload",
}


class TestSongs:
    def test_list_songs_maps_payload(self, client, http) -> None:
        http.request.return_value = _response(200, [SONG_PAYLOAD])

        songs = client.list_songs()

        assert [s.id for s in songs] == ["s1"]
        assert songs[0].audio_url == f"{BASE_URL}/audio/s1.mp3"
        http.request.assert_called_once_with("GET", f"{BASE_URL}/api/songs", timeout=5.0)

    def test_set_favorite_sends_camel_case(self, client, http) -> None:
        http.request.return_value = _response(200, {**SONG_PAYLOAD, "isFavorite": True})

        song = client.set_favorite("s1", True)

        assert song.is_favorite is True
        args, kwargs = http.request.call_args
        assert args == ("POST", f"{BASE_URL}/api/songs/s1/favorite")
        assert kwargs["json"] == {"isFavorite": True}

    def test_delete_song(self, client, http) -> None:
        http.request.return_value = _response(200, {"success": True})
        client.delete_song("s1")
        assert http.request.call_args.args == ("DELETE", f"{BASE_URL}/api/songs/s1")


class TestErrorMapping:
    def test_401_is_not_authenticated(self, client, http) -> None:
        http.request.return_value = _response(401, {"detail": "Unauthorized"})
        with pytest.raises(NotAuthenticatedError, match="Unauthorized"):
            client.list_songs()

    def test_404_is_not_found_with_id(self, client, http) -> None:
        http.request.return_value = _response(404, {"detail": "Song not found"})
        with pytest.raises(SongNotFoundError) as exc_info:
            client.set_favorite("gone", True)
        assert exc_info.value.song_id == "gone"

    @pytest.mark.parametrize("status", [400, 422])
    def test_validation_statuses(self, client, http, status) -> None:
        http.request.return_value = _response(status, {"detail": [{"msg": "field required"}]})
        with pytest.raises(ValidationFailedError, match="field required"):
            client.create_song({"title": "x"})

    def test_5xx_is_remote_unavailable(self, client, http) -> None:
        http.request.return_value = _response(500, text="boom")
        with pytest.raises(RemoteUnavailableError, match="500"):
            client.list_songs()

    def test_connection_error_is_remote_unavailable(self, client, http) -> None:
        http.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(RemoteUnavailableError):
            client.list_songs()

    def test_health_swallows_connection_error(self, client, http) -> None:
        http.request.side_effect = requests.ConnectionError("refused")
        assert client.health() is False


class TestExtraction:
    def test_success(self, client, http) -> None:
        http.request.return_value = _response(200, {**SONG_PAYLOAD, "sourceType": "youtube"})

        song = client.extract_youtube("https://youtu.be/x")

        assert song.source_type.value == "youtube"
        assert http.request.call_args.kwargs["timeout"] is None

    @pytest.mark.parametrize(
        "status,error",
        [
            (403, AuthRequiredError),
            (404, VideoUnavailableError),
            (409, DuplicateExtractionError),
        ],
    )
    def test_status_mapping(self, client, http, status, error) -> None:
        http.request.return_value = _response(status, {"detail": "nope"})
        with pytest.raises(error):
            client.extract_youtube("https://youtu.be/x")


class TestSessionPersistence:
    def test_round_trip(self, tmp_path, http) -> None:
        path = tmp_path / "session.json"
        client = LibraryClient(BASE_URL, session=http)
        http.cookies.set("vibeflow_session", "token-123")

        client.save_session(path)

        restored = LibraryClient(BASE_URL, session=MagicMock(cookies=requests.cookies.RequestsCookieJar()))
        assert restored.load_session(path) is True
        assert restored.http.cookies.get("vibeflow_session") == "token-123"

    def test_missing_file(self, tmp_path, client) -> None:
        assert client.load_session(tmp_path / "absent.json") is False

    def test_corrupt_file_is_ignored(self, tmp_path, client) -> None:
        path = tmp_path / "session.json"
        path.write_text("{not json", encoding="utf-8")
        assert client.load_session(path) is False

    def test_logout_clears_cookies(self, client, http) -> None:
        http.cookies.set("vibeflow_session", "token-123")
        http.request.return_value = _response(200, {"success": True})

        client.logout()

        assert len(http.cookies) == 0
