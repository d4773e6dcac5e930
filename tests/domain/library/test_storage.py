"""Tests for server-side song and user persistence."""

import pytest

from vibeflow.core.database import get_db_connection, init_database
from vibeflow.domain.library import storage
from vibeflow.domain.library.exceptions import ValidationFailedError


@pytest.fixture
def db(tmp_path):
    db_path = tmp_path / "test.db"
    init_database(db_path)
    with get_db_connection(db_path) as conn:
        yield conn


@pytest.fixture
def user(db):
    return storage.create_user(db, "Alice@Example.com", "hash", "Alice")


@pytest.fixture
def other_user(db):
    return storage.create_user(db, "bob@example.com", "hash", "Bob")


class TestUsers:
    def test_email_is_normalized(self, db, user) -> None:
        assert user["email"] == "alice@example.com"
        assert storage.get_user_by_email(db, " ALICE@example.com ")["id"] == user["id"]

    def test_duplicate_email_rejected(self, db, user) -> None:
        with pytest.raises(ValidationFailedError, match="already registered"):
            storage.create_user(db, "alice@example.com", "hash", "Alice 2")

    def test_public_user_hides_password(self, user) -> None:
        assert storage.public_user(user) == {
            "id": user["id"],
            "email": "alice@example.com",
            "displayName": "Alice",
        }


class TestSongs:
    def test_create_and_list(self, db, user) -> None:
        row = storage.create_song(
            db, user["id"], "Song", "Artist", audio_path="/data/audio/1_1.mp3", duration=181
        )

        songs = storage.list_songs(db, user["id"])

        assert [s["id"] for s in songs] == [row["id"]]
        api = storage.song_row_to_api(row)
        assert api["audioUrl"] == "/audio/1_1.mp3"
        assert api["duration"] == 181
        assert api["isFavorite"] is False
        assert api["sourceType"] == "upload"

    def test_list_is_newest_first(self, db, user, monkeypatch) -> None:
        stamps = iter(["2024-01-01T00:00:00+00:00", "2024-06-01T00:00:00+00:00"])
        monkeypatch.setattr(storage, "_now_iso", lambda: next(stamps))
        first = storage.create_song(db, user["id"], "First", "A")
        second = storage.create_song(db, user["id"], "Second", "A")

        ids = [s["id"] for s in storage.list_songs(db, user["id"])]

        assert ids == [second["id"], first["id"]]

    @pytest.mark.parametrize(
        "title,artist",
        [(None, "Artist"), ("  ", "Artist"), ("Title", None), ("Title", "")],
    )
    def test_title_and_artist_required(self, db, user, title, artist) -> None:
        with pytest.raises(ValidationFailedError):
            storage.create_song(db, user["id"], title, artist)

    def test_invalid_source_type(self, db, user) -> None:
        with pytest.raises(ValidationFailedError, match="source type"):
            storage.create_song(db, user["id"], "T", "A", source_type="vinyl")

    def test_song_without_file_has_no_audio_url(self, db, user) -> None:
        row = storage.create_song(db, user["id"], "T", "A")
        assert storage.song_row_to_api(row)["audioUrl"] is None

    def test_set_favorite(self, db, user) -> None:
        row = storage.create_song(db, user["id"], "T", "A")

        updated = storage.set_favorite(db, row["id"], user["id"], True)

        assert updated["is_favorite"] == 1

    def test_delete_returns_row(self, db, user) -> None:
        row = storage.create_song(db, user["id"], "T", "A", audio_path="/x/y.mp3")

        deleted = storage.delete_song(db, row["id"], user["id"])

        assert deleted["audio_path"] == "/x/y.mp3"
        assert storage.get_song(db, row["id"], user["id"]) is None

    def test_songs_are_scoped_to_owner(self, db, user, other_user) -> None:
        row = storage.create_song(db, user["id"], "T", "A")

        assert storage.list_songs(db, other_user["id"]) == []
        assert storage.get_song(db, row["id"], other_user["id"]) is None
        assert storage.set_favorite(db, row["id"], other_user["id"], True) is None
        assert storage.delete_song(db, row["id"], other_user["id"]) is None
        assert storage.get_song(db, row["id"], user["id"]) is not None
