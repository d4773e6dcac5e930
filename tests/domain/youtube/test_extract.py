"""Tests for YouTube audio extraction."""

from unittest.mock import MagicMock, patch

import pytest
import yt_dlp

from vibeflow.domain.youtube import cookies
from vibeflow.domain.youtube.exceptions import (
    AgeRestrictedError,
    AuthRequiredError,
    ExtractionError,
    InvalidURLError,
    VideoUnavailableError,
)
from vibeflow.domain.youtube.extract import (
    _classify,
    clean_uploader,
    extract_audio,
    is_youtube_url,
    split_title,
)

VALID_COOKIES = "# Netscape HTTP Cookie File\n.youtube.com\tTRUE\t/\tTRUE\t0\tSID\tabc\n"


class TestUrlAndTitle:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "http://m.youtube.com/watch?v=x",
            "https://music.youtube.com/watch?v=x",
            "youtube.com/watch?v=x",
        ],
    )
    def test_youtube_urls(self, url) -> None:
        assert is_youtube_url(url)

    @pytest.mark.parametrize("url", ["", "https://vimeo.com/123", "https://notyoutube.com/x"])
    def test_other_urls(self, url) -> None:
        assert not is_youtube_url(url)

    def test_clean_uploader(self) -> None:
        assert clean_uploader("Daft Punk - Topic") == "Daft Punk"
        assert clean_uploader("DaftPunkVEVO") == "DaftPunk"

    def test_split_on_first_dash(self) -> None:
        assert split_title("Artist - Song - Remix", "Channel") == ("Artist", "Song - Remix")

    def test_uploader_as_artist(self) -> None:
        assert split_title("Song", "Artist - Topic") == ("Artist", "Song")

    def test_defaults(self) -> None:
        assert split_title(None, None) == ("YouTube Import", "Unknown Title")


class TestClassify:
    @pytest.mark.parametrize(
        "message,error",
        [
            ("Sign in to confirm you're not a bot", AuthRequiredError),
            ("Sign in to confirm your age", AgeRestrictedError),
            ("This video is age-restricted", AgeRestrictedError),
            ("Video unavailable", VideoUnavailableError),
            ("Private video", VideoUnavailableError),
        ],
    )
    def test_known_failures(self, message, error) -> None:
        assert type(_classify(Exception(message))) is error

    def test_unknown_failure(self) -> None:
        result = _classify(Exception("HTTP Error 500"))
        assert type(result) is ExtractionError
        assert "Failed to extract audio" in str(result)


class TestCookies:
    def test_validation(self) -> None:
        assert cookies.is_valid_cookies(VALID_COOKIES)
        assert not cookies.is_valid_cookies("just some text")
        assert not cookies.is_valid_cookies(".google.com\tTRUE\t/")

    def test_save_and_delete(self, tmp_path) -> None:
        path = tmp_path / "cookies" / "1.txt"

        cookies.save_cookies(path, VALID_COOKIES)
        assert cookies.has_cookies(path)
        assert path.stat().st_mode & 0o777 == 0o600

        cookies.delete_cookies(path)
        assert not cookies.has_cookies(path)
        cookies.delete_cookies(path)


def _fake_ydl(info, on_download=None, error=None):
    """Patchable YoutubeDL factory."""

    def factory(opts):
        ydl = MagicMock()
        ydl.__enter__.return_value = ydl
        ydl.opts = opts
        factory.instances.append(ydl)
        if error is not None:
            ydl.extract_info.side_effect = error
        else:
            ydl.extract_info.return_value = info

        def download(urls):
            if on_download:
                on_download(opts)

        ydl.download.side_effect = download
        return ydl

    factory.instances = []
    return factory


class TestExtractAudio:
    URL = "https://www.youtube.com/watch?v=abc"

    def test_invalid_url(self, tmp_path) -> None:
        with pytest.raises(InvalidURLError):
            extract_audio("https://vimeo.com/1", 1, tmp_path)

    def test_success(self, tmp_path) -> None:
        info = {"title": "Artist - Song", "uploader": "Chan", "duration": 213.4, "thumbnail": "t.jpg"}

        def write_file(opts):
            target = opts["outtmpl"].replace("%(ext)s", "mp3")
            with open(target, "wb") as f:
                f.write(b"audio")

        factory = _fake_ydl(info, on_download=write_file)
        with patch("vibeflow.domain.youtube.extract.yt_dlp.YoutubeDL", side_effect=factory):
            result = extract_audio(self.URL, 7, tmp_path)

        assert result.artist == "Artist"
        assert result.title == "Song"
        assert result.duration == 213
        assert result.thumbnail == "t.jpg"
        assert result.audio_path.exists()
        assert result.audio_path.name.startswith("7_")
        assert result.audio_path.suffix == ".mp3"

        download_opts = factory.instances[1].opts
        assert download_opts["postprocessors"][0]["key"] == "FFmpegExtractAudio"
        assert "cookiefile" not in download_opts

    def test_leftover_extension_is_renamed(self, tmp_path) -> None:
        def write_webm(opts):
            target = opts["outtmpl"].replace("%(ext)s", "webm")
            with open(target, "wb") as f:
                f.write(b"audio")

        factory = _fake_ydl({"title": "Song", "uploader": "Someone"}, on_download=write_webm)
        with patch("vibeflow.domain.youtube.extract.yt_dlp.YoutubeDL", side_effect=factory):
            result = extract_audio(self.URL, 1, tmp_path)

        assert result.audio_path.suffix == ".mp3"
        assert result.audio_path.exists()
        assert result.thumbnail.startswith("https://picsum.photos/seed/1_")

    def test_cookies_are_used_when_present(self, tmp_path) -> None:
        cookies_path = tmp_path / "cookies.txt"
        cookies.save_cookies(cookies_path, VALID_COOKIES)
        factory = _fake_ydl(None)

        with patch("vibeflow.domain.youtube.extract.yt_dlp.YoutubeDL", side_effect=factory):
            with pytest.raises(VideoUnavailableError):
                extract_audio(self.URL, 1, tmp_path / "audio", cookies_path=cookies_path)

        assert factory.instances[0].opts["cookiefile"] == str(cookies_path)

    def test_download_error_is_classified(self, tmp_path) -> None:
        error = yt_dlp.utils.DownloadError("ERROR: Sign in to confirm you're not a bot")
        factory = _fake_ydl(None, error=error)

        with patch("vibeflow.domain.youtube.extract.yt_dlp.YoutubeDL", side_effect=factory):
            with pytest.raises(AuthRequiredError):
                extract_audio(self.URL, 1, tmp_path)

    def test_missing_output_file(self, tmp_path) -> None:
        factory = _fake_ydl({"title": "Song"})
        with patch("vibeflow.domain.youtube.extract.yt_dlp.YoutubeDL", side_effect=factory):
            with pytest.raises(ExtractionError, match="not created"):
                extract_audio(self.URL, 1, tmp_path)
