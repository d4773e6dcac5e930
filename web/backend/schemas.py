from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None
    display_name: Optional[str] = None


class LoginRequest(CamelModel):
    email: str
    password: str


class UserInfo(CamelModel):
    id: int
    email: str
    display_name: str


class AuthResponse(CamelModel):
    user: Optional[UserInfo] = None


class SongInfo(CamelModel):
    id: str
    title: str
    artist: str
    album: Optional[str] = None
    cover_url: Optional[str] = None
    audio_url: Optional[str] = None
    duration: int = 0
    added_at: str
    is_favorite: bool = False
    genre: Optional[str] = None
    source_type: str
    source_url: Optional[str] = None


class CreateSongRequest(CamelModel):
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    cover_url: Optional[str] = None
    duration: int = 0
    genre: Optional[str] = None
    source_type: str = "upload"


class FavoriteRequest(CamelModel):
    is_favorite: bool


class SuccessResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None


class ExtractRequest(CamelModel):
    url: Optional[str] = None


class CookiesRequest(CamelModel):
    cookies: Optional[str] = None


class CookiesStatus(CamelModel):
    has_cookies: bool


class VibeRequest(CamelModel):
    history_ids: list[str] = []


class VibeResponse(CamelModel):
    mood: str
    reasoning: str
    suggested_song_ids: list[str]
