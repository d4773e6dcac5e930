"""Library endpoints: list, create, upload, favorite and delete songs."""

import time
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from loguru import logger

from vibeflow.core.config import Config
from vibeflow.domain.library import storage
from vibeflow.domain.library.exceptions import ValidationFailedError
from vibeflow.domain.library.metadata import SUPPORTED_EXTENSIONS, read_audio_metadata

from ..deps import get_config, get_db, require_user
from ..schemas import CreateSongRequest, FavoriteRequest, SongInfo, SuccessResponse

router = APIRouter()
audio_router = APIRouter()

AUDIO_MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".opus": "audio/opus",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
}


@router.get("/songs", response_model=list[SongInfo])
def list_songs(db=Depends(get_db), user=Depends(require_user)):
    return [storage.song_row_to_api(row) for row in storage.list_songs(db, user["id"])]


@router.post("/songs", response_model=SongInfo)
def create_song(request: CreateSongRequest, db=Depends(get_db), user=Depends(require_user)):
    try:
        row = storage.create_song(
            db,
            user["id"],
            title=request.title,
            artist=request.artist,
            source_type=request.source_type,
            album=request.album,
            cover_url=request.cover_url,
            duration=request.duration,
            genre=request.genre,
        )
    except ValidationFailedError as e:
        raise HTTPException(400, str(e))
    return storage.song_row_to_api(row)


@router.post("/songs/upload", response_model=SongInfo)
def upload_song(
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    artist: Optional[str] = Form(None),
    album: Optional[str] = Form(None),
    genre: Optional[str] = Form(None),
    db=Depends(get_db),
    config: Config = Depends(get_config),
    user=Depends(require_user),
):
    original_name = file.filename or "upload"
    suffix = Path(original_name).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise HTTPException(400, f"Unsupported audio format: {suffix or 'none'}")

    audio_dir = config.audio_dir()
    audio_dir.mkdir(parents=True, exist_ok=True)
    audio_path = audio_dir / f"{user['id']}_{int(time.time() * 1000)}{suffix}"

    try:
        with open(audio_path, "wb") as out:
            while chunk := file.file.read(1024 * 1024):
                out.write(chunk)
    except OSError as e:
        audio_path.unlink(missing_ok=True)
        logger.error(f"Failed to store upload {original_name}: {e}")
        raise HTTPException(500, "Could not store uploaded file")

    tags = read_audio_metadata(audio_path, original_name)

    try:
        row = storage.create_song(
            db,
            user["id"],
            title=title or tags.title,
            artist=artist or tags.artist or "Unknown Artist",
            source_type="upload",
            album=album or tags.album,
            audio_path=str(audio_path),
            duration=tags.duration,
            genre=genre or tags.genre,
        )
    except ValidationFailedError as e:
        audio_path.unlink(missing_ok=True)
        raise HTTPException(400, str(e))

    logger.info(f"Uploaded {original_name} as {audio_path.name}")
    return storage.song_row_to_api(row)


@router.post("/songs/{song_id}/favorite", response_model=SongInfo)
def set_favorite(
    song_id: str,
    request: FavoriteRequest,
    db=Depends(get_db),
    user=Depends(require_user),
):
    row = storage.set_favorite(db, song_id, user["id"], request.is_favorite)
    if not row:
        raise HTTPException(404, "Song not found")
    return storage.song_row_to_api(row)


@router.delete("/songs/{song_id}", response_model=SuccessResponse)
def delete_song(song_id: str, db=Depends(get_db), user=Depends(require_user)):
    row = storage.delete_song(db, song_id, user["id"])
    if not row:
        raise HTTPException(404, "Song not found")

    if row["audio_path"]:
        try:
            Path(row["audio_path"]).unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove audio file {row['audio_path']}: {e}")

    return {"success": True}


@audio_router.get("/audio/{filename}")
async def stream_audio(filename: str, config: Config = Depends(get_config)):
    audio_dir = config.audio_dir().resolve()
    file_path = (audio_dir / filename).resolve()

    # SECURITY: Only serve files directly inside the audio directory
    if file_path.parent != audio_dir:
        logger.warning(f"Blocked access outside audio dir: {filename}")
        raise HTTPException(403, "Access denied")
    if not file_path.is_file():
        raise HTTPException(404, "Audio not found")

    media_type = AUDIO_MIME_TYPES.get(file_path.suffix.lower(), "application/octet-stream")
    return FileResponse(file_path, media_type=media_type)
