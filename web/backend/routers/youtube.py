"""YouTube import endpoints for the VibeFlow Web API."""

from threading import Lock

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from vibeflow.core.config import Config
from vibeflow.domain.library import storage
from vibeflow.domain.youtube import (
    AgeRestrictedError,
    AuthRequiredError,
    ExtractionError,
    InvalidURLError,
    VideoUnavailableError,
    delete_cookies,
    extract_audio,
    has_cookies,
    is_valid_cookies,
    save_cookies,
)

from ..deps import get_config, get_db, require_user
from ..schemas import CookiesRequest, CookiesStatus, ExtractRequest, SongInfo, SuccessResponse

router = APIRouter()

# (user_id, url) pairs currently being extracted
_in_flight: set[tuple[int, str]] = set()
_in_flight_lock = Lock()


def claim_extraction(user_id: int, url: str) -> bool:
    """Reserve (user, url). Returns False if it is already in flight."""
    with _in_flight_lock:
        key = (user_id, url)
        if key in _in_flight:
            return False
        _in_flight.add(key)
        return True


def release_extraction(user_id: int, url: str) -> None:
    with _in_flight_lock:
        _in_flight.discard((user_id, url))


@router.post("/youtube/extract", response_model=SongInfo)
def extract(
    request: ExtractRequest,
    db=Depends(get_db),
    config: Config = Depends(get_config),
    user=Depends(require_user),
):
    url = (request.url or "").strip()
    if not url:
        raise HTTPException(400, "URL is required")

    if not claim_extraction(user["id"], url):
        raise HTTPException(409, "This video is already being imported")

    try:
        result = extract_audio(
            url,
            user["id"],
            config.audio_dir(),
            cookies_path=config.cookies_path(),
            audio_format=config.youtube.audio_format,
            info_timeout=config.youtube.info_timeout,
            download_timeout=config.youtube.download_timeout,
        )
    except InvalidURLError as e:
        raise HTTPException(400, str(e))
    except (AuthRequiredError, AgeRestrictedError) as e:
        raise HTTPException(403, str(e))
    except VideoUnavailableError as e:
        raise HTTPException(404, str(e))
    except ExtractionError as e:
        raise HTTPException(502, str(e))
    finally:
        release_extraction(user["id"], url)

    row = storage.create_song(
        db,
        user["id"],
        title=result.title,
        artist=result.artist,
        source_type="youtube",
        cover_url=result.thumbnail,
        audio_path=str(result.audio_path),
        duration=result.duration,
        source_url=url,
    )
    logger.info(f"Imported {url} as song {row['id']}")
    return storage.song_row_to_api(row)


@router.get("/youtube/cookies", response_model=CookiesStatus)
def cookies_status(config: Config = Depends(get_config), user=Depends(require_user)):
    return {"hasCookies": has_cookies(config.cookies_path())}


@router.post("/youtube/cookies", response_model=SuccessResponse)
def upload_cookies(
    request: CookiesRequest,
    config: Config = Depends(get_config),
    user=Depends(require_user),
):
    if not request.cookies:
        raise HTTPException(400, "Cookies content is required")
    if not is_valid_cookies(request.cookies):
        raise HTTPException(400, "Invalid cookies file. Must contain YouTube cookies.")

    save_cookies(config.cookies_path(), request.cookies)
    return {"success": True, "message": "Cookies saved successfully"}


@router.delete("/youtube/cookies", response_model=SuccessResponse)
def remove_cookies(config: Config = Depends(get_config), user=Depends(require_user)):
    delete_cookies(config.cookies_path())
    return {"success": True, "message": "Cookies deleted"}
