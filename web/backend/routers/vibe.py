"""AI vibe suggestions based on the caller's listening history."""

from fastapi import APIRouter, Depends

from vibeflow.core.config import Config
from vibeflow.domain.ai import suggest_vibe
from vibeflow.domain.library import storage
from vibeflow.domain.library.models import song_from_api

from ..deps import get_config, get_db, require_user
from ..schemas import VibeRequest, VibeResponse

router = APIRouter()


@router.post("/vibe", response_model=VibeResponse)
def vibe(
    request: VibeRequest,
    db=Depends(get_db),
    config: Config = Depends(get_config),
    user=Depends(require_user),
):
    library = [
        song_from_api(storage.song_row_to_api(row))
        for row in storage.list_songs(db, user["id"])
    ]
    by_id = {song.id: song for song in library}
    history = [by_id[song_id] for song_id in request.history_ids if song_id in by_id]

    suggestion = suggest_vibe(
        history,
        library,
        api_key=config.ai.openai_api_key if config.ai.enabled else None,
        model=config.ai.model,
        count=config.ai.suggestion_count,
    )
    return suggestion.to_api()
