"""
Vibe analysis: suggest mood-matched songs from recent listening history
using the OpenAI Responses API.

Never raises; every failure degrades to the first few library songs.
"""

import json
import time
from typing import Any, NamedTuple, Optional

import openai
from loguru import logger

from vibeflow.domain.library.models import Song

DEFAULT_MODEL = "gpt-4o-mini"
HISTORY_WINDOW = 3

INSTRUCTIONS = """You pick the next songs for a music player.
1. Analyze the "vibe" or mood of the recently played songs (e.g. "Energetic Workout", "Late Night Chill", "Focus", "Melancholy").
2. Select up to {count} song ids from the library that best fit this mood to play next.
3. Explain the reasoning briefly.

Return ONLY a JSON object:
{{"mood": "...", "reasoning": "...", "suggestedSongIds": ["id", ...]}}"""


class VibeSuggestion(NamedTuple):
    mood: str
    reasoning: str
    suggested_song_ids: list[str]

    def to_api(self) -> dict[str, Any]:
        return {
            "mood": self.mood,
            "reasoning": self.reasoning,
            "suggestedSongIds": list(self.suggested_song_ids),
        }


def _fallback(library: list[Song], mood: str, reasoning: str, count: int) -> VibeSuggestion:
    return VibeSuggestion(mood, reasoning, [song.id for song in library[:count]])


def _text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value.strip() else default


def build_vibe_input(history: list[Song], library: list[Song]) -> str:
    """Describe the recent history and the catalog for the model."""
    recent = ", ".join(f"{s.title} by {s.artist}" for s in history[-HISTORY_WINDOW:])
    catalog = [
        {"id": s.id, "info": f"{s.title} by {s.artist} ({s.genre or 'Unknown Genre'})"}
        for s in library
    ]
    return (
        f"The user just listened to: [{recent}].\n\n"
        f"Available library:\n{json.dumps(catalog)}"
    )


def parse_vibe_output(output_text: str) -> dict[str, Any]:
    """Parse the model's JSON, tolerating a ```json fenced block.

    Raises:
        ValueError: No JSON object found, or suggestedSongIds is not a list
    """
    text = output_text.strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start == -1 or end <= start:
            raise ValueError(f"Failed to parse JSON from AI response: {text}")
        data = json.loads(text[start:end])

    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got: {text}")

    song_ids = data.get("suggestedSongIds")
    if song_ids is not None and not isinstance(song_ids, list):
        raise ValueError(f"suggestedSongIds must be a list, got: {song_ids!r}")
    return data


def suggest_vibe(
    history: list[Song],
    library: list[Song],
    api_key: Optional[str] = None,
    model: str = DEFAULT_MODEL,
    count: int = 5,
    client: Optional[Any] = None,
) -> VibeSuggestion:
    """Suggest up to `count` library songs matching the mood of `history`.

    Args:
        history: Recently played songs, most recent last
        library: Candidate songs
        api_key: OpenAI key; without one (and without `client`) AI is skipped
        model: Responses API model name
        count: Maximum number of suggestions
        client: Pre-built OpenAI client (tests inject a stub)

    Returns:
        VibeSuggestion whose ids all exist in `library`
    """
    if not history or not library:
        return _fallback(library, "Neutral", "Not enough data to analyze yet.", count)

    if client is None:
        if not api_key:
            return _fallback(
                library,
                "AI Not Available",
                "AI features require an OpenAI API key. Set OPENAI_API_KEY to enable AI suggestions.",
                count,
            )
        client = openai.OpenAI(api_key=api_key)

    start_time = time.time()
    try:
        response = client.responses.create(
            model=model,
            instructions=INSTRUCTIONS.format(count=count),
            input=build_vibe_input(history, library),
        )
        result = parse_vibe_output(response.output_text)
    except (openai.OpenAIError, ValueError) as e:
        logger.error(f"Vibe suggestion failed: {e}")
        return _fallback(
            library, "Offline / Error", "Could not connect to AI. Shuffling library.", count
        )

    elapsed_ms = int((time.time() - start_time) * 1000)

    known_ids = {song.id for song in library}
    suggested = [
        str(song_id)
        for song_id in (result.get("suggestedSongIds") or [])
        if str(song_id) in known_ids
    ][:count]

    suggestion = VibeSuggestion(
        mood=_text(result.get("mood"), "Unknown Vibe"),
        reasoning=_text(result.get("reasoning"), "Enjoy some random tracks."),
        suggested_song_ids=suggested,
    )
    logger.info(
        f"Vibe '{suggestion.mood}': {len(suggested)} suggestions in {elapsed_ms}ms"
    )
    return suggestion
