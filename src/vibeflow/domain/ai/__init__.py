"""AI domain - mood analysis and song suggestions via OpenAI."""

from .vibe import (
    VibeSuggestion,
    build_vibe_input,
    parse_vibe_output,
    suggest_vibe,
)

__all__ = [
    "VibeSuggestion",
    "build_vibe_input",
    "parse_vibe_output",
    "suggest_vibe",
]
