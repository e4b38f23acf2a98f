# docent/speech/voices.py
"""Voice selection for Korean narration."""

from typing import Iterable, Sequence

from .engine import Voice

# Substrings of preferred voice names, best first
VOICE_PRIORITY = ("Google 한국의", "Yuna", "Narae", "Heami", "Female", "여성")


def select_voice(
    voices: Iterable[Voice],
    lang: str,
    preferred: Sequence[str] = VOICE_PRIORITY,
) -> Voice | None:
    """
    Pick the voice to narrate with.

    Only voices of lang are considered. The first preferred name that is a
    substring of some voice's name wins; otherwise the first voice of lang.
    Returns None when the language has no voice (the engine default is used).
    """
    candidates = [v for v in voices if v.lang == lang]
    for name in preferred:
        for voice in candidates:
            if name in voice.name:
                return voice
    return candidates[0] if candidates else None
