"""Speech synthesis: engine abstraction, voice selection and per-component adapter."""

from .adapter import SpeechSynthesisAdapter
from .engine import SpeechEngine, Utterance, Voice
from .simulated import SimulatedSpeechEngine
from .voices import VOICE_PRIORITY, select_voice

__all__ = [
    "SpeechSynthesisAdapter",
    "SpeechEngine",
    "Utterance",
    "Voice",
    "SimulatedSpeechEngine",
    "VOICE_PRIORITY",
    "select_voice",
]
