"""
Type definitions for tour narration.

The narration state machine is a pure reducer: events come in, a new
NarrationState and a list of effects come out. The controller is the only
place effects are carried out.
"""

from dataclasses import dataclass, field, replace
from enum import Enum


@dataclass(frozen=True)
class Spot:
    """One narration unit of the tour. Immutable once the sequence is built."""

    index: int
    title: str
    text: str
    video_src: str | None = None
    item_id: str | None = None


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RetryPolicy:
    """How often a silent (never started) utterance is re-issued, and after how long."""

    max_attempts: int = 1
    timeout_ms: float = 1200


@dataclass(frozen=True)
class NarrationContext:
    """What the reducer needs to know about the spots and the voice."""

    text_lengths: tuple[int, ...] = ()
    rate: float = 1.0
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)
    advance_delay_ms: float = 150

    @property
    def spot_count(self) -> int:
        return len(self.text_lengths)


@dataclass(frozen=True)
class NarrationState:
    active_index: int = 0
    status: PlaybackStatus = PlaybackStatus.IDLE
    progress: tuple[int, ...] = ()
    # Bumped for every new utterance request; events carrying an older id are stale
    request_id: int = 0
    attempts: int = 0
    started: bool = False
    ended: bool = False
    boundary_driven: bool = False
    # Bumped for every armed start check; only the latest one may time out
    start_check: int = 0
    # Progress animation: anim_from at anim_origin_ms, reaching 100 after anim_duration_ms
    anim_origin_ms: float | None = None
    anim_from: int = 0
    anim_duration_ms: float = 0.0

    @classmethod
    def initial(cls, spot_count: int) -> "NarrationState":
        return cls(progress=(0,) * spot_count)

    @property
    def is_playing(self) -> bool:
        return self.status == PlaybackStatus.SPEAKING

    @property
    def is_completed(self) -> bool:
        return self.status == PlaybackStatus.COMPLETED

    @property
    def active_progress(self) -> int:
        if 0 <= self.active_index < len(self.progress):
            return self.progress[self.active_index]
        return 0

    def with_progress(self, index: int, value: int) -> "NarrationState":
        if not 0 <= index < len(self.progress):
            return self
        progress = list(self.progress)
        progress[index] = value
        return replace(self, progress=tuple(progress))


# --- Events ---


@dataclass(frozen=True)
class Play:
    at_ms: float = 0.0


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class SelectSpot:
    index: int


@dataclass(frozen=True)
class SpotsChanged:
    count: int


@dataclass(frozen=True)
class Unmount:
    pass


@dataclass(frozen=True)
class SpeechStarted:
    request_id: int
    at_ms: float


@dataclass(frozen=True)
class SpeechBoundary:
    request_id: int
    char_index: int
    char_length: int


@dataclass(frozen=True)
class SpeechEnded:
    request_id: int


@dataclass(frozen=True)
class SpeechFailed:
    request_id: int
    error: str


@dataclass(frozen=True)
class StartTimedOut:
    request_id: int
    check: int = 0


@dataclass(frozen=True)
class AdvanceDue:
    request_id: int


@dataclass(frozen=True)
class FrameTick:
    at_ms: float


NarrationEvent = (
    Play
    | Pause
    | SelectSpot
    | SpotsChanged
    | Unmount
    | SpeechStarted
    | SpeechBoundary
    | SpeechEnded
    | SpeechFailed
    | StartTimedOut
    | AdvanceDue
    | FrameTick
)


# --- Effects ---


@dataclass(frozen=True)
class SpeakSpot:
    index: int
    request_id: int


@dataclass(frozen=True)
class RetrySpeak:
    index: int


@dataclass(frozen=True)
class CancelSpeech:
    pass


@dataclass(frozen=True)
class PauseSpeech:
    pass


@dataclass(frozen=True)
class ResumeSpeech:
    pass


@dataclass(frozen=True)
class DetachSpeech:
    """Stop listening to the current utterance, leaving a paused engine as it is."""


@dataclass(frozen=True)
class ScheduleStartCheck:
    request_id: int
    delay_ms: float
    check: int = 0


@dataclass(frozen=True)
class ScheduleAdvance:
    request_id: int
    delay_ms: float


@dataclass(frozen=True)
class StartAnimation:
    pass


@dataclass(frozen=True)
class StopAnimation:
    pass


@dataclass(frozen=True)
class ReportError:
    message: str


NarrationEffect = (
    SpeakSpot
    | RetrySpeak
    | CancelSpeech
    | PauseSpeech
    | ResumeSpeech
    | DetachSpeech
    | ScheduleStartCheck
    | ScheduleAdvance
    | StartAnimation
    | StopAnimation
    | ReportError
)
