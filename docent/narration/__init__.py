"""Tour narration: spot sequence, playback state machine and its controller."""

from .controller import NarrationController
from .reducer import reduce
from .spots import VideoOverrides, build_spots, collect_section_playlist, resolve_video_source
from .types import NarrationContext, NarrationState, PlaybackStatus, RetryPolicy, Spot

__all__ = [
    "NarrationController",
    "reduce",
    "VideoOverrides",
    "build_spots",
    "collect_section_playlist",
    "resolve_video_source",
    "NarrationContext",
    "NarrationState",
    "PlaybackStatus",
    "RetryPolicy",
    "Spot",
]
