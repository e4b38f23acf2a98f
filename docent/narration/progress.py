"""Progress estimation for a spot being narrated."""

import math

# Estimated speaking time per character at rate 1.0
BASE_CHAR_MS = 150
MIN_ESTIMATE_MS = 800
MIN_RESUME_MS = 300
# Progress never shows 100 before the engine reports the end
CAP = 99


def estimate_duration_ms(text_length: int, rate: float = 1.0) -> int:
    """Estimated narration time: max(800ms, length * 150ms / rate)."""
    return max(MIN_ESTIMATE_MS, math.floor(text_length * BASE_CHAR_MS / max(0.1, rate)))


def remaining_duration_ms(progress: int, estimate_ms: float) -> int:
    """Animation duration for resuming at progress percent."""
    return max(MIN_RESUME_MS, math.floor((100 - progress) / 100 * estimate_ms))


def animated_progress(start: int, elapsed_ms: float, duration_ms: float) -> int:
    """
    Progress after elapsed_ms of an animation that began at start percent.

    Linear towards 100 over duration_ms, floored, capped at 99.
    """
    if start >= CAP:
        return start
    if duration_ms <= 0:
        return CAP
    added = min(CAP - start, max(0.0, elapsed_ms) / duration_ms * (100 - start))
    return max(start, math.floor(start + added))


def boundary_progress(char_index: int, char_length: int, text_length: int) -> int:
    """Progress implied by a word-boundary callback, capped at 99."""
    if text_length <= 0:
        return 0
    absolute = min(text_length, max(0, char_index) + max(0, char_length))
    return min(CAP, math.floor(absolute / text_length * 100))
