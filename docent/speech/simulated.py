"""
Speech engine that plays utterances on a Scheduler clock.

Behaves like a browser speech queue: one utterance speaks at a time, start
fires after a short latency, a boundary fires at the start of every word,
and end fires once the text has been "spoken". Used for offline tour runs
and for tests; it can also be told to lose or fail utterances.
"""

import logging
import re
from collections import deque

from docent.timing import Scheduler, TimerHandle

from .engine import SpeechEngine, Utterance, Voice

logger = logging.getLogger(__name__)

DEFAULT_VOICES = (
    Voice(name="Google 한국의", lang="ko-KR"),
    Voice(name="Yuna", lang="ko-KR"),
    Voice(name="Samantha", lang="en-US"),
)

_WORD = re.compile(r"\S+")


class SimulatedSpeechEngine(SpeechEngine):
    def __init__(
        self,
        scheduler: Scheduler,
        voices: tuple[Voice, ...] | list[Voice] = DEFAULT_VOICES,
        *,
        ms_per_char: float = 150.0,
        start_latency_ms: float = 30.0,
        emit_boundaries: bool = True,
    ):
        super().__init__()
        self.scheduler = scheduler
        self._voices = list(voices)
        self.ms_per_char = ms_per_char
        self.start_latency_ms = start_latency_ms
        self.emit_boundaries = emit_boundaries

        self._queue: deque[Utterance] = deque()
        self._current: Utterance | None = None
        self._paused = False
        # (offset_ms, kind, args) events still to fire for the current utterance
        self._timeline: list[tuple[float, str, tuple]] = []
        self._handles: list[TimerHandle] = []
        self._position_ms = 0.0
        self._resumed_at = 0.0

        self._drop_count = 0
        self._fail_error: str | None = None
        self.spoken: list[Utterance] = []

    # --- Fault injection ---

    def drop_next(self, count: int = 1) -> None:
        """The next count utterances silently never start."""
        self._drop_count += count

    def fail_next(self, error: str = "synthesis-failed") -> None:
        """The next utterance reports error instead of starting."""
        self._fail_error = error

    # --- SpeechEngine ---

    def voices(self) -> list[Voice]:
        return list(self._voices)

    def set_voices(self, voices: list[Voice]) -> None:
        self._voices = list(voices)

    @property
    def speaking(self) -> bool:
        return self._current is not None

    @property
    def paused(self) -> bool:
        return self._paused

    def speak(self, utterance: Utterance) -> None:
        self._queue.append(utterance)
        if self._current is None and not self._paused:
            self._start_next()

    def cancel(self) -> None:
        self._queue.clear()
        self._clear_timers()
        self._timeline = []
        interrupted = self._current
        self._current = None
        self._paused = False
        if interrupted is not None and interrupted.on_error:
            interrupted.on_error("interrupted")

    def pause(self) -> None:
        if self._paused:
            return
        self._paused = True
        if self._current is not None:
            self._position_ms += self.scheduler.now_ms() - self._resumed_at
            self._clear_timers()

    def resume(self) -> None:
        if not self._paused:
            return
        self._paused = False
        if self._current is not None:
            self._schedule_remaining()
        else:
            self._start_next()

    # --- Playback ---

    def _start_next(self) -> None:
        while self._queue:
            utterance = self._queue.popleft()
            if self._drop_count > 0:
                self._drop_count -= 1
                logger.debug("Dropping utterance id=%s", utterance.id)
                continue
            self._begin(utterance)
            return

    def _begin(self, utterance: Utterance) -> None:
        self._current = utterance
        self._position_ms = 0.0
        latency = self.start_latency_ms

        if self._fail_error is not None:
            error, self._fail_error = self._fail_error, None
            self._timeline = [(latency, "error", (error,))]
        else:
            per_char = self.ms_per_char / max(0.1, utterance.rate)
            timeline = [(latency, "start", ())]
            if self.emit_boundaries:
                for match in _WORD.finditer(utterance.text):
                    offset = latency + match.start() * per_char
                    timeline.append(
                        (offset, "boundary", (match.start(), len(match.group())))
                    )
            timeline.append((latency + len(utterance.text) * per_char, "end", ()))
            self._timeline = timeline

        self.spoken.append(utterance)
        self._schedule_remaining()

    def _schedule_remaining(self) -> None:
        self._clear_timers()
        self._resumed_at = self.scheduler.now_ms()
        utterance = self._current
        for entry in list(self._timeline):
            delay = max(0.0, entry[0] - self._position_ms)
            self._handles.append(
                self.scheduler.call_later(delay, self._fire, utterance, entry)
            )

    def _clear_timers(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles = []

    def _fire(self, utterance: Utterance, entry: tuple) -> None:
        if utterance is not self._current or self._paused:
            return
        if entry in self._timeline:
            self._timeline.remove(entry)
        _, kind, args = entry

        if kind == "start":
            if utterance.on_start:
                utterance.on_start()
        elif kind == "boundary":
            if utterance.on_boundary:
                utterance.on_boundary(*args)
        elif kind == "end":
            self._finish()
            if utterance.on_end:
                utterance.on_end()
            self._start_next()
        elif kind == "error":
            self._finish()
            if utterance.on_error:
                utterance.on_error(*args)
            self._start_next()

    def _finish(self) -> None:
        self._clear_timers()
        self._timeline = []
        self._current = None
