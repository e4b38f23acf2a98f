"""
Narration playback controller.

Owns the NarrationState of one tour screen. Every input (visitor command,
speech callback, timer) becomes an event for the reducer; the effects the
reducer returns are carried out here against the speech adapter and the
scheduler. Dispatches issued while an effect runs (an engine that calls back
synchronously, for instance) are queued and applied in order.
"""

import logging
from collections import deque
from typing import Callable

from docent.errors import SynthesisError
from docent.speech.adapter import SpeechSynthesisAdapter
from docent.timing import Scheduler, TimerHandle

from .reducer import reduce
from .types import (
    AdvanceDue,
    CancelSpeech,
    DetachSpeech,
    FrameTick,
    NarrationContext,
    NarrationEffect,
    NarrationEvent,
    NarrationState,
    Pause,
    PauseSpeech,
    Play,
    ReportError,
    ResumeSpeech,
    RetryPolicy,
    RetrySpeak,
    ScheduleAdvance,
    ScheduleStartCheck,
    SelectSpot,
    SpeakSpot,
    SpeechBoundary,
    SpeechEnded,
    SpeechFailed,
    SpeechStarted,
    Spot,
    SpotsChanged,
    StartAnimation,
    StartTimedOut,
    StopAnimation,
    Unmount,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[NarrationState], None]
ErrorListener = Callable[[str], None]


class NarrationController:
    def __init__(
        self,
        speech: SpeechSynthesisAdapter,
        scheduler: Scheduler,
        spots: list[Spot] | None = None,
        retry_policy: RetryPolicy | None = None,
        advance_delay_ms: float = 150,
        frame_interval_ms: float = 16,
    ):
        self.speech = speech
        self.scheduler = scheduler
        self.retry_policy = retry_policy or RetryPolicy()
        self.advance_delay_ms = advance_delay_ms
        self.frame_interval_ms = frame_interval_ms

        self._spots: list[Spot] = list(spots or [])
        self._context = self._build_context()
        self._state = NarrationState.initial(len(self._spots))

        self._queue: deque[NarrationEvent] = deque()
        self._dispatching = False
        self._timers: list[TimerHandle] = []
        self._frame: TimerHandle | None = None
        self._listeners: list[StateListener] = []
        self._error_listeners: list[ErrorListener] = []

    def _build_context(self) -> NarrationContext:
        return NarrationContext(
            text_lengths=tuple(len(s.text) for s in self._spots),
            rate=self.speech.rate,
            retry_policy=self.retry_policy,
            advance_delay_ms=self.advance_delay_ms,
        )

    # --- Observation ---

    @property
    def state(self) -> NarrationState:
        return self._state

    @property
    def spots(self) -> list[Spot]:
        return list(self._spots)

    @property
    def active_spot(self) -> Spot | None:
        index = self._state.active_index
        if 0 <= index < len(self._spots):
            return self._spots[index]
        return None

    @property
    def pending_timers(self) -> int:
        """Start checks and advances scheduled and not yet fired."""
        return len(self._timers)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener with every new state. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_error(self, listener: ErrorListener) -> None:
        self._error_listeners.append(listener)

    # --- Commands ---

    def play(self) -> None:
        self.dispatch(Play(at_ms=self.scheduler.now_ms()))

    def pause(self) -> None:
        # Settle the animated progress at the moment of pausing
        self.dispatch(FrameTick(at_ms=self.scheduler.now_ms()))
        self.dispatch(Pause())

    def toggle(self) -> None:
        if self._state.is_playing:
            self.pause()
        else:
            self.play()

    def select_spot(self, index: int) -> None:
        self.dispatch(SelectSpot(index=index))

    def set_spots(self, spots: list[Spot]) -> None:
        """Replace the spot sequence (new items or a new age profile)."""
        self._spots = list(spots)
        self._context = self._build_context()
        self.dispatch(SpotsChanged(count=len(self._spots)))

    def unmount(self) -> None:
        self.dispatch(Unmount())
        for timer in self._timers:
            timer.cancel()
        self._timers = []

    # --- Event loop ---

    def dispatch(self, event: NarrationEvent) -> None:
        self._queue.append(event)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._dispatching = False

    def _apply(self, event: NarrationEvent) -> None:
        previous = self._state
        self._state, effects = reduce(previous, event, self._context)
        for effect in effects:
            self._run(effect)
        if self._state != previous:
            if self._state.active_index != previous.active_index:
                logger.info(
                    "Narration moved to spot %d/%d",
                    self._state.active_index + 1,
                    len(self._spots),
                )
            for listener in list(self._listeners):
                listener(self._state)

    def _run(self, effect: NarrationEffect) -> None:
        if isinstance(effect, SpeakSpot):
            self._speak(effect.index, effect.request_id)
        elif isinstance(effect, RetrySpeak):
            try:
                self.speech.retry()
            except SynthesisError as e:
                self.dispatch(
                    SpeechFailed(request_id=self._state.request_id, error=str(e))
                )
        elif isinstance(effect, CancelSpeech):
            self.speech.cancel()
        elif isinstance(effect, PauseSpeech):
            self.speech.pause()
        elif isinstance(effect, ResumeSpeech):
            self.speech.resume()
        elif isinstance(effect, DetachSpeech):
            self.speech.detach()
        elif isinstance(effect, ScheduleStartCheck):
            self._later(
                effect.delay_ms,
                StartTimedOut(request_id=effect.request_id, check=effect.check),
            )
        elif isinstance(effect, ScheduleAdvance):
            self._later(effect.delay_ms, AdvanceDue(request_id=effect.request_id))
        elif isinstance(effect, StartAnimation):
            self._stop_frames()
            self._frame = self.scheduler.call_later(self.frame_interval_ms, self._on_frame)
        elif isinstance(effect, StopAnimation):
            self._stop_frames()
        elif isinstance(effect, ReportError):
            self._report(effect.message)

    def _speak(self, index: int, request_id: int) -> None:
        spot = self._spots[index]
        utterance = self.speech.build(
            spot.text,
            on_start=lambda: self.dispatch(
                SpeechStarted(request_id=request_id, at_ms=self.scheduler.now_ms())
            ),
            on_boundary=lambda char_index, char_length: self.dispatch(
                SpeechBoundary(
                    request_id=request_id,
                    char_index=char_index,
                    char_length=char_length,
                )
            ),
            on_end=lambda: self.dispatch(SpeechEnded(request_id=request_id)),
            on_error=lambda error: self.dispatch(
                SpeechFailed(request_id=request_id, error=error)
            ),
        )
        logger.debug("Speaking spot %d (%d chars)", index, len(spot.text))
        try:
            self.speech.speak(utterance)
        except SynthesisError as e:
            logger.warning("Speech engine refused spot %d: %s", index, e)
            self.dispatch(SpeechFailed(request_id=request_id, error=str(e)))

    def _later(self, delay_ms: float, event: NarrationEvent) -> None:
        def fire() -> None:
            if timer in self._timers:
                self._timers.remove(timer)
            self.dispatch(event)

        timer = self.scheduler.call_later(delay_ms, fire)
        self._timers.append(timer)

    def _on_frame(self) -> None:
        self._frame = None
        self.dispatch(FrameTick(at_ms=self.scheduler.now_ms()))
        state = self._state
        if (
            self._frame is None
            and state.is_playing
            and state.anim_origin_ms is not None
            and not state.boundary_driven
        ):
            self._frame = self.scheduler.call_later(self.frame_interval_ms, self._on_frame)

    def _stop_frames(self) -> None:
        if self._frame is not None:
            self._frame.cancel()
            self._frame = None

    def _report(self, message: str) -> None:
        logger.error("Narration stopped: %s", message)
        for listener in list(self._error_listeners):
            listener(message)
