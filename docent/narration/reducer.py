"""
Narration playback state machine.

    Idle(i)     --play-->        Speaking(i)
    Speaking(i) --pause-->       Paused(i)
    Paused(i)   --play-->        Speaking(i)     (resumes the paused utterance)
    Speaking(i) --natural end--> Speaking(i+1), or Completed after the last spot
    any         --select(j)-->   Speaking(j) while playing, else Idle(j)
    Completed   --play-->        Speaking(0)
    any         --unmount-->     Idle

reduce() is pure. Speech and timer events carry the request_id of the
utterance they belong to; anything older than the current request is dropped.
"""

from dataclasses import replace

from .progress import (
    animated_progress,
    boundary_progress,
    estimate_duration_ms,
    remaining_duration_ms,
)
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
    PlaybackStatus,
    ReportError,
    ResumeSpeech,
    RetrySpeak,
    ScheduleAdvance,
    ScheduleStartCheck,
    SelectSpot,
    SpeakSpot,
    SpeechBoundary,
    SpeechEnded,
    SpeechFailed,
    SpeechStarted,
    SpotsChanged,
    StartAnimation,
    StartTimedOut,
    StopAnimation,
    Unmount,
)

# Errors the engine reports when speech is cancelled or preempted on purpose
BENIGN_ERRORS = ("interrupted", "canceled")

Result = tuple[NarrationState, list[NarrationEffect]]


def is_benign_error(error: str) -> bool:
    lowered = (error or "").lower()
    return any(name in lowered for name in BENIGN_ERRORS)


def _estimate(state: NarrationState, context: NarrationContext) -> int:
    length = 0
    if 0 <= state.active_index < context.spot_count:
        length = context.text_lengths[state.active_index]
    return estimate_duration_ms(length, context.rate)


def _arm_start_check(
    state: NarrationState, context: NarrationContext
) -> tuple[NarrationState, ScheduleStartCheck]:
    state = replace(state, start_check=state.start_check + 1)
    return state, ScheduleStartCheck(
        request_id=state.request_id,
        delay_ms=context.retry_policy.timeout_ms,
        check=state.start_check,
    )


def _request(state: NarrationState, index: int, context: NarrationContext) -> Result:
    """Start a fresh utterance for spot index."""
    request_id = state.request_id + 1
    state = replace(
        state,
        active_index=index,
        status=PlaybackStatus.SPEAKING,
        request_id=request_id,
        attempts=0,
        started=False,
        ended=False,
        boundary_driven=False,
        anim_origin_ms=None,
    ).with_progress(index, 0)
    state, check = _arm_start_check(state, context)
    return state, [
        StopAnimation(),
        SpeakSpot(index=index, request_id=request_id),
        check,
    ]


def _stop(state: NarrationState) -> NarrationState:
    """Back to Idle on the active spot, invalidating the current request."""
    return replace(
        state,
        status=PlaybackStatus.IDLE,
        request_id=state.request_id + 1,
        anim_origin_ms=None,
    )


def _is_current(state: NarrationState, request_id: int) -> bool:
    return request_id == state.request_id and state.status in (
        PlaybackStatus.SPEAKING,
        PlaybackStatus.PAUSED,
    )


def _on_play(state: NarrationState, event: Play, context: NarrationContext) -> Result:
    if context.spot_count == 0:
        return state, []

    if state.status == PlaybackStatus.COMPLETED:
        state = replace(state, progress=(0,) * context.spot_count)
        return _request(state, 0, context)

    if state.status == PlaybackStatus.IDLE:
        return _request(state, state.active_index, context)

    if state.status == PlaybackStatus.PAUSED:
        state = replace(state, status=PlaybackStatus.SPEAKING)
        if state.ended:
            # Paused between the end of speech and the advance
            return state, []
        effects: list[NarrationEffect] = [ResumeSpeech()]
        if not state.started:
            # The check armed before the pause no longer counts
            state, check = _arm_start_check(state, context)
            effects.append(check)
            return state, effects
        if not state.boundary_driven:
            current = state.active_progress
            state = replace(
                state,
                anim_origin_ms=event.at_ms,
                anim_from=current,
                anim_duration_ms=remaining_duration_ms(current, _estimate(state, context)),
            )
            effects.append(StartAnimation())
        return state, effects

    return state, []


def _on_pause(state: NarrationState) -> Result:
    if state.status != PlaybackStatus.SPEAKING:
        return state, []
    return replace(state, status=PlaybackStatus.PAUSED, anim_origin_ms=None), [
        PauseSpeech(),
        StopAnimation(),
    ]


def _on_select(
    state: NarrationState, event: SelectSpot, context: NarrationContext
) -> Result:
    index = event.index
    if not 0 <= index < context.spot_count:
        return state, []

    was_playing = state.status == PlaybackStatus.SPEAKING
    progress = tuple(
        0 if i >= index else p for i, p in enumerate(state.progress)
    )
    state = replace(
        _stop(state), active_index=index, progress=progress, ended=False, started=False
    )
    effects: list[NarrationEffect] = [CancelSpeech(), StopAnimation()]
    if was_playing:
        state, more = _request(state, index, context)
        effects.extend(more)
    return state, effects


def _on_spots_changed(state: NarrationState, event: SpotsChanged) -> Result:
    count = max(0, event.count)
    release = DetachSpeech() if state.status == PlaybackStatus.PAUSED else CancelSpeech()
    active = min(state.active_index, count - 1) if count else 0
    state = replace(
        _stop(state),
        active_index=max(0, active),
        progress=(0,) * count,
        started=False,
        ended=False,
    )
    return state, [release, StopAnimation()]


def _on_unmount(state: NarrationState) -> Result:
    if state.status == PlaybackStatus.PAUSED:
        release = DetachSpeech()
    else:
        release = CancelSpeech()
    return _stop(state), [release, StopAnimation()]


def _on_started(
    state: NarrationState, event: SpeechStarted, context: NarrationContext
) -> Result:
    if not _is_current(state, event.request_id) or state.started:
        return state, []
    state = replace(state, started=True)
    if state.status != PlaybackStatus.SPEAKING:
        return state, []
    state = state.with_progress(state.active_index, 0)
    state = replace(
        state,
        anim_origin_ms=event.at_ms,
        anim_from=0,
        anim_duration_ms=_estimate(state, context),
    )
    return state, [StartAnimation()]


def _on_boundary(
    state: NarrationState, event: SpeechBoundary, context: NarrationContext
) -> Result:
    if not _is_current(state, event.request_id) or state.ended:
        return state, []
    index = state.active_index
    if not 0 <= index < context.spot_count:
        return state, []
    computed = boundary_progress(
        event.char_index, event.char_length, context.text_lengths[index]
    )
    effects: list[NarrationEffect] = []
    if not state.boundary_driven:
        effects.append(StopAnimation())
    state = replace(
        state, boundary_driven=True, started=True, anim_origin_ms=None
    ).with_progress(index, max(state.active_progress, computed))
    return state, effects


def _on_ended(
    state: NarrationState, event: SpeechEnded, context: NarrationContext
) -> Result:
    if not _is_current(state, event.request_id) or state.ended:
        return state, []
    state = replace(state, ended=True, started=True, anim_origin_ms=None)
    state = state.with_progress(state.active_index, 100)
    return state, [
        StopAnimation(),
        ScheduleAdvance(request_id=state.request_id, delay_ms=context.advance_delay_ms),
    ]


def _on_advance(
    state: NarrationState, event: AdvanceDue, context: NarrationContext
) -> Result:
    if not _is_current(state, event.request_id) or not state.ended:
        return state, []
    next_index = state.active_index + 1
    if next_index >= context.spot_count:
        return replace(_stop(state), status=PlaybackStatus.COMPLETED), []
    if state.status == PlaybackStatus.SPEAKING:
        return _request(state, next_index, context)
    # Paused while the advance was pending: move on without speaking
    state = replace(_stop(state), active_index=next_index, started=False, ended=False)
    return state.with_progress(next_index, 0), []


def _on_failed(state: NarrationState, event: SpeechFailed) -> Result:
    if not _is_current(state, event.request_id) or state.ended:
        return state, []
    state = _stop(state).with_progress(state.active_index, 0)
    effects: list[NarrationEffect] = [StopAnimation()]
    if not is_benign_error(event.error):
        effects.append(ReportError(f"Speech synthesis failed: {event.error}"))
    return state, effects


def _on_start_timeout(
    state: NarrationState, event: StartTimedOut, context: NarrationContext
) -> Result:
    if (
        event.request_id != state.request_id
        or event.check != state.start_check
        or state.status != PlaybackStatus.SPEAKING
        or state.started
        or state.ended
    ):
        return state, []
    policy = context.retry_policy
    if state.attempts < policy.max_attempts:
        state = replace(state, attempts=state.attempts + 1)
        state, check = _arm_start_check(state, context)
        return state, [RetrySpeak(index=state.active_index), check]
    state = _stop(state).with_progress(state.active_index, 0)
    return state, [
        CancelSpeech(),
        StopAnimation(),
        ReportError(
            f"Speech did not start after {state.attempts + 1} attempts "
            f"(spot {state.active_index})"
        ),
    ]


def _on_frame(
    state: NarrationState, event: FrameTick, context: NarrationContext
) -> Result:
    if (
        state.status != PlaybackStatus.SPEAKING
        or state.anim_origin_ms is None
        or state.boundary_driven
        or state.ended
    ):
        return state, []
    value = animated_progress(
        state.anim_from, event.at_ms - state.anim_origin_ms, state.anim_duration_ms
    )
    if value <= state.active_progress:
        return state, []
    return state.with_progress(state.active_index, value), []


def reduce(
    state: NarrationState, event: NarrationEvent, context: NarrationContext
) -> Result:
    """Apply event to state. Returns the new state and the effects to carry out."""
    if isinstance(event, Play):
        return _on_play(state, event, context)
    if isinstance(event, Pause):
        return _on_pause(state)
    if isinstance(event, SelectSpot):
        return _on_select(state, event, context)
    if isinstance(event, SpotsChanged):
        return _on_spots_changed(state, event)
    if isinstance(event, Unmount):
        return _on_unmount(state)
    if isinstance(event, SpeechStarted):
        return _on_started(state, event, context)
    if isinstance(event, SpeechBoundary):
        return _on_boundary(state, event, context)
    if isinstance(event, SpeechEnded):
        return _on_ended(state, event, context)
    if isinstance(event, SpeechFailed):
        return _on_failed(state, event)
    if isinstance(event, StartTimedOut):
        return _on_start_timeout(state, event, context)
    if isinstance(event, AdvanceDue):
        return _on_advance(state, event, context)
    if isinstance(event, FrameTick):
        return _on_frame(state, event, context)
    raise TypeError(f"Unknown narration event: {event!r}")
