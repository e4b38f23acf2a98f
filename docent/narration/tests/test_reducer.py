"""Tests for the narration playback state machine."""

import pytest

from docent.narration.reducer import is_benign_error, reduce
from docent.narration.types import (
    AdvanceDue,
    CancelSpeech,
    DetachSpeech,
    FrameTick,
    NarrationContext,
    NarrationState,
    Pause,
    PauseSpeech,
    Play,
    PlaybackStatus,
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
    SpotsChanged,
    StartAnimation,
    StartTimedOut,
    StopAnimation,
    Unmount,
)

CONTEXT = NarrationContext(text_lengths=(10, 20, 30))


def run(state, *events, context=CONTEXT):
    """Feed events in order; return the final state and the last effects."""
    effects = []
    for event in events:
        state, effects = reduce(state, event, context)
    return state, effects


def playing(context=CONTEXT):
    """A state speaking spot 0 whose utterance has started."""
    state, _ = run(NarrationState.initial(context.spot_count), Play(at_ms=0), context=context)
    return run(state, SpeechStarted(request_id=state.request_id, at_ms=0), context=context)[0]


def finish_current(state):
    rid = state.request_id
    return run(state, SpeechEnded(request_id=rid), AdvanceDue(request_id=rid))


# =====================================================
# Play / pause / natural advance
# =====================================================


class TestPlay:
    def test_play_from_idle_requests_active_spot(self):
        state, effects = reduce(NarrationState.initial(3), Play(), CONTEXT)

        assert state.status == PlaybackStatus.SPEAKING
        assert state.request_id == 1
        assert SpeakSpot(index=0, request_id=1) in effects
        assert ScheduleStartCheck(request_id=1, delay_ms=1200, check=1) in effects

    def test_play_without_spots_does_nothing(self):
        state = NarrationState.initial(0)

        assert reduce(state, Play(), NarrationContext()) == (state, [])

    def test_started_begins_progress_animation(self):
        state, _ = reduce(NarrationState.initial(3), Play(), CONTEXT)

        state, effects = reduce(state, SpeechStarted(request_id=1, at_ms=500), CONTEXT)

        assert effects == [StartAnimation()]
        assert state.anim_origin_ms == 500
        # 10 chars * 150ms = 1500ms
        assert state.anim_duration_ms == 1500

    def test_every_spot_completes_in_order(self):
        state = playing()
        spoken = [state.active_index]

        for _ in range(2):
            state, effects = finish_current(state)
            spoken.append(state.active_index)
            rid = state.request_id
            state, _ = run(state, SpeechStarted(request_id=rid, at_ms=0))
        state, effects = finish_current(state)

        assert spoken == [0, 1, 2]
        assert state.status == PlaybackStatus.COMPLETED
        assert state.progress == (100, 100, 100)
        assert effects == []

    def test_end_sets_full_progress_and_schedules_advance(self):
        state = playing()

        state, effects = reduce(state, SpeechEnded(request_id=state.request_id), CONTEXT)

        assert state.progress[0] == 100
        assert ScheduleAdvance(request_id=state.request_id, delay_ms=150) in effects
        assert state.active_index == 0

    def test_play_after_completion_restarts_from_first_spot(self):
        state = NarrationState(
            active_index=2, status=PlaybackStatus.COMPLETED, progress=(100, 100, 100)
        )

        state, effects = reduce(state, Play(), CONTEXT)

        assert state.active_index == 0
        assert state.progress == (0, 0, 0)
        assert SpeakSpot(index=0, request_id=state.request_id) in effects


class TestPauseResume:
    def test_pause_only_from_speaking(self):
        idle = NarrationState.initial(3)

        assert reduce(idle, Pause(), CONTEXT) == (idle, [])

    def test_pause_then_resume_continues_utterance(self):
        state = playing()

        state, effects = reduce(state, Pause(), CONTEXT)
        assert state.status == PlaybackStatus.PAUSED
        assert effects == [PauseSpeech(), StopAnimation()]

        state, effects = reduce(state, Play(at_ms=3000), CONTEXT)
        assert state.status == PlaybackStatus.SPEAKING
        assert effects[0] == ResumeSpeech()
        assert not any(isinstance(e, SpeakSpot) for e in effects)

    def test_progress_is_monotonic_across_pause_and_resume(self):
        state = playing()
        seen = []

        state, _ = run(state, FrameTick(at_ms=750))
        seen.append(state.progress[0])
        state, _ = run(state, Pause(), FrameTick(at_ms=900))
        seen.append(state.progress[0])

        state, _ = run(state, Play(at_ms=5000))
        # Remaining half of 1500ms
        assert state.anim_duration_ms == 750
        for at in (5000, 5100, 5375, 5700, 9000):
            state, _ = run(state, FrameTick(at_ms=at))
            seen.append(state.progress[0])

        assert seen == sorted(seen)
        assert seen[0] == 50
        assert seen[1] == 50
        assert 75 in seen
        assert seen[-1] == 99

    def test_resume_before_start_rearms_start_check(self):
        state, _ = reduce(NarrationState.initial(3), Play(), CONTEXT)
        state, _ = reduce(state, Pause(), CONTEXT)

        state, effects = reduce(state, Play(), CONTEXT)

        assert effects == [
            ResumeSpeech(),
            ScheduleStartCheck(request_id=state.request_id, delay_ms=1200, check=2),
        ]

    def test_check_armed_before_pause_is_stale_after_resume(self):
        state, _ = reduce(NarrationState.initial(3), Play(), CONTEXT)
        rid = state.request_id
        state, _ = run(state, Pause(), Play())

        assert reduce(state, StartTimedOut(request_id=rid, check=1), CONTEXT) == (state, [])

        state, effects = reduce(state, StartTimedOut(request_id=rid, check=2), CONTEXT)
        assert effects == [
            RetrySpeak(index=0),
            ScheduleStartCheck(request_id=rid, delay_ms=1200, check=3),
        ]

    def test_pause_during_advance_delay_stops_at_next_spot(self):
        state = playing()
        rid = state.request_id
        state, _ = run(state, SpeechEnded(request_id=rid), Pause())

        state, effects = reduce(state, AdvanceDue(request_id=rid), CONTEXT)

        assert state.status == PlaybackStatus.IDLE
        assert state.active_index == 1
        assert state.progress == (100, 0, 0)
        assert effects == []

    def test_pause_during_advance_delay_on_last_spot_completes(self):
        context = NarrationContext(text_lengths=(10,))
        state = playing(context)
        rid = state.request_id

        state, _ = run(
            state, SpeechEnded(request_id=rid), Pause(), AdvanceDue(request_id=rid),
            context=context,
        )

        assert state.status == PlaybackStatus.COMPLETED


# =====================================================
# Progress from word boundaries
# =====================================================


class TestBoundaries:
    def test_first_boundary_takes_over_from_animation(self):
        state = playing()

        state, effects = reduce(
            state, SpeechBoundary(request_id=state.request_id, char_index=0, char_length=5), CONTEXT
        )

        assert effects == [StopAnimation()]
        assert state.boundary_driven
        assert state.progress[0] == 50

    def test_boundary_never_lowers_progress_or_reaches_100(self):
        state = playing()
        rid = state.request_id

        state, _ = run(
            state,
            SpeechBoundary(request_id=rid, char_index=6, char_length=4),
            SpeechBoundary(request_id=rid, char_index=0, char_length=2),
        )
        assert state.progress[0] == 99

        state, _ = run(state, FrameTick(at_ms=100_000))
        assert state.progress[0] == 99


# =====================================================
# Spot selection
# =====================================================


class TestSelectSpot:
    def test_jump_back_zeroes_target_and_later_spots(self):
        state = NarrationState(
            active_index=2,
            status=PlaybackStatus.SPEAKING,
            progress=(100, 100, 40),
            request_id=5,
        )

        state, effects = reduce(state, SelectSpot(index=1), CONTEXT)

        assert state.progress == (100, 0, 0)
        assert state.active_index == 1
        assert state.status == PlaybackStatus.SPEAKING
        assert effects[:2] == [CancelSpeech(), StopAnimation()]
        assert SpeakSpot(index=1, request_id=state.request_id) in effects

    def test_select_while_idle_does_not_speak(self):
        state, effects = reduce(NarrationState.initial(3), SelectSpot(index=2), CONTEXT)

        assert state.status == PlaybackStatus.IDLE
        assert state.active_index == 2
        assert not any(isinstance(e, SpeakSpot) for e in effects)

    def test_select_while_paused_goes_idle(self):
        state, _ = run(playing(), Pause())

        state, _ = reduce(state, SelectSpot(index=1), CONTEXT)

        assert state.status == PlaybackStatus.IDLE
        assert state.active_index == 1

    @pytest.mark.parametrize("index", [-1, 3])
    def test_out_of_range_is_ignored(self, index):
        state = playing()

        assert reduce(state, SelectSpot(index=index), CONTEXT) == (state, [])

    def test_events_of_replaced_utterance_are_ignored(self):
        state = playing()
        old = state.request_id
        state, _ = reduce(state, SelectSpot(index=1), CONTEXT)

        for event in (
            SpeechStarted(request_id=old, at_ms=0),
            SpeechBoundary(request_id=old, char_index=0, char_length=3),
            SpeechEnded(request_id=old),
            SpeechFailed(request_id=old, error="synthesis-failed"),
            AdvanceDue(request_id=old),
            StartTimedOut(request_id=old),
        ):
            assert reduce(state, event, CONTEXT) == (state, [])


# =====================================================
# Failure and retry
# =====================================================


class TestFailures:
    def test_silent_start_is_retried_once_then_reported(self):
        state, _ = reduce(NarrationState.initial(3), Play(), CONTEXT)
        rid = state.request_id

        state, effects = reduce(state, StartTimedOut(request_id=rid, check=1), CONTEXT)
        assert effects == [
            RetrySpeak(index=0),
            ScheduleStartCheck(request_id=rid, delay_ms=1200, check=2),
        ]
        assert state.status == PlaybackStatus.SPEAKING

        state, effects = reduce(state, StartTimedOut(request_id=rid, check=2), CONTEXT)
        assert state.status == PlaybackStatus.IDLE
        assert state.progress[0] == 0
        assert effects[:2] == [CancelSpeech(), StopAnimation()]
        assert effects[2] == ReportError("Speech did not start after 2 attempts (spot 0)")

    def test_retry_policy_is_configurable(self):
        context = NarrationContext(
            text_lengths=(10,), retry_policy=RetryPolicy(max_attempts=0, timeout_ms=500)
        )
        state, _ = reduce(NarrationState.initial(1), Play(), context)

        state, effects = reduce(
            state,
            StartTimedOut(request_id=state.request_id, check=state.start_check),
            context,
        )

        assert state.status == PlaybackStatus.IDLE
        assert isinstance(effects[-1], ReportError)

    def test_start_check_after_start_is_a_no_op(self):
        state = playing()

        event = StartTimedOut(request_id=state.request_id, check=state.start_check)

        assert reduce(state, event, CONTEXT) == (state, [])

    def test_engine_error_stops_and_reports(self):
        state, _ = run(playing(), FrameTick(at_ms=300))

        state, effects = reduce(
            state, SpeechFailed(request_id=state.request_id, error="audio-busy"), CONTEXT
        )

        assert state.status == PlaybackStatus.IDLE
        assert state.progress[0] == 0
        assert ReportError("Speech synthesis failed: audio-busy") in effects

    @pytest.mark.parametrize("error", ["interrupted", "canceled"])
    def test_interruption_stops_quietly(self, error):
        state = playing()

        state, effects = reduce(state, SpeechFailed(request_id=state.request_id, error=error), CONTEXT)

        assert state.status == PlaybackStatus.IDLE
        assert state.progress[0] == 0
        assert not any(isinstance(e, ReportError) for e in effects)

    def test_benign_error_names(self):
        assert is_benign_error("Interrupted")
        assert is_benign_error("canceled")
        assert not is_benign_error("network")
        assert not is_benign_error("")


# =====================================================
# Teardown and spot changes
# =====================================================


class TestLifecycle:
    def test_unmount_while_speaking_cancels(self):
        state, effects = reduce(playing(), Unmount(), CONTEXT)

        assert state.status == PlaybackStatus.IDLE
        assert effects == [CancelSpeech(), StopAnimation()]

    def test_unmount_while_paused_detaches(self):
        state, _ = run(playing(), Pause())

        state, effects = reduce(state, Unmount(), CONTEXT)

        assert state.status == PlaybackStatus.IDLE
        assert effects[0] == DetachSpeech()

    def test_spots_changed_resets_progress_and_clamps_index(self):
        state = NarrationState(
            active_index=2, status=PlaybackStatus.SPEAKING, progress=(100, 100, 30)
        )

        state, effects = reduce(
            state, SpotsChanged(count=2), NarrationContext(text_lengths=(5, 5))
        )

        assert state.active_index == 1
        assert state.progress == (0, 0)
        assert state.status == PlaybackStatus.IDLE
        assert effects[0] == CancelSpeech()

    def test_spots_changed_to_empty(self):
        state, _ = reduce(playing(), SpotsChanged(count=0), NarrationContext())

        assert state.active_index == 0
        assert state.progress == ()

    def test_unknown_event_is_rejected(self):
        with pytest.raises(TypeError):
            reduce(NarrationState.initial(1), object(), CONTEXT)
