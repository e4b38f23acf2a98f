"""
Tests for NarrationController driving a simulated speech engine.

The engine speaks at 10ms per character after a 5ms start latency, on a
virtual clock, so whole tours run instantly.
"""

import logging
from unittest.mock import MagicMock

import pytest

from docent.narration import NarrationController, PlaybackStatus, Spot
from docent.speech import SimulatedSpeechEngine, SpeechSynthesisAdapter
from docent.timing import ManualScheduler


def _spots(*texts):
    return [Spot(index=i, title=f"Spot {i + 1}", text=t) for i, t in enumerate(texts)]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def engine(scheduler):
    return SimulatedSpeechEngine(scheduler, ms_per_char=10, start_latency_ms=5)


@pytest.fixture
def make_controller(scheduler, engine):
    def make(*texts):
        adapter = SpeechSynthesisAdapter(engine, "docent")
        controller = NarrationController(adapter, scheduler, _spots(*texts))
        errors = []
        controller.on_error(errors.append)
        return controller, errors

    return make


class TestFullTour:
    def test_plays_every_spot_then_completes(self, scheduler, engine, make_controller, caplog):
        caplog.set_level(logging.INFO)
        controller, errors = make_controller("첫 번째 설명", "두 번째 설명", "세 번째")

        controller.play()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.COMPLETED
        assert controller.state.progress == (100, 100, 100)
        assert [u.text for u in engine.spoken] == ["첫 번째 설명", "두 번째 설명", "세 번째"]
        assert errors == []
        assert "Narration moved to spot 3/3" in caplog.text

    def test_fired_timers_are_not_kept(self, scheduler, make_controller):
        controller, _ = make_controller("one", "two", "three")

        controller.play()
        scheduler.advance(20)
        controller.pause()
        controller.play()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.COMPLETED
        assert controller.pending_timers == 0

    def test_play_again_after_completion_restarts(self, scheduler, engine, make_controller):
        controller, _ = make_controller("one", "two")
        controller.play()
        scheduler.run_until_idle()

        controller.play()

        assert controller.state.active_index == 0
        assert controller.state.progress == (0, 0)
        assert controller.state.is_playing

    def test_listeners_see_states_until_unsubscribed(self, scheduler, make_controller):
        controller, _ = make_controller("one")
        seen = []
        unsubscribe = controller.subscribe(seen.append)

        controller.play()
        count = len(seen)
        unsubscribe()
        scheduler.run_until_idle()

        assert count > 0
        assert seen[-1].status == PlaybackStatus.SPEAKING
        assert len(seen) == count


class TestPauseResume:
    def test_pause_freezes_progress_and_resume_finishes(self, scheduler, engine):
        engine.emit_boundaries = False
        controller = NarrationController(
            SpeechSynthesisAdapter(engine, "docent"), scheduler, _spots("0123456789")
        )
        progress = []
        controller.subscribe(lambda s: progress.append(s.progress[0]))

        controller.play()
        scheduler.advance(55)
        controller.toggle()
        paused_at = controller.state.progress[0]

        assert controller.state.status == PlaybackStatus.PAUSED
        assert engine.paused
        scheduler.advance(1000)
        assert controller.state.progress[0] == paused_at

        controller.toggle()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.COMPLETED
        assert progress == sorted(progress)
        assert progress[-1] == 100

    def test_unmount_while_paused_leaves_engine_paused(self, scheduler, engine, make_controller):
        controller, errors = make_controller("a fairly long narration text")
        controller.play()
        scheduler.advance(50)
        controller.pause()

        controller.unmount()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.IDLE
        assert engine.paused
        assert errors == []


class TestSelectSpot:
    def test_jump_while_playing_speaks_new_spot(self, scheduler, engine, make_controller):
        controller, _ = make_controller("first spot text", "second", "third")
        controller.play()
        scheduler.advance(30)

        controller.select_spot(2)

        assert controller.state.active_index == 2
        assert controller.active_spot.text == "third"
        scheduler.run_until_idle()
        assert [u.text for u in engine.spoken] == ["first spot text", "third"]
        assert controller.state.status == PlaybackStatus.COMPLETED

    def test_set_spots_stops_and_resets(self, scheduler, engine, make_controller):
        controller, _ = make_controller("old one", "old two")
        controller.play()
        scheduler.advance(20)

        controller.set_spots(_spots("new"))

        assert controller.state.status == PlaybackStatus.IDLE
        assert controller.state.progress == (0,)
        assert controller.active_spot.text == "new"
        assert not engine.speaking


class TestFailures:
    def test_silent_start_is_retried(self, scheduler, engine, make_controller):
        controller, errors = make_controller("hello")
        engine.drop_next()

        controller.play()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.COMPLETED
        assert errors == []
        assert len(engine.spoken) == 1

    def test_second_silent_start_is_reported(self, scheduler, engine, make_controller, caplog):
        controller, errors = make_controller("hello", "world")
        engine.drop_next(2)

        controller.play()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.IDLE
        assert controller.state.active_index == 0
        assert errors == ["Speech did not start after 2 attempts (spot 0)"]
        assert "Narration stopped" in caplog.text

    def test_pause_before_start_does_not_use_up_the_retry(self, scheduler):
        engine = SimulatedSpeechEngine(scheduler, ms_per_char=10, start_latency_ms=1000)
        controller = NarrationController(
            SpeechSynthesisAdapter(engine, "docent"), scheduler, _spots("hello")
        )
        errors = []
        controller.on_error(errors.append)

        controller.play()
        scheduler.advance(500)
        controller.pause()
        scheduler.advance(500)
        controller.play()
        scheduler.run_until_idle()

        assert errors == []
        assert controller.state.status == PlaybackStatus.COMPLETED
        assert [u.text for u in engine.spoken] == ["hello"]

    def test_engine_error_is_reported(self, scheduler, engine, make_controller):
        controller, errors = make_controller("hello")
        engine.fail_next("audio-busy")

        controller.play()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.IDLE
        assert errors == ["Speech synthesis failed: audio-busy"]

    def test_engine_refusing_utterance_is_reported(self, scheduler, engine, make_controller):
        controller, errors = make_controller("hello")
        engine.speak = MagicMock(side_effect=RuntimeError("no output device"))

        controller.play()
        scheduler.run_until_idle()

        assert controller.state.status == PlaybackStatus.IDLE
        assert len(errors) == 1
        assert "no output device" in errors[0]

    def test_chat_taking_the_floor_stops_narration_quietly(
        self, scheduler, engine, make_controller
    ):
        controller, errors = make_controller("a long narration " * 5)
        chat = SpeechSynthesisAdapter(engine, "chat")
        controller.play()
        scheduler.advance(20)

        chat.speak(chat.build("답변"))

        assert controller.state.status == PlaybackStatus.IDLE
        assert controller.state.progress[0] == 0
        assert errors == []
