"""
Per-component front end to the shared speech engine.

Each component (tour narration, chat voice-out) gets its own adapter, tagged
with an owner name. The adapter:
- cancels its own previous utterance before issuing a new one
- claims the engine floor on speak and releases it on end, error or cancel
- only pauses, resumes or cancels while it holds the floor
- drops callbacks from utterances it has retired itself (retry, cancel), so
  an intentional cancel never looks like a failure to the component

Taking the floor from another owner who is still speaking cancels that
speech; the other owner sees an "interrupted" error on its utterance.
"""

import dataclasses
import logging
from typing import Callable, Sequence

from docent import config
from docent.errors import SynthesisError

from .engine import SpeechEngine, Utterance, Voice
from .voices import VOICE_PRIORITY, select_voice

logger = logging.getLogger(__name__)


class SpeechSynthesisAdapter:
    def __init__(
        self,
        engine: SpeechEngine,
        owner: str,
        *,
        lang: str = config.NARRATION_LANG,
        rate: float = 1.0,
        pitch: float = 0.8,
        volume: float = 1.0,
        preferred_voices: Sequence[str] = VOICE_PRIORITY,
    ):
        self.engine = engine
        self.owner = owner
        self.lang = lang
        self.rate = rate
        self.pitch = pitch
        self.volume = volume
        self.preferred_voices = tuple(preferred_voices)
        # What the caller asked for, and the wrapped copy handed to the engine
        self._source: Utterance | None = None
        self._current: Utterance | None = None

    @property
    def has_voices(self) -> bool:
        return bool(self.engine.voices())

    @property
    def is_active(self) -> bool:
        """True while an utterance issued by this adapter has not finished."""
        return self._current is not None

    @property
    def current(self) -> Utterance | None:
        return self._current

    def select_voice(self) -> Voice | None:
        return select_voice(self.engine.voices(), self.lang, self.preferred_voices)

    def build(
        self,
        text: str,
        *,
        on_start: Callable[[], None] | None = None,
        on_boundary: Callable[[int, int], None] | None = None,
        on_end: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> Utterance:
        """Create an utterance with this adapter's language, voice and prosody."""
        return Utterance(
            text=text,
            lang=self.lang,
            rate=self.rate,
            pitch=self.pitch,
            volume=self.volume,
            voice=self.select_voice(),
            on_start=on_start,
            on_boundary=on_boundary,
            on_end=on_end,
            on_error=on_error,
        )

    def _wrap(self, source: Utterance) -> Utterance:
        """Copy source with handlers that only fire while the copy is current."""
        issued: list[Utterance] = []

        def live() -> bool:
            return bool(issued) and self._current is issued[0]

        def on_start():
            if live() and source.on_start:
                source.on_start()

        def on_boundary(char_index: int, char_length: int):
            if live() and source.on_boundary:
                source.on_boundary(char_index, char_length)

        def on_end():
            if not live():
                return
            self._current = None
            self.engine.release(self.owner)
            if source.on_end:
                source.on_end()

        def on_error(error: str):
            if not live():
                return
            self._current = None
            self.engine.release(self.owner)
            if source.on_error:
                source.on_error(error)

        wrapped = dataclasses.replace(
            source,
            on_start=on_start,
            on_boundary=on_boundary,
            on_end=on_end,
            on_error=on_error,
        )
        issued.append(wrapped)
        return wrapped

    def speak(self, utterance: Utterance) -> Utterance:
        """
        Speak utterance, replacing anything this adapter is still saying.

        Returns the utterance actually handed to the engine.
        """
        if self._current is not None:
            self.cancel()

        previous = self.engine.claim(self.owner)
        if previous is not None and self.engine.speaking:
            # Either another owner's speech or our own detached leftover
            if previous != self.owner:
                logger.warning(
                    "%s takes the speech floor from %s; cancelling its speech",
                    self.owner,
                    previous,
                )
            self.engine.cancel()

        self._source = utterance
        wrapped = self._wrap(utterance)
        self._current = wrapped
        logger.debug(
            "[%s] speak utterance id=%s chars=%d voice=%s",
            self.owner,
            wrapped.id,
            len(utterance.text),
            utterance.voice.name if utterance.voice else None,
        )
        try:
            self.engine.speak(wrapped)
        except Exception as e:
            self._current = None
            self.engine.release(self.owner)
            raise SynthesisError(f"Engine rejected utterance: {e}") from e
        return wrapped

    def retry(self) -> Utterance | None:
        """Re-issue the last utterance as a fresh request with identical parameters."""
        if self._source is None:
            return None
        fresh = dataclasses.replace(self._source)
        logger.warning("[%s] speech did not start, retrying", self.owner)
        return self.speak(fresh)

    def cancel(self) -> None:
        """Stop this adapter's speech. Speech owned by someone else is left alone."""
        if self._current is None:
            return
        self._current = None
        if self.engine.holds(self.owner):
            self.engine.cancel()
            self.engine.release(self.owner)

    def detach(self) -> None:
        """
        Stop listening to the current utterance without touching the engine.

        Used when a paused narration is torn down: the engine keeps its paused
        state and the floor stays tagged with this owner, so the next speaker
        sees it and clears it.
        """
        self._current = None

    def pause(self) -> None:
        if self._current is not None and self.engine.holds(self.owner):
            self.engine.pause()

    def resume(self) -> None:
        if self._current is not None and self.engine.holds(self.owner):
            self.engine.resume()
