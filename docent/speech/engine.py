"""
Speech engine abstraction.

A speech engine is a process-wide resource: the tour narration and the chat
voice-out share it. The engine therefore carries a floor-ownership token so
a component can tell whether the speech in progress is its own.
"""

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable

_utterance_ids = itertools.count(1)


@dataclass(frozen=True)
class Voice:
    name: str
    lang: str


@dataclass(frozen=True)
class Utterance:
    """
    One request to speak a text.

    Immutable: a retry is a new Utterance (dataclasses.replace) carrying the
    same parameters and handlers, and gets a new id.
    """

    text: str
    lang: str = "ko-KR"
    rate: float = 1.0
    pitch: float = 1.0
    volume: float = 1.0
    voice: Voice | None = None
    on_start: Callable[[], None] | None = field(default=None, compare=False)
    on_boundary: Callable[[int, int], None] | None = field(default=None, compare=False)
    on_end: Callable[[], None] | None = field(default=None, compare=False)
    on_error: Callable[[str], None] | None = field(default=None, compare=False)
    id: int = field(init=False, default_factory=lambda: next(_utterance_ids))


class SpeechEngine(ABC):
    """Platform text-to-speech engine plus the shared floor token."""

    def __init__(self):
        self._owner: str | None = None

    @property
    def owner(self) -> str | None:
        return self._owner

    def claim(self, owner: str) -> str | None:
        """Take the floor for owner. Returns whoever held it before."""
        previous = self._owner
        self._owner = owner
        return previous

    def release(self, owner: str) -> None:
        """Give the floor back, but only if owner actually holds it."""
        if self._owner == owner:
            self._owner = None

    def holds(self, owner: str) -> bool:
        return self._owner == owner

    @abstractmethod
    def voices(self) -> list[Voice]: ...

    @abstractmethod
    def speak(self, utterance: Utterance) -> None: ...

    @abstractmethod
    def cancel(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def resume(self) -> None: ...

    @property
    @abstractmethod
    def speaking(self) -> bool: ...

    @property
    @abstractmethod
    def paused(self) -> bool: ...
