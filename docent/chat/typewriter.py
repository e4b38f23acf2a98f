"""Typewriter reveal of AI replies."""

from docent.timing import Scheduler, TimerHandle

from .types import Conversation, Sender

# Replies up to this many characters appear at once
ATOMIC_MAX_CHARS = 60
SENTENCE_PAUSE_MS = 45
CHAR_DELAY_MS = 18
SENTENCE_END = ".?!"


def char_delay_ms(previous: str) -> int:
    """Delay before the next character, given the one just revealed."""
    return SENTENCE_PAUSE_MS if previous in SENTENCE_END else CHAR_DELAY_MS


class TypewriterReveal:
    """
    Reveals text into conversation messages one character at a time.

    Several reveals may run at once, each bound to its own message index.
    """

    def __init__(self, scheduler: Scheduler, conversation: Conversation):
        self.scheduler = scheduler
        self.conversation = conversation
        self._timers: dict[int, TimerHandle] = {}
        self._closed = False

    @property
    def active(self) -> set[int]:
        return set(self._timers)

    def present(self, text: str, sender: Sender = Sender.AI) -> int:
        """Add text as a new message, animated when longer than 60 characters."""
        if len(text) <= ATOMIC_MAX_CHARS:
            return self.conversation.append(sender, text, frozen=True)
        index = self.conversation.append(sender, "")
        self.reveal(index, text)
        return index

    def reveal(self, index: int, text: str) -> None:
        """Animate text into the existing message index, replacing its content."""
        self.cancel(index)
        if self._closed:
            return
        if not text:
            self.conversation.update_text(index, text)
            self.conversation.freeze(index)
            return
        self._step(index, text, 1)

    def _step(self, index: int, text: str, shown: int) -> None:
        self._timers.pop(index, None)
        if self._closed:
            return
        self.conversation.update_text(index, text[:shown])
        if shown >= len(text):
            self.conversation.freeze(index)
            return
        delay = char_delay_ms(text[shown - 1])
        self._timers[index] = self.scheduler.call_later(
            delay, self._step, index, text, shown + 1
        )

    def cancel(self, index: int) -> None:
        timer = self._timers.pop(index, None)
        if timer is not None:
            timer.cancel()

    def cancel_all(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    def close(self) -> None:
        """Stop every reveal for good; later steps do nothing."""
        self._closed = True
        self.cancel_all()
