"""Conversation model shared by the stream assembler and the chat presenter."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

logger = logging.getLogger(__name__)


class Sender(str, Enum):
    USER = "user"
    AI = "ai"


@dataclass
class ChatMessage:
    sender: Sender
    text: str
    # A frozen message is final; its text no longer changes
    frozen: bool = False


MessageListener = Callable[[int, ChatMessage], None]


class Conversation:
    """
    Append-only list of chat messages.

    Indices are stable. Only the text of an unfrozen message may change, which
    is how a streaming reply or a typewriter reveal grows in place.
    """

    def __init__(self):
        self._messages: list[ChatMessage] = []
        self._listeners: list[MessageListener] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self._messages]

    def subscribe(self, listener: MessageListener) -> Callable[[], None]:
        """Call listener(index, message) on every append and text change."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, index: int) -> None:
        message = self._messages[index]
        for listener in list(self._listeners):
            listener(index, message)

    def append(self, sender: Sender, text: str, *, frozen: bool = False) -> int:
        self._messages.append(ChatMessage(sender=sender, text=text, frozen=frozen))
        index = len(self._messages) - 1
        self._notify(index)
        return index

    def update_text(self, index: int, text: str) -> bool:
        """Replace the text of message index. Returns False if it is frozen."""
        message = self._messages[index]
        if message.frozen:
            logger.debug("Ignoring update to frozen message %d", index)
            return False
        if message.text != text:
            message.text = text
            self._notify(index)
        return True

    def freeze(self, index: int) -> None:
        self._messages[index].frozen = True
