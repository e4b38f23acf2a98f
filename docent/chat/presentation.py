"""
Chat screen controller: conversation history, reply reveal and voice-out.

Flow of one question:
1. the visitor's message is appended
2. the completion endpoint is asked, with the theme's context prompt as
   system instruction
3. a streamed reply already sits in its message and is finalized there;
   a plain reply goes through the typewriter
4. the reply is spoken, if the engine has voices
"""

import asyncio
import logging

import sentry_sdk

from docent.content.types import Theme
from docent.errors import StreamFatalError, SynthesisError
from docent.speech.adapter import SpeechSynthesisAdapter
from docent.timing import Scheduler

from .client import ChatCompletionClient
from .typewriter import TypewriterReveal
from .types import Conversation, Sender

logger = logging.getLogger(__name__)

GREETING = "안녕하세요! {title}에 대해 무엇이 궁금하신가요? 제가 아는 모든 것을 알려드릴게요!"
APOLOGY = "죄송합니다. 응답 중 오류가 발생했습니다."

CHAT_OWNER = "chat"
CHAT_RATE = 0.95
CHAT_PITCH = 0.8


class ChatPresentationController:
    def __init__(
        self,
        completion_client: ChatCompletionClient,
        speech: SpeechSynthesisAdapter,
        scheduler: Scheduler,
        theme: Theme,
        conversation: Conversation | None = None,
    ):
        self.client = completion_client
        self.speech = speech
        self.scheduler = scheduler
        self.theme = theme
        self.conversation = conversation or Conversation()
        self.typewriter = TypewriterReveal(scheduler, self.conversation)
        self.loading = False
        self._closed = False
        self._request: asyncio.Future | None = None

    def open(self) -> None:
        """Greet the visitor."""
        self.conversation.append(
            Sender.AI, GREETING.format(title=self.theme.title or ""), frozen=True
        )

    async def send(self, text: str) -> str | None:
        """
        Ask the docent a question. Returns the reply text, or None when the
        input was ignored, the reply failed, or the screen closed meanwhile.
        """
        if not text or not text.strip() or self.loading or self._closed:
            return None

        self.conversation.append(Sender.USER, text, frozen=True)
        self.loading = True
        try:
            self._request = asyncio.ensure_future(
                self.client.complete(
                    text,
                    self.conversation,
                    system_instruction=self.theme.context_prompt or "",
                )
            )
            result = await self._request
        except asyncio.CancelledError:
            if self._closed:
                logger.info("Chat closed while a reply was in flight")
                return None
            raise
        except StreamFatalError as e:
            logger.error("Chat reply failed: %s", e)
            sentry_sdk.capture_exception(e)
            if not self._closed:
                self.conversation.append(Sender.AI, APOLOGY, frozen=True)
            return None
        finally:
            self.loading = False
            self._request = None

        if self._closed:
            return None

        if result.streamed:
            self.conversation.update_text(result.placeholder_index, result.text)
            self.conversation.freeze(result.placeholder_index)
        else:
            self.typewriter.present(result.text)

        self.speak(result.text)
        return result.text

    def speak(self, text: str) -> None:
        if not text or not self.speech.has_voices:
            return
        try:
            self.speech.speak(self.speech.build(text))
        except SynthesisError as e:
            logger.warning("Could not speak chat reply: %s", e)

    def close(self) -> None:
        """Tear down: stop reveals, stop own speech, abandon the in-flight reply."""
        self._closed = True
        self.typewriter.close()
        self.speech.cancel()
        if self._request is not None:
            self._request.cancel()
        for index in range(len(self.conversation)):
            self.conversation.freeze(index)


def chat_speech_adapter(engine) -> SpeechSynthesisAdapter:
    """Speech adapter with the chat voice-out prosody."""
    return SpeechSynthesisAdapter(engine, CHAT_OWNER, rate=CHAT_RATE, pitch=CHAT_PITCH)
