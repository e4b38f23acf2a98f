"""
Assembling a chat reply from an event stream.

Wire format: frames separated by a blank line, each holding lines like

    data: {"event": "delta", "text": "..."}

Events:
- start:    ignored
- delta:    "fullText" replaces the accumulated text, else "text" is appended
- complete: non-empty "text" is the final reply, else the accumulated text;
            nothing after it is read
- error:    the reply failed with "message"

The reply message is created in the conversation on the first delta and its
text is updated in place on every delta after that.
"""

import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from docent.errors import StreamFatalError, StreamProtocolError

from .types import Conversation, Sender

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
FRAME_SEPARATOR = "\n\n"
DONE_MARKER = "[DONE]"
EVENT_STREAM_TYPE = "text/event-stream"


@dataclass
class AssemblyResult:
    text: str
    # Index of the message the stream wrote into, None if it never wrote one
    placeholder_index: int | None
    streamed: bool
    completed: bool = False


class StreamAssembler:
    """Turns stream chunks into a growing AI message. One instance per request."""

    def __init__(self, conversation: Conversation):
        self.conversation = conversation
        self.buffer = ""
        self.full_text = ""
        self.placeholder_index: int | None = None
        self.completed = False
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def feed(self, chunk: bytes | str) -> bool:
        """
        Consume one chunk. Only frames terminated by a blank line are parsed;
        the rest waits in the buffer for the next chunk.

        Returns True once the complete event has been seen.

        Raises:
            StreamFatalError: On an error event.
        """
        if self.completed:
            return True
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self.buffer = (self.buffer + chunk).replace("\r\n", "\n")

        while not self.completed and FRAME_SEPARATOR in self.buffer:
            frame, self.buffer = self.buffer.split(FRAME_SEPARATOR, 1)
            self._handle_frame(frame)
        return self.completed

    def finish(self) -> AssemblyResult:
        """
        End of stream: parse whatever is left in the buffer as a last frame.

        Raises:
            StreamFatalError: If the stream produced no text at all.
        """
        if not self.completed:
            self.buffer += self._decoder.decode(b"", final=True)
            self.buffer = self.buffer.replace("\r\n", "\n")
            if self.buffer.strip():
                self._handle_frame(self.buffer)
        self.buffer = ""

        if not self.full_text and self.placeholder_index is None:
            raise StreamFatalError("Stream ended without any content")
        if not self.completed:
            logger.warning(
                "Stream ended without a complete event; using %d accumulated chars",
                len(self.full_text),
            )
        return AssemblyResult(
            text=self.full_text,
            placeholder_index=self.placeholder_index,
            streamed=self.placeholder_index is not None,
            completed=self.completed,
        )

    def _handle_frame(self, frame: str) -> None:
        for line in frame.split("\n"):
            if not line.startswith(DATA_PREFIX):
                continue
            payload = line[len(DATA_PREFIX) :]
            if payload.startswith(" "):
                payload = payload[1:]
            if payload.strip() == DONE_MARKER:
                continue
            try:
                self._handle_payload(payload)
            except StreamProtocolError as e:
                logger.warning("Skipping malformed stream frame: %s", e)
            if self.completed:
                return

    def _handle_payload(self, payload: str) -> None:
        try:
            data = json.loads(payload)
        except ValueError as e:
            raise StreamProtocolError(f"invalid JSON ({e}): {payload[:200]}") from e
        if not isinstance(data, dict) or "event" not in data:
            raise StreamProtocolError(f"no event field: {payload[:200]}")

        event = data["event"]
        if event == "start":
            return
        if event == "delta":
            full_text = data.get("fullText")
            text = data.get("text")
            if isinstance(full_text, str):
                self.full_text = full_text
            elif isinstance(text, str):
                self.full_text += text
            self._publish()
        elif event == "complete":
            text = data.get("text")
            if isinstance(text, str) and text:
                self.full_text = text
            self.completed = True
            if self.placeholder_index is not None:
                self.conversation.update_text(self.placeholder_index, self.full_text)
        elif event == "error":
            raise StreamFatalError(data.get("message") or "Stream reported an error")
        else:
            raise StreamProtocolError(f"unknown event {event!r}")

    def _publish(self) -> None:
        if self.placeholder_index is None:
            self.placeholder_index = self.conversation.append(Sender.AI, self.full_text)
        else:
            self.conversation.update_text(self.placeholder_index, self.full_text)


def parse_completion_body(body: str) -> str:
    """
    Extract the reply text from a non-streamed response body.

    A JSON object yields its "text", then "answer", then the object itself
    re-serialized; a JSON string yields itself; anything else is raw text.
    """
    try:
        data: Any = json.loads(body)
    except ValueError:
        return body
    if isinstance(data, dict):
        for key in ("text", "answer"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
        return json.dumps(data, ensure_ascii=False)
    if isinstance(data, str):
        return data
    return body


def is_event_stream(response: httpx.Response) -> bool:
    return EVENT_STREAM_TYPE in response.headers.get("content-type", "")


async def read_completion(
    response: httpx.Response, conversation: Conversation
) -> AssemblyResult:
    """
    Read a completion response opened with stream=True.

    Event streams are assembled frame by frame and the read stops as soon as
    the complete event arrives. Anything else is read whole and parsed.

    Raises:
        StreamFatalError: On an error event, a broken stream, or no content.
    """
    if not is_event_stream(response):
        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError as e:
            raise StreamFatalError(f"Failed to read response: {e!r}") from e
        return AssemblyResult(
            text=parse_completion_body(body),
            placeholder_index=None,
            streamed=False,
            completed=True,
        )

    assembler = StreamAssembler(conversation)
    try:
        async for chunk in response.aiter_bytes():
            if assembler.feed(chunk):
                break
    except httpx.HTTPError as e:
        raise StreamFatalError(f"Stream broken: {e!r}") from e
    return assembler.finish()
