"""Docent chat: conversation model, stream assembly and reply presentation."""

from .client import ChatCompletionClient
from .presentation import ChatPresentationController, chat_speech_adapter
from .stream import AssemblyResult, StreamAssembler, parse_completion_body, read_completion
from .types import ChatMessage, Conversation, Sender
from .typewriter import TypewriterReveal

__all__ = [
    "ChatCompletionClient",
    "ChatPresentationController",
    "chat_speech_adapter",
    "AssemblyResult",
    "StreamAssembler",
    "parse_completion_body",
    "read_completion",
    "ChatMessage",
    "Conversation",
    "Sender",
    "TypewriterReveal",
]
