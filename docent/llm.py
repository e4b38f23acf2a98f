"""
LLM access for the docent persona, through LiteLLM.

stream_chat() yields normalized events:
- {"type": "text", "content": str} for text chunks
- {"type": "done"} when complete
- {"type": "error", "message": str} on error
"""

import logging
from typing import AsyncIterator

from litellm import acompletion

from docent import config

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = config.LLM_PROVIDER

# Non-streamed replies keep this many non-blank lines unless the caller asks otherwise
DEFAULT_MAX_LINES = 3
MAX_LINES_CAP = 20


def build_messages(message: str, system: str | None = None) -> list[dict]:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": message})
    return messages


async def stream_chat(
    messages: list[dict],
    provider: str | None = None,
    max_tokens: int = config.CHAT_MAX_TOKENS,
    temperature: float = config.CHAT_TEMPERATURE,
) -> AsyncIterator[dict]:
    """Stream a completion for messages as normalized events."""
    model = provider or DEFAULT_PROVIDER
    try:
        response = await acompletion(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )
        async for chunk in response:
            delta = chunk.choices[0].delta if chunk.choices else None
            if delta and delta.content:
                yield {"type": "text", "content": delta.content}
        yield {"type": "done"}
    except Exception as e:
        logger.error("LLM stream failed (model=%s): %s", model, e)
        yield {"type": "error", "message": str(e)}
        yield {"type": "done"}


async def complete(
    messages: list[dict],
    provider: str | None = None,
    max_tokens: int = config.CHAT_MAX_TOKENS,
    temperature: float = config.CHAT_TEMPERATURE,
) -> str:
    """Whole completion text for messages. Errors propagate to the caller."""
    response = await acompletion(
        model=provider or DEFAULT_PROVIDER,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return response.choices[0].message.content or ""


def resolve_max_lines(requested: int | None) -> int:
    if requested is None or requested <= 0:
        return DEFAULT_MAX_LINES
    return min(MAX_LINES_CAP, requested)


def truncate_lines(text: str, max_lines: int) -> str:
    """First max_lines non-blank lines of text."""
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        return "\n".join(text.splitlines()[:max_lines])
    return "\n".join(lines[:max_lines])
