"""
Docent chat API route.

Endpoints:
- POST /api/chat - Ask the docent persona a question
"""

import json
import logging
import sys
from pathlib import Path

import sentry_sdk
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from docent.llm import (
    build_messages,
    complete,
    resolve_max_lines,
    stream_chat,
    truncate_lines,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


class ChatRequest(BaseModel):
    """Request body for docent chat."""

    message: str = ""
    systemInstruction: str | None = None
    stream: bool = False
    maxLines: int | None = None


def sse_frame(payload: dict) -> str:
    return f"data: {json.dumps(payload)}\n\n"


async def event_generator(messages: list[dict]):
    """Generate SSE frames: start, delta*, then complete or error."""
    yield sse_frame({"event": "start"})

    full_text = ""
    try:
        async for chunk in stream_chat(messages):
            if chunk.get("type") == "text":
                content = chunk.get("content", "")
                full_text += content
                yield sse_frame({"event": "delta", "text": content, "fullText": full_text})
            elif chunk.get("type") == "error":
                yield sse_frame({"event": "error", "message": chunk.get("message", "")})
                return
            elif chunk.get("type") == "done":
                break
    except Exception as e:
        logger.error("Chat LLM error: %s", e)
        sentry_sdk.capture_exception(e)
        yield sse_frame({"event": "error", "message": str(e)})
        return

    yield sse_frame({"event": "complete", "text": full_text})


@router.post("/chat")
async def chat(request: ChatRequest):
    """
    Answer a visitor's question.

    Request body:
    - message: The question
    - systemInstruction: Persona / context prompt of the theme
    - stream: Stream the reply as Server-Sent Events
    - maxLines: Non-streamed replies keep this many non-blank lines (default 3, max 20)

    Non-streamed: {"text": "..."}

    Streamed, one JSON payload per "data:" frame:
    - {"event": "start"}
    - {"event": "delta", "text": "...", "fullText": "..."}
    - {"event": "complete", "text": "..."}
    - {"event": "error", "message": "..."}
    """
    if not request.message.strip():
        raise HTTPException(status_code=400, detail='Missing "message" string in body')

    messages = build_messages(request.message, request.systemInstruction)

    if request.stream:
        return StreamingResponse(
            event_generator(messages),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
            },
        )

    try:
        content = await complete(messages)
    except Exception as e:
        logger.error("Chat completion failed: %s", e)
        sentry_sdk.capture_exception(e)
        raise HTTPException(status_code=502, detail="LLM API error")

    return {"text": truncate_lines(content, resolve_max_lines(request.maxLines))}
