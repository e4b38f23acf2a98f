"""Client for the chat completion endpoint (POST /api/chat)."""

import logging

import httpx

from docent.errors import StreamFatalError

from .stream import AssemblyResult, read_completion
from .types import Conversation

logger = logging.getLogger(__name__)


class ChatCompletionClient:
    """
    Sends one question and assembles the reply.

    No client-side timeout: a reply takes as long as the completion service
    needs.
    """

    def __init__(self, endpoint_url: str, http_client: httpx.AsyncClient | None = None):
        self.endpoint_url = endpoint_url
        self._http = http_client
        self._owns_http = http_client is None

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=None)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def complete(
        self,
        message: str,
        conversation: Conversation,
        system_instruction: str = "",
    ) -> AssemblyResult:
        """
        Ask the endpoint for a streamed reply to message.

        Streamed text is written into conversation as it arrives; a plain JSON
        answer is returned without touching the conversation.

        Raises:
            StreamFatalError: Non-2xx status, transport failure, error event
                or an empty reply.
        """
        payload = {
            "message": message,
            "systemInstruction": system_instruction,
            "stream": True,
        }
        try:
            async with self.http.stream(
                "POST", self.endpoint_url, json=payload, timeout=None
            ) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise StreamFatalError(
                        f"Server error: {response.status_code} {body[:500]}"
                    )
                return await read_completion(response, conversation)
        except httpx.HTTPError as e:
            logger.error("Chat request to %s failed: %s", self.endpoint_url, e)
            raise StreamFatalError(f"Chat request failed: {e!r}") from e
