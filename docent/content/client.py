"""
Client for the museum content backend.

Public operations never raise: when the backend (and its fallback base URL)
cannot deliver, the local dataset is served instead and a warning is logged.
"""

import logging
from typing import Any

import httpx

from docent import config
from docent.errors import DataFetchError

from .fallback import LocalDataset
from .normalize import as_record_list, normalize_item, normalize_quiz, normalize_theme
from .types import Item, ProbeResult, QuizQuestion, Theme

logger = logging.getLogger(__name__)

# Error messages quote at most this much of a response body
BODY_PREVIEW_CHARS = 1000


class ContentRepositoryClient:
    """Fetches themes, items and quizzes with normalization and local fallback."""

    def __init__(
        self,
        base_url: str = config.MUSEUM_API_BASE,
        fallback_url: str | None = config.MUSEUM_API_FALLBACK or None,
        timeout_s: float = config.CONTENT_FETCH_TIMEOUT_S,
        dataset: LocalDataset | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.fallback_url = fallback_url.rstrip("/") if fallback_url else None
        self.timeout_s = timeout_s
        self.dataset = dataset or LocalDataset()
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "ContentRepositoryClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    def _bases(self) -> list[str]:
        bases = [self.base_url]
        if self.fallback_url and self.fallback_url != self.base_url:
            bases.append(self.fallback_url)
        return bases

    async def _get_json_from(self, base: str, path: str, params: dict | None) -> Any:
        url = f"{base}{path}"
        try:
            response = await self.http.get(url, params=params, timeout=self.timeout_s)
        except httpx.HTTPError as e:
            raise DataFetchError(f"Request to {url} failed: {e!r}") from e

        text = response.text
        if not response.is_success:
            raise DataFetchError(
                f"HTTP {response.status_code} {response.reason_phrase} - "
                f"{text[:BODY_PREVIEW_CHARS]}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise DataFetchError(
                f"Failed to parse JSON response from {url}: {e} - "
                f"response text: {text[:BODY_PREVIEW_CHARS]}"
            ) from e

    async def _fetch_json(self, path: str, params: dict | None = None) -> Any:
        """
        GET path from the primary base, then from the fallback base.

        Raises:
            DataFetchError: If every base failed. The message names each failure.
        """
        errors = []
        for base in self._bases():
            try:
                return await self._get_json_from(base, path, params)
            except DataFetchError as e:
                if errors:
                    logger.info("Fallback backend %s also failed", base)
                else:
                    logger.info("Backend %s unreachable for %s: %s", base, path, e)
                errors.append(str(e))
        if len(errors) == 1:
            raise DataFetchError(errors[0])
        raise DataFetchError(
            f"Original fetch error: {errors[0]}; fallback error: {errors[-1]}"
        )

    async def get_themes(self) -> list[Theme]:
        try:
            payload = await self._fetch_json("/api/themes")
            return [normalize_theme(t) for t in as_record_list(payload)]
        except DataFetchError as e:
            logger.warning(
                "get_themes: remote fetch failed, using local data. base=%s error=%s",
                self.base_url,
                e,
            )
            return [normalize_theme(t) for t in self.dataset.theme_records()]

    async def get_items(self, theme_id: str) -> list[Item]:
        try:
            payload = await self._fetch_json("/api/items", {"theme_id": theme_id})
            if payload is None:
                logger.info("get_items: server returned null for theme_id=%s", theme_id)
            records = as_record_list(payload)
        except DataFetchError as e:
            logger.warning("get_items: remote fetch failed, using local data. error=%s", e)
            records = self.dataset.item_records(theme_id)
        return [normalize_item(it, i) for i, it in enumerate(records)]

    async def get_quizzes(self, theme_id: str) -> list[QuizQuestion]:
        try:
            payload = await self._fetch_json("/api/quizzes", {"theme_id": theme_id})
            if payload is None:
                logger.info("get_quizzes: server returned null for theme_id=%s", theme_id)
            records = as_record_list(payload)
        except DataFetchError as e:
            logger.warning(
                "get_quizzes: remote fetch failed, using local data. error=%s", e
            )
            records = self.dataset.quiz_records(theme_id)
        return [normalize_quiz(q, i) for i, q in enumerate(records)]

    async def get_recipients(self) -> list:
        try:
            payload = await self._fetch_json("/api/recipient")
        except DataFetchError as e:
            logger.warning("get_recipients: remote fetch failed: %s", e)
            return []
        return payload if isinstance(payload, list) else as_record_list(payload)

    async def probe(self, path: str) -> ProbeResult:
        """Fetch path from the primary base and report exactly what came back."""
        url = f"{self.base_url}{path}"
        try:
            response = await self.http.get(url, timeout=self.timeout_s)
        except httpx.HTTPError as e:
            message = repr(e)
            return ProbeResult(
                ok=False, status=0, status_text=message, headers={}, body_text=message
            )

        body = response.text
        parsed = None
        if body:
            try:
                parsed = response.json()
            except ValueError:
                parsed = None
        return ProbeResult(
            ok=response.is_success,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            body_text=body,
            json=parsed,
        )
