"""Tests for ContentRepositoryClient with a mocked HTTP transport."""

import httpx
import pytest

from docent.content import ContentRepositoryClient, LocalDataset
from docent.errors import DataFetchError


def _client(handler, **kwargs) -> ContentRepositoryClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ContentRepositoryClient(
        base_url=kwargs.pop("base_url", "http://primary"),
        http_client=http,
        **kwargs,
    )


def _down(request):
    raise httpx.ConnectError("connection refused", request=request)


class TestGetThemes:
    @pytest.mark.asyncio
    async def test_normalizes_remote_themes(self):
        def handler(request):
            assert request.url.path == "/api/themes"
            return httpx.Response(
                200, json=[{"theme_id": "t1", "theme_name": "Theme", "theme_desc": "d"}]
            )

        themes = await _client(handler).get_themes()

        assert [(t.id, t.title, t.description) for t in themes] == [("t1", "Theme", "d")]

    @pytest.mark.asyncio
    async def test_falls_back_to_local_data_when_backend_down(self, caplog):
        themes = await _client(_down).get_themes()

        assert [t.id for t in themes] == ["imjin_war", "jinju_museum", "gonryongpo"]
        assert "using local data" in caplog.text

    @pytest.mark.asyncio
    async def test_non_json_body_falls_back(self):
        themes = await _client(lambda r: httpx.Response(200, text="<html>")).get_themes()

        assert len(themes) == 3


class TestGetItems:
    @pytest.mark.asyncio
    async def test_sends_theme_id_query(self):
        seen = []

        def handler(request):
            seen.append(request.url.params.get("theme_id"))
            return httpx.Response(200, json=[{"item_id": "i1", "item_name": "Item"}])

        items = await _client(handler).get_items("jinju_museum")

        assert seen == ["jinju_museum"]
        assert items[0].item_id == "i1"

    @pytest.mark.asyncio
    async def test_null_body_is_empty_list(self):
        items = await _client(lambda r: httpx.Response(200, json=None)).get_items("t")

        assert items == []

    @pytest.mark.asyncio
    async def test_single_object_is_wrapped(self):
        items = await _client(
            lambda r: httpx.Response(200, json={"item_id": "only"})
        ).get_items("t")

        assert [i.item_id for i in items] == ["only"]

    @pytest.mark.asyncio
    async def test_backend_down_uses_local_items_of_theme(self):
        dataset = LocalDataset(
            items=[
                {"theme_id": "a", "item_id": "x"},
                {"theme_id": "b", "item_id": "y"},
            ]
        )

        items = await _client(_down, dataset=dataset).get_items("a")

        assert [i.item_id for i in items] == ["x"]


class TestGetQuizzes:
    @pytest.mark.asyncio
    async def test_local_quizzes_are_normalized(self):
        quizzes = await _client(_down).get_quizzes("gonryongpo")

        assert len(quizzes) == 3
        assert quizzes[0].correct_answer == "왕"

    @pytest.mark.asyncio
    async def test_unknown_theme_without_backend_is_empty(self):
        assert await _client(_down).get_quizzes("nope") == []


class TestFetchJson:
    """Primary then fallback base URL."""

    @pytest.mark.asyncio
    async def test_uses_fallback_base_when_primary_fails(self):
        def handler(request):
            if request.url.host == "primary":
                return httpx.Response(503, text="unavailable")
            return httpx.Response(200, json=[{"theme_id": "from-fallback"}])

        client = _client(handler, fallback_url="http://secondary")

        themes = await client.get_themes()

        assert [t.id for t in themes] == ["from-fallback"]

    @pytest.mark.asyncio
    async def test_error_names_both_failures(self):
        def handler(request):
            return httpx.Response(500, text=f"down {request.url.host}")

        client = _client(handler, fallback_url="http://secondary")

        with pytest.raises(DataFetchError) as exc_info:
            await client._fetch_json("/api/themes")

        message = str(exc_info.value)
        assert message.startswith("Original fetch error: HTTP 500")
        assert "down primary" in message
        assert "fallback error: HTTP 500" in message
        assert "down secondary" in message

    @pytest.mark.asyncio
    async def test_body_preview_is_capped(self):
        client = _client(
            lambda r: httpx.Response(400, text="x" * 5000), fallback_url=None
        )

        with pytest.raises(DataFetchError) as exc_info:
            await client._fetch_json("/api/themes")

        assert str(exc_info.value).count("x") == 1000


class TestRecipientsAndProbe:
    @pytest.mark.asyncio
    async def test_recipients_empty_on_failure(self):
        assert await _client(_down).get_recipients() == []

    @pytest.mark.asyncio
    async def test_probe_reports_status_and_json(self):
        client = _client(lambda r: httpx.Response(404, json={"error": "nope"}))

        result = await client.probe("/api/items/x")

        assert result.ok is False
        assert result.status == 404
        assert result.json == {"error": "nope"}

    @pytest.mark.asyncio
    async def test_probe_never_raises(self):
        result = await _client(_down).probe("/api/themes")

        assert result.status == 0
        assert result.ok is False
