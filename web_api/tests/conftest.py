# web_api/tests/conftest.py
"""Pytest fixtures for web API tests.

Routes get an in-memory store and HTTP clients backed by httpx.MockTransport,
so no test touches the museum backend, the LLM provider or the disk.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from docent.claims import ClaimService, SubmissionLog
from docent.content import ContentRepositoryClient
from docent.storage import MemoryStore
from web_api.dependencies import (
    get_claim_service,
    get_content_client,
    get_store,
)


def backend_down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def backend():
    """Handler for museum backend requests. Tests replace .handler."""

    class Backend:
        handler = staticmethod(backend_down)

        def __call__(self, request):
            return self.handler(request)

    return Backend()


@pytest.fixture
def client(store, backend):
    """Create test client with dependencies pointed at the fixtures."""
    from main import app

    def content_client():
        http = httpx.AsyncClient(transport=httpx.MockTransport(backend))
        return ContentRepositoryClient(
            base_url="http://museum", fallback_url=None, http_client=http
        )

    def claim_service():
        http = httpx.AsyncClient(transport=httpx.MockTransport(backend))
        return ClaimService(
            SubmissionLog(store), store, base_url="http://museum", http_client=http
        )

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_content_client] = content_client
    app.dependency_overrides[get_claim_service] = claim_service
    yield TestClient(app)
    app.dependency_overrides.clear()
