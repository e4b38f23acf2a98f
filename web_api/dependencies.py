"""
FastAPI dependencies shared by the route modules.

Tests replace these through app.dependency_overrides.
"""

import sys
from pathlib import Path
from typing import AsyncIterator

import httpx
from fastapi import Depends

sys.path.insert(0, str(Path(__file__).parent.parent))

from docent import config
from docent.claims import ClaimService, SubmissionLog
from docent.content import ContentRepositoryClient
from docent.storage import JSONFileStore, KeyValueStore


def get_store() -> KeyValueStore:
    return JSONFileStore(config.DOCENT_STATE_FILE)


async def get_content_client() -> AsyncIterator[ContentRepositoryClient]:
    async with ContentRepositoryClient() as client:
        yield client


def get_submission_log(store: KeyValueStore = Depends(get_store)) -> SubmissionLog:
    return SubmissionLog(store)


async def get_claim_service(
    store: KeyValueStore = Depends(get_store),
) -> AsyncIterator[ClaimService]:
    async with httpx.AsyncClient(timeout=config.CONTENT_FETCH_TIMEOUT_S) as http:
        yield ClaimService(SubmissionLog(store), store, http_client=http)
