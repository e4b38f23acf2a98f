"""
Museum content API routes.

Endpoints:
- GET /api/themes - All themes
- GET /api/items?theme_id= - Items of a theme
- GET /api/quizzes?theme_id= - Quiz questions of a theme
- GET /api/probe?path= - Raw view of one backend request (diagnostics)

Content is served from the museum backend through ContentRepositoryClient;
when the backend is down the local dataset is served instead, so these
endpoints do not fail with 5xx.
"""

import logging
import sys
from dataclasses import asdict
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Query

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from docent.content import ContentRepositoryClient, Item, QuizQuestion, Theme
from web_api.dependencies import get_content_client

router = APIRouter(prefix="/api", tags=["content"])

logger = logging.getLogger(__name__)


def serialize_theme(theme: Theme) -> dict:
    return {
        "id": theme.id,
        "title": theme.title,
        "description": theme.description,
        "longDescription": theme.long_description,
        "contextPrompt": theme.context_prompt,
    }


def serialize_item(item: Item) -> dict:
    return {
        "item_id": item.item_id,
        "item_name": item.item_name,
        "video": item.video,
        "script_child": item.script_child,
        "script_general": item.script_general,
    }


def serialize_quiz(question: QuizQuestion) -> dict:
    return {
        "question": question.question,
        "options": question.options,
        "correctAnswer": question.correct_answer,
    }


@router.get("/themes")
async def list_themes(
    client: ContentRepositoryClient = Depends(get_content_client),
) -> list[dict]:
    themes = await client.get_themes()
    return [serialize_theme(t) for t in themes]


@router.get("/items")
async def list_items(
    theme_id: str = Query(...),
    client: ContentRepositoryClient = Depends(get_content_client),
) -> list[dict]:
    items = await client.get_items(theme_id)
    return [serialize_item(i) for i in items]


@router.get("/quizzes")
async def list_quizzes(
    theme_id: str = Query(...),
    client: ContentRepositoryClient = Depends(get_content_client),
) -> list[dict]:
    questions = await client.get_quizzes(theme_id)
    return [serialize_quiz(q) for q in questions]


@router.get("/probe")
async def probe_backend(
    path: str = Query(...),
    client: ContentRepositoryClient = Depends(get_content_client),
) -> dict:
    """
    Fetch path from the museum backend and report status, headers and body.

    For operators checking which endpoint shapes the backend serves.
    """
    if not path.startswith("/"):
        raise HTTPException(status_code=400, detail="path must start with /")
    logger.info("Probing backend path %s", path)
    result = await client.probe(path)
    return asdict(result)
