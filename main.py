"""
Museum docent web service.

Run: uvicorn main:app --reload
"""

import logging

from dotenv import load_dotenv

load_dotenv(".env.local")

import sentry_sdk
from fastapi import FastAPI

from docent import config
from web_api.routes.chat import router as chat_router
from web_api.routes.claims import router as claims_router
from web_api.routes.content import router as content_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

if config.SENTRY_DSN:
    sentry_sdk.init(dsn=config.SENTRY_DSN, traces_sample_rate=0.1)
    logger.info("Sentry initialized")

app = FastAPI(title="Museum Docent API")

app.include_router(content_router)
app.include_router(chat_router)
app.include_router(claims_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
