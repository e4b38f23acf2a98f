"""
Prize claim API routes.

Endpoints:
- POST /api/claims - Submit a prize claim
- GET /api/admin/claims - List recorded claims
- GET /api/admin/claims.csv - Download recorded claims as CSV
- DELETE /api/admin/claims - Clear the claim log
"""

import logging
import sys
from pathlib import Path

import sentry_sdk
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from docent.claims import (
    SUBMISSION_ACCEPTED_MESSAGE,
    ClaimService,
    SubmissionLog,
    csv_filename,
    to_csv,
)
from docent.errors import ClaimSubmissionError, ClaimValidationError
from web_api.dependencies import get_claim_service, get_submission_log

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["claims"])


class ClaimRequest(BaseModel):
    """Request body for a prize claim."""

    email: str
    score: int
    totalQuestions: int
    termsAccepted: bool = False


@router.post("/claims")
async def submit_claim(
    request: ClaimRequest,
    service: ClaimService = Depends(get_claim_service),
) -> dict:
    try:
        record = await service.submit(
            email=request.email,
            score=request.score,
            total_questions=request.totalQuestions,
            terms_accepted=request.termsAccepted,
        )
    except ClaimValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ClaimSubmissionError as e:
        logger.error("Prize claim failed: %s", e.detail)
        sentry_sdk.capture_exception(e)
        raise HTTPException(status_code=502, detail=str(e))

    return {"message": SUBMISSION_ACCEPTED_MESSAGE, "submission": record}


@router.get("/admin/claims")
async def list_claims(log: SubmissionLog = Depends(get_submission_log)) -> dict:
    return {"submissions": log.records()}


@router.get("/admin/claims.csv")
async def download_claims(log: SubmissionLog = Depends(get_submission_log)) -> Response:
    return Response(
        content=to_csv(log.records()),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{csv_filename()}"'},
    )


@router.delete("/admin/claims")
async def clear_claims(log: SubmissionLog = Depends(get_submission_log)) -> dict:
    log.clear()
    logger.info("Prize claim log cleared")
    return {"status": "ok"}
