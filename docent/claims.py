"""
Prize claims.

A visitor who finished the quiz leaves an email address; the claim is posted
to the museum backend (/api/recipient) and, once accepted, recorded in the
local submission log that staff export as CSV.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

import httpx

from docent import config
from docent.errors import ClaimSubmissionError, ClaimValidationError
from docent.storage import KeyValueStore

logger = logging.getLogger(__name__)

SUBMISSIONS_KEY = "prizeSubmissions"
LAST_EMAIL_KEY = "lastPrizeEmail"

CSV_COLUMNS = ("timestamp", "email", "score", "totalQuestions", "response")

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")

INVALID_EMAIL_MESSAGE = "유효한 이메일 주소를 입력해주세요."
CONSENT_REQUIRED_MESSAGE = "개인정보 수집/이용 동의가 필요합니다. 약관을 확인해주세요."
SUBMISSION_FAILED_MESSAGE = "신청 중 오류가 발생했습니다. 나중에 다시 시도해주세요."
SUBMISSION_ACCEPTED_MESSAGE = "신청이 접수되었습니다. 이메일을 확인해주세요."


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email or ""))


class SubmissionLog:
    """Append-only list of accepted claims, kept in the key-value store."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def records(self) -> list[dict]:
        data = self.store.get(SUBMISSIONS_KEY, [])
        return list(data) if isinstance(data, list) else []

    def append(self, record: dict) -> None:
        records = self.records()
        records.append(record)
        self.store.set(SUBMISSIONS_KEY, records)

    def clear(self) -> None:
        self.store.delete(SUBMISSIONS_KEY)


def _quote(value: Any) -> str:
    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def _encode_response(response: Any) -> str:
    # Empty responses export as an encoded empty string
    if response in (None, "", 0):
        response = ""
    return json.dumps(response, ensure_ascii=False, separators=(",", ":"))


def to_csv(records: list[dict]) -> str:
    """Render submission records as CSV, every field double-quoted."""
    lines = [",".join(_quote(c) for c in CSV_COLUMNS)]
    for record in records:
        row = (
            record.get("timestamp"),
            record.get("email"),
            record.get("score"),
            record.get("totalQuestions"),
            _encode_response(record.get("response")),
        )
        lines.append(",".join(_quote(v) for v in row))
    return "\n".join(lines)


def csv_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"submissions_{now.strftime('%Y-%m-%d-%H-%M-%S')}.csv"


class ClaimService:
    def __init__(
        self,
        log: SubmissionLog,
        store: KeyValueStore,
        base_url: str = config.MUSEUM_API_BASE,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.log = log
        self.store = store
        self.base_url = base_url.rstrip("/")
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "ClaimService":
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

    async def submit(
        self,
        email: str,
        score: int,
        total_questions: int,
        terms_accepted: bool,
    ) -> dict:
        """
        Submit a prize claim.

        Returns:
            The stored submission record.

        Raises:
            ClaimValidationError: Invalid email or missing consent. Nothing is sent.
            ClaimSubmissionError: The backend could not be reached or refused
                the claim. Nothing is recorded; the claim can be retried.
        """
        email = (email or "").strip()
        if not is_valid_email(email):
            raise ClaimValidationError(INVALID_EMAIL_MESSAGE)
        if not terms_accepted:
            raise ClaimValidationError(CONSENT_REQUIRED_MESSAGE)

        url = f"{self.base_url}/api/recipient"
        body = {"email": email, "score": score, "totalQuestions": total_questions}
        try:
            response = await self.http.post(url, json=body)
        except httpx.HTTPError as e:
            logger.error("Claim POST to %s failed: %s", url, e)
            raise ClaimSubmissionError(SUBMISSION_FAILED_MESSAGE, detail=repr(e)) from e

        if not response.is_success:
            detail = response.text or f"Request failed with status {response.status_code}"
            logger.error("Claim rejected with HTTP %d: %s", response.status_code, detail[:500])
            raise ClaimSubmissionError(SUBMISSION_FAILED_MESSAGE, detail=detail)

        try:
            data = response.json()
        except ValueError:
            data = {}

        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
        record = {
            "timestamp": timestamp.replace("+00:00", "Z"),
            "email": email,
            "score": score,
            "totalQuestions": total_questions,
            "response": data,
        }
        self.store.set(LAST_EMAIL_KEY, email)
        self.log.append(record)
        logger.info("Prize claim recorded (%d/%d)", score, total_questions)
        return record
