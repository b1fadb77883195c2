"""
Result persistence client: submits a scored attempt to the backend

Submission is attempted at most once per completed attempt and never
retried. Failures are logged and returned in the outcome; the locally
scored result stays valid whatever the backend does.
"""
import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

import httpx

from eduprep.client.session import TestSession
from eduprep.errors import (
    AuthenticationError,
    AuthorizationError,
    EduPlatformError,
    NotFoundError,
    UpstreamServiceError,
    ValidationError,
)
from eduprep.schemas.test import ResultRecord, ScoredResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

_STATUS_ERRORS = {
    400: ValidationError,
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
}


@dataclass(frozen=True)
class SubmissionOutcome:
    """Durable record on success, typed error otherwise"""
    record: Optional[ResultRecord] = None
    error: Optional[EduPlatformError] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


class ResultPersistenceClient:
    """HTTP client for POST /api/tests/submit"""

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport
        # Submitted attempt numbers per live session; entries go with the session
        self._submitted: "weakref.WeakKeyDictionary[TestSession, Set[int]]" = weakref.WeakKeyDictionary()
        self._pending: Set[asyncio.Task] = set()
        self.last_outcome: Optional[SubmissionOutcome] = None

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def build_payload(
        result: ScoredResult,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "answers": [
                {
                    "questionId": outcome.question_id,
                    "selectedOptionIndex": outcome.selected_option_index,
                    "correct": outcome.correct
                }
                for outcome in result.per_question
            ],
            "score": result.score,
            "total": result.total,
            "percentage": result.percentage,
            "timeSpentSeconds": result.time_spent_seconds
        }
        if subject:
            payload["subject"] = subject
        if difficulty:
            payload["difficulty"] = difficulty
        return payload

    async def submit(
        self,
        result: ScoredResult,
        test_id: Optional[str] = None,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> SubmissionOutcome:
        """
        Submit a scored result once

        Args:
            result: Locally computed result
            test_id: Stored test the attempt belongs to; the server re-scores it
            subject: Subject tag for free-standing attempts
            difficulty: Difficulty tag for free-standing attempts

        Returns:
            SubmissionOutcome; never raises for network or server failures
        """
        path = f"/api/tests/{test_id}/submit" if test_id else "/api/tests/submit"
        payload = self.build_payload(result, subject, difficulty)

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport
            ) as client:
                response = await client.post(path, headers=self._headers(), json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Result submission failed: {str(e)}")
            return self._remember(SubmissionOutcome(
                error=UpstreamServiceError(f"Result backend unreachable: {str(e)}")
            ))

        if response.status_code >= 400:
            message = self._error_message(response)
            error_class = _STATUS_ERRORS.get(response.status_code, UpstreamServiceError)
            logger.error(f"Result submission rejected ({response.status_code}): {message}")
            return self._remember(SubmissionOutcome(error=error_class(message)))

        try:
            record = ResultRecord.model_validate(response.json())
        except ValueError as e:
            logger.error(f"Malformed result record from backend: {str(e)}")
            return self._remember(SubmissionOutcome(
                error=UpstreamServiceError("Malformed response from result backend")
            ))

        logger.info(f"Result stored as #{record.id} ({record.percentage}%)")
        return self._remember(SubmissionOutcome(record=record))

    async def submit_session(
        self,
        session: TestSession,
        test_id: Optional[str] = None,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> Optional[SubmissionOutcome]:
        """Submit a completed attempt; None when it was already submitted or has no result"""
        if session.result is None:
            return None

        attempts = self._submitted.setdefault(session, set())
        if session.attempt in attempts:
            logger.debug(f"Attempt {session.attempt} already submitted, skipping")
            return None
        attempts.add(session.attempt)

        return await self.submit(session.result, test_id, subject, difficulty)

    def attach(
        self,
        session: TestSession,
        test_id: Optional[str] = None,
        subject: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> None:
        """Submit in the background whenever an attempt of ``session`` completes"""

        def _on_complete(completed: TestSession) -> None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("No running event loop; result kept locally only")
                return

            task = loop.create_task(
                self.submit_session(completed, test_id, subject, difficulty)
            )
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

        session.on_complete(_on_complete)

    async def drain(self) -> None:
        """Wait for background submissions scheduled by ``attach``"""
        if self._pending:
            await asyncio.gather(*list(self._pending))

    def _remember(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        self.last_outcome = outcome
        return outcome

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"HTTP {response.status_code}"
