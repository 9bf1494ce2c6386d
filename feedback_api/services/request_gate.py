"""Admission control for every write-inducing request.

Each entry point follows the same sequence:

1. rate limit the caller (and, for responses, the target question);
2. for responses, run the spam heuristics, then duplicate detection;
3. forward the admitted write to the record store;
4. after a billed summarization call, record the tokens actually consumed.

A denial at any step raises before later steps run, so a rejected response
never touches the counter store a second time and never reaches the record
store.
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Callable

from feedback_api.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from feedback_api.adapters.rate_limit.policies import PolicySet, RateLimitKey, RateLimitScope
from feedback_api.adapters.records.base import AbstractRecordStore, Record
from feedback_api.core.config import AppSettings
from feedback_api.core.errors import ContentRejectedError, NotFoundAppError, RateLimitExceededError
from feedback_api.core.logging import hash_identity
from feedback_api.services.content_filter import ContentAdmissionFilter
from feedback_api.services.summary_service import SummaryOutcome, SummaryService
from feedback_api.services.usage_service import UsageAccountant
from feedback_api.utils.text_sanitizer import sanitize_text, validate_text

logger = logging.getLogger(__name__)

QUESTIONS_TABLE = "questions"
RESPONSES_TABLE = "responses"

QUESTION_ID_LENGTH = 10
_QUESTION_ID_ALPHABET = string.ascii_letters + string.digits + "_-"


def new_question_id() -> str:
    return "".join(secrets.choice(_QUESTION_ID_ALPHABET) for _ in range(QUESTION_ID_LENGTH))


def _raise_if_denied(result: RateLimitResult) -> None:
    if result.allowed:
        return
    retry_at = result.retry_at
    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message=result.reason or "Rate limit exceeded. Try again later.",
        details={
            "http_status": 429,
            "scope": result.scope or "",
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": result.retry_after_seconds or 0,
            "retry_at": retry_at.isoformat() if retry_at else "",
        },
    )


class RequestGate:
    """Runs admission checks in front of the record store and the summarizer."""

    def __init__(
        self,
        *,
        limiter: AbstractRateLimiter,
        policies: PolicySet,
        content_filter: ContentAdmissionFilter,
        records: AbstractRecordStore,
        usage: UsageAccountant,
        summaries: SummaryService,
        app_settings: AppSettings,
        rate_limit_enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.limiter = limiter
        self.policies = policies
        self.content_filter = content_filter
        self.records = records
        self.usage = usage
        self.summaries = summaries
        self.app_settings = app_settings
        self.rate_limit_enabled = rate_limit_enabled
        self._clock = clock

    def _timestamp(self, now: float) -> str:
        return datetime.fromtimestamp(now, tz=timezone.utc).isoformat()

    def _reject_spam(self, text: str, *, kind: str, identity: str) -> None:
        verdict = self.content_filter.classify(text)
        if verdict.is_spam:
            logger.warning(
                "content_filter.spam",
                extra={"kind": kind, "reason": verdict.reason, "key_hash": hash_identity(identity)},
            )
            raise ContentRejectedError(
                code="spam_detected",
                message=f"{kind.capitalize()} rejected: {verdict.reason}",
                details={"hint": verdict.reason or ""},
            )

    async def get_question(self, question_id: str) -> Record:
        """Raises NotFoundAppError when the question does not exist."""

        rows = await self.records.query(QUESTIONS_TABLE, {"id": question_id}, limit=1)
        if not rows:
            raise NotFoundAppError(
                code="question_not_found",
                message="Question not found",
                details={"question_id": question_id},
            )
        return rows[0]

    async def list_responses(self, question_id: str) -> list[Record]:
        return await self.records.query(
            RESPONSES_TABLE,
            {"question_id": question_id},
            order_by="created_at",
            ascending=True,
        )

    async def create_question(self, identity: str, text: str) -> Record:
        """Admit and store a new question.

        Raises:
            RateLimitExceededError: Caller exceeded question creation limits.
            ValidationAppError: Text fails length/markup rules.
            ContentRejectedError: Text looks like spam.
            RecordStoreError: Persistence failed.
        """
        now = self._clock()
        if self.rate_limit_enabled:
            result = await self.limiter.check_and_consume(
                RateLimitKey(RateLimitScope.QUESTION_BY_IP, identity),
                self.policies.question_by_ip,
                now,
            )
            _raise_if_denied(result)

        validate_text(
            text,
            field="question",
            min_chars=self.app_settings.min_question_chars,
            max_chars=self.app_settings.max_question_chars,
        )
        self._reject_spam(text, kind="question", identity=identity)

        record: Record = {
            "id": new_question_id(),
            "question": sanitize_text(text),
            "created_at": self._timestamp(now),
            "status": "active",
        }
        record["id"] = await self.records.insert(QUESTIONS_TABLE, record)
        logger.info("question.created", extra={"question_id": record["id"], "key_hash": hash_identity(identity)})
        return record

    async def submit_response(self, identity: str, question_id: str, text: str) -> Record:
        """Admit and store one audience response.

        Both the per-identity and the per-question limits must admit; then
        spam classification and duplicate detection run, in that order.

        Raises:
            RateLimitExceededError: Either key is over one of its limits.
            ValidationAppError: Text fails length/markup rules.
            ContentRejectedError: Spam or duplicate submission.
            NotFoundAppError: Unknown question id.
            RecordStoreError: Persistence failed.
        """
        now = self._clock()
        if self.rate_limit_enabled:
            result = await self.limiter.check_and_consume_all(
                [
                    (RateLimitKey(RateLimitScope.RESPONSE_BY_IP, identity), self.policies.response_by_ip),
                    (RateLimitKey(RateLimitScope.RESPONSE_BY_QUESTION, question_id), self.policies.response_by_question),
                ],
                now,
            )
            _raise_if_denied(result)

        validate_text(
            text,
            field="response",
            min_chars=1,
            max_chars=self.app_settings.max_response_chars,
        )
        self._reject_spam(text, kind="response", identity=identity)

        if self.content_filter.is_duplicate(question_id, text, identity):
            raise ContentRejectedError(
                code="duplicate_response",
                message="You have already submitted this response",
                details={"question_id": question_id},
            )

        record: Record = {
            "question_id": question_id,
            "response": sanitize_text(text),
            "created_at": self._timestamp(now),
        }
        try:
            await self.get_question(question_id)
            record["id"] = await self.records.insert(RESPONSES_TABLE, record)
        except Exception:
            # Not stored, so a retry of the same text must not count as a duplicate
            self.content_filter.forget(question_id, text, identity)
            raise
        logger.info("response.created", extra={"question_id": question_id, "key_hash": hash_identity(identity)})
        return record

    async def request_summary(self, identity: str, question_id: str) -> tuple[SummaryOutcome, int]:
        """Summarize the stored responses of a question.

        Returns:
            The summary outcome and the number of responses summarized.

        Raises:
            RateLimitExceededError: Caller exceeded summary limits.
            NotFoundAppError: Unknown question id.
            ValidationAppError: Not enough responses yet.
            LLMAppError: Summarization failed.
        """
        now = self._clock()
        if self.rate_limit_enabled:
            result = await self.limiter.check_and_consume(
                RateLimitKey(RateLimitScope.SUMMARY_BY_IP, identity),
                self.policies.summary_by_ip,
                now,
            )
            _raise_if_denied(result)

        question = await self.get_question(question_id)
        responses = [row["response"] for row in await self.list_responses(question_id)]

        outcome = await self.summaries.summarize(str(question.get("question", "")), responses)

        if not outcome.cached:
            await self.usage.record_usage(question_id, outcome.tokens_used)

        return outcome, len(responses)
