"""Response summarization through the LLM adapter.

The service builds the prompt, calls the model, validates the structured
result and caches it by content hash. It reports how many tokens the call
consumed so the caller can account for them; a cache hit consumed none.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from pydantic import ValidationError

from feedback_api.adapters.llm.base import AbstractLLMClient
from feedback_api.core.errors import LLMAppError, ValidationAppError
from feedback_api.schemas.summary import StructuredSummary
from feedback_api.utils.summary_cache import SummaryCache

logger = logging.getLogger(__name__)

# Part of the cache key so a prompt change invalidates old summaries
PROMPT_VERSION = "v1"


@dataclass(frozen=True)
class SummaryOutcome:
    summary: StructuredSummary
    tokens_used: int
    cached: bool


def build_prompt(question: str, responses: Sequence[str]) -> str:
    """Build the summarization prompt with numbered responses."""

    formatted = "\n".join(f"Response {i}: {text}" for i, text in enumerate(responses, start=1))
    return f"""
You are analyzing responses to the following question: "{question}"

Here are the responses:
{formatted}

Return a JSON object with exactly this structure:
{{
  "main_message": {{"text": "The dominant theme and sentiment", "quotes": ["short verbatim quote", ...]}},
  "notable_perspectives": [{{"insight": "A distinct or minority viewpoint", "quote": "supporting verbatim quote"}}, ...],
  "key_takeaways": ["Concise actionable takeaway", ...]
}}

Quote responses verbatim; never invent quotes. Keep the analysis concise but insightful.
""".strip()


class SummaryService:
    """Summarizes the responses collected for one question."""

    def __init__(
        self,
        llm: AbstractLLMClient,
        cache: SummaryCache,
        *,
        min_responses: int = 3,
    ) -> None:
        self.llm = llm
        self.cache = cache
        self.min_responses = min_responses

    async def summarize(self, question: str, responses: Sequence[str]) -> SummaryOutcome:
        """Return a structured summary of ``responses``.

        Raises:
            ValidationAppError: If fewer than ``min_responses`` are given.
            LLMAppError: If the model fails or returns an unusable structure.
        """
        if not question.strip():
            raise ValidationAppError(code="question_required", message="Question is required")
        if len(responses) < self.min_responses:
            raise ValidationAppError(
                code="not_enough_responses",
                message=f"At least {self.min_responses} responses are required",
                details={"min_value": self.min_responses, "actual_value": len(responses)},
            )

        cached = self.cache.get(question, responses, salt=PROMPT_VERSION)
        if cached is not None:
            return SummaryOutcome(
                summary=StructuredSummary.model_validate(cached),
                tokens_used=0,
                cached=True,
            )

        prompt = build_prompt(question, responses)
        result = await self.llm.generate_json(prompt, schema=StructuredSummary.model_json_schema())

        try:
            summary = StructuredSummary.model_validate(result.content)
        except ValidationError as exc:
            logger.warning(
                "summary.invalid_structure",
                extra={"error_count": exc.error_count(), "model": result.model},
            )
            raise LLMAppError(
                code="llm_invalid_summary",
                message="LLM returned a summary in an unexpected shape",
                details={"model": result.model or ""},
            ) from exc

        self.cache.put(question, responses, summary.model_dump(), salt=PROMPT_VERSION)
        logger.info(
            "summary.generated",
            extra={"response_count": len(responses), "tokens": result.total_tokens},
        )
        return SummaryOutcome(summary=summary, tokens_used=result.total_tokens, cached=False)
