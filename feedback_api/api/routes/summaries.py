from __future__ import annotations

from fastapi import APIRouter, Depends

from feedback_api.core.dependencies import get_request_gate
from feedback_api.core.identity import resolve_identity
from feedback_api.schemas.summary import SummaryResponse
from feedback_api.services.request_gate import RequestGate

router = APIRouter(tags=["Summaries"])


@router.post("/questions/{question_id}/summary", response_model=SummaryResponse)
async def summarize_responses(
    question_id: str,
    identity: str = Depends(resolve_identity),
    gate: RequestGate = Depends(get_request_gate),
) -> SummaryResponse:
    """Summarize the stored responses to a question.

    Requires at least the configured minimum of responses. Identical
    response sets within the cache TTL reuse the previous summary and are
    not billed again.

    Raises:
        RateLimitExceededError: 429 when the caller requests summaries too often.
        NotFoundAppError: 404 for unknown questions.
        ValidationAppError: 400 when too few responses exist.
        LLMAppError: 500 when the model call fails.
    """
    outcome, response_count = await gate.request_summary(identity, question_id)
    return SummaryResponse(
        question_id=question_id,
        response_count=response_count,
        summary=outcome.summary,
        cached=outcome.cached,
    )
