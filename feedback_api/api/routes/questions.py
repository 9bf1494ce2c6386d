from __future__ import annotations

from fastapi import APIRouter, Depends, status

from feedback_api.core.dependencies import get_request_gate
from feedback_api.core.identity import resolve_identity
from feedback_api.schemas.feedback import QuestionCreate, QuestionOut
from feedback_api.services.request_gate import RequestGate

router = APIRouter(tags=["Questions"])


@router.post(
    "/questions",
    response_model=QuestionOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_question(
    payload: QuestionCreate,
    identity: str = Depends(resolve_identity),
    gate: RequestGate = Depends(get_request_gate),
) -> QuestionOut:
    """Create a question audiences can answer anonymously.

    Rate limited per client (per minute, hour and day). The text must be
    10-500 characters, contain no markup and pass the spam heuristics.

    Raises:
        RateLimitExceededError: 429 with Retry-After headers.
        ValidationAppError / ContentRejectedError: 400.
    """
    record = await gate.create_question(identity, payload.question)
    return QuestionOut.model_validate(record)


@router.get("/questions/{question_id}", response_model=QuestionOut)
async def get_question(
    question_id: str,
    gate: RequestGate = Depends(get_request_gate),
) -> QuestionOut:
    record = await gate.get_question(question_id)
    return QuestionOut.model_validate(record)
