from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import StreamingResponse

from feedback_api.core.dependencies import get_request_gate
from feedback_api.core.identity import resolve_identity
from feedback_api.schemas.feedback import ResponseCreate, ResponseOut
from feedback_api.services.request_gate import RESPONSES_TABLE, RequestGate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Responses"])

# Comment frame sent when no response arrived for this long, keeps proxies from closing the stream
KEEPALIVE_SECONDS = 15.0


@router.post(
    "/questions/{question_id}/responses",
    response_model=ResponseOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_response(
    question_id: str,
    payload: ResponseCreate,
    identity: str = Depends(resolve_identity),
    gate: RequestGate = Depends(get_request_gate),
) -> ResponseOut:
    """Submit an anonymous response to a question.

    Both the caller and the question are rate limited; the request is
    admitted only when neither is over its limits, and then only the
    admitted request counts against either. Spam and duplicates of the
    caller's earlier responses to the same question are rejected with 400.
    """
    record = await gate.submit_response(identity, question_id, payload.response)
    return ResponseOut.model_validate(record)


@router.get("/questions/{question_id}/responses", response_model=list[ResponseOut])
async def list_responses(
    question_id: str,
    gate: RequestGate = Depends(get_request_gate),
) -> list[ResponseOut]:
    await gate.get_question(question_id)
    rows = await gate.list_responses(question_id)
    return [ResponseOut.model_validate(row) for row in rows]


def format_sse(record: dict) -> str:
    payload = ResponseOut.model_validate(record).model_dump(mode="json")
    return f"event: response\ndata: {json.dumps(payload)}\n\n"


@router.get("/questions/{question_id}/responses/stream")
async def stream_responses(
    question_id: str,
    request: Request,
    gate: RequestGate = Depends(get_request_gate),
) -> StreamingResponse:
    """Server-Sent Events stream of responses inserted after connecting."""

    await gate.get_question(question_id)

    async def event_stream() -> AsyncIterator[str]:
        async with gate.records.subscribe(RESPONSES_TABLE) as queue:
            logger.info("responses.stream_opened", extra={"question_id": question_id})
            try:
                while not await request.is_disconnected():
                    try:
                        record = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                    except asyncio.TimeoutError:
                        yield ": keepalive\n\n"
                        continue
                    if record.get("question_id") == question_id:
                        yield format_sse(record)
            finally:
                logger.info("responses.stream_closed", extra={"question_id": question_id})

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
