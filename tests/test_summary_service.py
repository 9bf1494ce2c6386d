"""Tests for the summarization service."""

import asyncio

import pytest

from feedback_api.adapters.llm.base import LLMResponse
from feedback_api.core.errors import LLMAppError, ValidationAppError
from feedback_api.services.summary_service import SummaryService, build_prompt
from feedback_api.utils.summary_cache import SummaryCache

RESPONSES = ["Too long", "Works for me", "Needs an agenda"]


@pytest.fixture
def service(llm) -> SummaryService:
    return SummaryService(llm=llm, cache=SummaryCache(ttl_seconds=3600), min_responses=3)


def test_prompt_numbers_responses():
    prompt = build_prompt("How was the meeting?", RESPONSES)

    assert '"How was the meeting?"' in prompt
    assert "Response 1: Too long" in prompt
    assert "Response 3: Needs an agenda" in prompt
    assert "key_takeaways" in prompt


def test_summarize_returns_structured_summary_and_tokens(service, llm):
    outcome = asyncio.run(service.summarize("How was the meeting?", RESPONSES))

    assert outcome.cached is False
    assert outcome.tokens_used == 120
    assert outcome.summary.main_message.text == "People want shorter meetings"
    assert outcome.summary.key_takeaways == ["Cut the agenda"]
    llm.generate_json.assert_awaited_once()


def test_identical_request_is_served_from_cache(service, llm):
    asyncio.run(service.summarize("How was the meeting?", RESPONSES))
    outcome = asyncio.run(service.summarize("How was the meeting?", RESPONSES))

    assert outcome.cached is True
    assert outcome.tokens_used == 0
    assert llm.generate_json.await_count == 1


def test_new_response_invalidates_cache(service, llm):
    asyncio.run(service.summarize("How was the meeting?", RESPONSES))
    asyncio.run(service.summarize("How was the meeting?", RESPONSES + ["Great"]))

    assert llm.generate_json.await_count == 2


def test_too_few_responses(service, llm):
    with pytest.raises(ValidationAppError) as exc_info:
        asyncio.run(service.summarize("How was the meeting?", RESPONSES[:2]))

    assert exc_info.value.code == "not_enough_responses"
    assert exc_info.value.message == "At least 3 responses are required"
    llm.generate_json.assert_not_awaited()


def test_blank_question(service):
    with pytest.raises(ValidationAppError) as exc_info:
        asyncio.run(service.summarize("  ", RESPONSES))

    assert exc_info.value.code == "question_required"


def test_unexpected_shape_raises_llm_error(service, llm):
    llm.generate_json.return_value = LLMResponse(content={"summary": "nope"}, total_tokens=10)

    with pytest.raises(LLMAppError) as exc_info:
        asyncio.run(service.summarize("How was the meeting?", RESPONSES))

    assert exc_info.value.code == "llm_invalid_summary"


def test_llm_failure_propagates(service, llm):
    llm.generate_json.side_effect = LLMAppError(code="llm_request_failed", message="boom")

    with pytest.raises(LLMAppError):
        asyncio.run(service.summarize("How was the meeting?", RESPONSES))
