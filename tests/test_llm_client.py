"""Integration tests for the LLM adapter layer."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from openai import APIConnectionError

from feedback_api.adapters.llm import OpenAIClient, create_llm_client
from feedback_api.core.config import LLMSettings
from feedback_api.core.errors import LLMAppError, ValidationAppError


def _completion(content: str | None, total_tokens: int = 42) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    response.usage = MagicMock(total_tokens=total_tokens)
    return response


class TestOpenAIClient:
    """OpenAI client behavior with mocked API calls."""

    @pytest.mark.asyncio
    async def test_generate_json_returns_content_and_usage(self) -> None:
        client = OpenAIClient(api_key="test-key-123", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion('{"key_takeaways": ["a"]}', total_tokens=321),
        ):
            result = await client.generate_json("Summarize", schema={"type": "object"})

        assert result.content == {"key_takeaways": ["a"]}
        assert result.total_tokens == 321
        assert result.model == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_schema_enables_json_mode(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini", max_tokens=256)

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion('{"ok": true}'),
        ) as mock_create:
            await client.generate_json("Summarize", schema={"type": "object"}, seed=7)

        kwargs = mock_create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["max_tokens"] == 256
        assert kwargs["seed"] == 7

    @pytest.mark.asyncio
    async def test_missing_usage_counts_zero_tokens(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")
        response = _completion('{"ok": true}')
        response.usage = None

        with patch.object(client.client.chat.completions, "create", new_callable=AsyncMock, return_value=response):
            result = await client.generate_json("Summarize")

        assert result.total_tokens == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "content, code",
        [(None, "llm_empty_response"), ("not json", "llm_invalid_json")],
    )
    async def test_unusable_content(self, content, code) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")

        with patch.object(
            client.client.chat.completions,
            "create",
            new_callable=AsyncMock,
            return_value=_completion(content),
        ):
            with pytest.raises(LLMAppError) as exc_info:
                await client.generate_json("Summarize")

        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self) -> None:
        client = OpenAIClient(api_key="test-key", model="gpt-4o-mini")
        error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))

        with patch.object(client.client.chat.completions, "create", new_callable=AsyncMock, side_effect=error):
            with pytest.raises(LLMAppError) as exc_info:
                await client.generate_json("Summarize")

        assert exc_info.value.code == "llm_request_failed"


class TestFactory:
    def test_creates_openai_client(self) -> None:
        client = create_llm_client(LLMSettings(provider="openai", model="gpt-4o-mini", api_key="k"))

        assert isinstance(client, OpenAIClient)
        assert client.model == "gpt-4o-mini"

    def test_openai_requires_api_key(self) -> None:
        with pytest.raises(ValidationAppError) as exc_info:
            create_llm_client(LLMSettings(provider="openai", api_key=None))

        assert exc_info.value.code == "llm_missing_api_key"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValidationAppError):
            create_llm_client(LLMSettings(provider="ollama", api_key="k"))
