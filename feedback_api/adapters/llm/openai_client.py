"""OpenAI LLM client adapter."""

import json
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from feedback_api.adapters.llm.base import AbstractLLMClient, LLMResponse
from feedback_api.core.errors import LLMAppError


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI chat completions returning JSON and token usage."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
        max_tokens: int = 1024,
    ) -> None:
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model
        self.max_tokens = max_tokens

    async def generate_json(
        self,
        prompt: str,
        *,
        schema: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate structured JSON using OpenAI chat completions.

        Args:
            prompt: User prompt to send to the model.
            schema: Optional JSON schema (switches on json_object mode).
            **kwargs: temperature, max_tokens, top_p, seed.

        Returns:
            LLMResponse with the parsed object and ``usage.total_tokens``.

        Raises:
            LLMAppError: If the API call fails or the response is not valid JSON.
        """
        messages = [
            {
                "role": "system",
                "content": "Output JSON only. No extra text or markdown formatting.",
            },
            {"role": "user", "content": prompt},
        ]

        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": kwargs.pop("temperature", 0.3),
            "max_tokens": kwargs.pop("max_tokens", self.max_tokens),
        }

        if schema is not None:
            request_params["response_format"] = {"type": "json_object"}

        for param in ("top_p", "seed"):
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except OpenAIError as exc:
            raise LLMAppError(
                code="llm_request_failed",
                message=f"OpenAI API error: {exc}",
                details={"model": self.model},
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMAppError(
                code="llm_empty_response",
                message="LLM returned empty response",
                details={"model": self.model},
            )

        try:
            parsed = json.loads(content.strip())
        except json.JSONDecodeError as exc:
            raise LLMAppError(
                code="llm_invalid_json",
                message=f"LLM returned invalid JSON: {exc}",
                details={"model": self.model},
            ) from exc

        usage = getattr(response, "usage", None)
        total_tokens = int(getattr(usage, "total_tokens", 0) or 0)

        return LLMResponse(content=parsed, total_tokens=total_tokens, model=self.model)
