from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class LLMResponse:
	"""Parsed model output plus the tokens billed for producing it."""

	content: dict[str, Any]
	total_tokens: int
	model: str | None = None


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that produce structured JSON outputs."""

	@abstractmethod
	async def generate_json(
		self,
		prompt: str,
		*,
		schema: dict[str, Any] | None = None,
		**kwargs: Any,
	) -> LLMResponse:
		"""Generate a structured JSON response from the model.

		Args:
			prompt: User prompt to send to the model.
			schema: Optional JSON schema the response should follow.
			**kwargs: Provider-specific options (e.g., temperature, max_tokens).

		Returns:
			LLMResponse with the parsed JSON object and token usage.

		Raises:
			LLMAppError: If the provider call fails or the response cannot be parsed.
		"""
		...
