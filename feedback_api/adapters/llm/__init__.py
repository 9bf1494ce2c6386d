"""LLM adapter layer - abstracts over summarization providers."""

from feedback_api.adapters.llm.base import AbstractLLMClient, LLMResponse
from feedback_api.adapters.llm.factory import create_llm_client
from feedback_api.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "LLMResponse",
    "OpenAIClient",
    "create_llm_client",
]
