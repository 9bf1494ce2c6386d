"""Pydantic schema for aggregated usage counters."""

from pydantic import BaseModel, Field


class UsageRecord(BaseModel):
    """Token and request totals for one calendar day (UTC)."""

    day: str = Field(..., description="Calendar day in YYYY-MM-DD format.")
    total_tokens: int = Field(0, ge=0, description="Tokens consumed by summarization calls.")
    total_requests: int = Field(0, ge=0, description="Number of billed summarization calls.")
    questions: dict[str, int] = Field(
        default_factory=dict,
        description="Billed summarization calls per question id.",
    )
