"""Pydantic schemas for AI-generated response summaries."""

from pydantic import BaseModel, Field


class MainMessage(BaseModel):
    text: str = Field(..., description="The dominant theme across responses.")
    quotes: list[str] = Field(
        default_factory=list,
        description="Short verbatim quotes from responses supporting the main message.",
    )


class NotablePerspective(BaseModel):
    """A minority or unusual viewpoint backed by one quote."""

    insight: str
    quote: str


class StructuredSummary(BaseModel):
    """Summary of audience sentiment in the shape the dashboard renders."""

    main_message: MainMessage
    notable_perspectives: list[NotablePerspective] = Field(default_factory=list)
    key_takeaways: list[str] = Field(default_factory=list)


class SummaryResponse(BaseModel):
    question_id: str
    response_count: int = Field(..., ge=0)
    summary: StructuredSummary
    cached: bool = Field(
        default=False,
        description="True if an identical summary was reused without calling the model.",
    )
