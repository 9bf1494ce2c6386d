"""Pydantic schemas for questions and responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class QuestionCreate(BaseModel):
    """Body of a create-question request."""

    question: str = Field(
        ...,
        description="The question audiences will answer (10-500 characters).",
        examples=["What should we change about the weekly planning meeting?"],
    )


class QuestionOut(BaseModel):
    id: str = Field(..., description="Short URL-safe question id used in share links.")
    question: str
    created_at: datetime
    status: Literal["active", "closed"] = "active"


class ResponseCreate(BaseModel):
    """Body of a submit-response request."""

    response: str = Field(
        ...,
        description="Free-text answer to the question (1-2000 characters).",
    )


class ResponseOut(BaseModel):
    id: str
    question_id: str
    response: str
    created_at: datetime


class IdentityOut(BaseModel):
    ip: str = Field(..., description="Client identity used for rate limiting.")
