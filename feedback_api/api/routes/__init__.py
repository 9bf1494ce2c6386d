from __future__ import annotations

from feedback_api.api.routes.health import router as health_router
from feedback_api.api.routes.identity import router as identity_router
from feedback_api.api.routes.questions import router as questions_router
from feedback_api.api.routes.responses import router as responses_router
from feedback_api.api.routes.summaries import router as summaries_router
from feedback_api.api.routes.usage import router as usage_router

__all__ = [
    "health_router",
    "identity_router",
    "questions_router",
    "responses_router",
    "summaries_router",
    "usage_router",
]
