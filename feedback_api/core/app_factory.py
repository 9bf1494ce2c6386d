"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedback_api.api.routes import (
    health_router,
    identity_router,
    questions_router,
    responses_router,
    summaries_router,
    usage_router,
)
from feedback_api.core.config import settings
from feedback_api.core.dependencies import close_services
from feedback_api.core.exception_handlers import setup_exception_handlers
from feedback_api.core.logging import configure_logging
from feedback_api.core.middleware import request_id_middleware, security_headers_middleware
from feedback_api.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("app.startup", extra={"app_env": settings.app_env})
    yield
    await close_services()
    logger.info("app.shutdown")


def allowed_origins() -> list[str]:
    return [origin.strip() for origin in settings.app.allowed_origins.split(",") if origin.strip()]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Anonymous Feedback API",
        description=(
            "Collects anonymous audience responses to short questions and "
            "summarizes them with an LLM. Every write is rate limited per "
            "client and per question, screened for spam and duplicates, and "
            "summarization token usage is accounted per day."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )

    # Middleware (last added runs first)
    app.middleware("http")(security_headers_middleware)
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[
            settings.log.request_id_header,
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
        ],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(questions_router, prefix="/v1")
    app.include_router(responses_router, prefix="/v1")
    app.include_router(summaries_router, prefix="/v1")
    app.include_router(usage_router, prefix="/v1")
    app.include_router(identity_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
