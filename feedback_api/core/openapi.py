"""OpenAPI metadata for the feedback API.

The API is anonymous (no security scheme); this only adds tag descriptions
so the generated docs group endpoints by resource.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

TAGS_METADATA = [
    {"name": "Questions", "description": "Create and read feedback questions."},
    {"name": "Responses", "description": "Submit, list and stream audience responses."},
    {"name": "Summaries", "description": "LLM summaries of collected responses."},
    {"name": "Usage", "description": "Daily token and request accounting."},
    {"name": "Health", "description": "Liveness checks and caller identity."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tag metadata."""

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        schema = original_openapi()

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
