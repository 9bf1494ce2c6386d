from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from feedback_api.core.dependencies import get_usage_accountant
from feedback_api.core.errors import ValidationAppError
from feedback_api.schemas.usage import UsageRecord
from feedback_api.services.usage_service import UsageAccountant

router = APIRouter(tags=["Usage"])


@router.get("/usage/{day}", response_model=UsageRecord)
async def get_usage(
    day: str,
    usage: UsageAccountant = Depends(get_usage_accountant),
) -> UsageRecord:
    """Token and request totals for one UTC day (``YYYY-MM-DD``)."""

    try:
        parsed = date.fromisoformat(day)
    except ValueError as exc:
        raise ValidationAppError(
            code="invalid_day",
            message="Day must be formatted as YYYY-MM-DD",
            details={"hint": "Example: 2024-05-01"},
        ) from exc
    return await usage.get_usage(parsed)
