from __future__ import annotations

from fastapi import APIRouter, Depends

from feedback_api.core.identity import resolve_identity
from feedback_api.schemas.feedback import IdentityOut

router = APIRouter(tags=["Health"])


@router.get("/ip", response_model=IdentityOut)
def get_identity(identity: str = Depends(resolve_identity)) -> IdentityOut:
    """Return the identity this caller is rate limited under."""

    return IdentityOut(ip=identity)
