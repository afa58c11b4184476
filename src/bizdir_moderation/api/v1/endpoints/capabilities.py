"""Capability check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from bizdir_moderation.api.v1.dependencies import ComponentsDep, CurrentUserIdDep
from bizdir_moderation.schemas.capability import CapabilityResponse
from bizdir_moderation.services.capabilities import ContentRef

router = APIRouter(prefix="/capabilities", tags=["capabilities"])

# Static grant needed to inspect another user's capabilities.
CAP_MANAGE_SETTINGS = "manage_settings"


@router.get("/{capability}", response_model=CapabilityResponse)
async def check_capability(
    capability: str,
    current_user_id: CurrentUserIdDep,
    components: ComponentsDep,
    user_id: int | None = Query(None),
    content_type: str | None = Query(None),
    content_id: int | None = Query(None),
) -> CapabilityResponse:
    """Report whether a user holds ``capability``, optionally on one content record."""
    subject = current_user_id if user_id is None else user_id
    if subject != current_user_id and not components.evaluator.can(CAP_MANAGE_SETTINGS, current_user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")

    object_ref: ContentRef | int | None = None
    if content_id is not None:
        object_ref = ContentRef(content_type, content_id) if content_type else content_id

    allowed = components.evaluator.can(capability, subject, object_ref)
    return CapabilityResponse(capability=capability, user_id=subject, allowed=allowed)
