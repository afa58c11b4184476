"""Moderation queue endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from bizdir_moderation.api.v1.dependencies import (
    ComponentsDep,
    CurrentUserIdDep,
    ModerationServiceDep,
)
from bizdir_moderation.models.moderation import QUEUE_STATUSES, STATUS_PENDING
from bizdir_moderation.schemas.moderation import (
    EnqueueRequest,
    EnqueueResponse,
    ModerationDecision,
    ModerationResult,
    QueueItemResponse,
)
from bizdir_moderation.services.capabilities import CAP_MODERATE_CONTENT
from bizdir_moderation.services.components import ModerationComponents
from bizdir_moderation.services.errors import InvalidContentType, PersistenceFailure
from bizdir_moderation.services.queue import QueueFilter

router = APIRouter(prefix="/moderation", tags=["moderation"])

# Query value selecting every status.
ANY_STATUS = "any"


def _require_moderator(components: ModerationComponents, user_id: int) -> None:
    if not components.evaluator.can(CAP_MODERATE_CONTENT, user_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Permission denied")


@router.post("/queue", response_model=EnqueueResponse, status_code=status.HTTP_201_CREATED)
async def enqueue_content(
    payload: EnqueueRequest,
    service: ModerationServiceDep,
) -> EnqueueResponse:
    """Add a piece of content to the moderation queue."""
    try:
        queue_id = service.enqueue(payload.content_type, payload.content_id)
    except InvalidContentType as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(err),
        ) from err
    except PersistenceFailure as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Moderation queue unavailable",
        ) from err
    return EnqueueResponse(queue_id=queue_id)


@router.get("/queue", response_model=list[QueueItemResponse])
async def get_moderation_queue(
    user_id: CurrentUserIdDep,
    components: ComponentsDep,
    service: ModerationServiceDep,
    status_filter: str = Query(STATUS_PENDING, alias="status"),
    content_type: str | None = Query(None, alias="type"),
    moderator_id: int | None = Query(None),
    limit: int | None = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    include_content: bool = Query(False),
) -> list[QueueItemResponse]:
    """List queue items, newest first."""
    _require_moderator(components, user_id)

    if status_filter != ANY_STATUS and status_filter not in QUEUE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Unknown status: {status_filter}",
        )

    queue_filter = QueueFilter(
        status=None if status_filter == ANY_STATUS else status_filter,
        content_type=content_type,
        moderator_id=moderator_id,
    )
    items = service.list_queue(queue_filter, limit=limit, offset=offset, include_content=include_content)
    return [QueueItemResponse.model_validate(item) for item in items]


@router.post("/queue/{queue_id}/decision", response_model=ModerationResult)
async def moderate_content(
    queue_id: int,
    decision: ModerationDecision,
    user_id: CurrentUserIdDep,
    components: ComponentsDep,
    service: ModerationServiceDep,
) -> ModerationResult:
    """Approve, reject or escalate a queued item."""
    _require_moderator(components, user_id)

    if not service.moderate(queue_id, decision.action, decision.notes):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to moderate content",
        )
    return ModerationResult(message="Content moderated successfully")
