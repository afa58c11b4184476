"""Moderation-related Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class EnqueueRequest(BaseModel):
    """Schema for adding content to the moderation queue."""

    content_type: str = Field(..., description="review, listing or tag")
    content_id: int = Field(..., gt=0)


class EnqueueResponse(BaseModel):
    queue_id: int


class ModerationDecision(BaseModel):
    """Schema for a moderator's verdict on a queue item."""

    action: Literal["approve", "reject", "escalate"]
    notes: str = Field(default="", max_length=5000)


class ModerationResult(BaseModel):
    message: str


class QueueItemResponse(BaseModel):
    """Schema for a queue item returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    content_type: str
    content_id: int
    status: str
    moderator_id: int | None
    notes: str | None
    created_at: datetime
    updated_at: datetime
    content: dict[str, Any] | None = None
