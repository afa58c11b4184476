"""Capability check schemas."""

from pydantic import BaseModel


class CapabilityResponse(BaseModel):
    capability: str
    user_id: int
    allowed: bool
