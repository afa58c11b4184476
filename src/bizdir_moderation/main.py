# src/bizdir_moderation/main.py
"""Main entry point for the moderation API."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from bizdir_moderation.api.v1 import capabilities_router, moderation_router
from bizdir_moderation.core.settings import settings
from bizdir_moderation.db.session import create_tables
from bizdir_moderation.services.components import get_components
from bizdir_moderation.services.events import CONTENT_MODERATED, CONTENT_QUEUED

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Biz Directory Moderation API",
    description="Moderation queue and reputation-gated permissions",
    version=settings.app_version,
)

app.include_router(moderation_router, prefix="/api/v1")
app.include_router(capabilities_router, prefix="/api/v1")


def _log_event(event_name: str):
    def _handler(payload: dict) -> None:
        logger.info("%s | queue_id: %s", event_name, payload.get("queue_id"))

    return _handler


@app.on_event("startup")
async def on_startup() -> None:
    logging.basicConfig(level=settings.log_level)
    if settings.debug:
        create_tables()
    events = get_components().events
    for event_name in (CONTENT_QUEUED, CONTENT_MODERATED):
        events.subscribe(event_name, _log_event(event_name))


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bizdir_moderation.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
