"""Apply moderation verdicts to the underlying content records.

Each content type is served by a handler registered with the
:class:`ContentStatusSynchronizer`. A handler knows its status vocabulary, how
to find the owner of a record, and how to perform the single write a verdict
requires. Adding a content type means registering another handler; the
orchestrator never switches on the type name.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from bizdir_moderation.db.unit_of_work import UnitOfWork
from bizdir_moderation.models import Listing, Review, Tag
from bizdir_moderation.models.content import (
    LISTING_STATUS_DRAFT,
    LISTING_STATUS_PUBLISH,
    REVIEW_STATUS_PENDING,
    REVIEW_STATUS_PUBLISHED,
    REVIEW_STATUS_REJECTED,
)
from bizdir_moderation.models.moderation import ACTION_APPROVE, ACTION_ESCALATE, ACTION_REJECT
from bizdir_moderation.services.errors import InvalidContentType

logger = logging.getLogger(__name__)

CONTENT_TYPE_REVIEW = "review"
CONTENT_TYPE_LISTING = "listing"
CONTENT_TYPE_TAG = "tag"

# Marker values returned by ``status_for``.
NO_CHANGE = object()
REMOVE = object()


class ContentHandler(Protocol):
    """Content-type specific read and write path."""

    content_type: str

    def status_for(self, decision: str) -> Any:
        """Return the new status, ``NO_CHANGE`` or ``REMOVE`` for a verdict."""
        ...

    def get_owner(self, session: Session, content_id: int) -> int | None: ...

    def set_status(self, session: Session, content_id: int, new_value: Any) -> bool: ...

    def describe(self, session: Session, content_id: int) -> dict[str, Any] | None: ...


class ReviewHandler:
    content_type = CONTENT_TYPE_REVIEW

    _statuses = {
        ACTION_APPROVE: REVIEW_STATUS_PUBLISHED,
        ACTION_REJECT: REVIEW_STATUS_REJECTED,
        # Escalation keeps the review out of public view.
        ACTION_ESCALATE: REVIEW_STATUS_PENDING,
    }

    def status_for(self, decision: str) -> Any:
        return self._statuses[decision]

    def get_owner(self, session: Session, content_id: int) -> int | None:
        return session.scalar(select(Review.user_id).where(Review.id == content_id))

    def set_status(self, session: Session, content_id: int, new_value: Any) -> bool:
        result = session.execute(update(Review).where(Review.id == content_id).values(status=new_value))
        return result.rowcount == 1

    def describe(self, session: Session, content_id: int) -> dict[str, Any] | None:
        review = session.get(Review, content_id)
        if review is None:
            return None
        return {
            "type": self.content_type,
            "id": review.id,
            "business_id": review.business_id,
            "rating": review.rating,
            "comment": review.comment,
            "status": review.status,
        }


class ListingHandler:
    content_type = CONTENT_TYPE_LISTING

    _statuses = {
        ACTION_APPROVE: LISTING_STATUS_PUBLISH,
        ACTION_REJECT: LISTING_STATUS_DRAFT,
        ACTION_ESCALATE: NO_CHANGE,
    }

    def status_for(self, decision: str) -> Any:
        return self._statuses[decision]

    def get_owner(self, session: Session, content_id: int) -> int | None:
        return session.scalar(select(Listing.owner_id).where(Listing.id == content_id))

    def set_status(self, session: Session, content_id: int, new_value: Any) -> bool:
        result = session.execute(update(Listing).where(Listing.id == content_id).values(status=new_value))
        return result.rowcount == 1

    def describe(self, session: Session, content_id: int) -> dict[str, Any] | None:
        listing = session.get(Listing, content_id)
        if listing is None:
            return None
        return {
            "type": self.content_type,
            "id": listing.id,
            "name": listing.name,
            "description": listing.description,
            "status": listing.status,
        }


class TagHandler:
    """Tags are visible by default; rejecting one deletes it."""

    content_type = CONTENT_TYPE_TAG

    _statuses = {
        ACTION_APPROVE: NO_CHANGE,
        ACTION_REJECT: REMOVE,
        ACTION_ESCALATE: NO_CHANGE,
    }

    def status_for(self, decision: str) -> Any:
        return self._statuses[decision]

    def get_owner(self, session: Session, content_id: int) -> int | None:
        return session.scalar(select(Tag.user_id).where(Tag.id == content_id))

    def set_status(self, session: Session, content_id: int, new_value: Any) -> bool:
        if new_value is not REMOVE:
            return False
        result = session.execute(delete(Tag).where(Tag.id == content_id))
        return result.rowcount == 1

    def describe(self, session: Session, content_id: int) -> dict[str, Any] | None:
        tag = session.get(Tag, content_id)
        if tag is None:
            return None
        return {
            "type": self.content_type,
            "id": tag.id,
            "business_id": tag.business_id,
            "tag": tag.tag,
            "weight": tag.weight,
        }


def default_handlers() -> list[ContentHandler]:
    return [ReviewHandler(), ListingHandler(), TagHandler()]


class ContentStatusSynchronizer:
    """Dispatch table from content type to handler."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        handlers: Iterable[ContentHandler] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._handlers: dict[str, ContentHandler] = {}
        for handler in handlers if handlers is not None else default_handlers():
            self.register(handler)

    def register(self, handler: ContentHandler) -> None:
        self._handlers[handler.content_type] = handler

    def content_types(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def handler_for(self, content_type: str) -> ContentHandler:
        try:
            return self._handlers[content_type]
        except KeyError:
            raise InvalidContentType(f"Unknown content type: {content_type!r}") from None

    def apply(self, uow: UnitOfWork, content_type: str, content_id: int, decision: str) -> bool:
        """Write the status a verdict implies inside ``uow``.

        Returns:
            True when the content reflects the verdict, False when the type or
            decision is unknown, the record is missing, or the write failed
        """
        try:
            handler = self.handler_for(content_type)
            new_value = handler.status_for(decision)
        except (InvalidContentType, KeyError):
            logger.warning("Cannot apply %r to content type %r", decision, content_type)
            return False

        if new_value is NO_CHANGE:
            logger.debug("No content change for %s %s on %s", content_type, content_id, decision)
            return True

        try:
            applied = handler.set_status(uow.session, content_id, new_value)
        except SQLAlchemyError:
            logger.error(
                "Content write failed | content_type: %s, content_id: %s, action: %s",
                content_type,
                content_id,
                decision,
                exc_info=True,
            )
            return False

        if not applied:
            logger.warning("Content %s %s not found while applying %s", content_type, content_id, decision)
        return applied

    def get_owner(self, content_type: str, content_id: int) -> int | None:
        """Return the owner of a content record, None when it cannot be resolved."""
        handler = self.handler_for(content_type)
        with self._session_factory() as session:
            return handler.get_owner(session, content_id)

    def describe(self, session: Session, content_type: str, content_id: int) -> dict[str, Any] | None:
        handler = self._handlers.get(content_type)
        if handler is None:
            return None
        return handler.describe(session, content_id)
