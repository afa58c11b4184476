"""Capability evaluation combining role grants, ownership and reputation.

``CapabilityEvaluator.can`` is total: it never raises and denies anything it
cannot positively establish. Strategies are picked per capability:

* static: the host role store decides (every capability without its own rule)
* ownership: global "edit others" grant, otherwise the object's owner
* reputation threshold: points looked up through a per-user cache
* self-service: the object is the acting user (creating a review as yourself)

Only reputation points are cached, never the final decision, because ownership
differs per object. The cache lives as long as the evaluator and is emptied for
a user whenever the reputation store reports a change for that user.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

from bizdir_moderation.core.settings import settings
from bizdir_moderation.models.role import GRANT_EDIT_OTHERS, ROLE_ADMIN, ROLE_MODERATOR
from bizdir_moderation.services.content_sync import CONTENT_TYPE_LISTING, CONTENT_TYPE_REVIEW
from bizdir_moderation.services.reputation import ReputationStore
from bizdir_moderation.services.roles import RoleStore

logger = logging.getLogger(__name__)

CAP_MODERATE_CONTENT = "moderate_content"
CAP_PUBLISH_LISTINGS = "publish_listings"
CAP_MANAGE_TAGS = "manage_tags"
CAP_EDIT_CONTENT = "edit_content"
CAP_DELETE_REVIEW = "delete_review"
CAP_CREATE_REVIEW = "create_review"

MODERATOR_ROLES = (ROLE_MODERATOR, ROLE_ADMIN)


@dataclass(frozen=True)
class ContentRef:
    """Reference to a content record owned by the host."""

    content_type: str
    content_id: int


ObjectRef = ContentRef | int | None


class OwnerLookup(Protocol):
    def get_owner(self, content_type: str, content_id: int) -> int | None: ...


class ReputationCache:
    """Per-user points cache with generation-checked writes.

    A lookup records the user's generation before reading the store and only
    stores the result if no invalidation happened in between, so a read that
    overlaps a downgrade can never reinstate the old value.
    """

    def __init__(self) -> None:
        self._points: dict[int, int] = {}
        self._generations: dict[int, int] = {}
        self._lock = threading.Lock()

    def get(self, user_id: int) -> int | None:
        with self._lock:
            return self._points.get(user_id)

    def generation(self, user_id: int) -> int:
        with self._lock:
            return self._generations.get(user_id, 0)

    def put(self, user_id: int, points: int, generation: int) -> bool:
        with self._lock:
            if self._generations.get(user_id, 0) != generation:
                return False
            self._points[user_id] = points
            return True

    def invalidate(self, user_id: int) -> None:
        with self._lock:
            self._points.pop(user_id, None)
            self._generations[user_id] = self._generations.get(user_id, 0) + 1

    def clear(self) -> None:
        with self._lock:
            for user_id in self._points:
                self._generations[user_id] = self._generations.get(user_id, 0) + 1
            self._points.clear()

    def users(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._points)


Strategy = Callable[[str, int, ObjectRef], bool]


class CapabilityEvaluator:
    """Decide whether a user may exercise a named capability."""

    def __init__(
        self,
        reputation: ReputationStore,
        roles: RoleStore,
        owners: OwnerLookup,
        thresholds: Mapping[str, int] | None = None,
    ) -> None:
        self._reputation = reputation
        self._roles = roles
        self._owners = owners
        self._thresholds = dict(thresholds if thresholds is not None else settings.reputation_thresholds)
        self._cache = ReputationCache()

        self._strategies: dict[str, Strategy] = {
            capability: self._meets_threshold for capability in self._thresholds
        }
        self._strategies[CAP_MODERATE_CONTENT] = self._can_moderate
        self._strategies[CAP_EDIT_CONTENT] = self._can_edit
        self._strategies[CAP_DELETE_REVIEW] = self._can_delete_review
        self._strategies[CAP_CREATE_REVIEW] = self._can_create_review

        reputation.add_listener(self.invalidate)

    def can(self, capability: str, user_id: int | None, object_id: ObjectRef = None) -> bool:
        """Return True when ``user_id`` holds ``capability`` (on ``object_id`` if given)."""
        if not user_id:
            return False

        strategy = self._strategies.get(capability, self._has_static_grant)
        try:
            allowed = strategy(capability, user_id, object_id)
        except Exception:
            logger.error(
                "Capability check failed | capability: %s, user_id: %s, object: %r",
                capability,
                user_id,
                object_id,
                exc_info=True,
            )
            return False

        logger.debug("Capability %s for user %s on %r: %s", capability, user_id, object_id, allowed)
        return bool(allowed)

    def invalidate(self, user_id: int) -> None:
        """Drop cached points for ``user_id``; called on every reputation change."""
        self._cache.invalidate(user_id)

    def clear(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        """Stop listening to the reputation store and drop cached points."""
        self._reputation.remove_listener(self.invalidate)
        self._cache.clear()

    def cached_users(self) -> frozenset[int]:
        return self._cache.users()

    def points(self, user_id: int) -> int:
        cached = self._cache.get(user_id)
        if cached is not None:
            return cached
        generation = self._cache.generation(user_id)
        points = self._reputation.get(user_id)
        self._cache.put(user_id, points, generation)
        return points

    def _has_static_grant(self, capability: str, user_id: int, object_id: ObjectRef) -> bool:
        return self._roles.has_global_grant(user_id, capability)

    def _meets_threshold(self, capability: str, user_id: int, object_id: ObjectRef) -> bool:
        return self.points(user_id) >= self._thresholds[capability]

    def _is_moderator(self, user_id: int) -> bool:
        return any(self._roles.has_role(user_id, role) for role in MODERATOR_ROLES)

    def _can_moderate(self, capability: str, user_id: int, object_id: ObjectRef) -> bool:
        # Role is a superset grant, reputation a progression grant; either suffices.
        if self._is_moderator(user_id):
            return True
        threshold = self._thresholds.get(capability)
        return threshold is not None and self.points(user_id) >= threshold

    def _can_edit(self, capability: str, user_id: int, object_id: ObjectRef) -> bool:
        if self._roles.has_global_grant(user_id, GRANT_EDIT_OTHERS):
            return True
        ref = _as_content_ref(object_id, CONTENT_TYPE_LISTING)
        if ref is None:
            return False
        return self._owners.get_owner(ref.content_type, ref.content_id) == user_id

    def _can_delete_review(self, capability: str, user_id: int, object_id: ObjectRef) -> bool:
        ref = _as_content_ref(object_id, CONTENT_TYPE_REVIEW)
        if ref is None or ref.content_type != CONTENT_TYPE_REVIEW:
            return False
        if self._owners.get_owner(ref.content_type, ref.content_id) == user_id:
            return True
        return self._is_moderator(user_id)

    def _can_create_review(self, capability: str, user_id: int, object_id: ObjectRef) -> bool:
        # object_id is the author the review would be filed under.
        return object_id is not None and not isinstance(object_id, ContentRef) and int(object_id) == user_id


def _as_content_ref(object_id: ObjectRef, default_type: str) -> ContentRef | None:
    if object_id is None:
        return None
    if isinstance(object_id, ContentRef):
        return object_id
    return ContentRef(default_type, int(object_id))
