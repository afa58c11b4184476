"""Process-wide moderation collaborators.

The evaluator's reputation cache is only as good as its invalidation hooks, so
the reputation store and the evaluator are always built together here and
shared for the lifetime of the process.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from sqlalchemy.orm import Session, sessionmaker

from bizdir_moderation.services.capabilities import CapabilityEvaluator
from bizdir_moderation.services.content_sync import ContentStatusSynchronizer
from bizdir_moderation.services.events import EventDispatcher
from bizdir_moderation.services.identity import IdentityContext
from bizdir_moderation.services.moderation import ModerationService
from bizdir_moderation.services.reputation import ReputationStore
from bizdir_moderation.services.roles import SqlRoleStore


@dataclass
class ModerationComponents:
    session_factory: sessionmaker[Session]
    reputation: ReputationStore
    roles: SqlRoleStore
    synchronizer: ContentStatusSynchronizer
    evaluator: CapabilityEvaluator
    events: EventDispatcher

    @classmethod
    def build(cls, session_factory: sessionmaker[Session]) -> ModerationComponents:
        reputation = ReputationStore(session_factory)
        roles = SqlRoleStore(session_factory)
        synchronizer = ContentStatusSynchronizer(session_factory)
        evaluator = CapabilityEvaluator(reputation, roles, synchronizer)
        return cls(
            session_factory=session_factory,
            reputation=reputation,
            roles=roles,
            synchronizer=synchronizer,
            evaluator=evaluator,
            events=EventDispatcher(),
        )

    def moderation_service(self, identity: IdentityContext) -> ModerationService:
        """Return a request-scoped orchestrator acting as ``identity``."""
        return ModerationService(
            session_factory=self.session_factory,
            evaluator=self.evaluator,
            synchronizer=self.synchronizer,
            events=self.events,
            identity=identity,
        )


_COMPONENTS: ModerationComponents | None = None
_COMPONENTS_LOCK = Lock()


def get_components() -> ModerationComponents:
    """Return the shared components, building them on first use."""
    global _COMPONENTS
    with _COMPONENTS_LOCK:
        if _COMPONENTS is None:
            from bizdir_moderation.db.session import SessionLocal

            _COMPONENTS = ModerationComponents.build(SessionLocal)
        return _COMPONENTS


def set_components(components: ModerationComponents | None) -> None:
    """Replace the shared components (tests, alternative engines)."""
    global _COMPONENTS
    with _COMPONENTS_LOCK:
        _COMPONENTS = components
