"""Role and grant lookups backing the static strategy of the capability evaluator."""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from bizdir_moderation.models import UserGrant, UserRole


class RoleStore(Protocol):
    """Host-side role and capability store."""

    def has_role(self, user_id: int, role_name: str) -> bool: ...

    def has_global_grant(self, user_id: int, grant_name: str) -> bool: ...


class SqlRoleStore:
    """Role store reading the ``user_role`` and ``user_grant`` tables."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def has_role(self, user_id: int, role_name: str) -> bool:
        with self._session_factory() as session:
            found = session.scalar(
                select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role_name)
            )
        return found is not None

    def has_global_grant(self, user_id: int, grant_name: str) -> bool:
        with self._session_factory() as session:
            found = session.scalar(
                select(UserGrant.id).where(UserGrant.user_id == user_id, UserGrant.grant == grant_name)
            )
        return found is not None

    def assign_role(self, user_id: int, role_name: str) -> None:
        if self.has_role(user_id, role_name):
            return
        with self._session_factory() as session:
            session.add(UserRole(user_id=user_id, role=role_name))
            session.commit()

    def revoke_role(self, user_id: int, role_name: str) -> None:
        with self._session_factory() as session:
            session.execute(
                delete(UserRole).where(UserRole.user_id == user_id, UserRole.role == role_name)
            )
            session.commit()

    def grant(self, user_id: int, grant_name: str) -> None:
        if self.has_global_grant(user_id, grant_name):
            return
        with self._session_factory() as session:
            session.add(UserGrant(user_id=user_id, grant=grant_name))
            session.commit()
