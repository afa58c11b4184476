"""Caller identity as seen by the moderation services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class IdentityContext(Protocol):
    def current_user_id(self) -> int | None: ...


@dataclass(frozen=True)
class StaticIdentity:
    """Identity fixed for the lifetime of one request."""

    user_id: int | None = None

    def current_user_id(self) -> int | None:
        return self.user_id


ANONYMOUS = StaticIdentity()
