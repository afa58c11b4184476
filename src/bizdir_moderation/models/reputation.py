"""Per-user reputation points."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bizdir_moderation.db.session import Base
from bizdir_moderation.db.time import utcnow

DEFAULT_LEVEL = "contributor"

# Highest threshold first; the label is derived from points and never read for decisions.
REPUTATION_LEVELS: tuple[tuple[int, str], ...] = (
    (500, "steward"),
    (200, "curator"),
    (100, "publisher"),
    (0, DEFAULT_LEVEL),
)


def level_for_points(points: int) -> str:
    """Return the level label earned by ``points``."""
    for threshold, label in REPUTATION_LEVELS:
        if points >= threshold:
            return label
    return DEFAULT_LEVEL


class UserReputation(Base):
    """Accumulated reputation for one user; absence means zero points."""

    __tablename__ = "biz_user_reputation"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)
    reputation_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_LEVEL, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )
