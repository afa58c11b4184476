"""Role and grant assignments read by the capability evaluator."""

from sqlalchemy import BigInteger, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from bizdir_moderation.db.session import Base

ROLE_CONTRIBUTOR = "biz_contributor"
ROLE_MODERATOR = "biz_moderator"
ROLE_ADMIN = "biz_admin"

GRANT_EDIT_OTHERS = "edit_others_content"


class UserRole(Base):
    """A named role held by a user."""

    __tablename__ = "user_role"
    __table_args__ = (UniqueConstraint("user_id", "role"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False)


class UserGrant(Base):
    """A capability granted to a user regardless of object ownership."""

    __tablename__ = "user_grant"
    __table_args__ = (UniqueConstraint("user_id", "grant"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    grant: Mapped[str] = mapped_column(String(100), nullable=False)
