from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, orm
from sqlalchemy.orm import Mapped, mapped_column

from .. import BaseMixins, SqlAlchemyBase

if TYPE_CHECKING:
    from .users import Users


class UserRoles(SqlAlchemyBase, BaseMixins):
    """A named role granted to a user; one row per (user, role)."""

    __tablename__ = "user_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    scope: Mapped[str | None] = mapped_column(String(64))

    user: Mapped["Users"] = orm.relationship("Users", back_populates="roles")
