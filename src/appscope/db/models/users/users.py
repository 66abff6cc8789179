"""
SQLAlchemy model for tenant-owned users.

Each user belongs to one application (`app_id`); profiles, addresses and roles
hang off a user and inherit its tenant through that relation.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, orm
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .. import BaseMixins, SqlAlchemyBase

if TYPE_CHECKING:
    from .addresses import Addresses
    from .profiles import Profiles
    from .roles import UserRoles

# JSONB on PostgreSQL so JSON columns support equality (needed by SELECT DISTINCT).
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Users(SqlAlchemyBase, BaseMixins):
    """
    SQLAlchemy model representing a user of one application.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    app_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True, doc="Owning application (tenant) id.")
    username: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password: Mapped[str | None] = mapped_column(String(255), doc="Password hash; hashing happens outside this package.")
    first_login: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_active: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    provider: Mapped[str] = mapped_column(String(255), default="credentials", nullable=False)
    status: Mapped[str] = mapped_column(String(64), default="active", nullable=False, index=True)
    meta: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True, doc="Free-form JSON attributes (nickname, locale...).")

    profiles: Mapped[list["Profiles"]] = orm.relationship("Profiles", back_populates="user", cascade="all, delete-orphan")
    addresses: Mapped[list["Addresses"]] = orm.relationship("Addresses", back_populates="user", cascade="all, delete-orphan")
    roles: Mapped[list["UserRoles"]] = orm.relationship("UserRoles", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Users id={self.id} app_id={self.app_id} username={self.username}>"
