"""
Declarative base and shared column mixins for every appscope entity.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class SqlAlchemyBase(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class BaseMixins:
    """
    Timestamp columns shared by every entity.

    `deleted_at` marks a soft-deleted row; the query engine hides such rows.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, default=None)

    def update(self, **kwargs) -> None:
        """Sets every given attribute that exists on the model."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)


from .users import Addresses, Profiles, UserRoles, Users  # noqa: E402

__all__ = ["Addresses", "BaseMixins", "Profiles", "SqlAlchemyBase", "UserRoles", "Users"]
