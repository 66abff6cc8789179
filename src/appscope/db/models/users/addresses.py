from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Integer, String, Text, orm
from sqlalchemy.orm import Mapped, mapped_column

from .. import BaseMixins, SqlAlchemyBase

if TYPE_CHECKING:
    from .users import Users


class Addresses(SqlAlchemyBase, BaseMixins):
    """Postal address of a user."""

    __tablename__ = "addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address_one: Mapped[str] = mapped_column(Text, nullable=False)
    address_two: Mapped[str | None] = mapped_column(Text)
    phone_number: Mapped[str | None] = mapped_column(String(255))
    sub_district: Mapped[str | None] = mapped_column(String(255))
    district: Mapped[str | None] = mapped_column(String(255))
    province: Mapped[str | None] = mapped_column(String(255))
    country: Mapped[str | None] = mapped_column(String(255))
    zip_code: Mapped[str | None] = mapped_column(String(255))

    user: Mapped["Users"] = orm.relationship("Users", back_populates="addresses")
