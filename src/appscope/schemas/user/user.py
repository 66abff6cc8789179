from datetime import datetime
from typing import Annotated, Any

from pydantic import ConfigDict, Field, StringConstraints
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from appscope.db.models.users import Users
from appscope.schemas._appscope import _AppScopeModel

from .address import AddressRead
from .profile import ProfileRead


class RoleCreate(_AppScopeModel):
    user_id: int
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    scope: str | None = None


class RoleRead(RoleCreate):
    id: int
    model_config = ConfigDict(from_attributes=True)


class UserCreate(_AppScopeModel):
    app_id: str | None = None
    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    password: str | None = None
    first_login: bool = True
    last_active: datetime | None = None
    provider: str = "credentials"
    status: str = "active"
    meta: dict[str, Any] | None = None
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "appId": "app-1",
                "username": "ChangeMe",
                "provider": "credentials",
                "meta": {"nickname": "changeme"},
            }
        },
    )


class UserUpdate(_AppScopeModel):
    username: str | None = None
    first_login: bool | None = None
    last_active: datetime | None = None
    status: str | None = None
    meta: dict[str, Any] | None = None


class UserRead(_AppScopeModel):
    """A user without credentials, with profiles and addresses."""

    id: int
    app_id: str
    username: str
    first_login: bool
    last_active: datetime | None = None
    provider: str
    status: str
    meta: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    profiles: list[ProfileRead] = Field(default_factory=list)
    addresses: list[AddressRead] = Field(default_factory=list)
    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def loader_options(cls) -> list[LoaderOption]:
        return [selectinload(Users.profiles), selectinload(Users.addresses)]


class UserSummary(_AppScopeModel):
    id: int
    app_id: str
    username: str
    status: str
    model_config = ConfigDict(from_attributes=True)


class ProfileWithUser(ProfileRead):
    user: UserSummary


class AddressWithUser(AddressRead):
    user: UserSummary
