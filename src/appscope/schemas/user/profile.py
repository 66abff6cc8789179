from datetime import datetime

from pydantic import ConfigDict, field_validator

from appscope.schemas._appscope import _AppScopeModel


class ProfileCreate(_AppScopeModel):
    user_id: int
    national_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    image: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str | None) -> str | None:
        return v.strip().lower() if v else v


class ProfileUpdate(_AppScopeModel):
    national_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    image: str | None = None


class ProfileRead(ProfileCreate):
    id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
