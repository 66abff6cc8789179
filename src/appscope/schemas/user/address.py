from datetime import datetime

from pydantic import ConfigDict

from appscope.schemas._appscope import _AppScopeModel


class AddressCreate(_AppScopeModel):
    user_id: int
    name: str
    address_one: str
    address_two: str | None = None
    phone_number: str | None = None
    sub_district: str | None = None
    district: str | None = None
    province: str | None = None
    country: str | None = None
    zip_code: str | None = None


class AddressRead(AddressCreate):
    id: int
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)
