"""
Base Pydantic model shared by every appscope schema.

`_AppScopeModel` accepts both snake_case names and camelCase aliases (API
clients send camelCase), reads straight from ORM objects, and normalises naive
datetimes to UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime

from humps import camelize
from pydantic import BaseModel, ConfigDict, model_validator


class _AppScopeModel(BaseModel):
    """
    A base Pydantic model for all appscope schemas.

    - `model_config`: camelCase aliases, population by field name, and
      construction from ORM attributes.
    - `set_tz_info`: naive datetimes coming from the store are UTC.
    """

    model_config = ConfigDict(
        alias_generator=camelize,
        populate_by_name=True,
        from_attributes=True,
    )

    @model_validator(mode="after")
    def set_tz_info(self) -> _AppScopeModel:
        """Marks every naive datetime attribute as UTC."""
        for field_name in type(self).model_fields:
            field_value = getattr(self, field_name)
            if isinstance(field_value, datetime) and field_value.tzinfo is None:
                setattr(self, field_name, field_value.replace(tzinfo=UTC))
        return self
