"""
Per-entity binding for the advanced filter.

A repository builds one `QueryOptions` per entity at construction time; the
client never sees it. It names the root alias, the relations to preload, the
parent relation used for tenant scoping, and whether the root table carries
the tenant column itself.
"""

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from appscope.core.config import get_app_settings
from appscope.core.exceptions import FilterValidationError

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class QueryOptions(BaseModel):
    """
    Static, per-entity configuration of the query engine.

    Attributes:
        table_alias: Alias of the root entity in the generated SQL.
        preload: Relations loaded eagerly with each returned row.
        parent_table: Relation through which the tenant is resolved for entities
            that do not carry the tenant column themselves.
        nested_table: Default relation for nested filter columns given without
            a `relation.` prefix.
        app_id: When true, the root table is filtered on its own tenant column.
        with_parent_app_id: When true, the parent relation is inner-joined and
            filtered on the tenant column of the parent.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    table_alias: str = Field(default_factory=lambda: get_app_settings().DEFAULT_TABLE_ALIAS)
    preload: tuple[str, ...] = ()
    parent_table: str | None = None
    nested_table: str | None = None
    app_id: bool = False
    with_parent_app_id: bool = False

    @field_validator("table_alias", "parent_table", "nested_table")
    @classmethod
    def validate_identifier(cls, v: str | None) -> str | None:
        if v is not None and not IDENTIFIER.match(v):
            raise ValueError(f"'{v}' is not a valid identifier")
        return v

    @field_validator("preload", mode="before")
    @classmethod
    def wrap_preload(cls, v):
        if isinstance(v, str):
            return (v,)
        return v

    @model_validator(mode="after")
    def parent_required(self) -> "QueryOptions":
        if self.with_parent_app_id and not self.parent_table:
            raise FilterValidationError("with_parent_app_id requires parent_table")
        return self

    @property
    def is_tenant_scoped(self) -> bool:
        return self.app_id or self.with_parent_app_id
