"""
Request and response schemas for the advanced filter.

`FilterQuery` is the per-request descriptor a client sends: filter, nested
filter, search, range, sort, group and pagination instructions, all expressed
as column names and raw string values. It is validated for shape here; column
and relation names are validated against the entity later, when the query is
assembled.

`AdvanceFilterResponse` is the paginated answer (`total`, `total_page`, `data`).
"""

import enum
from math import ceil
from typing import Any, Generic, TypeVar

from humps import camelize
from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

from appscope.core.exceptions import FilterValidationError
from appscope.schemas._appscope import _AppScopeModel

DataT = TypeVar("DataT")

NEGATION_PREFIX = "!"
"""A filter value starting with this prefix excludes the value (NOT IN) instead of including it."""


class LogicalCondition(str, enum.Enum):
    """How sibling predicates are combined."""

    AND = "AND"
    OR = "OR"


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class GroupSort(str, enum.Enum):
    """Which extreme of `group_sort_by` is kept per group."""

    MAX = "MAX"
    MIN = "MIN"


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, (str, int, float, bool)):
        return [value]
    return value


def _as_str(value: Any) -> Any:
    # Booleans first: str(True) is "True", the stores expect lowercase.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _aliases(name: str, *extra: str) -> AliasChoices:
    return AliasChoices(name, camelize(name), *extra)


class FilterQuery(_AppScopeModel):
    """
    Declarative filter descriptor consumed once by the advanced filter engine.

    Parallel arrays (`filter_by`/`filter`, `filter_nested_by`/`filter_nested`,
    `sort_by`/`sort`) must have the same length. Enumerations accept any case.
    The owning application id is never part of this descriptor.
    """

    filter_by: list[str] = Field(default_factory=list, validation_alias=_aliases("filter_by"))
    filter: list[list[str]] = Field(default_factory=list, validation_alias=_aliases("filter"))
    filter_condition: LogicalCondition = Field(default=LogicalCondition.AND, validation_alias=_aliases("filter_condition"))

    filter_nested_by: list[str] = Field(default_factory=list, validation_alias=_aliases("filter_nested_by"))
    filter_nested: list[list[str]] = Field(default_factory=list, validation_alias=_aliases("filter_nested"))
    filter_nested_condition: LogicalCondition = Field(
        default=LogicalCondition.AND, validation_alias=_aliases("filter_nested_condition")
    )

    search_by: list[str] = Field(default_factory=list, validation_alias=_aliases("search_by"))
    search: str | None = Field(default=None, validation_alias=_aliases("search"))

    start_by: str | None = Field(default=None, validation_alias=_aliases("start_by", "filter_date_start_by", "filterDateStartBy"))
    start: str | None = Field(default=None, validation_alias=_aliases("start", "start_date", "startDate"))
    end_by: str | None = Field(default=None, validation_alias=_aliases("end_by", "filter_date_end_by", "filterDateEndBy"))
    end: str | None = Field(default=None, validation_alias=_aliases("end", "end_date", "endDate"))
    start_and_end_condition: LogicalCondition = Field(
        default=LogicalCondition.AND, validation_alias=_aliases("start_and_end_condition")
    )

    sort_by: list[str] = Field(default_factory=list, validation_alias=_aliases("sort_by"))
    sort: list[SortDirection] = Field(default_factory=list, validation_alias=_aliases("sort"))

    group_by: list[str] = Field(default_factory=list, validation_alias=_aliases("group_by"))
    group_sort_by: str | None = Field(default=None, validation_alias=_aliases("group_sort_by"))
    group_sort: GroupSort = Field(default=GroupSort.MAX, validation_alias=_aliases("group_sort"))

    page: int | None = Field(default=None, validation_alias=_aliases("page"))
    """1-based page index. Below 1 (or unset) means no pagination."""
    per_page: int | None = Field(default=None, validation_alias=_aliases("per_page"))
    """Rows per page. Below 1 (or unset) means no pagination."""

    @field_validator("filter_by", "filter_nested_by", "search_by", "sort_by", "group_by", mode="before")
    @classmethod
    def wrap_single_name(cls, v: Any) -> Any:
        return _as_list(v)

    @field_validator("filter", "filter_nested", mode="before")
    @classmethod
    def normalise_value_lists(cls, v: Any) -> Any:
        """Wraps scalar entries into one-element lists and stringifies numbers and booleans."""
        v = _as_list(v)
        if not isinstance(v, list):
            return v
        return [[_as_str(item) for item in _as_list(entry)] for entry in v]

    @field_validator("start", "end", mode="before")
    @classmethod
    def stringify_bound(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v if v.strip() else None
        if v is None:
            return v
        if hasattr(v, "isoformat"):
            return v.isoformat()
        return _as_str(v)

    @field_validator("filter_condition", "filter_nested_condition", "start_and_end_condition", mode="before")
    @classmethod
    def upper_condition(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("sort", mode="before")
    @classmethod
    def upper_sort(cls, v: Any) -> Any:
        v = _as_list(v)
        if not isinstance(v, list):
            return v
        return [item.upper() if isinstance(item, str) else item for item in v]

    @field_validator("group_sort", mode="before")
    @classmethod
    def map_group_sort(cls, v: Any) -> Any:
        """Accepts MAX/MIN in any case; DESC and ASC are read as MAX and MIN."""
        if not isinstance(v, str):
            return v
        v = v.upper()
        return {"DESC": "MAX", "ASC": "MIN"}.get(v, v)

    @model_validator(mode="after")
    def check_shapes(self) -> "FilterQuery":
        """
        Rejects descriptors whose parallel arrays disagree or whose group request
        is incomplete.

        Raises:
            FilterValidationError: On any shape violation.
        """
        if len(self.filter_by) != len(self.filter):
            raise FilterValidationError(
                f"filter_by has {len(self.filter_by)} entries but filter has {len(self.filter)}"
            )
        if len(self.filter_nested_by) != len(self.filter_nested):
            raise FilterValidationError(
                f"filter_nested_by has {len(self.filter_nested_by)} entries but filter_nested has {len(self.filter_nested)}"
            )
        # An empty `sort` means ascending for every sort_by column.
        if self.sort and len(self.sort) != len(self.sort_by):
            raise FilterValidationError(f"sort_by has {len(self.sort_by)} entries but sort has {len(self.sort)}")
        if self.group_by and not self.group_sort_by:
            raise FilterValidationError("group_by requires group_sort_by")
        if self.group_sort_by and not self.group_by:
            raise FilterValidationError("group_sort_by requires group_by")
        return self

    @property
    def sort_pairs(self) -> list[tuple[str, SortDirection]]:
        """(column, direction) pairs in precedence order."""
        directions = self.sort or [SortDirection.ASC] * len(self.sort_by)
        return list(zip(self.sort_by, directions, strict=True))

    @property
    def is_paginated(self) -> bool:
        return bool(self.page and self.page >= 1 and self.per_page and self.per_page >= 1)

    @property
    def offset(self) -> int:
        """Row offset of the requested page; 0 when not paginated."""
        if not self.is_paginated:
            return 0
        return (self.page - 1) * self.per_page

    def total_pages(self, total: int) -> int:
        """`ceil(total / per_page)`, with an unset or non-positive `per_page` counted as 1."""
        per_page = self.per_page if self.per_page and self.per_page >= 1 else 1
        return ceil(total / per_page)


class AdvanceFilterResponse(BaseModel, Generic[DataT]):
    """
    The answer to an advanced filter request.

    Type Parameters:
        DataT: The item type (an ORM entity or a read schema).
    """

    total: int = 0
    """Rows matching every filter, before pagination."""
    total_page: int = 0
    """Number of pages for `per_page` (see `FilterQuery.total_pages`)."""
    page: int | None = None
    per_page: int | None = None
    data: list[DataT]

    model_config = {"arbitrary_types_allowed": True}

    def cast(self, item_schema: type[BaseModel]) -> "AdvanceFilterResponse":
        """Validates every item into `item_schema` (e.g. ORM rows into read schemas)."""
        return AdvanceFilterResponse[item_schema](  # type: ignore[valid-type]
            total=self.total,
            total_page=self.total_page,
            page=self.page,
            per_page=self.per_page,
            data=[item_schema.model_validate(item) for item in self.data],
        )
