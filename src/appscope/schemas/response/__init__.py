from .advance_filter import (
    NEGATION_PREFIX,
    AdvanceFilterResponse,
    FilterQuery,
    GroupSort,
    LogicalCondition,
    SortDirection,
)
from .query_options import QueryOptions

__all__ = [
    "NEGATION_PREFIX",
    "AdvanceFilterResponse",
    "FilterQuery",
    "GroupSort",
    "LogicalCondition",
    "QueryOptions",
    "SortDirection",
]
