from .engine import AdvanceFilterEngine, AdvanceFilterResult
from .expressions import coerce_value, column_type, resolve_column
from .planner import QueryPlanner
from .predicates import PredicateAssembler
from .registry import EntityMetadata, EntityRegistry, RelationInfo, default_registry
from .scoping import TenantScopingGuard

__all__ = [
    "AdvanceFilterEngine",
    "AdvanceFilterResult",
    "EntityMetadata",
    "EntityRegistry",
    "PredicateAssembler",
    "QueryPlanner",
    "RelationInfo",
    "TenantScopingGuard",
    "coerce_value",
    "column_type",
    "default_registry",
    "resolve_column",
]
