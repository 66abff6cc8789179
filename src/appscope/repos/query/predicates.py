"""
WHERE-clause builders for the advanced filter.

`PredicateAssembler` turns the filter, nested filter, search and range parts of
a `FilterQuery` into SQLAlchemy boolean expressions against the root alias.
Each builder returns `None` when its part of the descriptor is empty.
"""

from sqlalchemy import ColumnElement, String, and_, cast, exists, or_
from sqlalchemy.orm import aliased
from sqlalchemy.sql import sqltypes

from appscope.core.exceptions import FilterValidationError, UnknownRelationError
from appscope.schemas.response import NEGATION_PREFIX, FilterQuery, LogicalCondition, QueryOptions

from .expressions import coerce_value, column_type, resolve_column
from .registry import EntityMetadata, EntityRegistry, RelationInfo, entity_name

SOFT_DELETE_COLUMN = "deleted_at"


def combine(clauses: list[ColumnElement], condition: LogicalCondition) -> ColumnElement | None:
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return and_(*clauses) if condition is LogicalCondition.AND else or_(*clauses)


class PredicateAssembler:
    """
    Builds the filter predicates of one advanced filter call.

    Args:
        registry (EntityRegistry): Allow-list used for the root and related entities.
        root: The aliased root entity.
        metadata (EntityMetadata): Metadata of the root entity.
        options (QueryOptions): Entity binding (supplies the default nested relation).
    """

    def __init__(self, registry: EntityRegistry, root, metadata: EntityMetadata, options: QueryOptions) -> None:
        self.registry = registry
        self.root = root
        self.metadata = metadata
        self.options = options

    # ==================================================================================================================
    # Basic filter

    def basic(self, query: FilterQuery) -> ColumnElement | None:
        """
        One bracket per `filter_by` entry: IN for plain values, NOT IN for values
        prefixed with `!`, both ANDed when present. Brackets are combined with
        `filter_condition`.
        """
        brackets = []
        for column_spec, values in zip(query.filter_by, query.filter, strict=True):
            if not values:
                continue

            column = resolve_column(self.root, column_spec, self.metadata)
            include = [coerce_value(column, v) for v in values if not v.startswith(NEGATION_PREFIX)]
            exclude = [coerce_value(column, v[len(NEGATION_PREFIX) :]) for v in values if v.startswith(NEGATION_PREFIX)]

            parts = []
            if include:
                parts.append(column.in_(include))
            if exclude:
                parts.append(column.notin_(exclude))
            brackets.append(and_(*parts) if len(parts) > 1 else parts[0])

        return combine(brackets, query.filter_condition)

    # ==================================================================================================================
    # Nested filter

    def has_nested(self, query: FilterQuery) -> bool:
        return any(values for values in query.filter_nested)

    def split_nested(self, column_spec: str) -> tuple[RelationInfo, str]:
        """
        Splits `relation.column` into the relation and the column reference on
        its target. A reference whose first segment is not a relation of the
        root entity targets `nested_table`.

        Raises:
            UnknownRelationError: If neither form names a declared relation.
        """
        head, sep, rest = column_spec.partition(".")
        if sep and head in self.metadata.relations:
            return self.metadata.relations[head], rest

        if self.options.nested_table:
            default = self.metadata.relation(self.options.nested_table)
            # A dotted reference on the default relation must be a JSON path.
            if not sep or head in self.registry.get(default.target).json_columns:
                return default, column_spec

        if sep:
            raise UnknownRelationError(self.metadata.name, head)
        raise FilterValidationError(
            f"Nested filter '{column_spec}' names no relation and {self.metadata.name} has no default nested relation"
        )

    def _correlate(self, relation: RelationInfo, target) -> list[ColumnElement]:
        clauses = [getattr(self.root, local) == getattr(target, remote) for local, remote in relation.pairs]
        target_meta = self.registry.get(relation.target)
        if SOFT_DELETE_COLUMN in target_meta.columns:
            clauses.append(getattr(target, SOFT_DELETE_COLUMN).is_(None))
        return clauses

    def nested(self, query: FilterQuery) -> ColumnElement | None:
        if not self.has_nested(query):
            return None
        if query.filter_nested_condition is LogicalCondition.AND:
            return self._nested_and(query)
        return self._nested_or(query)

    def _nested_and(self, query: FilterQuery) -> ColumnElement | None:
        """
        One EXISTS per relation, every condition on the same related row.

        Each value is an equality on that row, so two different values for one
        column of the same relation cannot both hold.
        """
        grouped: dict[str, tuple[RelationInfo, object, list[ColumnElement]]] = {}
        for column_spec, values in zip(query.filter_nested_by, query.filter_nested, strict=True):
            if not values:
                continue

            relation, target_spec = self.split_nested(column_spec)
            if relation.name not in grouped:
                target = aliased(relation.target, name=f"{entity_name(self.root)}_nested_{relation.name}")
                grouped[relation.name] = (relation, target, [])
            _, target, conditions = grouped[relation.name]

            column = resolve_column(target, target_spec, self.registry.get(relation.target))
            conditions.extend(column == coerce_value(column, v) for v in values)

        clauses = [
            exists().where(*self._correlate(relation, target), *conditions) for relation, target, conditions in grouped.values()
        ]
        return combine(clauses, LogicalCondition.AND)

    def _nested_or(self, query: FilterQuery) -> ColumnElement | None:
        """One EXISTS per entry with `column IN values`; entries are ORed."""
        clauses = []
        for index, (column_spec, values) in enumerate(zip(query.filter_nested_by, query.filter_nested, strict=True)):
            if not values:
                continue

            relation, target_spec = self.split_nested(column_spec)
            target = aliased(relation.target, name=f"{entity_name(self.root)}_nested_{relation.name}_{index}")
            column = resolve_column(target, target_spec, self.registry.get(relation.target))
            values_in = column.in_([coerce_value(column, v) for v in values])
            clauses.append(exists().where(*self._correlate(relation, target), values_in))

        return combine(clauses, LogicalCondition.OR)

    # ==================================================================================================================
    # Search and range

    def search(self, query: FilterQuery) -> ColumnElement | None:
        """
        `LIKE %term%` across every `search_by` column, ORed. LIKE wildcards in
        the term match literally; non-text columns are cast to text.
        """
        term = query.search
        if not term or not term.strip() or not query.search_by:
            return None

        clauses = []
        for column_spec in query.search_by:
            column = resolve_column(self.root, column_spec, self.metadata)
            if not isinstance(column_type(column), sqltypes.String):
                column = cast(column, String)
            clauses.append(column.contains(term, autoescape=True))

        return combine(clauses, LogicalCondition.OR)

    def range(self, query: FilterQuery) -> ColumnElement | None:
        """
        `start_by >= start` and `end_by <= end`. With both bounds present they
        combine per `start_and_end_condition`; a lone bound applies as is.
        """
        bounds = []
        if query.start_by and query.start:
            column = resolve_column(self.root, query.start_by, self.metadata)
            bounds.append(column >= coerce_value(column, query.start))
        if query.end_by and query.end:
            column = resolve_column(self.root, query.end_by, self.metadata)
            bounds.append(column <= coerce_value(column, query.end))

        return combine(bounds, query.start_and_end_condition)

    def all(self, query: FilterQuery) -> list[ColumnElement]:
        """Every non-empty predicate in application order: basic, nested, search, range."""
        clauses = [self.basic(query), self.nested(query), self.search(query), self.range(query)]
        return [clause for clause in clauses if clause is not None]
