"""
ORDER BY and group-extreme planning.
"""

import re

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import aliased

from appscope.schemas.response import FilterQuery, GroupSort, SortDirection

from .expressions import resolve_column, split_column_spec
from .registry import EntityMetadata, entity_name
from .scoping import TenantScopingGuard

_NON_WORD = re.compile(r"\W+")


def sort_label(index: int, column_spec: str) -> str:
    """Label of the computed column a JSON sort key is projected as."""
    column, json_field = split_column_spec(column_spec)
    return _NON_WORD.sub("_", f"sort_{index}_{column}_{json_field}")


class QueryPlanner:
    """Adds ordering and the group-extreme join to the root statement."""

    def __init__(self, root, metadata: EntityMetadata) -> None:
        self.root = root
        self.metadata = metadata

    def sort(self, stmt: Select, query: FilterQuery) -> Select:
        """
        Applies `sort_by`/`sort` in array order.

        JSON keys are added to the SELECT list under a label and ordered by
        that label, which keeps the ordering valid on DISTINCT queries.
        """
        for index, (column_spec, direction) in enumerate(query.sort_pairs):
            column = resolve_column(self.root, column_spec, self.metadata)
            if split_column_spec(column_spec)[1] is not None:
                column = column.label(sort_label(index, column_spec))
                stmt = stmt.add_columns(column)

            stmt = stmt.order_by(column.desc() if direction is SortDirection.DESC else column.asc())
        return stmt

    def tie_breaker(self, stmt: Select) -> Select:
        """Appends the primary key as the last ordering so pages never overlap."""
        return stmt.order_by(*(getattr(self.root, pk).asc() for pk in self.metadata.primary_key))

    def group(self, stmt: Select, query: FilterQuery, guard: TenantScopingGuard) -> Select:
        """
        Keeps only the rows holding the MAX (or MIN) of `group_sort_by` within
        each `group_by` group.

        The extreme is computed by a subquery over a second alias of the entity,
        scoped to the same tenant, and inner-joined back to the root on every
        group column and on the extreme value. Ties on the extreme all survive.
        """
        if not query.group_by:
            return stmt

        root_name = entity_name(self.root)
        group_alias = aliased(self.metadata.model, name=f"{root_name}_group")
        group_columns = [resolve_column(group_alias, spec, self.metadata) for spec in query.group_by]
        sort_column = resolve_column(group_alias, query.group_sort_by, self.metadata)
        extreme = func.max if query.group_sort is GroupSort.MAX else func.min

        subquery = select(
            *(column.label(f"group_{index}") for index, column in enumerate(group_columns)),
            extreme(sort_column).label("extreme"),
        ).select_from(group_alias)
        subquery = guard.apply(subquery, group_alias, eager=False)
        subquery = subquery.group_by(*group_columns).subquery(f"{root_name}_extreme")

        on_clause = [
            resolve_column(self.root, spec, self.metadata) == subquery.c[f"group_{index}"]
            for index, spec in enumerate(query.group_by)
        ]
        on_clause.append(resolve_column(self.root, query.group_sort_by, self.metadata) == subquery.c.extreme)
        return stmt.join(subquery, and_(*on_clause))
