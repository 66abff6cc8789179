"""
The advanced filter engine.

`AdvanceFilterEngine.advance_filter` turns a `FilterQuery` into one SQLAlchemy
SELECT against an aliased entity: tenant scoping first, then basic filters,
nested filters, search, range, sort and the group-extreme join. A count pass
runs on the unpaginated statement, then the page is fetched with the preload
options attached.
"""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased, joinedload, selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from appscope.core.root_logger import get_logger
from appscope.schemas.response import AdvanceFilterResponse, FilterQuery, QueryOptions

from .planner import QueryPlanner
from .predicates import PredicateAssembler
from .registry import EntityMetadata, EntityRegistry, default_registry
from .scoping import TenantScopingGuard

AdvanceFilterResult = AdvanceFilterResponse
"""Engine-level name of the paginated result."""


class AdvanceFilterEngine:
    """
    Executes advanced filter requests in the caller's session.

    The engine holds no per-request state; one instance may serve many calls.

    Args:
        session (Session): The SQLAlchemy session used for both passes.
        registry (EntityRegistry | None): Entity allow-list. Defaults to every
            appscope entity.
    """

    def __init__(self, session: Session, registry: EntityRegistry | None = None) -> None:
        self.session = session
        self.registry = registry or default_registry()
        self.logger = get_logger("query")

    def _preload(self, root, metadata: EntityMetadata, options: QueryOptions) -> list[LoaderOption]:
        loaders = []
        for name in options.preload:
            relation = metadata.relation(name)
            attribute = getattr(root, relation.name)
            # Collections are fetched in a second SELECT so LIMIT applies to root rows.
            loaders.append(selectinload(attribute) if relation.uselist else joinedload(attribute))
        return loaders

    def build(self, query: FilterQuery, model: type, options: QueryOptions, app_id: str | None = None) -> tuple[Select, TenantScopingGuard, QueryPlanner]:
        """
        Assembles the unpaginated statement.

        Returns:
            tuple[Select, TenantScopingGuard, QueryPlanner]: The statement plus the
            guard and planner the data pass still needs.

        Raises:
            MissingTenantContext: Scoping requested without an application id.
            UnknownColumnError: A referenced column is not declared.
            UnknownRelationError: A referenced relation is not declared.
            FilterValidationError: A value cannot be parsed for its column.
        """
        metadata = self.registry.get(model)
        root = aliased(model, name=options.table_alias)

        guard = TenantScopingGuard(self.registry, metadata, options, app_id)
        assembler = PredicateAssembler(self.registry, root, metadata, options)
        planner = QueryPlanner(root, metadata)

        stmt = guard.apply(select(root), root)
        for clause in assembler.all(query):
            stmt = stmt.where(clause)
        if assembler.has_nested(query):
            stmt = stmt.distinct()

        stmt = planner.sort(stmt, query)
        stmt = planner.group(stmt, query, guard)
        return stmt, guard, planner

    def count(self, stmt: Select) -> int:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return self.session.scalar(count_stmt) or 0

    def advance_filter(
        self,
        query: FilterQuery,
        model: type,
        options: QueryOptions,
        app_id: str | None = None,
    ) -> AdvanceFilterResponse[Any]:
        """
        Runs `query` against `model`.

        Args:
            query (FilterQuery): The client descriptor.
            model (type): The mapped entity class.
            options (QueryOptions): The entity binding.
            app_id (str | None): The caller's application id; required when
                `options` asks for tenant scoping.

        Returns:
            AdvanceFilterResponse: Matching entities of the requested page and the
            total before pagination.

        Raises:
            SQLAlchemyError: Store failures, logged and re-raised after a rollback.
        """
        metadata = self.registry.get(model)
        stmt, guard, planner = self.build(query, model, options, app_id)
        root = planner.root
        preload = self._preload(root, metadata, options)

        self.logger.debug(
            f"advance_filter {metadata.name} alias={options.table_alias} filters={len(query.filter_by)} "
            f"nested={len(query.filter_nested_by)} sort={query.sort_by} group={query.group_by} "
            f"page={query.page} per_page={query.per_page}"
        )

        try:
            total = self.count(stmt)

            if query.is_paginated:
                stmt = planner.tie_breaker(stmt).limit(query.per_page).offset(query.offset)

            stmt = stmt.options(*guard.loader_options(), *preload)
            data = self.session.execute(stmt).unique().scalars().all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error running advance_filter for model={metadata.name}")
            self.logger.error(e)
            self.session.rollback()
            raise

        self.logger.debug(f"advance_filter {metadata.name} total={total} returned={len(data)}")

        return AdvanceFilterResponse(
            total=total,
            total_page=query.total_pages(total),
            page=query.page,
            per_page=query.per_page,
            data=list(data),
        )
