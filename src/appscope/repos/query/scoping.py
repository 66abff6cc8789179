"""
Tenant scoping of advanced filter queries.

Every query path built for a tenant-scoped entity passes through
`TenantScopingGuard`: the root SELECT, and the group-extreme subquery. The
application id always comes from the resolved tenant context, never from the
filter descriptor.
"""

from sqlalchemy import Select
from sqlalchemy.orm import aliased, contains_eager
from sqlalchemy.orm.interfaces import LoaderOption

from appscope.core.config import get_app_settings
from appscope.core.exceptions import FilterValidationError, MissingTenantContext, UnknownColumnError
from appscope.schemas.response import QueryOptions

from .predicates import SOFT_DELETE_COLUMN
from .registry import EntityMetadata, EntityRegistry, entity_name


class TenantScopingGuard:
    """
    Applies the application id predicate and the soft-delete filter.

    With `options.app_id` the root is filtered on its own tenant column. With
    `options.with_parent_app_id` the parent relation is inner-joined with the
    tenant predicate in its ON clause, so rows without a parent of the caller's
    application never match.

    Raises:
        MissingTenantContext: If scoping is requested and `app_id` is empty.
    """

    def __init__(
        self,
        registry: EntityRegistry,
        metadata: EntityMetadata,
        options: QueryOptions,
        app_id: str | None,
        tenant_column: str | None = None,
    ) -> None:
        if options.is_tenant_scoped and not app_id:
            raise MissingTenantContext()

        self.registry = registry
        self.metadata = metadata
        self.options = options
        self.app_id = app_id
        self.tenant_column = tenant_column or get_app_settings().TENANT_COLUMN

        self._parent = None
        self._parent_meta = None
        if options.with_parent_app_id:
            self._parent = metadata.relation(options.parent_table)
            if self._parent.uselist:
                raise FilterValidationError(
                    f"Parent relation '{options.parent_table}' of {metadata.name} must be many-to-one"
                )
            parent_meta = registry.get(self._parent.target)
            if self.tenant_column not in parent_meta.columns:
                raise UnknownColumnError(parent_meta.name, self.tenant_column, "parent entity has no tenant column")
            self._parent_meta = parent_meta

        if options.app_id and self.tenant_column not in metadata.columns:
            raise UnknownColumnError(metadata.name, self.tenant_column, "entity has no tenant column")

        self._loader_options: list[LoaderOption] = []

    def apply(self, stmt: Select, alias, eager: bool = True) -> Select:
        """
        Scopes `stmt`, whose FROM is `alias`, to the caller's application.

        Args:
            stmt (Select): The statement to scope.
            alias: The aliased entity the statement selects from.
            eager (bool): Populate the joined parent on the returned rows. Only
                meaningful for the root statement.
        """
        if self.options.app_id:
            stmt = stmt.where(getattr(alias, self.tenant_column) == self.app_id)

        if self._parent is not None:
            parent_alias = aliased(self._parent.target, name=f"{entity_name(alias)}_{self._parent.name}")
            on_clause = [getattr(parent_alias, self.tenant_column) == self.app_id]
            if SOFT_DELETE_COLUMN in self._parent_meta.columns:
                on_clause.append(getattr(parent_alias, SOFT_DELETE_COLUMN).is_(None))

            relationship = getattr(alias, self._parent.name).of_type(parent_alias)
            stmt = stmt.join(relationship.and_(*on_clause))
            if eager:
                self._loader_options.append(contains_eager(relationship))

        if SOFT_DELETE_COLUMN in self.metadata.columns:
            stmt = stmt.where(getattr(alias, SOFT_DELETE_COLUMN).is_(None))

        return stmt

    def loader_options(self) -> list[LoaderOption]:
        """Eager options for the parent joined by `apply`; attach to the data pass only."""
        return list(self._loader_options)