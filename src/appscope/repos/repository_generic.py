"""
This module provides generic repository classes for common database operations.

It defines:
- `RepositoryGeneric`: A base class offering CRUD (Create, Read, Update, Delete)
  functionalities plus the advanced filter for SQLAlchemy models. It works with
  Pydantic schemas for validation and serialization.
- `AppRepositoryGeneric`: A subclass of `RepositoryGeneric` for resources owned
  by an application (tenant). It requires an `app_id` upon initialization and
  scopes every read and write to it, directly or through the parent relation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.orm.session import Session

from appscope.core.config import get_app_settings
from appscope.core.exceptions import NoEntryFound, PermissionDenied
from appscope.core.root_logger import get_logger
from appscope.db.models import SqlAlchemyBase, utcnow
from appscope.schemas._appscope import _AppScopeModel
from appscope.schemas.response import AdvanceFilterResponse, FilterQuery, QueryOptions

from ._utils import NOT_SET, NotSet
from .query import AdvanceFilterEngine, TenantScopingGuard

Schema = TypeVar("Schema", bound=_AppScopeModel)
Model = TypeVar("Model", bound=SqlAlchemyBase)
CreateSchema = TypeVar("CreateSchema", bound=BaseModel)
UpdateSchema = TypeVar("UpdateSchema", bound=BaseModel)


class RepositoryGeneric(Generic[Schema, Model]):
    """
    A generic base repository providing common database operations.

    This class is designed to be inherited by specific entity repositories.
    It handles CRUD operations and the advanced filter.

    Type Parameters:
        Schema: The Pydantic schema used for reading/serializing data.
        Model: The SQLAlchemy model representing the database table.
    """

    session: Session
    """The SQLAlchemy session used for database interactions."""

    primary_key: str
    """The name of the primary key attribute on the SQLAlchemy model."""

    model: type[Model]
    """The SQLAlchemy model class this repository manages."""

    schema: type[Schema]
    """The Pydantic schema class used for validating and serializing model instances."""

    options: QueryOptions = QueryOptions()
    """How the advanced filter binds to `model`. Subclasses override it."""

    _app_id: str | None = None

    def __init__(
        self,
        session: Session,
        primary_key: str,
        sql_model: type[Model],
        schema: type[Schema],
        options: QueryOptions | None = None,
    ) -> None:
        """
        Initializes the RepositoryGeneric instance.

        Args:
            session (Session): The SQLAlchemy session for database operations.
            primary_key (str): The name of the primary key attribute of the `sql_model`.
            sql_model (type[Model]): The SQLAlchemy model class.
            schema (type[Schema]): The Pydantic schema class for serialization.
            options (QueryOptions | None): Advanced filter binding. Defaults to
                the class-level `options`.
        """
        self.session = session
        self.primary_key = primary_key
        self.model = sql_model
        self.schema = schema
        if options is not None:
            self.options = options
        self.engine = AdvanceFilterEngine(session)
        self.logger = get_logger()

    @property
    def app_id(self) -> str | None:
        """
        The application id this repository is scoped to, if any.
        """
        return self._app_id

    def _query(self, override_schema: type[_AppScopeModel] | None = None, with_options: bool = True) -> tuple[Select, Any]:
        """
        Builds a SELECT of the repository's model, scoped the same way the
        advanced filter scopes it (tenant, parent and soft delete).

        Returns:
            tuple[Select, Any]: The statement and the entity it selects.
        """
        root = self.model
        guard = TenantScopingGuard(self.engine.registry, self.engine.registry.get(self.model), self.options, self.app_id)
        q = guard.apply(select(root), root)

        if with_options:
            schema_for_options = override_schema or self.schema
            q = q.options(*guard.loader_options())
            if hasattr(schema_for_options, "loader_options") and callable(schema_for_options.loader_options):
                q = q.options(*schema_for_options.loader_options())
        return q, root

    def _query_one(self, match_value: Any, match_key: str | None = None) -> Model | None:
        """
        Queries the database for a single item and returns the SQLAlchemy model instance.

        If no `match_key` is provided, the `self.primary_key` is used.
        """
        key_to_match = match_key or self.primary_key
        query, root = self._query(with_options=False)
        query = query.where(getattr(root, key_to_match) == match_value)
        return self.session.execute(query).unique().scalars().one_or_none()

    def get_one(self, value: Any, key: str | None = None, override_schema: type[Schema] | None = None) -> Schema | None:
        """
        Retrieves a single record by a specific key-value pair.

        Args:
            value (Any): The value to match.
            key (str | None, optional): The attribute name to filter by.
                                        Defaults to `self.primary_key`.
            override_schema (type[Schema] | None, optional): Pydantic schema for serialization.
                                                           Defaults to `self.schema`.

        Returns:
            Schema | None: The Pydantic schema instance if found, otherwise None.
        """
        eff_schema = override_schema or self.schema
        query, root = self._query(override_schema=eff_schema)
        query = query.where(getattr(root, key or self.primary_key) == value)

        result = self.session.execute(query).unique().scalars().one_or_none()
        if not result:
            return None
        return eff_schema.model_validate(result)

    def get_one_or_raise(self, value: Any, key: str | None = None, override_schema: type[Schema] | None = None) -> Schema:
        """
        Same as `get_one`, but a missing record is an error.

        Raises:
            NoEntryFound: If nothing matches within the repository's scope.
        """
        result = self.get_one(value, key=key, override_schema=override_schema)
        if result is None:
            raise NoEntryFound(f"{self.model.__name__} with {key or self.primary_key}='{value}' not found")
        return result

    def _prepare_create(self, data: CreateSchema | dict) -> dict:
        return dict(data) if isinstance(data, dict) else data.model_dump()

    def _prepare_update(self, entry: Model, data: dict) -> dict:
        return data

    def create(self, data: CreateSchema | dict) -> Schema:
        """
        Creates a new record in the database.

        Args:
            data (CreateSchema | dict): The data for the new record, either as a
                                        Pydantic schema instance or a dictionary.

        Returns:
            Schema: The Pydantic schema instance of the created record.

        Raises:
            Exception: Propagates database exceptions on commit failure after rollback.
        """
        try:
            new_document = self.model(**self._prepare_create(data))
            self.session.add(new_document)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(new_document)
        return self.schema.model_validate(new_document)

    def create_many(self, data: Iterable[CreateSchema | dict]) -> list[Schema]:
        """
        Creates multiple records in the database in a single transaction.
        """
        new_documents = [self.model(**self._prepare_create(document_data)) for document_data in data]

        self.session.add_all(new_documents)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        for created_document in new_documents:
            self.session.refresh(created_document)

        return [self.schema.model_validate(db_obj) for db_obj in new_documents]

    def update(self, match_value: Any, new_data: UpdateSchema | dict, match_key: str | None = None) -> Schema:
        """
        Updates an existing record in the database. Only the fields set on
        `new_data` are written.

        Raises:
            NoEntryFound: If the record to update is not found.
        """
        update_data_dict = new_data if isinstance(new_data, dict) else new_data.model_dump(exclude_unset=True)

        entry = self._query_one(match_value=match_value, match_key=match_key)
        if not entry:
            raise NoEntryFound(f"{self.model.__name__} not found for update.")

        entry.update(**self._prepare_update(entry, update_data_dict))

        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(entry)
        return self.schema.model_validate(entry)

    def delete(self, value: Any, match_key: str | None = None, hard: bool = False) -> Schema:
        """
        Deletes a single record.

        Entities with a `deleted_at` column are soft deleted unless `hard` is set;
        soft-deleted rows are invisible to every later query.

        Raises:
            NoEntryFound: If the record to delete is not found.
        """
        key_to_match = match_key or self.primary_key
        db_record = self._query_one(match_value=value, match_key=key_to_match)

        if not db_record:
            raise NoEntryFound(f"{self.model.__name__} with {key_to_match}='{value}' not found for deletion.")

        deleted_schema_instance = self.schema.model_validate(db_record)

        try:
            if hard or not hasattr(db_record, "deleted_at"):
                self.session.delete(db_record)
            else:
                db_record.deleted_at = utcnow()
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            self.logger.error(f"Error deleting {self.model.__name__}: {e}")
            raise

        return deleted_schema_instance

    def count_all(self) -> int:
        """Counts the records visible to this repository."""
        query, _ = self._query(with_options=False)
        return self.engine.count(query)

    def advance_filter(self, query: FilterQuery, override_schema: type[Schema] | None = None) -> AdvanceFilterResponse[Schema]:
        """
        Runs the advanced filter against this repository's model.

        Args:
            query (FilterQuery): The client descriptor.
            override_schema (type[Schema] | None, optional): Pydantic schema for serialization.
                                                           Defaults to `self.schema`.

        Returns:
            AdvanceFilterResponse[Schema]: The requested page and the total.
        """
        eff_schema = override_schema or self.schema
        result = self.engine.advance_filter(query, self.model, self.options, app_id=self.app_id)
        return result.cast(eff_schema)


class AppRepositoryGeneric(RepositoryGeneric[Schema, Model]):
    """
    A generic repository for resources owned by an application.

    Requires `app_id` during initialization. Reads, counts and the advanced
    filter are scoped through `options` (the entity's own tenant column, or the
    parent relation). Creates stamp the tenant column, or check that the parent
    row belongs to the application.
    """

    def __init__(
        self,
        session: Session,
        primary_key: str,
        sql_model: type[Model],
        schema: type[Schema],
        options: QueryOptions | None = None,
        *,
        app_id: str | None | NotSet,
    ) -> None:
        """
        Raises:
            ValueError: If `app_id` is `NOT_SET`, indicating missing tenant context.
        """
        super().__init__(session, primary_key, sql_model, schema, options)
        if app_id is NOT_SET:
            raise ValueError(f"app_id must be explicitly set (can be None) for {self.__class__.__name__}, but was NOT_SET.")
        self._app_id = app_id

    def _prepare_create(self, data: CreateSchema | dict) -> dict:
        data_dict = super()._prepare_create(data)
        if not self.app_id:
            return data_dict

        if self.options.app_id:
            tenant_column = self.tenant_column
            if data_dict.get(tenant_column) not in (None, self.app_id):
                raise PermissionDenied(f"Cannot create {self.model.__name__} for another application")
            data_dict[tenant_column] = self.app_id

        if self.options.with_parent_app_id:
            self._check_parent(data_dict)

        return data_dict

    def _prepare_update(self, entry: Model, data: dict) -> dict:
        """
        Raises:
            PermissionDenied: If the update would move the row to another application,
                directly or by re-pointing it at a parent owned by another application.
        """
        if not self.app_id:
            return data

        if self.options.app_id:
            tenant_column = self.tenant_column
            if tenant_column in data and data[tenant_column] != self.app_id:
                raise PermissionDenied(f"Cannot move {self.model.__name__} to another application")

        if self.options.with_parent_app_id:
            relation = self.engine.registry.get(self.model).relation(self.options.parent_table)
            local_keys = [local for local, _ in relation.pairs]
            if any(key in data for key in local_keys):
                self._check_parent({key: data.get(key, getattr(entry, key)) for key in local_keys})

        return data

    @property
    def tenant_column(self) -> str:
        return get_app_settings().TENANT_COLUMN

    def _check_parent(self, data_dict: dict) -> None:
        """
        Raises:
            PermissionDenied: If the referenced parent is not owned by the application.
        """
        metadata = self.engine.registry.get(self.model)
        relation = metadata.relation(self.options.parent_table)
        parent = relation.target

        query = select(parent)
        for local, remote in relation.pairs:
            query = query.where(getattr(parent, remote) == data_dict.get(local))
        query = query.where(getattr(parent, self.tenant_column) == self.app_id)

        if self.session.execute(query).scalars().first() is None:
            raise PermissionDenied(f"Parent {relation.name} does not belong to application '{self.app_id}'")
