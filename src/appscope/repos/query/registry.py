"""
Static allow-list of the entities the query engine may touch.

For every mapped class the registry records its column attribute names, which
of them hold JSON, its primary key and its relations (relation name to target
entity plus the local/remote column pairs that correlate them). Client-supplied
names are checked against this before they reach any SQL.

The registry is built once from the SQLAlchemy mappers and not modified
afterwards.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType

from sqlalchemy import JSON, inspect
from sqlalchemy.orm import DeclarativeBase, Mapper

from appscope.core.exceptions import AdvanceFilterError, UnknownColumnError, UnknownRelationError
from appscope.core.root_logger import get_logger

logger = get_logger("registry")


@dataclass(frozen=True, slots=True)
class RelationInfo:
    """A one-to-one, one-to-many or many-to-one relation of an entity."""

    name: str
    target: type
    table: str
    pairs: tuple[tuple[str, str], ...]
    """(attribute on the owning entity, attribute on the target) for every join column."""
    uselist: bool

    @property
    def foreign_key(self) -> str:
        """The target-side join attribute; for one-to-many relations this is the foreign key."""
        return self.pairs[0][1]


@dataclass(frozen=True, slots=True)
class EntityMetadata:
    model: type
    columns: frozenset[str]
    json_columns: frozenset[str]
    primary_key: tuple[str, ...]
    relations: Mapping[str, RelationInfo] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.model.__name__

    def require_column(self, column: str) -> str:
        if column not in self.columns:
            raise UnknownColumnError(self.name, column)
        return column

    def relation(self, name: str) -> RelationInfo:
        try:
            return self.relations[name]
        except KeyError:
            raise UnknownRelationError(self.name, name) from None


def _column_key(mapper: Mapper, column) -> str:
    return mapper.get_property_by_column(column).key


def inspect_entity(model: type) -> EntityMetadata:
    """
    Reads the column and relation metadata of a mapped class.

    Many-to-many relations (those with a secondary table) are not exposed to
    nested filtering and are skipped.
    """
    mapper: Mapper = inspect(model)

    columns: set[str] = set()
    json_columns: set[str] = set()
    for attr in mapper.column_attrs:
        columns.add(attr.key)
        if isinstance(attr.columns[0].type, JSON):
            json_columns.add(attr.key)

    relations: dict[str, RelationInfo] = {}
    for rel in mapper.relationships:
        if rel.secondary is not None:
            logger.debug(f"Skipping many-to-many relation {model.__name__}.{rel.key}")
            continue

        target_mapper = rel.mapper
        pairs = tuple(
            (_column_key(mapper, local), _column_key(target_mapper, remote)) for local, remote in rel.local_remote_pairs
        )
        relations[rel.key] = RelationInfo(
            name=rel.key,
            target=target_mapper.class_,
            table=target_mapper.persist_selectable.name,
            pairs=pairs,
            uselist=bool(rel.uselist),
        )

    return EntityMetadata(
        model=model,
        columns=frozenset(columns),
        json_columns=frozenset(json_columns),
        primary_key=tuple(_column_key(mapper, col) for col in mapper.primary_key),
        relations=MappingProxyType(relations),
    )


class EntityRegistry:
    """Maps each entity class to its `EntityMetadata`."""

    def __init__(self, entities: Mapping[type, EntityMetadata] | None = None) -> None:
        self._entities: dict[type, EntityMetadata] = dict(entities or {})

    def __contains__(self, model: type) -> bool:
        return model in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def register(self, model: type) -> EntityMetadata:
        metadata = inspect_entity(model)
        self._entities[model] = metadata
        return metadata

    def get(self, model: type) -> EntityMetadata:
        """
        Returns the metadata of `model`.

        Raises:
            AdvanceFilterError: If the entity was never registered.
        """
        try:
            return self._entities[model]
        except KeyError:
            raise AdvanceFilterError(f"Entity '{getattr(model, '__name__', model)}' is not registered") from None

    @classmethod
    def from_base(cls, base: type[DeclarativeBase]) -> "EntityRegistry":
        """Registers every class mapped on the declarative `base`."""
        registry = cls()
        for mapper in base.registry.mappers:
            registry.register(mapper.class_)
        logger.debug(f"Registered {len(registry)} entities")
        return registry


@lru_cache
def default_registry() -> EntityRegistry:
    """The registry of every appscope entity, built on first use."""
    from appscope.db.models import SqlAlchemyBase

    return EntityRegistry.from_base(SqlAlchemyBase)


def entity_name(entity) -> str:
    """SQL name of an aliased entity, or the table name of a mapped class."""
    insp = inspect(entity)
    return insp.name if insp.is_aliased_class else insp.persist_selectable.name
