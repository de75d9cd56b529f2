"""
The Catalog aggregate root and its named-object containers.

A Catalog owns every crawled object in insertion-ordered containers. Objects
are never physically deleted: reduction narrows each container's retained
set, so the unreduced snapshot stays available through ``all_values()``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Generic, Iterator, List, Optional, Set, Tuple, TypeVar

from catalog_crawler.errors import ConfigurationError
from catalog_crawler.models import (
    SYSTEM_SCHEMA,
    Column,
    ColumnDataType,
    CrawlInfo,
    DatabaseInfo,
    DatabaseUser,
    DriverInfo,
    NamedObject,
    NamedObjectKey,
    Routine,
    SchemaReference,
    Sequence,
    Synonym,
    Table,
)

if TYPE_CHECKING:
    from catalog_crawler.reducers import Reducer

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ObjectKind(str, Enum):
    """Kinds of catalog objects that a reducer can be applied to."""
    CATALOG = "catalog"
    SCHEMA = "schema"
    TABLE = "table"
    ROUTINE = "routine"
    SEQUENCE = "sequence"
    SYNONYM = "synonym"


class NamedObjectList(Generic[T]):
    """
    Ordered collection of named objects with compound-key lookup.

    Duplicate keys are accepted at storage level; lookups return the first
    match. A retained-key set, once narrowed by ``retain``, hides every other
    entry from ``values`` and the lookups.
    """

    def __init__(self) -> None:
        self._items: List[T] = []
        self._by_key: Dict[NamedObjectKey, T] = {}
        # (schema, name) to every object with that name, in insertion order
        self._by_name: Dict[Tuple[Optional[SchemaReference], str], List[T]] = {}
        self._retained: Optional[Set[NamedObjectKey]] = None

    def add(self, obj: T) -> T:
        self._items.append(obj)
        self._by_key.setdefault(obj.key(), obj)
        self._by_name.setdefault((getattr(obj, "schema", None), obj.name), []).append(obj)
        return obj

    def _visible(self, obj: T) -> bool:
        return self._retained is None or obj.key() in self._retained

    def values(self) -> List[T]:
        """Return retained objects in insertion order."""
        return [obj for obj in self._items if self._visible(obj)]

    def all_values(self) -> List[T]:
        """Return every object ever added, ignoring reduction."""
        return list(self._items)

    def lookup(self, schema: Optional[SchemaReference], name: Optional[str]) -> Optional[T]:
        """Return the first retained object in the schema with the given name."""
        if name is None or schema is None:
            return None
        for obj in self._by_name.get((schema, name), []):
            if self._visible(obj):
                return obj
        return None

    def lookup_all(self, schema: Optional[SchemaReference], name: Optional[str]) -> List[T]:
        if name is None or schema is None:
            return []
        return [obj for obj in self._by_name.get((schema, name), []) if self._visible(obj)]

    def lookup_key(self, key: Optional[NamedObjectKey]) -> Optional[T]:
        """Exact-key lookup."""
        if key is None:
            return None
        obj = self._by_key.get(key)
        if obj is None or not self._visible(obj):
            return None
        return obj

    def retain(self, keys: Set[NamedObjectKey]) -> int:
        """
        Narrow the retained set to the given keys. Keys outside the current
        retained set are ignored, so entries are never re-added.

        Returns:
            Number of entries that were removed from view
        """
        before = len(self.values())
        current = {obj.key() for obj in self.values()}
        self._retained = current & set(keys)
        return before - len(self.values())

    def keys(self) -> Set[NamedObjectKey]:
        return {obj.key() for obj in self.values()}

    def __iter__(self) -> Iterator[T]:
        return iter(self.values())

    def __len__(self) -> int:
        return len(self.values())

    def __contains__(self, obj: object) -> bool:
        return hasattr(obj, "key") and self.lookup_key(obj.key()) is not None


class Catalog(NamedObject):
    """
    Aggregate root of a crawled database structure.

    Populated once by the crawler, optionally reduced, then read by linters
    and renderers. Not safe for concurrent mutation.
    """

    object_type = "catalog"

    def __init__(self, name: str = "catalog"):
        super().__init__(name)
        self._schemas: NamedObjectList[SchemaReference] = NamedObjectList()
        self._tables: NamedObjectList[Table] = NamedObjectList()
        self._routines: NamedObjectList[Routine] = NamedObjectList()
        self._sequences: NamedObjectList[Sequence] = NamedObjectList()
        self._synonyms: NamedObjectList[Synonym] = NamedObjectList()
        self._column_data_types: NamedObjectList[ColumnDataType] = NamedObjectList()
        self._database_users: NamedObjectList[DatabaseUser] = NamedObjectList()
        self.database_info = DatabaseInfo()
        self.driver_info = DriverInfo()
        self.crawl_info = CrawlInfo()

    # Population

    def add_schema(self, schema: SchemaReference) -> SchemaReference:
        self._schemas.add(schema)
        return schema

    def add_table(self, table: Table) -> Table:
        return self._tables.add(table)

    def add_routine(self, routine: Routine) -> Routine:
        return self._routines.add(routine)

    def add_sequence(self, sequence: Sequence) -> Sequence:
        return self._sequences.add(sequence)

    def add_synonym(self, synonym: Synonym) -> Synonym:
        return self._synonyms.add(synonym)

    def add_column_data_type(self, column_data_type: Optional[ColumnDataType]) -> None:
        if column_data_type is not None:
            self._column_data_types.add(column_data_type)

    def add_database_user(self, user: DatabaseUser) -> None:
        self._database_users.add(user)

    # Schemas

    def get_schemas(self) -> List[SchemaReference]:
        return self._schemas.values()

    def lookup_schema(self, full_name: Optional[str]) -> Optional[SchemaReference]:
        """Look up a schema by full name, since either part may be missing."""
        if full_name is None:
            return None
        for schema in self._schemas:
            if schema.full_name == full_name:
                return schema
        return None

    # Tables and columns

    def get_tables(self, schema: Optional[SchemaReference] = None) -> List[Table]:
        if schema is None:
            return self._tables.values()
        return [t for t in self._tables if t.schema == schema]

    def lookup_table(self, schema: Optional[SchemaReference], name: Optional[str]) -> Optional[Table]:
        return self._tables.lookup(schema, name)

    def lookup_table_by_key(self, key: Optional[NamedObjectKey]) -> Optional[Table]:
        return self._tables.lookup_key(key)

    def lookup_column(
        self,
        schema: Optional[SchemaReference],
        table_name: Optional[str],
        name: Optional[str],
    ) -> Optional[Column]:
        table = self.lookup_table(schema, table_name)
        if table is None:
            return None
        return table.lookup_column(name)

    # Routines

    def get_routines(
        self,
        schema: Optional[SchemaReference] = None,
        name: Optional[str] = None,
    ) -> List[Routine]:
        """Return routines, optionally limited to a schema and to all overloads of a name."""
        routines = self._routines.values()
        if schema is not None:
            routines = [r for r in routines if r.schema == schema]
        if name is not None:
            routines = [r for r in routines if r.name == name]
        return routines

    def lookup_routine(self, schema: Optional[SchemaReference], name: Optional[str]) -> Optional[Routine]:
        return self._routines.lookup(schema, name)

    def lookup_routine_by_key(self, key: Optional[NamedObjectKey]) -> Optional[Routine]:
        return self._routines.lookup_key(key)

    # Sequences and synonyms

    def get_sequences(self, schema: Optional[SchemaReference] = None) -> List[Sequence]:
        if schema is None:
            return self._sequences.values()
        return [s for s in self._sequences if s.schema == schema]

    def lookup_sequence(self, schema: Optional[SchemaReference], name: Optional[str]) -> Optional[Sequence]:
        return self._sequences.lookup(schema, name)

    def get_synonyms(self, schema: Optional[SchemaReference] = None) -> List[Synonym]:
        if schema is None:
            return self._synonyms.values()
        return [s for s in self._synonyms if s.schema == schema]

    def lookup_synonym(self, schema: Optional[SchemaReference], name: Optional[str]) -> Optional[Synonym]:
        return self._synonyms.lookup(schema, name)

    # Column data types

    def get_column_data_types(self, schema: Optional[SchemaReference] = None) -> List[ColumnDataType]:
        if schema is None:
            return self._column_data_types.values()
        return [c for c in self._column_data_types if c.schema == schema]

    def get_system_column_data_types(self) -> List[ColumnDataType]:
        return self.get_column_data_types(SYSTEM_SCHEMA)

    def lookup_column_data_type(
        self,
        schema: Optional[SchemaReference],
        name: Optional[str],
    ) -> Optional[ColumnDataType]:
        return self._column_data_types.lookup(schema, name)

    def lookup_system_column_data_type(self, name: Optional[str]) -> Optional[ColumnDataType]:
        return self.lookup_column_data_type(SYSTEM_SCHEMA, name)

    def lookup_base_column_data_type_by_type(self, type_code: int) -> Optional[ColumnDataType]:
        """
        Return the single system data type with the given type code.

        Returns:
            The matching type, or None when no type or more than one type matches
        """
        matches = [
            c for c in self._column_data_types
            if c.schema.is_system and c.type_code == type_code
        ]
        if len(matches) == 1:
            return matches[0]
        return None

    # Users

    def get_database_users(self) -> List[DatabaseUser]:
        return self._database_users.values()

    # Reduction

    def _containers(self) -> Dict[ObjectKind, NamedObjectList]:
        return {
            ObjectKind.SCHEMA: self._schemas,
            ObjectKind.TABLE: self._tables,
            ObjectKind.ROUTINE: self._routines,
            ObjectKind.SEQUENCE: self._sequences,
            ObjectKind.SYNONYM: self._synonyms,
        }

    def reduce(self, kind: Optional[ObjectKind], reducer: Optional[Reducer]) -> None:
        """
        Apply a reducer to the container for one kind of object, then restore
        consistency: dropping schemas drops everything they own, and dropping
        tables prunes foreign keys that point at them.
        """
        if kind is None:
            raise ConfigurationError("No object kind provided")
        try:
            kind = ObjectKind(kind)
        except ValueError as exc:
            raise ConfigurationError(f"Unknown object kind: {kind!r}") from exc
        if reducer is None:
            raise ConfigurationError(f"No reducer provided for {kind.value}")

        container = self._containers().get(kind)
        if container is None:
            return
        if reducer.kind != kind:
            raise ConfigurationError(
                f"{type(reducer).__name__} reduces {reducer.kind.value}s, not {kind.value}s"
            )

        reducer.reduce(container, self)

        if kind == ObjectKind.SCHEMA:
            self._drop_objects_outside_schemas()
        if kind in (ObjectKind.SCHEMA, ObjectKind.TABLE):
            self._prune_foreign_keys()

    def _drop_objects_outside_schemas(self) -> None:
        schemas = set(self._schemas.values())
        for kind, container in self._containers().items():
            if kind == ObjectKind.SCHEMA:
                continue
            keep = {obj.key() for obj in container if obj.schema in schemas}
            removed = container.retain(keep)
            if removed:
                logger.debug(f"Dropped {removed} {kind.value} object(s) with excluded schemas")

    def _prune_foreign_keys(self) -> None:
        table_keys = self._tables.keys()
        for table in self._tables:
            dropped = table.retain_foreign_keys(
                lambda fk: fk.foreign_table_key in table_keys and fk.primary_table_key in table_keys
            )
            for fk in dropped:
                logger.debug(f"Pruned foreign key {fk.name} from {table.full_name}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "crawl_info": self.crawl_info.to_dict(),
            "database_info": self.database_info.to_dict(),
            "driver_info": self.driver_info.to_dict(),
            "schemas": [s.full_name for s in self.get_schemas()],
            "tables": [t.to_dict() for t in self.get_tables()],
            "routines": [r.to_dict() for r in self.get_routines()],
            "sequences": [s.to_dict() for s in self.get_sequences()],
            "synonyms": [s.to_dict() for s in self.get_synonyms()],
            "column_data_types": [c.to_dict() for c in self.get_column_data_types()],
            "database_users": [u.to_dict() for u in self.get_database_users()],
        }

