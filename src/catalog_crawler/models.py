"""
Core data models for the catalog_crawler package.

Defines the database objects that make up a crawled catalog: schemas, tables,
views, columns, indexes, constraints, foreign keys, routines, sequences,
synonyms, column data types, privileges and grants.

Objects never hold pointers back to their owners. A column, index or
privilege records the NamedObjectKey of the table it belongs to, and the
owner is resolved through the Catalog when needed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List, Optional, Tuple


class SqlType(IntEnum):
    """Vendor-neutral SQL type codes (the java.sql.Types numbering)."""
    BIT = -7
    TINYINT = -6
    SMALLINT = 5
    INTEGER = 4
    BIGINT = -5
    FLOAT = 6
    REAL = 7
    DOUBLE = 8
    NUMERIC = 2
    DECIMAL = 3
    CHAR = 1
    VARCHAR = 12
    LONGVARCHAR = -1
    NCHAR = -15
    NVARCHAR = -9
    DATE = 91
    TIME = 92
    TIMESTAMP = 93
    TIMESTAMP_WITH_TIMEZONE = 2014
    BINARY = -2
    VARBINARY = -3
    LONGVARBINARY = -4
    NULL = 0
    OTHER = 1111
    DISTINCT = 2001
    STRUCT = 2002
    ARRAY = 2003
    BLOB = 2004
    CLOB = 2005
    NCLOB = 2011
    BOOLEAN = 16
    ROWID = -8
    SQLXML = 2009


class DataTypeType(str, Enum):
    """Origin of a column data type."""
    SYSTEM = "system"
    USER_DEFINED = "user_defined"
    UNKNOWN = "unknown"


class TableConstraintType(str, Enum):
    PRIMARY_KEY = "primary_key"
    UNIQUE = "unique"
    CHECK = "check"
    FOREIGN_KEY = "foreign_key"
    UNKNOWN = "unknown"


class IndexColumnSortSequence(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"
    UNKNOWN = "unknown"


class ForeignKeyRule(str, Enum):
    """Update/delete action of a foreign key."""
    NO_ACTION = "no action"
    CASCADE = "cascade"
    SET_NULL = "set null"
    SET_DEFAULT = "set default"
    RESTRICT = "restrict"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> ForeignKeyRule:
        if not value:
            return cls.UNKNOWN
        normalized = value.strip().lower().replace("_", " ")
        for rule in cls:
            if rule.value == normalized:
                return rule
        return cls.UNKNOWN


class RoutineType(str, Enum):
    PROCEDURE = "procedure"
    FUNCTION = "function"
    UNKNOWN = "unknown"


class ParameterMode(str, Enum):
    IN = "in"
    OUT = "out"
    INOUT = "inout"
    RETURN = "return"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SchemaReference:
    """
    Identity of a schema: a (catalog name, schema name) pair.

    Either part may be missing depending on what the database supports.
    The reference with both parts missing is the system schema, which owns
    the built-in column data types.
    """
    catalog_name: Optional[str] = None
    schema_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "catalog_name", self.catalog_name or None)
        object.__setattr__(self, "schema_name", self.schema_name or None)

    @property
    def full_name(self) -> str:
        """Return the dotted catalog/schema name, used for lookups."""
        return ".".join(p for p in (self.catalog_name, self.schema_name) if p)

    @property
    def name(self) -> str:
        return self.schema_name or self.catalog_name or ""

    @property
    def is_system(self) -> bool:
        return self.catalog_name is None and self.schema_name is None

    def key(self) -> NamedObjectKey:
        return NamedObjectKey.of(self.full_name)

    def to_dict(self) -> Dict[str, Any]:
        return {"catalog_name": self.catalog_name, "schema_name": self.schema_name}

    def __str__(self) -> str:
        return self.full_name


SYSTEM_SCHEMA = SchemaReference()


@dataclass(frozen=True)
class NamedObjectKey:
    """Compound lookup key: schema full name, local name, and discriminators."""
    parts: Tuple[Optional[str], ...]

    @classmethod
    def of(cls, *parts: Optional[str]) -> NamedObjectKey:
        return cls(tuple(parts))

    def with_(self, *parts: Optional[str]) -> NamedObjectKey:
        """Return a child key extended with additional parts."""
        return NamedObjectKey(self.parts + tuple(parts))

    def dotted(self) -> str:
        return ".".join(p for p in self.parts if p)

    def __str__(self) -> str:
        return "/".join(p or "" for p in self.parts)


class NamedObject:
    """
    Base class for every named catalog object.

    Equality and hashing use the object type together with the lookup key, so
    a table and a sequence that happen to share a name are never equal.
    Every named object carries a free-form attribute bag.
    """

    object_type = "object"

    def __init__(self, name: str):
        self._name = name
        self._attributes: Dict[str, Any] = {}
        self.remarks: str = ""

    @property
    def name(self) -> str:
        return self._name

    @property
    def full_name(self) -> str:
        return self.key().dotted()

    def key(self) -> NamedObjectKey:
        return NamedObjectKey.of(self._name)

    # Attributes

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def lookup_attribute(self, name: str) -> Optional[Any]:
        return self._attributes.get(name)

    def has_attribute(self, name: str) -> bool:
        return name in self._attributes

    def set_attribute(self, name: str, value: Any) -> None:
        """Set an attribute; a None value removes it."""
        if value is None:
            self._attributes.pop(name, None)
        else:
            self._attributes[name] = value

    def remove_attribute(self, name: str) -> None:
        self._attributes.pop(name, None)

    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamedObject):
            return NotImplemented
        return self.object_type == other.object_type and self.key() == other.key()

    def __hash__(self) -> int:
        return hash((self.object_type, self.key()))

    def __lt__(self, other: NamedObject) -> bool:
        return self.full_name < other.full_name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.full_name!r})"

    def __str__(self) -> str:
        return self.full_name


class DatabaseObject(NamedObject):
    """A named object that belongs to exactly one schema."""

    def __init__(self, schema: SchemaReference, name: str):
        super().__init__(name)
        self._schema = schema

    @property
    def schema(self) -> SchemaReference:
        return self._schema

    def key(self) -> NamedObjectKey:
        return NamedObjectKey.of(self._schema.full_name, self._name)


@dataclass(frozen=True)
class Grant:
    """A single grant of a privilege; identity is the full triple."""
    grantor: str
    grantee: str
    is_grantable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grantor": self.grantor,
            "grantee": self.grantee,
            "is_grantable": self.is_grantable,
        }


class Privilege(NamedObject):
    """A named privilege (SELECT, INSERT, ...) on a table or column."""

    object_type = "privilege"

    def __init__(self, parent_key: NamedObjectKey, name: str):
        super().__init__(name)
        self._parent_key = parent_key
        self._grants: set = set()

    @property
    def parent_key(self) -> NamedObjectKey:
        return self._parent_key

    def key(self) -> NamedObjectKey:
        return self._parent_key.with_(self._name)

    def add_grant(self, grantor: Optional[str], grantee: Optional[str], is_grantable: bool = False) -> None:
        """Add a grant; grants without a grantor or grantee are ignored."""
        if not grantor or not grantor.strip() or not grantee or not grantee.strip():
            return
        self._grants.add(Grant(grantor, grantee, bool(is_grantable)))

    @property
    def grants(self) -> List[Grant]:
        """Return unique grants, sorted by grantor then grantee."""
        return sorted(self._grants, key=lambda g: (g.grantor, g.grantee, g.is_grantable))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "grants": [g.to_dict() for g in self.grants]}


class ColumnDataType(DatabaseObject):
    """
    A column data type.

    System types live under the system schema reference; user-defined types
    live under their owning schema and may name a base type.
    """

    object_type = "column data type"

    def __init__(
        self,
        schema: SchemaReference,
        name: str,
        data_type_type: DataTypeType = DataTypeType.SYSTEM,
        type_code: int = SqlType.OTHER,
    ):
        super().__init__(schema, name)
        self.data_type_type = data_type_type
        self.type_code = int(type_code)
        self.precision: Optional[int] = None
        self.nullable: bool = True
        self.auto_incrementable: bool = False
        self.case_sensitive: bool = False
        self.fixed_precision_scale: bool = False
        self.unsigned: bool = False
        self.literal_prefix: Optional[str] = None
        self.literal_suffix: Optional[str] = None
        self.create_parameters: Optional[str] = None
        self.base_type: Optional[ColumnDataType] = None

    @property
    def sql_type(self) -> Optional[SqlType]:
        try:
            return SqlType(self.type_code)
        except ValueError:
            return None

    @property
    def is_user_defined(self) -> bool:
        return self.data_type_type == DataTypeType.USER_DEFINED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema.full_name,
            "name": self.name,
            "type": self.data_type_type.value,
            "type_code": self.type_code,
            "precision": self.precision,
            "base_type": self.base_type.full_name if self.base_type else None,
        }


class Column(NamedObject):
    """A table column. Belongs to exactly one table, referenced by key."""

    object_type = "column"

    def __init__(self, table_key: NamedObjectKey, name: str):
        super().__init__(name)
        self._table_key = table_key
        self.ordinal_position: int = 0
        self.column_data_type: Optional[ColumnDataType] = None
        self.size: Optional[int] = None
        self.decimal_digits: Optional[int] = None
        self.nullable: bool = True
        self.default_value: Optional[str] = None
        self.auto_incremented: bool = False
        self.generated: bool = False
        self.hidden: bool = False
        self.part_of_primary_key: bool = False
        self.part_of_foreign_key: bool = False
        self.part_of_index: bool = False
        self.part_of_unique_index: bool = False
        self._privileges: Dict[str, Privilege] = {}

    @property
    def table_key(self) -> NamedObjectKey:
        return self._table_key

    def key(self) -> NamedObjectKey:
        return self._table_key.with_(self._name)

    @property
    def type_name(self) -> str:
        return self.column_data_type.name if self.column_data_type else ""

    @property
    def width(self) -> str:
        """Return the size/precision suffix, for example "(10, 2)"."""
        if self.size is None or self.size <= 0:
            return ""
        if self.decimal_digits:
            return f"({self.size}, {self.decimal_digits})"
        return f"({self.size})"

    @property
    def privileges(self) -> List[Privilege]:
        return list(self._privileges.values())

    def add_privilege(self, privilege: Privilege) -> Privilege:
        return self._privileges.setdefault(privilege.name, privilege)

    def lookup_privilege(self, name: Optional[str]) -> Optional[Privilege]:
        if name is None:
            return None
        return self._privileges.get(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "ordinal_position": self.ordinal_position,
            "type": self.type_name,
            "size": self.size,
            "decimal_digits": self.decimal_digits,
            "nullable": self.nullable,
            "default_value": self.default_value,
            "auto_incremented": self.auto_incremented,
            "generated": self.generated,
            "hidden": self.hidden,
            "part_of_primary_key": self.part_of_primary_key,
            "part_of_foreign_key": self.part_of_foreign_key,
            "remarks": self.remarks,
        }


@dataclass(frozen=True)
class IndexColumn:
    """A column as it participates in an index."""
    column_key: NamedObjectKey
    index_ordinal_position: int
    sort_sequence: IndexColumnSortSequence = IndexColumnSortSequence.ASCENDING

    @property
    def name(self) -> str:
        return self.column_key.parts[-1] or ""

    @property
    def full_name(self) -> str:
        return self.column_key.dotted()


class Index(NamedObject):
    """An index on a table."""

    object_type = "index"

    def __init__(self, table_key: NamedObjectKey, name: str):
        super().__init__(name)
        self._table_key = table_key
        self.unique: bool = False
        self.index_type: Optional[str] = None
        self.cardinality: int = 0
        self.pages: int = 0
        self.definition: str = ""
        self._columns: List[IndexColumn] = []

    @property
    def table_key(self) -> NamedObjectKey:
        return self._table_key

    def key(self) -> NamedObjectKey:
        return self._table_key.with_(self._name)

    @property
    def columns(self) -> List[IndexColumn]:
        return sorted(self._columns, key=lambda c: c.index_ordinal_position)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def add_column(self, column: IndexColumn) -> None:
        self._columns.append(column)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "unique": self.unique,
            "columns": self.column_names,
            "cardinality": self.cardinality,
            "pages": self.pages,
        }


@dataclass(frozen=True)
class TableConstraintColumn:
    """A column as it participates in a table constraint."""
    column_key: NamedObjectKey
    table_constraint_ordinal_position: int

    @property
    def name(self) -> str:
        return self.column_key.parts[-1] or ""

    @property
    def full_name(self) -> str:
        return self.column_key.dotted()

    def __str__(self) -> str:
        return self.full_name


class TableConstraint(NamedObject):
    """A unique, check or other constraint on a table."""

    object_type = "table constraint"

    def __init__(
        self,
        table_key: NamedObjectKey,
        name: str,
        constraint_type: TableConstraintType = TableConstraintType.UNKNOWN,
    ):
        super().__init__(name)
        self._table_key = table_key
        self.constraint_type = constraint_type
        self.deferrable: bool = False
        self.initially_deferred: bool = False
        self.definition: str = ""
        self._columns: List[TableConstraintColumn] = []

    @property
    def table_key(self) -> NamedObjectKey:
        return self._table_key

    def key(self) -> NamedObjectKey:
        return self._table_key.with_(self._name)

    @property
    def constrained_columns(self) -> List[TableConstraintColumn]:
        return sorted(self._columns, key=lambda c: c.table_constraint_ordinal_position)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.constrained_columns]

    def add_column(self, column: TableConstraintColumn) -> None:
        self._columns.append(column)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.constraint_type.value,
            "columns": self.column_names,
            "deferrable": self.deferrable,
            "initially_deferred": self.initially_deferred,
            "definition": self.definition,
        }


class PrimaryKey(TableConstraint):
    """The primary key of a table; also listed among its table constraints."""

    def __init__(self, table_key: NamedObjectKey, name: str):
        super().__init__(table_key, name, TableConstraintType.PRIMARY_KEY)


@dataclass(frozen=True)
class ColumnReference:
    """Points at a column by its table key and column name."""
    table_key: NamedObjectKey
    column_name: str

    @property
    def column_key(self) -> NamedObjectKey:
        return self.table_key.with_(self.column_name)

    @property
    def full_name(self) -> str:
        return self.column_key.dotted()


@dataclass(frozen=True)
class ForeignKeyColumnReference:
    """One column pair of a foreign key, in key sequence order."""
    key_sequence: int
    foreign_key_column: ColumnReference
    primary_key_column: ColumnReference


class ForeignKey(NamedObject):
    """
    A foreign key from a child (foreign key) table to a parent (primary key)
    table. Both tables list the same ForeignKey object.
    """

    object_type = "foreign key"

    def __init__(self, name: str):
        super().__init__(name)
        self._references: List[ForeignKeyColumnReference] = []
        self.update_rule: ForeignKeyRule = ForeignKeyRule.UNKNOWN
        self.delete_rule: ForeignKeyRule = ForeignKeyRule.UNKNOWN
        self.deferrable: bool = False
        self.initially_deferred: bool = False
        self.definition: str = ""

    def key(self) -> NamedObjectKey:
        if not self._references:
            return NamedObjectKey.of(self._name)
        return self.foreign_table_key.with_(self._name)

    def add_column_reference(self, reference: ForeignKeyColumnReference) -> None:
        self._references.append(reference)

    @property
    def column_references(self) -> List[ForeignKeyColumnReference]:
        return sorted(self._references, key=lambda r: r.key_sequence)

    @property
    def foreign_table_key(self) -> NamedObjectKey:
        """Key of the referencing (child) table."""
        return self._references[0].foreign_key_column.table_key

    @property
    def primary_table_key(self) -> NamedObjectKey:
        """Key of the referenced (parent) table."""
        return self._references[0].primary_key_column.table_key

    @property
    def is_self_referencing(self) -> bool:
        return self.foreign_table_key == self.primary_table_key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "foreign_table": self.foreign_table_key.dotted(),
            "primary_table": self.primary_table_key.dotted(),
            "columns": [
                [r.foreign_key_column.column_name, r.primary_key_column.column_name]
                for r in self.column_references
            ],
            "update_rule": self.update_rule.value,
            "delete_rule": self.delete_rule.value,
        }


class Table(DatabaseObject):
    """
    A table with its ordered columns, primary key, indexes, foreign keys,
    table constraints and privileges.
    """

    object_type = "table"

    def __init__(self, schema: SchemaReference, name: str, table_type: str = "TABLE"):
        super().__init__(schema, name)
        self.table_type = table_type
        self.definition: str = ""
        self._columns: Dict[str, Column] = {}
        self._primary_key: Optional[PrimaryKey] = None
        self._indexes: Dict[str, Index] = {}
        self._foreign_keys: Dict[str, ForeignKey] = {}
        self._constraints: Dict[str, TableConstraint] = {}
        self._privileges: Dict[str, Privilege] = {}

    @property
    def is_view(self) -> bool:
        return False

    # Columns

    @property
    def columns(self) -> List[Column]:
        return sorted(self._columns.values(), key=lambda c: c.ordinal_position)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def add_column(self, column: Column) -> Column:
        if not column.ordinal_position:
            column.ordinal_position = len(self._columns) + 1
        self._columns.setdefault(column.name, column)
        return self._columns[column.name]

    def lookup_column(self, name: Optional[str]) -> Optional[Column]:
        if name is None:
            return None
        return self._columns.get(name)

    # Primary key and constraints

    @property
    def primary_key(self) -> Optional[PrimaryKey]:
        return self._primary_key

    def set_primary_key(self, primary_key: PrimaryKey) -> None:
        self._primary_key = primary_key
        self._constraints[primary_key.name] = primary_key

    @property
    def table_constraints(self) -> List[TableConstraint]:
        return list(self._constraints.values())

    def add_table_constraint(self, constraint: TableConstraint) -> TableConstraint:
        return self._constraints.setdefault(constraint.name, constraint)

    def lookup_table_constraint(self, name: Optional[str]) -> Optional[TableConstraint]:
        if name is None:
            return None
        return self._constraints.get(name)

    # Indexes

    @property
    def indexes(self) -> List[Index]:
        return list(self._indexes.values())

    def add_index(self, index: Index) -> Index:
        return self._indexes.setdefault(index.name, index)

    def lookup_index(self, name: Optional[str]) -> Optional[Index]:
        if name is None:
            return None
        return self._indexes.get(name)

    # Foreign keys

    @property
    def foreign_keys(self) -> List[ForeignKey]:
        """All foreign keys this table takes part in, as child or parent."""
        return list(self._foreign_keys.values())

    @property
    def imported_foreign_keys(self) -> List[ForeignKey]:
        """Foreign keys declared on this table, pointing at parent tables."""
        key = self.key()
        return [fk for fk in self._foreign_keys.values() if fk.foreign_table_key == key]

    @property
    def exported_foreign_keys(self) -> List[ForeignKey]:
        """Foreign keys on other tables (or this one) that reference this table."""
        key = self.key()
        return [fk for fk in self._foreign_keys.values() if fk.primary_table_key == key]

    def add_foreign_key(self, foreign_key: ForeignKey) -> ForeignKey:
        return self._foreign_keys.setdefault(foreign_key.full_name, foreign_key)

    def lookup_foreign_key(self, name: Optional[str]) -> Optional[ForeignKey]:
        if name is None:
            return None
        for fk in self._foreign_keys.values():
            if fk.name == name:
                return fk
        return None

    def retain_foreign_keys(self, predicate: Callable[[ForeignKey], bool]) -> List[ForeignKey]:
        """Drop foreign keys that fail the predicate; return the dropped ones."""
        dropped = [fk for fk in self._foreign_keys.values() if not predicate(fk)]
        for fk in dropped:
            del self._foreign_keys[fk.full_name]
        return dropped

    @property
    def referenced_table_keys(self) -> List[NamedObjectKey]:
        """Keys of parent tables, in foreign key order, without duplicates."""
        keys: List[NamedObjectKey] = []
        for fk in self.imported_foreign_keys:
            if fk.primary_table_key not in keys:
                keys.append(fk.primary_table_key)
        return keys

    @property
    def referencing_table_keys(self) -> List[NamedObjectKey]:
        """Keys of child tables, in foreign key order, without duplicates."""
        keys: List[NamedObjectKey] = []
        for fk in self.exported_foreign_keys:
            if fk.foreign_table_key not in keys:
                keys.append(fk.foreign_table_key)
        return keys

    # Privileges

    @property
    def privileges(self) -> List[Privilege]:
        return list(self._privileges.values())

    def add_privilege(self, privilege: Privilege) -> Privilege:
        return self._privileges.setdefault(privilege.name, privilege)

    def lookup_privilege(self, name: Optional[str]) -> Optional[Privilege]:
        if name is None:
            return None
        return self._privileges.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = {
            "name": self.name,
            "schema": self.schema.full_name,
            "table_type": self.table_type,
            "remarks": self.remarks,
            "columns": [c.to_dict() for c in self.columns],
            "primary_key": self._primary_key.to_dict() if self._primary_key else None,
            "indexes": [i.to_dict() for i in self.indexes],
            "foreign_keys": [fk.to_dict() for fk in self.imported_foreign_keys],
            "table_constraints": [
                c.to_dict() for c in self.table_constraints
                if c.constraint_type != TableConstraintType.PRIMARY_KEY
            ],
            "privileges": [p.to_dict() for p in self.privileges],
        }
        if self.definition:
            data["definition"] = self.definition
        return data


class View(Table):
    """A view: a table with a definition and an updatable flag."""

    def __init__(self, schema: SchemaReference, name: str, table_type: str = "VIEW"):
        super().__init__(schema, name, table_type)
        self.updatable: bool = False
        self.check_option: Optional[str] = None

    @property
    def is_view(self) -> bool:
        return True

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["updatable"] = self.updatable
        return data


class RoutineParameter(NamedObject):
    """A parameter of a procedure or function."""

    object_type = "routine parameter"

    def __init__(self, routine_key: NamedObjectKey, name: str):
        super().__init__(name)
        self._routine_key = routine_key
        self.ordinal_position: int = 0
        self.mode: ParameterMode = ParameterMode.UNKNOWN
        self.column_data_type: Optional[ColumnDataType] = None
        self.size: Optional[int] = None
        self.decimal_digits: Optional[int] = None
        self.nullable: bool = True

    @property
    def routine_key(self) -> NamedObjectKey:
        return self._routine_key

    def key(self) -> NamedObjectKey:
        return self._routine_key.with_(self._name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "ordinal_position": self.ordinal_position,
            "mode": self.mode.value,
            "type": self.column_data_type.name if self.column_data_type else "",
        }


class Routine(DatabaseObject):
    """
    A stored procedure or function. Overloads share a name and are told apart
    by their specific name, which is part of the lookup key.
    """

    object_type = "routine"
    routine_type = RoutineType.UNKNOWN

    def __init__(self, schema: SchemaReference, name: str, specific_name: Optional[str] = None):
        super().__init__(schema, name)
        self.specific_name = specific_name or name
        self.return_type: Optional[str] = None
        self.definition: str = ""
        self._parameters: Dict[str, RoutineParameter] = {}

    def key(self) -> NamedObjectKey:
        return NamedObjectKey.of(self.schema.full_name, self._name, self.specific_name)

    @property
    def full_name(self) -> str:
        return ".".join(p for p in (self.schema.full_name, self._name) if p)

    @property
    def parameters(self) -> List[RoutineParameter]:
        return sorted(self._parameters.values(), key=lambda p: p.ordinal_position)

    def add_parameter(self, parameter: RoutineParameter) -> RoutineParameter:
        return self._parameters.setdefault(parameter.name, parameter)

    def lookup_parameter(self, name: Optional[str]) -> Optional[RoutineParameter]:
        if name is None:
            return None
        return self._parameters.get(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema.full_name,
            "specific_name": self.specific_name,
            "routine_type": self.routine_type.value,
            "return_type": self.return_type,
            "parameters": [p.to_dict() for p in self.parameters],
        }


class Procedure(Routine):
    routine_type = RoutineType.PROCEDURE


class Function(Routine):
    routine_type = RoutineType.FUNCTION


class Sequence(DatabaseObject):
    """A sequence generator."""

    object_type = "sequence"

    def __init__(self, schema: SchemaReference, name: str):
        super().__init__(schema, name)
        self.increment: int = 1
        self.minimum_value: Optional[int] = None
        self.maximum_value: Optional[int] = None
        self.cycle: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema.full_name,
            "increment": self.increment,
            "minimum_value": self.minimum_value,
            "maximum_value": self.maximum_value,
            "cycle": self.cycle,
        }


class Synonym(DatabaseObject):
    """An alias for another database object."""

    object_type = "synonym"

    def __init__(self, schema: SchemaReference, name: str):
        super().__init__(schema, name)
        self.referenced_object_key: Optional[NamedObjectKey] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema.full_name,
            "referenced_object": (
                self.referenced_object_key.dotted() if self.referenced_object_key else None
            ),
        }


class DatabaseUser(NamedObject):
    """A database user account; details are kept in the attribute bag."""

    object_type = "database user"

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "attributes": self.attributes}


@dataclass
class DatabaseInfo:
    """Product information about the crawled database."""
    product_name: str = ""
    product_version: str = ""
    user_name: str = ""
    properties: Dict[str, Any] = field(default_factory=dict)
    server_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_name": self.product_name,
            "product_version": self.product_version,
            "user_name": self.user_name,
            "properties": self.properties,
            "server_info": self.server_info,
        }

    def __str__(self) -> str:
        return (
            f"-- database: {self.product_name} {self.product_version}\n"
            f"-- database user: {self.user_name}"
        )


@dataclass
class DriverInfo:
    """Information about the driver used to read the metadata."""
    driver_name: str = ""
    driver_version: str = ""
    driver_class_name: str = ""
    connection_url: str = ""
    compliant: bool = False
    properties: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "driver_name": self.driver_name,
            "driver_version": self.driver_version,
            "driver_class_name": self.driver_class_name,
            "connection_url": self.connection_url,
            "compliant": self.compliant,
        }

    def __str__(self) -> str:
        return (
            f"-- driver: {self.driver_name} {self.driver_version}\n"
            f"-- driver class: {self.driver_class_name}\n"
            f"-- url: {self.connection_url}\n"
            f"-- compliant: {str(self.compliant).lower()}"
        )


@dataclass
class CrawlInfo:
    """Point-in-time information about the crawl itself."""
    crawl_timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    run_id: str = ""
    crawler_version: str = ""
    database_product: str = ""
    driver_product: str = ""
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crawl_timestamp": self.crawl_timestamp,
            "run_id": self.run_id,
            "crawler_version": self.crawler_version,
            "database_product": self.database_product,
            "driver_product": self.driver_product,
            "title": self.title,
        }
