"""
Schema info levels: which categories of metadata a crawl retrieves.

A SchemaInfoLevel is an immutable, named set of retrieval flags. The crawler
consults it before each population step; a disabled flag leaves the
corresponding part of the catalog empty.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Union

from catalog_crawler.errors import ConfigurationError


class SchemaInfoRetrieval(str, Enum):
    """Individual retrieval flags."""
    RETRIEVE_DATABASE_INFO = "retrieve_database_info"
    RETRIEVE_ADDITIONAL_DATABASE_INFO = "retrieve_additional_database_info"
    RETRIEVE_DRIVER_INFO = "retrieve_driver_info"
    RETRIEVE_ADDITIONAL_DRIVER_INFO = "retrieve_additional_driver_info"
    RETRIEVE_SERVER_INFO = "retrieve_server_info"
    RETRIEVE_DATABASE_USERS = "retrieve_database_users"
    RETRIEVE_COLUMN_DATA_TYPES = "retrieve_column_data_types"
    RETRIEVE_USER_DEFINED_COLUMN_DATA_TYPES = "retrieve_user_defined_column_data_types"
    RETRIEVE_TABLES = "retrieve_tables"
    RETRIEVE_TABLE_COLUMNS = "retrieve_table_columns"
    RETRIEVE_ADDITIONAL_TABLE_ATTRIBUTES = "retrieve_additional_table_attributes"
    RETRIEVE_ADDITIONAL_COLUMN_ATTRIBUTES = "retrieve_additional_column_attributes"
    RETRIEVE_TABLE_DEFINITIONS_INFORMATION = "retrieve_table_definitions_information"
    RETRIEVE_VIEW_INFORMATION = "retrieve_view_information"
    RETRIEVE_PRIMARY_KEYS = "retrieve_primary_keys"
    RETRIEVE_PRIMARY_KEY_DEFINITIONS = "retrieve_primary_key_definitions"
    RETRIEVE_INDEXES = "retrieve_indexes"
    RETRIEVE_INDEX_INFORMATION = "retrieve_index_information"
    RETRIEVE_INDEX_COLUMN_INFORMATION = "retrieve_index_column_information"
    RETRIEVE_FOREIGN_KEYS = "retrieve_foreign_keys"
    RETRIEVE_FOREIGN_KEY_DEFINITIONS = "retrieve_foreign_key_definitions"
    RETRIEVE_TABLE_CONSTRAINT_INFORMATION = "retrieve_table_constraint_information"
    RETRIEVE_TABLE_CONSTRAINT_DEFINITIONS = "retrieve_table_constraint_definitions"
    RETRIEVE_TABLE_PRIVILEGES = "retrieve_table_privileges"
    RETRIEVE_TABLE_COLUMN_PRIVILEGES = "retrieve_table_column_privileges"
    RETRIEVE_ROUTINES = "retrieve_routines"
    RETRIEVE_ROUTINE_PARAMETERS = "retrieve_routine_parameters"
    RETRIEVE_ROUTINE_INFORMATION = "retrieve_routine_information"
    RETRIEVE_SEQUENCE_INFORMATION = "retrieve_sequence_information"
    RETRIEVE_SYNONYM_INFORMATION = "retrieve_synonym_information"


R = SchemaInfoRetrieval

_MINIMUM = frozenset({
    R.RETRIEVE_DATABASE_INFO,
    R.RETRIEVE_DRIVER_INFO,
    R.RETRIEVE_TABLES,
    R.RETRIEVE_ROUTINES,
})

_STANDARD = _MINIMUM | {
    R.RETRIEVE_COLUMN_DATA_TYPES,
    R.RETRIEVE_TABLE_COLUMNS,
    R.RETRIEVE_PRIMARY_KEYS,
    R.RETRIEVE_INDEXES,
    R.RETRIEVE_FOREIGN_KEYS,
    R.RETRIEVE_ROUTINE_PARAMETERS,
}

_DETAILED = _STANDARD | {
    R.RETRIEVE_USER_DEFINED_COLUMN_DATA_TYPES,
    R.RETRIEVE_TABLE_DEFINITIONS_INFORMATION,
    R.RETRIEVE_VIEW_INFORMATION,
    R.RETRIEVE_PRIMARY_KEY_DEFINITIONS,
    R.RETRIEVE_INDEX_INFORMATION,
    R.RETRIEVE_INDEX_COLUMN_INFORMATION,
    R.RETRIEVE_FOREIGN_KEY_DEFINITIONS,
    R.RETRIEVE_TABLE_CONSTRAINT_INFORMATION,
    R.RETRIEVE_TABLE_CONSTRAINT_DEFINITIONS,
    R.RETRIEVE_ROUTINE_INFORMATION,
    R.RETRIEVE_SEQUENCE_INFORMATION,
    R.RETRIEVE_SYNONYM_INFORMATION,
}

_MAXIMUM = frozenset(SchemaInfoRetrieval)


class InfoLevel(str, Enum):
    """Named presets of retrieval flags, from least to most detail."""
    UNKNOWN = "unknown"
    MINIMUM = "minimum"
    STANDARD = "standard"
    DETAILED = "detailed"
    MAXIMUM = "maximum"

    @classmethod
    def parse(cls, name: Optional[str]) -> InfoLevel:
        if not name:
            return cls.STANDARD
        try:
            return cls(name.strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown info level: {name}") from exc

    def retrievals(self) -> FrozenSet[SchemaInfoRetrieval]:
        return _PRESETS[self]

    def build(self) -> SchemaInfoLevel:
        return SchemaInfoLevel(tag=self.value, retrievals=self.retrievals())


_PRESETS: Dict[InfoLevel, FrozenSet[SchemaInfoRetrieval]] = {
    InfoLevel.UNKNOWN: frozenset(),
    InfoLevel.MINIMUM: frozenset(_MINIMUM),
    InfoLevel.STANDARD: frozenset(_STANDARD),
    InfoLevel.DETAILED: frozenset(_DETAILED),
    InfoLevel.MAXIMUM: _MAXIMUM,
}


def _as_retrieval(flag: Union[str, SchemaInfoRetrieval, None]) -> Optional[SchemaInfoRetrieval]:
    if flag is None or isinstance(flag, SchemaInfoRetrieval):
        return flag
    normalized = flag.strip()
    if normalized.isupper():
        normalized = normalized.lower()
    # Accept camelCase tags such as "retrieveIndexes"
    normalized = "".join(f"_{c.lower()}" if c.isupper() else c for c in normalized).lstrip("_")
    normalized = normalized.replace("-", "_")
    try:
        return SchemaInfoRetrieval(normalized)
    except ValueError:
        return None


@dataclass(frozen=True)
class SchemaInfoLevel:
    """Immutable, named set of enabled retrieval flags."""
    tag: str
    retrievals: FrozenSet[SchemaInfoRetrieval] = field(default_factory=frozenset)

    def is_set(self, flag: Union[str, SchemaInfoRetrieval, None]) -> bool:
        """
        Check a flag by enum member or by tag name.

        Unknown or missing flags are reported as not set.
        """
        retrieval = _as_retrieval(flag)
        if retrieval is None:
            return False
        return retrieval in self.retrievals

    def __contains__(self, flag: object) -> bool:
        return isinstance(flag, (str, SchemaInfoRetrieval)) and self.is_set(flag)

    def __getattr__(self, name: str) -> bool:
        # level.retrieve_indexes style access
        if name.startswith("retrieve_"):
            return self.is_set(name)
        raise AttributeError(name)

    def __str__(self) -> str:
        settings = "\n".join(
            f"  {r.value}={str(r in self.retrievals).lower()}" for r in SchemaInfoRetrieval
        )
        return f"SchemaInfoLevel <{self.tag}>\n{{\n{settings}\n}}\n"

    @classmethod
    def minimum(cls) -> SchemaInfoLevel:
        return InfoLevel.MINIMUM.build()

    @classmethod
    def standard(cls) -> SchemaInfoLevel:
        return InfoLevel.STANDARD.build()

    @classmethod
    def detailed(cls) -> SchemaInfoLevel:
        return InfoLevel.DETAILED.build()

    @classmethod
    def maximum(cls) -> SchemaInfoLevel:
        return InfoLevel.MAXIMUM.build()


class SchemaInfoLevelBuilder:
    """Builds a SchemaInfoLevel from a preset plus per-flag overrides."""

    def __init__(self, info_level: InfoLevel = InfoLevel.STANDARD):
        self._tag = info_level.value
        self._retrievals = set(info_level.retrievals())

    @classmethod
    def builder(cls) -> SchemaInfoLevelBuilder:
        return cls()

    def with_info_level(self, info_level: Union[InfoLevel, str]) -> SchemaInfoLevelBuilder:
        if not isinstance(info_level, InfoLevel):
            info_level = InfoLevel.parse(info_level)
        self._tag = info_level.value
        self._retrievals = set(info_level.retrievals())
        return self

    def with_tag(self, tag: str) -> SchemaInfoLevelBuilder:
        self._tag = tag
        return self

    def set_retrieval(self, flag: Union[str, SchemaInfoRetrieval], value: bool) -> SchemaInfoLevelBuilder:
        retrieval = _as_retrieval(flag)
        if retrieval is None:
            raise ConfigurationError(f"Unknown schema info retrieval: {flag}")
        if value:
            self._retrievals.add(retrieval)
        else:
            self._retrievals.discard(retrieval)
        return self

    def set_retrievals(self, overrides: Dict[str, bool]) -> SchemaInfoLevelBuilder:
        for flag, value in overrides.items():
            self.set_retrieval(flag, bool(value))
        return self

    def to_options(self) -> SchemaInfoLevel:
        return SchemaInfoLevel(tag=self._tag, retrievals=frozenset(self._retrievals))


def info_level_names() -> Iterable[str]:
    return [level.value for level in InfoLevel if level != InfoLevel.UNKNOWN]
