"""
Contract for metadata providers.

A provider answers one question per metadata category and returns plain
row dictionaries, in the order the rows should appear in the catalog. A
category the source cannot answer returns no rows; that is never an error.

Row keys by category (keys not listed are ignored; missing keys are None):

- schemas: catalog_name, schema_name
- system / user-defined column data types: name, type_code, precision,
  nullable, auto_incrementable, case_sensitive, fixed_precision_scale,
  unsigned, literal_prefix, literal_suffix, create_parameters, base_type_name
- tables: table_name, table_type, remarks, attributes
- view_information: table_name, definition, updatable, check_option
- table_definitions: table_name, definition
- columns: table_name, column_name, ordinal_position, type_name, type_code,
  size, decimal_digits, nullable, default_value, auto_incremented,
  generated, hidden, remarks, attributes
- primary_keys: table_name, constraint_name, column_name, key_sequence,
  definition
- indexes: table_name, index_name, unique, column_name, ordinal_position,
  sort_sequence, index_type, cardinality, pages, definition
- foreign_keys: foreign_key_name, fk_table_name, fk_column_name,
  pk_catalog_name, pk_schema_name, pk_table_name, pk_column_name,
  key_sequence, update_rule, delete_rule, deferrable, initially_deferred,
  definition (the foreign key table is in the schema being asked about)
- table_constraints: table_name, constraint_name, constraint_type,
  column_name, ordinal_position, deferrable, initially_deferred, definition
- table_privileges: table_name, privilege, grantor, grantee, is_grantable
- column_privileges: the table privilege keys plus column_name
- routines: routine_name, specific_name, routine_type, return_type,
  remarks, definition
- routine_parameters: routine_name, specific_name, parameter_name,
  ordinal_position, mode, type_name, type_code, size, decimal_digits,
  nullable
- sequences: sequence_name, increment, minimum_value, maximum_value, cycle
- synonyms: synonym_name, referenced_catalog_name, referenced_schema_name,
  referenced_object_name
- database_users: user_name, attributes
"""

from __future__ import annotations

from abc import ABC
from typing import Any, Dict, Iterable, Optional

from catalog_crawler.models import SchemaReference

Row = Dict[str, Any]


class MetadataProvider(ABC):
    """
    Source of raw metadata rows for a crawl.

    Every method has an empty default so a provider only implements the
    categories its source supports.
    """

    @property
    def connection(self) -> Optional[Any]:
        """Live DB-API connection, if the provider has one."""
        return None

    # Database-wide information

    def database_info(self) -> Row:
        return {}

    def database_properties(self) -> Row:
        return {}

    def server_info(self) -> Row:
        return {}

    def driver_info(self) -> Row:
        return {}

    def driver_properties(self) -> Row:
        return {}

    def database_users(self) -> Iterable[Row]:
        return []

    def system_column_data_types(self) -> Iterable[Row]:
        return []

    def schemas(self) -> Iterable[Row]:
        return []

    # Per-schema categories

    def user_defined_column_data_types(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def tables(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def view_information(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def table_definitions(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def columns(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def primary_keys(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def indexes(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def foreign_keys(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def table_constraints(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def table_privileges(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def column_privileges(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def routines(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def routine_parameters(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def sequences(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def synonyms(self, schema: SchemaReference) -> Iterable[Row]:
        return []

    def close(self) -> None:
        """Release any resources held by the provider."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
