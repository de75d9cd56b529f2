"""
Metadata provider backed by an in-memory description.

The description is a nested dictionary, usually loaded from YAML, that lays
out schemas with their tables, columns, keys, indexes, routines, sequences
and synonyms. It is flattened into the same row shape that a live database
provider returns, so crawls over a description and over a database go
through identical code.

Example::

    database_info: {product_name: HyperSQL, product_version: "2.7"}
    column_data_types:
      - {name: INTEGER, type_code: 4}
      - {name: VARCHAR, type_code: 12}
    schemas:
      - catalog: PUBLIC
        schema: BOOKS
        tables:
          - name: AUTHORS
            columns:
              - {name: ID, type: INTEGER, nullable: false}
              - {name: NAME, type: VARCHAR, size: 50}
            primary_key: {name: PK_AUTHORS, columns: [ID]}
          - name: BOOKS
            columns: [{name: ID, type: INTEGER}, {name: AUTHOR_ID, type: INTEGER}]
            foreign_keys:
              - name: FK_BOOKS_AUTHORS
                columns: [AUTHOR_ID]
                references: {table: AUTHORS, columns: [ID]}
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from catalog_crawler.errors import ConfigurationError
from catalog_crawler.metadata.provider import MetadataProvider, Row
from catalog_crawler.models import SchemaReference, SqlType

logger = logging.getLogger(__name__)


def type_code_for(type_name: Optional[str], type_code: Optional[int] = None) -> int:
    """Resolve a type code from an explicit code or a well-known type name."""
    if type_code is not None:
        return int(type_code)
    if type_name:
        member = SqlType.__members__.get(type_name.strip().upper().replace(" ", "_"))
        if member is not None:
            return int(member)
    return int(SqlType.OTHER)


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class MemoryMetadataProvider(MetadataProvider):
    """
    Serves metadata rows from a nested description.

    Args:
        description: Nested dictionary describing the database
        connection: Optional DB-API connection handed to linters that query data
    """

    def __init__(self, description: Optional[Dict[str, Any]] = None, connection: Any = None):
        if description is not None and not isinstance(description, dict):
            raise ConfigurationError("Catalog description must be a mapping")
        self.description = description or {}
        self._connection = connection
        self._rows: Dict[str, Dict[str, List[Row]]] = defaultdict(lambda: defaultdict(list))
        self._schemas: List[Row] = []
        try:
            self._flatten()
        except (KeyError, TypeError, AttributeError) as exc:
            raise ConfigurationError(f"Malformed catalog description: {exc!r}") from exc

    @classmethod
    def from_yaml(cls, path: Union[str, Path], connection: Any = None) -> MemoryMetadataProvider:
        """Load a description from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Catalog description not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Could not parse {path}: {exc}") from exc

        logger.info(f"Loaded catalog description from {path}")
        return cls(data, connection=connection)

    @property
    def connection(self) -> Optional[Any]:
        return self._connection

    # Flattening

    def _add(self, category: str, schema: SchemaReference, row: Row) -> None:
        self._rows[category][schema.full_name].append(row)

    def _flatten(self) -> None:
        for entry in _as_list(self.description.get("schemas")):
            if not isinstance(entry, dict):
                raise ConfigurationError(f"Schema entry must be a mapping, got {entry!r}")
            schema = SchemaReference(entry.get("catalog"), entry.get("schema"))
            self._schemas.append({
                "catalog_name": schema.catalog_name,
                "schema_name": schema.schema_name,
            })

            for data_type in _as_list(entry.get("column_data_types")):
                self._add("user_defined_column_data_types", schema, self._data_type_row(data_type))
            for table in _as_list(entry.get("tables")):
                self._flatten_table(schema, table)
            for routine in _as_list(entry.get("routines")):
                self._flatten_routine(schema, routine)
            for sequence in _as_list(entry.get("sequences")):
                self._add("sequences", schema, {
                    "sequence_name": sequence["name"],
                    "increment": sequence.get("increment", 1),
                    "minimum_value": sequence.get("minimum"),
                    "maximum_value": sequence.get("maximum"),
                    "cycle": sequence.get("cycle", False),
                })
            for synonym in _as_list(entry.get("synonyms")):
                target = synonym.get("references") or {}
                self._add("synonyms", schema, {
                    "synonym_name": synonym["name"],
                    "referenced_catalog_name": target.get("catalog", schema.catalog_name),
                    "referenced_schema_name": target.get("schema", schema.schema_name),
                    "referenced_object_name": target.get("object"),
                })

        logger.debug(f"Flattened description with {len(self._schemas)} schemas")

    @staticmethod
    def _data_type_row(data_type: Dict[str, Any]) -> Row:
        row = dict(data_type)
        row["type_code"] = type_code_for(data_type.get("base_type") or data_type["name"], data_type.get("type_code"))
        row["base_type_name"] = data_type.get("base_type")
        return row

    def _flatten_table(self, schema: SchemaReference, table: Dict[str, Any]) -> None:
        name = table["name"]
        table_type = str(table.get("type", "TABLE")).upper()
        self._add("tables", schema, {
            "table_name": name,
            "table_type": table_type,
            "remarks": table.get("remarks", ""),
            "attributes": table.get("attributes"),
        })
        if table.get("definition") is not None:
            self._add("table_definitions", schema, {"table_name": name, "definition": table["definition"]})
        if table_type == "VIEW":
            self._add("view_information", schema, {
                "table_name": name,
                "definition": table.get("definition"),
                "updatable": table.get("updatable", False),
                "check_option": table.get("check_option"),
            })

        for position, column in enumerate(_as_list(table.get("columns")), start=1):
            type_name = column.get("type")
            self._add("columns", schema, {
                "table_name": name,
                "column_name": column["name"],
                "ordinal_position": column.get("ordinal_position", position),
                "type_name": type_name,
                "type_code": type_code_for(type_name, column.get("type_code")),
                "size": column.get("size"),
                "decimal_digits": column.get("decimal_digits"),
                "nullable": column.get("nullable", True),
                "default_value": column.get("default"),
                "auto_incremented": column.get("auto_incremented", False),
                "generated": column.get("generated", False),
                "hidden": column.get("hidden", False),
                "remarks": column.get("remarks", ""),
                "attributes": column.get("attributes"),
            })
            for privilege in _as_list(column.get("privileges")):
                self._add("column_privileges", schema, {
                    "table_name": name,
                    "column_name": column["name"],
                    **self._privilege_row(privilege),
                })

        primary_key = table.get("primary_key")
        if primary_key:
            for sequence, column_name in enumerate(_as_list(primary_key.get("columns")), start=1):
                self._add("primary_keys", schema, {
                    "table_name": name,
                    "constraint_name": primary_key.get("name") or f"PK_{name}",
                    "column_name": column_name,
                    "key_sequence": sequence,
                    "definition": primary_key.get("definition"),
                })

        for index in _as_list(table.get("indexes")):
            sort = _as_list(index.get("sort"))
            for position, column_name in enumerate(_as_list(index.get("columns")), start=1):
                self._add("indexes", schema, {
                    "table_name": name,
                    "index_name": index["name"],
                    "unique": index.get("unique", False),
                    "column_name": column_name,
                    "ordinal_position": position,
                    "sort_sequence": sort[position - 1] if position <= len(sort) else "ascending",
                    "index_type": index.get("type"),
                    "cardinality": index.get("cardinality", 0),
                    "pages": index.get("pages", 0),
                    "definition": index.get("definition"),
                })

        for foreign_key in _as_list(table.get("foreign_keys")):
            target = foreign_key.get("references") or {}
            fk_columns = _as_list(foreign_key.get("columns"))
            pk_columns = _as_list(target.get("columns"))
            if len(fk_columns) != len(pk_columns):
                raise ConfigurationError(
                    f"Foreign key {foreign_key.get('name')} on {name} has "
                    f"{len(fk_columns)} columns but references {len(pk_columns)}"
                )
            for sequence, (fk_column, pk_column) in enumerate(zip(fk_columns, pk_columns), start=1):
                self._add("foreign_keys", schema, {
                    "foreign_key_name": foreign_key["name"],
                    "fk_table_name": name,
                    "fk_column_name": fk_column,
                    "pk_catalog_name": target.get("catalog", schema.catalog_name),
                    "pk_schema_name": target.get("schema", schema.schema_name),
                    "pk_table_name": target["table"],
                    "pk_column_name": pk_column,
                    "key_sequence": sequence,
                    "update_rule": foreign_key.get("update_rule"),
                    "delete_rule": foreign_key.get("delete_rule"),
                    "deferrable": foreign_key.get("deferrable", False),
                    "initially_deferred": foreign_key.get("initially_deferred", False),
                    "definition": foreign_key.get("definition"),
                })

        for constraint in _as_list(table.get("constraints")):
            columns = _as_list(constraint.get("columns")) or [None]
            for position, column_name in enumerate(columns, start=1):
                self._add("table_constraints", schema, {
                    "table_name": name,
                    "constraint_name": constraint["name"],
                    "constraint_type": constraint.get("type", "unknown"),
                    "column_name": column_name,
                    "ordinal_position": position,
                    "deferrable": constraint.get("deferrable", False),
                    "initially_deferred": constraint.get("initially_deferred", False),
                    "definition": constraint.get("definition"),
                })

        for privilege in _as_list(table.get("privileges")):
            self._add("table_privileges", schema, {"table_name": name, **self._privilege_row(privilege)})

    @staticmethod
    def _privilege_row(privilege: Dict[str, Any]) -> Row:
        return {
            "privilege": privilege["name"],
            "grantor": privilege.get("grantor"),
            "grantee": privilege.get("grantee"),
            "is_grantable": privilege.get("grantable", False),
        }

    def _flatten_routine(self, schema: SchemaReference, routine: Dict[str, Any]) -> None:
        name = routine["name"]
        specific_name = routine.get("specific_name") or name
        self._add("routines", schema, {
            "routine_name": name,
            "specific_name": specific_name,
            "routine_type": routine.get("type", "procedure"),
            "return_type": routine.get("return_type"),
            "remarks": routine.get("remarks", ""),
            "definition": routine.get("definition"),
        })
        for position, parameter in enumerate(_as_list(routine.get("parameters")), start=1):
            type_name = parameter.get("type")
            self._add("routine_parameters", schema, {
                "routine_name": name,
                "specific_name": specific_name,
                "parameter_name": parameter["name"],
                "ordinal_position": parameter.get("ordinal_position", position),
                "mode": parameter.get("mode", "in"),
                "type_name": type_name,
                "type_code": type_code_for(type_name, parameter.get("type_code")),
                "size": parameter.get("size"),
                "decimal_digits": parameter.get("decimal_digits"),
                "nullable": parameter.get("nullable", True),
            })

    def _schema_rows(self, category: str, schema: SchemaReference) -> Iterable[Row]:
        return list(self._rows[category].get(schema.full_name, []))

    # MetadataProvider

    def database_info(self) -> Row:
        return dict(self.description.get("database_info") or {})

    def database_properties(self) -> Row:
        return dict(self.description.get("database_properties") or {})

    def server_info(self) -> Row:
        return dict(self.description.get("server_info") or {})

    def driver_info(self) -> Row:
        return dict(self.description.get("driver_info") or {})

    def driver_properties(self) -> Row:
        return dict(self.description.get("driver_properties") or {})

    def database_users(self) -> Iterable[Row]:
        return [
            {"user_name": user["name"], "attributes": user.get("attributes")}
            for user in _as_list(self.description.get("users"))
        ]

    def system_column_data_types(self) -> Iterable[Row]:
        return [self._data_type_row(t) for t in _as_list(self.description.get("column_data_types"))]

    def schemas(self) -> Iterable[Row]:
        return list(self._schemas)

    def user_defined_column_data_types(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("user_defined_column_data_types", schema)

    def tables(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("tables", schema)

    def view_information(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("view_information", schema)

    def table_definitions(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("table_definitions", schema)

    def columns(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("columns", schema)

    def primary_keys(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("primary_keys", schema)

    def indexes(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("indexes", schema)

    def foreign_keys(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("foreign_keys", schema)

    def table_constraints(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("table_constraints", schema)

    def table_privileges(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("table_privileges", schema)

    def column_privileges(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("column_privileges", schema)

    def routines(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("routines", schema)

    def routine_parameters(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("routine_parameters", schema)

    def sequences(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("sequences", schema)

    def synonyms(self, schema: SchemaReference) -> Iterable[Row]:
        return self._schema_rows("synonyms", schema)
