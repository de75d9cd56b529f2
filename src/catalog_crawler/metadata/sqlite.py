"""
SQLite metadata provider using the sqlite3 module.

Reads the schema from sqlite_master and the table_xinfo, index_list,
index_xinfo and foreign_key_list pragmas. Each attached database is a
schema; SQLite has no catalogs.
"""

from __future__ import annotations

import logging
import platform
import re
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from catalog_crawler.metadata.provider import MetadataProvider, Row
from catalog_crawler.models import SchemaReference, SqlType

logger = logging.getLogger(__name__)


# SQLite storage classes reported as the system column data types
SQLITE_TYPES = {
    "INTEGER": SqlType.INTEGER,
    "REAL": SqlType.REAL,
    "TEXT": SqlType.VARCHAR,
    "BLOB": SqlType.BLOB,
    "NUMERIC": SqlType.NUMERIC,
}

_DECLARED_TYPE = re.compile(r"^\s*([^(]*?)\s*(?:\(\s*(\d+)\s*(?:,\s*(\d+)\s*)?\))?\s*$")


def parse_declared_type(declared: Optional[str]) -> Tuple[Optional[str], Optional[int], Optional[int]]:
    """
    Split a declared column type such as ``VARCHAR(20)`` or ``NUMERIC(10, 2)``.

    Returns:
        Tuple of (type name, size, decimal digits); parts that are absent are None
    """
    if not declared or not declared.strip():
        return None, None, None
    match = _DECLARED_TYPE.match(declared)
    if not match:
        return declared.strip().upper(), None, None
    name, size, digits = match.groups()
    return (
        name.upper() or None,
        int(size) if size is not None else None,
        int(digits) if digits is not None else None,
    )


def affinity_type_code(type_name: Optional[str]) -> int:
    """Map a declared type name to a type code, following SQLite's affinity rules."""
    if not type_name:
        return int(SqlType.BLOB)
    upper = type_name.upper()
    member = SqlType.__members__.get(upper.replace(" ", "_"))
    if member is not None:
        return int(member)
    if "INT" in upper:
        return int(SqlType.INTEGER)
    if "CHAR" in upper or "CLOB" in upper or "TEXT" in upper:
        return int(SqlType.VARCHAR)
    if "BLOB" in upper:
        return int(SqlType.BLOB)
    if "REAL" in upper or "FLOA" in upper or "DOUB" in upper:
        return int(SqlType.DOUBLE)
    return int(SqlType.NUMERIC)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class SqliteMetadataProvider(MetadataProvider):
    """
    Reads metadata from a SQLite database.

    Args:
        database: Path to a database file, ":memory:", or an open connection.
            A connection passed in is not closed by the provider.
    """

    def __init__(self, database: Union[str, Path, sqlite3.Connection] = ":memory:"):
        if isinstance(database, sqlite3.Connection):
            self._conn = database
            self._owns_connection = False
            self.database = None
        else:
            self.database = str(database)
            self._conn = sqlite3.connect(self.database)
            self._owns_connection = True
            logger.info(f"Connected to SQLite database {self.database}")

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        if self._conn is not None and self._owns_connection:
            self._conn.close()
            self._conn = None

    def _query(self, sql: str, params: Iterable[Any] = ()) -> List[Dict[str, Any]]:
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, tuple(params))
            names = [d[0] for d in cursor.description or []]
            return [dict(zip(names, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def _pragma(self, schema: SchemaReference, pragma: str, argument: str) -> List[Dict[str, Any]]:
        return self._query(f"PRAGMA {_quote(schema.schema_name)}.{pragma}({_quote(argument)})")

    def _table_names(self, schema: SchemaReference, types: Tuple[str, ...] = ("table",)) -> List[str]:
        placeholders = ", ".join("?" for _ in types)
        rows = self._query(
            f"SELECT name FROM {_quote(schema.schema_name)}.sqlite_master "
            f"WHERE type IN ({placeholders}) AND name NOT LIKE 'sqlite_%' ORDER BY name",
            types,
        )
        return [row["name"] for row in rows]

    def _primary_key_columns(self, schema: SchemaReference, table_name: str) -> List[str]:
        columns = [c for c in self._pragma(schema, "table_info", table_name) if c["pk"]]
        return [c["name"] for c in sorted(columns, key=lambda c: c["pk"])]

    # Database-wide information

    def database_info(self) -> Row:
        return {
            "product_name": "SQLite",
            "product_version": sqlite3.sqlite_version,
            "user_name": "",
        }

    def database_properties(self) -> Row:
        properties = {}
        for pragma in ("encoding", "page_size", "user_version", "foreign_keys"):
            rows = self._query(f"PRAGMA {pragma}")
            if rows:
                properties[pragma] = next(iter(rows[0].values()))
        return properties

    def driver_info(self) -> Row:
        return {
            "driver_name": "sqlite3",
            "driver_version": platform.python_version(),
            "driver_class_name": "sqlite3.Connection",
            "connection_url": f"sqlite:///{self.database}" if self.database else "",
            "compliant": False,
        }

    def system_column_data_types(self) -> Iterable[Row]:
        return [
            {"name": name, "type_code": int(code), "nullable": True}
            for name, code in SQLITE_TYPES.items()
        ]

    def schemas(self) -> Iterable[Row]:
        return [
            {"catalog_name": None, "schema_name": row["name"]}
            for row in self._query("PRAGMA database_list")
            if row["name"] != "temp"
        ]

    # Per-schema categories

    def tables(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query(
            f"SELECT name, type FROM {_quote(schema.schema_name)}.sqlite_master "
            f"WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [{"table_name": r["name"], "table_type": r["type"].upper()} for r in rows]

    def table_definitions(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query(
            f"SELECT name, sql FROM {_quote(schema.schema_name)}.sqlite_master "
            f"WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [{"table_name": r["name"], "definition": r["sql"] or ""} for r in rows]

    def view_information(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query(
            f"SELECT name, sql FROM {_quote(schema.schema_name)}.sqlite_master "
            f"WHERE type = 'view' ORDER BY name"
        )
        # SQLite views are never updatable without INSTEAD OF triggers
        return [{"table_name": r["name"], "definition": r["sql"], "updatable": False} for r in rows]

    def columns(self, schema: SchemaReference) -> Iterable[Row]:
        rows: List[Row] = []
        for table_name in self._table_names(schema, ("table", "view")):
            columns = self._pragma(schema, "table_xinfo", table_name)
            pk_count = sum(1 for c in columns if c["pk"])
            for position, column in enumerate(columns, start=1):
                type_name, size, digits = parse_declared_type(column["type"])
                rows.append({
                    "table_name": table_name,
                    "column_name": column["name"],
                    "ordinal_position": position,
                    "type_name": type_name,
                    "type_code": affinity_type_code(type_name),
                    "size": size,
                    "decimal_digits": digits,
                    "nullable": not column["notnull"] and not column["pk"],
                    "default_value": column["dflt_value"],
                    # INTEGER PRIMARY KEY aliases the rowid
                    "auto_incremented": type_name == "INTEGER" and column["pk"] == 1 and pk_count == 1,
                    "generated": column["hidden"] in (2, 3),
                    "hidden": column["hidden"] == 1,
                })
        return rows

    def primary_keys(self, schema: SchemaReference) -> Iterable[Row]:
        rows: List[Row] = []
        for table_name in self._table_names(schema):
            for sequence, column_name in enumerate(self._primary_key_columns(schema, table_name), start=1):
                rows.append({
                    "table_name": table_name,
                    "constraint_name": f"PK_{table_name}",
                    "column_name": column_name,
                    "key_sequence": sequence,
                })
        return rows

    def _index_rows(self, schema: SchemaReference, table_name: str) -> List[Tuple[Dict[str, Any], List[Dict[str, Any]]]]:
        indexes = []
        for index in self._pragma(schema, "index_list", table_name):
            columns = [
                c for c in self._pragma(schema, "index_xinfo", index["name"])
                if c["key"] and c["name"] is not None
            ]
            indexes.append((index, columns))
        return indexes

    def indexes(self, schema: SchemaReference) -> Iterable[Row]:
        rows: List[Row] = []
        for table_name in self._table_names(schema):
            for index, columns in self._index_rows(schema, table_name):
                for position, column in enumerate(columns, start=1):
                    rows.append({
                        "table_name": table_name,
                        "index_name": index["name"],
                        "unique": bool(index["unique"]),
                        "column_name": column["name"],
                        "ordinal_position": position,
                        "sort_sequence": "descending" if column["desc"] else "ascending",
                        "index_type": "partial" if index.get("partial") else "btree",
                    })
        return rows

    def table_constraints(self, schema: SchemaReference) -> Iterable[Row]:
        rows: List[Row] = []
        for table_name in self._table_names(schema):
            for index, columns in self._index_rows(schema, table_name):
                if index.get("origin") != "u":
                    continue
                for position, column in enumerate(columns, start=1):
                    rows.append({
                        "table_name": table_name,
                        "constraint_name": index["name"],
                        "constraint_type": "unique",
                        "column_name": column["name"],
                        "ordinal_position": position,
                    })
        return rows

    def foreign_keys(self, schema: SchemaReference) -> Iterable[Row]:
        rows: List[Row] = []
        for table_name in self._table_names(schema):
            references = self._pragma(schema, "foreign_key_list", table_name)
            for reference in sorted(references, key=lambda r: (r["id"], r["seq"])):
                pk_column = reference["to"]
                if pk_column is None:
                    # A reference without columns points at the parent's primary key
                    parent_pk = self._primary_key_columns(schema, reference["table"])
                    pk_column = parent_pk[reference["seq"]] if reference["seq"] < len(parent_pk) else None
                rows.append({
                    "foreign_key_name": f"FK_{table_name}_{reference['id']}",
                    "fk_table_name": table_name,
                    "fk_column_name": reference["from"],
                    "pk_catalog_name": None,
                    "pk_schema_name": schema.schema_name,
                    "pk_table_name": reference["table"],
                    "pk_column_name": pk_column,
                    "key_sequence": reference["seq"] + 1,
                    "update_rule": reference["on_update"],
                    "delete_rule": reference["on_delete"],
                })
        return rows
