"""
Oracle metadata provider using oracledb.

Reads schemas, tables, columns, keys, indexes, constraints, privileges,
routines, sequences and synonyms from the Oracle data dictionary views:
- ALL_USERS
- ALL_TABLES / ALL_VIEWS / ALL_TAB_COMMENTS
- ALL_TAB_COLS / ALL_COL_COMMENTS
- ALL_CONSTRAINTS / ALL_CONS_COLUMNS
- ALL_INDEXES / ALL_IND_COLUMNS
- ALL_TAB_PRIVS / ALL_COL_PRIVS
- ALL_OBJECTS / ALL_ARGUMENTS / ALL_SOURCE
- ALL_SEQUENCES / ALL_SYNONYMS
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from catalog_crawler.errors import CrawlError
from catalog_crawler.metadata.provider import MetadataProvider, Row
from catalog_crawler.models import SchemaReference, SqlType

logger = logging.getLogger(__name__)


# Oracle type mapping
ORACLE_TYPE_MAP = {
    "NUMBER": SqlType.NUMERIC,
    "INTEGER": SqlType.INTEGER,
    "FLOAT": SqlType.FLOAT,
    "BINARY_FLOAT": SqlType.REAL,
    "BINARY_DOUBLE": SqlType.DOUBLE,
    "VARCHAR2": SqlType.VARCHAR,
    "NVARCHAR2": SqlType.NVARCHAR,
    "CHAR": SqlType.CHAR,
    "NCHAR": SqlType.NCHAR,
    "CLOB": SqlType.CLOB,
    "NCLOB": SqlType.NCLOB,
    "DATE": SqlType.TIMESTAMP,  # Oracle DATE includes time
    "TIMESTAMP": SqlType.TIMESTAMP,
    "TIMESTAMP WITH TIME ZONE": SqlType.TIMESTAMP_WITH_TIMEZONE,
    "TIMESTAMP WITH LOCAL TIME ZONE": SqlType.TIMESTAMP,
    "RAW": SqlType.VARBINARY,
    "BLOB": SqlType.BLOB,
    "LONG": SqlType.LONGVARCHAR,
    "LONG RAW": SqlType.LONGVARBINARY,
    "ROWID": SqlType.ROWID,
    "XMLTYPE": SqlType.SQLXML,
}

_FK_RULES = {"CASCADE": "cascade", "SET NULL": "set null", "NO ACTION": "no action"}
_CONSTRAINT_TYPES = {"U": "unique", "C": "check"}


def oracle_type_code(data_type: Optional[str]) -> int:
    """Map an Oracle data type name to a type code; unknown types map to OTHER."""
    if not data_type:
        return int(SqlType.OTHER)
    # TIMESTAMP(6) WITH TIME ZONE and friends
    normalized = " ".join(part.split("(")[0] for part in data_type.upper().split())
    return int(ORACLE_TYPE_MAP.get(normalized, SqlType.OTHER))


@dataclass
class OracleConnectionSettings:
    """Parsed ``user/pwd@host:port/service`` connection string."""
    user: str
    password: str
    host: Optional[str] = None
    port: int = 1521
    service: Optional[str] = None
    dsn: Optional[str] = None

    @classmethod
    def parse(cls, connection_string: str) -> OracleConnectionSettings:
        parts = connection_string.split("@")
        user_pwd = parts[0]
        host_service = parts[1] if len(parts) > 1 else ""

        user, password = user_pwd.split("/", 1) if "/" in user_pwd else (user_pwd, "")

        if ":" in host_service:
            host_port, service = host_service.rsplit("/", 1) if "/" in host_service else (host_service, "")
            host, port = host_port.split(":") if ":" in host_port else (host_port, "1521")
            return cls(user=user, password=password, host=host, port=int(port), service=service)
        # TNS alias or EZConnect string without a port
        return cls(user=user, password=password, dsn=host_service or None)

    @property
    def url(self) -> str:
        if self.host:
            return f"oracle://{self.user}@{self.host}:{self.port}/{self.service}"
        return f"oracle://{self.user}@{self.dsn or ''}"


class OracleMetadataProvider(MetadataProvider):
    """
    Reads metadata from an Oracle database catalog.

    Args:
        connection_string: Oracle connection string (user/pwd@host:port/service)
        include_oracle_maintained: Also list Oracle-maintained schemas such as SYS
    """

    def __init__(self, connection_string: str, include_oracle_maintained: bool = False):
        self.settings = OracleConnectionSettings.parse(connection_string)
        self.include_oracle_maintained = include_oracle_maintained
        self._conn = None

    def connect(self) -> None:
        """Establish database connection."""
        import oracledb

        settings = self.settings
        if settings.host:
            dsn = oracledb.makedsn(settings.host, settings.port, service_name=settings.service)
        else:
            dsn = settings.dsn

        try:
            self._conn = oracledb.connect(user=settings.user, password=settings.password, dsn=dsn)
        except oracledb.Error as exc:
            raise CrawlError(f"Could not connect to Oracle as {settings.user}", exc) from exc
        logger.info(f"Connected to Oracle database as {settings.user}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        self.connect()
        return self

    @property
    def connection(self) -> Any:
        if not self._conn:
            self.connect()
        return self._conn

    def _query(self, sql: str, **params: Any) -> List[Dict[str, Any]]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(sql, params)
            names = [d[0].lower() for d in cursor.description or []]
            return [dict(zip(names, row)) for row in cursor]
        finally:
            cursor.close()

    # Database-wide information

    def database_info(self) -> Row:
        return {
            "product_name": "Oracle",
            "product_version": self.connection.version,
            "user_name": self.settings.user.upper(),
        }

    def database_properties(self) -> Row:
        rows = self._query("SELECT parameter, value FROM nls_database_parameters")
        return {row["parameter"]: row["value"] for row in rows}

    def server_info(self) -> Row:
        rows = self._query("SELECT banner FROM v$version")
        return {f"banner_{n}": row["banner"] for n, row in enumerate(rows, start=1)}

    def driver_info(self) -> Row:
        import oracledb

        return {
            "driver_name": "python-oracledb",
            "driver_version": oracledb.__version__,
            "driver_class_name": "oracledb.Connection",
            "connection_url": self.settings.url,
            "compliant": False,
        }

    def database_users(self) -> Iterable[Row]:
        rows = self._query("SELECT username, user_id, created FROM all_users ORDER BY username")
        return [
            {"user_name": r["username"], "attributes": {"user_id": r["user_id"], "created": str(r["created"])}}
            for r in rows
        ]

    def system_column_data_types(self) -> Iterable[Row]:
        return [{"name": name, "type_code": int(code)} for name, code in ORACLE_TYPE_MAP.items()]

    def schemas(self) -> Iterable[Row]:
        sql = "SELECT username FROM all_users"
        if not self.include_oracle_maintained:
            sql += " WHERE oracle_maintained = 'N'"
        sql += " ORDER BY username"
        return [{"catalog_name": None, "schema_name": r["username"]} for r in self._query(sql)]

    # Per-schema categories

    def user_defined_column_data_types(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT type_name, typecode
            FROM all_types
            WHERE owner = :owner
            ORDER BY type_name
        """, owner=schema.schema_name)
        return [
            {
                "name": r["type_name"],
                "type_code": int(SqlType.STRUCT if r["typecode"] == "OBJECT" else SqlType.DISTINCT),
            }
            for r in rows
        ]

    def tables(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT o.object_name AS table_name, o.object_type AS table_type, c.comments
            FROM all_objects o
            LEFT JOIN all_tab_comments c
                ON o.owner = c.owner AND o.object_name = c.table_name
            WHERE o.owner = :owner
                AND o.object_type IN ('TABLE', 'VIEW')
                AND o.object_name NOT LIKE 'BIN$%'
            ORDER BY o.object_name
        """, owner=schema.schema_name)
        return [
            {"table_name": r["table_name"], "table_type": r["table_type"], "remarks": r["comments"] or ""}
            for r in rows
        ]

    def view_information(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT v.view_name, v.text, u.updatable
            FROM all_views v
            LEFT JOIN (
                SELECT owner, table_name, MAX(updatable) AS updatable
                FROM all_updatable_columns
                GROUP BY owner, table_name
            ) u ON v.owner = u.owner AND v.view_name = u.table_name
            WHERE v.owner = :owner
        """, owner=schema.schema_name)
        return [
            {"table_name": r["view_name"], "definition": r["text"], "updatable": r["updatable"] == "YES"}
            for r in rows
        ]

    def columns(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT
                c.table_name,
                c.column_name,
                c.column_id,
                c.data_type,
                c.nullable,
                c.data_length,
                c.data_precision,
                c.data_scale,
                c.data_default,
                c.hidden_column,
                c.virtual_column,
                c.identity_column,
                m.comments
            FROM all_tab_cols c
            LEFT JOIN all_col_comments m
                ON c.owner = m.owner
                AND c.table_name = m.table_name
                AND c.column_name = m.column_name
            WHERE c.owner = :owner AND c.column_id IS NOT NULL
            ORDER BY c.table_name, c.column_id
        """, owner=schema.schema_name)

        columns = []
        for r in rows:
            data_type = r["data_type"]
            is_number = data_type.upper() == "NUMBER"
            columns.append({
                "table_name": r["table_name"],
                "column_name": r["column_name"],
                "ordinal_position": r["column_id"],
                "type_name": data_type,
                "type_code": oracle_type_code(data_type),
                "size": r["data_precision"] if is_number else r["data_length"],
                "decimal_digits": r["data_scale"],
                "nullable": r["nullable"] == "Y",
                "default_value": r["data_default"].strip() if r["data_default"] else None,
                "auto_incremented": r["identity_column"] == "YES",
                "generated": r["virtual_column"] == "YES",
                "hidden": r["hidden_column"] == "YES",
                "remarks": r["comments"] or "",
            })
        return columns

    def primary_keys(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT c.table_name, c.constraint_name, cc.column_name, cc.position
            FROM all_constraints c
            JOIN all_cons_columns cc
                ON c.owner = cc.owner
                AND c.constraint_name = cc.constraint_name
            WHERE c.owner = :owner
                AND c.constraint_type = 'P'
            ORDER BY c.table_name, cc.position
        """, owner=schema.schema_name)
        return [
            {
                "table_name": r["table_name"],
                "constraint_name": r["constraint_name"],
                "column_name": r["column_name"],
                "key_sequence": r["position"],
            }
            for r in rows
        ]

    def indexes(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT
                i.table_name,
                i.index_name,
                i.uniqueness,
                i.index_type,
                i.distinct_keys,
                i.leaf_blocks,
                ic.column_name,
                ic.column_position,
                ic.descend
            FROM all_indexes i
            JOIN all_ind_columns ic
                ON i.owner = ic.index_owner
                AND i.index_name = ic.index_name
            WHERE i.table_owner = :owner
            ORDER BY i.table_name, i.index_name, ic.column_position
        """, owner=schema.schema_name)
        return [
            {
                "table_name": r["table_name"],
                "index_name": r["index_name"],
                "unique": r["uniqueness"] == "UNIQUE",
                "column_name": r["column_name"],
                "ordinal_position": r["column_position"],
                "sort_sequence": "descending" if r["descend"] == "DESC" else "ascending",
                "index_type": r["index_type"],
                "cardinality": r["distinct_keys"] or 0,
                "pages": r["leaf_blocks"] or 0,
            }
            for r in rows
        ]

    def foreign_keys(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT
                c.constraint_name,
                c.table_name AS child_table,
                cc.column_name AS child_column,
                rc.owner AS parent_owner,
                rc.table_name AS parent_table,
                rcc.column_name AS parent_column,
                cc.position,
                c.delete_rule,
                c.deferrable,
                c.deferred
            FROM all_constraints c
            JOIN all_cons_columns cc
                ON c.owner = cc.owner
                AND c.constraint_name = cc.constraint_name
            JOIN all_constraints rc
                ON c.r_owner = rc.owner
                AND c.r_constraint_name = rc.constraint_name
            JOIN all_cons_columns rcc
                ON rc.owner = rcc.owner
                AND rc.constraint_name = rcc.constraint_name
                AND cc.position = rcc.position
            WHERE c.owner = :owner
                AND c.constraint_type = 'R'
            ORDER BY c.table_name, c.constraint_name, cc.position
        """, owner=schema.schema_name)
        return [
            {
                "foreign_key_name": r["constraint_name"],
                "fk_table_name": r["child_table"],
                "fk_column_name": r["child_column"],
                "pk_catalog_name": None,
                "pk_schema_name": r["parent_owner"],
                "pk_table_name": r["parent_table"],
                "pk_column_name": r["parent_column"],
                "key_sequence": r["position"],
                # Oracle has no ON UPDATE actions
                "update_rule": "no action",
                "delete_rule": _FK_RULES.get(r["delete_rule"], "unknown"),
                "deferrable": r["deferrable"] == "DEFERRABLE",
                "initially_deferred": r["deferred"] == "DEFERRED",
            }
            for r in rows
        ]

    def table_constraints(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT
                c.table_name,
                c.constraint_name,
                c.constraint_type,
                c.search_condition_vc,
                c.deferrable,
                c.deferred,
                cc.column_name,
                cc.position
            FROM all_constraints c
            LEFT JOIN all_cons_columns cc
                ON c.owner = cc.owner
                AND c.constraint_name = cc.constraint_name
            WHERE c.owner = :owner
                AND c.constraint_type IN ('U', 'C')
                AND c.constraint_name NOT LIKE 'SYS_C%'
            ORDER BY c.table_name, c.constraint_name, cc.position
        """, owner=schema.schema_name)
        return [
            {
                "table_name": r["table_name"],
                "constraint_name": r["constraint_name"],
                "constraint_type": _CONSTRAINT_TYPES[r["constraint_type"]],
                "column_name": r["column_name"],
                "ordinal_position": r["position"] or 1,
                "deferrable": r["deferrable"] == "DEFERRABLE",
                "initially_deferred": r["deferred"] == "DEFERRED",
                "definition": r["search_condition_vc"],
            }
            for r in rows
        ]

    def table_privileges(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT table_name, privilege, grantor, grantee, grantable
            FROM all_tab_privs
            WHERE table_schema = :owner
            ORDER BY table_name, privilege
        """, owner=schema.schema_name)
        return [
            {
                "table_name": r["table_name"],
                "privilege": r["privilege"],
                "grantor": r["grantor"],
                "grantee": r["grantee"],
                "is_grantable": r["grantable"] == "YES",
            }
            for r in rows
        ]

    def column_privileges(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT table_name, column_name, privilege, grantor, grantee, grantable
            FROM all_col_privs
            WHERE table_schema = :owner
            ORDER BY table_name, column_name, privilege
        """, owner=schema.schema_name)
        return [
            {
                "table_name": r["table_name"],
                "column_name": r["column_name"],
                "privilege": r["privilege"],
                "grantor": r["grantor"],
                "grantee": r["grantee"],
                "is_grantable": r["grantable"] == "YES",
            }
            for r in rows
        ]

    def routines(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT object_name, object_id, object_type
            FROM all_objects
            WHERE owner = :owner
                AND object_type IN ('PROCEDURE', 'FUNCTION')
            ORDER BY object_name
        """, owner=schema.schema_name)
        sources: Dict[str, List[str]] = {}
        for line in self._query("""
            SELECT name, text
            FROM all_source
            WHERE owner = :owner AND type IN ('PROCEDURE', 'FUNCTION')
            ORDER BY name, line
        """, owner=schema.schema_name):
            sources.setdefault(line["name"], []).append(line["text"])
        return [
            {
                "routine_name": r["object_name"],
                "specific_name": f"{r['object_name']}_{r['object_id']}",
                "routine_type": r["object_type"].lower(),
                "definition": "".join(sources.get(r["object_name"], [])),
            }
            for r in rows
        ]

    def routine_parameters(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT
                a.object_name,
                a.object_id,
                a.argument_name,
                a.position,
                a.in_out,
                a.data_type,
                a.data_length,
                a.data_precision,
                a.data_scale
            FROM all_arguments a
            WHERE a.owner = :owner
                AND a.package_name IS NULL
                AND a.data_level = 0
            ORDER BY a.object_name, a.position
        """, owner=schema.schema_name)
        parameters = []
        for r in rows:
            # Position 0 without a name is a function's return value
            name = r["argument_name"] or "RETURN"
            mode = "return" if r["position"] == 0 else r["in_out"].lower().replace("/", "")
            parameters.append({
                "routine_name": r["object_name"],
                "specific_name": f"{r['object_name']}_{r['object_id']}",
                "parameter_name": name,
                "ordinal_position": r["position"],
                "mode": mode,
                "type_name": r["data_type"],
                "type_code": oracle_type_code(r["data_type"]),
                "size": r["data_precision"] or r["data_length"],
                "decimal_digits": r["data_scale"],
            })
        return parameters

    def sequences(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT sequence_name, increment_by, min_value, max_value, cycle_flag
            FROM all_sequences
            WHERE sequence_owner = :owner
            ORDER BY sequence_name
        """, owner=schema.schema_name)
        return [
            {
                "sequence_name": r["sequence_name"],
                "increment": r["increment_by"],
                "minimum_value": r["min_value"],
                "maximum_value": r["max_value"],
                "cycle": r["cycle_flag"] == "Y",
            }
            for r in rows
        ]

    def synonyms(self, schema: SchemaReference) -> Iterable[Row]:
        rows = self._query("""
            SELECT synonym_name, table_owner, table_name
            FROM all_synonyms
            WHERE owner = :owner
            ORDER BY synonym_name
        """, owner=schema.schema_name)
        return [
            {
                "synonym_name": r["synonym_name"],
                "referenced_catalog_name": None,
                "referenced_schema_name": r["table_owner"],
                "referenced_object_name": r["table_name"],
            }
            for r in rows
        ]
