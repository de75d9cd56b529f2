"""
Catalog population.

The SchemaCrawler asks a metadata provider for rows, one category at a time,
and builds a Catalog from them. Schemas are discovered first and partition
every later step. Each step runs only when its retrieval flag is set in the
schema info level, so a disabled category is simply left empty.

Once populated, the catalog is reduced with the limit, grep and filter
options.
"""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Tuple

from catalog_crawler import __version__
from catalog_crawler.catalog import Catalog
from catalog_crawler.errors import CatalogCrawlerError, CrawlError
from catalog_crawler.info_level import SchemaInfoLevel
from catalog_crawler.info_level import SchemaInfoRetrieval as R
from catalog_crawler.metadata.provider import MetadataProvider, Row
from catalog_crawler.models import (
    Column,
    ColumnDataType,
    ColumnReference,
    CrawlInfo,
    DatabaseInfo,
    DatabaseUser,
    DataTypeType,
    DriverInfo,
    ForeignKey,
    ForeignKeyColumnReference,
    ForeignKeyRule,
    Function,
    Index,
    IndexColumn,
    IndexColumnSortSequence,
    NamedObjectKey,
    ParameterMode,
    PrimaryKey,
    Privilege,
    Procedure,
    Routine,
    RoutineParameter,
    SchemaReference,
    Sequence,
    SqlType,
    Synonym,
    Table,
    TableConstraint,
    TableConstraintColumn,
    TableConstraintType,
    View,
)
from catalog_crawler.options import SchemaCrawlerOptions
from catalog_crawler.reducers import reduce_catalog

logger = logging.getLogger(__name__)


def _group(rows: Iterable[Row], *keys: str) -> "OrderedDict[Tuple[Any, ...], List[Row]]":
    """Group rows by the given keys, keeping first-seen order."""
    groups: "OrderedDict[Tuple[Any, ...], List[Row]]" = OrderedDict()
    for row in rows:
        groups.setdefault(tuple(row.get(k) for k in keys), []).append(row)
    return groups


def _parse_enum(enum_type, value: Optional[str], default):
    if not value:
        return default
    try:
        return enum_type(str(value).strip().lower().replace(" ", "_"))
    except ValueError:
        return default


class SchemaCrawler:
    """
    Builds a Catalog from a metadata provider.

    Args:
        provider: Source of metadata rows
        options: Crawl options; defaults to the standard info level and no limits
    """

    def __init__(self, provider: MetadataProvider, options: Optional[SchemaCrawlerOptions] = None):
        self.provider = provider
        self.options = options or SchemaCrawlerOptions()
        self._unresolved_types: Dict[Tuple[str, str, int], ColumnDataType] = {}

    def crawl(self) -> Catalog:
        """
        Populate and reduce a new catalog.

        Returns:
            The populated catalog

        Raises:
            CrawlError: If the provider fails; no partial catalog is returned
        """
        level = self.options.schema_info_level
        catalog = Catalog()
        self._unresolved_types = {}
        logger.info(f"Crawling catalog with info level {level.tag}")

        try:
            self._populate(catalog, level)
        except CatalogCrawlerError:
            raise
        except Exception as exc:
            raise CrawlError("Could not crawl catalog", exc) from exc

        catalog.crawl_info = CrawlInfo(
            run_id=uuid.uuid4().hex,
            crawler_version=__version__,
            database_product=" ".join(
                p for p in (catalog.database_info.product_name, catalog.database_info.product_version) if p
            ),
            driver_product=" ".join(
                p for p in (catalog.driver_info.driver_name, catalog.driver_info.driver_version) if p
            ),
        )

        reduce_catalog(catalog, self.options)
        logger.info(
            f"Crawled {len(catalog.get_schemas())} schemas, {len(catalog.get_tables())} tables, "
            f"{len(catalog.get_routines())} routines"
        )
        return catalog

    def _populate(self, catalog: Catalog, level: SchemaInfoLevel) -> None:
        self._crawl_database_info(catalog, level)

        if level.is_set(R.RETRIEVE_COLUMN_DATA_TYPES):
            self._crawl_system_column_data_types(catalog)

        for row in self.provider.schemas():
            catalog.add_schema(SchemaReference(row.get("catalog_name"), row.get("schema_name")))
        schemas = catalog.get_schemas()
        logger.info(f"Found {len(schemas)} schemas")

        if level.is_set(R.RETRIEVE_USER_DEFINED_COLUMN_DATA_TYPES):
            for schema in schemas:
                self._crawl_user_defined_column_data_types(catalog, schema)

        if level.is_set(R.RETRIEVE_TABLES):
            # All tables must exist before foreign keys can cross schemas
            for schema in schemas:
                self._crawl_tables(catalog, schema, level)
            for schema in schemas:
                self._crawl_table_details(catalog, schema, level)
            if level.is_set(R.RETRIEVE_FOREIGN_KEYS):
                for schema in schemas:
                    self._crawl_foreign_keys(catalog, schema, level)

        if level.is_set(R.RETRIEVE_ROUTINES):
            for schema in schemas:
                self._crawl_routines(catalog, schema, level)

        if level.is_set(R.RETRIEVE_SEQUENCE_INFORMATION):
            for schema in schemas:
                self._crawl_sequences(catalog, schema)

        if level.is_set(R.RETRIEVE_SYNONYM_INFORMATION):
            for schema in schemas:
                self._crawl_synonyms(catalog, schema)

        if level.is_set(R.RETRIEVE_DATABASE_USERS):
            for row in self.provider.database_users():
                user = DatabaseUser(row["user_name"])
                for name, value in (row.get("attributes") or {}).items():
                    user.set_attribute(name, value)
                catalog.add_database_user(user)

    # Database and driver

    def _crawl_database_info(self, catalog: Catalog, level: SchemaInfoLevel) -> None:
        if level.is_set(R.RETRIEVE_DATABASE_INFO):
            info = self.provider.database_info()
            catalog.database_info = DatabaseInfo(
                product_name=info.get("product_name") or "",
                product_version=str(info.get("product_version") or ""),
                user_name=info.get("user_name") or "",
            )
            if level.is_set(R.RETRIEVE_ADDITIONAL_DATABASE_INFO):
                catalog.database_info.properties = dict(self.provider.database_properties())
            if level.is_set(R.RETRIEVE_SERVER_INFO):
                catalog.database_info.server_info = dict(self.provider.server_info())

        if level.is_set(R.RETRIEVE_DRIVER_INFO):
            info = self.provider.driver_info()
            catalog.driver_info = DriverInfo(
                driver_name=info.get("driver_name") or "",
                driver_version=str(info.get("driver_version") or ""),
                driver_class_name=info.get("driver_class_name") or "",
                connection_url=info.get("connection_url") or "",
                compliant=bool(info.get("compliant", False)),
            )
            if level.is_set(R.RETRIEVE_ADDITIONAL_DRIVER_INFO):
                catalog.driver_info.properties = dict(self.provider.driver_properties())

    # Column data types

    def _column_data_type_from_row(
        self,
        catalog: Catalog,
        schema: SchemaReference,
        row: Row,
        data_type_type: DataTypeType,
    ) -> ColumnDataType:
        data_type = ColumnDataType(
            schema,
            row["name"],
            data_type_type,
            row.get("type_code") if row.get("type_code") is not None else SqlType.OTHER,
        )
        data_type.precision = row.get("precision")
        data_type.nullable = bool(row.get("nullable", True))
        data_type.auto_incrementable = bool(row.get("auto_incrementable", False))
        data_type.case_sensitive = bool(row.get("case_sensitive", False))
        data_type.fixed_precision_scale = bool(row.get("fixed_precision_scale", False))
        data_type.unsigned = bool(row.get("unsigned", False))
        data_type.literal_prefix = row.get("literal_prefix")
        data_type.literal_suffix = row.get("literal_suffix")
        data_type.create_parameters = row.get("create_parameters")
        if row.get("base_type_name"):
            data_type.base_type = catalog.lookup_system_column_data_type(row["base_type_name"])
        return data_type

    def _crawl_system_column_data_types(self, catalog: Catalog) -> None:
        count = 0
        for row in self.provider.system_column_data_types():
            catalog.add_column_data_type(
                self._column_data_type_from_row(catalog, SchemaReference(), row, DataTypeType.SYSTEM)
            )
            count += 1
        logger.debug(f"Loaded {count} system column data types")

    def _crawl_user_defined_column_data_types(self, catalog: Catalog, schema: SchemaReference) -> None:
        for row in self.provider.user_defined_column_data_types(schema):
            data_type = self._column_data_type_from_row(catalog, schema, row, DataTypeType.USER_DEFINED)
            if data_type.base_type is None:
                data_type.base_type = catalog.lookup_base_column_data_type_by_type(data_type.type_code)
            catalog.add_column_data_type(data_type)

    def _resolve_column_data_type(
        self,
        catalog: Catalog,
        schema: SchemaReference,
        type_name: Optional[str],
        type_code: Optional[int],
    ) -> ColumnDataType:
        """
        Find the data type for a column or parameter: a user-defined type in the
        schema, then a system type by name, then the unique system type with the
        same code. Anything else gets an unresolved type that is not added to
        the catalog.
        """
        if type_name:
            found = (
                catalog.lookup_column_data_type(schema, type_name)
                or catalog.lookup_system_column_data_type(type_name)
            )
            if found is not None:
                return found

        code = int(type_code) if type_code is not None else int(SqlType.OTHER)
        if not type_name:
            found = catalog.lookup_base_column_data_type_by_type(code)
            if found is not None:
                return found

        cache_key = (schema.full_name, type_name or "", code)
        unresolved = self._unresolved_types.get(cache_key)
        if unresolved is None:
            unresolved = ColumnDataType(schema, type_name or "UNKNOWN", DataTypeType.UNKNOWN, code)
            unresolved.base_type = catalog.lookup_base_column_data_type_by_type(code)
            self._unresolved_types[cache_key] = unresolved
            logger.debug(f"Could not resolve column data type {type_name!r} ({code}) in {schema}")
        return unresolved

    # Tables

    def _lookup_table(self, catalog: Catalog, schema: SchemaReference, name: Optional[str], what: str) -> Optional[Table]:
        table = catalog.lookup_table(schema, name)
        if table is None:
            logger.debug(f"Skipping {what} for unknown table {schema}.{name}")
        return table

    def _lookup_column(self, table: Table, name: Optional[str], what: str) -> Optional[Column]:
        column = table.lookup_column(name)
        if column is None:
            logger.debug(f"Skipping {what} for unknown column {table.full_name}.{name}")
        return column

    def _crawl_tables(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        count = 0
        for row in self.provider.tables(schema):
            table_type = str(row.get("table_type") or "TABLE").upper()
            table_class = View if table_type == "VIEW" else Table
            table = table_class(schema, row["table_name"], table_type)
            table.remarks = row.get("remarks") or ""
            if level.is_set(R.RETRIEVE_ADDITIONAL_TABLE_ATTRIBUTES):
                for name, value in (row.get("attributes") or {}).items():
                    table.set_attribute(name, value)
            catalog.add_table(table)
            count += 1
        logger.info(f"Schema {schema}: {count} tables")

    def _crawl_table_details(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        if level.is_set(R.RETRIEVE_TABLE_COLUMNS):
            self._crawl_columns(catalog, schema, level)

        if level.is_set(R.RETRIEVE_VIEW_INFORMATION):
            for row in self.provider.view_information(schema):
                view = self._lookup_table(catalog, schema, row.get("table_name"), "view information")
                if isinstance(view, View):
                    view.definition = row.get("definition") or view.definition
                    view.updatable = bool(row.get("updatable", False))
                    view.check_option = row.get("check_option")

        if level.is_set(R.RETRIEVE_TABLE_DEFINITIONS_INFORMATION):
            for row in self.provider.table_definitions(schema):
                table = self._lookup_table(catalog, schema, row.get("table_name"), "definition")
                if table is not None and not table.definition:
                    table.definition = row.get("definition") or ""

        if level.is_set(R.RETRIEVE_PRIMARY_KEYS):
            self._crawl_primary_keys(catalog, schema, level)

        if level.is_set(R.RETRIEVE_INDEXES):
            self._crawl_indexes(catalog, schema, level)

        if level.is_set(R.RETRIEVE_TABLE_CONSTRAINT_INFORMATION):
            self._crawl_table_constraints(catalog, schema, level)

        if level.is_set(R.RETRIEVE_TABLE_PRIVILEGES):
            for row in self.provider.table_privileges(schema):
                table = self._lookup_table(catalog, schema, row.get("table_name"), "privilege")
                if table is not None:
                    privilege = table.add_privilege(Privilege(table.key(), row["privilege"]))
                    privilege.add_grant(row.get("grantor"), row.get("grantee"), bool(row.get("is_grantable")))

        if level.is_set(R.RETRIEVE_TABLE_COLUMN_PRIVILEGES):
            for row in self.provider.column_privileges(schema):
                table = self._lookup_table(catalog, schema, row.get("table_name"), "column privilege")
                if table is None:
                    continue
                column = self._lookup_column(table, row.get("column_name"), "column privilege")
                if column is not None:
                    privilege = column.add_privilege(Privilege(column.key(), row["privilege"]))
                    privilege.add_grant(row.get("grantor"), row.get("grantee"), bool(row.get("is_grantable")))

    def _crawl_columns(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        for row in self.provider.columns(schema):
            table = self._lookup_table(catalog, schema, row.get("table_name"), "column")
            if table is None:
                continue
            column = Column(table.key(), row["column_name"])
            column.ordinal_position = int(row.get("ordinal_position") or 0)
            column.column_data_type = self._resolve_column_data_type(
                catalog, schema, row.get("type_name"), row.get("type_code")
            )
            column.size = row.get("size")
            column.decimal_digits = row.get("decimal_digits")
            column.nullable = bool(row.get("nullable", True))
            column.default_value = row.get("default_value")
            column.auto_incremented = bool(row.get("auto_incremented", False))
            column.generated = bool(row.get("generated", False))
            column.hidden = bool(row.get("hidden", False))
            column.remarks = row.get("remarks") or ""
            if level.is_set(R.RETRIEVE_ADDITIONAL_COLUMN_ATTRIBUTES):
                for name, value in (row.get("attributes") or {}).items():
                    column.set_attribute(name, value)
            table.add_column(column)

    def _crawl_primary_keys(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        for (table_name, constraint_name), rows in _group(
            self.provider.primary_keys(schema), "table_name", "constraint_name"
        ).items():
            table = self._lookup_table(catalog, schema, table_name, "primary key")
            if table is None:
                continue
            primary_key = PrimaryKey(table.key(), constraint_name or f"PK_{table.name}")
            for position, row in enumerate(rows, start=1):
                column = self._lookup_column(table, row.get("column_name"), "primary key")
                if column is None:
                    continue
                column.part_of_primary_key = True
                primary_key.add_column(
                    TableConstraintColumn(column.key(), int(row.get("key_sequence") or position))
                )
                if level.is_set(R.RETRIEVE_PRIMARY_KEY_DEFINITIONS) and row.get("definition"):
                    primary_key.definition = row["definition"]
            table.set_primary_key(primary_key)

    def _crawl_indexes(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        with_information = level.is_set(R.RETRIEVE_INDEX_INFORMATION)
        with_columns = level.is_set(R.RETRIEVE_INDEX_COLUMN_INFORMATION)
        for (table_name, index_name), rows in _group(
            self.provider.indexes(schema), "table_name", "index_name"
        ).items():
            table = self._lookup_table(catalog, schema, table_name, "index")
            if table is None:
                continue
            first = rows[0]
            index = table.add_index(Index(table.key(), index_name))
            index.unique = bool(first.get("unique", False))
            if with_information:
                index.index_type = first.get("index_type")
                index.cardinality = int(first.get("cardinality") or 0)
                index.pages = int(first.get("pages") or 0)
                index.definition = first.get("definition") or ""
            for position, row in enumerate(rows, start=1):
                column = self._lookup_column(table, row.get("column_name"), "index")
                if column is None:
                    continue
                column.part_of_index = True
                if index.unique:
                    column.part_of_unique_index = True
                sort_sequence = (
                    _parse_enum(IndexColumnSortSequence, row.get("sort_sequence"), IndexColumnSortSequence.UNKNOWN)
                    if with_columns
                    else IndexColumnSortSequence.UNKNOWN
                )
                index.add_column(IndexColumn(
                    column.key(), int(row.get("ordinal_position") or position), sort_sequence
                ))

    def _crawl_table_constraints(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        with_definitions = level.is_set(R.RETRIEVE_TABLE_CONSTRAINT_DEFINITIONS)
        for (table_name, constraint_name), rows in _group(
            self.provider.table_constraints(schema), "table_name", "constraint_name"
        ).items():
            table = self._lookup_table(catalog, schema, table_name, "table constraint")
            if table is None:
                continue
            first = rows[0]
            constraint_type = _parse_enum(TableConstraintType, first.get("constraint_type"), TableConstraintType.UNKNOWN)
            if constraint_type in (TableConstraintType.PRIMARY_KEY, TableConstraintType.FOREIGN_KEY):
                # Primary and foreign keys are crawled on their own
                continue
            constraint = table.add_table_constraint(TableConstraint(table.key(), constraint_name, constraint_type))
            constraint.deferrable = bool(first.get("deferrable", False))
            constraint.initially_deferred = bool(first.get("initially_deferred", False))
            if with_definitions:
                constraint.definition = first.get("definition") or ""
            for position, row in enumerate(rows, start=1):
                if row.get("column_name") is None:
                    continue
                column = self._lookup_column(table, row["column_name"], "table constraint")
                if column is not None:
                    constraint.add_column(
                        TableConstraintColumn(column.key(), int(row.get("ordinal_position") or position))
                    )

    def _crawl_foreign_keys(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        count = 0
        for (table_name, fk_name), rows in _group(
            self.provider.foreign_keys(schema), "fk_table_name", "foreign_key_name"
        ).items():
            fk_table = self._lookup_table(catalog, schema, table_name, "foreign key")
            if fk_table is None:
                continue

            first = rows[0]
            pk_schema = SchemaReference(first.get("pk_catalog_name"), first.get("pk_schema_name"))
            if pk_schema.is_system:
                pk_schema = schema
            pk_table = catalog.lookup_table(pk_schema, first.get("pk_table_name"))
            pk_table_key = (
                pk_table.key() if pk_table is not None
                else NamedObjectKey.of(pk_schema.full_name, first.get("pk_table_name"))
            )

            foreign_key = ForeignKey(fk_name)
            for position, row in enumerate(rows, start=1):
                fk_column = self._lookup_column(fk_table, row.get("fk_column_name"), "foreign key")
                if fk_column is None or not row.get("pk_column_name"):
                    continue
                fk_column.part_of_foreign_key = True
                foreign_key.add_column_reference(ForeignKeyColumnReference(
                    int(row.get("key_sequence") or position),
                    ColumnReference(fk_table.key(), fk_column.name),
                    ColumnReference(pk_table_key, row["pk_column_name"]),
                ))
            if not foreign_key.column_references:
                logger.warning(f"Foreign key {fk_name} on {fk_table.full_name} has no usable columns")
                continue

            foreign_key.update_rule = ForeignKeyRule.parse(first.get("update_rule"))
            foreign_key.delete_rule = ForeignKeyRule.parse(first.get("delete_rule"))
            foreign_key.deferrable = bool(first.get("deferrable", False))
            foreign_key.initially_deferred = bool(first.get("initially_deferred", False))
            if level.is_set(R.RETRIEVE_FOREIGN_KEY_DEFINITIONS):
                foreign_key.definition = first.get("definition") or ""

            fk_table.add_foreign_key(foreign_key)
            if pk_table is not None and pk_table is not fk_table:
                pk_table.add_foreign_key(foreign_key)
            count += 1
        logger.debug(f"Schema {schema}: {count} foreign keys")

    # Routines, sequences, synonyms

    def _crawl_routines(self, catalog: Catalog, schema: SchemaReference, level: SchemaInfoLevel) -> None:
        for row in self.provider.routines(schema):
            routine_type = str(row.get("routine_type") or "").lower()
            routine_class = {"procedure": Procedure, "function": Function}.get(routine_type, Routine)
            routine = routine_class(schema, row["routine_name"], row.get("specific_name"))
            routine.return_type = row.get("return_type")
            routine.remarks = row.get("remarks") or ""
            if level.is_set(R.RETRIEVE_ROUTINE_INFORMATION):
                routine.definition = row.get("definition") or ""
            catalog.add_routine(routine)

        if not level.is_set(R.RETRIEVE_ROUTINE_PARAMETERS):
            return
        for row in self.provider.routine_parameters(schema):
            routine_key = NamedObjectKey.of(
                schema.full_name, row.get("routine_name"), row.get("specific_name") or row.get("routine_name")
            )
            routine = catalog.lookup_routine_by_key(routine_key)
            if routine is None:
                logger.debug(f"Skipping parameter for unknown routine {routine_key.dotted()}")
                continue
            parameter = RoutineParameter(routine.key(), row["parameter_name"])
            parameter.ordinal_position = int(row.get("ordinal_position") or 0)
            parameter.mode = _parse_enum(ParameterMode, row.get("mode"), ParameterMode.UNKNOWN)
            parameter.column_data_type = self._resolve_column_data_type(
                catalog, schema, row.get("type_name"), row.get("type_code")
            )
            parameter.size = row.get("size")
            parameter.decimal_digits = row.get("decimal_digits")
            parameter.nullable = bool(row.get("nullable", True))
            routine.add_parameter(parameter)

    def _crawl_sequences(self, catalog: Catalog, schema: SchemaReference) -> None:
        for row in self.provider.sequences(schema):
            sequence = Sequence(schema, row["sequence_name"])
            sequence.increment = int(row.get("increment") or 1)
            sequence.minimum_value = row.get("minimum_value")
            sequence.maximum_value = row.get("maximum_value")
            sequence.cycle = bool(row.get("cycle", False))
            catalog.add_sequence(sequence)

    def _crawl_synonyms(self, catalog: Catalog, schema: SchemaReference) -> None:
        for row in self.provider.synonyms(schema):
            synonym = Synonym(schema, row["synonym_name"])
            target_schema = SchemaReference(row.get("referenced_catalog_name"), row.get("referenced_schema_name"))
            if row.get("referenced_object_name"):
                synonym.referenced_object_key = NamedObjectKey.of(
                    target_schema.full_name, row["referenced_object_name"]
                )
            catalog.add_synonym(synonym)


def crawl_catalog(provider: MetadataProvider, options: Optional[SchemaCrawlerOptions] = None) -> Catalog:
    """Crawl a catalog in one call."""
    return SchemaCrawler(provider, options).crawl()
