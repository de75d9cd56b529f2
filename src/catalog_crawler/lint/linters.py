"""
Built-in table and column linters.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set, Tuple

from catalog_crawler.catalog import Catalog
from catalog_crawler.errors import LinterError
from catalog_crawler.inclusion import compile_pattern
from catalog_crawler.lint.base import BaseTableLinter
from catalog_crawler.lint.core import LintSeverity
from catalog_crawler.models import Column, Index, SqlType, Table

logger = logging.getLogger(__name__)

LARGE_OBJECT_TYPES = {
    SqlType.BLOB,
    SqlType.CLOB,
    SqlType.NCLOB,
    SqlType.LONGVARBINARY,
    SqlType.LONGVARCHAR,
}


def _index_column_lists(table: Table) -> List[List[str]]:
    """Column name lists of the table's indexes and primary key."""
    lists = [index.column_names for index in table.indexes]
    if table.primary_key is not None:
        lists.append(table.primary_key.column_names)
    return lists


def _is_prefix(prefix: List[str], columns: List[str]) -> bool:
    return bool(prefix) and columns[: len(prefix)] == prefix


class NoPrimaryKeyLinter(BaseTableLinter):
    linter_id = "no-primary-key"
    description = "Tables without a primary key"
    default_severity = LintSeverity.HIGH

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        if not table.is_view and table.primary_key is None:
            self.add_lint(table, "no primary key")


class NoIndexesLinter(BaseTableLinter):
    linter_id = "no-indexes"
    description = "Tables without any index"
    default_severity = LintSeverity.MEDIUM

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        if not table.is_view and not table.indexes:
            self.add_lint(table, "no indexes")


class ForeignKeyWithNoIndexLinter(BaseTableLinter):
    """An index (or the primary key) must start with the foreign key columns."""

    linter_id = "foreign-key-with-no-index"
    description = "Foreign keys whose columns are not indexed"
    default_severity = LintSeverity.MEDIUM

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        indexed = _index_column_lists(table)
        for foreign_key in table.imported_foreign_keys:
            fk_columns = [r.foreign_key_column.column_name for r in foreign_key.column_references]
            if not any(_is_prefix(fk_columns, columns) for columns in indexed):
                self.add_lint(table, "foreign key with no index", foreign_key.name)


class NullableColumnsInUniqueIndexLinter(BaseTableLinter):
    linter_id = "nullable-columns-in-unique-index"
    description = "Unique indexes that contain nullable columns"
    default_severity = LintSeverity.MEDIUM

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        for index in table.indexes:
            if not index.unique:
                continue
            columns = [table.lookup_column(name) for name in index.column_names]
            if any(column is not None and column.nullable for column in columns):
                self.add_lint(table, "unique index with nullable columns", index.name)


class RedundantIndexesLinter(BaseTableLinter):
    """An index is redundant when its columns lead another index on the same table."""

    linter_id = "redundant-indexes"
    description = "Indexes covered by another index"
    default_severity = LintSeverity.HIGH

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        indexes = table.indexes
        for index in indexes:
            if self._is_redundant(index, indexes):
                self.add_lint(table, "redundant index", index.full_name)

    @staticmethod
    def _is_redundant(index: Index, indexes: List[Index]) -> bool:
        columns = index.column_names
        for other in indexes:
            if other is index:
                continue
            other_columns = other.column_names
            if len(other_columns) > len(columns) and _is_prefix(columns, other_columns):
                return True
            # Identical column lists: keep the first one
            if other_columns == columns and indexes.index(other) < indexes.index(index):
                return True
        return False


class SingleColumnLinter(BaseTableLinter):
    linter_id = "single-column"
    description = "Tables with only one column"
    default_severity = LintSeverity.LOW

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        if len(table.columns) == 1:
            self.add_lint(table, "single column")


class ColumnTypesLinter(BaseTableLinter):
    """Columns that share a name across tables should share a data type."""

    linter_id = "column-types"
    description = "Columns with the same name but different data types"
    default_severity = LintSeverity.MEDIUM

    def configure(self, config: Dict[str, Any]) -> None:
        self._mismatched: Set[str] = set()

    def check(self, catalog: Catalog, connection: Any = None) -> None:
        types: Dict[str, Set[Tuple[str, Optional[int]]]] = defaultdict(set)
        tables = self.tables(catalog)
        for table in tables:
            for column in self.columns(table):
                types[column.name.lower()].add((column.type_name, column.size))
        self._mismatched = {name for name, found in types.items() if len(found) > 1}
        for table in tables:
            self.lint_table(table, catalog, connection)

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        for column in self.columns(table):
            if column.name.lower() in self._mismatched:
                self.add_lint(table, "column with same name but different data types", column.name)


class ForeignKeyDataTypeMismatchLinter(BaseTableLinter):
    linter_id = "foreign-key-data-type-mismatch"
    description = "Foreign key columns whose type differs from the referenced column"
    default_severity = LintSeverity.HIGH

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        for foreign_key in table.imported_foreign_keys:
            parent = catalog.lookup_table_by_key(foreign_key.primary_table_key)
            if parent is None:
                continue
            for reference in foreign_key.column_references:
                fk_column = table.lookup_column(reference.foreign_key_column.column_name)
                pk_column = parent.lookup_column(reference.primary_key_column.column_name)
                if fk_column is None or pk_column is None:
                    continue
                if not self._same_type(fk_column, pk_column):
                    self.add_lint(table, "foreign key data type different from primary key", foreign_key.name)
                    break

    @staticmethod
    def _same_type(a: Column, b: Column) -> bool:
        return a.type_name == b.type_name and a.size == b.size and a.decimal_digits == b.decimal_digits


class NoRemarksLinter(BaseTableLinter):
    linter_id = "no-remarks"
    description = "Tables and columns without remarks"
    default_severity = LintSeverity.LOW

    def configure(self, config: Dict[str, Any]) -> None:
        self.check_columns = bool(config.get("check-columns", True))

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        if not table.remarks.strip():
            self.add_lint(table, "should have remarks")
        if not self.check_columns:
            return
        for column in self.columns(table):
            if not column.remarks.strip():
                self.add_lint(column, "should have remarks")


class BadColumnNamesLinter(BaseTableLinter):
    """Column names matching the configured ``bad-column-names`` pattern."""

    linter_id = "bad-column-names"
    description = "Columns with names that match a disallowed pattern"
    default_severity = LintSeverity.MEDIUM

    def configure(self, config: Dict[str, Any]) -> None:
        self.pattern = compile_pattern(config.get("bad-column-names"))

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        if self.pattern is None:
            return
        for column in self.columns(table):
            if self.pattern.fullmatch(column.name):
                self.add_lint(table, "column with bad name", column.name)


class ForeignKeySelfReferenceLinter(BaseTableLinter):
    """A foreign key whose columns reference themselves."""

    linter_id = "foreign-key-self-reference"
    description = "Foreign keys that map columns onto the same columns"
    default_severity = LintSeverity.HIGH

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        for foreign_key in table.imported_foreign_keys:
            if not foreign_key.is_self_referencing:
                continue
            if all(
                r.foreign_key_column.column_name == r.primary_key_column.column_name
                for r in foreign_key.column_references
            ):
                self.add_lint(table, "foreign key self-references primary key", foreign_key.name)


class TooManyLargeObjectsLinter(BaseTableLinter):
    linter_id = "too-many-large-objects"
    description = "Tables with more large object columns than allowed"
    default_severity = LintSeverity.LOW

    def configure(self, config: Dict[str, Any]) -> None:
        value = config.get("max-large-objects", 1)
        try:
            self.max_large_objects = int(value)
        except (TypeError, ValueError) as exc:
            raise LinterError(f"{self.linter_id}: max-large-objects must be a number, got {value!r}") from exc

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        large = [
            c.name for c in self.columns(table)
            if c.column_data_type is not None and c.column_data_type.type_code in LARGE_OBJECT_TYPES
        ]
        if len(large) > self.max_large_objects:
            self.add_lint(table, "too many large objects", large)


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


class EmptyTableLinter(BaseTableLinter):
    """Counts rows over the live connection; does nothing without one."""

    linter_id = "empty-table"
    description = "Tables that contain no rows"
    default_severity = LintSeverity.LOW

    def check(self, catalog: Catalog, connection: Any = None) -> None:
        if connection is None:
            logger.info(f"Linter {self.linter_id} skipped: no database connection")
            return
        super().check(catalog, connection)

    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        if table.is_view:
            return
        parts = [p for p in (table.schema.catalog_name, table.schema.schema_name, table.name) if p]
        sql = f"SELECT COUNT(*) FROM {'.'.join(_quote(p) for p in parts)}"
        cursor = connection.cursor()
        try:
            cursor.execute(sql)
            (count,) = cursor.fetchone()
        finally:
            cursor.close()
        if count == 0:
            self.add_lint(table, "empty table")
