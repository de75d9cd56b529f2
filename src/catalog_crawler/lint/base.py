"""
Linter base classes.

A linter inspects a catalog, and optionally a live connection, and reports
lints. Linters never change the catalog.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from catalog_crawler.catalog import Catalog
from catalog_crawler.lint.core import Lint, LinterConfig, LintSeverity
from catalog_crawler.models import Column, NamedObject, Table

logger = logging.getLogger(__name__)


class Linter(ABC):
    """
    Base class for all linters.

    Subclasses set ``linter_id``, ``description`` and ``default_severity``,
    read their settings in ``configure`` and report findings from ``check``
    with ``add_lint``.
    """

    linter_id: str = ""
    description: str = ""
    default_severity: LintSeverity = LintSeverity.MEDIUM

    def __init__(self, config: Optional[LinterConfig] = None):
        self.config = config or LinterConfig(self.linter_id)
        self.linter_instance_id = uuid.uuid4().hex
        self.severity = self.config.severity or self.default_severity
        self.threshold = self.config.threshold
        self.table_rule = self.config.table_rule
        self.column_rule = self.config.column_rule
        self._lints: List[Lint] = []
        self.configure(self.config.config)

    def configure(self, config: Dict[str, Any]) -> None:
        """Read linter-specific settings from the free-form config mapping."""

    def lint(self, catalog: Catalog, connection: Any = None) -> List[Lint]:
        """
        Run the linter.

        Args:
            catalog: Catalog to inspect
            connection: Optional DB-API connection for linters that query data

        Returns:
            Lints in the order they were found
        """
        self._lints = []
        self.check(catalog, connection)
        logger.debug(f"Linter {self.linter_id} found {len(self._lints)} lints")
        return list(self._lints)

    @abstractmethod
    def check(self, catalog: Catalog, connection: Any = None) -> None:
        ...

    def add_lint(self, obj: NamedObject, message: str, value: Any = None) -> None:
        self._lints.append(Lint(
            linter_id=self.linter_id,
            linter_instance_id=self.linter_instance_id,
            object_name=obj.full_name,
            object_type=obj.object_type,
            severity=self.severity,
            message=message,
            value=value,
        ))

    def clear_lints(self) -> None:
        self._lints = []

    @property
    def lint_count(self) -> int:
        return len(self._lints)

    @property
    def exceeds_threshold(self) -> bool:
        return self.lint_count > self.threshold

    def tables(self, catalog: Catalog) -> List[Table]:
        """Retained tables that pass the table inclusion pattern."""
        return [t for t in catalog.get_tables() if self.table_rule.test(t.full_name)]

    def columns(self, table: Table) -> List[Column]:
        """Columns of a table that pass the column inclusion pattern."""
        return [c for c in table.columns if self.column_rule.test(c.full_name)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.linter_id!r}, severity={self.severity.value})"


class BaseTableLinter(Linter):
    """Linter that looks at one table at a time."""

    def check(self, catalog: Catalog, connection: Any = None) -> None:
        for table in self.tables(catalog):
            self.lint_table(table, catalog, connection)

    @abstractmethod
    def lint_table(self, table: Table, catalog: Catalog, connection: Any = None) -> None:
        ...
