"""
Lint engine: linters, their configuration and the runner that collects lints.
"""

from catalog_crawler.lint.core import Lint, LintCollector, LinterConfig, LintSeverity
from catalog_crawler.lint.base import BaseTableLinter, Linter
from catalog_crawler.lint.cycles import TableCyclesLinter, find_table_cycles
from catalog_crawler.lint.registry import (
    BUILTIN_LINTERS,
    lookup_linter,
    register_linter,
    registered_linter_ids,
)
from catalog_crawler.lint.engine import LINTER_FAILURE_ID, Linters

__all__ = [
    "Lint",
    "LintCollector",
    "LinterConfig",
    "LintSeverity",
    "BaseTableLinter",
    "Linter",
    "TableCyclesLinter",
    "find_table_cycles",
    "BUILTIN_LINTERS",
    "lookup_linter",
    "register_linter",
    "registered_linter_ids",
    "LINTER_FAILURE_ID",
    "Linters",
]
