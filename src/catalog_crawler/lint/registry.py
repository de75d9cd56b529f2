"""
Registry of linters by id.

Built-in linters are registered in a fixed order, which is also the order
they run in when all linters are enabled.
"""

from __future__ import annotations

from typing import Dict, List, Type

from catalog_crawler.errors import ConfigurationError
from catalog_crawler.lint.base import Linter
from catalog_crawler.lint.cycles import TableCyclesLinter
from catalog_crawler.lint.linters import (
    BadColumnNamesLinter,
    ColumnTypesLinter,
    EmptyTableLinter,
    ForeignKeyDataTypeMismatchLinter,
    ForeignKeySelfReferenceLinter,
    ForeignKeyWithNoIndexLinter,
    NoIndexesLinter,
    NoPrimaryKeyLinter,
    NoRemarksLinter,
    NullableColumnsInUniqueIndexLinter,
    RedundantIndexesLinter,
    SingleColumnLinter,
    TooManyLargeObjectsLinter,
)

BUILTIN_LINTERS: List[Type[Linter]] = [
    TableCyclesLinter,
    NoPrimaryKeyLinter,
    NoIndexesLinter,
    ForeignKeyWithNoIndexLinter,
    NullableColumnsInUniqueIndexLinter,
    RedundantIndexesLinter,
    SingleColumnLinter,
    ColumnTypesLinter,
    ForeignKeyDataTypeMismatchLinter,
    NoRemarksLinter,
    BadColumnNamesLinter,
    ForeignKeySelfReferenceLinter,
    TooManyLargeObjectsLinter,
    EmptyTableLinter,
]

_REGISTRY: Dict[str, Type[Linter]] = {cls.linter_id: cls for cls in BUILTIN_LINTERS}


def register_linter(linter_class: Type[Linter]) -> Type[Linter]:
    """Register a linter class under its id. Usable as a class decorator."""
    if not linter_class.linter_id:
        raise ConfigurationError(f"{linter_class.__name__} has no linter id")
    _REGISTRY[linter_class.linter_id] = linter_class
    return linter_class


def lookup_linter(linter_id: str) -> Type[Linter]:
    try:
        return _REGISTRY[linter_id]
    except KeyError as exc:
        raise ConfigurationError(f"Unknown linter: {linter_id}") from exc


def registered_linter_ids() -> List[str]:
    return list(_REGISTRY)
