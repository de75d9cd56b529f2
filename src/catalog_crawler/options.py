"""
Options that control a crawl: what to load and what to keep.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from catalog_crawler.inclusion import InclusionRule
from catalog_crawler.info_level import SchemaInfoLevel


@dataclass
class LimitOptions:
    """
    Inclusion rules per object kind. A rule left as None means the kind is
    not reduced at all.
    """
    schema_rule: Optional[InclusionRule] = None
    table_rule: Optional[InclusionRule] = None
    routine_rule: Optional[InclusionRule] = None
    sequence_rule: Optional[InclusionRule] = None
    synonym_rule: Optional[InclusionRule] = None

    # Table types (TABLE, VIEW, ...) and routine types (procedure, function)
    table_types: Optional[List[str]] = None
    routine_types: Optional[List[str]] = None

    def __post_init__(self):
        if self.table_types is not None:
            self.table_types = [t.upper() for t in self.table_types]
        if self.routine_types is not None:
            self.routine_types = [t.lower() for t in self.routine_types]


@dataclass
class GrepOptions:
    """Keep tables and routines by the content of their columns, parameters or definitions."""
    column_rule: Optional[InclusionRule] = None
    routine_parameter_rule: Optional[InclusionRule] = None
    definition_rule: Optional[InclusionRule] = None
    invert_match: bool = False

    @property
    def is_grep_tables(self) -> bool:
        return self.column_rule is not None or self.definition_rule is not None

    @property
    def is_grep_routines(self) -> bool:
        return self.routine_parameter_rule is not None or self.definition_rule is not None


@dataclass
class FilterOptions:
    """
    Depth of parent and child tables to keep alongside matching tables.

    A depth of -1 follows relationships until nothing more is added.
    """
    parent_table_filter_depth: int = 0
    child_table_filter_depth: int = 0


@dataclass
class LoadOptions:
    """How much metadata to retrieve."""
    schema_info_level: SchemaInfoLevel = field(default_factory=SchemaInfoLevel.standard)


@dataclass
class SchemaCrawlerOptions:
    """All options for a crawl."""
    limit_options: LimitOptions = field(default_factory=LimitOptions)
    grep_options: GrepOptions = field(default_factory=GrepOptions)
    filter_options: FilterOptions = field(default_factory=FilterOptions)
    load_options: LoadOptions = field(default_factory=LoadOptions)

    @property
    def schema_info_level(self) -> SchemaInfoLevel:
        return self.load_options.schema_info_level

    @property
    def needs_table_reduction(self) -> bool:
        limit = self.limit_options
        return (
            limit.table_rule is not None
            or limit.table_types is not None
            or self.grep_options.is_grep_tables
        )

    @property
    def needs_routine_reduction(self) -> bool:
        limit = self.limit_options
        return (
            limit.routine_rule is not None
            or limit.routine_types is not None
            or self.grep_options.is_grep_routines
        )
