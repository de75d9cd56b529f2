"""
Reducers narrow a populated catalog to the objects selected by inclusion rules.

Each reducer works on the container for one ObjectKind and is dispatched by
``Catalog.reduce``, which then restores referential consistency (objects of
dropped schemas are dropped, foreign keys to dropped tables are pruned).

The table reducer also keeps tables related to matching tables through
foreign keys, up to a configured parent and child depth, and repeats the
expansion until no further table is added.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Set

from catalog_crawler.catalog import Catalog, NamedObjectList, ObjectKind
from catalog_crawler.errors import ConfigurationError
from catalog_crawler.inclusion import IncludeAll, InclusionRule
from catalog_crawler.models import NamedObjectKey, Routine, Table
from catalog_crawler.options import FilterOptions, GrepOptions, SchemaCrawlerOptions

logger = logging.getLogger(__name__)


class Reducer(ABC):
    """Removes objects of one kind from a catalog container."""

    kind: ObjectKind = ObjectKind.CATALOG

    @abstractmethod
    def reduce(self, objects: NamedObjectList, catalog: Catalog) -> None:
        """
        Narrow the container to the objects this reducer keeps.

        Args:
            objects: Container holding the objects of this reducer's kind
            catalog: The catalog that owns the container
        """
        ...


class RuleReducer(Reducer):
    """Keeps objects whose full name passes an inclusion rule."""

    def __init__(self, rule: InclusionRule):
        if rule is None:
            raise ConfigurationError("No inclusion rule provided")
        self.rule = rule

    def matches(self, obj) -> bool:
        return self.rule.test(obj.full_name)

    def reduce(self, objects: NamedObjectList, catalog: Catalog) -> None:
        keep = {obj.key() for obj in objects if self.matches(obj)}
        removed = objects.retain(keep)
        logger.info(f"Reduced {self.kind.value}s: kept {len(keep)}, removed {removed}")


class SchemaReducer(RuleReducer):
    kind = ObjectKind.SCHEMA


class SequenceReducer(RuleReducer):
    kind = ObjectKind.SEQUENCE


class SynonymReducer(RuleReducer):
    kind = ObjectKind.SYNONYM


class RoutineReducer(RuleReducer):
    """Keeps routines by name, routine type, and optionally parameter grep."""

    kind = ObjectKind.ROUTINE

    def __init__(
        self,
        rule: InclusionRule,
        routine_types: Optional[Iterable[str]] = None,
        grep_options: Optional[GrepOptions] = None,
    ):
        super().__init__(rule)
        self.routine_types = [t.lower() for t in routine_types] if routine_types is not None else None
        self.grep_options = grep_options or GrepOptions()

    def matches(self, routine: Routine) -> bool:
        if self.routine_types is not None and routine.routine_type.value not in self.routine_types:
            return False
        if not self.rule.test(routine.full_name):
            return False
        return self._grep(routine)

    def _grep(self, routine: Routine) -> bool:
        grep = self.grep_options
        if not grep.is_grep_routines:
            return True
        hit = False
        if grep.routine_parameter_rule is not None:
            hit = any(grep.routine_parameter_rule.test(p.full_name) for p in routine.parameters)
        if not hit and grep.definition_rule is not None:
            hit = _grep_text(grep.definition_rule, routine.definition, routine.remarks)
        return hit != grep.invert_match


class TableReducer(Reducer):
    """
    Keeps tables that match the name rule, table types and grep options,
    plus their parent and child tables up to the configured depths.
    """

    kind = ObjectKind.TABLE

    def __init__(
        self,
        rule: Optional[InclusionRule] = None,
        table_types: Optional[Iterable[str]] = None,
        grep_options: Optional[GrepOptions] = None,
        filter_options: Optional[FilterOptions] = None,
    ):
        self.rule = rule
        self.table_types = [t.upper() for t in table_types] if table_types is not None else None
        self.grep_options = grep_options or GrepOptions()
        self.filter_options = filter_options or FilterOptions()

    def matches(self, table: Table) -> bool:
        if self.table_types is not None and table.table_type.upper() not in self.table_types:
            return False
        if self.rule is not None and not self.rule.test(table.full_name):
            return False
        return self._grep(table)

    def _grep(self, table: Table) -> bool:
        grep = self.grep_options
        if not grep.is_grep_tables:
            return True
        hit = False
        if grep.column_rule is not None:
            hit = any(grep.column_rule.test(c.full_name) for c in table.columns)
        if not hit and grep.definition_rule is not None:
            hit = _grep_text(grep.definition_rule, table.definition, table.remarks)
        return hit != grep.invert_match

    def reduce(self, objects: NamedObjectList, catalog: Catalog) -> None:
        tables: Dict[NamedObjectKey, Table] = {t.key(): t for t in objects}
        matched = {key for key, table in tables.items() if self.matches(table)}

        keep = set(matched)
        keep |= self._expand(matched, tables, parents=True, depth=self.filter_options.parent_table_filter_depth)
        keep |= self._expand(matched, tables, parents=False, depth=self.filter_options.child_table_filter_depth)

        removed = objects.retain(keep)
        logger.info(
            f"Reduced tables: {len(matched)} matched, "
            f"{len(keep) - len(matched)} kept as related, {removed} removed"
        )

    def _expand(
        self,
        start: Set[NamedObjectKey],
        tables: Dict[NamedObjectKey, Table],
        parents: bool,
        depth: int,
    ) -> Set[NamedObjectKey]:
        """Follow relationships level by level until depth is reached or nothing new is found."""
        seen = set(start)
        frontier = set(start)
        level = 0
        while frontier and (depth < 0 or level < depth):
            found: Set[NamedObjectKey] = set()
            for key in frontier:
                table = tables[key]
                neighbours = table.referenced_table_keys if parents else table.referencing_table_keys
                found.update(n for n in neighbours if n in tables and n not in seen)
            seen |= found
            frontier = found
            level += 1
        return seen - start


def _grep_text(rule: InclusionRule, *texts: Optional[str]) -> bool:
    return any(text and rule.test(text) for text in texts)


def build_reducers(options: SchemaCrawlerOptions) -> List[Reducer]:
    """
    Build the reducers needed for the given options, in the order they must
    run: schemas first, since dropping a schema drops what it owns.
    """
    limit = options.limit_options
    reducers: List[Reducer] = []
    if limit.schema_rule is not None:
        reducers.append(SchemaReducer(limit.schema_rule))
    if options.needs_table_reduction:
        reducers.append(TableReducer(
            rule=limit.table_rule,
            table_types=limit.table_types,
            grep_options=options.grep_options,
            filter_options=options.filter_options,
        ))
    if options.needs_routine_reduction:
        reducers.append(RoutineReducer(
            limit.routine_rule or IncludeAll(),
            routine_types=limit.routine_types,
            grep_options=options.grep_options,
        ))
    if limit.sequence_rule is not None:
        reducers.append(SequenceReducer(limit.sequence_rule))
    if limit.synonym_rule is not None:
        reducers.append(SynonymReducer(limit.synonym_rule))
    return reducers


def reduce_catalog(catalog: Catalog, options: SchemaCrawlerOptions) -> Catalog:
    """
    Reduce a catalog in place with the rules in the options. Kinds without a
    configured rule are left alone. Applying the same options twice has the
    same effect as applying them once.
    """
    for reducer in build_reducers(options):
        catalog.reduce(reducer.kind, reducer)
    return catalog
