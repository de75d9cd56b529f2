"""
Cycle detection over foreign key relationships.

Tables are nodes and every foreign key is an edge from the referencing
(child) table to the referenced (parent) table. A cycle is a strongly
connected component of two or more tables. Only tables in the retained,
filtered table set take part, so a cycle is reported only when every table
on it survived reduction.

Self-referencing foreign keys do not form cycles unless the linter is
configured with ``include-self-references: true``, in which case each
self-referencing table is reported as a cycle of one.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Hashable, Iterator, List, Set, Tuple

from catalog_crawler.catalog import Catalog
from catalog_crawler.lint.base import Linter
from catalog_crawler.lint.core import LintSeverity
from catalog_crawler.models import Table

logger = logging.getLogger(__name__)


def strongly_connected_components(graph: Dict[Hashable, List[Hashable]]) -> List[List[Hashable]]:
    """
    Find strongly connected components with an iterative Tarjan traversal.

    Args:
        graph: Adjacency lists; every neighbour must also be a key

    Returns:
        Components in the order they are completed
    """
    index: Dict[Hashable, int] = {}
    lowlink: Dict[Hashable, int] = {}
    on_stack: Set[Hashable] = set()
    stack: List[Hashable] = []
    components: List[List[Hashable]] = []
    counter = 0

    for root in graph:
        if root in index:
            continue
        index[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work: List[Tuple[Hashable, Iterator[Hashable]]] = [(root, iter(graph[root]))]

        while work:
            node, neighbours = work[-1]
            descended = False
            for neighbour in neighbours:
                if neighbour not in index:
                    index[neighbour] = lowlink[neighbour] = counter
                    counter += 1
                    stack.append(neighbour)
                    on_stack.add(neighbour)
                    work.append((neighbour, iter(graph[neighbour])))
                    descended = True
                    break
                if neighbour in on_stack:
                    lowlink[node] = min(lowlink[node], index[neighbour])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == index[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    return components


def table_graph(tables: List[Table]) -> Tuple[Dict[str, List[str]], Set[str]]:
    """
    Build child-to-parent adjacency lists over the given tables.

    Returns:
        Tuple of (adjacency lists keyed by table full name, names of
        self-referencing tables)
    """
    by_key = {t.key(): t.full_name for t in tables}
    graph: Dict[str, List[str]] = {name: [] for name in sorted(by_key.values())}
    self_referencing: Set[str] = set()

    for table in tables:
        name = table.full_name
        for parent_key in table.referenced_table_keys:
            parent = by_key.get(parent_key)
            if parent is None:
                continue
            if parent == name:
                self_referencing.add(name)
            elif parent not in graph[name]:
                graph[name].append(parent)

    for neighbours in graph.values():
        neighbours.sort()
    return graph, self_referencing


def find_table_cycles(tables: List[Table], include_self_references: bool = False) -> List[List[str]]:
    """
    Return each cycle as a sorted list of table full names, cycles sorted by
    their first member.
    """
    graph, self_referencing = table_graph(tables)
    cycles = [sorted(c) for c in strongly_connected_components(graph) if len(c) > 1]
    if include_self_references:
        cycles.extend([name] for name in sorted(self_referencing))
    return sorted(cycles)


class TableCyclesLinter(Linter):
    linter_id = "table-cycles"
    description = "Cycles in foreign key relationships between tables"
    default_severity = LintSeverity.HIGH

    def configure(self, config: Dict[str, Any]) -> None:
        self.include_self_references = bool(config.get("include-self-references", False))

    def check(self, catalog: Catalog, connection: Any = None) -> None:
        tables = self.tables(catalog)
        cycles = find_table_cycles(tables, self.include_self_references)
        logger.info(f"Found {len(cycles)} table cycles across {len(tables)} tables")
        for cycle in cycles:
            self.add_lint(catalog, "cycles in table relationships", cycle)
