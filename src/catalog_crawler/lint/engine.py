"""
Runs a configured, ordered set of linters against a catalog.

Each linter runs in isolation: an exception from one linter is logged and
turned into a ``linter-failure`` lint, and the remaining linters still run.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from catalog_crawler.catalog import Catalog
from catalog_crawler.lint.base import Linter
from catalog_crawler.lint.core import Lint, LintCollector, LinterConfig, LintSeverity
from catalog_crawler.lint.registry import lookup_linter, registered_linter_ids

logger = logging.getLogger(__name__)

LINTER_FAILURE_ID = "linter-failure"


class Linters:
    """
    Ordered set of linter instances.

    Configured linters come first, in configuration order. When
    ``run_all_linters`` is set, every registered linter that the
    configuration does not mention is added after them with its defaults.
    A configuration entry with ``run: false`` disables that linter.

    Args:
        linter_configs: Linter configurations, in the order they should run
        run_all_linters: Also run registered linters that are not configured
    """

    def __init__(self, linter_configs: Optional[Iterable[LinterConfig]] = None, run_all_linters: bool = True):
        configs = list(linter_configs or [])
        self._linters: List[Linter] = []
        self._collector = LintCollector()

        mentioned = set()
        for config in configs:
            linter_class = lookup_linter(config.linter_id)
            mentioned.add(config.linter_id)
            if not config.run_linter:
                logger.debug(f"Linter {config.linter_id} is disabled")
                continue
            self._linters.append(linter_class(config))

        if run_all_linters:
            for linter_id in registered_linter_ids():
                if linter_id not in mentioned:
                    self._linters.append(lookup_linter(linter_id)())

        logger.info(f"Configured {len(self._linters)} linters")

    @property
    def linters(self) -> List[Linter]:
        return list(self._linters)

    @property
    def collector(self) -> LintCollector:
        return self._collector

    def lint(self, catalog: Catalog, connection: Any = None) -> LintCollector:
        """
        Run every linter and collect the lints.

        Args:
            catalog: Catalog to inspect; it is not modified
            connection: Optional DB-API connection for linters that query data

        Returns:
            The collector, holding lints in linter order then discovery order
        """
        self._collector.clear()
        for linter in self._linters:
            try:
                lints = linter.lint(catalog, connection)
            except Exception as exc:
                logger.error(f"Linter {linter.linter_id} failed: {exc}", exc_info=True)
                # Partial results of a failed linter are not reported or counted
                linter.clear_lints()
                lints = [self._failure_lint(linter, catalog, exc)]
            self._collector.add_all(lints)

        logger.info(f"Found {len(self._collector)} lints")
        return self._collector

    @staticmethod
    def _failure_lint(linter: Linter, catalog: Catalog, exc: Exception) -> Lint:
        return Lint(
            linter_id=LINTER_FAILURE_ID,
            linter_instance_id=linter.linter_instance_id,
            object_name=catalog.full_name,
            object_type=catalog.object_type,
            severity=LintSeverity.CRITICAL,
            message="linter failed",
            value=f"{linter.linter_id}: {exc}",
        )

    def exceeded_thresholds(self) -> List[Linter]:
        """Linters that reported more lints than their threshold allows."""
        return [linter for linter in self._linters if linter.exceeds_threshold]

    def __len__(self) -> int:
        return len(self._linters)

    def __iter__(self):
        return iter(self._linters)
