"""
Lint findings, their severity, per-linter configuration and the collector
that gathers findings in the order they are produced.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

from catalog_crawler.errors import ConfigurationError
from catalog_crawler.inclusion import InclusionRule, rule_from_patterns


class LintSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional[LintSeverity]:
        if value is None:
            return None
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown lint severity: {value}") from exc

    @property
    def rank(self) -> int:
        return list(LintSeverity).index(self)


@dataclass(frozen=True)
class Lint:
    """A single finding, tied to the catalog object it was raised on."""
    linter_id: str
    linter_instance_id: str
    object_name: str
    object_type: str
    severity: LintSeverity
    message: str
    value: Any = None

    @property
    def value_as_string(self) -> str:
        if self.value is None:
            return ""
        if isinstance(self.value, bool):
            return str(self.value).lower()
        if isinstance(self.value, (list, tuple, set, frozenset)):
            return ", ".join(str(v) for v in self.value)
        return str(self.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "linter_id": self.linter_id,
            "linter_instance_id": self.linter_instance_id,
            "object_name": self.object_name,
            "object_type": self.object_type,
            "severity": self.severity.value,
            "message": self.message,
            "value": self.value_as_string,
        }

    def __str__(self) -> str:
        value = self.value_as_string
        if value:
            return f"[{self.object_name}] {self.message}: {value}"
        return f"[{self.object_name}] {self.message}"


@dataclass
class LinterConfig:
    """
    Configuration for one linter instance.

    A threshold is the number of lints a linter may report before the run is
    considered failed; by default there is no limit.
    """
    linter_id: str
    run_linter: bool = True
    severity: Optional[LintSeverity] = None
    threshold: int = sys.maxsize
    table_inclusion_pattern: Optional[str] = None
    table_exclusion_pattern: Optional[str] = None
    column_inclusion_pattern: Optional[str] = None
    column_exclusion_pattern: Optional[str] = None
    config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.linter_id:
            raise ConfigurationError("Linter configuration requires an id")

    @property
    def table_rule(self) -> InclusionRule:
        return rule_from_patterns(self.table_inclusion_pattern, self.table_exclusion_pattern)

    @property
    def column_rule(self) -> InclusionRule:
        return rule_from_patterns(self.column_inclusion_pattern, self.column_exclusion_pattern)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LinterConfig:
        """Create from a configuration entry with dashed keys."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"Linter configuration must be a mapping, got {data!r}")
        linter_id = data.get("id")
        if not linter_id:
            raise ConfigurationError(f"Linter configuration without an id: {data!r}")

        threshold = data.get("threshold")
        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise ConfigurationError(f"Linter {linter_id}: config must be a mapping")
        try:
            threshold = int(threshold) if threshold is not None else sys.maxsize
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Linter {linter_id}: invalid threshold {threshold!r}") from exc

        return cls(
            linter_id=str(linter_id),
            run_linter=bool(data.get("run", True)),
            severity=LintSeverity.parse(data.get("severity")),
            threshold=threshold,
            table_inclusion_pattern=data.get("table-inclusion-pattern"),
            table_exclusion_pattern=data.get("table-exclusion-pattern"),
            column_inclusion_pattern=data.get("column-inclusion-pattern"),
            column_exclusion_pattern=data.get("column-exclusion-pattern"),
            config=dict(config),
        )


class LintCollector:
    """Ordered collection of lints. No deduplication is done here."""

    def __init__(self) -> None:
        self._lints: List[Lint] = []

    def add(self, lint: Lint) -> None:
        self._lints.append(lint)

    def add_all(self, lints: List[Lint]) -> None:
        self._lints.extend(lints)

    @property
    def lints(self) -> List[Lint]:
        return list(self._lints)

    def for_object(self, object_name: str) -> List[Lint]:
        return [lint for lint in self._lints if lint.object_name == object_name]

    def for_linter(self, linter_id: str) -> List[Lint]:
        return [lint for lint in self._lints if lint.linter_id == linter_id]

    def clear(self) -> None:
        self._lints.clear()

    def size(self) -> int:
        return len(self._lints)

    def __len__(self) -> int:
        return len(self._lints)

    def __iter__(self) -> Iterator[Lint]:
        return iter(list(self._lints))

    def to_dict(self) -> List[Dict[str, Any]]:
        return [lint.to_dict() for lint in self._lints]
