"""
YAML configuration for linters and crawl options.

Linter configuration is a list of entries, or a mapping with a ``linters``
list::

    linters:
      - id: table-cycles
        severity: critical
        config:
          include-self-references: false
      - id: no-remarks
        run: false

Crawl options select the info level and limit what is kept::

    info-level: detailed
    retrievals:
      retrieve_indexes: false
    schemas:
      exclude: .*\\.FOR_LINT
    tables:
      include: .*\\.BOOKS\\..*
    table-types: [TABLE]
    grep-columns: .*\\.AUTHORID
    parents: 1
    children: -1
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from catalog_crawler.errors import ConfigurationError
from catalog_crawler.inclusion import InclusionRule, RegularExpressionInclusionRule, RegularExpressionRule
from catalog_crawler.info_level import InfoLevel, SchemaInfoLevelBuilder
from catalog_crawler.lint.core import LinterConfig
from catalog_crawler.options import (
    FilterOptions,
    GrepOptions,
    LimitOptions,
    LoadOptions,
    SchemaCrawlerOptions,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_yaml(path: PathLike) -> Any:
    """Read a YAML file; a missing or unparseable file is a configuration error."""
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    with open(path, "r") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse {path}: {exc}") from exc


# Linters

def parse_linter_configs(data: Any) -> List[LinterConfig]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("linters") or []
    if not isinstance(data, list):
        raise ConfigurationError("Linter configuration must be a list of linters")
    return [LinterConfig.from_dict(entry) for entry in data]


def load_linter_configs(path: PathLike) -> List[LinterConfig]:
    configs = parse_linter_configs(read_yaml(path))
    logger.info(f"Loaded {len(configs)} linter configurations from {path}")
    return configs


# Crawl options

def _rule(value: Any, key: str) -> Optional[InclusionRule]:
    """A pattern string is an include pattern; a mapping may give include and exclude."""
    if value is None:
        return None
    if isinstance(value, str):
        return RegularExpressionInclusionRule(value)
    if isinstance(value, dict):
        return RegularExpressionRule(value.get("include"), value.get("exclude"))
    raise ConfigurationError(f"{key}: expected a pattern or an include/exclude mapping")


def _string_list(value: Any, key: str) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ConfigurationError(f"{key}: expected a list")


def _depth(value: Any, key: str) -> int:
    if value is None:
        return 0
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key}: expected a number, got {value!r}") from exc


def parse_load_options(data: Optional[Dict[str, Any]]) -> LoadOptions:
    data = data or {}
    builder = SchemaInfoLevelBuilder().with_info_level(InfoLevel.parse(data.get("info-level")))
    overrides = data.get("retrievals") or {}
    if not isinstance(overrides, dict):
        raise ConfigurationError("retrievals: expected a mapping of flag names to true/false")
    builder.set_retrievals(overrides)
    return LoadOptions(schema_info_level=builder.to_options())


def parse_crawler_options(data: Optional[Dict[str, Any]]) -> SchemaCrawlerOptions:
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigurationError("Crawl options must be a mapping")

    limit_options = LimitOptions(
        schema_rule=_rule(data.get("schemas"), "schemas"),
        table_rule=_rule(data.get("tables"), "tables"),
        routine_rule=_rule(data.get("routines"), "routines"),
        sequence_rule=_rule(data.get("sequences"), "sequences"),
        synonym_rule=_rule(data.get("synonyms"), "synonyms"),
        table_types=_string_list(data.get("table-types"), "table-types"),
        routine_types=_string_list(data.get("routine-types"), "routine-types"),
    )
    grep_options = GrepOptions(
        column_rule=_rule(data.get("grep-columns"), "grep-columns"),
        routine_parameter_rule=_rule(data.get("grep-routine-parameters"), "grep-routine-parameters"),
        definition_rule=_rule(data.get("grep-definitions"), "grep-definitions"),
        invert_match=bool(data.get("invert-match", False)),
    )
    filter_options = FilterOptions(
        parent_table_filter_depth=_depth(data.get("parents"), "parents"),
        child_table_filter_depth=_depth(data.get("children"), "children"),
    )
    return SchemaCrawlerOptions(
        limit_options=limit_options,
        grep_options=grep_options,
        filter_options=filter_options,
        load_options=parse_load_options(data),
    )


def load_crawler_options(path: PathLike) -> SchemaCrawlerOptions:
    options = parse_crawler_options(read_yaml(path))
    logger.info(f"Loaded crawl options from {path} (info level {options.schema_info_level.tag})")
    return options
