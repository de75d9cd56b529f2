"""
Catalog Crawler - Database Catalog Metadata Crawler and Schema Linter

Discovers the structure of a relational database into an in-memory catalog
model, narrows it with inclusion rules, and checks it with configurable
linters.

Features:
- Metadata from SQLite, Oracle, or a YAML catalog description
- Schema info levels that control how much metadata is retrieved
- Regex inclusion rules per object kind with parent/child table expansion
- Built-in schema linters, including foreign key cycle detection
"""

__version__ = "0.1.0"
__author__ = "Catalog Crawler Team"

from catalog_crawler.catalog import Catalog, NamedObjectList, ObjectKind
from catalog_crawler.errors import (
    CatalogCrawlerError,
    ConfigurationError,
    CrawlError,
    LinterError,
)
from catalog_crawler.inclusion import (
    ExcludeAll,
    IncludeAll,
    InclusionRule,
    RegularExpressionExclusionRule,
    RegularExpressionInclusionRule,
    RegularExpressionRule,
)
from catalog_crawler.info_level import (
    InfoLevel,
    SchemaInfoLevel,
    SchemaInfoLevelBuilder,
    SchemaInfoRetrieval,
)
from catalog_crawler.options import (
    FilterOptions,
    GrepOptions,
    LimitOptions,
    LoadOptions,
    SchemaCrawlerOptions,
)
from catalog_crawler.crawler import SchemaCrawler, crawl_catalog
from catalog_crawler.reducers import reduce_catalog

# Lint engine
from catalog_crawler.lint import (
    Lint,
    LintCollector,
    Linter,
    LinterConfig,
    Linters,
    LintSeverity,
)

__all__ = [
    # Catalog
    "Catalog",
    "NamedObjectList",
    "ObjectKind",
    # Errors
    "CatalogCrawlerError",
    "ConfigurationError",
    "CrawlError",
    "LinterError",
    # Inclusion rules
    "ExcludeAll",
    "IncludeAll",
    "InclusionRule",
    "RegularExpressionExclusionRule",
    "RegularExpressionInclusionRule",
    "RegularExpressionRule",
    # Info levels and options
    "InfoLevel",
    "SchemaInfoLevel",
    "SchemaInfoLevelBuilder",
    "SchemaInfoRetrieval",
    "FilterOptions",
    "GrepOptions",
    "LimitOptions",
    "LoadOptions",
    "SchemaCrawlerOptions",
    # Crawling and reduction
    "SchemaCrawler",
    "crawl_catalog",
    "reduce_catalog",
    # Lint
    "Lint",
    "LintCollector",
    "Linter",
    "LinterConfig",
    "Linters",
    "LintSeverity",
]
