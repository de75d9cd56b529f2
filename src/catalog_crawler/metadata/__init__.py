"""
Metadata providers for in-memory descriptions, SQLite and Oracle databases.

Provides a uniform row-based interface that the crawler turns into a catalog.
"""

from catalog_crawler.metadata.provider import MetadataProvider
from catalog_crawler.metadata.memory import MemoryMetadataProvider
from catalog_crawler.metadata.sqlite import SqliteMetadataProvider
from catalog_crawler.metadata.oracle import OracleMetadataProvider

__all__ = [
    "MetadataProvider",
    "MemoryMetadataProvider",
    "SqliteMetadataProvider",
    "OracleMetadataProvider",
]
