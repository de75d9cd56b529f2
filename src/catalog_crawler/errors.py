"""
Error types raised by catalog_crawler.

Configuration problems fail fast with ConfigurationError. Failures inside a
metadata provider are wrapped in CrawlError so that callers deal with a
single error kind that still carries the original cause.
"""

from __future__ import annotations

from typing import Optional


class CatalogCrawlerError(Exception):
    """Base class for all catalog_crawler errors."""


class ConfigurationError(CatalogCrawlerError, ValueError):
    """Invalid rule, option, or configuration value."""


class CrawlError(CatalogCrawlerError):
    """A metadata provider failed while the catalog was being populated."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        message = super().__str__()
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message


class LinterError(CatalogCrawlerError):
    """A linter could not run with the configuration it was given."""
