"""Shared fixtures: a small two-schema catalog and a cycle catalog factory."""

import copy
import sqlite3

import pytest

from catalog_crawler.crawler import SchemaCrawler
from catalog_crawler.info_level import SchemaInfoLevel
from catalog_crawler.metadata import MemoryMetadataProvider
from catalog_crawler.options import LoadOptions, SchemaCrawlerOptions


def _id(name="ID"):
    return {"name": name, "type": "INTEGER", "nullable": False}


def _varchar(name, size, nullable=True):
    return {"name": name, "type": "VARCHAR", "size": size, "nullable": nullable}


DESCRIPTION = {
    "database_info": {"product_name": "HyperSQL", "product_version": "2.7.1", "user_name": "SA"},
    "server_info": {"mode": "memory"},
    "driver_info": {
        "driver_name": "HSQL Database Engine Driver",
        "driver_version": "2.7.1",
        "driver_class_name": "org.hsqldb.jdbc.JDBCDriver",
        "connection_url": "jdbc:hsqldb:mem:schemacrawler",
    },
    "column_data_types": [
        {"name": "INTEGER", "type_code": 4},
        {"name": "VARCHAR", "type_code": 12},
        {"name": "DOUBLE", "type_code": 8},
        {"name": "DATE", "type_code": 91},
        {"name": "CLOB", "type_code": 2005},
        {"name": "BLOB", "type_code": 2004},
    ],
    "users": [{"name": "SA", "attributes": {"admin": True}}],
    "schemas": [
        {
            "catalog": "PUBLIC",
            "schema": "BOOKS",
            "column_data_types": [{"name": "NAME_TYPE", "base_type": "VARCHAR"}],
            "tables": [
                {
                    "name": "AUTHORS",
                    "remarks": "Contact details for book authors",
                    "columns": [
                        _id(),
                        _varchar("FIRSTNAME", 20, nullable=False),
                        {"name": "LASTNAME", "type": "NAME_TYPE", "size": 20, "nullable": False},
                    ],
                    "primary_key": {"name": "PK_AUTHORS", "columns": ["ID"]},
                    "indexes": [
                        {"name": "IDX_B_AUTHORS", "columns": ["LASTNAME", "FIRSTNAME"]},
                        {"name": "PK_AUTHORS", "unique": True, "columns": ["ID"]},
                    ],
                    "privileges": [
                        {"name": "SELECT", "grantor": "SA", "grantee": "PUBLIC"},
                        {"name": "SELECT", "grantor": "SA", "grantee": "PUBLIC"},
                        {"name": "SELECT", "grantor": "SA", "grantee": "ADMIN", "grantable": True},
                    ],
                },
                {
                    "name": "BOOKS",
                    "remarks": "Details for published books",
                    "columns": [
                        _id(),
                        _varchar("TITLE", 255, nullable=False),
                        _varchar("DESCRIPTION", 255),
                        {"name": "PRICE", "type": "DOUBLE"},
                        {"name": "PREVIOUSEDITIONID", "type": "INTEGER"},
                    ],
                    "primary_key": {"name": "PK_BOOKS", "columns": ["ID"]},
                    "indexes": [
                        {"name": "PK_BOOKS", "unique": True, "columns": ["ID"]},
                        {"name": "U_PREVIOUSEDITION", "unique": True, "columns": ["PREVIOUSEDITIONID"]},
                    ],
                    "foreign_keys": [
                        {
                            "name": "FK_PREVIOUSEDITION",
                            "columns": ["PREVIOUSEDITIONID"],
                            "references": {"table": "BOOKS", "columns": ["ID"]},
                        },
                    ],
                },
                {
                    "name": "BOOKAUTHORS",
                    "columns": [
                        {"name": "BOOKID", "type": "INTEGER", "nullable": False},
                        {"name": "AUTHORID", "type": "INTEGER", "nullable": False},
                        _varchar("SOMEDATA", 30),
                    ],
                    "indexes": [
                        {"name": "UIDX_BOOKAUTHORS", "unique": True, "columns": ["BOOKID", "AUTHORID"]},
                    ],
                    "foreign_keys": [
                        {
                            "name": "FK_Z_AUTHOR",
                            "columns": ["AUTHORID"],
                            "references": {"table": "AUTHORS", "columns": ["ID"]},
                        },
                        {
                            "name": "FK_Y_BOOK",
                            "columns": ["BOOKID"],
                            "references": {"table": "BOOKS", "columns": ["ID"]},
                        },
                    ],
                    "constraints": [
                        {
                            "name": "CHK_SOMEDATA",
                            "type": "check",
                            "columns": ["SOMEDATA"],
                            "definition": "SOMEDATA <> ''",
                        },
                    ],
                },
                {
                    "name": "AUTHORSLIST",
                    "type": "VIEW",
                    "definition": "SELECT ID, FIRSTNAME, LASTNAME FROM AUTHORS",
                    "columns": [_id(), _varchar("FIRSTNAME", 20), _varchar("LASTNAME", 20)],
                },
            ],
            "routines": [
                {
                    "name": "NEW_PUBLISHER",
                    "type": "procedure",
                    "parameters": [
                        _varchar("PUBLISHER", 50),
                        {"name": "OUTID", "type": "INTEGER", "mode": "out"},
                    ],
                },
                {
                    "name": "CUSTOMADD",
                    "specific_name": "CUSTOMADD_1",
                    "type": "function",
                    "return_type": "INTEGER",
                    "definition": "RETURN ONE + 1",
                    "parameters": [{"name": "ONE", "type": "INTEGER"}],
                },
                {
                    "name": "CUSTOMADD",
                    "specific_name": "CUSTOMADD_2",
                    "type": "function",
                    "return_type": "INTEGER",
                    "definition": "RETURN ONE + TWO",
                    "parameters": [{"name": "ONE", "type": "INTEGER"}, {"name": "TWO", "type": "INTEGER"}],
                },
            ],
            "sequences": [{"name": "PUBLISHER_SEQUENCE", "increment": 1, "minimum": 1, "maximum": 1000}],
            "synonyms": [{"name": "PUBLICATIONS", "references": {"object": "BOOKS"}}],
        },
        {
            "catalog": "PUBLIC",
            "schema": "FOR_LINT",
            "tables": [
                {
                    "name": "WRITERS",
                    "columns": [
                        _id(),
                        _varchar("FIRSTNAME", 20, nullable=False),
                        _varchar("LASTNAME", 20, nullable=False),
                        {"name": "PUBLICATION_ID", "type": "INTEGER"},
                        {"name": "MENTOR_ID", "type": "INTEGER"},
                    ],
                    "primary_key": {"name": "PK_WRITERS", "columns": ["ID"]},
                    "foreign_keys": [
                        {
                            "name": "FK_WRITERS_PUBLICATION",
                            "columns": ["PUBLICATION_ID"],
                            "references": {"table": "PUBLICATIONS", "columns": ["ID"]},
                        },
                        {
                            "name": "FK_WRITERS_MENTOR",
                            "columns": ["MENTOR_ID"],
                            "references": {"table": "WRITERS", "columns": ["ID"]},
                        },
                    ],
                },
                {
                    "name": "PUBLICATIONS",
                    "columns": [
                        _id(),
                        _varchar("TITLE", 255, nullable=False),
                        _varchar("WRITERID", 10),
                    ],
                    "primary_key": {"name": "PK_PUBLICATIONS", "columns": ["ID"]},
                    "foreign_keys": [
                        {
                            "name": "FK_PUBLICATIONS_WRITER",
                            "columns": ["WRITERID"],
                            "references": {"table": "WRITERS", "columns": ["ID"]},
                        },
                    ],
                },
                {
                    "name": "PUBLICATIONWRITERS",
                    "columns": [
                        {"name": "PUBLICATIONID", "type": "INTEGER", "nullable": False},
                        {"name": "WRITERID", "type": "INTEGER", "nullable": False},
                    ],
                    "foreign_keys": [
                        {
                            "name": "FK_PW_PUBLICATION",
                            "columns": ["PUBLICATIONID"],
                            "references": {"table": "PUBLICATIONS", "columns": ["ID"]},
                        },
                        {
                            "name": "FK_PW_WRITER",
                            "columns": ["WRITERID"],
                            "references": {"table": "WRITERS", "columns": ["ID"]},
                        },
                    ],
                },
                {
                    "name": "Global Counts",
                    "columns": [{"name": "Global Count", "type": "INTEGER"}],
                },
            ],
        },
    ],
}


@pytest.fixture
def description():
    return copy.deepcopy(DESCRIPTION)


@pytest.fixture
def provider(description):
    return MemoryMetadataProvider(description)


@pytest.fixture
def maximum_options():
    return SchemaCrawlerOptions(load_options=LoadOptions(SchemaInfoLevel.maximum()))


@pytest.fixture
def catalog(provider, maximum_options):
    """The full catalog, crawled at the maximum info level and not reduced."""
    return SchemaCrawler(provider, maximum_options).crawl()


@pytest.fixture
def edge_catalog():
    """
    Factory for a catalog of tables connected by foreign keys.

    Each edge (child, parent) adds a column PARENT_ID to the child table and
    a foreign key FK_CHILD_PARENT to the parent table's ID.
    """
    def build(edges, tables=(), options=None):
        names = sorted({name for edge in edges for name in edge} | set(tables))
        table_entries = {
            name: {
                "name": name,
                "columns": [_id()],
                "primary_key": {"name": f"PK_{name}", "columns": ["ID"]},
                "foreign_keys": [],
            }
            for name in names
        }
        for child, parent in edges:
            entry = table_entries[child]
            entry["columns"].append({"name": f"{parent}_ID", "type": "INTEGER"})
            entry["foreign_keys"].append({
                "name": f"FK_{child}_{parent}",
                "columns": [f"{parent}_ID"],
                "references": {"table": parent, "columns": ["ID"]},
            })
        description = {
            "column_data_types": [{"name": "INTEGER", "type_code": 4}],
            "schemas": [{"catalog": "PUBLIC", "schema": "TEST", "tables": list(table_entries.values())}],
        }
        return SchemaCrawler(MemoryMetadataProvider(description), options).crawl()

    return build


@pytest.fixture
def sqlite_connection():
    connection = sqlite3.connect(":memory:")
    connection.executescript("""
        CREATE TABLE authors (
            id INTEGER PRIMARY KEY,
            first_name VARCHAR(20) NOT NULL,
            last_name VARCHAR(20) NOT NULL
        );
        CREATE TABLE books (
            id INTEGER PRIMARY KEY,
            title VARCHAR(255) NOT NULL,
            price NUMERIC(10, 2),
            isbn TEXT UNIQUE
        );
        CREATE TABLE book_authors (
            book_id INTEGER NOT NULL REFERENCES books (id) ON DELETE CASCADE,
            author_id INTEGER NOT NULL REFERENCES authors,
            PRIMARY KEY (book_id, author_id)
        );
        CREATE INDEX idx_authors_name ON authors (last_name, first_name DESC);
        CREATE VIEW author_names AS SELECT first_name, last_name FROM authors;
        INSERT INTO authors (first_name, last_name) VALUES ('Ada', 'Lovelace');
    """)
    yield connection
    connection.close()
