"""Tests for linters, the linter registry and the lint engine."""

import sys

import pytest

from catalog_crawler.crawler import SchemaCrawler, crawl_catalog
from catalog_crawler.errors import ConfigurationError, LinterError
from catalog_crawler.inclusion import RegularExpressionInclusionRule
from catalog_crawler.info_level import SchemaInfoLevel
from catalog_crawler.lint import (
    LINTER_FAILURE_ID,
    Linter,
    LinterConfig,
    Linters,
    Lint,
    LintCollector,
    LintSeverity,
    find_table_cycles,
    lookup_linter,
    register_linter,
    registered_linter_ids,
)
from catalog_crawler.lint import registry
from catalog_crawler.lint.cycles import strongly_connected_components
from catalog_crawler.metadata import MemoryMetadataProvider, SqliteMetadataProvider
from catalog_crawler.options import LimitOptions, LoadOptions, SchemaCrawlerOptions


def _run(catalog, *configs, connection=None):
    """Run only the given linter configurations and return their lints."""
    linters = Linters([c if isinstance(c, LinterConfig) else LinterConfig(c) for c in configs], run_all_linters=False)
    return linters.lint(catalog, connection).lints


def _test_catalog(*tables):
    description = {
        "column_data_types": [
            {"name": "INTEGER", "type_code": 4},
            {"name": "CLOB", "type_code": 2005},
            {"name": "BLOB", "type_code": 2004},
        ],
        "schemas": [{"catalog": "PUBLIC", "schema": "TEST", "tables": list(tables)}],
    }
    return crawl_catalog(MemoryMetadataProvider(description))


class ExplodingLinter(Linter):
    linter_id = "exploding"
    description = "Always fails"

    def check(self, catalog, connection=None):
        raise RuntimeError("boom")


class HalfwayLinter(Linter):
    linter_id = "halfway"
    description = "Reports a table, then fails"

    def check(self, catalog, connection=None):
        self.add_lint(catalog.get_tables()[0], "seen before failing")
        raise RuntimeError("halfway")


class TestLint:
    """Tests for the Lint value object."""

    def test_str_with_list_value(self):
        lint = Lint("table-cycles", "1", "catalog", "catalog", LintSeverity.HIGH,
                    "cycles in table relationships", ["A", "B"])
        assert str(lint) == "[catalog] cycles in table relationships: A, B"

    def test_str_without_value(self):
        lint = Lint("no-indexes", "1", "PUBLIC.BOOKS.T", "table", LintSeverity.MEDIUM, "no indexes")
        assert str(lint) == "[PUBLIC.BOOKS.T] no indexes"
        assert lint.value_as_string == ""

    def test_to_dict(self):
        lint = Lint("x", "1", "o", "table", LintSeverity.LOW, "m", True)
        assert lint.to_dict()["severity"] == "low"
        assert lint.to_dict()["value"] == "true"


class TestLintSeverity:
    """Tests for severity parsing and ranking."""

    def test_parse(self):
        assert LintSeverity.parse("HIGH") == LintSeverity.HIGH
        assert LintSeverity.parse(None) is None

    def test_unknown(self):
        with pytest.raises(ConfigurationError):
            LintSeverity.parse("catastrophic")

    def test_rank(self):
        assert LintSeverity.LOW.rank < LintSeverity.MEDIUM.rank < LintSeverity.HIGH.rank < LintSeverity.CRITICAL.rank


class TestLinterConfig:
    """Tests for linter configuration entries."""

    def test_from_dict(self):
        config = LinterConfig.from_dict({
            "id": "no-remarks",
            "run": False,
            "severity": "critical",
            "threshold": 3,
            "table-inclusion-pattern": r".*\.BOOKS\..*",
            "config": {"check-columns": False},
        })
        assert config.linter_id == "no-remarks"
        assert not config.run_linter
        assert config.severity == LintSeverity.CRITICAL
        assert config.threshold == 3
        assert config.table_rule.test("PUBLIC.BOOKS.AUTHORS")
        assert not config.table_rule.test("PUBLIC.FOR_LINT.WRITERS")
        assert config.column_rule.test("anything")
        assert config.config == {"check-columns": False}

    def test_defaults(self):
        config = LinterConfig.from_dict({"id": "no-indexes"})
        assert config.run_linter
        assert config.severity is None
        assert config.threshold == sys.maxsize

    def test_missing_id(self):
        with pytest.raises(ConfigurationError):
            LinterConfig.from_dict({"severity": "low"})
        with pytest.raises(ConfigurationError):
            LinterConfig("")

    def test_bad_threshold(self):
        with pytest.raises(ConfigurationError):
            LinterConfig.from_dict({"id": "no-indexes", "threshold": "many"})


class TestLintCollector:
    """Tests for the lint collector."""

    def test_collects_in_order(self):
        collector = LintCollector()
        first = Lint("a", "1", "T1", "table", LintSeverity.LOW, "m")
        second = Lint("b", "2", "T2", "table", LintSeverity.LOW, "m")
        collector.add(first)
        collector.add_all([second, first])
        assert collector.lints == [first, second, first]
        assert collector.for_object("T1") == [first, first]
        assert collector.for_linter("b") == [second]
        assert collector.size() == 3

        collector.clear()
        assert len(collector) == 0


class TestFindTableCycles:
    """Tests for cycle detection over foreign keys."""

    def test_three_table_cycle(self, edge_catalog):
        catalog = edge_catalog([("A", "B"), ("B", "C"), ("C", "A")])
        assert find_table_cycles(catalog.get_tables()) == [["PUBLIC.TEST.A", "PUBLIC.TEST.B", "PUBLIC.TEST.C"]]

    def test_broken_cycle(self, edge_catalog):
        catalog = edge_catalog([("A", "B"), ("B", "C")])
        assert find_table_cycles(catalog.get_tables()) == []

    def test_self_reference(self, edge_catalog):
        catalog = edge_catalog([("A", "A"), ("A", "B")])
        assert find_table_cycles(catalog.get_tables()) == []
        assert find_table_cycles(catalog.get_tables(), include_self_references=True) == [["PUBLIC.TEST.A"]]

    def test_separate_cycles_sorted(self, edge_catalog):
        catalog = edge_catalog([("D", "E"), ("E", "D"), ("A", "B"), ("B", "A"), ("B", "C")])
        assert find_table_cycles(catalog.get_tables()) == [
            ["PUBLIC.TEST.A", "PUBLIC.TEST.B"],
            ["PUBLIC.TEST.D", "PUBLIC.TEST.E"],
        ]

    def test_only_given_tables(self, edge_catalog):
        catalog = edge_catalog([("A", "B"), ("B", "A")])
        only_a = [t for t in catalog.get_tables() if t.name == "A"]
        assert find_table_cycles(only_a) == []

    def test_strongly_connected_components(self):
        graph = {1: [2], 2: [3], 3: [1, 4], 4: [], 5: [5]}
        components = sorted(sorted(c) for c in strongly_connected_components(graph))
        assert components == [[1, 2, 3], [4], [5]]

    def test_long_chain(self):
        graph = {n: [n + 1] for n in range(5000)}
        graph[5000] = [0]
        components = strongly_connected_components(graph)
        assert len(components) == 1
        assert len(components[0]) == 5001


class TestTableCyclesLinter:
    """Tests for the table-cycles linter."""

    def test_cycle_reported_on_catalog(self, catalog):
        lints = _run(catalog, "table-cycles")
        assert [str(lint) for lint in lints] == [
            "[catalog] cycles in table relationships: PUBLIC.FOR_LINT.PUBLICATIONS, PUBLIC.FOR_LINT.WRITERS"
        ]
        assert lints[0].object_type == "catalog"
        assert lints[0].severity == LintSeverity.HIGH

    def test_cycle_broken_by_table_filter(self, provider):
        options = SchemaCrawlerOptions(
            limit_options=LimitOptions(table_rule=RegularExpressionInclusionRule(r"PUBLIC\.FOR_LINT\.WRITERS")),
            load_options=LoadOptions(SchemaInfoLevel.maximum()),
        )
        catalog = SchemaCrawler(provider, options).crawl()
        assert [t.name for t in catalog.get_tables()] == ["WRITERS"]
        assert _run(catalog, "table-cycles") == []

    def test_include_self_references(self, catalog):
        config = LinterConfig("table-cycles", config={"include-self-references": True})
        values = [lint.value for lint in _run(catalog, config)]
        assert values == [
            ["PUBLIC.BOOKS.BOOKS"],
            ["PUBLIC.FOR_LINT.PUBLICATIONS", "PUBLIC.FOR_LINT.WRITERS"],
            ["PUBLIC.FOR_LINT.WRITERS"],
        ]

    def test_linter_table_pattern(self, catalog):
        config = LinterConfig("table-cycles", table_inclusion_pattern=r"PUBLIC\.BOOKS\..*")
        assert _run(catalog, config) == []


class TestTableLinters:
    """Tests for the built-in table linters over the sample catalog."""

    def test_no_primary_key(self, catalog):
        lints = _run(catalog, "no-primary-key")
        assert [lint.object_name for lint in lints] == [
            "PUBLIC.BOOKS.BOOKAUTHORS",
            "PUBLIC.FOR_LINT.PUBLICATIONWRITERS",
            "PUBLIC.FOR_LINT.Global Counts",
        ]
        assert str(lints[0]) == "[PUBLIC.BOOKS.BOOKAUTHORS] no primary key"

    def test_no_indexes(self, catalog):
        names = [lint.object_name for lint in _run(catalog, "no-indexes")]
        assert "PUBLIC.BOOKS.AUTHORS" not in names
        assert "PUBLIC.BOOKS.AUTHORSLIST" not in names
        assert "PUBLIC.FOR_LINT.WRITERS" in names

    def test_single_column(self, catalog):
        assert [lint.object_name for lint in _run(catalog, "single-column")] == ["PUBLIC.FOR_LINT.Global Counts"]

    def test_foreign_key_with_no_index(self, catalog):
        lints = _run(catalog, "foreign-key-with-no-index")
        assert sorted(lint.value for lint in lints) == [
            "FK_PUBLICATIONS_WRITER",
            "FK_PW_PUBLICATION",
            "FK_PW_WRITER",
            "FK_WRITERS_MENTOR",
            "FK_WRITERS_PUBLICATION",
            "FK_Z_AUTHOR",
        ]

    def test_nullable_columns_in_unique_index(self, catalog):
        lints = _run(catalog, "nullable-columns-in-unique-index")
        assert [(lint.object_name, lint.value) for lint in lints] == [("PUBLIC.BOOKS.BOOKS", "U_PREVIOUSEDITION")]

    def test_foreign_key_data_type_mismatch(self, catalog):
        lints = _run(catalog, "foreign-key-data-type-mismatch")
        assert [str(lint) for lint in lints] == [
            "[PUBLIC.FOR_LINT.PUBLICATIONS] foreign key data type different from primary key: FK_PUBLICATIONS_WRITER"
        ]

    def test_column_types(self, catalog):
        lints = _run(catalog, "column-types")
        assert sorted((lint.object_name, lint.value) for lint in lints) == [
            ("PUBLIC.BOOKS.AUTHORS", "LASTNAME"),
            ("PUBLIC.BOOKS.AUTHORSLIST", "LASTNAME"),
            ("PUBLIC.FOR_LINT.PUBLICATIONS", "WRITERID"),
            ("PUBLIC.FOR_LINT.PUBLICATIONWRITERS", "WRITERID"),
            ("PUBLIC.FOR_LINT.WRITERS", "LASTNAME"),
        ]

    def test_no_remarks(self, catalog):
        config = LinterConfig("no-remarks", config={"check-columns": False})
        names = [lint.object_name for lint in _run(catalog, config)]
        assert len(names) == 6
        assert "PUBLIC.BOOKS.AUTHORS" not in names

    def test_no_remarks_on_columns(self, catalog):
        config = LinterConfig("no-remarks", table_inclusion_pattern=r".*\.AUTHORS")
        lints = _run(catalog, config)
        assert [lint.object_name for lint in lints] == [
            "PUBLIC.BOOKS.AUTHORS.ID",
            "PUBLIC.BOOKS.AUTHORS.FIRSTNAME",
            "PUBLIC.BOOKS.AUTHORS.LASTNAME",
        ]
        assert lints[0].object_type == "column"

    def test_bad_column_names(self, catalog):
        config = LinterConfig("bad-column-names", config={"bad-column-names": "Global.*"})
        lints = _run(catalog, config)
        assert [(lint.object_name, lint.value) for lint in lints] == [
            ("PUBLIC.FOR_LINT.Global Counts", "Global Count"),
        ]

    def test_bad_column_names_unconfigured(self, catalog):
        assert _run(catalog, "bad-column-names") == []

    def test_column_inclusion_pattern(self, catalog):
        config = LinterConfig(
            "bad-column-names",
            column_exclusion_pattern=r".*\.Global Count",
            config={"bad-column-names": "Global.*"},
        )
        assert _run(catalog, config) == []

    def test_redundant_indexes(self):
        catalog = _test_catalog({
            "name": "T",
            "columns": [{"name": "A", "type": "INTEGER"}, {"name": "B", "type": "INTEGER"}],
            "indexes": [
                {"name": "IDX_A", "columns": ["A"]},
                {"name": "IDX_AB", "columns": ["A", "B"]},
                {"name": "IDX_AB_AGAIN", "columns": ["A", "B"]},
                {"name": "IDX_B", "columns": ["B"]},
            ],
        })
        lints = _run(catalog, "redundant-indexes")
        assert [lint.value for lint in lints] == ["PUBLIC.TEST.T.IDX_A", "PUBLIC.TEST.T.IDX_AB_AGAIN"]

    def test_foreign_key_self_reference(self):
        catalog = _test_catalog({
            "name": "T",
            "columns": [{"name": "ID", "type": "INTEGER"}, {"name": "PARENT_ID", "type": "INTEGER"}],
            "primary_key": {"columns": ["ID"]},
            "foreign_keys": [
                {"name": "FK_T_ITSELF", "columns": ["ID"], "references": {"table": "T", "columns": ["ID"]}},
                {"name": "FK_T_PARENT", "columns": ["PARENT_ID"], "references": {"table": "T", "columns": ["ID"]}},
            ],
        })
        lints = _run(catalog, "foreign-key-self-reference")
        assert [lint.value for lint in lints] == ["FK_T_ITSELF"]

    def test_too_many_large_objects(self):
        catalog = _test_catalog(
            {
                "name": "DOCUMENTS",
                "columns": [
                    {"name": "ID", "type": "INTEGER"},
                    {"name": "BODY", "type": "CLOB"},
                    {"name": "SCAN", "type": "BLOB"},
                ],
            },
            {"name": "NOTES", "columns": [{"name": "ID", "type": "INTEGER"}, {"name": "TEXT", "type": "CLOB"}]},
        )
        lints = _run(catalog, "too-many-large-objects")
        assert [(lint.object_name, lint.value) for lint in lints] == [("PUBLIC.TEST.DOCUMENTS", ["BODY", "SCAN"])]
        assert str(lints[0]) == "[PUBLIC.TEST.DOCUMENTS] too many large objects: BODY, SCAN"

        relaxed = LinterConfig("too-many-large-objects", config={"max-large-objects": 2})
        assert _run(catalog, relaxed) == []

    def test_bad_limit(self):
        with pytest.raises(LinterError):
            Linters([LinterConfig("too-many-large-objects", config={"max-large-objects": "many"})])


class TestEmptyTableLinter:
    """Tests for the empty-table linter, which needs a connection."""

    def test_without_connection(self, catalog):
        assert _run(catalog, "empty-table") == []

    def test_with_connection(self, sqlite_connection):
        provider = SqliteMetadataProvider(sqlite_connection)
        catalog = crawl_catalog(provider)
        lints = _run(catalog, "empty-table", connection=provider.connection)
        assert [lint.object_name for lint in lints] == ["main.book_authors", "main.books"]


class TestLinters:
    """Tests for running a configured set of linters."""

    def test_configured_order(self, catalog):
        linters = Linters([LinterConfig("single-column"), LinterConfig("no-primary-key")], run_all_linters=False)
        assert [linter.linter_id for linter in linters] == ["single-column", "no-primary-key"]
        lint_ids = [lint.linter_id for lint in linters.lint(catalog)]
        assert lint_ids == ["single-column"] + ["no-primary-key"] * 3

    def test_run_all_appends_remaining(self):
        linters = Linters([LinterConfig("single-column")], run_all_linters=True)
        ids = [linter.linter_id for linter in linters]
        assert ids[0] == "single-column"
        assert ids[1:] == [i for i in registered_linter_ids() if i != "single-column"]

    def test_default_runs_everything(self):
        assert [linter.linter_id for linter in Linters()] == registered_linter_ids()

    def test_disabled_linter(self):
        linters = Linters([LinterConfig("single-column", run_linter=False)], run_all_linters=True)
        assert "single-column" not in [linter.linter_id for linter in linters]

    def test_unknown_linter(self):
        with pytest.raises(ConfigurationError):
            Linters([LinterConfig("no-such-linter")])

    def test_severity_override(self, catalog):
        config = LinterConfig("single-column", severity=LintSeverity.CRITICAL)
        assert [lint.severity for lint in _run(catalog, config)] == [LintSeverity.CRITICAL]

    def test_failing_linter_is_isolated(self, catalog, monkeypatch):
        monkeypatch.setitem(registry._REGISTRY, "exploding", ExplodingLinter)
        linters = Linters([LinterConfig("exploding"), LinterConfig("single-column")], run_all_linters=False)
        lints = linters.lint(catalog).lints

        assert [lint.linter_id for lint in lints] == [LINTER_FAILURE_ID, "single-column"]
        failure = lints[0]
        assert failure.severity == LintSeverity.CRITICAL
        assert failure.object_name == "catalog"
        assert failure.value == "exploding: boom"

    def test_failed_linter_partial_lints_dropped(self, catalog, monkeypatch):
        monkeypatch.setitem(registry._REGISTRY, "halfway", HalfwayLinter)
        linters = Linters([LinterConfig("halfway", threshold=0)], run_all_linters=False)
        lints = linters.lint(catalog).lints

        assert [(lint.linter_id, lint.value) for lint in lints] == [(LINTER_FAILURE_ID, "halfway: halfway")]
        assert linters.linters[0].lint_count == 0
        assert linters.exceeded_thresholds() == []

    def test_thresholds(self, catalog):
        strict = Linters([LinterConfig("no-primary-key", threshold=2)], run_all_linters=False)
        strict.lint(catalog)
        assert [linter.linter_id for linter in strict.exceeded_thresholds()] == ["no-primary-key"]

        lenient = Linters([LinterConfig("no-primary-key", threshold=3)], run_all_linters=False)
        lenient.lint(catalog)
        assert lenient.exceeded_thresholds() == []

    def test_rerun_starts_fresh(self, catalog):
        linters = Linters([LinterConfig("single-column")], run_all_linters=False)
        linters.lint(catalog)
        assert len(linters.lint(catalog)) == 1

    def test_catalog_not_modified(self, catalog):
        before = catalog.to_dict()
        before.pop("crawl_info")
        Linters().lint(catalog)
        after = catalog.to_dict()
        after.pop("crawl_info")
        assert after == before


class TestRegistry:
    """Tests for the linter registry."""

    def test_lookup(self):
        assert lookup_linter("table-cycles").linter_id == "table-cycles"
        assert registered_linter_ids()[0] == "table-cycles"

    def test_lookup_unknown(self):
        with pytest.raises(ConfigurationError):
            lookup_linter("no-such-linter")

    def test_register_requires_id(self):
        class Anonymous(Linter):
            def check(self, catalog, connection=None):
                pass

        with pytest.raises(ConfigurationError):
            register_linter(Anonymous)
