"""Tests for the catalog object models."""

from catalog_crawler.models import (
    SYSTEM_SCHEMA,
    Column,
    ColumnDataType,
    ColumnReference,
    DatabaseInfo,
    DataTypeType,
    DriverInfo,
    ForeignKey,
    ForeignKeyColumnReference,
    ForeignKeyRule,
    Function,
    Index,
    IndexColumn,
    NamedObjectKey,
    Privilege,
    Procedure,
    RoutineParameter,
    SchemaReference,
    Sequence,
    SqlType,
    Table,
    View,
)

BOOKS = SchemaReference("PUBLIC", "BOOKS")


def _foreign_key(name, child, child_column, parent, parent_column):
    foreign_key = ForeignKey(name)
    foreign_key.add_column_reference(ForeignKeyColumnReference(
        1,
        ColumnReference(child.key(), child_column),
        ColumnReference(parent.key(), parent_column),
    ))
    return foreign_key


class TestSchemaReference:
    """Tests for SchemaReference."""

    def test_full_name(self):
        assert BOOKS.full_name == "PUBLIC.BOOKS"
        assert SchemaReference(None, "main").full_name == "main"
        assert SchemaReference("PUBLIC", None).full_name == "PUBLIC"

    def test_empty_parts_are_missing(self):
        assert SchemaReference("", "") == SYSTEM_SCHEMA
        assert SYSTEM_SCHEMA.is_system
        assert not BOOKS.is_system

    def test_value_equality(self):
        assert SchemaReference("PUBLIC", "BOOKS") == BOOKS
        assert hash(SchemaReference("PUBLIC", "BOOKS")) == hash(BOOKS)
        assert SchemaReference("PUBLIC", "FOR_LINT") != BOOKS


class TestNamedObject:
    """Tests for identity and attributes shared by all named objects."""

    def test_table_full_name(self):
        table = Table(BOOKS, "AUTHORS")
        assert table.full_name == "PUBLIC.BOOKS.AUTHORS"
        assert table.key() == NamedObjectKey.of("PUBLIC.BOOKS", "AUTHORS")

    def test_equality_includes_object_type(self):
        table = Table(BOOKS, "AUTHORS")
        sequence = Sequence(BOOKS, "AUTHORS")
        assert table.key() == sequence.key()
        assert table != sequence
        assert table == Table(BOOKS, "AUTHORS")

    def test_view_equals_table_of_same_name(self):
        # A view is a kind of table
        assert View(BOOKS, "AUTHORSLIST") == Table(BOOKS, "AUTHORSLIST")

    def test_attributes(self):
        table = Table(BOOKS, "AUTHORS")
        table.set_attribute("tablespace", "USERS")
        assert table.has_attribute("tablespace")
        assert table.get_attribute("tablespace") == "USERS"
        assert table.get_attribute("missing", "default") == "default"
        assert table.lookup_attribute("missing") is None

        table.set_attribute("tablespace", None)
        assert not table.has_attribute("tablespace")

    def test_attributes_copy(self):
        table = Table(BOOKS, "AUTHORS")
        table.set_attribute("owner", "SA")
        table.attributes["owner"] = "changed"
        assert table.get_attribute("owner") == "SA"


class TestTable:
    """Tests for tables and their owned objects."""

    def test_columns_ordered_by_position(self):
        table = Table(BOOKS, "AUTHORS")
        last = Column(table.key(), "LASTNAME")
        last.ordinal_position = 2
        first = Column(table.key(), "FIRSTNAME")
        first.ordinal_position = 1
        table.add_column(last)
        table.add_column(first)
        assert table.column_names == ["FIRSTNAME", "LASTNAME"]

    def test_add_column_assigns_position(self):
        table = Table(BOOKS, "AUTHORS")
        table.add_column(Column(table.key(), "ID"))
        table.add_column(Column(table.key(), "NAME"))
        assert [c.ordinal_position for c in table.columns] == [1, 2]

    def test_column_key_under_table(self):
        table = Table(BOOKS, "AUTHORS")
        column = table.add_column(Column(table.key(), "ID"))
        assert column.full_name == "PUBLIC.BOOKS.AUTHORS.ID"
        assert column.table_key == table.key()
        assert table.lookup_column("ID") is column
        assert table.lookup_column("MISSING") is None
        assert table.lookup_column(None) is None

    def test_foreign_key_directions(self):
        authors = Table(BOOKS, "AUTHORS")
        books = Table(BOOKS, "BOOKS")
        foreign_key = _foreign_key("FK_BOOKS_AUTHOR", books, "AUTHORID", authors, "ID")
        books.add_foreign_key(foreign_key)
        authors.add_foreign_key(foreign_key)

        assert books.imported_foreign_keys == [foreign_key]
        assert books.exported_foreign_keys == []
        assert authors.exported_foreign_keys == [foreign_key]
        assert books.referenced_table_keys == [authors.key()]
        assert authors.referencing_table_keys == [books.key()]
        assert foreign_key.full_name == "PUBLIC.BOOKS.BOOKS.FK_BOOKS_AUTHOR"

    def test_retain_foreign_keys(self):
        authors = Table(BOOKS, "AUTHORS")
        books = Table(BOOKS, "BOOKS")
        books.add_foreign_key(_foreign_key("FK_BOOKS_AUTHOR", books, "AUTHORID", authors, "ID"))

        dropped = books.retain_foreign_keys(lambda fk: fk.primary_table_key != authors.key())
        assert [fk.name for fk in dropped] == ["FK_BOOKS_AUTHOR"]
        assert books.foreign_keys == []

    def test_self_referencing_foreign_key(self):
        books = Table(BOOKS, "BOOKS")
        foreign_key = _foreign_key("FK_PREVIOUSEDITION", books, "PREVIOUSEDITIONID", books, "ID")
        assert foreign_key.is_self_referencing

    def test_view(self):
        view = View(BOOKS, "AUTHORSLIST")
        assert view.is_view
        assert view.table_type == "VIEW"
        assert not Table(BOOKS, "AUTHORS").is_view

    def test_to_dict(self):
        table = Table(BOOKS, "AUTHORS")
        table.remarks = "Contact details"
        table.add_column(Column(table.key(), "ID"))
        data = table.to_dict()
        assert data["name"] == "AUTHORS"
        assert data["schema"] == "PUBLIC.BOOKS"
        assert data["remarks"] == "Contact details"
        assert [c["name"] for c in data["columns"]] == ["ID"]
        assert data["primary_key"] is None


class TestIndex:
    """Tests for index columns."""

    def test_columns_ordered_by_index_position(self):
        table = Table(BOOKS, "AUTHORS")
        index = Index(table.key(), "IDX_B_AUTHORS")
        index.add_column(IndexColumn(table.key().with_("FIRSTNAME"), 2))
        index.add_column(IndexColumn(table.key().with_("LASTNAME"), 1))
        assert index.column_names == ["LASTNAME", "FIRSTNAME"]
        assert index.full_name == "PUBLIC.BOOKS.AUTHORS.IDX_B_AUTHORS"


class TestPrivilege:
    """Tests for privileges and grants."""

    def test_grants_are_unique_and_sorted(self):
        privilege = Privilege(NamedObjectKey.of("PUBLIC.BOOKS", "AUTHORS"), "SELECT")
        privilege.add_grant("SA", "PUBLIC")
        privilege.add_grant("SA", "PUBLIC")
        privilege.add_grant("ADMIN", "SA", True)
        assert [(g.grantor, g.grantee) for g in privilege.grants] == [("ADMIN", "SA"), ("SA", "PUBLIC")]

    def test_blank_grants_are_ignored(self):
        privilege = Privilege(NamedObjectKey.of("PUBLIC.BOOKS", "AUTHORS"), "SELECT")
        privilege.add_grant(None, "PUBLIC")
        privilege.add_grant("SA", "  ")
        assert privilege.grants == []


class TestColumn:
    """Tests for column attributes."""

    def test_width(self):
        column = Column(NamedObjectKey.of("PUBLIC.BOOKS", "BOOKS"), "PRICE")
        assert column.width == ""
        column.size = 10
        assert column.width == "(10)"
        column.decimal_digits = 2
        assert column.width == "(10, 2)"

    def test_type_name(self):
        column = Column(NamedObjectKey.of("PUBLIC.BOOKS", "BOOKS"), "ID")
        assert column.type_name == ""
        column.column_data_type = ColumnDataType(SYSTEM_SCHEMA, "INTEGER", type_code=SqlType.INTEGER)
        assert column.type_name == "INTEGER"


class TestColumnDataType:
    """Tests for column data types."""

    def test_system_type(self):
        data_type = ColumnDataType(SYSTEM_SCHEMA, "VARCHAR", type_code=12)
        assert data_type.sql_type == SqlType.VARCHAR
        assert not data_type.is_user_defined
        assert data_type.full_name == "VARCHAR"

    def test_unknown_type_code(self):
        data_type = ColumnDataType(SYSTEM_SCHEMA, "ODD", type_code=99999)
        assert data_type.sql_type is None

    def test_user_defined_type(self):
        base = ColumnDataType(SYSTEM_SCHEMA, "VARCHAR", type_code=12)
        data_type = ColumnDataType(BOOKS, "NAME_TYPE", DataTypeType.USER_DEFINED, 12)
        data_type.base_type = base
        assert data_type.is_user_defined
        assert data_type.to_dict()["base_type"] == "VARCHAR"


class TestRoutine:
    """Tests for routines and overloads."""

    def test_overloads_have_distinct_keys(self):
        one = Function(BOOKS, "CUSTOMADD", "CUSTOMADD_1")
        two = Function(BOOKS, "CUSTOMADD", "CUSTOMADD_2")
        assert one != two
        assert one.full_name == two.full_name == "PUBLIC.BOOKS.CUSTOMADD"

    def test_specific_name_defaults_to_name(self):
        procedure = Procedure(BOOKS, "NEW_PUBLISHER")
        assert procedure.specific_name == "NEW_PUBLISHER"
        assert procedure.routine_type.value == "procedure"

    def test_parameters_ordered(self):
        routine = Function(BOOKS, "CUSTOMADD", "CUSTOMADD_2")
        two = RoutineParameter(routine.key(), "TWO")
        two.ordinal_position = 2
        one = RoutineParameter(routine.key(), "ONE")
        one.ordinal_position = 1
        routine.add_parameter(two)
        routine.add_parameter(one)
        assert [p.name for p in routine.parameters] == ["ONE", "TWO"]


class TestForeignKeyRule:
    """Tests for parsing foreign key actions."""

    def test_parse(self):
        assert ForeignKeyRule.parse("CASCADE") == ForeignKeyRule.CASCADE
        assert ForeignKeyRule.parse("NO ACTION") == ForeignKeyRule.NO_ACTION
        assert ForeignKeyRule.parse("set_null") == ForeignKeyRule.SET_NULL
        assert ForeignKeyRule.parse(None) == ForeignKeyRule.UNKNOWN
        assert ForeignKeyRule.parse("explode") == ForeignKeyRule.UNKNOWN


class TestInfo:
    """Tests for database and driver information."""

    def test_database_info_str(self):
        info = DatabaseInfo(product_name="SQLite", product_version="3.45.0", user_name="")
        assert "-- database: SQLite 3.45.0" in str(info)

    def test_driver_info_str(self):
        info = DriverInfo(driver_name="sqlite3", driver_version="3.12", compliant=False)
        text = str(info)
        assert "-- driver: sqlite3 3.12" in text
        assert "-- compliant: false" in text
