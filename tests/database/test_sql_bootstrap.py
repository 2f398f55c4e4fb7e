from src.restaurant_timeclock.restaurant_timeclock.database.bootstrap import (
    _iter_sql_statements,
    _strip_create_db_and_use,
)


def test_splits_on_semicolons_outside_quotes_and_comments():
    sql = """
    -- employees; demo data
    INSERT INTO employees(full_name) VALUES ('Lee; Morgan');
    CREATE TABLE t (id INT);
    SELECT "a;b"
    """

    statements = list(_iter_sql_statements(sql))

    assert statements == [
        "INSERT INTO employees(full_name) VALUES ('Lee; Morgan')",
        "CREATE TABLE t (id INT)",
        'SELECT "a;b"',
    ]


def test_escaped_quote_does_not_end_string():
    statements = list(_iter_sql_statements(r"INSERT INTO x VALUES ('it\'s; fine'); SELECT 1;"))

    assert statements == [r"INSERT INTO x VALUES ('it\'s; fine')", "SELECT 1"]


def test_database_name_is_not_hardcoded():
    sql = "CREATE DATABASE timeclock_db;\nUSE timeclock_db;\nCREATE TABLE t (id INT);\n"

    assert list(_iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE t (id INT)"]
