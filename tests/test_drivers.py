"""Tests for the database driver adapters, with the driver modules stubbed"""
import sqlite3
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from roster_store.models.connection import ConnectionParams
from roster_store.models.enums import DbDriver
from roster_store.storage import drivers
from roster_store.storage.drivers import (
    MySQLDriver,
    PostgreSQLDriver,
    SqliteDriver,
    open_database,
)
from roster_store.storage.errors import DatabaseConnectionError, WriteError


class FakeDriverError(Exception):
    pass


def _stub_module(monkeypatch):
    """Makes every driver import resolve to one MagicMock module"""
    module = MagicMock()
    module.Error = FakeDriverError
    module.err.MySQLError = FakeDriverError
    monkeypatch.setattr(drivers, "importlib", SimpleNamespace(import_module=lambda name: module))
    return module


def _cursor_of(connection):
    cursor = MagicMock()
    connection.cursor.return_value.__enter__.return_value = cursor
    return cursor


@pytest.fixture
def mysql_params():
    return ConnectionParams(
        driver=DbDriver.MYSQL,
        host="db.internal",
        username="app",
        password="pw",
        database="competition",
    )


@pytest.fixture
def pg_params():
    return ConnectionParams(
        driver=DbDriver.POSTGRESQL,
        host="db.internal",
        port=6432,
        username="app",
        password="pw",
        database="competition",
    )


class TestMySQLDriver:

    def test_connect_arguments(self, monkeypatch, mysql_params):
        module = _stub_module(monkeypatch)

        MySQLDriver().connect(mysql_params)

        module.connect.assert_called_once_with(
            host="db.internal",
            port=3306,
            user="app",
            password="pw",
            charset="utf8mb4",
            autocommit=False,
        )

    def test_creates_then_selects_database(self, monkeypatch, mysql_params):
        _stub_module(monkeypatch)
        connection = MagicMock()
        cursor = _cursor_of(connection)

        assert MySQLDriver().select_database(connection, mysql_params) is connection

        sql = cursor.execute.call_args.args[0]
        assert sql.startswith("CREATE DATABASE IF NOT EXISTS `competition`")
        assert "utf8mb4" in sql
        connection.select_db.assert_called_once_with("competition")

    def test_error_details_from_args(self, monkeypatch):
        _stub_module(monkeypatch)
        exc = FakeDriverError(1062, "Duplicate entry '1' for key 'PRIMARY'")

        assert MySQLDriver().error_details(exc) == (
            "Duplicate entry '1' for key 'PRIMARY'",
            None,
            1062,
        )

    def test_error_details_without_code(self, monkeypatch):
        _stub_module(monkeypatch)
        assert MySQLDriver().error_details(FakeDriverError("gone away")) == (
            "gone away",
            None,
            None,
        )

    def test_wrap_error_carries_code(self, monkeypatch):
        _stub_module(monkeypatch)
        error = MySQLDriver().wrap_error(
            WriteError, FakeDriverError(1452, "Cannot add a child row"), table="teams"
        )
        assert error.info.driver_code == 1452
        assert error.info.table == "teams"

    def test_backtick_quoting(self, monkeypatch):
        _stub_module(monkeypatch)
        assert MySQLDriver().quote("we`ird") == "`we``ird`"


class TestPostgreSQLDriver:

    def test_connects_to_maintenance_database(self, monkeypatch, pg_params):
        module = _stub_module(monkeypatch)

        connection = PostgreSQLDriver().connect(pg_params)

        assert module.connect.call_args.kwargs["dbname"] == "postgres"
        assert module.connect.call_args.kwargs["port"] == 6432
        assert connection.autocommit is True

    def test_creates_missing_database_and_reconnects(self, monkeypatch, pg_params):
        module = _stub_module(monkeypatch)
        maintenance = MagicMock()
        cursor = _cursor_of(maintenance)
        cursor.fetchone.return_value = None

        connection = PostgreSQLDriver().select_database(maintenance, pg_params)

        statements = [c.args[0] for c in cursor.execute.call_args_list]
        assert statements == [
            "SELECT 1 FROM pg_database WHERE datname = %s",
            'CREATE DATABASE "competition"',
        ]
        assert cursor.execute.call_args_list[0].args[1] == ("competition",)
        maintenance.close.assert_called_once()
        assert module.connect.call_args.kwargs["dbname"] == "competition"
        assert connection is module.connect.return_value

    def test_existing_database_is_not_created(self, monkeypatch, pg_params):
        module = _stub_module(monkeypatch)
        maintenance = MagicMock()
        cursor = _cursor_of(maintenance)
        cursor.fetchone.return_value = (1,)

        PostgreSQLDriver().select_database(maintenance, pg_params)

        assert cursor.execute.call_count == 1
        maintenance.close.assert_called_once()
        assert module.connect.call_args.kwargs["dbname"] == "competition"

    def test_error_details_use_sqlstate(self, monkeypatch):
        _stub_module(monkeypatch)
        exc = FakeDriverError("ignored")
        exc.pgcode = "23505"
        exc.pgerror = "ERROR:  duplicate key value violates unique constraint\n"

        assert PostgreSQLDriver().error_details(exc) == (
            "ERROR:  duplicate key value violates unique constraint",
            "23505",
            None,
        )


class TestOpenDatabase:

    def test_connect_failure(self, monkeypatch, mysql_params):
        module = _stub_module(monkeypatch)
        module.connect.side_effect = FakeDriverError(2003, "Can't connect to MySQL server")

        with pytest.raises(DatabaseConnectionError) as exc_info:
            open_database(MySQLDriver(), mysql_params)

        assert exc_info.value.info.driver_code == 2003

    def test_select_failure_closes_connection(self, monkeypatch, mysql_params):
        module = _stub_module(monkeypatch)
        connection = module.connect.return_value
        connection.select_db.side_effect = FakeDriverError(1044, "Access denied")

        with pytest.raises(DatabaseConnectionError):
            open_database(MySQLDriver(), mysql_params)

        connection.close.assert_called_once()


class TestSqliteDriver:

    def test_pragma_failure_closes_connection(self, monkeypatch, tmp_path):
        driver = SqliteDriver()
        connection = MagicMock()
        connection.execute.side_effect = sqlite3.OperationalError("database is locked")
        driver.module = MagicMock(connect=MagicMock(return_value=connection), Error=sqlite3.Error)
        params = ConnectionParams(driver=DbDriver.SQLITE, database=str(tmp_path / "x.db"))

        with pytest.raises(sqlite3.OperationalError):
            driver.connect(params)

        connection.close.assert_called_once()

    def test_foreign_keys_enabled(self, tmp_path):
        params = ConnectionParams(driver=DbDriver.SQLITE, database=str(tmp_path / "x.db"))
        connection = SqliteDriver().connect(params)
        try:
            assert connection.execute("PRAGMA foreign_keys").fetchone() == (1,)
        finally:
            connection.close()
