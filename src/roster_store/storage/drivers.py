# src/roster_store/storage/drivers.py
"""Thin adapters over DB-API 2.0 driver modules.

Each driver knows how to open a connection, select or create the target
database, format placeholders and identifiers, and pull the native
code/message out of its own exception types.
"""
import importlib
import sqlite3
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, Type, Union

from loguru import logger

from roster_store.models.connection import ConnectionParams
from roster_store.models.enums import DbDriver

from .errors import ConfigurationError, DatabaseConnectionError, StorageError


class Driver(ABC):
    """Abstract base class for database drivers."""

    kind: DbDriver
    module_name: str
    placeholder: str = "%s"
    quote_char: str = '"'

    def __init__(self):
        try:
            self.module = importlib.import_module(self.module_name)
        except ImportError as e:
            raise ConfigurationError(
                f"Driver '{self.kind.value}' is unavailable: {self.module_name} is not installed"
            ) from e

    @property
    def error_types(self) -> Tuple[Type[BaseException], ...]:
        """Exception types raised by the driver module for database errors."""
        return (self.module.Error,)

    @abstractmethod
    def connect(self, params: ConnectionParams) -> Any:
        """Opens a connection to the server (or file, for sqlite)."""

    @abstractmethod
    def select_database(self, connection: Any, params: ConnectionParams) -> Any:
        """Creates the target database if missing and makes it current.

        Returns the connection to keep using, which may be a new one.
        """

    def quote(self, identifier: str) -> str:
        q = self.quote_char
        return f"{q}{identifier.replace(q, q * 2)}{q}"

    def error_details(
        self, exc: BaseException
    ) -> Tuple[str, Optional[str], Optional[Union[int, str]]]:
        """Returns (message, sqlstate, driver_code) for a driver exception."""
        return str(exc), None, None

    def wrap_error(
        self,
        error_cls: Type[StorageError],
        exc: BaseException,
        table: Optional[str] = None,
    ) -> StorageError:
        message, sqlstate, driver_code = self.error_details(exc)
        return error_cls(
            message, sqlstate=sqlstate, driver_code=driver_code, table=table
        )


class SqliteDriver(Driver):
    kind = DbDriver.SQLITE
    module_name = "sqlite3"
    placeholder = "?"

    def connect(self, params: ConnectionParams) -> sqlite3.Connection:
        connection = self.module.connect(params.database)
        try:
            # Foreign keys are off by default in sqlite
            connection.execute("PRAGMA foreign_keys = ON")
        except self.module.Error:
            connection.close()
            raise
        return connection

    def select_database(
        self, connection: sqlite3.Connection, params: ConnectionParams
    ) -> sqlite3.Connection:
        # The file opened by connect() is the database
        logger.debug(f"Using sqlite database file {params.database}")
        return connection

    def error_details(self, exc):
        return (
            str(exc),
            None,
            getattr(exc, "sqlite_errorcode", None),
        )


class MySQLDriver(Driver):
    kind = DbDriver.MYSQL
    module_name = "pymysql"
    quote_char = "`"

    @property
    def error_types(self):
        return (self.module.err.MySQLError,)

    def connect(self, params: ConnectionParams) -> Any:
        return self.module.connect(
            host=params.host,
            port=params.port or 3306,
            user=params.username or "",
            password=params.password or "",
            charset="utf8mb4",
            autocommit=False,
        )

    def select_database(self, connection: Any, params: ConnectionParams) -> Any:
        with connection.cursor() as cur:
            cur.execute(
                f"CREATE DATABASE IF NOT EXISTS {self.quote(params.database)} "
                "CHARACTER SET utf8mb4 COLLATE utf8mb4_general_ci"
            )
        connection.select_db(params.database)
        return connection

    def error_details(self, exc):
        args = getattr(exc, "args", ())
        if len(args) >= 2 and isinstance(args[0], int):
            return str(args[1]), None, args[0]
        return str(exc), None, None


class PostgreSQLDriver(Driver):
    kind = DbDriver.POSTGRESQL
    module_name = "psycopg2"

    def _connect_to(self, params: ConnectionParams, dbname: str) -> Any:
        return self.module.connect(
            host=params.host,
            port=params.port or 5432,
            user=params.username,
            password=params.password,
            dbname=dbname,
        )

    def connect(self, params: ConnectionParams) -> Any:
        # CREATE DATABASE must run from another database, outside a transaction
        connection = self._connect_to(params, "postgres")
        connection.autocommit = True
        return connection

    def select_database(self, connection: Any, params: ConnectionParams) -> Any:
        with connection.cursor() as cur:
            cur.execute(
                "SELECT 1 FROM pg_database WHERE datname = %s", (params.database,)
            )
            if cur.fetchone() is None:
                logger.info(f"Creating database {params.database}")
                cur.execute(f"CREATE DATABASE {self.quote(params.database)}")
        connection.close()
        return self._connect_to(params, params.database)

    def error_details(self, exc):
        message = (getattr(exc, "pgerror", None) or str(exc)).strip()
        # psycopg2 reports only the SQLSTATE, there is no separate native code
        return message, getattr(exc, "pgcode", None), None


DRIVERS: Dict[DbDriver, Type[Driver]] = {
    DbDriver.SQLITE: SqliteDriver,
    DbDriver.MYSQL: MySQLDriver,
    DbDriver.POSTGRESQL: PostgreSQLDriver,
}


def get_driver(kind: DbDriver) -> Driver:
    """Instantiates the driver for `kind`, raising ConfigurationError if unsupported."""
    driver_cls = DRIVERS.get(kind)
    if driver_cls is None:
        raise ConfigurationError(f"Unsupported database driver: {kind}")
    return driver_cls()


def open_database(driver: Driver, params: ConnectionParams) -> Any:
    """Connects and selects (creating if needed) the target database."""
    try:
        connection = driver.connect(params)
    except driver.error_types as e:
        logger.error(f"Failed to connect to {params.describe()}: {e}")
        raise driver.wrap_error(DatabaseConnectionError, e) from e

    try:
        return driver.select_database(connection, params)
    except driver.error_types as e:
        logger.error(f"Failed to select database {params.database}: {e}")
        connection.close()
        raise driver.wrap_error(DatabaseConnectionError, e) from e
