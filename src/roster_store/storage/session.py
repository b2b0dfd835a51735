# src/roster_store/storage/session.py
from typing import Any, Dict, Mapping, Optional, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from roster_store.models.connection import ConnectionParams
from roster_store.models.enums import SessionState
from roster_store.models.rows import NormalizedRoster

from .bulk_writer import write_table
from .drivers import Driver, get_driver, open_database
from .errors import (
    ConfigurationError,
    ErrorInfo,
    SessionStateError,
    StorageError,
    WriteError,
)
from .observer import LoguruObserver, SessionObserver
from .schema import SchemaManager

# Each state may only advance to the next one (WRITING repeats per table)
_FORWARD = {
    SessionState.DISCONNECTED: SessionState.CONNECTING,
    SessionState.CONNECTING: SessionState.CONNECTED,
    SessionState.CONNECTED: SessionState.SCHEMA_RESET,
    SessionState.SCHEMA_RESET: SessionState.WRITING,
    SessionState.WRITING: SessionState.DONE,
}


class PersistResult(BaseModel):
    """Outcome of a persistence run."""

    success: bool
    state: SessionState
    error: Optional[ErrorInfo] = None
    rows_written: Dict[str, int] = Field(default_factory=dict)


def _coerce_params(params: Union[ConnectionParams, Mapping[str, Any]]) -> ConnectionParams:
    if isinstance(params, ConnectionParams):
        return params
    try:
        return ConnectionParams.model_validate(params)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid connection parameters: {e}") from e


class PersistenceSession:
    """Owns one database connection and writes a normalized roster through it.

    Use as a context manager so the connection is released on success or
    failure. A session runs once; a failed or finished session cannot be
    reused.
    """

    def __init__(
        self,
        params: Union[ConnectionParams, Mapping[str, Any]],
        observer: Optional[SessionObserver] = None,
        atomic: bool = False,
    ):
        self.params = _coerce_params(params)
        self.driver: Driver = get_driver(self.params.driver)
        self.observer: SessionObserver = observer or LoguruObserver()
        self.atomic = atomic
        self.connection: Any = None
        self.table_index: Optional[int] = None
        self.rows_written: Dict[str, int] = {}
        self._state = SessionState.DISCONNECTED
        self._last_error: Optional[ErrorInfo] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_error(self) -> Optional[ErrorInfo]:
        return self._last_error

    def __enter__(self) -> "PersistenceSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _transition(self, new: SessionState) -> None:
        old = self._state
        if old in (SessionState.FAILED, SessionState.DONE):
            raise SessionStateError(
                f"Session is {old.value}; construct a new session to persist again"
            )
        allowed = new == SessionState.FAILED or _FORWARD.get(old) == new or (
            old == new == SessionState.WRITING
        )
        if not allowed:
            raise SessionStateError(f"Cannot move from {old.value} to {new.value}")
        self._state = new
        self.observer.state_changed(old, new)

    def _fail(self, error: StorageError) -> None:
        self._last_error = error.info
        self.observer.error(error.info)
        if self._state != SessionState.FAILED:
            self._transition(SessionState.FAILED)

    def connect(self) -> None:
        """Connects and selects (creating if needed) the target database."""
        self._transition(SessionState.CONNECTING)
        logger.info(f"Connecting to {self.params.describe()}")
        try:
            self.connection = open_database(self.driver, self.params)
        except StorageError as e:
            self._fail(e)
            raise
        self._transition(SessionState.CONNECTED)

    def reset_schema(self) -> None:
        """Drops and recreates the four tables."""
        if self._state != SessionState.CONNECTED:
            raise SessionStateError(f"Cannot reset schema while {self._state.value}")
        try:
            SchemaManager(self.driver).reset_schema(self.connection)
        except StorageError as e:
            self._fail(e)
            raise
        self._transition(SessionState.SCHEMA_RESET)

    def write_roster(self, roster: NormalizedRoster) -> None:
        """Writes the four tables in dependency order, stopping at the first failure.

        Without `atomic`, each table is committed as soon as it is written.
        """
        for index, (table, rows) in enumerate(roster.tables()):
            self._transition(SessionState.WRITING)
            self.table_index = index
            try:
                count = write_table(self.connection, self.driver, table, rows)
                if not self.atomic:
                    self.connection.commit()
            except StorageError as e:
                if self.atomic:
                    self._rollback()
                self._fail(e)
                raise
            except self.driver.error_types as e:
                # Commit failures surface as plain driver errors
                error = self.driver.wrap_error(WriteError, e, table=table)
                self._fail(error)
                raise error from e
            self.rows_written[table] = count
            self.observer.table_written(table, count)

        if self.atomic:
            try:
                self.connection.commit()
            except self.driver.error_types as e:
                error = self.driver.wrap_error(WriteError, e)
                self._fail(error)
                raise error from e
        self._transition(SessionState.DONE)

    def persist(self, roster: NormalizedRoster) -> bool:
        """Runs connect, schema reset and the table writes.

        Returns True on success. On failure the error is available from
        `last_error` and the session is FAILED.
        """
        try:
            self.connect()
            self.reset_schema()
            self.write_roster(roster)
        except StorageError:
            return False
        logger.success(
            f"Persisted roster to {self.params.describe()}: {self.rows_written}"
        )
        return True

    def result(self) -> PersistResult:
        return PersistResult(
            success=self._state == SessionState.DONE,
            state=self._state,
            error=self._last_error,
            rows_written=dict(self.rows_written),
        )

    def _rollback(self) -> None:
        try:
            self.connection.rollback()
            logger.warning("Rolled back uncommitted table writes.")
        except self.driver.error_types as e:
            logger.error(f"Rollback failed: {e}")

    def close(self) -> None:
        """Closes the connection if one is open."""
        if self.connection is None:
            return
        try:
            self.connection.close()
        except self.driver.error_types as e:
            logger.warning(f"Error while closing connection: {e}")
        finally:
            self.connection = None
        logger.debug(f"Closed connection to {self.params.describe()}")


def persist(
    params: Union[ConnectionParams, Mapping[str, Any]],
    roster: NormalizedRoster,
    *,
    observer: Optional[SessionObserver] = None,
    atomic: bool = False,
) -> PersistResult:
    """Persists `roster` through a fresh session and returns the outcome."""
    try:
        session = PersistenceSession(params, observer=observer, atomic=atomic)
    except ConfigurationError as e:
        (observer or LoguruObserver()).error(e.info)
        return PersistResult(success=False, state=SessionState.FAILED, error=e.info)

    with session:
        session.persist(roster)
        return session.result()
