from typing import Optional, Union

from pydantic import BaseModel, ConfigDict


class ErrorInfo(BaseModel):
    """Driver-native description of the last storage failure."""

    model_config = ConfigDict(frozen=True)

    kind: str  # Exception class name, e.g. "WriteError"
    message: str
    sqlstate: Optional[str] = None  # ANSI SQLSTATE when the driver reports one
    driver_code: Optional[Union[int, str]] = None
    table: Optional[str] = None


class StorageError(Exception):
    """Base exception for persistence failures."""

    def __init__(
        self,
        message: str,
        *,
        sqlstate: Optional[str] = None,
        driver_code: Optional[Union[int, str]] = None,
        table: Optional[str] = None,
    ):
        super().__init__(message)
        self.info = ErrorInfo(
            kind=type(self).__name__,
            message=message,
            sqlstate=sqlstate,
            driver_code=driver_code,
            table=table,
        )


class ConfigurationError(StorageError):
    """Invalid connection parameters or unsupported driver."""

    pass


class DatabaseConnectionError(StorageError):
    """Failed to connect to the server or select/create the database."""

    pass


class SchemaError(StorageError):
    """A DDL statement failed while resetting the schema."""

    pass


class WriteError(StorageError):
    """A table insert failed."""

    pass


class SessionStateError(RuntimeError):
    """An operation was attempted in a session state that does not allow it."""

    pass
