from typing import Protocol

from loguru import logger

from roster_store.models.enums import SessionState

from .errors import ErrorInfo


class SessionObserver(Protocol):
    """Receives progress reports from a PersistenceSession."""

    def state_changed(self, old: SessionState, new: SessionState) -> None: ...

    def table_written(self, table: str, row_count: int) -> None: ...

    def error(self, info: ErrorInfo) -> None: ...


class LoguruObserver:
    """Default observer: reports session progress through loguru."""

    def state_changed(self, old: SessionState, new: SessionState) -> None:
        logger.debug(f"Session state {old.value} -> {new.value}")

    def table_written(self, table: str, row_count: int) -> None:
        logger.info(f"Wrote {row_count} rows to {table}")

    def error(self, info: ErrorInfo) -> None:
        where = f" ({info.table})" if info.table else ""
        logger.error(
            f"{info.kind}{where}: {info.message} "
            f"[sqlstate={info.sqlstate}, code={info.driver_code}]"
        )
