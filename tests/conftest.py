import sqlite3
from typing import List, Tuple

import pytest

from roster_store.models.connection import ConnectionParams
from roster_store.models.enums import DbDriver, SessionState
from roster_store.models.team import MemberRecord, TeamEntry


class RecordingObserver:
    """Session observer that keeps every report for assertions."""

    def __init__(self):
        self.transitions: List[Tuple[SessionState, SessionState]] = []
        self.tables: List[Tuple[str, int]] = []
        self.errors = []

    def state_changed(self, old, new):
        self.transitions.append((old, new))

    def table_written(self, table, row_count):
        self.tables.append((table, row_count))

    def error(self, info):
        self.errors.append(info)


@pytest.fixture
def falcons_and_eagles() -> List[TeamEntry]:
    """Two Chess teams sharing the member Alice"""
    alice = MemberRecord(name="Alice", passport="P1")
    return [
        TeamEntry.from_members(
            name="Falcons",
            sports_kind="Chess",
            motto="Fly high",
            members=[alice, MemberRecord(name="Bob", passport="P2")],
        ),
        TeamEntry.from_members(
            name="Eagles",
            sports_kind="Chess",
            members=[alice, MemberRecord(name="Carol", passport="P3")],
        ),
    ]


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "competition.db"


@pytest.fixture
def sqlite_params(db_path) -> ConnectionParams:
    return ConnectionParams(driver=DbDriver.SQLITE, database=str(db_path))


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def fetch_rows(db_path):
    """Reads a whole table back from the test database, ordered by id"""

    def _fetch(table: str):
        conn = sqlite3.connect(db_path)
        try:
            return conn.execute(f'SELECT * FROM "{table}" ORDER BY id').fetchall()
        finally:
            conn.close()

    return _fetch
