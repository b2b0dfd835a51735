from enum import Enum


class SourceFormat(str, Enum):
    JSON = "json"
    XML = "xml"


class SinkType(str, Enum):
    DB = "db"
    CSV = "csv"


class DbDriver(str, Enum):
    SQLITE = "sqlite"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"


class SessionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    SCHEMA_RESET = "SCHEMA_RESET"
    WRITING = "WRITING"
    DONE = "DONE"
    FAILED = "FAILED"  # Terminal, reachable from any state
