# src/roster_store/storage/schema.py
from typing import Any, Dict

from loguru import logger

from roster_store.models.enums import DbDriver
from roster_store.models.rows import MEMBERS, MEMBERS_TEAMS, SPORTS_KINDS, TEAMS

from .drivers import Driver
from .errors import SchemaError

DROP_ORDER = (MEMBERS_TEAMS, TEAMS, MEMBERS, SPORTS_KINDS)
CREATE_ORDER = (SPORTS_KINDS, MEMBERS, TEAMS, MEMBERS_TEAMS)

_MYSQL_DDL = {
    SPORTS_KINDS: """
        CREATE TABLE IF NOT EXISTS `sports_kinds` (
            `id` int(11) NOT NULL AUTO_INCREMENT,
            `name` varchar(50) NOT NULL,
            PRIMARY KEY (`id`)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
    MEMBERS: """
        CREATE TABLE IF NOT EXISTS `members` (
            `id` int(11) NOT NULL AUTO_INCREMENT,
            `name` varchar(50) NOT NULL,
            `passport` varchar(50) NOT NULL,
            PRIMARY KEY (`id`)
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
    TEAMS: """
        CREATE TABLE IF NOT EXISTS `teams` (
            `id` int(11) NOT NULL AUTO_INCREMENT,
            `name` varchar(50) NOT NULL,
            `sports_kind_id` int(11) NOT NULL,
            `motto` varchar(200),
            PRIMARY KEY (`id`),
            KEY `t2sk` (`sports_kind_id`),
            CONSTRAINT `t2sk` FOREIGN KEY (`sports_kind_id`) REFERENCES `sports_kinds` (`id`)
                ON DELETE CASCADE ON UPDATE CASCADE
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
    MEMBERS_TEAMS: """
        CREATE TABLE IF NOT EXISTS `members_teams` (
            `id` int(11) NOT NULL AUTO_INCREMENT,
            `member_id` int(11) NOT NULL,
            `team_id` int(11) NOT NULL,
            PRIMARY KEY (`id`),
            UNIQUE KEY `member_id_team_id` (`member_id`, `team_id`),
            KEY `mt2t` (`team_id`),
            CONSTRAINT `mt2t` FOREIGN KEY (`team_id`) REFERENCES `teams` (`id`)
                ON DELETE CASCADE ON UPDATE CASCADE,
            CONSTRAINT `mt2m` FOREIGN KEY (`member_id`) REFERENCES `members` (`id`)
                ON DELETE CASCADE ON UPDATE CASCADE
        ) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
    """,
}

_POSTGRESQL_DDL = {
    SPORTS_KINDS: """
        CREATE TABLE IF NOT EXISTS "sports_kinds" (
            "id" integer GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            "name" varchar(50) NOT NULL
        )
    """,
    MEMBERS: """
        CREATE TABLE IF NOT EXISTS "members" (
            "id" integer GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            "name" varchar(50) NOT NULL,
            "passport" varchar(50) NOT NULL
        )
    """,
    TEAMS: """
        CREATE TABLE IF NOT EXISTS "teams" (
            "id" integer GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            "name" varchar(50) NOT NULL,
            "sports_kind_id" integer NOT NULL
                REFERENCES "sports_kinds" ("id") ON DELETE CASCADE ON UPDATE CASCADE,
            "motto" varchar(200)
        )
    """,
    MEMBERS_TEAMS: """
        CREATE TABLE IF NOT EXISTS "members_teams" (
            "id" integer GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY,
            "member_id" integer NOT NULL
                REFERENCES "members" ("id") ON DELETE CASCADE ON UPDATE CASCADE,
            "team_id" integer NOT NULL
                REFERENCES "teams" ("id") ON DELETE CASCADE ON UPDATE CASCADE,
            CONSTRAINT "member_id_team_id" UNIQUE ("member_id", "team_id")
        )
    """,
}

_SQLITE_DDL = {
    SPORTS_KINDS: """
        CREATE TABLE IF NOT EXISTS "sports_kinds" (
            "id" INTEGER PRIMARY KEY AUTOINCREMENT,
            "name" TEXT NOT NULL
        )
    """,
    MEMBERS: """
        CREATE TABLE IF NOT EXISTS "members" (
            "id" INTEGER PRIMARY KEY AUTOINCREMENT,
            "name" TEXT NOT NULL,
            "passport" TEXT NOT NULL
        )
    """,
    TEAMS: """
        CREATE TABLE IF NOT EXISTS "teams" (
            "id" INTEGER PRIMARY KEY AUTOINCREMENT,
            "name" TEXT NOT NULL,
            "sports_kind_id" INTEGER NOT NULL
                REFERENCES "sports_kinds" ("id") ON DELETE CASCADE ON UPDATE CASCADE,
            "motto" TEXT
        )
    """,
    MEMBERS_TEAMS: """
        CREATE TABLE IF NOT EXISTS "members_teams" (
            "id" INTEGER PRIMARY KEY AUTOINCREMENT,
            "member_id" INTEGER NOT NULL
                REFERENCES "members" ("id") ON DELETE CASCADE ON UPDATE CASCADE,
            "team_id" INTEGER NOT NULL
                REFERENCES "teams" ("id") ON DELETE CASCADE ON UPDATE CASCADE,
            UNIQUE ("member_id", "team_id")
        )
    """,
}

SCHEMA_DDL: Dict[DbDriver, Dict[str, str]] = {
    DbDriver.MYSQL: _MYSQL_DDL,
    DbDriver.POSTGRESQL: _POSTGRESQL_DDL,
    DbDriver.SQLITE: _SQLITE_DDL,
}


class SchemaManager:
    """Drops and recreates the four competition tables."""

    def __init__(self, driver: Driver):
        self.driver = driver
        self.ddl = SCHEMA_DDL[driver.kind]

    def reset_schema(self, connection: Any) -> None:
        """Drops the tables in reverse dependency order, then recreates them.

        Raises:
            SchemaError: on the first failing statement. Tables dropped or
                created before it stay that way.
        """
        cur = connection.cursor()
        try:
            for table in DROP_ORDER:
                self._execute(cur, f"DROP TABLE IF EXISTS {self.driver.quote(table)}", table)
            for table in CREATE_ORDER:
                self._execute(cur, self.ddl[table], table)
        finally:
            cur.close()
        try:
            connection.commit()
        except self.driver.error_types as e:
            # Transactional DDL (PostgreSQL) can fail here rather than per statement
            logger.error(f"Committing the schema reset failed: {e}")
            raise self.driver.wrap_error(SchemaError, e) from e
        logger.info(f"Schema reset: created {', '.join(CREATE_ORDER)}")

    def _execute(self, cur: Any, sql: str, table: str) -> None:
        try:
            cur.execute(sql)
        except self.driver.error_types as e:
            logger.error(f"Schema statement for {table} failed: {e}")
            raise self.driver.wrap_error(SchemaError, e, table=table) from e
