import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import DbDriver

# Server database names are used as identifiers in CREATE DATABASE, never bound
DATABASE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class ConnectionParams(BaseModel):
    """Parameters for opening a database connection."""

    model_config = ConfigDict(frozen=True)

    driver: DbDriver = Field(..., description="Database driver identifier.")
    host: Optional[str] = Field(None, description="Server host (ignored for sqlite).")
    port: Optional[int] = Field(None, gt=0, lt=65536)
    username: Optional[str] = None
    password: Optional[str] = None
    database: str = Field(
        ..., min_length=1, description="Database name, or file path for sqlite."
    )

    @model_validator(mode="after")
    def _check_server_params(self) -> "ConnectionParams":
        if self.driver == DbDriver.SQLITE:
            return self
        if not self.host:
            raise ValueError(f"host is required for the {self.driver.value} driver")
        if not DATABASE_NAME_PATTERN.match(self.database):
            raise ValueError(
                f"database name '{self.database}' may only contain letters, digits and '_'"
            )
        return self

    def describe(self) -> str:
        """A log-safe description (no credentials)."""
        if self.driver == DbDriver.SQLITE:
            return f"sqlite:{self.database}"
        port = f":{self.port}" if self.port else ""
        return f"{self.driver.value}://{self.username or ''}@{self.host}{port}/{self.database}"
