import logging
from typing import Any, Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from roster_store.models.connection import ConnectionParams
from roster_store.models.enums import DbDriver, SinkType, SourceFormat


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Database Connection (defaults: a local sqlite file)
    db_driver: DbDriver = Field(DbDriver.SQLITE, description="sqlite, mysql or postgresql.")
    db_host: Optional[str] = Field(None, description="Database server host.")
    db_port: Optional[int] = Field(None, description="Database server port.")
    db_username: Optional[str] = Field(None, description="Database user.")
    db_password: Optional[str] = Field(None, description="Database password.")
    db_database: str = Field(
        "competition.db", description="Database name, or file path for sqlite."
    )
    db_atomic_writes: bool = Field(
        False,
        description="Write all four tables in one transaction and roll back on failure.",
    )

    # Source & Sink
    source_format: SourceFormat = Field(SourceFormat.JSON)
    source_location: Optional[str] = Field(
        None, description="File path or http(s) URL of the participants document."
    )
    sink: SinkType = Field(SinkType.DB)
    csv_output_dir: str = Field("export", description="Directory for the CSV sink.")
    http_timeout: float = Field(30.0, gt=0, description="Seconds per HTTP request.")

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )
    log_file: Optional[str] = Field(None, description="Optional log file path.")

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    def connection_fields(self) -> Dict[str, Any]:
        """The db_* settings keyed by ConnectionParams field name."""
        return {
            "driver": self.db_driver,
            "host": self.db_host,
            "port": self.db_port,
            "username": self.db_username,
            "password": self.db_password,
            "database": self.db_database,
        }

    def connection_params(self) -> ConnectionParams:
        """Builds validated connection parameters from the db_* settings."""
        return ConnectionParams(**self.connection_fields())


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
