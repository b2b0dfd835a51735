import sys
import logging
from typing import Any

from loguru import logger

from roster_store.config.settings import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter function to mask sensitive data in log records."""
    sensitive_keys = ["password", "passwd", "secret", "token"]

    # Mask explicit keys in the extra dict
    extra = record.get("extra")
    if isinstance(extra, dict):
        for extra_key, value in list(extra.items()):
            if any(sk in extra_key.lower() for sk in sensitive_keys):
                if isinstance(value, str) and len(value) > 8:
                    extra[extra_key] = value[:2] + "****" + value[-2:]
                else:
                    extra[extra_key] = "********"

    # The configured database password must never reach a sink verbatim
    if settings.db_password and settings.db_password in record["message"]:
        record["message"] = record["message"].replace(settings.db_password, "********")

    return True  # Keep the record after filtering/masking


class InterceptHandler(logging.Handler):
    """Routes standard logging records (e.g. from httpx) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging() -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=LOG_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,  # Locals may hold credentials
        filter=sensitive_data_filter,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            level="DEBUG",  # Log everything to file
            rotation="10 MB",
            retention="7 days",
            encoding="utf-8",
            filter=sensitive_data_filter,
        )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.debug("Standard logging intercepted.")
