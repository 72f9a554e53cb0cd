"""Logging setup for the service, its tools and the CLI."""

import logging
import os
import sys

from pydantic import BaseModel, Field, field_validator

# Libraries that log every request at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


class LogConfig(BaseModel):
    """How records are formatted and which libraries are held back."""

    level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"
    quiet_loggers: list[str] = Field(default_factory=lambda: list(QUIET_LOGGERS))

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


def setup_logging(config: LogConfig | None = None) -> None:
    """Send service logs to stdout and hold chatty libraries at WARNING."""
    config = config or LogConfig()

    logging.basicConfig(
        level=config.level,
        format=config.format,
        datefmt=config.date_format,
        stream=sys.stdout,
        force=True,
    )

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger.

    Its level is inherited from the root logger configured by setup_logging,
    so LOG_LEVEL applies to every module at once.
    """
    return logging.getLogger(name)
