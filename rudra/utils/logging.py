"""Logging setup shared by the server and the terminal client."""

import logging
import os
import sys
from typing import Literal

from pydantic import BaseModel

NOISY_LOGGERS = ("anthropic", "httpx", "httpcore", "aiosqlite", "uvicorn.access")


class LogConfig(BaseModel):
    """Where and how log records are written.

    The server logs to stdout. The terminal client logs to stderr so records stay
    out of the chat transcript.
    """

    level: str = "INFO"
    stream: Literal["stdout", "stderr"] = "stdout"
    line_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_env(cls, stream: Literal["stdout", "stderr"] = "stdout") -> "LogConfig":
        return cls(level=os.getenv("LOG_LEVEL", "INFO"), stream=stream)


def setup_logging(config: LogConfig | None = None) -> None:
    """Install the root handler and quiet chatty third-party loggers."""
    config = config or LogConfig.from_env()

    logging.basicConfig(
        level=config.level.upper(),
        format=config.line_format,
        datefmt=config.date_format,
        stream=sys.stderr if config.stream == "stderr" else sys.stdout,
        force=True,
    )

    # httpx and anthropic log every request at INFO
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Return the module logger, with its level taken from LOG_LEVEL unless given.

    Args:
        name: Module name (typically __name__)
        level: Explicit level name
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())
    return logger
