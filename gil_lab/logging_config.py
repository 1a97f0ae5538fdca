"""
Logging setup shared by the CLI and the local HTTP service.

Environment:
  LOG_LEVEL   logging level name (default: INFO)
  LOG_FORMAT  "plain" (default) or "json"

Result tables are printed to stdout; logging goes to stderr.
"""

from __future__ import annotations

import logging
import os

from pythonjsonlogger.json import JsonFormatter

from .errors import ConfigError

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter(JSON_FORMAT)
    return logging.Formatter(PLAIN_FORMAT)


def setup_logging(level: str | None = None) -> None:
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        raise ConfigError(f"unknown log level {level_name!r}")
    log_format = os.getenv("LOG_FORMAT", "plain").lower()

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(log_format))
    logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # httpx logs every request at INFO
    for name in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
