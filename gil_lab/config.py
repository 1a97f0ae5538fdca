"""
Settings for the lab, read from the environment (and an optional .env file).

  GIL_LAB_HTTP_BASE      base URL of the local HTTP service (default http://127.0.0.1:8008)
  GIL_LAB_HTTP_TIMEOUT   per-request timeout in seconds (default 10)
  GIL_LAB_RETRIES        download retries after the first attempt (default 2)
  GIL_LAB_BACKOFF        base backoff in seconds, doubled per retry (default 0.3)
  GIL_LAB_PRIME_BOUND    n for the CPU-bound workload (default 200000)
  GIL_LAB_TASKS          how many copies of the workload to run (default 8)
  GIL_LAB_WORKERS        worker sweep, comma separated (default 1,2,4)
  GIL_LAB_START_METHOD   multiprocessing start method (default: platform default)

CLI flags override these.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigError

START_METHODS = ("fork", "spawn", "forkserver")


@dataclass(frozen=True)
class Settings:
    http_base: str = "http://127.0.0.1:8008"
    http_timeout_s: float = 10.0
    retries: int = 2
    backoff_s: float = 0.3
    prime_bound: int = 200_000
    tasks: int = 8
    workers: tuple[int, ...] = (1, 2, 4)
    start_method: str | None = None


def parse_workers(raw: str) -> tuple[int, ...]:
    """Parse a comma-separated worker sweep such as ``"1,2,4,8"``."""
    try:
        workers = tuple(int(x.strip()) for x in raw.split(",") if x.strip())
    except ValueError as e:
        raise ConfigError(f"bad worker list {raw!r}: {e}") from e
    if not workers:
        raise ConfigError("worker list is empty")
    if any(w < 1 for w in workers):
        raise ConfigError(f"worker counts must be >= 1, got {raw!r}")
    return workers


def _env_number(name: str, default: str, cast):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name}={raw!r} is not a valid {cast.__name__}") from e


def load_settings(dotenv_path: str | None = None) -> Settings:
    load_dotenv(dotenv_path)

    start_method = os.getenv("GIL_LAB_START_METHOD") or None
    if start_method is not None and start_method not in START_METHODS:
        raise ConfigError(f"GIL_LAB_START_METHOD must be one of {START_METHODS}, got {start_method!r}")

    settings = Settings(
        http_base=os.getenv("GIL_LAB_HTTP_BASE", Settings.http_base),
        http_timeout_s=_env_number("GIL_LAB_HTTP_TIMEOUT", "10", float),
        retries=_env_number("GIL_LAB_RETRIES", "2", int),
        backoff_s=_env_number("GIL_LAB_BACKOFF", "0.3", float),
        prime_bound=_env_number("GIL_LAB_PRIME_BOUND", "200000", int),
        tasks=_env_number("GIL_LAB_TASKS", "8", int),
        workers=parse_workers(os.getenv("GIL_LAB_WORKERS", "1,2,4")),
        start_method=start_method,
    )

    if settings.http_timeout_s <= 0:
        raise ConfigError("GIL_LAB_HTTP_TIMEOUT must be > 0")
    if settings.retries < 0:
        raise ConfigError("GIL_LAB_RETRIES must be >= 0")
    if settings.backoff_s < 0:
        raise ConfigError("GIL_LAB_BACKOFF must be >= 0")
    if settings.prime_bound < 1 or settings.tasks < 1:
        raise ConfigError("GIL_LAB_PRIME_BOUND and GIL_LAB_TASKS must be >= 1")
    return settings
