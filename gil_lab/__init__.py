"""Threads vs processes in Python: the workloads, the runners and the lab report."""

from __future__ import annotations

from .bench import Result, measure
from .environment import RuntimeInfo, detect_runtime
from .errors import ConfigError, DownloadError, InvalidInputError, LabError, WorkerFailedError
from .report import LabReport, render_markdown, write_report
from .runners import (
    Strategy,
    fork_join_processes,
    fork_join_threads,
    run_async_downloads,
    run_processes,
    run_serial,
    run_strategy,
    run_threads,
)
from .workloads import count_primes_below, download_size, io_wait, primes_below

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "DownloadError",
    "InvalidInputError",
    "LabError",
    "LabReport",
    "Result",
    "RuntimeInfo",
    "Strategy",
    "WorkerFailedError",
    "count_primes_below",
    "detect_runtime",
    "download_size",
    "fork_join_processes",
    "fork_join_threads",
    "io_wait",
    "measure",
    "primes_below",
    "render_markdown",
    "run_async_downloads",
    "run_processes",
    "run_serial",
    "run_strategy",
    "run_threads",
    "write_report",
]
