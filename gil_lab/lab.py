"""
The experiments: each suite runs one workload under every strategy and worker
count in the sweep and returns the measured Results, serial first.

Expected:
- CPU-bound: threads ~= serial (GIL), processes scale until cores run out.
- I/O-bound: threads and asyncio overlap the waits; processes help too but
  pay for startup.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Sequence

from .bench import Result, measure
from .errors import InvalidInputError
from .runners import Strategy, run_async_downloads, run_strategy
from .workloads import DEFAULT_BACKOFF_S, DEFAULT_TIMEOUT_S, count_primes_below, download_size, io_wait

log = logging.getLogger(__name__)

CPU = "cpu"
IO = "io"


def build_urls(base: str, count: int, size: int, delay_ms: int) -> list[str]:
    """URLs against the local HTTP service; ``i`` keeps each one distinct."""
    if count < 1:
        raise InvalidInputError(f"count must be >= 1, got {count}")
    base = base.rstrip("/")
    return [f"{base}/bytes?size={size}&delay_ms={delay_ms}&i={i}" for i in range(count)]


def _sweep(
    fn,
    items: Sequence,
    workload: str,
    workers: Sequence[int],
    strategies: Sequence[Strategy],
    start_method: str | None,
    cpu_sample_interval_s: float,
) -> list[Result]:
    results = [
        measure(
            lambda: run_strategy(Strategy.SERIAL, fn, items),
            name=f"{workload}-serial",
            items=len(items),
            strategy=Strategy.SERIAL.value,
            workload=workload,
            cpu_sample_interval_s=cpu_sample_interval_s,
        )
    ]
    for w in workers:
        for s in strategies:
            log.info("%s: %s(%d) over %d items", workload, s.value, w, len(items))
            results.append(
                measure(
                    lambda w=w, s=s: run_strategy(s, fn, items, w, start_method),
                    name=f"{workload}-{s.value}({w})",
                    items=len(items),
                    strategy=s.value,
                    workload=workload,
                    workers=w,
                    cpu_sample_interval_s=cpu_sample_interval_s,
                )
            )
    return results


def run_cpu_suite(
    n: int,
    tasks: int,
    workers: Sequence[int],
    start_method: str | None = None,
    cpu_sample_interval_s: float = 0.2,
) -> list[Result]:
    if tasks < 1:
        raise InvalidInputError(f"tasks must be >= 1, got {tasks}")
    return _sweep(
        count_primes_below,
        [n] * tasks,
        CPU,
        workers,
        (Strategy.THREADS, Strategy.PROCESSES),
        start_method,
        cpu_sample_interval_s,
    )


def run_io_suite(
    urls: Sequence[str],
    workers: Sequence[int],
    timeout_s: float = DEFAULT_TIMEOUT_S,
    retries: int = 0,
    backoff_s: float = DEFAULT_BACKOFF_S,
    start_method: str | None = None,
    cpu_sample_interval_s: float = 0.2,
) -> list[Result]:
    if not urls:
        raise InvalidInputError("no URLs to download")
    fetch = partial(download_size, timeout_s=timeout_s, retries=retries, backoff_s=backoff_s)
    results = _sweep(
        fetch,
        list(urls),
        IO,
        workers,
        (Strategy.THREADS, Strategy.PROCESSES),
        start_method,
        cpu_sample_interval_s,
    )
    for w in workers:
        log.info("%s: asyncio(%d) over %d urls", IO, w, len(urls))
        results.append(
            measure(
                lambda w=w: run_async_downloads(urls, w, timeout_s, retries=retries, backoff_s=backoff_s),
                name=f"{IO}-asyncio({w})",
                items=len(urls),
                strategy=Strategy.ASYNCIO.value,
                workload=IO,
                workers=w,
                cpu_sample_interval_s=cpu_sample_interval_s,
            )
        )
    return results


def run_simulated_io_suite(
    wait_s: float,
    tasks: int,
    workers: Sequence[int],
    start_method: str | None = None,
    cpu_sample_interval_s: float = 0.2,
) -> list[Result]:
    """I/O suite with time.sleep standing in for the network."""
    if tasks < 1:
        raise InvalidInputError(f"tasks must be >= 1, got {tasks}")
    return _sweep(
        io_wait,
        [wait_s] * tasks,
        IO,
        workers,
        (Strategy.THREADS, Strategy.PROCESSES),
        start_method,
        cpu_sample_interval_s,
    )
