"""
Run one workload over a list of inputs: serially, on threads, on processes,
or (I/O only) on an asyncio event loop.

Every runner returns results in input order and does not return until every
worker it started has finished.

The fork_join_* helpers are the bare pattern from the report: start one
Thread/Process per input, then join() each of them. They exist to show the
join barrier itself; the pool runners are what the benchmarks time.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import multiprocessing
import threading
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Callable, Sequence

import httpx

from .errors import InvalidInputError, WorkerFailedError
from .workloads import DEFAULT_BACKOFF_S, DEFAULT_TIMEOUT_S, async_download_size

log = logging.getLogger(__name__)


class Strategy(str, enum.Enum):
    SERIAL = "serial"
    THREADS = "threads"
    PROCESSES = "processes"
    ASYNCIO = "asyncio"


def _check_workers(workers: int) -> None:
    if workers < 1:
        raise InvalidInputError(f"workers must be >= 1, got {workers}")


def _mp_context(start_method: str | None):
    if start_method is None:
        return None
    try:
        return multiprocessing.get_context(start_method)
    except ValueError as e:
        raise InvalidInputError(f"unsupported start method {start_method!r}") from e


def run_serial(fn: Callable[[Any], Any], items: Sequence[Any]) -> list[Any]:
    return [fn(x) for x in items]


def run_threads(fn: Callable[[Any], Any], items: Sequence[Any], workers: int) -> list[Any]:
    _check_workers(workers)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="gil-lab") as ex:
        return list(ex.map(fn, items))


def run_processes(
    fn: Callable[[Any], Any],
    items: Sequence[Any],
    workers: int,
    start_method: str | None = None,
) -> list[Any]:
    """``fn`` and every item must be picklable."""
    _check_workers(workers)
    with ProcessPoolExecutor(max_workers=workers, mp_context=_mp_context(start_method)) as ex:
        return list(ex.map(fn, items))


def run_strategy(
    strategy: Strategy | str,
    fn: Callable[[Any], Any],
    items: Sequence[Any],
    workers: int = 1,
    start_method: str | None = None,
) -> list[Any]:
    strategy = Strategy(strategy)
    if strategy is Strategy.SERIAL:
        return run_serial(fn, items)
    if strategy is Strategy.THREADS:
        return run_threads(fn, items, workers)
    if strategy is Strategy.PROCESSES:
        return run_processes(fn, items, workers, start_method)
    raise InvalidInputError("asyncio runs coroutines; use run_async_downloads")


async def _gather_downloads(
    urls: Sequence[str],
    concurrency: int,
    timeout_s: float,
    transport: httpx.AsyncBaseTransport | None,
    retries: int,
    backoff_s: float,
) -> list[int]:
    sem = asyncio.Semaphore(concurrency)
    limits = httpx.Limits(max_connections=concurrency * 2, max_keepalive_connections=concurrency)
    async with httpx.AsyncClient(
        timeout=timeout_s, limits=limits, follow_redirects=True, transport=transport
    ) as client:
        return await asyncio.gather(
            *(async_download_size(client, u, sem, retries=retries, backoff_s=backoff_s) for u in urls)
        )


def run_async_downloads(
    urls: Sequence[str],
    concurrency: int,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    transport: httpx.AsyncBaseTransport | None = None,
    retries: int = 0,
    backoff_s: float = DEFAULT_BACKOFF_S,
) -> list[int]:
    _check_workers(concurrency)
    return list(asyncio.run(_gather_downloads(urls, concurrency, timeout_s, transport, retries, backoff_s)))


def fork_join_threads(fn: Callable[[Any], Any], items: Sequence[Any]) -> int:
    """One thread per item, then join them all.

    An exception inside a worker is re-raised here once every thread has
    been joined.
    """
    _check_workers(len(items))
    errors: list[BaseException] = []

    def target(x: Any) -> None:
        try:
            fn(x)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=target, args=(x,), name=f"gil-lab-{i}") for i, x in enumerate(items)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    log.debug("joined %d threads", len(threads))
    if errors:
        raise errors[0]
    return len(threads)


def fork_join_processes(fn: Callable[[Any], Any], items: Sequence[Any], start_method: str | None = None) -> int:
    """One process per item, then join them all. Return values are discarded."""
    _check_workers(len(items))
    ctx = _mp_context(start_method) or multiprocessing.get_context()
    procs = [ctx.Process(target=fn, args=(x,), name=f"gil-lab-{i}") for i, x in enumerate(items)]
    for p in procs:
        p.start()
    for p in procs:
        p.join()

    exit_codes = [p.exitcode for p in procs]
    log.debug("joined %d processes, exit codes %s", len(procs), exit_codes)
    if any(code != 0 for code in exit_codes):
        raise WorkerFailedError(exit_codes)
    return len(procs)
