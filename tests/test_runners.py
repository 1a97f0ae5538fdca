from __future__ import annotations

import multiprocessing
import threading
import time
from functools import partial

import httpx
import pytest

from gil_lab.errors import DownloadError, InvalidInputError, WorkerFailedError
from gil_lab.runners import (
    Strategy,
    fork_join_processes,
    fork_join_threads,
    run_async_downloads,
    run_processes,
    run_serial,
    run_strategy,
    run_threads,
)
from gil_lab.workloads import count_primes_below, download_size, io_wait

BOUNDS = [10, 100, 1000, 2, 50]
EXPECTED = [4, 25, 168, 0, 15]


@pytest.mark.parametrize("strategy", ["serial", "threads", "processes"])
def test_results_keep_input_order(strategy: str) -> None:
    assert run_strategy(strategy, count_primes_below, BOUNDS, workers=3) == EXPECTED


def test_run_serial_empty() -> None:
    assert run_serial(count_primes_below, []) == []


def test_run_threads_overlaps_waits() -> None:
    t0 = time.perf_counter()
    run_threads(io_wait, [0.2] * 8, workers=8)
    # serially this is 1.6s
    assert time.perf_counter() - t0 < 1.0


@pytest.mark.parametrize("runner", [run_threads, run_processes])
def test_runners_reject_zero_workers(runner) -> None:
    with pytest.raises(InvalidInputError):
        runner(count_primes_below, BOUNDS, 0)


@pytest.mark.parametrize("strategy", ["threads", "processes"])
def test_worker_exception_propagates(strategy: str) -> None:
    with pytest.raises(InvalidInputError):
        run_strategy(strategy, count_primes_below, [10, 0, 10], workers=2)


def test_run_processes_with_start_method() -> None:
    method = multiprocessing.get_all_start_methods()[0]
    assert run_processes(count_primes_below, [100], 1, start_method=method) == [25]


def test_run_processes_rejects_unknown_start_method() -> None:
    with pytest.raises(InvalidInputError):
        run_processes(count_primes_below, [100], 1, start_method="teleport")


def test_run_strategy_rejects_asyncio_and_unknown() -> None:
    with pytest.raises(InvalidInputError):
        run_strategy(Strategy.ASYNCIO, count_primes_below, BOUNDS)
    with pytest.raises(ValueError):
        run_strategy("greenlets", count_primes_below, BOUNDS)


def test_threads_share_a_client(mock_client: httpx.Client) -> None:
    urls = [f"http://lab.test/bytes?size={n}" for n in (10, 20, 30, 40)]
    assert run_threads(partial(download_size, client=mock_client), urls, 4) == [10, 20, 30, 40]


def test_run_async_downloads_keeps_order(mock_transport: httpx.MockTransport) -> None:
    urls = [f"http://lab.test/bytes?size={n}" for n in (5, 1, 3)]
    assert run_async_downloads(urls, 2, transport=mock_transport) == [5, 1, 3]


def test_run_async_downloads_raises_download_error(mock_transport: httpx.MockTransport) -> None:
    with pytest.raises(DownloadError):
        run_async_downloads(["http://lab.test/missing"], 1, transport=mock_transport)


def test_fork_join_threads_waits_for_every_worker() -> None:
    done: list[int] = []
    lock = threading.Lock()

    def work(i: int) -> None:
        time.sleep(0.05 * (i % 3))
        with lock:
            done.append(i)

    assert fork_join_threads(work, range(6)) == 6
    assert sorted(done) == list(range(6))
    assert not [t for t in threading.enumerate() if t.name.startswith("gil-lab-")]


def test_fork_join_threads_reraises_after_join() -> None:
    finished: list[int] = []

    def work(i: int) -> None:
        if i == 0:
            raise RuntimeError("boom")
        time.sleep(0.1)
        finished.append(i)

    with pytest.raises(RuntimeError, match="boom"):
        fork_join_threads(work, [0, 1, 2])
    assert sorted(finished) == [1, 2]


def test_fork_join_processes_joins_all() -> None:
    assert fork_join_processes(count_primes_below, [100, 200, 300]) == 3
    assert not [p for p in multiprocessing.active_children() if p.name.startswith("gil-lab-")]


def test_fork_join_processes_reports_failed_workers() -> None:
    with pytest.raises(WorkerFailedError) as info:
        fork_join_processes(count_primes_below, [100, 0])
    assert info.value.exit_codes[0] == 0
    assert info.value.exit_codes[1] != 0


def test_run_async_downloads_retries() -> None:
    calls = []

    def flaky(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, content=b"abc")

    transport = httpx.MockTransport(flaky)
    assert run_async_downloads(["http://lab.test/"], 1, transport=transport, retries=1, backoff_s=0) == [3]
    assert len(calls) == 2


def test_run_async_downloads_redirect_loop_raises_download_error() -> None:
    def loop(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": str(request.url)})

    with pytest.raises(DownloadError):
        run_async_downloads(["http://lab.test/loop"], 1, transport=httpx.MockTransport(loop))


def test_download_error_crosses_process_boundary() -> None:
    with pytest.raises(DownloadError) as info:
        run_processes(partial(download_size, timeout_s=2.0), ["http://127.0.0.1:1/"], 1)
    assert info.value.url == "http://127.0.0.1:1/"


@pytest.mark.parametrize("fork_join", [fork_join_threads, fork_join_processes])
def test_fork_join_rejects_no_workers(fork_join) -> None:
    with pytest.raises(InvalidInputError):
        fork_join(io_wait, [])
