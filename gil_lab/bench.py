"""
Benchmarking utilities: wall time, process RSS delta and system CPU while a
run is in flight.
"""

from __future__ import annotations

import os
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable

import psutil


@dataclass
class Result:
    name: str
    strategy: str
    workload: str
    wall_s: float
    items: int
    workers: int
    proc_rss_mb: float
    sys_cpu_avg: float
    sys_cpu_peak: float

    @property
    def ips(self) -> float:
        return self.items / self.wall_s if self.wall_s > 0 else 0.0


def _sample_system_cpu(stop: threading.Event, out: list[float], interval_s: float) -> None:
    psutil.cpu_percent(interval=None)  # prime
    while not stop.is_set():
        out.append(psutil.cpu_percent(interval=interval_s))


def measure(
    fn: Callable[[], object],
    *,
    name: str,
    items: int,
    strategy: str,
    workload: str,
    workers: int = 1,
    cpu_sample_interval_s: float = 0.2,
) -> Result:
    proc = psutil.Process(os.getpid())
    rss0 = proc.memory_info().rss

    stop = threading.Event()
    samples: list[float] = []
    th = threading.Thread(
        target=_sample_system_cpu,
        args=(stop, samples, cpu_sample_interval_s),
        daemon=True,
    )

    t0 = time.perf_counter()
    th.start()
    try:
        fn()
    finally:
        stop.set()
        th.join(timeout=2.0)
    wall = time.perf_counter() - t0

    rss1 = proc.memory_info().rss
    avg = (sum(samples) / len(samples)) if samples else 0.0
    peak = max(samples) if samples else 0.0

    return Result(
        name=name,
        strategy=strategy,
        workload=workload,
        wall_s=wall,
        items=items,
        workers=workers,
        proc_rss_mb=(rss1 - rss0) / (1024 * 1024),
        sys_cpu_avg=avg,
        sys_cpu_peak=peak,
    )


def baseline_for(results: Iterable[Result], baseline: str = "serial") -> dict[str, float]:
    """Wall time of the baseline strategy, keyed by workload."""
    out: dict[str, float] = {}
    for r in results:
        if r.strategy == baseline and r.workload not in out:
            out[r.workload] = r.wall_s
    return out


def speedups(results: list[Result], baseline: str = "serial") -> dict[str, float]:
    """Speedup of each result over the baseline run of the same workload.

    Results whose workload has no baseline run are left out.
    """
    base = baseline_for(results, baseline)
    out: dict[str, float] = {}
    for r in results:
        if r.workload not in base:
            continue
        out[r.name] = base[r.workload] / r.wall_s if r.wall_s > 0 else float("inf")
    return out


def print_results(results: list[Result]) -> None:
    sp = speedups(results)
    print("\nName                         | Wall(s) | Items | Items/s | Speedup | ΔRSS(MB) | CPU(avg/peak)")
    print("-" * 102)
    for r in results:
        speedup = f"{sp[r.name]:>6.2f}x" if r.name in sp else "      -"
        print(
            f"{r.name:<28} | {r.wall_s:>7.3f} | {r.items:>5d} | {r.ips:>7.2f} | {speedup} | {r.proc_rss_mb:>8.1f} | "
            f"{r.sys_cpu_avg:>5.1f}%/{r.sys_cpu_peak:>5.1f}%"
        )
